"""
Tests for nutrition targets, the per-day adjustment policy, and food lookups.
"""

import pytest

from app.plans.foods import dietary_conflict, estimate_item, lookup_food, parse_quantity_grams
from app.plans.models import BaseNutrition, Intensity, NutritionDelta
from app.plans.profile import DietaryPref
from app.plans.targets import (
    DEFAULT_BMR,
    apply_delta,
    calculate_bmr,
    calorie_target,
    compute_base_targets,
    meal_names,
    nutrition_delta,
    protein_target,
)

from tests.fixtures import make_profile


def _base(**overrides):
    values = dict(total_kcal=2500, protein_g=150, carbs_g=300, fat_g=70, hydration_l=3.0)
    values.update(overrides)
    return BaseNutrition(**values)


class TestBaseTargets:

    def test_mifflin_st_jeor_male(self):
        # 10*80 + 6.25*180 - 5*30 + 5
        assert calculate_bmr(make_profile()) == 1780

    def test_mifflin_st_jeor_female(self):
        assert calculate_bmr(make_profile(sex="female")) == 1780 - 166

    def test_missing_body_data_uses_default(self):
        assert calculate_bmr(make_profile(weight_kg=None)) == DEFAULT_BMR

    def test_goal_factor_applied(self):
        # 1780 * 1.55 activity * 1.1 muscle gain
        assert calorie_target(make_profile()) == 3035
        assert calorie_target(make_profile(goal="WEIGHT_LOSS")) == round(1780 * 1.55 * 0.85)
        assert calorie_target(make_profile(goal="ENDURANCE")) == round(1780 * 1.55)

    def test_explicit_targets_win(self):
        profile = make_profile(daily_calorie_target=2200, daily_protein_target=140)
        target = compute_base_targets(profile)
        assert target.total_kcal == 2200
        assert target.protein_g == 140

    def test_explicit_targets_are_clamped(self):
        assert calorie_target(make_profile(daily_calorie_target=9000)) == 6000

    def test_protein_per_kg(self):
        assert protein_target(make_profile(), 3000) == 176
        assert protein_target(make_profile(goal="GENERAL_FITNESS"), 3000) == 144

    def test_protein_without_weight(self):
        assert protein_target(make_profile(weight_kg=None, goal="GENERAL_FITNESS"), 2000) == 150

    def test_macros_fill_remaining_calories(self):
        target = compute_base_targets(make_profile())
        assert target.hydration_l == 2.8
        macro_kcal = target.protein_g * 4 + target.carbs_g * 4 + target.fat_g * 9
        assert abs(macro_kcal - target.total_kcal) < 15

    def test_meal_names_match_count(self):
        for count in range(1, 9):
            assert len(meal_names(count)) == count


class TestNutritionDelta:

    def test_rest_day(self):
        delta = nutrition_delta(_base(), Intensity.REST)
        assert delta.carbs_g == -45
        assert delta.kcal == -180
        assert delta.hydration_l == -0.3

    def test_high_day(self):
        delta = nutrition_delta(_base(), Intensity.HIGH)
        assert delta.carbs_g == 30
        assert delta.protein_g == 8
        assert delta.kcal == (30 + 8) * 4
        assert delta.hydration_l == 0.5

    def test_low_day(self):
        delta = nutrition_delta(_base(), Intensity.LOW)
        assert delta.carbs_g == -24
        assert delta.kcal == -96

    def test_moderate_day_is_unchanged(self):
        delta = nutrition_delta(_base(), Intensity.MODERATE)
        assert (delta.kcal, delta.protein_g, delta.carbs_g, delta.hydration_l) == (0, 0, 0, 0.0)
        assert delta.reason

    def test_apply_delta(self):
        target = apply_delta(_base(), nutrition_delta(_base(), Intensity.HIGH))
        assert target.total_kcal == 2652
        assert target.protein_g == 158
        assert target.carbs_g == 330
        assert target.hydration_l == 3.5

    def test_apply_delta_clamps(self):
        target = apply_delta(_base(total_kcal=1050, carbs_g=20, hydration_l=1.1),
                             NutritionDelta(kcal=-200, carbs_g=-50, hydration_l=-0.5))
        assert target.total_kcal == 1000
        assert target.carbs_g == 0
        assert target.hydration_l == 1.0


class TestFoods:

    def test_longest_key_wins(self):
        assert lookup_food("Grilled chicken breast") == (165, 31)
        assert lookup_food("Egg whites") == (52, 11)

    def test_unknown_food(self):
        assert lookup_food("Grandma's curry") is None
        kcal, _, recognised = estimate_item("Grandma's curry", "100g")
        assert not recognised
        assert kcal == 150

    @pytest.mark.parametrize("qty, grams", [
        ("150g", 150),
        ("2 slices", 60),
        ("1.5 cups", 360),
        ("3", 300),
        ("250", 250),
        ("a handful", 100),
    ])
    def test_parse_quantity(self, qty, grams):
        assert parse_quantity_grams(qty) == grams

    def test_dietary_conflict(self):
        assert dietary_conflict("Chicken curry", DietaryPref.VEGETARIAN) == "chicken"
        assert dietary_conflict("Boiled eggs", DietaryPref.VEGETARIAN) == "egg"
        assert dietary_conflict("Boiled eggs", DietaryPref.EGGITARIAN) is None
        assert dietary_conflict("Eggplant curry", DietaryPref.VEGETARIAN) is None
        assert dietary_conflict("Steak", DietaryPref.NON_VEG) is None
