"""
Tests for the domain verifiers.

Verifiers are pure: they report violations and never touch the artifact.
"""

import copy

import pytest

from app.plans.models import (
    ArtifactType,
    DayNutrition,
    DayRecovery,
    DayWorkout,
    ExerciseItem,
    Meal,
    MealItem,
    SupplementCard,
    WorkoutBlock,
)
from app.plans.session_time import estimate_session_minutes
from app.plans.verifiers import verify, verify_nutrition, verify_recovery, verify_workout

from tests.fixtures import make_profile


def _workout(*names, duration_min=None):
    items = [ExerciseItem(exercise=n, sets=3, reps="8-10", rir=2) for n in names]
    if duration_min is not None:
        items = [ExerciseItem(exercise=names[0], sets=1, reps="steady", rir=0, duration_min=duration_min)]
    return DayWorkout(focus=["Full Body"], blocks=[WorkoutBlock(name="Main", items=items)], notes="")


def _nutrition(total_kcal, meals):
    return DayNutrition(total_kcal=total_kcal, protein_g=150, meals=meals, hydration_l=3.0)


def _meal(name, *items):
    return Meal(name=name, items=[MealItem(food=f, qty=q) for f, q in items])


class TestWorkoutVerifier:

    def test_equipment_mismatch(self):
        profile = make_profile(equipment=["Dumbbells"])
        result = verify_workout(_workout("Barbell Bench Press", "DB Row"), profile)
        assert not result.passed
        assert len(result.violations) == 1
        assert result.violations[0].field == "blocks[0].items[0].exercise"
        assert "Gym" in result.violations[0].reason

    def test_gym_allows_everything(self):
        profile = make_profile(equipment=["Gym"])
        assert verify_workout(_workout("Barbell Bench Press", "Band Rows", "DB Row"), profile).passed

    def test_bodyweight_needs_nothing(self):
        profile = make_profile(equipment=["Bands"])
        assert verify_workout(_workout("Push-ups", "Band Rows"), profile).passed

    def test_avoided_exercise_case_insensitive(self):
        profile = make_profile(equipment=["Dumbbells"], avoid_exercises=["squat"])
        result = verify_workout(_workout("DB Bench Press", "Goblet SQUAT"), profile)
        assert not result.passed
        assert "avoided" in result.violations[0].reason

    def test_avoided_plural_term(self):
        profile = make_profile(avoid_exercises=["Lunges"])
        assert not verify_workout(_workout("Reverse Lunge"), profile).passed

    def test_injury_contraindication(self):
        profile = make_profile(injuries="Left knee pain after running")
        result = verify_workout(_workout("Back Squat", "Lat Pulldown"), profile)
        assert not result.passed
        assert "injury" in result.violations[0].reason

    def test_no_injury_text(self):
        profile = make_profile(injuries="none")
        assert verify_workout(_workout("Back Squat"), profile).passed

    def test_session_cap_boundary(self):
        profile = make_profile(session_length_min=45)
        # One block transition minute plus the timed item
        at_cap = _workout("Treadmill Walk", duration_min=44)
        over_cap = _workout("Treadmill Walk", duration_min=45)
        assert estimate_session_minutes(at_cap) == 45
        assert verify_workout(at_cap, profile).passed
        result = verify_workout(over_cap, profile)
        assert not result.passed
        assert result.violations[0].field == "blocks"

    def test_artifact_is_not_modified(self):
        profile = make_profile(equipment=["Bodyweight"])
        workout = _workout("Barbell Row", "Push-ups")
        before = copy.deepcopy(workout)
        verify_workout(workout, profile)
        assert workout == before


class TestNutritionVerifier:

    def test_vegetarian_rejects_meat_and_eggs(self):
        profile = make_profile(dietary_prefs=["Vegetarian"], meal_count=2)
        meals = [_meal("Lunch", ("Grilled chicken", "200g")), _meal("Dinner", ("Scrambled eggs", "3"))]
        result = verify_nutrition(_nutrition(630, meals), profile)
        fields = [v.field for v in result.violations]
        assert "meals[0].items[0].food" in fields
        assert "meals[1].items[0].food" in fields

    def test_eggitarian_allows_eggs(self):
        profile = make_profile(dietary_prefs=["Eggitarian"], meal_count=1)
        meals = [_meal("Breakfast", ("Eggs", "3"))]
        assert verify_nutrition(_nutrition(465, meals), profile).passed

    def test_meal_name_is_checked(self):
        profile = make_profile(dietary_prefs=["Vegetarian"], meal_count=1)
        meals = [_meal("Chicken Bowl", ("Tofu", "200g"))]
        result = verify_nutrition(_nutrition(152, meals), profile)
        assert result.violations[0].field == "meals[0].name"

    def test_calories_within_five_percent(self):
        profile = make_profile(meal_count=1)
        meals = [_meal("Lunch", ("Mystery stew", "1 bowl"))]
        assert verify_nutrition(_nutrition(2100, meals), profile, target_kcal=2000).passed
        result = verify_nutrition(_nutrition(2101, meals), profile, target_kcal=2000)
        assert [v.field for v in result.violations] == ["total_kcal"]

    def test_meal_count(self):
        profile = make_profile(meal_count=3)
        meals = [_meal("Lunch", ("Mystery stew", "1 bowl"))]
        result = verify_nutrition(_nutrition(2000, meals), profile)
        assert [v.field for v in result.violations] == ["meals"]

    def test_items_far_from_total(self):
        profile = make_profile(meal_count=1)
        meals = [_meal("Lunch", ("Rice", "100g"))]
        result = verify_nutrition(_nutrition(2000, meals), profile)
        assert [v.field for v in result.violations] == ["meals"]
        assert "add up" in result.violations[0].reason

    def test_unknown_foods_skip_item_estimate(self):
        profile = make_profile(meal_count=1)
        meals = [_meal("Lunch", ("Rice", "100g"), ("Grandma's curry", "1 plate"))]
        assert verify_nutrition(_nutrition(2000, meals), profile).passed


class TestRecoveryVerifier:

    def _recovery(self, supplements, add_ons=()):
        return DayRecovery(
            mobility=["Stretch"],
            sleep=["Sleep 8h"],
            supplements=list(supplements),
            supplement_card=SupplementCard(current=[], add_ons=list(add_ons)),
        )

    def test_blacklisted_supplement(self):
        result = verify_recovery(self._recovery(["Creatine 5g", "RAD-140 10mg"]))
        assert [v.field for v in result.violations] == ["supplements[1]"]

    def test_blacklisted_add_on(self):
        result = verify_recovery(self._recovery(["Creatine 5g"], add_ons=["SARMs stack"]))
        assert [v.field for v in result.violations] == ["supplementCard.addOns[0]"]

    def test_clean_recovery(self):
        assert verify_recovery(self._recovery(["Creatine 5g"], add_ons=["Magnesium"])).passed


class TestDispatch:

    def test_verify_routes_by_type(self):
        profile = make_profile(equipment=["Bodyweight"])
        assert not verify(ArtifactType.WORKOUT, _workout("Barbell Row"), profile).passed

    def test_no_verifier_for_split(self):
        with pytest.raises(ValueError):
            verify(ArtifactType.SPLIT, None, make_profile())
