"""
Tests for the deterministic fallback generator.

Every fallback must pass schema validation without repairs and pass the
verifiers for the profile it was built for.
"""

import pytest

from app.plans.fallback import (
    fallback,
    fallback_base_nutrition,
    fallback_nutrition,
    fallback_reasoning,
    fallback_recovery,
    fallback_split,
    fallback_supplements,
    fallback_workout,
    training_day_slots,
)
from app.plans.models import ArtifactType, Intensity
from app.plans.profile import DAYS
from app.plans.schemas import validate
from app.plans.session_time import estimate_session_minutes
from app.plans.targets import apply_delta, nutrition_delta
from app.plans.verifiers import verify_nutrition, verify_recovery, verify_workout

from tests.fixtures import make_profile

PROFILES = [
    make_profile(),
    make_profile(equipment=["Dumbbells"], avoid_exercises=["squat"], training_days=3),
    make_profile(equipment=["Bodyweight"], goal="WEIGHT_LOSS", training_days=5, meal_count=3,
                 dietary_prefs=["Vegetarian"], session_length_min=30),
    make_profile(equipment=["Bands"], goal="ENDURANCE", training_days=6, meal_count=6,
                 dietary_prefs=["Eggitarian"], injuries="bad knee", training_level="Beginner"),
    make_profile(goal="FLEXIBILITY_MOBILITY", training_days=7, meal_count=2, session_length_min=20),
    make_profile(training_days=1, meal_count=1, training_level="Professional"),
]


class TestFallbackSplit:

    @pytest.mark.parametrize("profile", PROFILES)
    def test_training_day_count(self, profile):
        split = fallback_split(profile)
        assert set(split.days) == set(DAYS)
        assert split.training_day_count == profile.training_days

    @pytest.mark.parametrize("profile", PROFILES)
    def test_validates_without_repairs(self, profile):
        result = validate(fallback_split(profile).to_dict(), ArtifactType.SPLIT, profile)
        assert result.ok
        assert result.repairs == []

    def test_preferred_days_are_used(self):
        profile = make_profile(training_days=3, preferred_training_days=["Tuesday", "saturday"])
        slots = training_day_slots(profile)
        assert len(slots) == 3
        assert "tuesday" in slots
        assert "saturday" in slots

    def test_rest_days_have_rest_intensity(self):
        split = fallback_split(make_profile(training_days=3))
        for day in split.days.values():
            assert (day.intensity == Intensity.REST) == day.is_rest_day


class TestFallbackWorkout:

    @pytest.mark.parametrize("profile", PROFILES)
    def test_every_day_verifies(self, profile):
        split = fallback_split(profile)
        for day in DAYS:
            workout = fallback_workout(profile, split.days[day])
            assert verify_workout(workout, profile).passed, (day, workout)
            assert estimate_session_minutes(workout) <= profile.session_length_min

    @pytest.mark.parametrize("profile", PROFILES)
    def test_validates_without_repairs(self, profile):
        split = fallback_split(profile)
        for day in DAYS:
            result = validate(fallback_workout(profile, split.days[day]).to_dict(), ArtifactType.WORKOUT)
            assert result.ok
            assert result.repairs == []

    def test_avoided_exercises_never_appear(self):
        profile = make_profile(equipment=["Dumbbells"], avoid_exercises=["squat", "lunge"])
        split = fallback_split(profile)
        for day in DAYS:
            names = [n.lower() for n in fallback_workout(profile, split.days[day]).exercise_names()]
            assert not any("squat" in n or "lunge" in n for n in names)

    def test_rest_day_is_active_recovery(self):
        profile = make_profile(training_days=3)
        split = fallback_split(profile)
        rest_day = next(d for d in DAYS if split.days[d].is_rest_day)
        workout = fallback_workout(profile, split.days[rest_day])
        assert workout.focus == ["Rest", "Recovery"]
        assert workout.blocks


class TestFallbackNutrition:

    @pytest.mark.parametrize("profile", PROFILES)
    def test_every_day_verifies_at_target(self, profile):
        split = fallback_split(profile)
        base = fallback_base_nutrition(profile)
        for day in DAYS:
            split_day = split.days[day]
            nutrition = fallback_nutrition(profile, base, split_day)
            target = apply_delta(base, nutrition_delta(base, split_day.intensity))
            assert nutrition.total_kcal == target.total_kcal
            assert len(nutrition.meals) == profile.meal_count
            assert verify_nutrition(nutrition, profile, target.total_kcal).passed, (day, nutrition)

    @pytest.mark.parametrize("profile", PROFILES)
    def test_validates_without_repairs(self, profile):
        base = fallback_base_nutrition(profile)
        split = fallback_split(profile)
        for day in DAYS:
            data = fallback_nutrition(profile, base, split.days[day]).to_dict()
            result = validate(data, ArtifactType.NUTRITION, profile)
            assert result.ok
            assert result.repairs == []


class TestFallbackRecovery:

    def test_blacklisted_current_supplements_are_dropped(self):
        profile = make_profile(supplements=["Creatine", "Dianabol"])
        split = fallback_split(profile)
        for day in DAYS:
            recovery = fallback_recovery(profile, split.days[day])
            assert verify_recovery(recovery).passed
            assert recovery.supplement_card.current == ["Creatine"]

    def test_weekly_supplements_cover_every_day(self):
        profile = make_profile()
        plan = fallback_supplements(profile, fallback_split(profile))
        assert set(plan.days) == set(DAYS)
        assert "Beta-Alanine" in plan.recommended_add_ons
        # Already taking creatine
        assert "Creatine Monohydrate" not in plan.recommended_add_ons


class TestFallbackDispatch:

    def test_reasoning_mentions_name(self):
        profile = make_profile(name="Priya")
        reasoning = fallback_reasoning(profile, fallback_split(profile))
        assert set(reasoning.reasons) == set(DAYS)
        assert all("Priya" in r for r in reasoning.reasons.values())

    def test_dispatch_per_day(self):
        profile = make_profile()
        workout = fallback(profile, ArtifactType.WORKOUT, {"day": "monday"})
        assert workout.blocks
        nutrition = fallback(profile, ArtifactType.NUTRITION, {"day": "monday"})
        assert len(nutrition.meals) == profile.meal_count

    def test_dispatch_is_deterministic(self):
        profile = make_profile()
        assert fallback(profile, ArtifactType.SPLIT) == fallback(profile, ArtifactType.SPLIT)
        assert fallback(profile, ArtifactType.SUPPLEMENTS) == fallback(profile, ArtifactType.SUPPLEMENTS)
