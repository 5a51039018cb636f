"""
Tests for per-artifact schema validation and repair.

Bounded values are repaired and recorded; missing structure is an error.
"""

import json

import pytest

from app.errors import SchemaError
from app.plans.fallback import fallback_split
from app.plans.models import ArtifactType, DayRecovery, Intensity, SupplementsPlan
from app.plans.profile import DAYS
from app.plans.schemas import validate

from tests.fixtures import PlanResponder, make_profile


def _workout(**overrides):
    data = {
        "focus": ["Upper Body"],
        "blocks": [{
            "name": "Main",
            "items": [{"exercise": "DB Bench Press", "sets": 3, "reps": "8-10", "RIR": 2}],
        }],
        "notes": "Controlled tempo.",
    }
    data.update(overrides)
    return data


def _meals(count):
    return [{"name": f"Meal {i + 1}", "items": [{"food": "rice", "qty": "150g"}]} for i in range(count)]


class TestWorkoutSchema:

    def test_clean_workout_has_no_repairs(self):
        result = validate(_workout(), ArtifactType.WORKOUT)
        assert result.ok
        assert result.repairs == []
        assert result.value.blocks[0].items[0].exercise == "DB Bench Press"

    def test_out_of_range_values_are_clamped(self):
        item = {"exercise": "Push-ups", "sets": 15, "reps": 12, "RIR": 9}
        result = validate(_workout(blocks=[{"name": "Main", "items": [item]}]), ArtifactType.WORKOUT)
        assert result.ok
        parsed = result.value.blocks[0].items[0]
        assert parsed.sets == 10
        assert parsed.rir == 5
        assert parsed.reps == "12"
        actions = {(r["path"], r["action"]) for r in result.repairs}
        assert ("blocks[0].items[0].sets", "clamped") in actions
        assert ("blocks[0].items[0].RIR", "clamped") in actions
        assert ("blocks[0].items[0].reps", "coerced") in actions

    def test_string_numbers_are_coerced(self):
        item = {"exercise": "Push-ups", "sets": "4", "reps": "10", "rir": "2"}
        result = validate(_workout(blocks=[{"name": "Main", "items": [item]}]), ArtifactType.WORKOUT)
        assert result.ok
        assert result.value.blocks[0].items[0].sets == 4
        assert result.value.blocks[0].items[0].rir == 2

    def test_missing_notes_is_a_repair(self):
        data = _workout()
        del data["notes"]
        result = validate(data, ArtifactType.WORKOUT)
        assert result.ok
        assert result.value.notes == ""
        assert [r["path"] for r in result.repairs] == ["notes"]

    def test_no_blocks_is_an_error(self):
        result = validate(_workout(blocks=[]), ArtifactType.WORKOUT)
        assert not result.ok
        assert result.value is None
        with pytest.raises(SchemaError):
            result.raise_for_errors()

    def test_only_empty_blocks_is_an_error(self):
        result = validate(_workout(blocks=[{"name": "Main", "items": []}]), ArtifactType.WORKOUT)
        assert not result.ok

    def test_missing_exercise_name_is_an_error(self):
        item = {"sets": 3, "reps": "10", "RIR": 2}
        result = validate(_workout(blocks=[{"name": "Main", "items": [item]}]), ArtifactType.WORKOUT)
        assert not result.ok
        assert result.errors[0]["path"] == "blocks[0].items[0].exercise"

    def test_non_object_is_an_error(self):
        assert not validate(["not", "a", "workout"], ArtifactType.WORKOUT).ok

    def test_non_finite_numbers_fall_back_to_defaults(self):
        item = json.loads('{"exercise": "Push-ups", "sets": NaN, "reps": "10", "RIR": 1e999}')
        result = validate(_workout(blocks=[{"name": "Main", "items": [item]}]), ArtifactType.WORKOUT)
        assert result.ok
        parsed = result.value.blocks[0].items[0]
        assert parsed.sets == 3
        assert parsed.rir == 2
        actions = {(r["path"], r["action"]) for r in result.repairs}
        assert ("blocks[0].items[0].sets", "defaulted") in actions
        assert ("blocks[0].items[0].RIR", "defaulted") in actions

    def test_non_finite_duration_is_dropped(self):
        item = {"exercise": "Bike", "sets": 1, "reps": "20 min", "RIR": 2, "duration_min": float("inf")}
        result = validate(_workout(blocks=[{"name": "Main", "items": [item]}]), ArtifactType.WORKOUT)
        assert result.ok
        assert result.value.blocks[0].items[0].duration_min is None


class TestNutritionSchema:

    def test_meal_count_must_match_exactly(self):
        profile = make_profile(meal_count=4)
        data = {"total_kcal": 2500, "protein_g": 160, "hydration_l": 3.0, "meals": _meals(3)}
        result = validate(data, ArtifactType.NUTRITION, profile)
        assert not result.ok
        assert result.errors[0]["path"] == "meals"

    def test_extra_meals_are_truncated(self):
        profile = make_profile(meal_count=3)
        data = {"total_kcal": 2500, "protein_g": 160, "hydration_l": 3.0, "meals": _meals(5)}
        result = validate(data, ArtifactType.NUTRITION, profile)
        assert result.ok
        assert len(result.value.meals) == 3
        assert result.repairs[0]["action"] == "truncated_meals"

    def test_missing_calories_is_an_error(self):
        data = {"protein_g": 160, "meals": _meals(3)}
        result = validate(data, ArtifactType.NUTRITION, make_profile(meal_count=3))
        assert not result.ok
        assert {"path": "total_kcal", "reason": "missing required integer"} in result.errors

    def test_hydration_defaults(self):
        data = {"total_kcal": 2500, "protein_g": 160, "meals": _meals(3)}
        result = validate(data, ArtifactType.NUTRITION, make_profile(meal_count=3))
        assert result.ok
        assert result.value.hydration_l == 2.5

    def test_missing_qty_defaults(self):
        meals = _meals(3)
        meals[0]["items"][0]["qty"] = ""
        data = {"total_kcal": 2500, "protein_g": 160, "meals": meals}
        result = validate(data, ArtifactType.NUTRITION, make_profile(meal_count=3))
        assert result.ok
        assert result.value.meals[0].items[0].qty == "1 serving"

    def test_base_nutrition_accepts_meals_alias(self):
        data = {"total_kcal": 2500, "protein_g": 160, "carbs_g": 300, "fat_g": 70, "meals": _meals(3)}
        result = validate(data, ArtifactType.BASE_NUTRITION, make_profile(meal_count=3))
        assert result.ok
        assert len(result.value.meal_templates) == 3
        assert "renamed_from_meals" in [r["action"] for r in result.repairs]

    def test_non_finite_calories_is_an_error(self):
        data = json.loads('{"total_kcal": Infinity, "protein_g": 160, "meals": []}')
        data["meals"] = _meals(3)
        result = validate(data, ArtifactType.NUTRITION, make_profile(meal_count=3))
        assert not result.ok
        assert result.errors[0]["path"] == "total_kcal"

    def test_items_must_be_a_list(self):
        meals = _meals(3)
        meals[0]["items"] = 3
        data = {"total_kcal": 2500, "protein_g": 160, "meals": meals}
        result = validate(data, ArtifactType.NUTRITION, make_profile(meal_count=3))
        assert not result.ok
        assert {"path": "meals[0].items", "reason": "items must be a list"} in result.errors


class TestSplitSchema:

    def test_template_split_validates_cleanly(self):
        profile = make_profile()
        result = validate(fallback_split(profile).to_dict(), ArtifactType.SPLIT, profile)
        assert result.ok
        assert result.repairs == []
        assert result.value.training_day_count == profile.training_days

    def test_bare_day_keys_accepted(self):
        profile = make_profile()
        data = fallback_split(profile).to_dict()["days"]
        data = {day.upper(): value for day, value in data.items()}
        result = validate(data, ArtifactType.SPLIT, profile)
        assert result.ok
        assert set(result.value.days) == set(DAYS)

    def test_missing_day_is_an_error(self):
        profile = make_profile()
        data = fallback_split(profile).to_dict()
        del data["days"]["sunday"]
        result = validate(data, ArtifactType.SPLIT, profile)
        assert not result.ok
        assert result.errors[0]["path"] == "days.sunday"

    def test_wrong_training_day_count_is_an_error(self):
        data = fallback_split(make_profile(training_days=4)).to_dict()
        result = validate(data, ArtifactType.SPLIT, make_profile(training_days=5))
        assert not result.ok

    def test_rest_day_intensity_is_forced(self):
        profile = make_profile()
        data = fallback_split(profile).to_dict()
        rest_day = next(d for d, v in data["days"].items() if v["is_rest_day"])
        data["days"][rest_day]["intensity"] = "high"
        result = validate(data, ArtifactType.SPLIT, profile)
        assert result.ok
        assert result.value.days[rest_day].intensity == Intensity.REST

    def test_back_to_back_high_days_need_rationale(self):
        profile = make_profile(training_days=2)
        day = {"is_rest_day": False, "focus": ["Full Body"], "intensity": "high",
               "primary_muscles": ["quads"], "rationale": ""}
        rest = {"is_rest_day": True, "focus": ["Rest"], "intensity": "rest"}
        data = {"days": {d: dict(rest) for d in DAYS}}
        data["days"]["monday"] = dict(day)
        data["days"]["tuesday"] = dict(day)
        result = validate(data, ArtifactType.SPLIT, profile)
        assert result.ok
        assert result.value.days["monday"].intensity == Intensity.HIGH
        assert result.value.days["tuesday"].intensity == Intensity.MODERATE

    def test_muscles_of_the_wrong_type_are_dropped(self):
        profile = make_profile()
        data = fallback_split(profile).to_dict()
        training_day = next(d for d, v in data["days"].items() if not v["is_rest_day"])
        data["days"][training_day]["primary_muscles"] = 7
        data["days"][training_day]["secondary_muscles"] = "Core"
        result = validate(data, ArtifactType.SPLIT, profile)
        assert result.ok
        assert result.value.days[training_day].primary_muscles == []
        assert result.value.days[training_day].secondary_muscles == ["core"]


class TestSupplementsSchema:

    def test_weekly_template_validates(self):
        profile = make_profile()
        responder = PlanResponder(profile)
        result = validate(responder.template("supplements"), ArtifactType.SUPPLEMENTS, profile,
                          {"split": responder.split})
        assert result.ok
        assert isinstance(result.value, SupplementsPlan)
        assert set(result.value.days) == set(DAYS)
        assert result.repairs == []

    def test_single_day_recovery_defaults(self):
        profile = make_profile()
        result = validate({"supplements": ["Creatine - 5g daily"]}, ArtifactType.SUPPLEMENTS, profile)
        assert result.ok
        assert isinstance(result.value, DayRecovery)
        assert result.value.mobility
        assert result.value.sleep
        assert result.value.supplement_card.current == ["Creatine"]

    def test_missing_week_day_is_defaulted(self):
        profile = make_profile()
        responder = PlanResponder(profile)
        data = responder.template("supplements")
        del data["days"]["friday"]
        result = validate(data, ArtifactType.SUPPLEMENTS, profile, {"split": responder.split})
        assert result.ok
        assert "friday" in result.value.days
        assert any(r["path"] == "days.friday" for r in result.repairs)

    @pytest.mark.parametrize("value", [
        {},
        {"mobility": ["Hip circles"], "sleep": ["8 hours"]},
    ])
    def test_weekly_call_rejects_single_day_shape(self, value):
        profile = make_profile()
        responder = PlanResponder(profile)
        result = validate(value, ArtifactType.SUPPLEMENTS, profile,
                          {"split": responder.split, "weekly": True})
        assert not result.ok
        assert result.value is None
        assert result.errors[0]["path"] == "days"


class TestReasoningSchema:

    def test_all_days_required(self):
        reasons = {day: "Because." for day in DAYS[:-1]}
        result = validate({"reasons": reasons}, ArtifactType.REASONING)
        assert not result.ok

    def test_reasons_are_trimmed(self):
        reasons = {day: f"  {day} reason  " for day in DAYS}
        result = validate({"reasons": reasons}, ArtifactType.REASONING)
        assert result.ok
        assert result.value.reasons["monday"] == "monday reason"
