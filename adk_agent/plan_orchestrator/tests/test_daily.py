"""
Tests for check-in memory and the daily adjustment of a base-plan day.
"""

from app.api import generate_daily_adjustment
from app.daily.adjustment import (
    GENTLE_MOBILITY,
    STRESS_SLEEP,
    adjust_day,
    adjust_nutrition,
    adjust_recovery,
    adjust_workout,
    generate_flags,
)
from app.daily.memory import CheckIn, build_memory_layer, ema, weight_trend
from app.llm.completion import CompletionClient
from app.llm.providers import MockProvider
from app.plans.models import DayWorkout, ExerciseItem, WorkoutBlock
from app.plans.profile import Goal
from app.plans.taxonomy import UPPER_PUSH, categorize_exercise

from tests.fixtures import PlanResponder, make_checkin, make_config, make_profile, template_plan

HISTORY_DATES = ["2024-05-31", "2024-06-01", "2024-06-02"]


def _history(**fields):
    return [make_checkin(date=d, **fields) for d in HISTORY_DATES]


def _workout():
    return DayWorkout(
        focus=["Full Body"],
        blocks=[
            WorkoutBlock(name="Warm-up", items=[ExerciseItem(exercise="Jog", sets=1, reps="5 min", rir=0)]),
            WorkoutBlock(name="Main", items=[
                ExerciseItem(exercise="Bench Press", sets=3, reps="8-10", rir=1),
                ExerciseItem(exercise="Barbell Row", sets=3, reps="8-10", rir=2),
                ExerciseItem(exercise="Back Squat", sets=3, reps="6-8", rir=1),
                ExerciseItem(exercise="Plank", sets=2, reps="45 sec", rir=2),
            ]),
        ],
        notes="Full body day.",
    )


class TestCheckIn:

    def test_from_app_payload(self):
        checkin = CheckIn.from_dict({
            "date": "2024-06-04",
            "energy": 6,
            "sleepHrs": 7,
            "waterL": 2,
            "soreness": "Legs, Back",
            "currentWeight": 80.5,
            "alcoholYN": True,
            "suppsYN": False,
            "specialRequest": "short session",
        })
        assert checkin.sleep_hrs == 7
        assert checkin.soreness == ["legs", "back"]
        assert checkin.weight_kg == 80.5
        assert checkin.alcohol is True
        assert checkin.supplements_taken is False
        assert checkin.parsed_date.weekday() == 1


class TestMemory:

    def test_needs_four_checkins(self):
        profile = make_profile()
        assert build_memory_layer(profile, _history()[:2] + [make_checkin()]) is None
        assert build_memory_layer(profile, _history() + [make_checkin()]) is not None

    def test_ema(self):
        assert ema([1.0, 1.0, 0.5, 0.5]) == 0.58
        assert ema([0.5]) == 0.5

    def test_ema_uses_last_four_by_date(self):
        profile = make_profile()
        old = [make_checkin(date="2024-05-20", sleep_hrs=1), make_checkin(date="2024-05-21", sleep_hrs=1)]
        # Passed out of order on purpose
        memory = build_memory_layer(profile, [make_checkin()] + _history() + old)
        assert memory.ema["sleep"] == 1.0
        assert memory.scores["sleep"] == 1.0

    def test_soreness_streak(self):
        profile = make_profile()
        memory = build_memory_layer(profile, _history(soreness=["legs"]) + [make_checkin()])
        assert [(s.area, s.length) for s in memory.soreness_streaks] == [("legs", 3)]

    def test_weight_trend_flat_for_muscle_gain(self):
        checkins = [make_checkin(date=d, weight_kg=80.0) for d in HISTORY_DATES]
        checkins.append(make_checkin(weight_kg=80.1))
        trend = weight_trend(Goal.MUSCLE_GAIN, checkins)
        assert trend.direction == "flat"
        assert trend.recommended_calorie_delta == 100

    def test_weight_trend_up_for_weight_loss(self):
        checkins = [make_checkin(date="2024-06-01", weight_kg=80.0), make_checkin(weight_kg=80.5)]
        trend = weight_trend(Goal.WEIGHT_LOSS, checkins)
        assert trend.direction == "up"
        assert trend.recommended_calorie_delta == -100

    def test_weight_trend_on_track(self):
        checkins = [make_checkin(date="2024-06-01", weight_kg=80.0), make_checkin(weight_kg=79.0)]
        assert weight_trend(Goal.WEIGHT_LOSS, checkins).recommended_calorie_delta == 0

    def test_weight_trend_needs_two_points(self):
        assert weight_trend(Goal.WEIGHT_LOSS, [make_checkin(weight_kg=80.0)]).recommended_calorie_delta == 0


class TestFlags:

    def test_today_flags(self):
        checkin = make_checkin(energy=3, stress=7, sleep_hrs=5, workout_intensity=9, alcohol=True,
                               supplements_taken=False, soreness=["legs"], special_request="Short one")
        assert generate_flags(checkin, None) == [
            "LOW_ENERGY",
            "HIGH_STRESS",
            "LOW_SLEEP",
            "HIGH_INTENSITY_REQUESTED",
            "ALCOHOL_YESTERDAY",
            "MISSED_SUPPLEMENTS",
            "SORENESS_LEGS",
            "HAS_SPECIAL_REQUEST",
        ]

    def test_neutral_checkin_has_no_flags(self):
        assert generate_flags(make_checkin(), None) == []

    def test_trend_flags(self):
        profile = make_profile()
        checkins = [make_checkin(date=d, sleep_hrs=3, energy=2, soreness=["back"], weight_kg=80.0)
                    for d in HISTORY_DATES]
        today = make_checkin(sleep_hrs=3, energy=2, weight_kg=80.0)
        memory = build_memory_layer(profile, checkins + [today])
        flags = generate_flags(today, memory)
        assert "LOW_SLEEP_TREND" in flags
        assert "LOW_ENERGY_TREND" in flags
        assert "CHRONIC_SORENESS_BACK" in flags
        assert "CALORIE_ADJUST_+100" in flags


class TestAdjustWorkout:

    def test_low_energy_cuts_volume(self):
        workout, adjustments = adjust_workout(_workout(), make_checkin(energy=3))
        main = workout.blocks[1]
        assert [i.exercise for i in main.items] == ["Bench Press", "Barbell Row"]
        assert all(i.rir >= 3 for i in main.items)
        assert adjustments == ["Reduced volume and intensity for low energy"]

    def test_moderate_energy_raises_rir(self):
        workout, _ = adjust_workout(_workout(), make_checkin(energy=5))
        assert len(workout.blocks[1].items) == 4
        assert all(i.rir >= 2 for i in workout.blocks[1].items)

    def test_zero_energy_is_a_reading(self):
        workout, adjustments = adjust_workout(_workout(), make_checkin(energy=0))
        assert len(workout.blocks[1].items) == 2
        assert adjustments == ["Reduced volume and intensity for low energy"]

    def test_missing_energy_is_neutral(self):
        workout, adjustments = adjust_workout(_workout(), make_checkin(energy=None, stress=None))
        assert len(workout.blocks[1].items) == 4
        assert adjustments == ["Reduced intensity for moderate energy"]

    def test_high_stress_switches_protocol(self):
        workout, adjustments = adjust_workout(_workout(), make_checkin(stress=8))
        assert workout.focus == ["Recovery", "Stress Relief"]
        assert [b.name for b in workout.blocks] == ["Stress Relief"]
        assert "Switched to stress-relief protocol" in adjustments

    def test_soreness_drops_loaded_movements(self):
        workout, adjustments = adjust_workout(_workout(), make_checkin(soreness=["chest"]))
        names = [n for n in workout.exercise_names()]
        assert "Bench Press" not in names
        assert "Barbell Row" in names
        assert all(categorize_exercise(n) != UPPER_PUSH for n in names)
        assert "Soreness in chest" in workout.notes
        assert "Removed Bench Press" in adjustments

    def test_chronic_soreness_applies_without_todays_report(self):
        workout, _ = adjust_workout(_workout(), make_checkin(), chronic_areas=["legs"])
        assert "Back Squat" not in workout.exercise_names()

    def test_nothing_left_becomes_recovery(self):
        workout = DayWorkout(focus=["Push"], blocks=[WorkoutBlock(name="Main", items=[
            ExerciseItem(exercise="Bench Press", sets=3, reps="8", rir=2)])], notes="")
        adjusted, _ = adjust_workout(workout, make_checkin(soreness=["chest"]))
        assert adjusted.blocks
        assert "Bench Press" not in adjusted.exercise_names()

    def test_base_workout_untouched(self):
        base = _workout()
        adjust_workout(base, make_checkin(energy=2, soreness=["legs"]))
        assert base == _workout()


class TestAdjustNutritionAndRecovery:

    def test_alcohol_and_low_water(self):
        profile = make_profile()
        base = template_plan(profile).days["monday"].nutrition
        nutrition, adjustments, memory_adjustments = adjust_nutrition(
            base, make_checkin(alcohol=True, water_l=1.0), None)
        assert nutrition.hydration_l == round(base.hydration_l + 0.5, 1)
        assert len(adjustments) == 2
        assert memory_adjustments == []
        assert nutrition.total_kcal == base.total_kcal

    def test_weight_trend_moves_calories(self):
        profile = make_profile()
        base = template_plan(profile).days["monday"].nutrition
        checkins = [make_checkin(date=d, weight_kg=80.0) for d in HISTORY_DATES] + [make_checkin(weight_kg=80.0)]
        memory = build_memory_layer(profile, checkins)
        nutrition, _, memory_adjustments = adjust_nutrition(base, make_checkin(), memory)
        assert nutrition.total_kcal == base.total_kcal + 100
        assert len(memory_adjustments) == 1

    def test_recovery_rules(self):
        profile = make_profile()
        base = template_plan(profile).days["monday"].recovery
        recovery = adjust_recovery(base, make_checkin(energy=4, stress=7, supplements_taken=False))
        assert recovery.mobility == GENTLE_MOBILITY
        assert recovery.sleep == STRESS_SLEEP
        assert recovery.supplements[-1] == "Resume your usual supplements today"
        assert base.mobility != GENTLE_MOBILITY

    def test_zero_energy_gets_gentle_mobility(self):
        base = template_plan(make_profile()).days["monday"].recovery
        assert adjust_recovery(base, make_checkin(energy=0)).mobility == GENTLE_MOBILITY


class TestAdjustDay:

    def test_deterministic_adjustment(self):
        profile = make_profile()
        plan = template_plan(profile)
        daily = adjust_day(profile, make_checkin(), [], plan)

        assert daily.date == "2024-06-03"
        assert daily.day == "monday"
        assert daily.is_ai_adjusted is False
        assert daily.memory is None
        assert daily.motivation.startswith("Favorable conditions")
        assert daily.workout.exercise_names() == plan.days["monday"].workout.exercise_names()
        assert daily.to_dict()["memorySnapshot"] is None

    def test_ai_titration(self):
        profile = make_profile()
        responder = PlanResponder(profile)
        client = CompletionClient([MockProvider(responder)])
        daily = adjust_day(profile, make_checkin(), _history(), template_plan(profile),
                           client=client, config=make_config())

        assert daily.is_ai_adjusted is True
        assert daily.motivation == "Steady work today, you have earned it."
        assert daily.workout.notes == "Keep every set two reps shy of failure."
        assert responder.calls[("daily_adjustment", "monday")] == 1
        assert daily.memory is not None

    def test_unusable_titration_keeps_deterministic_plan(self):
        profile = make_profile()
        client = CompletionClient([MockProvider()])
        daily = adjust_day(profile, make_checkin(energy=3), [], template_plan(profile),
                           client=client, config=make_config())
        assert daily.is_ai_adjusted is False
        assert daily.motivation.startswith("Today calls for a measured approach")

    def test_api_entry_point(self):
        profile = make_profile()
        plan = template_plan(profile)
        daily = generate_daily_adjustment(
            profile.to_dict(),
            {"date": "2024-06-05", "energy": 8, "stress": 2, "sleepHrs": 8},
            [],
            plan.to_dict(),
            config=make_config(),
            use_ai=False,
        )
        assert daily.day == "wednesday"
        assert "HIGH_ENERGY" in daily.flags
        assert daily.workout.exercise_names() == plan.days["wednesday"].workout.exercise_names()
