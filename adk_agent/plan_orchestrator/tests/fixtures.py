"""
Shared profiles and scripted completion responders for plan pipeline tests.

PlanResponder answers each prompt by reading its "Artifact:" and "Day:"
header lines and returning the template artifact as JSON, so a full run
passes every verifier unless a test overrides a stage.
"""

import json
import re
import threading
from collections import Counter
from typing import Any, Callable, Dict, Optional, Union

from app.config import PipelineConfig
from app.daily.memory import CheckIn
from app.plans.fallback import (
    default_reason,
    fallback_base_nutrition,
    fallback_nutrition,
    fallback_reasoning,
    fallback_recovery,
    fallback_split,
    fallback_supplements,
    fallback_workout,
)
from app.plans.models import DayPlan, WeeklyPlan
from app.plans.profile import DAYS, UserProfile

ARTIFACT_RE = re.compile(r"^Artifact: (\w+)", re.M)
DAY_RE = re.compile(r"^Day: (\w+)", re.M)

Override = Union[str, Callable[[str, int], str]]


# =============================================================================
# PROFILES
# =============================================================================

BASE_PROFILE: Dict[str, Any] = {
    "user_id": "user-1",
    "name": "Sam",
    "goal": "MUSCLE_GAIN",
    "training_level": "Intermediate",
    "training_days": 4,
    "session_length_min": 60,
    "equipment": ["Gym"],
    "dietary_prefs": ["Non-veg"],
    "meal_count": 4,
    "age": 30,
    "sex": "male",
    "weight_kg": 80,
    "height_cm": 180,
    "activity_level": "moderately active",
    "supplements": ["Creatine"],
}


def make_profile(**overrides: Any) -> UserProfile:
    data = dict(BASE_PROFILE)
    data.update(overrides)
    return UserProfile.from_dict(data)


def make_config(**overrides: Any) -> PipelineConfig:
    """Config with no env lookups and no retry sleeps."""
    values: Dict[str, Any] = {"builder_retries": 1, "max_workers": 4}
    values.update(overrides)
    return PipelineConfig(**values)


# =============================================================================
# RESPONDER
# =============================================================================

class PlanResponder:
    """
    MockProvider responder keyed on the prompt header.

    overrides maps an artifact name ("workout") or an (artifact, day) pair
    to a fixed response, or to a callable(prompt, call_number) -> str.
    """

    def __init__(self, profile: UserProfile, overrides: Optional[Dict[Any, Override]] = None):
        self.profile = profile
        self.split = fallback_split(profile)
        self.base = fallback_base_nutrition(profile)
        self.overrides = dict(overrides or {})
        self.calls: Counter = Counter()
        self._lock = threading.Lock()

    def __call__(self, prompt: str) -> str:
        artifact = ARTIFACT_RE.search(prompt).group(1)
        day_match = DAY_RE.search(prompt)
        day = day_match.group(1) if day_match else None
        with self._lock:
            self.calls[artifact] += 1
            self.calls[(artifact, day)] += 1
            number = self.calls[(artifact, day)]

        for key in ((artifact, day), artifact):
            if key in self.overrides:
                override = self.overrides[key]
                return override(prompt, number) if callable(override) else override
        return json.dumps(self.template(artifact, day))

    def template(self, artifact: str, day: Optional[str] = None) -> Any:
        if artifact == "split":
            return self.split.to_dict()
        if artifact == "base_nutrition":
            return {"meal_templates": [m.to_dict() for m in self.base.meal_templates]}
        if artifact == "workout":
            return fallback_workout(self.profile, self.split.days[day]).to_dict()
        if artifact == "nutrition":
            return fallback_nutrition(self.profile, self.base, self.split.days[day]).to_dict()
        if artifact == "supplements":
            return fallback_supplements(self.profile, self.split).to_dict()
        if artifact == "reasoning":
            return fallback_reasoning(self.profile, self.split).to_dict()
        if artifact == "daily_adjustment":
            return {"motivation": "Steady work today, you have earned it.",
                    "notes": "Keep every set two reps shy of failure."}
        raise AssertionError(f"unexpected artifact {artifact}")


# =============================================================================
# PLANS & CHECK-INS
# =============================================================================

def template_plan(profile: UserProfile) -> WeeklyPlan:
    """Weekly plan built only from the deterministic templates."""
    split = fallback_split(profile)
    base = fallback_base_nutrition(profile)
    days = {
        day: DayPlan(
            workout=fallback_workout(profile, split.days[day]),
            nutrition=fallback_nutrition(profile, base, split.days[day]),
            recovery=fallback_recovery(profile, split.days[day]),
            reason=default_reason(profile, split.days[day]),
        )
        for day in DAYS
    }
    return WeeklyPlan(user_id=profile.user_id, days=days, split=split, base_nutrition=base)


def make_checkin(date: str = "2024-06-03", **fields: Any) -> CheckIn:
    """Check-in with neutral readings; 2024-06-03 is a Monday."""
    values: Dict[str, Any] = {
        "date": date,
        "energy": 7,
        "stress": 4,
        "sleep_hrs": 8,
        "water_l": 2.5,
        "supplements_taken": True,
    }
    values.update(fields)
    return CheckIn(**values)
