"""Session time estimate for a DayWorkout."""

from __future__ import annotations

import re
from typing import Optional

from app.plans.models import DayWorkout, ExerciseItem

MINUTES_PER_SET = 2.5
BLOCK_TRANSITION_MIN = 1.0

_MINUTES_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:-\s*(\d+(?:\.\d+)?)\s*)?(?:min|mins|minutes)\b", re.IGNORECASE)


def minutes_in_reps(reps: str) -> Optional[float]:
    """'15-20 min' -> 20.0 (upper bound); None when reps is not a duration."""
    m = _MINUTES_RE.search(reps or "")
    if not m:
        return None
    return float(m.group(2) or m.group(1))


def estimate_item_minutes(item: ExerciseItem) -> float:
    if item.duration_min is not None:
        return float(item.duration_min)
    per_set = minutes_in_reps(item.reps)
    if per_set is not None:
        return per_set * max(1, item.sets)
    return max(1, item.sets) * MINUTES_PER_SET


def estimate_session_minutes(workout: DayWorkout) -> float:
    """Sum of item estimates plus one transition minute per block."""
    total = 0.0
    for block in workout.blocks:
        total += BLOCK_TRANSITION_MIN
        total += sum(estimate_item_minutes(i) for i in block.items)
    return total


__all__ = [
    "minutes_in_reps",
    "estimate_item_minutes",
    "estimate_session_minutes",
]
