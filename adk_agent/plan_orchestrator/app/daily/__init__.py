"""
Daily Package - Check-in driven titration of a base-plan day.

This package provides:
- memory: CheckIn, scoring, EMA trend memory, weight trend
- adjustment: Flags, deterministic adjustments, optional AI titration
"""

from app.daily.memory import (
    CheckIn,
    TrendMemory,
    build_memory_layer,
)

from app.daily.adjustment import (
    DailyPlan,
    adjust_day,
    generate_flags,
)


__all__ = [
    # Memory
    "CheckIn",
    "TrendMemory",
    "build_memory_layer",
    # Adjustment
    "DailyPlan",
    "adjust_day",
    "generate_flags",
]
