"""
Check-ins and the trend memory layer.

Memory is only built from four or more check-ins. Scores are normalized to
0-1 (1 = good) and smoothed with an EMA over the last four entries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Sequence

from app.plans.profile import Goal, UserProfile

MIN_CHECKINS = 4
EMA_WINDOW = 4
EMA_ALPHA = 0.6
STREAK_MIN_DAYS = 3
WEIGHT_WINDOW = 7
FLAT_WEIGHT_KG = 0.2
CALORIE_TREND_STEP = 100


# =============================================================================
# CHECK-IN
# =============================================================================

@dataclass
class CheckIn:
    """One daily check-in. Missing fields stay None."""
    date: Optional[str] = None
    energy: Optional[int] = None
    stress: Optional[int] = None
    sleep_hrs: Optional[float] = None
    water_l: Optional[float] = None
    soreness: List[str] = field(default_factory=list)
    weight_kg: Optional[float] = None
    workout_intensity: Optional[int] = None
    alcohol: bool = False
    supplements_taken: Optional[bool] = None
    digestion: Optional[str] = None
    motivation: Optional[int] = None
    special_request: str = ""

    @property
    def parsed_date(self) -> Optional[date]:
        if not self.date:
            return None
        return date.fromisoformat(self.date[:10])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "energy": self.energy,
            "stress": self.stress,
            "sleepHrs": self.sleep_hrs,
            "waterL": self.water_l,
            "soreness": list(self.soreness),
            "currentWeight": self.weight_kg,
            "workoutIntensity": self.workout_intensity,
            "alcoholYN": self.alcohol,
            "suppsYN": self.supplements_taken,
            "digestion": self.digestion,
            "motivation": self.motivation,
            "specialRequest": self.special_request,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CheckIn":
        """Accepts app (camelCase) and snake_case keys."""
        def pick(*keys):
            for key in keys:
                if data.get(key) is not None:
                    return data[key]
            return None

        soreness = pick("soreness") or []
        if isinstance(soreness, str):
            soreness = [s.strip() for s in soreness.split(",") if s.strip()]
        return cls(
            date=pick("date"),
            energy=pick("energy"),
            stress=pick("stress"),
            sleep_hrs=pick("sleepHrs", "sleep_hrs"),
            water_l=pick("waterL", "water_l"),
            soreness=[str(s).lower() for s in soreness],
            weight_kg=pick("currentWeight", "bodyWeight", "weight_kg"),
            workout_intensity=pick("workoutIntensity", "workout_intensity"),
            alcohol=bool(pick("alcoholYN", "alcohol")),
            supplements_taken=pick("suppsYN", "supplements_taken"),
            digestion=pick("digestion"),
            motivation=pick("motivation"),
            special_request=pick("specialRequest", "special_request") or "",
        )


# =============================================================================
# SCORING
# =============================================================================

def score_sleep(hours: float) -> float:
    if hours < 2:
        return 0.0
    if hours < 4:
        return 0.25
    if hours < 7:
        return 0.5
    if hours <= 10:
        return 1.0
    return 0.75


def score_energy(value: float) -> float:
    if value < 3:
        return 0.0
    if value < 5:
        return 0.5
    if value < 7:
        return 0.75
    return 1.0


def score_water(liters: float) -> float:
    if liters < 1:
        return 0.0
    if liters < 3.5:
        return 0.5
    return 1.0


def score_stress(value: float) -> float:
    """Inverted: low stress scores high."""
    if value < 3:
        return 1.0
    if value < 5:
        return 0.75
    if value < 7:
        return 0.25
    return 0.0


def ema(values: Sequence[float], alpha: float = EMA_ALPHA) -> float:
    """EMA seeded with the oldest value, rounded to 2 places."""
    result = values[0]
    for value in values[1:]:
        result = alpha * value + (1 - alpha) * result
    return round(result, 2)


# =============================================================================
# MEMORY
# =============================================================================

@dataclass
class SorenessStreak:
    area: str
    length: int

    def to_dict(self) -> Dict[str, Any]:
        return {"area": self.area, "length": self.length}


@dataclass
class WeightTrend:
    delta_kg: float = 0.0
    direction: str = "flat"
    recommended_calorie_delta: int = 0
    points: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deltaKg": self.delta_kg,
            "direction": self.direction,
            "recommendedCalorieDelta": self.recommended_calorie_delta,
            "points": self.points,
        }


@dataclass
class TrendMemory:
    scores: Dict[str, float]
    ema: Dict[str, float]
    soreness_streaks: List[SorenessStreak] = field(default_factory=list)
    digestion_streaks: List[Dict[str, Any]] = field(default_factory=list)
    weight_trend: WeightTrend = field(default_factory=WeightTrend)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scores": dict(self.scores),
            "ema": dict(self.ema),
            "sorenessStreaks": [s.to_dict() for s in self.soreness_streaks],
            "digestionStreaks": list(self.digestion_streaks),
            "weightTrend": self.weight_trend.to_dict(),
        }


_METRICS: Dict[str, tuple] = {
    "sleep": (lambda c: c.sleep_hrs, score_sleep),
    "energy": (lambda c: c.energy, score_energy),
    "water": (lambda c: c.water_l, score_water),
    "stress": (lambda c: c.stress, score_stress),
}


def _scores(checkins: Sequence[CheckIn], extractor: Callable, scorer: Callable) -> List[float]:
    return [scorer(v) for v in (extractor(c) for c in checkins) if v is not None]


def _sort_key(checkin: CheckIn):
    return checkin.parsed_date or date.min


def soreness_streaks(checkins: Sequence[CheckIn]) -> List[SorenessStreak]:
    """Areas sore on at least STREAK_MIN_DAYS consecutive check-ins."""
    streaks = []
    areas = sorted({area for c in checkins for area in c.soreness})
    for area in areas:
        current = longest = 0
        for checkin in checkins:
            current = current + 1 if area in checkin.soreness else 0
            longest = max(longest, current)
        if longest >= STREAK_MIN_DAYS:
            streaks.append(SorenessStreak(area=area, length=longest))
    return streaks


def digestion_streaks(checkins: Sequence[CheckIn]) -> List[Dict[str, Any]]:
    """Runs of the same non-normal digestion state of STREAK_MIN_DAYS or more."""
    states = [(c.digestion or "Normal") for c in checkins]
    streaks = []
    run_state, run_length = None, 0
    for state in states + [None]:
        if state == run_state:
            run_length += 1
            continue
        if run_state and run_state != "Normal" and run_length >= STREAK_MIN_DAYS:
            streaks.append({"state": run_state, "length": run_length})
        run_state, run_length = state, 1
    return streaks


def weight_trend(goal: Goal, checkins: Sequence[CheckIn]) -> WeightTrend:
    """7-day weight delta and the calorie nudge it implies for the goal."""
    weights = [c.weight_kg for c in checkins[-WEIGHT_WINDOW:] if c.weight_kg is not None]
    trend = WeightTrend(points=len(weights))
    if len(weights) < 2:
        return trend

    trend.delta_kg = round(weights[-1] - weights[0], 2)
    if abs(trend.delta_kg) < FLAT_WEIGHT_KG:
        trend.direction = "flat"
    else:
        trend.direction = "up" if trend.delta_kg > 0 else "down"

    if goal == Goal.WEIGHT_LOSS and trend.direction in ("flat", "up"):
        trend.recommended_calorie_delta = -CALORIE_TREND_STEP
    elif goal == Goal.MUSCLE_GAIN and trend.direction in ("flat", "down"):
        trend.recommended_calorie_delta = CALORIE_TREND_STEP
    return trend


def build_memory_layer(profile: UserProfile, checkins: Sequence[CheckIn]) -> Optional[TrendMemory]:
    """
    Build trend memory from check-ins (history plus today).

    Returns:
        TrendMemory, or None with fewer than MIN_CHECKINS entries
    """
    if len(checkins) < MIN_CHECKINS:
        return None

    ordered = sorted(checkins, key=_sort_key)
    recent = ordered[-EMA_WINDOW:]

    scores: Dict[str, float] = {}
    smoothed: Dict[str, float] = {}
    for metric, (extractor, scorer) in _METRICS.items():
        values = _scores(recent, extractor, scorer)
        smoothed[metric] = ema(values) if values else 0.5
        scores[metric] = values[-1] if values else 0.0

    return TrendMemory(
        scores=scores,
        ema=smoothed,
        soreness_streaks=soreness_streaks(recent),
        digestion_streaks=digestion_streaks(recent),
        weight_trend=weight_trend(profile.goal, ordered),
    )


__all__ = [
    "CheckIn",
    "SorenessStreak",
    "WeightTrend",
    "TrendMemory",
    "build_memory_layer",
    "soreness_streaks",
    "weight_trend",
    "ema",
]
