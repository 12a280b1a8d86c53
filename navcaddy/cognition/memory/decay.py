from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Iterable

HALF_LIFE_DAYS = 14.0
MAX_AGE_DAYS = 84.0
RETENTION_DAYS = 90.0

_SECONDS_PER_DAY = 86400.0


def decay_weight(age_days: float) -> float:
    """Weight of an observation `age_days` old: 1.0 today, 0.5 after one half-life.

    Observations older than MAX_AGE_DAYS carry no weight at all.
    """
    if age_days < 0:
        raise ValueError("age_days must be >= 0")
    if age_days > MAX_AGE_DAYS:
        return 0.0
    return math.pow(0.5, age_days / HALF_LIFE_DAYS)


def age_in_days(observed_at: datetime, now: datetime | None = None) -> float:
    current = now or datetime.now(timezone.utc)
    delta = (_aware(current) - _aware(observed_at)).total_seconds()
    if delta < 0:
        raise ValueError("observation timestamp is in the future")
    return delta / _SECONDS_PER_DAY


def decay_weight_at(observed_at: datetime, now: datetime | None = None) -> float:
    return decay_weight(age_in_days(observed_at, now))


def decayed_confidence(confidence: float, observed_at: datetime, now: datetime | None = None) -> float:
    clamped = min(max(float(confidence), 0.0), 1.0)
    return clamped * decay_weight_at(observed_at, now)


def within_retention(observed_at: datetime, now: datetime | None = None) -> bool:
    return age_in_days(observed_at, now) <= RETENTION_DAYS


def aggregate_confidence(
    samples: Iterable[tuple[float, datetime]],
    now: datetime | None = None,
) -> float:
    """Decay-weighted mean of (confidence, observed_at) samples; 0.0 when nothing counts."""
    weighted = 0.0
    total_weight = 0.0
    for confidence, observed_at in samples:
        weight = decay_weight_at(observed_at, now)
        if weight <= 0:
            continue
        weighted += min(max(float(confidence), 0.0), 1.0) * weight
        total_weight += weight
    if total_weight <= 0:
        return 0.0
    return weighted / total_weight


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
