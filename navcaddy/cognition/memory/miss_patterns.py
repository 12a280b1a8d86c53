from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable

from navcaddy.cognition.memory.decay import age_in_days, aggregate_confidence, decayed_confidence
from navcaddy.cognition.safe_fallbacks import render_safe_message

logger = logging.getLogger(__name__)

WINDOW_DAYS = 30.0
SHOT_LIMIT = 50
MIN_SHOTS_FOR_PATTERN = 3
MIN_FREQUENCY = 0.3
# Patterns faded below this are not worth mentioning.
MIN_CONFIDENCE = 0.01


class MissDirection(str, Enum):
    PUSH = "push"
    PULL = "pull"
    SLICE = "slice"
    HOOK = "hook"
    FAT = "fat"
    THIN = "thin"
    STRAIGHT = "straight"


@dataclass(frozen=True)
class MissRecord:
    direction: MissDirection
    observed_at: datetime
    club: str | None = None
    pressure: bool = False


@dataclass(frozen=True)
class MissPattern:
    direction: MissDirection
    frequency: int
    total_shots: int
    confidence: float
    last_occurrence: datetime
    club: str | None = None
    pressure: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "direction": self.direction.value,
            "frequency": self.frequency,
            "total_shots": self.total_shots,
            "confidence": round(self.confidence, 4),
            "last_occurrence": self.last_occurrence.isoformat(),
            "club": self.club,
            "pressure": self.pressure,
        }


def club_key(club: str | None) -> str | None:
    text = " ".join(str(club or "").lower().split())
    return text or None


def aggregate_patterns(
    records: Iterable[MissRecord],
    now: datetime | None = None,
    *,
    window_days: float = WINDOW_DAYS,
    limit: int = SHOT_LIMIT,
) -> list[MissPattern]:
    """Turn logged shots into miss tendencies, strongest first.

    Only the newest `limit` shots inside the window count. A direction needs
    at least MIN_FREQUENCY of those shots to be a pattern. Its confidence is
    the decay-weighted share of shots that went that way, faded again by how
    long ago the direction last showed up. Straight shots count toward the
    total but never form a pattern.
    """
    current = now or datetime.now(timezone.utc)
    recent = _recent(records, current, window_days)[: max(int(limit), 0)]
    if len(recent) < MIN_SHOTS_FOR_PATTERN:
        return []

    counts = Counter(record.direction for _, record in recent if record.direction is not MissDirection.STRAIGHT)
    patterns: list[MissPattern] = []
    for direction, frequency in counts.items():
        if frequency / len(recent) < MIN_FREQUENCY:
            continue
        share = aggregate_confidence(
            ((1.0 if record.direction is direction else 0.0, record.observed_at) for _, record in recent),
            current,
        )
        # recent is newest first
        latest = next(record for _, record in recent if record.direction is direction)
        confidence = decayed_confidence(share, latest.observed_at, current)
        if confidence < MIN_CONFIDENCE:
            continue
        patterns.append(
            MissPattern(
                direction=direction,
                frequency=frequency,
                total_shots=len(recent),
                confidence=confidence,
                last_occurrence=latest.observed_at,
            )
        )
    return sorted(patterns, key=lambda item: (-item.confidence, item.direction.value))


def patterns_for(
    records: Iterable[MissRecord],
    *,
    club: str | None = None,
    pressure_only: bool = False,
    now: datetime | None = None,
) -> list[MissPattern]:
    key = club_key(club)
    selected = [
        record
        for record in records
        if (key is None or club_key(record.club) == key) and (record.pressure or not pressure_only)
    ]
    return [
        replace(pattern, club=key, pressure=pressure_only)
        for pattern in aggregate_patterns(selected, now)
    ]


def summarize_patterns(patterns: list[MissPattern], *, club: str | None = None) -> str:
    if not patterns:
        return render_safe_message("answer.pattern_query.none")
    top = patterns[0]
    club_text = f" with the {club}" if club else ""
    text = render_safe_message(
        "answer.pattern_query.top",
        variables={
            "direction": top.direction.value,
            "club": club_text,
            "frequency": top.frequency,
            "total": top.total_shots,
        },
    )
    if len(patterns) > 1:
        runner_up = patterns[1]
        text += " " + render_safe_message(
            "answer.pattern_query.also",
            variables={"direction": runner_up.direction.value, "frequency": runner_up.frequency},
        )
    return text


def sync_payload(patterns: list[MissPattern], now: datetime | None = None) -> dict[str, Any]:
    current = now or datetime.now(timezone.utc)
    return {
        "generated_at": current.isoformat(),
        "patterns": [pattern.to_dict() for pattern in patterns],
    }


def _recent(
    records: Iterable[MissRecord], now: datetime, window_days: float
) -> list[tuple[float, MissRecord]]:
    aged: list[tuple[float, MissRecord]] = []
    for record in records:
        try:
            age = age_in_days(record.observed_at, now)
        except ValueError:
            logger.debug("miss record after aggregation time ignored at=%s", record.observed_at)
            continue
        if age <= window_days:
            aged.append((age, record))
    aged.sort(key=lambda item: item[0])
    return aged
