from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from navcaddy.cognition.memory.miss_patterns import (
    MissDirection,
    MissRecord,
    aggregate_patterns,
    patterns_for,
    summarize_patterns,
    sync_payload,
)

_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _miss(direction: MissDirection, days_ago: float = 0, club: str | None = None, pressure: bool = False) -> MissRecord:
    return MissRecord(direction=direction, observed_at=_NOW - timedelta(days=days_ago), club=club, pressure=pressure)


def test_share_of_same_day_shots_becomes_confidence() -> None:
    records = [
        _miss(MissDirection.SLICE),
        _miss(MissDirection.SLICE),
        _miss(MissDirection.PUSH),
        _miss(MissDirection.STRAIGHT),
    ]

    patterns = aggregate_patterns(records, _NOW)

    assert [pattern.direction for pattern in patterns] == [MissDirection.SLICE]
    assert patterns[0].frequency == 2
    assert patterns[0].total_shots == 4
    assert patterns[0].confidence == pytest.approx(0.5)


def test_older_misses_rank_below_recent_ones() -> None:
    records = [
        _miss(MissDirection.SLICE),
        _miss(MissDirection.SLICE),
        _miss(MissDirection.STRAIGHT),
        _miss(MissDirection.HOOK, days_ago=14),
        _miss(MissDirection.HOOK, days_ago=14),
    ]

    slice_pattern, hook_pattern = aggregate_patterns(records, _NOW)

    assert slice_pattern.direction is MissDirection.SLICE
    assert slice_pattern.confidence == pytest.approx(0.5)
    assert hook_pattern.direction is MissDirection.HOOK
    assert hook_pattern.confidence == pytest.approx(0.125)
    assert hook_pattern.last_occurrence == _NOW - timedelta(days=14)


def test_too_few_or_too_old_shots_make_no_pattern() -> None:
    assert aggregate_patterns([_miss(MissDirection.SLICE), _miss(MissDirection.SLICE)], _NOW) == []
    assert aggregate_patterns([_miss(MissDirection.SLICE, days_ago=31) for _ in range(5)], _NOW) == []
    assert aggregate_patterns([_miss(MissDirection.STRAIGHT) for _ in range(5)], _NOW) == []


def test_only_the_newest_shots_count() -> None:
    records = [_miss(MissDirection.STRAIGHT, days_ago=1) for _ in range(3)]
    records += [_miss(MissDirection.PULL, days_ago=5) for _ in range(3)]

    assert aggregate_patterns(records, _NOW, limit=3) == []
    assert [pattern.direction for pattern in aggregate_patterns(records, _NOW)] == [MissDirection.PULL]


def test_shots_after_the_aggregation_time_are_ignored() -> None:
    records = [_miss(MissDirection.FAT, days_ago=1) for _ in range(3)]
    records.append(_miss(MissDirection.FAT, days_ago=-1))

    (pattern,) = aggregate_patterns(records, _NOW)

    assert pattern.frequency == 3


def test_club_and_pressure_filters() -> None:
    records = [
        _miss(MissDirection.SLICE, club="7-iron", pressure=True),
        _miss(MissDirection.SLICE, club="7-iron", pressure=True),
        _miss(MissDirection.STRAIGHT, club="7-iron"),
        _miss(MissDirection.HOOK, club="driver"),
        _miss(MissDirection.HOOK, club="driver"),
        _miss(MissDirection.HOOK, club="driver"),
    ]

    by_club = patterns_for(records, club="7-Iron", now=_NOW)
    assert [(pattern.direction, pattern.club) for pattern in by_club] == [(MissDirection.SLICE, "7-iron")]

    under_pressure = patterns_for(records, pressure_only=True, now=_NOW)
    assert under_pressure == []

    records.append(_miss(MissDirection.STRAIGHT, club="driver", pressure=True))
    (pressure_pattern,) = patterns_for(records, pressure_only=True, now=_NOW)
    assert pressure_pattern.direction is MissDirection.SLICE
    assert pressure_pattern.pressure is True


def test_summary_names_the_top_miss_and_the_runner_up() -> None:
    records = [
        _miss(MissDirection.SLICE),
        _miss(MissDirection.SLICE),
        _miss(MissDirection.STRAIGHT),
        _miss(MissDirection.HOOK, days_ago=14),
        _miss(MissDirection.HOOK, days_ago=14),
    ]

    text = summarize_patterns(aggregate_patterns(records, _NOW), club="7-iron")

    assert text == (
        "Your most common miss lately is a slice with the 7-iron: 2 of your last 5 shots. "
        "Watch for the hook too (2 shots)."
    )
    assert summarize_patterns([]).startswith("I don't have enough recent shots")


def test_sync_payload_lists_patterns() -> None:
    patterns = aggregate_patterns([_miss(MissDirection.PUSH) for _ in range(3)], _NOW)

    payload = sync_payload(patterns, _NOW)

    assert payload["generated_at"] == "2024-06-01T12:00:00+00:00"
    assert payload["patterns"] == [
        {
            "direction": "push",
            "frequency": 3,
            "total_shots": 3,
            "confidence": 1.0,
            "last_occurrence": "2024-06-01T12:00:00+00:00",
            "club": None,
            "pressure": False,
        }
    ]
