from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from navcaddy.cognition.memory.miss_patterns import MissDirection
from navcaddy.nervous_system import miss_records
from navcaddy.nervous_system.migrate import apply_schema
from navcaddy.nervous_system.paths import resolve_db_path

_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _schema() -> None:
    apply_schema(resolve_db_path())


def test_record_and_list_newest_first() -> None:
    miss_records.record_miss("slice", club=" 7-Iron ", observed_at=_NOW - timedelta(days=2))
    miss_records.record_miss(MissDirection.HOOK, pressure=True, observed_at=datetime(2024, 6, 1, 8, 0))

    hook, slice_ = miss_records.list_misses()

    assert hook.direction is MissDirection.HOOK
    assert hook.pressure is True
    assert hook.club is None
    assert hook.observed_at == datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc)
    assert slice_.direction is MissDirection.SLICE
    assert slice_.club == "7-iron"


def test_unknown_direction_is_rejected() -> None:
    with pytest.raises(ValueError):
        miss_records.record_miss("shank")

    assert miss_records.list_misses() == []


def test_prune_drops_misses_past_retention() -> None:
    miss_records.record_miss("push", observed_at=_NOW - timedelta(days=100))
    miss_records.record_miss("pull", observed_at=_NOW - timedelta(days=1))
    miss_records.record_miss("thin", observed_at=_NOW + timedelta(days=1))

    assert miss_records.prune_misses(_NOW) == 1
    assert sorted(record.direction.value for record in miss_records.list_misses()) == ["pull", "thin"]
