"""Tests for pm_common.id_generator and pm_common.datetime_utils."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from src.pm_common.datetime_utils import ensure_utc, utc_now
from src.pm_common.id_generator import SnowflakeIdGenerator, generate_id


class TestSnowflakeIdGenerator:
    def test_returns_str(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        assert isinstance(gen.next_id(), str)

    def test_unique_ids(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        ids = {gen.next_id() for _ in range(1000)}
        assert len(ids) == 1000

    def test_monotonically_increasing(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        prev = int(gen.next_id())
        for _ in range(100):
            current = int(gen.next_id())
            assert current > prev
            prev = current

    def test_machine_id_out_of_range(self) -> None:
        with pytest.raises(ValueError):
            SnowflakeIdGenerator(machine_id=1024)


class TestGenerateId:
    def test_prefixed(self) -> None:
        assert generate_id("WGR").startswith("WGR-")

    def test_unprefixed_is_numeric(self) -> None:
        assert generate_id().isdigit()


class TestUtcNow:
    def test_returns_aware_datetime(self) -> None:
        now = utc_now()
        assert isinstance(now, datetime)
        assert now.tzinfo is not None

    def test_is_utc(self) -> None:
        assert utc_now().tzinfo == UTC


class TestEnsureUtc:
    def test_naive_treated_as_utc(self) -> None:
        naive = datetime(2026, 1, 1, 12, 0)
        assert ensure_utc(naive) == datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def test_aware_converted(self) -> None:
        local = datetime(2026, 1, 1, 17, 0, tzinfo=timezone(timedelta(hours=5)))
        converted = ensure_utc(local)
        assert converted.hour == 12
        assert converted.utcoffset() == timedelta(0)
