"""Tests for the seed migration's market configuration checks."""

import importlib.util
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from config.settings import settings
from src.pm_clock.domain.cycle_clock import validate_draw_time

_PATH = Path(__file__).resolve().parents[2] / "alembic" / "versions" / "006_seed_initial_data.py"


@pytest.fixture
def seed(monkeypatch):
    spec = importlib.util.spec_from_file_location("seed_initial_data", _PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    monkeypatch.setattr(module, "op", MagicMock())
    return module


class TestSeedMarkets:
    def test_draw_times_valid_for_configured_opening(self, seed) -> None:
        for _, _, draw_time, _ in seed.SEED_MARKETS:
            validate_draw_time(draw_time, settings.CYCLE_START_HOUR)

    def test_upgrade_inserts_every_market(self, seed) -> None:
        seed.upgrade()
        [markets_sql] = [
            c.args[0] for c in seed.op.execute.call_args_list if "INTO markets" in c.args[0]
        ]
        for market_id, _, draw_time, _ in seed.SEED_MARKETS:
            assert f"'{market_id}'" in markets_sql
            assert f"'{draw_time}'" in markets_sql

    def test_opening_hour_draw_rejected_before_any_write(self, seed, monkeypatch) -> None:
        opening = f"{settings.CYCLE_START_HOUR:02d}:30"
        monkeypatch.setattr(
            seed, "SEED_MARKETS", (("MKT-BAD", "Bad", opening, "STANDARD"),)
        )
        with pytest.raises(ValueError, match="opening hour"):
            seed.upgrade()
        seed.op.execute.assert_not_called()
