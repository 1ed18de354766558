from __future__ import annotations

from typing import Callable, Dict

import pytest

from gendata.markets.models import MarketRecord
from gendata.markets.normalize import normalize
from gendata.markets.settlement import compute


def _nodal_row(**overrides: str) -> Dict[str, str]:
    row = {
        "date": "2026-01-05",
        "asset_id": "WTX-1",
        "market": "MKT_A",
        "mechanism": "as-generated",
        "capacity_mw": "50",
        "contract_coverage_pct": "0.75",
        "contract_price": "28.5",
        "actual_generation_mwh": "100",
        "budget_generation_mwh": "100",
        "hub_price": "30",
        "node_price": "33",
        "operating_cost": "500",
        "marketing_cost": "100",
        "weather_event": "normal",
    }
    row.update(overrides)
    return row


def _two_settlement_row(**overrides: str) -> Dict[str, str]:
    row = {
        "date": "2026-01-05",
        "asset_id": "OH-1",
        "market": "MKT_B_C",
        "capacity_mw": "85",
        "contract_coverage_pct": "0.9",
        "contract_price": "35",
        "actual_generation_mwh": "100",
        "budget_generation_mwh": "100",
        "day_ahead_schedule_mwh": "110",
        "day_ahead_hub_price": "30",
        "day_ahead_node_price": "33",
        "realtime_node_price": "40",
        "operating_cost": "500",
        "marketing_cost": "100",
        "weather_event": "normal",
    }
    row.update(overrides)
    return row


@pytest.fixture
def nodal_row() -> Callable[..., Dict[str, str]]:
    return _nodal_row


@pytest.fixture
def two_settlement_row() -> Callable[..., Dict[str, str]]:
    return _two_settlement_row


@pytest.fixture
def settle() -> Callable[[Dict[str, str]], MarketRecord]:
    def _settle(row: Dict[str, str]) -> MarketRecord:
        return compute(normalize(row))

    return _settle
