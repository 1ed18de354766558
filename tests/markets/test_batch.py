from __future__ import annotations

import logging

from gendata.config import RuleThresholds
from gendata.demo.generator import generate_demo_rows
from gendata.markets.batch import run_batch
from gendata.markets.models import Market, RuleName, TwoSettlementResult


def test_bad_rows_are_collected_not_fatal(nodal_row, two_settlement_row, caplog):
    rows = [
        nodal_row(),
        nodal_row(asset_id="BAD-MKT", market="CAISO"),
        two_settlement_row(),
        nodal_row(asset_id="BAD-MECH", mechanism="unknown-thing"),
        nodal_row(asset_id="NO-GEN", actual_generation_mwh=""),
    ]
    batch_logger = logging.getLogger("gendata.markets.batch")
    batch_logger.addHandler(caplog.handler)
    try:
        result = run_batch(rows)
    finally:
        batch_logger.removeHandler(caplog.handler)

    assert [r.asset_id for r in result.records] == ["WTX-1", "OH-1"]
    assert [(e.row_number, e.asset_id, e.error) for e in result.errors] == [
        (2, "BAD-MKT", "UnknownMarket"),
        (4, "BAD-MECH", "UnknownMechanism"),
        (5, "NO-GEN", "MissingRequiredField"),
    ]
    assert result.errors[2].column == "actual_generation_mwh"
    assert "BAD-MKT" in caplog.text

    frame = result.errors_frame()
    assert list(frame["error"]) == ["UnknownMarket", "UnknownMechanism", "MissingRequiredField"]


def test_empty_batch():
    result = run_batch([])
    assert result.records == []
    assert result.alerts == []
    assert result.summary.total.count == 0
    assert result.errors_frame().empty
    assert result.alerts_frame().empty


def test_demo_batch_properties():
    result = run_batch(generate_demo_rows(seed=42, days=10), progress=False)
    assert result.errors == []
    assert len(result.records) == 70

    for r in result.records:
        assert r.total_revenue - r.total_cost == r.net_pl
        if r.market is Market.MKT_B_C:
            s = r.settlement
            assert isinstance(s, TwoSettlementResult)
            assert not (s.imbalance_cost != 0 and s.imbalance_revenue != 0)
            assert (s.imbalance_cost != 0) or (s.imbalance_revenue != 0)

    ranks = [a.severity.rank for a in result.alerts]
    assert ranks == sorted(ranks)
    # the demo fixed-shape target is a round-the-clock block, always short
    assert RuleName.FIXED_SHAPE_BUYBACK.value in {a.rule_name for a in result.alerts}

    alerts = result.alerts_frame()
    assert len(alerts) == len(result.alerts)
    assert {"severity", "rule_name", "message"} <= set(alerts.columns)

    records = result.records_frame()
    assert len(records) == 70
    assert {"net_pl", "basis_revenue", "imbalance_cost"} <= set(records.columns)


def test_batch_uses_given_thresholds(nodal_row):
    result = run_batch([nodal_row()], thresholds=RuleThresholds(basis_spread_min=10.0))
    assert [a.rule_name for a in result.alerts] == [RuleName.BASIS_COMPRESSION.value]


def test_overflowing_row_is_rejected_not_fatal(nodal_row, two_settlement_row):
    huge = nodal_row(
        asset_id="HUGE",
        actual_generation_mwh="1e308",
        budget_generation_mwh="1e308",
        contract_coverage_pct="1",
    )
    result = run_batch([nodal_row(), huge, two_settlement_row()])

    assert [r.asset_id for r in result.records] == ["WTX-1", "OH-1"]
    assert [(e.row_number, e.asset_id, e.error) for e in result.errors] == [(2, "HUGE", "InvalidValue")]
    assert result.summary.total.count == 2
