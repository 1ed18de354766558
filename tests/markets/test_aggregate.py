from __future__ import annotations

import datetime as dt
import random

import pytest

from gendata.demo.generator import generate_demo_rows
from gendata.markets.aggregate import (
    Dimension,
    SUM_COLUMNS,
    aggregate,
    budget_performance,
    buckets_frame,
    daily_pl,
    merge_aggregates,
    summarize,
)
from gendata.markets.batch import settle_rows
from gendata.markets.models import AggregateBucket


@pytest.fixture
def demo_records():
    records, errors = settle_rows(generate_demo_rows(seed=3, days=6))
    assert errors == []
    return records


def _assert_same(a, b):
    assert a.keys() == b.keys()
    for k in a:
        assert a[k].count == b[k].count
        for f in SUM_COLUMNS:
            assert getattr(a[k], f) == pytest.approx(getattr(b[k], f))


def test_single_dimension_keys_are_tuples(nodal_row, two_settlement_row, settle):
    records = [settle(nodal_row()), settle(two_settlement_row()), settle(nodal_row(asset_id="WTX-2"))]
    by_market = aggregate(records, {Dimension.MARKET})
    assert set(by_market) == {("MKT_A",), ("MKT_B_C",)}
    assert by_market[("MKT_A",)].count == 2
    assert by_market[("MKT_B_C",)].count == 1


def test_bucket_sums(nodal_row, two_settlement_row, settle):
    a = settle(nodal_row())
    b = settle(two_settlement_row())
    bucket = aggregate([a, b], {"date"})[(dt.date(2026, 1, 5),)]
    assert bucket.revenue == pytest.approx(a.total_revenue + b.total_revenue)
    assert bucket.cost == pytest.approx(1200.0)
    assert bucket.margin == pytest.approx(a.net_pl + b.net_pl)
    assert bucket.actual_generation_mwh == pytest.approx(200.0)
    # basis revenue: locational for MKT_A, day-ahead basis for MKT_B_C
    assert bucket.basis_revenue == pytest.approx(1050.0 + 330.0)
    assert bucket.imbalance_cost == pytest.approx(400.0)
    assert bucket.count == 2


def test_multi_dimension_key_order(nodal_row, settle):
    records = [settle(nodal_row(date="2026-01-06")), settle(nodal_row())]
    out = aggregate(records, {Dimension.DATE, Dimension.MARKET})
    assert list(out) == [("MKT_A", dt.date(2026, 1, 5)), ("MKT_A", dt.date(2026, 1, 6))]


def test_requires_a_dimension(demo_records):
    with pytest.raises(ValueError):
        aggregate(demo_records, set())


def test_empty_input():
    assert aggregate([], {Dimension.ASSET}) == {}
    s = summarize([])
    assert s.total == AggregateBucket()
    assert daily_pl([]).empty


@pytest.mark.parametrize("keys", [{Dimension.MARKET}, {Dimension.ASSET}, {Dimension.DATE}])
def test_order_independent(demo_records, keys):
    shuffled = list(demo_records)
    random.Random(11).shuffle(shuffled)
    _assert_same(aggregate(demo_records, keys), aggregate(shuffled, keys))


def test_merge_of_partitions_matches_whole(demo_records):
    keys = {Dimension.ASSET}
    whole = aggregate(demo_records, keys)
    parts = [demo_records[i::3] for i in range(3)]
    merged = merge_aggregates(*(aggregate(p, keys) for p in parts))
    _assert_same(whole, merged)


def test_ratios_after_fold():
    b = AggregateBucket(
        revenue=1000.0,
        cost=400.0,
        margin=600.0,
        actual_generation_mwh=90.0,
        budget_generation_mwh=100.0,
        basis_revenue=250.0,
        count=4,
    )
    assert b.margin_pct == pytest.approx(60.0)
    assert b.generation_variance_pct == pytest.approx(-10.0)
    assert b.avg_daily_revenue == pytest.approx(250.0)
    assert b.contract_revenue_share == pytest.approx(750.0)

    empty = AggregateBucket()
    assert empty.margin_pct is None
    assert empty.generation_variance_pct is None
    assert empty.avg_daily_revenue is None


def test_summarize_total_matches_records(demo_records):
    s = summarize(demo_records)
    assert s.total.count == len(demo_records)
    assert s.total.margin == pytest.approx(sum(r.net_pl for r in demo_records))
    assert len(s.by_asset) == 7
    assert len(s.by_date) == 6
    assert set(s.by_market) == {("MKT_A",), ("MKT_B_C",)}


def test_budget_performance_worst_first(nodal_row, settle):
    records = [
        settle(nodal_row(asset_id="ok", budget_generation_mwh="100")),
        settle(nodal_row(asset_id="bad", budget_generation_mwh="150")),
        settle(nodal_row(asset_id="none", budget_generation_mwh="0")),
        settle(nodal_row(asset_id="meh", budget_generation_mwh="110")),
    ]
    assert [name for name, _ in budget_performance(records)] == ["bad", "meh", "ok", "none"]


def test_frames(demo_records):
    s = summarize(demo_records)
    frame = buckets_frame(s.by_market, {Dimension.MARKET})
    assert list(frame["market"]) == ["MKT_A", "MKT_B_C"]
    assert {"revenue", "count", "margin_pct", "generation_variance_pct"} <= set(frame.columns)

    daily = daily_pl(demo_records)
    assert list(daily.columns) == ["date", "revenue", "cost", "margin"]
    assert list(daily["date"]) == sorted(daily["date"])
    assert len(daily) == 6
