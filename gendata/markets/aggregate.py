# gendata/markets/aggregate.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from functools import reduce
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

import pandas as pd

from gendata.markets.models import AggregateBucket, MarketRecord


class Dimension(str, Enum):
    MARKET = "market"
    ASSET = "asset_id"
    DATE = "date"


CompositeKey = Tuple[Any, ...]

# bucket field -> flattened record column
SUM_COLUMNS = {
    "revenue": "total_revenue",
    "cost": "total_cost",
    "margin": "net_pl",
    "actual_generation_mwh": "actual_generation_mwh",
    "budget_generation_mwh": "budget_generation_mwh",
    "basis_revenue": "basis_revenue",
    "imbalance_cost": "imbalance_cost",
}


def records_frame(records: Iterable[MarketRecord]) -> pd.DataFrame:
    return pd.DataFrame([r.to_row() for r in records])


def _ordered(keys: Iterable[Dimension | str]) -> List[Dimension]:
    wanted = {Dimension(k) for k in keys}
    if not wanted:
        raise ValueError("at least one dimension is required")
    return [d for d in Dimension if d in wanted]


# ---------------- Fold -------------------------------------------------------
def aggregate(
    records: Sequence[MarketRecord],
    keys: Iterable[Dimension | str],
) -> Dict[CompositeKey, AggregateBucket]:
    """
    Group records by the requested dimensions (always in market, asset, date order)
    and sum each group. Keys are tuples even for a single dimension.
    """
    dims = _ordered(keys)
    if not records:
        return {}

    df = records_frame(records)
    cols = [d.value for d in dims]
    named = {f: (c, "sum") for f, c in SUM_COLUMNS.items()}
    sums = df.groupby(cols, sort=True).agg(count=("asset_id", "size"), **named)

    out: Dict[CompositeKey, AggregateBucket] = {}
    for key, row in sums.iterrows():
        k = key if isinstance(key, tuple) else (key,)
        out[k] = AggregateBucket(
            count=int(row["count"]),
            **{f: float(row[f]) for f in SUM_COLUMNS},
        )
    return out


def merge_aggregates(*mappings: Mapping[CompositeKey, AggregateBucket]) -> Dict[CompositeKey, AggregateBucket]:
    """Combine partial folds over disjoint record partitions."""
    out: Dict[CompositeKey, AggregateBucket] = {}
    for m in mappings:
        for k, bucket in m.items():
            out[k] = out[k].merge(bucket) if k in out else bucket
    return dict(sorted(out.items()))


# ---------------- Views ------------------------------------------------------
@dataclass
class Summary:
    by_market: Dict[CompositeKey, AggregateBucket] = field(default_factory=dict)
    by_asset: Dict[CompositeKey, AggregateBucket] = field(default_factory=dict)
    by_date: Dict[CompositeKey, AggregateBucket] = field(default_factory=dict)
    total: AggregateBucket = field(default_factory=AggregateBucket)


def summarize(records: Sequence[MarketRecord]) -> Summary:
    by_market = aggregate(records, {Dimension.MARKET})
    return Summary(
        by_market=by_market,
        by_asset=aggregate(records, {Dimension.ASSET}),
        by_date=aggregate(records, {Dimension.DATE}),
        total=reduce(AggregateBucket.merge, by_market.values(), AggregateBucket()),
    )


def budget_performance(records: Sequence[MarketRecord]) -> List[Tuple[str, AggregateBucket]]:
    """Assets ordered worst generation variance first; zero-budget assets last."""
    by_asset = aggregate(records, {Dimension.ASSET})

    def _key(item: Tuple[CompositeKey, AggregateBucket]) -> Tuple[bool, float]:
        v = item[1].generation_variance_pct
        return (v is None, v if v is not None else 0.0)

    return [(k[0], b) for k, b in sorted(by_asset.items(), key=_key)]


def buckets_frame(
    buckets: Mapping[CompositeKey, AggregateBucket],
    keys: Iterable[Dimension | str],
) -> pd.DataFrame:
    """One row per bucket: key columns, sums, then post-fold ratios."""
    cols = [d.value for d in _ordered(keys)]
    rows = []
    for k, b in buckets.items():
        row: Dict[str, Any] = dict(zip(cols, k))
        row.update(b.model_dump())
        row["margin_pct"] = b.margin_pct
        row["generation_variance_pct"] = b.generation_variance_pct
        row["avg_daily_revenue"] = b.avg_daily_revenue
        row["contract_revenue_share"] = b.contract_revenue_share
        rows.append(row)
    return pd.DataFrame(rows, columns=None if rows else cols + list(AggregateBucket.model_fields))


def daily_pl(records: Sequence[MarketRecord]) -> pd.DataFrame:
    by_date = aggregate(records, {Dimension.DATE})
    frame = buckets_frame(by_date, {Dimension.DATE})
    if frame.empty:
        return pd.DataFrame(columns=["date", "revenue", "cost", "margin"])
    return frame.loc[:, ["date", "revenue", "cost", "margin"]].sort_values("date").reset_index(drop=True)
