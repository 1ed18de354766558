# gendata/markets/normalize.py
from __future__ import annotations

import datetime as dt
import math
from typing import Any, Dict, Mapping, Optional

from dateutil import parser as dateparser
from pydantic import ValidationError

from gendata.markets.errors import (
    InvalidValue,
    MissingRequiredField,
    UnknownMarket,
    UnknownMechanism,
)
from gendata.markets.models import Market, Mechanism, RecordInputs


REQUIRED_FIELDS = ("date", "asset_id", "market", "actual_generation_mwh", "budget_generation_mwh")

NUMERIC_FIELDS = (
    "capacity_mw",
    "contract_coverage_pct",
    "contract_price",
    "actual_generation_mwh",
    "budget_generation_mwh",
    "hub_price",
    "node_price",
    "operating_cost",
    "marketing_cost",
    "shaped_target_mwh",
    "proxy_generation_mwh",
    "day_ahead_schedule_mwh",
    "day_ahead_node_price",
    "day_ahead_hub_price",
    "realtime_node_price",
)

# numeric inputs that settle to zero when the column is absent
ZERO_DEFAULTS = ("contract_coverage_pct", "contract_price", "operating_cost", "marketing_cost")

# per-variant inputs the calculator cannot do without
VARIANT_REQUIRED: Dict[Any, tuple[str, ...]] = {
    Market.MKT_A: ("node_price", "hub_price"),
    Market.MKT_B_C: (
        "day_ahead_schedule_mwh",
        "day_ahead_node_price",
        "day_ahead_hub_price",
        "realtime_node_price",
    ),
    Mechanism.FIXED_SHAPE: ("shaped_target_mwh",),
    Mechanism.PROXY_GENERATION: ("proxy_generation_mwh",),
}

# column names used by the dashboard CSV export
COLUMN_ALIASES = {
    "project_name": "asset_id",
    "iso": "market",
    "project_type": "mechanism",
    "offtake_pct": "contract_coverage_pct",
    "contracted_price": "contract_price",
    "actual_gen_mwh": "actual_generation_mwh",
    "budget_gen_mwh": "budget_generation_mwh",
    "om_cost": "operating_cost",
    "rt_node_avg": "node_price",
    "rt_hub_avg": "hub_price",
    "da_node_avg": "day_ahead_node_price",
    "da_hub_avg": "day_ahead_hub_price",
    "da_schedule_mwh": "day_ahead_schedule_mwh",
    "proxy_gen_mwh": "proxy_generation_mwh",
}

MARKET_ALIASES = {
    "MKT_A": Market.MKT_A,
    "ERCOT": Market.MKT_A,
    "MKT_B_C": Market.MKT_B_C,
    "PJM": Market.MKT_B_C,
    "MISO": Market.MKT_B_C,
}

MECHANISM_ALIASES = {
    "as-generated": Mechanism.AS_GENERATED,
    "as-gen": Mechanism.AS_GENERATED,
    "fixed-shape": Mechanism.FIXED_SHAPE,
    "proxy-generation": Mechanism.PROXY_GENERATION,
    "proxy-gen": Mechanism.PROXY_GENERATION,
}


# ----------------- helpers -----------------
def _text(v: Any) -> str:
    if v is None:
        return ""
    if isinstance(v, float) and math.isnan(v):
        return ""
    return str(v).strip()


def coerce_value(v: Any) -> float | str:
    """Number if the text parses as a finite number, else the stripped text."""
    s = _text(v)
    if not s:
        return ""
    try:
        x = float(s)
    except ValueError:
        return s
    return x if math.isfinite(x) else s


def canonical_columns(raw_row: Mapping[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in raw_row.items():
        name = _text(key)
        target = COLUMN_ALIASES.get(name, name)
        # an explicit canonical column wins over its alias
        if target in out and _text(out[target]) and name != target:
            continue
        out[target] = value
    return out


def coerce_row(raw_row: Mapping[str, Any]) -> Dict[str, float | str]:
    return {k: coerce_value(v) for k, v in canonical_columns(raw_row).items()}


def parse_market(v: Any) -> Market:
    s = _text(v)
    m = MARKET_ALIASES.get(s.upper())
    if m is None:
        raise UnknownMarket(s)
    return m


def parse_mechanism(v: Any, market: Market) -> Optional[Mechanism]:
    if market is not Market.MKT_A:
        return None
    s = _text(v).lower().replace("_", "-")
    if not s:
        return Mechanism.AS_GENERATED
    mech = MECHANISM_ALIASES.get(s)
    if mech is None:
        raise UnknownMechanism(_text(v))
    return mech


_DEFAULT_A = dt.datetime(2000, 1, 1)
_DEFAULT_B = dt.datetime(2001, 2, 2)


def parse_day(v: Any) -> dt.date:
    if isinstance(v, dt.datetime):
        return v.date()
    if isinstance(v, dt.date):
        return v
    s = _text(v)
    try:
        # dateutil fills missing parts from its default; two different defaults expose them
        a = dateparser.parse(s, default=_DEFAULT_A).date()
        b = dateparser.parse(s, default=_DEFAULT_B).date()
    except (ValueError, OverflowError) as e:
        raise InvalidValue(f"not a calendar date: {s!r}", field="date") from e
    if a != b:
        raise InvalidValue(f"incomplete date, needs year, month and day: {s!r}", field="date")
    return a


# ----------------- normalize -----------------
def normalize(raw_row: Mapping[str, Any]) -> RecordInputs:
    """
    Validate one raw tabular row (field name -> text) into RecordInputs.
    Raises a NormalizationError subclass; never returns a partial record.
    """
    raw = canonical_columns(raw_row)
    values = {k: coerce_value(v) for k, v in raw.items()}

    for name in REQUIRED_FIELDS:
        if values.get(name, "") == "":
            raise MissingRequiredField(name)

    market = parse_market(raw["market"])
    mechanism = parse_mechanism(raw.get("mechanism"), market)

    numbers: Dict[str, float] = {}
    for name in NUMERIC_FIELDS:
        v = values.get(name, "")
        if v == "":
            continue
        if isinstance(v, str):
            raise InvalidValue(f"expected a number, got {v!r}", field=name)
        numbers[name] = v
    for name in ZERO_DEFAULTS:
        numbers.setdefault(name, 0.0)

    if market is Market.MKT_B_C and "realtime_node_price" not in numbers and "node_price" in numbers:
        numbers["realtime_node_price"] = numbers["node_price"]

    for tag in (market, mechanism):
        for name in VARIANT_REQUIRED.get(tag, ()):
            if name not in numbers:
                raise MissingRequiredField(name)

    original_market = _text(raw["market"])
    try:
        return RecordInputs(
            date=parse_day(raw["date"]),
            asset_id=_text(raw["asset_id"]),
            market=market,
            mechanism=mechanism,
            region=original_market if original_market.upper() != market.value else "",
            weather_event=_text(raw.get("weather_event")) or "normal",
            **numbers,
        )
    except ValidationError as e:
        err = e.errors()[0]
        loc = ".".join(str(p) for p in err.get("loc", ()))
        raise InvalidValue(err.get("msg", str(e)), field=loc or None) from e
