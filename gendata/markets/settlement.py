# gendata/markets/settlement.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Union

from gendata.markets.errors import DivisionUndefined, InvalidValue, MissingRequiredField, UnknownMechanism
from gendata.markets.models import (
    Market,
    MarketRecord,
    Mechanism,
    NodalSettlement,
    RecordInputs,
    TwoSettlementResult,
)
from gendata.utils.logging import get_logger

logger = get_logger(__name__)

FIXED_SHAPE_PENALTY = 1.05  # mechanism-risk multiplier on shaped buy-back


# ---------------- Common -----------------------------------------------------
def _require(r: RecordInputs, *names: str) -> None:
    for name in names:
        if getattr(r, name) is None:
            raise MissingRequiredField(name)


def generation_variance_pct(actual_mwh: float, budget_mwh: float) -> float:
    if budget_mwh == 0:
        raise DivisionUndefined("generation variance undefined for zero budget")
    return (actual_mwh - budget_mwh) / budget_mwh * 100


def contract_revenue(actual_mwh: float, coverage_pct: float, contract_price: float) -> float:
    return actual_mwh * coverage_pct * contract_price


# ---------------- MKT_A: nodal settlement ------------------------------------
def locational_revenue(actual_mwh: float, coverage_pct: float, node_price: float, hub_price: float) -> float:
    """
    Merchant sale at the node less the hub-priced buy-back of the contracted volume,
    i.e. the basis captured (or lost) between node and hub.
    """
    merchant = actual_mwh * node_price
    hub_buyback = (actual_mwh * coverage_pct) * hub_price
    return merchant - hub_buyback


@dataclass(frozen=True)
class Buyback:
    shortfall_mwh: Optional[float] = None
    fixed_shape_cost: float = 0.0
    proxy_variance_mwh: Optional[float] = None
    proxy_cost: float = 0.0


def _as_generated(r: RecordInputs) -> Buyback:
    return Buyback()


def _fixed_shape(r: RecordInputs) -> Buyback:
    _require(r, "shaped_target_mwh", "node_price")
    shortfall = max(0.0, r.shaped_target_mwh - r.actual_generation_mwh)
    cost = shortfall * r.node_price * FIXED_SHAPE_PENALTY if shortfall > 0 else 0.0
    return Buyback(shortfall_mwh=shortfall, fixed_shape_cost=cost)


def _proxy_generation(r: RecordInputs) -> Buyback:
    _require(r, "proxy_generation_mwh", "node_price")
    variance = r.actual_generation_mwh - r.proxy_generation_mwh
    # only an overstating proxy is charged
    cost = -variance * r.node_price if variance < 0 else 0.0
    return Buyback(proxy_variance_mwh=variance, proxy_cost=cost)


BUYBACK_RULES: Dict[Mechanism, Callable[[RecordInputs], Buyback]] = {
    Mechanism.AS_GENERATED: _as_generated,
    Mechanism.FIXED_SHAPE: _fixed_shape,
    Mechanism.PROXY_GENERATION: _proxy_generation,
}


def settle_nodal(r: RecordInputs) -> NodalSettlement:
    rule = BUYBACK_RULES.get(r.mechanism) if r.mechanism is not None else None
    if rule is None:
        raise UnknownMechanism(str(r.mechanism))
    _require(r, "node_price", "hub_price")

    bb = rule(r)
    return NodalSettlement(
        basis_spread=r.node_price - r.hub_price,
        contract_revenue=contract_revenue(r.actual_generation_mwh, r.contract_coverage_pct, r.contract_price),
        locational_revenue=locational_revenue(
            r.actual_generation_mwh, r.contract_coverage_pct, r.node_price, r.hub_price
        ),
        shortfall_mwh=bb.shortfall_mwh,
        fixed_shape_cost=bb.fixed_shape_cost,
        proxy_variance_mwh=bb.proxy_variance_mwh,
        proxy_cost=bb.proxy_cost,
    )


# ---------------- MKT_B_C: day-ahead + imbalance -----------------------------
def settle_two_settlement(r: RecordInputs) -> TwoSettlementResult:
    _require(r, "day_ahead_schedule_mwh", "day_ahead_node_price", "day_ahead_hub_price", "realtime_node_price")

    schedule = r.day_ahead_schedule_mwh
    imbalance = r.actual_generation_mwh - schedule
    cost = revenue = 0.0
    if imbalance < 0:
        cost = -imbalance * r.realtime_node_price
    else:
        revenue = imbalance * r.realtime_node_price

    return TwoSettlementResult(
        day_ahead_basis=r.day_ahead_node_price - r.day_ahead_hub_price,
        contract_revenue=contract_revenue(r.actual_generation_mwh, r.contract_coverage_pct, r.contract_price),
        imbalance_mwh=imbalance,
        day_ahead_revenue=schedule * r.day_ahead_hub_price,
        day_ahead_basis_revenue=schedule * (r.day_ahead_node_price - r.day_ahead_hub_price),
        imbalance_cost=cost,
        imbalance_revenue=revenue,
    )


SETTLEMENT_RULES: Dict[Market, Callable[[RecordInputs], Union[NodalSettlement, TwoSettlementResult]]] = {
    Market.MKT_A: settle_nodal,
    Market.MKT_B_C: settle_two_settlement,
}


def total_revenue(s: Union[NodalSettlement, TwoSettlementResult]) -> float:
    if isinstance(s, NodalSettlement):
        return s.contract_revenue + s.locational_revenue - s.fixed_shape_cost - s.proxy_cost
    return (
        s.contract_revenue
        + s.day_ahead_revenue
        + s.day_ahead_basis_revenue
        + s.imbalance_revenue
        - s.imbalance_cost
    )


# ---------------- Record -----------------------------------------------------
def compute(inputs: RecordInputs) -> MarketRecord:
    """Settle one record. Pure: the result depends only on `inputs`."""
    settlement = SETTLEMENT_RULES[inputs.market](inputs)

    try:
        variance: Optional[float] = generation_variance_pct(
            inputs.actual_generation_mwh, inputs.budget_generation_mwh
        )
    except DivisionUndefined:
        logger.debug(f"{inputs.asset_id} {inputs.date}: zero budget, variance left unset")
        variance = None

    revenue = total_revenue(settlement)
    cost = inputs.operating_cost + inputs.marketing_cost
    # inputs near the float limit can overflow to inf or nan
    for name, value in (("total_revenue", revenue), ("total_cost", cost), ("net_pl", revenue - cost)):
        if not math.isfinite(value):
            raise InvalidValue(f"settles to a non-finite amount ({value})", field=name)

    return MarketRecord(
        **inputs.model_dump(),
        generation_variance_pct=variance,
        settlement=settlement,
        total_revenue=revenue,
        total_cost=cost,
        net_pl=revenue - cost,
    )
