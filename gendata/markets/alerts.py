# gendata/markets/alerts.py
from __future__ import annotations

from dataclasses import dataclass
from itertools import chain
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from gendata.config import RuleThresholds
from gendata.markets.errors import DivisionUndefined
from gendata.markets.models import (
    Alert,
    MarketRecord,
    NodalSettlement,
    RuleName,
    Severity,
    TwoSettlementResult,
)
from gendata.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Trigger:
    metric_value: float
    reference_value: Optional[float] = None
    label: Optional[str] = None


@dataclass(frozen=True)
class Rule:
    """A named check. `check` returns a Trigger when the record breaches, else None."""

    name: str
    severity: Severity
    check: Callable[[MarketRecord], Optional[Trigger]]


def imbalance_ratio(s: TwoSettlementResult) -> float:
    # zero or negative DA revenue gives no meaningful share
    if s.day_ahead_revenue <= 0:
        raise DivisionUndefined("imbalance ratio undefined for non-positive DA revenue")
    return s.imbalance_cost / s.day_ahead_revenue


# ---------------- Rule set ---------------------------------------------------
def default_rules(thresholds: Optional[RuleThresholds] = None) -> List[Rule]:
    t = thresholds or RuleThresholds()

    def negative_pl(r: MarketRecord) -> Optional[Trigger]:
        return Trigger(r.net_pl) if r.net_pl < 0 else None

    def basis_compression(r: MarketRecord) -> Optional[Trigger]:
        s = r.settlement
        if isinstance(s, NodalSettlement) and s.basis_spread < t.basis_spread_min:
            return Trigger(s.basis_spread)
        return None

    def high_imbalance_cost(r: MarketRecord) -> Optional[Trigger]:
        s = r.settlement
        if not isinstance(s, TwoSettlementResult) or s.imbalance_cost <= 0:
            return None
        if imbalance_ratio(s) > t.imbalance_ratio_max:
            return Trigger(s.imbalance_cost, reference_value=s.day_ahead_revenue)
        return None

    def da_basis_compression(r: MarketRecord) -> Optional[Trigger]:
        s = r.settlement
        if isinstance(s, TwoSettlementResult) and s.day_ahead_basis < t.da_basis_min:
            return Trigger(s.day_ahead_basis)
        return None

    def budget_miss(r: MarketRecord) -> Optional[Trigger]:
        if r.generation_variance_pct is None:
            raise DivisionUndefined("no generation variance for zero budget")
        if r.generation_variance_pct < t.budget_miss_pct:
            return Trigger(r.generation_variance_pct)
        return None

    def fixed_shape_buyback(r: MarketRecord) -> Optional[Trigger]:
        s = r.settlement
        if isinstance(s, NodalSettlement) and s.fixed_shape_cost > 0:
            return Trigger(s.fixed_shape_cost)
        return None

    def proxy_variance_cost(r: MarketRecord) -> Optional[Trigger]:
        s = r.settlement
        if isinstance(s, NodalSettlement) and s.proxy_cost > 0:
            return Trigger(s.proxy_cost)
        return None

    def weather_event(r: MarketRecord) -> Optional[Trigger]:
        if r.weather_event.strip().casefold() != "normal":
            return Trigger(0.0, label=r.weather_event)
        return None

    return [
        Rule(RuleName.NEGATIVE_PL.value, Severity.CRITICAL, negative_pl),
        Rule(RuleName.BASIS_COMPRESSION.value, Severity.HIGH, basis_compression),
        Rule(RuleName.HIGH_IMBALANCE_COST.value, Severity.HIGH, high_imbalance_cost),
        Rule(RuleName.DA_BASIS_COMPRESSION.value, Severity.MEDIUM, da_basis_compression),
        Rule(RuleName.BUDGET_MISS.value, Severity.MEDIUM, budget_miss),
        Rule(RuleName.FIXED_SHAPE_BUYBACK.value, Severity.HIGH, fixed_shape_buyback),
        Rule(RuleName.PROXY_VARIANCE_COST.value, Severity.MEDIUM, proxy_variance_cost),
        Rule(RuleName.WEATHER_EVENT.value, Severity.MEDIUM, weather_event),
    ]


# ---------------- Evaluation -------------------------------------------------
def sort_alerts(alerts: Iterable[Alert]) -> List[Alert]:
    """Most severe first; equal severities keep their emission order."""
    return sorted(alerts, key=lambda a: a.severity.rank)


def evaluate(records: Sequence[MarketRecord], rules: Optional[Sequence[Rule]] = None) -> List[Alert]:
    """
    Run every rule against every record (records outer, rules inner).
    A rule whose ratio is undefined for a record is skipped for that record.
    """
    rules = default_rules() if rules is None else rules
    alerts: List[Alert] = []
    for r in records:
        for rule in rules:
            try:
                hit = rule.check(r)
            except DivisionUndefined as e:
                logger.debug(f"{rule.name} skipped for {r.asset_id} {r.date}: {e}")
                continue
            if hit is None:
                continue
            alerts.append(
                Alert(
                    severity=rule.severity,
                    asset_id=r.asset_id,
                    date=r.date,
                    market=r.market,
                    rule_name=rule.name,
                    metric_value=hit.metric_value,
                    reference_value=hit.reference_value,
                    label=hit.label,
                )
            )
    return sort_alerts(alerts)


def merge_alerts(*alert_lists: Iterable[Alert]) -> List[Alert]:
    """Combine partial results (one per record partition, in partition order)."""
    return sort_alerts(chain.from_iterable(alert_lists))


def severity_counts(alerts: Iterable[Alert]) -> Dict[str, int]:
    counts = {s.value: 0 for s in Severity}
    for a in alerts:
        counts[a.severity.value] += 1
    return counts
