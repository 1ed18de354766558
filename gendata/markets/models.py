# gendata/markets/models.py
from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Annotated, Any, Callable, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


# ---- Tags -------------------------------------------------------------------
class Market(str, Enum):
    MKT_A = "MKT_A"        # nodal settlement, mechanism-specific buy-back
    MKT_B_C = "MKT_B_C"    # day-ahead + real-time imbalance settlement


class Mechanism(str, Enum):
    AS_GENERATED = "as-generated"
    FIXED_SHAPE = "fixed-shape"
    PROXY_GENERATION = "proxy-generation"


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        # declaration order: critical=0 is most severe
        return list(Severity).index(self)


class RuleName(str, Enum):
    NEGATIVE_PL = "Negative P&L"
    BASIS_COMPRESSION = "Basis Compression"
    HIGH_IMBALANCE_COST = "High Imbalance Cost"
    DA_BASIS_COMPRESSION = "Day-Ahead Basis Compression"
    BUDGET_MISS = "Budget Miss"
    FIXED_SHAPE_BUYBACK = "Fixed-Shape Buy-Back"
    PROXY_VARIANCE_COST = "Proxy Variance Cost"
    WEATHER_EVENT = "Weather Event"


# ---- Inputs -----------------------------------------------------------------
class RecordInputs(BaseModel):
    """One asset-day observation after normalization, before settlement."""

    model_config = ConfigDict(frozen=True)

    date: dt.date
    asset_id: str = Field(..., min_length=1)
    market: Market
    mechanism: Optional[Mechanism] = None      # MKT_A only
    region: str = ""                           # original ISO name, display only

    capacity_mw: Optional[float] = Field(None, gt=0)
    contract_coverage_pct: float = Field(0.0, ge=0.0, le=1.0)
    contract_price: float = 0.0                # $/MWh

    actual_generation_mwh: float = Field(..., ge=0.0)
    budget_generation_mwh: float = Field(..., ge=0.0)
    hub_price: Optional[float] = None          # RT reference price, $/MWh
    node_price: Optional[float] = None         # RT locational price, $/MWh
    operating_cost: float = Field(0.0, ge=0.0)
    marketing_cost: float = Field(0.0, ge=0.0)
    weather_event: str = "normal"

    # fixed-shape / proxy-generation
    shaped_target_mwh: Optional[float] = Field(None, ge=0.0)
    proxy_generation_mwh: Optional[float] = Field(None, ge=0.0)

    # MKT_B_C two-settlement
    day_ahead_schedule_mwh: Optional[float] = Field(None, ge=0.0)
    day_ahead_node_price: Optional[float] = None
    day_ahead_hub_price: Optional[float] = None
    realtime_node_price: Optional[float] = None


# ---- Settlement results (one per market family) -----------------------------
class NodalSettlement(BaseModel):
    model_config = ConfigDict(frozen=True)

    market: Literal[Market.MKT_A] = Market.MKT_A
    basis_spread: float                        # node - hub, $/MWh
    contract_revenue: float
    locational_revenue: float
    shortfall_mwh: Optional[float] = None      # fixed-shape only
    fixed_shape_cost: float = 0.0
    proxy_variance_mwh: Optional[float] = None # proxy-generation only, actual - proxy
    proxy_cost: float = 0.0

    @property
    def basis_revenue(self) -> float:
        return self.locational_revenue

    @property
    def imbalance_cost(self) -> float:
        return 0.0


class TwoSettlementResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    market: Literal[Market.MKT_B_C] = Market.MKT_B_C
    day_ahead_basis: float                     # DA node - DA hub, $/MWh
    contract_revenue: float
    imbalance_mwh: float
    day_ahead_revenue: float
    day_ahead_basis_revenue: float
    imbalance_cost: float = 0.0
    imbalance_revenue: float = 0.0

    @property
    def basis_revenue(self) -> float:
        return self.day_ahead_basis_revenue


Settlement = Annotated[Union[NodalSettlement, TwoSettlementResult], Field(discriminator="market")]


class MarketRecord(RecordInputs):
    """Settled record. Derived fields are written once by the calculator."""

    generation_variance_pct: Optional[float] = None   # None when budget is zero
    settlement: Settlement
    total_revenue: float
    total_cost: float
    net_pl: float

    @model_validator(mode="after")
    def _check_pl(self) -> "MarketRecord":
        if self.total_revenue - self.total_cost != self.net_pl:
            raise ValueError("net_pl must equal total_revenue - total_cost")
        if self.settlement.market != self.market:
            raise ValueError("settlement family does not match record market")
        return self

    @property
    def contract_revenue(self) -> float:
        return self.settlement.contract_revenue

    @property
    def basis_revenue(self) -> float:
        return self.settlement.basis_revenue

    @property
    def imbalance_cost(self) -> float:
        return self.settlement.imbalance_cost

    def to_row(self) -> Dict[str, Any]:
        row = self.model_dump(exclude={"settlement"})
        row.update(self.settlement.model_dump(exclude={"market"}))
        row["market"] = self.market.value
        row["mechanism"] = self.mechanism.value if self.mechanism else None
        row["basis_revenue"] = self.basis_revenue
        row["imbalance_cost"] = self.imbalance_cost
        return row


# ---- Alerts -----------------------------------------------------------------
def _imbalance_message(a: "Alert") -> str:
    if a.reference_value:
        return f"{a.metric_value / a.reference_value * 100:.1f}% of DA revenue"
    return f"Imbalance cost ${a.metric_value:,.0f}"


_MESSAGES: Dict[str, Callable[["Alert"], str]] = {
    RuleName.NEGATIVE_PL.value: lambda a: f"Loss of ${abs(a.metric_value):,.0f}",
    RuleName.BASIS_COMPRESSION.value: lambda a: f"RT basis only ${a.metric_value:.2f}/MWh",
    RuleName.HIGH_IMBALANCE_COST.value: _imbalance_message,
    RuleName.DA_BASIS_COMPRESSION.value: lambda a: f"DA basis only ${a.metric_value:.2f}/MWh",
    RuleName.BUDGET_MISS.value: lambda a: f"{abs(a.metric_value):.1f}% below budget",
    RuleName.FIXED_SHAPE_BUYBACK.value: lambda a: f"Fixed-shape cost ${a.metric_value:,.0f}",
    RuleName.PROXY_VARIANCE_COST.value: lambda a: f"Proxy cost ${a.metric_value:,.0f}",
    RuleName.WEATHER_EVENT.value: lambda a: a.label or "Weather event",
}


class Alert(BaseModel):
    model_config = ConfigDict(frozen=True)

    severity: Severity
    asset_id: str
    date: dt.date
    market: Market
    rule_name: str
    metric_value: float
    reference_value: Optional[float] = None   # denominator for ratio rules
    label: Optional[str] = None               # free-text tag, e.g. weather event

    @computed_field  # type: ignore[prop-decorator]
    @property
    def message(self) -> str:
        render = _MESSAGES.get(self.rule_name)
        if render is None:
            return f"{self.rule_name}: {self.metric_value:,.2f}"
        return render(self)


# ---- Aggregates -------------------------------------------------------------
class AggregateBucket(BaseModel):
    """Additive sums for one composite key. Ratios are read after the fold."""

    revenue: float = 0.0
    cost: float = 0.0
    margin: float = 0.0
    actual_generation_mwh: float = 0.0
    budget_generation_mwh: float = 0.0
    basis_revenue: float = 0.0
    imbalance_cost: float = 0.0
    count: int = 0

    def merge(self, other: "AggregateBucket") -> "AggregateBucket":
        return AggregateBucket(
            revenue=self.revenue + other.revenue,
            cost=self.cost + other.cost,
            margin=self.margin + other.margin,
            actual_generation_mwh=self.actual_generation_mwh + other.actual_generation_mwh,
            budget_generation_mwh=self.budget_generation_mwh + other.budget_generation_mwh,
            basis_revenue=self.basis_revenue + other.basis_revenue,
            imbalance_cost=self.imbalance_cost + other.imbalance_cost,
            count=self.count + other.count,
        )

    @property
    def margin_pct(self) -> Optional[float]:
        if self.revenue == 0:
            return None
        return self.margin / self.revenue * 100

    @property
    def generation_variance_pct(self) -> Optional[float]:
        if self.budget_generation_mwh == 0:
            return None
        return (self.actual_generation_mwh - self.budget_generation_mwh) / self.budget_generation_mwh * 100

    @property
    def avg_daily_revenue(self) -> Optional[float]:
        if self.count == 0:
            return None
        return self.revenue / self.count

    @property
    def contract_revenue_share(self) -> float:
        # revenue not attributable to basis capture
        return self.revenue - self.basis_revenue
