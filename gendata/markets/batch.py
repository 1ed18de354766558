# gendata/markets/batch.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Tuple

import pandas as pd
from pydantic import BaseModel
from tqdm import tqdm

from gendata.config import RuleThresholds
from gendata.markets.aggregate import Summary, records_frame, summarize
from gendata.markets.alerts import default_rules, evaluate, severity_counts
from gendata.markets.errors import NormalizationError
from gendata.markets.models import Alert, MarketRecord
from gendata.markets.normalize import canonical_columns, normalize
from gendata.markets.settlement import compute
from gendata.utils.logging import get_logger

logger = get_logger(__name__)


class RowError(BaseModel):
    row_number: int                # 1-based position in the input batch
    asset_id: str = ""
    error: str                     # exception class name, e.g. UnknownMarket
    column: Optional[str] = None   # offending input column, when known
    reason: str


@dataclass
class BatchResult:
    records: List[MarketRecord] = field(default_factory=list)
    errors: List[RowError] = field(default_factory=list)
    alerts: List[Alert] = field(default_factory=list)
    summary: Summary = field(default_factory=Summary)

    def records_frame(self) -> pd.DataFrame:
        return records_frame(self.records)

    def errors_frame(self) -> pd.DataFrame:
        return pd.DataFrame([e.model_dump() for e in self.errors], columns=list(RowError.model_fields))

    def alerts_frame(self) -> pd.DataFrame:
        rows = [a.model_dump(mode="json") for a in self.alerts]
        return pd.DataFrame(rows, columns=list(Alert.model_fields) + ["message"])


def settle_rows(
    rows: Iterable[Mapping[str, Any]],
    progress: bool = False,
) -> Tuple[List[MarketRecord], List[RowError]]:
    """Normalize and settle each row; a bad row is recorded and skipped."""
    records: List[MarketRecord] = []
    errors: List[RowError] = []
    for i, raw in enumerate(tqdm(rows, desc="settle", disable=not progress), start=1):
        try:
            records.append(compute(normalize(raw)))
        except NormalizationError as e:
            asset = str(canonical_columns(raw).get("asset_id") or "").strip()
            logger.warning(f"Row {i} ({asset or 'unknown asset'}) rejected: {e}")
            errors.append(RowError(row_number=i, asset_id=asset, error=e.kind, column=e.field, reason=e.reason))
    return records, errors


def run_batch(
    rows: Iterable[Mapping[str, Any]],
    thresholds: Optional[RuleThresholds] = None,
    progress: bool = False,
) -> BatchResult:
    records, errors = settle_rows(rows, progress=progress)
    alerts = evaluate(records, default_rules(thresholds))
    result = BatchResult(records=records, errors=errors, alerts=alerts, summary=summarize(records))

    logger.info(
        f"Settled {len(records)} rows, rejected {len(errors)}; "
        f"alerts by severity {severity_counts(alerts)}"
    )
    return result
