# gendata/config.py
from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from gendata.markets.errors import ConfigError

# Load environment variables from .env file
load_dotenv()


class RuleThresholds(BaseModel):
    basis_spread_min: float = Field(2.0, description="MKT_A RT basis below this ($/MWh) is compressed")
    imbalance_ratio_max: float = Field(0.10, description="Imbalance cost as a share of DA revenue")
    da_basis_min: float = Field(2.5, description="MKT_B_C DA basis below this ($/MWh) is compressed")
    budget_miss_pct: float = Field(-5.0, description="Generation variance % below this is a miss")


class Settings(BaseModel):
    log_level: str = "INFO"
    data_dir: Path = Path("data")
    thresholds: RuleThresholds = Field(default_factory=RuleThresholds)


_THRESHOLD_ENV = {
    "GENDATA_BASIS_SPREAD_MIN": "basis_spread_min",
    "GENDATA_IMBALANCE_RATIO_MAX": "imbalance_ratio_max",
    "GENDATA_DA_BASIS_MIN": "da_basis_min",
    "GENDATA_BUDGET_MISS_PCT": "budget_miss_pct",
}


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from the environment (or an explicit mapping, for tests)."""
    env = os.environ if env is None else env

    overrides = {field: env[key] for key, field in _THRESHOLD_ENV.items() if env.get(key)}
    try:
        thresholds = RuleThresholds(**overrides)
        return Settings(
            log_level=(env.get("GENDATA_LOG_LEVEL") or "INFO").upper(),
            data_dir=Path(env.get("GENDATA_DATA_DIR") or "data"),
            thresholds=thresholds,
        )
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e
