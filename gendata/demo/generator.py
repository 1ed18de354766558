# gendata/demo/generator.py
"""
Synthetic asset-day rows for demos and tests.

Rows come out in the same shape an uploaded CSV has (column -> text), so they go
through the normalizer like any other input. A given seed always yields the same rows.
"""
from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Sequence

from gendata.utils.dates import day_range, iso_day


@dataclass(frozen=True)
class DemoProject:
    name: str
    iso: str                 # ERCOT settles as MKT_A, PJM/MISO as MKT_B_C
    capacity_mw: float
    offtake: float           # contracted share of generation
    price: float             # $/MWh
    mechanism: str = "as-generated"


DEMO_PROJECTS: Sequence[DemoProject] = (
    DemoProject("West Texas Solar 1", "ERCOT", 50, 0.75, 28.50),
    DemoProject("West Texas Solar 2", "ERCOT", 75, 0.85, 29.20),
    DemoProject("Panhandle Solar A", "ERCOT", 100, 0.80, 27.80, "fixed-shape"),
    DemoProject("Austin Solar Farm", "ERCOT", 60, 0.70, 30.10, "proxy-generation"),
    DemoProject("Illinois Solar Farm A", "PJM", 75, 0.90, 35.40),
    DemoProject("Indiana Solar Phase 2", "MISO", 100, 0.88, 32.60),
    DemoProject("Ohio Solar Complex", "PJM", 85, 0.92, 34.80),
)

SOLAR_HOURS = 10
STORM_PROBABILITY = 0.05


def _fmt(x: float) -> str:
    return repr(float(x))


def _nodal_fields(rng: random.Random, proj: DemoProject, cf: float, actual: float) -> Dict[str, str]:
    hub = 25 + rng.random() * 10
    # occasional compressed basis
    spread = 0.5 + rng.random() * 1.5 if rng.random() < 0.15 else 2.5 + rng.random() * 3.5
    out = {"hub_price": _fmt(hub), "node_price": _fmt(hub + spread)}
    if proj.mechanism == "fixed-shape":
        # flat round-the-clock block at the day's average output
        out["shaped_target_mwh"] = _fmt(proj.capacity_mw * cf * 24)
    if proj.mechanism == "proxy-generation":
        out["proxy_generation_mwh"] = _fmt(actual * (1.0 + (rng.random() - 0.5) * 0.1))
    return out


def _two_settlement_fields(rng: random.Random, actual: float) -> Dict[str, str]:
    da_hub = 30 + rng.random() * 8
    da_node = da_hub + (2 + rng.random() * 2)
    schedule = actual * (1.0 + (rng.random() - 0.5) * 0.16)
    rt_node = da_node * (1.0 + (rng.random() - 0.5) * 0.35)
    return {
        "day_ahead_hub_price": _fmt(da_hub),
        "day_ahead_node_price": _fmt(da_node),
        "day_ahead_schedule_mwh": _fmt(schedule),
        "realtime_node_price": _fmt(rt_node),
    }


def generate_demo_rows(
    seed: int = 7,
    start: date = date(2026, 1, 1),
    days: int = 59,
    projects: Sequence[DemoProject] = DEMO_PROJECTS,
) -> List[Dict[str, str]]:
    rng = random.Random(seed)
    rows: List[Dict[str, str]] = []
    for day in day_range(start, days):
        for proj in projects:
            cf = 0.25 + rng.random() * 0.05
            actual = proj.capacity_mw * cf * SOLAR_HOURS
            budget = actual * (1.02 + rng.random() * 0.03)
            row = {
                "date": iso_day(day),
                "asset_id": proj.name,
                "market": proj.iso,
                "mechanism": proj.mechanism if proj.iso == "ERCOT" else "",
                "capacity_mw": _fmt(proj.capacity_mw),
                "contract_coverage_pct": _fmt(proj.offtake),
                "contract_price": _fmt(proj.price),
                "actual_generation_mwh": _fmt(actual),
                "budget_generation_mwh": _fmt(budget),
                "operating_cost": _fmt(proj.capacity_mw * 15000 / 365),
                "marketing_cost": _fmt(proj.capacity_mw * 5000 / 365),
                "weather_event": "Winter Storm" if rng.random() < STORM_PROBABILITY else "normal",
            }
            if proj.iso == "ERCOT":
                row.update(_nodal_fields(rng, proj, cf, actual))
            else:
                row.update(_two_settlement_fields(rng, actual))
            rows.append(row)
    return rows
