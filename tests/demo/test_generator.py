from __future__ import annotations

from datetime import date

from gendata.demo.generator import DEMO_PROJECTS, DemoProject, generate_demo_rows


def test_same_seed_same_rows():
    assert generate_demo_rows(seed=5, days=4) == generate_demo_rows(seed=5, days=4)


def test_different_seed_different_rows():
    assert generate_demo_rows(seed=5, days=4) != generate_demo_rows(seed=6, days=4)


def test_shape_and_columns():
    rows = generate_demo_rows(seed=1, start=date(2026, 2, 27), days=3)
    assert len(rows) == 3 * len(DEMO_PROJECTS)
    assert [r["date"] for r in rows[:: len(DEMO_PROJECTS)]] == ["2026-02-27", "2026-02-28", "2026-03-01"]
    assert all(isinstance(v, str) for r in rows for v in r.values())

    ercot = [r for r in rows if r["market"] == "ERCOT"]
    assert all("node_price" in r and "hub_price" in r for r in ercot)
    assert all("shaped_target_mwh" in r for r in ercot if r["mechanism"] == "fixed-shape")
    assert all("proxy_generation_mwh" in r for r in ercot if r["mechanism"] == "proxy-generation")

    two = [r for r in rows if r["market"] in ("PJM", "MISO")]
    assert all("day_ahead_schedule_mwh" in r and "realtime_node_price" in r for r in two)


def test_custom_projects():
    rows = generate_demo_rows(seed=1, days=2, projects=[DemoProject("Solo", "PJM", 10, 0.5, 40.0)])
    assert len(rows) == 2
    assert {r["asset_id"] for r in rows} == {"Solo"}
