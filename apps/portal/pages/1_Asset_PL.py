# apps/portal/pages/1_Asset_PL.py
from __future__ import annotations

import io
import sys
from pathlib import Path

import pandas as pd
import streamlit as st

# --- make repo importable ----------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parents[3]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from gendata.config import load_settings
from gendata.demo.generator import generate_demo_rows
from gendata.markets.aggregate import Dimension, budget_performance, buckets_frame, daily_pl, summarize
from gendata.markets.alerts import default_rules, evaluate, severity_counts
from gendata.markets.batch import BatchResult, run_batch

# ---------------------------- helpers ----------------------------------------

@st.cache_data(show_spinner=True)
def _settle(csv_bytes: bytes | None, seed: int) -> BatchResult:
    if csv_bytes is None:
        rows = generate_demo_rows(seed=seed)
    else:
        df = pd.read_csv(io.BytesIO(csv_bytes), dtype=str, keep_default_na=False)
        rows = df.to_dict(orient="records")
    return run_batch(rows, thresholds=load_settings().thresholds)


def _csv_bytes(df: pd.DataFrame) -> bytes:
    return df.to_csv(index=False).encode("utf-8")


def _musd(x: float) -> str:
    return f"${x / 1_000_000:,.2f}M"


# ------------------------------- UI ------------------------------------------

st.title("Asset P&L and Risk Alerts")

upload = st.sidebar.file_uploader("Upload CSV of asset-day rows", type=["csv"])
seed = st.sidebar.number_input("Demo seed", value=7, step=1, disabled=upload is not None)
result = _settle(upload.getvalue() if upload else None, int(seed))

if not result.records:
    st.warning("No rows could be settled.")
    if result.errors:
        st.dataframe(result.errors_frame(), use_container_width=True)
    st.stop()

if upload is None:
    st.caption("Showing DEMO DATA.")

# filters (presentation-side predicate over market, asset, date)
markets = sorted({r.market.value for r in result.records})
market_sel = st.sidebar.selectbox("Market", ["ALL"] + markets)
assets = sorted({r.asset_id for r in result.records if market_sel in ("ALL", r.market.value)})
asset_sel = st.sidebar.selectbox("Asset", ["ALL"] + assets)
days = sorted({r.date for r in result.records})
start, end = st.sidebar.slider("Dates", min_value=days[0], max_value=days[-1], value=(days[0], days[-1]))

records = [
    r for r in result.records
    if market_sel in ("ALL", r.market.value)
    and asset_sel in ("ALL", r.asset_id)
    and start <= r.date <= end
]
alerts = evaluate(records, default_rules(load_settings().thresholds))
summary = summarize(records)
counts = severity_counts(alerts)

st.markdown(f"**{len(days)} days • {len(assets)} assets • {len(markets)} markets**")

c1, c2, c3, c4 = st.columns(4)
c1.metric("Revenue", _musd(summary.total.revenue))
c2.metric("Costs", _musd(summary.total.cost))
margin_pct = summary.total.margin_pct
c3.metric("Net P&L", _musd(summary.total.margin), f"{margin_pct:.1f}% margin" if margin_pct is not None else None)
c4.metric("Alerts", len(alerts), f"{counts['critical']} critical", delta_color="inverse")

summary_tab, risk_tab, budget_tab, data_tab = st.tabs(["Summary", "Risk alerts", "Budget", "Records"])

with summary_tab:
    st.subheader("Daily P&L")
    st.line_chart(daily_pl(records).set_index("date"))

    st.subheader("By market")
    st.dataframe(buckets_frame(summary.by_market, {Dimension.MARKET}), use_container_width=True, hide_index=True)

with risk_tab:
    st.write(counts)
    alerts_df = pd.DataFrame([a.model_dump(mode="json") for a in alerts])
    st.dataframe(alerts_df, use_container_width=True, hide_index=True)
    if not alerts_df.empty:
        st.download_button("Download alerts (CSV)", data=_csv_bytes(alerts_df), file_name="alerts.csv", mime="text/csv")

with budget_tab:
    perf = pd.DataFrame(
        [
            {
                "asset_id": name,
                "actual_mwh": b.actual_generation_mwh,
                "budget_mwh": b.budget_generation_mwh,
                "variance_pct": b.generation_variance_pct,
                "avg_daily_revenue": b.avg_daily_revenue,
            }
            for name, b in budget_performance(records)
        ]
    )
    st.dataframe(perf, use_container_width=True, hide_index=True)

with data_tab:
    st.dataframe(pd.DataFrame([r.to_row() for r in records]), use_container_width=True)
    if result.errors:
        with st.expander(f"Rejected rows ({len(result.errors)})"):
            st.dataframe(result.errors_frame(), use_container_width=True, hide_index=True)
