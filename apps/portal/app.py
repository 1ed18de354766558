# apps/portal/app.py
from __future__ import annotations

import sys
from pathlib import Path
import streamlit as st

# make repo importable
PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

st.set_page_config(page_title="Asset P&L Portal", layout="wide")

st.title("Asset P&L Portal")
st.caption("Daily settlement P&L, portfolio aggregates and risk alerts for generating assets.")

st.markdown(
    """
### What’s inside

- **Asset P&L** — settle an uploaded CSV (or demo data), filter by market, asset and dates,
  review aggregates and the severity-ranked risk alerts, and export results.

Use the left sidebar to navigate between pages.
"""
)
