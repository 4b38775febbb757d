"""Results page — metrics, cumulative profit / EV chart and breakdowns."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

import pandas as pd
import plotly.graph_objects as go
import streamlit as st
from dashboard.utils import api_get

st.set_page_config(page_title="Results | Bet Ledger", layout="wide")

st.title("Results Dashboard")

# --- Filters ---
bets = api_get("/api/bets") or []
bet_types = api_get("/api/bet-types") or []
sports = sorted({b["sport"] for b in bets if b.get("sport")})
strategies = sorted({b["strategy_ref"] for b in bets if b.get("strategy_ref")})

f1, f2, f3, f4 = st.columns(4)
with f1:
    sport = st.selectbox("Sport", ["All"] + sports)
with f2:
    bet_type = st.selectbox("Bet type", ["All"] + [t["name"] for t in bet_types])
with f3:
    strategy = st.selectbox("Strategy", ["All"] + strategies)
with f4:
    date_range = st.selectbox(
        "Date range", ["all", "week", "month", "3months", "6months", "year", "custom"],
    )

params = {
    "sport": None if sport == "All" else sport,
    "bet_type": None if bet_type == "All" else bet_type,
    "strategy": None if strategy == "All" else strategy,
    "date_range": date_range,
}
if date_range == "custom":
    d1, d2 = st.columns(2)
    params["date_from"] = d1.text_input("From (dd/mm/yyyy)") or None
    params["date_to"] = d2.text_input("To (dd/mm/yyyy)") or None

params = {k: v for k, v in params.items() if v}
summary = api_get("/api/performance/summary", params)
timeline = api_get("/api/performance/timeline", params)

if not summary or summary["metrics"]["bet_count"] == 0:
    st.info("No settled bets for these filters.")
    st.stop()

m = summary["metrics"]

# --- Key metrics ---
c1, c2, c3, c4, c5 = st.columns(5)
c1.metric("Bets", m["bet_count"])
c2.metric("Total staked", f"${m['total_stake']:,.2f}")
c3.metric("Profit", f"${m['total_profit']:+,.2f}")
c4.metric("POT", f"{m['pot']:.2f}%")
c5.metric("Avg odds", f"{m['avg_odds']:.2f}", f"{m['lowest_odds']:.2f} – {m['highest_odds']:.2f}", delta_color="off")

if m["has_ev_bets"]:
    e1, e2 = st.columns(2)
    e1.metric("Total EV", f"${m['total_ev']:+,.2f}")
    e2.metric("Avg EV / bet", f"${m['avg_ev']:+,.2f}")

st.markdown("---")

# --- Profit over time ---
points = (timeline or {}).get("timeline", [])
if points:
    df = pd.DataFrame(points)
    st.subheader("Profit over time")
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=list(range(1, len(df) + 1)), y=df["profit"], mode="lines",
        name="Cumulative profit", line=dict(color="green" if df["profit"].iloc[-1] >= 0 else "red"),
        customdata=df["date"], hovertemplate="%{customdata}: $%{y:.2f}",
    ))
    if df["ev"].notna().any():
        fig.add_trace(go.Scatter(
            x=list(range(1, len(df) + 1)), y=df["ev"], mode="lines",
            name="Cumulative EV", line=dict(color="steelblue", dash="dot"),
        ))
    fig.add_hline(y=0, line_dash="dash", line_color="gray")
    fig.update_layout(xaxis_title="Bet Number", yaxis_title="$", height=360)
    st.plotly_chart(fig, use_container_width=True)

# --- Breakdowns ---
for title, key in (("By sport", "by_sport"), ("By bet type", "by_bet_type"), ("By strategy", "by_strategy")):
    rows = summary.get(key) or {}
    if rows:
        st.subheader(title)
        st.dataframe(
            pd.DataFrame([{"group": k, **v} for k, v in rows.items()]),
            use_container_width=True,
            hide_index=True,
        )
