"""
Streamlit Dashboard for the Bet Ledger
Bets page: log, filter, settle and delete wagers
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import date

import pandas as pd
import streamlit as st

from dashboard.utils import (
    RESULT_ICONS,
    api_delete,
    api_get,
    api_post,
    format_ev,
    settle_commission_default,
)

st.set_page_config(
    page_title="Bet Ledger",
    page_icon="📒",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.title("Bets")

sports = api_get("/api/sports") or []
bet_types = api_get("/api/bet-types") or []
kinds = {t["name"]: t["kind"] for t in bet_types}

# ==============================================================================
# ADD BET
# ==============================================================================

with st.expander("➕ Add bet", expanded=False):
    c1, c2, c3 = st.columns(3)
    with c1:
        bet_date = st.date_input("Date", value=date.today(), format="DD/MM/YYYY")
        sport = st.selectbox("Sport", sports + ["(new)"])
        if sport == "(new)":
            sport = st.text_input("New sport")
        event = st.text_input("Event")
        round_race = st.text_input("Round / race")
    with c2:
        selection = st.text_input("Selection")
        bet_name = st.selectbox("Bet type", list(kinds) + ["(new)"])
        new_kind = None
        if bet_name == "(new)":
            bet_name = st.text_input("New bet type")
            new_kind = st.radio("Kind", ["line", "ev"], horizontal=True)
        kind = new_kind or kinds.get(bet_name, "line")
        odds = st.number_input("Odds (decimal)", min_value=0.0, value=2.0, step=0.01)
        stake = st.number_input("Stake", min_value=0.0, value=10.0, step=1.0)
    with c3:
        commission = st.number_input("Commission %", min_value=0.0, max_value=100.0, value=0.0, step=0.5)
        strategy_ref = st.text_input("Strategy")
        closing = line = None
        if kind == "ev":
            closing = st.number_input("Closing estimate (BSP)", min_value=0.0, value=0.0, step=0.01)
            preview = api_post("/api/ev/estimate", {
                "bet": bet_name, "odds": odds, "closing": closing,
                "stake": stake, "commission": commission,
            })
            if preview:
                st.metric("EV", format_ev(preview.get("ev_perc")),
                          None if not preview.get("ev_available") else f"${preview['ev_val']:+.2f}")
        else:
            line = st.text_input("Line")

    if st.button("Save bet", type="primary"):
        created = api_post("/api/bets", {
            "date": bet_date.strftime("%d/%m/%Y"),
            "sport": sport, "event": event, "round_race": round_race,
            "selection": selection, "bet": bet_name, "kind": kind,
            "odds": odds, "stake": stake, "commission": commission,
            "closing": closing or None, "line": line,
            "strategy_ref": strategy_ref or None,
        })
        if created:
            st.success(f"Bet #{created['id']} saved")
            st.rerun()

st.markdown("---")

# ==============================================================================
# BET TABLE
# ==============================================================================

col_f1, col_f2 = st.columns(2)
with col_f1:
    filter_sport = st.selectbox("Sport filter", ["All"] + sports)
with col_f2:
    filter_result = st.selectbox("Result filter", ["All", "PENDING", "WIN", "LOSE", "VOID"])

params = {}
if filter_sport != "All":
    params["sport"] = filter_sport
if filter_result != "All":
    params["result"] = filter_result

bets = api_get("/api/bets", params) or []
if not bets:
    st.info("No bets found for this filter.")
    st.stop()

df = pd.DataFrame(bets)
df["result"] = df["result"].map(lambda r: f"{RESULT_ICONS.get(r, '')} {r}")
df["ev_perc"] = df["ev_perc"].map(lambda v: "-" if pd.isna(v) else f"{v:.2f}%")
df["commission"] = df["commission"].fillna(0).map(lambda v: f"{v:g}%")

display_cols = [c for c in [
    "id", "date", "sport", "selection", "bet", "odds", "stake",
    "commission", "ev_perc", "result", "return",
] if c in df.columns]
st.dataframe(
    df[display_cols].rename(columns={
        "id": "ID", "date": "Date", "sport": "Sport", "selection": "Selection",
        "bet": "Bet", "odds": "Odds", "stake": "Stake", "commission": "Comm%",
        "ev_perc": "EV%", "result": "Result", "return": "Return",
    }),
    use_container_width=True,
    hide_index=True,
)

# ==============================================================================
# SETTLE / DELETE
# ==============================================================================

st.subheader("Settle or delete")
by_id = {b["id"]: b for b in bets}
bet_id = st.selectbox(
    "Bet",
    list(by_id),
    format_func=lambda i: f"#{i} {by_id[i]['selection'] or ''} {by_id[i]['bet'] or ''} ({by_id[i]['result']})",
)
chosen = by_id[bet_id]
is_ev = kinds.get(chosen["bet"]) == "ev"

s1, s2, s3 = st.columns(3)
with s1:
    reference = st.text_input(
        "Closing odds (BSP)" if is_ev else "Closing line",
        value=str(chosen.get("closing") or chosen.get("closing_line") or ""),
    )
with s2:
    settle_commission = st.number_input(
        "Commission % ", min_value=0.0, max_value=100.0,
        value=settle_commission_default(chosen), step=0.5,
    )
with s3:
    force = st.checkbox("Re-settle", value=False, disabled=chosen["result"] == "PENDING")

b1, b2, b3, b4 = st.columns(4)
for col, outcome in zip((b1, b2, b3), ("WIN", "LOSE", "VOID")):
    if col.button(outcome):
        settled = api_post(f"/api/bets/{bet_id}/settle", {
            "result": outcome, "bspOdds": reference or None,
            "commission": settle_commission, "force": force,
        })
        if settled:
            st.success(f"Bet #{bet_id} settled {outcome}: return {settled['return']:+.2f}")
            st.rerun()
if b4.button("Delete", type="secondary"):
    if api_delete(f"/api/bets/{bet_id}"):
        st.success(f"Bet #{bet_id} deleted")
        st.rerun()
