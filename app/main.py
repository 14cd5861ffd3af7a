import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging
from datetime import date, timedelta

import streamlit as st
import pandas as pd
import plotly.graph_objects as go
import plotly.express as px

from payday.config import Config
from payday.domain import EXPENSE_CATEGORIES, SAFE, WARNING
from payday.errors import PaydayError
from payday.events import EventBus, register_default_handlers
from payday.formatting import (
    format_chart_date,
    format_currency,
    parse_currency_input,
)
from payday.projection import simulate_expense
from payday.services import DashboardService
from payday.storage import JsonKeyValueStorage
from payday.store import FinanceStore

config = Config.from_env()
logging.basicConfig(
    level=config.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

st.set_page_config(page_title="Payday Budget", layout="wide")

RISK_COLORS = {SAFE: "#22C55E", WARNING: "#F59E0B"}
DANGER_COLOR = "#EF4444"


def money(value) -> str:
    return format_currency(value, config.currency_symbol)


if "store" not in st.session_state:
    bus = register_default_handlers(EventBus())
    store = FinanceStore(
        JsonKeyValueStorage(config.store_path, indent=config.json_indent),
        key=config.storage_key,
        bus=bus,
    )
    store.load()
    st.session_state.store = store

store: FinanceStore = st.session_state.store
service = DashboardService(store)
view = service.dashboard()
projection = view["projection"]

menu = st.sidebar.radio(
    "Menu",
    ["🧭 Onboarding", "🏠 Overview", "🧾 Current Cycle", "📈 History"],
    index=0 if view["has_missing_data"] else 1,
)

alerts = store.bus.notifications()
if alerts:
    with st.sidebar:
        st.markdown("### 🔔 Alerts")
        for alert in reversed(alerts[-5:]):
            st.caption(alert)
        if st.button("Clear Alerts", key="btn_clear_alerts"):
            store.bus.clear_history()
            st.rerun()

if menu == "🧭 Onboarding":
    st.title("🧭 Getting started")
    state = store.state
    with st.form("onboarding_form"):
        balance_text = st.text_input(
            "Current balance",
            value=money(state.current_balance) if state.current_balance > 0 else "",
            placeholder=money(0),
        )
        default_date = date.today() + timedelta(days=30)
        salary_date = st.date_input(
            "Next pay date",
            value=pd.to_datetime(state.next_salary_date).date() if state.next_salary_date else default_date,
        )
        salary_text = st.text_input(
            "Next pay amount",
            value=money(state.next_salary_amount) if state.next_salary_amount > 0 else "",
            placeholder=money(0),
        )
        submitted = st.form_submit_button("Save")

    if submitted:
        try:
            store.complete_onboarding(
                parse_currency_input(balance_text),
                salary_date,
                parse_currency_input(salary_text),
            )
        except PaydayError as e:
            st.error(str(e))
        else:
            st.success("Saved. Open the overview to see your budget.")

    with st.expander("Danger zone"):
        if st.button("🔄 Close current cycle now", key="btn_advance_cycle"):
            try:
                store.advance_cycle()
            except PaydayError as e:
                st.error(str(e))
            else:
                st.rerun()
        if st.button("🗑 Reset all data", key="btn_reset"):
            try:
                store.reset()
            except PaydayError as e:
                st.error(str(e))
            else:
                store.bus.clear_history()
                st.rerun()

elif view["has_missing_data"]:
    st.info("Enter your balance, next pay date and pay amount in Onboarding first.")

elif menu == "🏠 Overview":
    k1, k2, k3, k4 = st.columns(4)
    with k1:
        st.metric("Daily budget", money(projection.daily_budget))
    with k2:
        st.metric("Days left", projection.days_left)
    with k3:
        st.metric("Before pay day", money(projection.projected_balance_before_salary))
    with k4:
        st.metric("After pay day", money(projection.projected_balance_after_salary))

    color = RISK_COLORS.get(projection.risk_level, DANGER_COLOR)
    st.markdown(
        f"Risk: <span style='color:{color};font-weight:600'>{projection.risk_level.upper()}</span>",
        unsafe_allow_html=True,
    )
    st.progress(int(projection.progress_percentage), text=f"Cycle {projection.progress_percentage:.0f}% done")
    if not projection.achievable:
        st.error("The current goal cannot be reached with the remaining balance.")

    df_proj = pd.DataFrame(
        [{"date": format_chart_date(p.date), "balance": p.projected_balance} for p in projection.daily_projection]
    )
    fig_proj = go.Figure()
    fig_proj.add_trace(go.Scatter(x=df_proj["date"], y=df_proj["balance"], mode="lines+markers", name="Projected"))
    fig_proj.update_layout(template="plotly_dark", margin=dict(t=30, b=10, l=10, r=10), title="Projected balance")
    st.plotly_chart(fig_proj, use_container_width=True)

    with st.form("quick_expense_form", clear_on_submit=True):
        amount_text = st.text_input("Quick expense", placeholder=money(0))
        if st.form_submit_button("Add"):
            try:
                store.add_expense(parse_currency_input(amount_text))
            except PaydayError as e:
                st.error(str(e))
            else:
                st.rerun()

elif menu == "🧾 Current Cycle":
    st.title("🧾 Current cycle")

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("Cycle goal")
        goal_text = st.text_input(
            "Save this cycle",
            value=money(store.state.goal_amount) if store.state.goal_amount > 0 else "",
            key="goal_input",
        )
        if st.button("Set goal", key="btn_set_goal"):
            try:
                store.set_goal(parse_currency_input(goal_text))
            except PaydayError as e:
                st.error(str(e))
            else:
                st.rerun()

    with col2:
        st.subheader("Long-term goal")
        goal = view["long_term_goal"]
        target_text = st.text_input(
            "Target",
            value=money(goal.target_amount) if goal.target_amount > 0 else "",
            key="long_term_input",
        )
        if st.button("Set target", key="btn_set_long_term"):
            try:
                store.set_long_term_goal(parse_currency_input(target_text))
            except PaydayError as e:
                st.error(str(e))
            else:
                st.rerun()
        if goal.target_amount > 0:
            st.progress(int(view["long_term_goal_percentage"]))
            st.caption(
                f"{money(goal.accumulated_amount)} / {money(goal.target_amount)}"
                f" · {money(view['remaining_long_term_amount'])} to go"
            )
            if goal.is_completed:
                st.success("Goal reached 🎉")

    st.subheader("What if I spend…")
    sim_text = st.text_input("Amount", key="simulate_input", placeholder=money(0))
    if sim_text:
        sim = simulate_expense(projection, parse_currency_input(sim_text))
        st.write(
            f"Daily budget would be {money(sim.simulated_daily_budget)} ({sim.simulated_risk_level})."
        )
        if sim.is_risk_worse:
            st.warning("This expense moves you to a worse risk level.")

    st.subheader("Add expense")
    with st.form("expense_form", clear_on_submit=True):
        c1, c2 = st.columns(2)
        with c1:
            amount_text = st.text_input("Amount", placeholder=money(0))
        with c2:
            category = st.selectbox("Category", EXPENSE_CATEGORIES)
        if st.form_submit_button("Add expense"):
            try:
                store.add_expense(parse_currency_input(amount_text), category)
            except PaydayError as e:
                st.error(str(e))
            else:
                st.rerun()

    if store.state.expenses:
        for e in reversed(store.state.expenses):
            r1, r2, r3 = st.columns([3, 2, 1])
            spent_at = pd.to_datetime(e.date, errors="coerce")
            r1.write(f"{e.category} · {spent_at.strftime('%d/%m %H:%M') if pd.notna(spent_at) else '-'}")
            r2.write(money(e.amount))
            if r3.button("✕", key=f"del_{e.id}"):
                try:
                    store.remove_expense(e.id)
                except PaydayError as err:
                    st.error(str(err))
                else:
                    st.rerun()

        if view["category_totals"]:
            df_cat = pd.DataFrame(view["category_totals"], columns=["Category", "Total"])
            fig_cat = px.pie(df_cat, values="Total", names="Category", title="Spending by category")
            fig_cat.update_layout(height=300)
            st.plotly_chart(fig_cat, use_container_width=True)
    else:
        st.info("No expenses in this cycle yet.")

elif menu == "📈 History":
    st.title("📈 History")
    chart_data = view["chart_data"]
    if not chart_data:
        st.info("No closed cycles yet.")
    else:
        df_hist = pd.DataFrame(chart_data)
        fig_hist = go.Figure()
        fig_hist.add_trace(go.Bar(
            x=df_hist["cycle"],
            y=df_hist["saved_amount"],
            marker_color=[RISK_COLORS[SAFE] if ok else DANGER_COLOR for ok in df_hist["goal_achieved"]],
            name="Saved",
        ))
        fig_hist.add_trace(go.Scatter(x=df_hist["cycle"], y=df_hist["goal_amount"], mode="lines+markers", name="Goal"))
        fig_hist.update_layout(template="plotly_dark", margin=dict(t=30, b=10, l=10, r=10))
        st.plotly_chart(fig_hist, use_container_width=True)

        disp = df_hist.copy()
        disp["saved_amount"] = disp["saved_amount"].map(money)
        disp["goal_amount"] = disp["goal_amount"].map(money)
        st.table(disp.reset_index(drop=True))
        csv = disp.to_csv(index=False)
        st.download_button("⬇ Download CSV", csv, file_name="cycles_history.csv")
