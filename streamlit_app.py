import streamlit as st

from railops.config import configure_logging
from railops.store import selectors
from railops.utils import api as railapi
from railops.utils.charts import history_chart, kpi_row
from railops.utils.data import trains_frame
from railops.utils.formatting import format_delay, time_ago
from railops.utils.ui import STATUS_STYLE, chips_row, greeting, status_banner

# Page config MUST be first before any output
st.set_page_config(page_title="RailOps Assist", page_icon="🚆", layout="wide")
configure_logging()

# Sidebar navigation
st.sidebar.title("RailOps Assist")
st.sidebar.page_link("pages/00_💬_Chat_Assistant.py", label="Chat Assistant")
st.sidebar.page_link("pages/01_✅_Recommendations.py", label="Recommendations")
st.sidebar.page_link("pages/02_🧪_What_If.py", label="What-If Simulation")
st.sidebar.page_link("pages/03_📜_Audit_Log.py", label="Audit Log")

greeting()

store = railapi.get_store()
if not railapi.api_up():
    st.warning("Backend API is not reachable; showing the last saved state.")
else:
    refresh = st.sidebar.button("Refresh", use_container_width=True)
    if st.sidebar.button("Reset demo data", use_container_width=True):
        railapi.reset(); refresh = True
    if refresh or not store.state.trains:
        with st.spinner("Loading network status…"):
            railapi.run(store.fetch_trains())
            railapi.run(store.fetch_kpis(include_history=True, time_range=st.session_state.get("time_range", "1h")))
            railapi.run(store.fetch_recommendations())
            railapi.run(store.fetch_predictions())

st.sidebar.selectbox("KPI history", ["1h", "6h", "24h"], key="time_range")
s = store.state
status_banner(s)

if s.kpi_summary:
    chips_row([
        (f"Trains: {s.kpi_summary.total_trains}", "neutral"),
        (f"Delayed: {s.kpi_summary.delayed_trains}", "warn" if s.kpi_summary.delayed_trains else "success"),
        (f"Pending recommendations: {len(selectors.pending_recommendations(s))}", "neutral"),
        (f"System health: {s.kpi_summary.system_health}", "success" if s.kpi_summary.system_health in ("excellent", "good") else "warn"),
    ])

kpi_row(s.kpis)
st.caption(f"KPIs updated {time_ago(s.last_updated.get('kpis'))}")
with st.expander("KPI history", expanded=False):
    history_chart(s.kpi_history)

st.divider()
st.subheader("Trains")
df = trains_frame(s.trains)
if not df.empty:
    preds = {p.train_id: p for p in s.predictions}
    df["delay"] = df["delay_minutes"].map(format_delay)
    df["predicted delay"] = df["id"].map(lambda i: format_delay(preds[i].delay_minutes) if i in preds else "")
    status_filter = st.multiselect("Status", sorted(STATUS_STYLE), default=list(s.active_filters.status))
    if status_filter:
        df = df[df["status"].isin(status_filter)]
    st.dataframe(df[["number", "origin", "destination", "current_location", "status", "delay", "predicted delay", "passengers"]],
                 use_container_width=True, hide_index=True)
    known = [i for i in s.selected_trains if selectors.train_by_id(s, i)]
    picked = st.multiselect("Selected trains", [t.id for t in s.trains], default=known,
                            format_func=lambda i: selectors.train_by_id(s, i).number)
    if picked != s.selected_trains:
        store.set_selected_trains(picked)
    if status_filter != list(s.active_filters.status):
        store.set_active_filters(s.active_filters.model_copy(update={"status": status_filter}))
else:
    st.info("No trains loaded.")
