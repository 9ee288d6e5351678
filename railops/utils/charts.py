import pandas as pd
import streamlit as st

from railops.api.models import KPI, KpiPoint, SimPoint
from railops.utils.formatting import format_kpi_value

def kpi(k:KPI):
    delta = f"{k.change_percent:+.1f}%" if k.change_percent is not None else None
    st.metric(k.name, format_kpi_value(k), delta, delta_color="off" if k.trend == "stable" else "normal")
def kpi_row(kpis:list[KPI]):
    if not kpis:
        st.info("No KPI data yet."); return
    for col, k in zip(st.columns(len(kpis)), kpis):
        with col: kpi(k)
def history_chart(history:dict[str, list[KpiPoint]]):
    if not history: return
    frames = {m: pd.Series([p.value for p in pts], index=[p.time for p in pts]) for m, pts in history.items()}
    st.line_chart(pd.DataFrame(frames))
def simulation_chart(points:list[SimPoint]):
    if not points: return
    df = pd.DataFrame([p.model_dump() for p in points]).set_index("time")
    st.line_chart(df.dropna(axis=1, how="all"))
