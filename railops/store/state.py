from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from railops.api.models import (
    KPI, AuditLog, ChatSession, FilterState, KpiPoint, KpiSummary, Prediction, Recommendation, Train,
)


class StoreState(BaseModel):
    """Everything the dashboard renders. Replaced wholesale on every commit."""
    model_config = ConfigDict(frozen=True)

    trains: list[Train] = []
    recommendations: list[Recommendation] = []
    predictions: list[Prediction] = []
    kpis: list[KPI] = []
    kpi_summary: Optional[KpiSummary] = None
    kpi_history: dict[str, list[KpiPoint]] = {}
    audit_logs: list[AuditLog] = []
    chat_sessions: list[ChatSession] = []

    loading: bool = False
    error: Optional[str] = None
    selected_trains: list[str] = []
    active_filters: FilterState = FilterState()

    last_updated: dict[str, datetime] = {}
