from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

TrainStatus = Literal["on-time", "delayed", "stopped", "at-platform"]
RecStatus = Literal["pending", "accepted", "rejected", "expired"]
Priority = Literal["low", "medium", "high", "critical"]
Trend = Literal["up", "down", "stable"]
KpiStatus = Literal["good", "warning", "critical"]
Outcome = Literal["success", "failure", "partial"]
Role = Literal["user", "assistant", "system"]


def utcnow()->datetime:
    return datetime.now(timezone.utc)


class RailModel(BaseModel):
    """Wire models: camelCase on the wire, snake_case in Python, immutable."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def wire(self)->dict:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class Train(RailModel):
    id: str
    number: str
    origin: Optional[str] = None
    destination: Optional[str] = None
    scheduled_arrival: Optional[str] = None
    scheduled_departure: Optional[str] = None
    delay_minutes: Optional[int] = None
    status: Optional[TrainStatus] = None
    current_location: Optional[str] = None
    capacity: Optional[int] = None
    passengers: Optional[int] = None


class KpiImpact(RailModel):
    delay_reduction: float
    throughput: float
    safety: str
    cost: Optional[float] = None
    passenger_impact: Optional[float] = None


class Alternative(RailModel):
    id: str
    action: str
    kpis: KpiImpact
    description: Optional[str] = None
    estimated_duration: Optional[int] = None
    risk_level: Optional[Literal["low", "medium", "high"]] = None


class EstimatedImpact(RailModel):
    delay_reduction: float
    cost_savings: float
    passenger_benefit: float


class Recommendation(RailModel):
    id: str
    train_id: Optional[str] = None
    action: str
    rationale: str
    confidence: float = Field(ge=0, le=1)
    kpis: KpiImpact
    alternatives: list[Alternative] = []
    created_at: Optional[datetime] = None
    priority: Optional[Priority] = None
    status: RecStatus = "pending"
    estimated_impact: Optional[EstimatedImpact] = None


class Prediction(RailModel):
    train_id: str
    delay_minutes: int
    confidence: Optional[float] = None
    predicted_arrival: Optional[str] = None
    factors: list[str] = []
    model_version: Optional[str] = None


class KPI(RailModel):
    name: str
    value: float
    unit: Optional[str] = None
    target: Optional[float] = None
    trend: Optional[Trend] = None
    change: Optional[float] = None
    change_percent: Optional[float] = None
    status: Optional[KpiStatus] = None


class KpiSummary(RailModel):
    total_trains: int
    delayed_trains: int
    active_recommendations: int
    system_health: Literal["excellent", "good", "warning", "critical"]


class KpiPoint(RailModel):
    time: str
    value: float
    label: Optional[str] = None
    category: Optional[str] = None


class ImpactMetrics(RailModel):
    delay_change: float
    throughput_change: float
    cost_impact: float


class AuditEntry(RailModel):
    """An audit record before the server assigns id and timestamp."""
    action: str
    actor: str
    train_id: Optional[str] = None
    rec_id: Optional[str] = None
    reason: Optional[str] = None
    details: Optional[dict[str, Any]] = None
    outcome: Outcome = "success"
    impact_metrics: Optional[ImpactMetrics] = None


class AuditLog(AuditEntry):
    id: str
    timestamp: datetime


class ChatReference(RailModel):
    source: str
    id: Optional[str] = None
    title: Optional[str] = None
    url: Optional[str] = None


class ChatMessage(RailModel):
    id: str
    role: Role
    text: str
    timestamp: datetime = Field(default_factory=utcnow)
    references: Optional[list[ChatReference]] = None
    intent: Optional[str] = None
    confidence: Optional[float] = None
    actionable: Optional[bool] = None


class ChatContext(RailModel):
    current_page: Optional[str] = None
    selected_trains: list[str] = []
    active_recommendations: list[str] = []


class ChatSession(RailModel):
    session_id: str
    messages: list[ChatMessage] = []
    created_at: datetime = Field(default_factory=utcnow)
    last_active: datetime = Field(default_factory=utcnow)
    context: Optional[ChatContext] = None


class WhatIfConstraints(RailModel):
    max_delay: Optional[int] = None
    priority_trains: list[str] = []
    exclude_routes: list[str] = []


class WhatIfPayload(RailModel):
    train_id: str
    delay_minutes: Optional[int] = None
    reroute_to: Optional[str] = None
    scenario_name: Optional[str] = None
    additional_constraints: Optional[WhatIfConstraints] = None


class ProjectedKpis(RailModel):
    delay: float
    throughput: float
    safety: str
    cost: Optional[float] = None
    utilization: Optional[float] = None


class SimPoint(RailModel):
    time: str
    delay: float
    throughput: Optional[float] = None
    utilization: Optional[float] = None


class KpiSnapshot(RailModel):
    delay: float
    throughput: float
    safety: str


class Comparison(RailModel):
    baseline: KpiSnapshot
    projected: KpiSnapshot


class SimulationResult(RailModel):
    scenario_id: str
    projected_kpis: ProjectedKpis = Field(alias="projectedKPIs")
    chart_data: list[SimPoint] = []
    comparison_data: Optional[Comparison] = None
    recommendations: list[str] = []


class DateRange(RailModel):
    start: datetime
    end: datetime


class FilterState(RailModel):
    date_range: Optional[DateRange] = None
    train_ids: list[str] = []
    status: list[TrainStatus] = []
    priority: list[Priority] = []


class SystemState(RailModel):
    trains: list[Train] = []
    recommendations: list[Recommendation] = []
    kpis: list[KPI] = []
    timestamp: datetime = Field(default_factory=utcnow)
    network_status: Optional[Literal["normal", "congested", "disrupted"]] = None
    active_incidents: Optional[int] = None


# ---------- request bodies ----------
class PredictionRequest(RailModel):
    train_ids: Optional[list[str]] = None
    timestamp: Optional[datetime] = None


class RecommendationRequest(RailModel):
    system_state: Optional[SystemState] = None


class ChatRequest(RailModel):
    session_id: str = ""
    message: str = ""
    message_id: Optional[str] = None
    context: Optional[dict[str, Any]] = None


class AuditAmendRequest(RailModel):
    log_id: str
    updates: dict[str, Any] = {}
