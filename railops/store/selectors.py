from railops.api.models import KPI, AuditLog, ChatSession, Prediction, Recommendation, Train
from .state import StoreState


def train_by_id(s:StoreState, train_id:str)->Train|None:
    return next((t for t in s.trains if t.id == train_id), None)


def recommendations_by_train(s:StoreState, train_id:str)->list[Recommendation]:
    return [r for r in s.recommendations if r.train_id == train_id]


def prediction_by_train(s:StoreState, train_id:str)->Prediction|None:
    return next((p for p in s.predictions if p.train_id == train_id), None)


def delayed_trains(s:StoreState)->list[Train]:
    return [t for t in s.trains if (t.delay_minutes or 0) > 0]


def pending_recommendations(s:StoreState)->list[Recommendation]:
    return [r for r in s.recommendations if r.status == "pending"]


def kpi_by_name(s:StoreState, name:str)->KPI|None:
    return next((k for k in s.kpis if k.name == name), None)


def recent_audit_logs(s:StoreState, limit:int=10)->list[AuditLog]:
    return s.audit_logs[:limit]


def active_chat_session(s:StoreState)->ChatSession|None:
    """Most recently active session."""
    if not s.chat_sessions:
        return None
    return max(s.chat_sessions, key=lambda c: c.last_active)
