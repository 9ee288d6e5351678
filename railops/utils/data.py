import json
from datetime import timedelta
from pathlib import Path

import pandas as pd

from railops.api.models import KPI, AuditLog, ChatSession, Prediction, Recommendation, Train, utcnow

DATA_DIR = Path(__file__).resolve().parents[1] / 'data'


def load_csv(name:str)->pd.DataFrame:
    return pd.read_csv(DATA_DIR / f"{name}.csv")


def load_json(name:str):
    return json.loads((DATA_DIR / f"{name}.json").read_text(encoding="utf-8"))


def _records(df:pd.DataFrame)->list[dict]:
    # round-trip through JSON to get native python scalars and None for NaN
    return json.loads(df.to_json(orient="records"))


def _ago(minutes:int):
    return (utcnow() - timedelta(minutes=minutes)).isoformat()


def load_trains()->list[Train]:
    return [Train.model_validate(r) for r in _records(load_csv('trains'))]


def load_kpis()->list[KPI]:
    return [KPI.model_validate(r) for r in _records(load_csv('kpis'))]


def load_predictions()->list[Prediction]:
    df = load_csv('predictions')
    df['factors'] = df['factors'].fillna('').str.split(';')
    return [Prediction.model_validate(r) for r in _records(df)]


def load_recommendations()->list[Recommendation]:
    now = utcnow().isoformat()
    return [Recommendation.model_validate({**r, "createdAt": now}) for r in load_json('recommendations')]


def load_audit_logs()->list[AuditLog]:
    out = []
    for r in load_json('audit_logs'):
        r = dict(r); r["timestamp"] = _ago(r.pop("minutesAgo", 0))
        out.append(AuditLog.model_validate(r))
    return out


def load_chat_session()->ChatSession:
    raw = load_json('chat_session')
    msgs = []
    for m in raw["messages"]:
        m = dict(m); m["timestamp"] = _ago(m.pop("minutesAgo", 0))
        msgs.append(m)
    return ChatSession.model_validate({**raw, "messages": msgs, "createdAt": _ago(30)})


def trains_frame(trains:list[Train])->pd.DataFrame:
    """Tabular view of trains for summaries and the dashboard table."""
    cols = list(Train.model_fields)
    if not trains:
        return pd.DataFrame(columns=cols)
    return pd.DataFrame([t.model_dump() for t in trains], columns=cols)
