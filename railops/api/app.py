import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import APIRouter, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from railops.config import configure_logging
from railops.utils import data as seeds
from . import mock_data
from .models import (
    AuditAmendRequest, AuditEntry, AuditLog, ChatMessage, ChatRequest, PredictionRequest,
    RecommendationRequest, SystemState, WhatIfPayload, utcnow,
)

logger = logging.getLogger(__name__)

AUDIT_CAP = 1000

@asynccontextmanager
async def lifespan(app:FastAPI):
    configure_logging()
    yield


app = FastAPI(title="RailOps Assist Mock API", lifespan=lifespan)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_credentials=True, allow_methods=["*"], allow_headers=["*"])
api = APIRouter(prefix="/api")


class MockDB:
    """In-process storage behind the mock routes."""

    def __init__(self):
        self.reset()

    def reset(self):
        self.trains = seeds.load_trains()
        self.kpis = seeds.load_kpis()
        self.recommendations = seeds.load_recommendations()
        self.predictions = seeds.load_predictions()
        self.audit = seeds.load_audit_logs()
        seed_chat = seeds.load_chat_session()
        self.chats: dict[str, list[ChatMessage]] = {seed_chat.session_id: list(seed_chat.messages)}

    def train(self, train_id:str):
        return next((t for t in self.trains if t.id == train_id), None)


db = MockDB()


def ok(data, message:str, **metadata)->dict:
    body = {"data": data, "success": True, "message": message, "timestamp": utcnow().isoformat()}
    if metadata: body["metadata"] = metadata
    return body


def fail(status:int, error:str, code:str, details=None)->JSONResponse:
    body = {"success": False, "error": error, "code": code, "timestamp": utcnow().isoformat()}
    if details is not None: body["details"] = details
    return JSONResponse(status_code=status, content=body)


class ApiError(HTTPException):
    def __init__(self, status_code:int, error:str, code:str, details=None):
        super().__init__(status_code, error)
        self.code = code
        self.details = details


@app.exception_handler(StarletteHTTPException)
async def http_error(request:Request, exc:StarletteHTTPException):
    return fail(exc.status_code, str(exc.detail), getattr(exc, "code", "HTTP_ERROR"), getattr(exc, "details", None))


@app.exception_handler(RequestValidationError)
async def validation_error(request:Request, exc:RequestValidationError):
    return fail(400, "Request validation failed", "VALIDATION_ERROR", [e.get("msg") for e in exc.errors()])


@app.get("/health")
def health(): return {"status":"ok"}


@app.post("/reset")
def reset():
    db.reset()
    return {"status":"reset"}


# ---------- Trains ----------
@api.get("/trains")
def list_trains():
    return ok([t.wire() for t in db.trains], "Trains retrieved successfully", total=len(db.trains), page=1, pageSize=len(db.trains))


# ---------- Recommendations ----------
@api.get("/recommendations")
def list_recommendations():
    recs = db.recommendations
    return ok([r.wire() for r in recs], "Recommendations retrieved successfully", total=len(recs), page=1, pageSize=len(recs))


@api.post("/recommendations")
def generate_recommendations(req:RecommendationRequest):
    state = req.system_state or SystemState(trains=db.trains, recommendations=db.recommendations, kpis=db.kpis)
    new = mock_data.generate_recommendation(state)
    recs = [new, *db.recommendations]
    return ok([r.wire() for r in recs], "New recommendations generated successfully", total=len(recs), generated=1)


# ---------- KPIs ----------
@api.get("/kpis")
def get_kpis(include_history:bool=Query(False, alias="includeHistory"), time_range:str=Query("1h", alias="timeRange")):
    kpis = mock_data.jitter_kpis(db.kpis)
    summary = mock_data.kpi_summary(seeds.trains_frame(db.trains), db.recommendations, kpis)
    data = {"kpis": [k.wire() for k in kpis], "lastUpdated": utcnow().isoformat(),
            "networkStatus": "normal", "summary": summary.wire()}
    if include_history:
        data["history"] = {m: [p.wire() for p in mock_data.kpi_history(m, time_range)]
                           for m in ("throughput", "delay", "utilization", "acceptanceRate")}
    return ok(data, "KPIs retrieved successfully", kpiCount=len(kpis), includeHistory=include_history,
              timeRange=time_range, systemHealth=summary.system_health)


# ---------- Predictions ----------
@api.get("/predictions")
def list_predictions():
    return ok([p.wire() for p in db.predictions], "Predictions retrieved successfully",
              total=len(db.predictions), modelVersion=mock_data.MODEL_VERSION)


@api.post("/predictions")
def generate_predictions(req:PredictionRequest):
    trains = db.trains if req.train_ids is None else [t for t in db.trains if t.id in req.train_ids]
    preds = [mock_data.predict(t) for t in trains]
    avg = sum(p.confidence or 0 for p in preds) / len(preds) if preds else 0
    return ok([p.wire() for p in preds], "Predictions generated successfully", total=len(preds),
              modelVersion=mock_data.MODEL_VERSION, averageConfidence=round(avg, 2))


@api.get("/predictions/{train_id}")
def get_prediction(train_id:str):
    train = db.train(train_id)
    if train is None: raise ApiError(404, f"Train {train_id} not found", "TRAIN_NOT_FOUND")
    return ok(mock_data.predict(train).wire(), "Prediction generated successfully")


# ---------- Simulation ----------
@api.post("/simulate")
def simulate(payload:WhatIfPayload):
    train = db.train(payload.train_id)
    if train is None: raise ApiError(404, f"Train {payload.train_id} not found", "TRAIN_NOT_FOUND")
    result = mock_data.simulate(train, payload)
    return ok(result.wire(), "Simulation completed successfully", trainId=payload.train_id,
              scenarioType="reroute_simulation" if payload.reroute_to else "delay_simulation")


# ---------- Audit ----------
def _split(v:str|None)->list[str]:
    return [x for x in (v or "").split(",") if x]


def _aware(d:datetime)->datetime:
    return d if d.tzinfo else d.replace(tzinfo=timezone.utc)


@api.get("/audit")
def list_audit(start_date:datetime|None=Query(None, alias="startDate"), end_date:datetime|None=Query(None, alias="endDate"),
               train_ids:str|None=Query(None, alias="trainIds"), actors:str|None=None, actions:str|None=None):
    logs = list(db.audit)
    ids, who, what = _split(train_ids), _split(actors), _split(actions)
    if start_date: logs = [l for l in logs if l.timestamp >= _aware(start_date)]
    if end_date: logs = [l for l in logs if l.timestamp <= _aware(end_date)]
    if ids: logs = [l for l in logs if l.train_id in ids]
    if who: logs = [l for l in logs if any(a in l.actor for a in who)]
    if what: logs = [l for l in logs if any(a in l.action for a in what)]
    logs.sort(key=lambda l: l.timestamp, reverse=True)
    return ok([l.wire() for l in logs], "Audit logs retrieved successfully", total=len(logs),
              filtered=len(logs) < len(db.audit), totalUnfiltered=len(db.audit))


@api.post("/audit")
def create_audit(entry:AuditEntry):
    log = AuditLog(id=mock_data.short_id("audit"), timestamp=utcnow(), **entry.model_dump())
    db.audit.insert(0, log)
    del db.audit[AUDIT_CAP:]
    logger.info("audit %s: %s by %s", log.id, log.action, log.actor)
    return ok({"id": log.id}, "Audit log created successfully", logId=log.id, totalLogs=len(db.audit))


@api.put("/audit")
def amend_audit(req:AuditAmendRequest):
    original = next((l for l in db.audit if l.id == req.log_id), None)
    if original is None: raise ApiError(404, "Audit log not found", "AUDIT_NOT_FOUND")
    amendment = AuditLog(id=mock_data.short_id("amendment"), timestamp=utcnow(), action="Audit Log Amendment",
                         actor="System Administrator", reason=req.updates.get("reason", "Audit log correction"),
                         details={"originalLogId": req.log_id, "amendments": req.updates, "originalEntry": original.wire()})
    db.audit.insert(0, amendment)
    return ok({"amendmentId": amendment.id}, "Audit log amendment created")


# ---------- Chat ----------
@api.get("/chat")
def chat_history(session_id:str|None=Query(None, alias="sessionId")):
    if not session_id: raise ApiError(400, "Session ID is required", "MISSING_SESSION_ID")
    msgs = db.chats.get(session_id, [])
    return ok([m.wire() for m in msgs], "Chat history retrieved successfully", sessionId=session_id, messageCount=len(msgs))


@api.post("/chat")
def chat(req:ChatRequest):
    if not req.session_id or not req.message:
        raise ApiError(400, "Session ID and message are required", "MISSING_REQUIRED_FIELDS")
    history = db.chats.setdefault(req.session_id, [])
    history.append(ChatMessage(id=req.message_id or mock_data.short_id("msg") + "-user", role="user", text=req.message))
    replies = mock_data.chat_reply(req.message, db.trains, db.kpis, db.recommendations)
    history.extend(replies)
    return ok([m.wire() for m in replies], "Chat response generated successfully", sessionId=req.session_id,
              responseCount=len(replies), intent=replies[0].intent or "general")


app.include_router(api)
