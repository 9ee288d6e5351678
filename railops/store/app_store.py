"""
Application store: the single owner of dashboard state.

Actions talk to the backend through the adapters and commit results as one
replacement of the frozen ``StoreState``. Listeners run after every commit and
the persisted subset is handed to storage at the same point.
"""

import logging
import uuid
from typing import Any, Callable, Optional

from pydantic import ValidationError

from railops.adapters import Adapters, Transport, create_audit_log, make_adapters
from railops.adapters.simulator import is_failed
from railops.api.models import (
    KPI, AuditEntry, AuditLog, ChatMessage, ChatSession, FilterState, KpiPoint, KpiSummary, Prediction,
    Recommendation, SimulationResult, SystemState, Train, WhatIfPayload, utcnow,
)
from railops.config import settings
from railops.errors import InvalidTransitionError, NotFoundError, RailOpsError, TransportError
from .persistence import hydrate, snapshot
from .state import StoreState

logger = logging.getLogger(__name__)

CHAT_ERROR_TEXT = "Sorry, I encountered an error. Please try again."

Listener = Callable[[StoreState], None]


def _millis()->int:
    return int(utcnow().timestamp() * 1000)


def _trains(d)->list[Train]:
    return [Train.model_validate(t) for t in d]


def _recs(d)->list[Recommendation]:
    return [Recommendation.model_validate(r) for r in d]


class AppStore:
    def __init__(self, transport:Transport|None=None, adapters:Adapters|None=None, storage=None,
                 actor:str|None=None, stale_guard:bool=True):
        self.transport = transport or Transport()
        self.adapters = adapters or make_adapters(self.transport)
        self.storage = storage
        self.actor = actor or settings.ACTOR
        self.stale_guard = stale_guard
        self._listeners: list[Listener] = []
        self._generations: dict[str, int] = {}
        self._deciding: set[str] = set()
        self._state = hydrate(storage.load()) if storage is not None else StoreState()

    @property
    def state(self)->StoreState:
        return self._state

    def subscribe(self, listener:Listener)->Callable[[], None]:
        """Register ``listener``; the returned callable removes it again."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _commit(self, **delta):
        self._state = self._state.model_copy(update=delta)
        if self.storage is not None:
            self.storage.save(snapshot(self._state))
        for listener in list(self._listeners):
            listener(self._state)

    def _stamped(self, *collections:str)->dict:
        now = utcnow()
        return {**self._state.last_updated, **{c: now for c in collections}}

    # ---------- fetch ----------
    def _issue(self, collection:str)->int:
        token = self._generations.get(collection, 0) + 1
        self._generations[collection] = token
        return token

    def _is_stale(self, collection:str, token:int)->bool:
        return self.stale_guard and self._generations.get(collection) != token

    async def _fetch(self, collection:str, call, commit:Callable[[Any], dict], message:str):
        token = self._issue(collection)
        self._commit(loading=True, error=None)
        try:
            delta = commit(await call)
        except TransportError as e:
            if self._is_stale(collection, token):
                logger.info("Dropping stale %s failure: %s", collection, e)
                return
            logger.error("%s: %s", message, e)
            self._commit(loading=False, error=message)
            return
        except (RailOpsError, ValidationError):
            self._commit(loading=False, error=message)
            raise
        if self._is_stale(collection, token):
            logger.info("Dropping stale %s response", collection)
            return
        if delta:
            self._commit(**delta, loading=False, last_updated=self._stamped(collection))
        else:
            self._commit(loading=False)

    async def fetch_trains(self):
        await self._fetch("trains", self.transport.get("/trains"),
                          lambda env: {"trains": _trains(env["data"])}, "Failed to fetch trains")

    async def fetch_recommendations(self):
        await self._fetch("recommendations", self.transport.get("/recommendations"),
                          lambda env: {"recommendations": _recs(env["data"])}, "Failed to fetch recommendations")

    async def generate_recommendations(self):
        """Ask the optimizer for fresh recommendations; an empty answer keeps the current ones."""
        s = self._state
        system = SystemState(trains=s.trains, recommendations=s.recommendations, kpis=s.kpis)
        await self._fetch("recommendations", self.adapters.optimizer.get_recommendations(system),
                          lambda recs: {"recommendations": recs} if recs else {}, "Failed to generate recommendations")

    async def fetch_predictions(self, train_ids:list[str]|None=None):
        trains = self._state.trains
        if train_ids is not None:
            trains = [t for t in trains if t.id in train_ids]
        await self._fetch("predictions", self.adapters.prediction.get_predictions_for_trains(trains),
                          lambda preds: {"predictions": preds}, "Failed to fetch predictions")

    async def fetch_kpis(self, include_history:bool=False, time_range:str="1h"):
        params = {"includeHistory": str(include_history).lower(), "timeRange": time_range}

        def commit(env):
            d = env["data"]
            delta = {"kpis": [KPI.model_validate(k) for k in d["kpis"]]}
            if d.get("summary"):
                delta["kpi_summary"] = KpiSummary.model_validate(d["summary"])
            if d.get("history"):
                delta["kpi_history"] = {m: [KpiPoint.model_validate(p) for p in pts] for m, pts in d["history"].items()}
            return delta
        await self._fetch("kpis", self.transport.get("/kpis", params=params), commit, "Failed to fetch KPIs")

    async def fetch_audit_logs(self, filters:FilterState|None=None):
        await self._fetch("audit_logs", self.adapters.audit.get_audit(filters),
                          lambda logs: {"audit_logs": logs}, "Failed to fetch audit logs")

    # ---------- decisions ----------
    def _pending(self, rec_id:str)->Recommendation:
        rec = next((r for r in self._state.recommendations if r.id == rec_id), None)
        if rec is None:
            raise NotFoundError(f"Recommendation {rec_id} not found")
        if rec.status != "pending":
            raise InvalidTransitionError(f"Recommendation {rec_id} is already {rec.status}")
        if rec_id in self._deciding:
            raise InvalidTransitionError(f"Recommendation {rec_id} already has a decision in flight")
        return rec

    async def _decide(self, rec_id:str, entry:AuditEntry, changes:dict, message:str):
        # claimed before the first await
        self._deciding.add(rec_id)
        self._commit(loading=True, error=None)
        try:
            log_id = await self.adapters.audit.post_audit(entry)
            current = next((r for r in self._state.recommendations if r.id == rec_id), None)
            if current is not None and current.status != "pending":
                raise InvalidTransitionError(f"Recommendation {rec_id} became {current.status} while deciding")
            log = AuditLog(id=log_id or f"audit-{_millis()}", timestamp=utcnow(), **entry.model_dump())
            recs = [r.model_copy(update=changes) if r.id == rec_id else r for r in self._state.recommendations]
            self._commit(recommendations=recs, audit_logs=[log, *self._state.audit_logs], loading=False)
        except TransportError:
            self._commit(loading=False, error=message)
            raise
        finally:
            self._deciding.discard(rec_id)
            if self._state.loading:
                self._commit(loading=False)
        logger.info("%s: %s", entry.action, rec_id)

    async def accept_recommendation(self, rec_id:str):
        rec = self._pending(rec_id)
        entry = create_audit_log("Recommendation Accepted", self.actor,
                                 {"recommendationId": rec.id, "action": rec.action},
                                 train_id=rec.train_id, rec_id=rec.id, reason="User accepted AI recommendation")
        await self._decide(rec.id, entry, {"status": "accepted"}, "Failed to accept recommendation")

    async def override_recommendation(self, rec_id:str, alt_id:str):
        rec = self._pending(rec_id)
        alt = next((a for a in rec.alternatives if a.id == alt_id), None)
        if alt is None:
            raise NotFoundError(f"Alternative {alt_id} not found on recommendation {rec_id}")
        entry = create_audit_log("Recommendation Overridden", self.actor,
                                 {"recommendationId": rec.id, "alternativeId": alt.id,
                                  "originalAction": rec.action, "selectedAction": alt.action},
                                 train_id=rec.train_id, rec_id=rec.id, reason=f"User selected alternative: {alt.action}")
        await self._decide(rec.id, entry, {"status": "accepted", "action": alt.action},
                           "Failed to override recommendation")

    async def reject_recommendation(self, rec_id:str, reason:str):
        rec = self._pending(rec_id)
        entry = create_audit_log("Recommendation Rejected", self.actor,
                                 {"recommendationId": rec.id, "action": rec.action},
                                 train_id=rec.train_id, rec_id=rec.id, reason=reason)
        await self._decide(rec.id, entry, {"status": "rejected"}, "Failed to reject recommendation")

    # ---------- simulation ----------
    async def run_simulation(self, payload:WhatIfPayload)->SimulationResult:
        self._commit(loading=True, error=None)
        try:
            result = await self.adapters.simulator.run_what_if_scenario(payload)
            entry = create_audit_log("What-If Simulation Executed", self.actor,
                                     {"scenario": payload.wire(),
                                      "results": {"scenarioId": result.scenario_id,
                                                  "projectedKPIs": result.projected_kpis.wire()}},
                                     train_id=payload.train_id,
                                     reason=f"Simulated scenario: {payload.scenario_name or 'Unnamed scenario'}")
            if is_failed(result):
                entry = entry.model_copy(update={"outcome": "failure"})
            try:
                log_id = await self.adapters.audit.post_audit(entry)
            except TransportError as e:
                logger.warning("Simulation %s ran but was not audited: %s", result.scenario_id, e)
                return result
            log = AuditLog(id=log_id or f"audit-{_millis()}", timestamp=utcnow(), **entry.model_dump())
            self._commit(audit_logs=[log, *self._state.audit_logs], loading=False)
            return result
        finally:
            if self._state.loading:
                self._commit(loading=False)

    # ---------- chat ----------
    def create_chat_session(self)->str:
        taken = {c.session_id for c in self._state.chat_sessions}
        session_id = f"session-{_millis()}-{uuid.uuid4().hex[:8]}"
        while session_id in taken:
            session_id = f"session-{_millis()}-{uuid.uuid4().hex[:8]}"
        self._commit(chat_sessions=[*self._state.chat_sessions, ChatSession(session_id=session_id)])
        return session_id

    def get_chat_session(self, session_id:str)->Optional[ChatSession]:
        return next((c for c in self._state.chat_sessions if c.session_id == session_id), None)

    def _update_session(self, session_id:str, merge:Callable[[list[ChatMessage]], list[ChatMessage]]):
        now = utcnow()
        sessions, found = [], False
        for c in self._state.chat_sessions:
            if c.session_id == session_id:
                found = True
                c = c.model_copy(update={"messages": merge(c.messages), "last_active": now})
            sessions.append(c)
        if not found:
            sessions.append(ChatSession(session_id=session_id, messages=merge([]), created_at=now, last_active=now))
        self._commit(chat_sessions=sessions)

    def _append(self, session_id:str, messages:list[ChatMessage]):
        def merge(current):
            seen = {m.id for m in current}
            fresh = list({m.id: m for m in messages if m.id not in seen}.values())
            return [*current, *fresh]
        self._update_session(session_id, merge)

    async def send_chat_message(self, session_id:str, text:str):
        user = ChatMessage(id=f"msg-{_millis()}-{uuid.uuid4().hex[:8]}", role="user", text=text)
        self._append(session_id, [user])
        try:
            replies = await self.adapters.chatbot.send_chat_message(session_id, text, message_id=user.id)
        except (RailOpsError, ValidationError) as e:
            logger.error("Chat reply for session %s failed: %s", session_id, e)
            replies = [ChatMessage(id=f"msg-{_millis()}-{uuid.uuid4().hex[:8]}-error", role="assistant",
                                   text=CHAT_ERROR_TEXT)]
        self._append(session_id, replies)

    async def restore_chat_session(self, session_id:str)->ChatSession:
        """Rebuild the local session in server order; messages the server lacks stay at the end."""
        history = await self.adapters.chatbot.get_chat_history(session_id)

        def merge(current):
            server = list({m.id: m for m in history}.values())
            known = {m.id for m in server}
            return [*server, *(m for m in current if m.id not in known)]
        self._update_session(session_id, merge)
        return self.get_chat_session(session_id)

    # ---------- plain setters ----------
    def set_selected_trains(self, train_ids:list[str]):
        self._commit(selected_trains=list(train_ids))

    def set_active_filters(self, filters:FilterState):
        self._commit(active_filters=filters)

    def set_error(self, error:str|None):
        self._commit(error=error)

    def set_loading(self, loading:bool):
        self._commit(loading=loading)

    def set_trains(self, trains:list[Train]):
        self._commit(trains=list(trains), last_updated=self._stamped("trains"))

    def set_recommendations(self, recs:list[Recommendation]):
        self._commit(recommendations=list(recs), last_updated=self._stamped("recommendations"))

    def set_predictions(self, preds:list[Prediction]):
        self._commit(predictions=list(preds), last_updated=self._stamped("predictions"))

    def set_kpis(self, kpis:list[KPI]):
        self._commit(kpis=list(kpis), last_updated=self._stamped("kpis"))

    def add_audit_log(self, log:AuditLog):
        self._commit(audit_logs=[log, *self._state.audit_logs])
