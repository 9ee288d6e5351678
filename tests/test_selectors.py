from datetime import timedelta

from railops.api.models import AuditLog, ChatSession, utcnow
from railops.store import StoreState, selectors


def test_lookups(trains, recs):
    s = StoreState(trains=trains, recommendations=recs)
    assert selectors.train_by_id(s, "train-002").number == "HST-1205"
    assert selectors.train_by_id(s, "nope") is None
    assert [r.id for r in selectors.recommendations_by_train(s, "train-001")] == ["rec-001"]
    assert selectors.recommendations_by_train(s, "train-004") == []


def test_delayed_and_pending(trains, recs):
    s = StoreState(trains=trains, recommendations=[recs[0], recs[0].model_copy(update={"id": "r2", "status": "rejected"})])
    assert [t.id for t in selectors.delayed_trains(s)] == ["train-001", "train-003"]
    assert [r.id for r in selectors.pending_recommendations(s)] == ["rec-001"]


def test_recent_audit_logs_limit():
    logs = [AuditLog(id=f"a{i}", timestamp=utcnow(), action="x", actor="y") for i in range(15)]
    s = StoreState(audit_logs=logs)
    assert len(selectors.recent_audit_logs(s)) == 10
    assert selectors.recent_audit_logs(s, 3)[0].id == "a0"


def test_active_chat_session_is_most_recent():
    now = utcnow()
    s = StoreState(chat_sessions=[ChatSession(session_id="old", last_active=now - timedelta(minutes=5)),
                                  ChatSession(session_id="new", last_active=now)])
    assert selectors.active_chat_session(s).session_id == "new"
    assert selectors.active_chat_session(StoreState()) is None
