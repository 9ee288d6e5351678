import logging

from railops.api.models import ChatSession, FilterState
from railops.store import (
    PERSISTED_FIELDS, AppStore, JsonFileStorage, MemoryStorage, PersistedState, StoreState, hydrate, snapshot,
)
from conftest import FakeTransport


def test_persisted_fields_are_exactly_the_durable_ones():
    assert set(PersistedState.model_fields) == set(PERSISTED_FIELDS)
    assert "chat_sessions" not in PERSISTED_FIELDS
    assert "audit_logs" not in PERSISTED_FIELDS


def test_hydrate_restores_persisted_fields_only(trains, recs):
    state = StoreState(trains=trains, recommendations=recs, selected_trains=["train-001"], loading=True,
                       error="boom", chat_sessions=[ChatSession(session_id="s")],
                       active_filters=FilterState(train_ids=["train-002"]))
    back = hydrate(snapshot(state))
    assert back.trains == trains
    assert back.recommendations == recs
    assert back.selected_trains == ["train-001"]
    assert back.active_filters.train_ids == ["train-002"]
    assert back.chat_sessions == []
    assert back.loading is False
    assert back.error is None


def test_hydrate_none_is_empty():
    assert hydrate(None) == StoreState()


def test_json_file_storage(tmp_path, trains):
    storage = JsonFileStorage(tmp_path / "nested" / "state.json")
    assert storage.load() is None
    storage.save(snapshot(StoreState(trains=trains)))
    assert storage.load().trains == trains


def test_corrupt_file_is_ignored(tmp_path, caplog):
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")
    with caplog.at_level(logging.ERROR):
        assert JsonFileStorage(path).load() is None
    assert "unreadable" in caplog.text


async def test_store_saves_after_commit_and_restores(fake, trains):
    storage = MemoryStorage()
    store = AppStore(transport=fake, storage=storage)
    await store.fetch_trains()
    store.set_selected_trains(["train-003"])
    assert storage.writes >= 3

    again = AppStore(transport=FakeTransport(), storage=storage)
    assert again.state.trains == trains
    assert again.state.selected_trains == ["train-003"]
    assert "trains" in again.state.last_updated
