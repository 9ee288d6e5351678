import asyncio

from railops.errors import TransportError
from railops.store import AppStore
from conftest import FakeTransport, env


async def test_fetch_trains_commits_collection(store, trains):
    await store.fetch_trains()
    s = store.state
    assert [t.id for t in s.trains] == [t.id for t in trains]
    assert s.loading is False
    assert s.error is None
    assert "trains" in s.last_updated


async def test_fetch_failure_sets_error_and_keeps_data(store, fake):
    await store.fetch_trains()
    before = store.state.trains
    fake.routes[("GET", "/trains")] = TransportError("HTTP error! status: 500", 500)
    await store.fetch_trains()
    assert store.state.error == "Failed to fetch trains"
    assert store.state.loading is False
    assert store.state.trains == before


async def test_next_action_clears_error(store, fake, trains):
    fake.routes[("GET", "/recommendations")] = TransportError("boom")
    await store.fetch_recommendations()
    assert store.state.error == "Failed to fetch recommendations"
    await store.fetch_trains()
    assert store.state.error is None


async def test_loading_is_true_while_in_flight(store, fake, trains):
    gate = asyncio.Event()
    seen = []

    async def slow(body, params):
        seen.append(store.state.loading)
        await gate.wait()
        return env([t.wire() for t in trains])

    fake.routes[("GET", "/trains")] = slow
    task = asyncio.create_task(store.fetch_trains())
    await asyncio.sleep(0)
    assert store.state.loading is True
    gate.set()
    await task
    assert seen == [True]
    assert store.state.loading is False


async def test_predictions_fail_soft(store, fake):
    await store.fetch_trains()
    fake.routes[("POST", "/predictions")] = TransportError("down")
    await store.fetch_predictions()
    assert store.state.predictions == []
    assert store.state.error is None


async def test_fetch_predictions_for_subset(store, fake):
    await store.fetch_trains()
    await store.fetch_predictions(["train-003"])
    _, _, body = fake.calls[-1]
    assert body["trainIds"] == ["train-003"]
    assert len(store.state.predictions) == 4


async def test_fetch_kpis_stores_summary(store, fake):
    await store.fetch_kpis(include_history=True, time_range="6h")
    s = store.state
    assert [k.name for k in s.kpis][0] == "Throughput"
    assert s.kpi_summary.delayed_trains == 2
    assert "kpis" in s.last_updated


async def test_fetch_audit_logs(store):
    await store.fetch_audit_logs()
    assert store.state.audit_logs[0].id == "audit-001"


async def test_generate_keeps_current_when_optimizer_is_down(loaded, fake):
    before = loaded.state.recommendations
    fake.routes[("POST", "/recommendations")] = TransportError("down")
    await loaded.generate_recommendations()
    assert loaded.state.recommendations == before
    assert loaded.state.loading is False


async def test_generate_replaces_recommendations(loaded, fake, recs):
    fresh = recs[0].model_copy(update={"id": "rec-new"})
    fake.routes[("POST", "/recommendations")] = env([fresh.wire(), *[r.wire() for r in recs]])
    await loaded.generate_recommendations()
    assert loaded.state.recommendations[0].id == "rec-new"
    _, _, body = fake.calls[-1]
    assert body["systemState"].trains == loaded.state.trains


def _racing_trains(trains):
    gates = [asyncio.Event(), asyncio.Event()]
    answers = [env([trains[0].wire()]), env([trains[1].wire()])]
    order = iter(range(2))

    async def handler(body, params):
        i = next(order)
        await gates[i].wait()
        return answers[i]
    return handler, gates


async def _race(store, gates):
    first = asyncio.create_task(store.fetch_trains())
    second = asyncio.create_task(store.fetch_trains())
    await asyncio.sleep(0)
    gates[1].set()
    await second
    gates[0].set()
    await first


async def test_last_settled_wins_without_guard(trains):
    handler, gates = _racing_trains(trains)
    store = AppStore(transport=FakeTransport({("GET", "/trains"): handler}), stale_guard=False)
    await _race(store, gates)
    assert [t.id for t in store.state.trains] == [trains[0].id]
    assert store.state.loading is False


async def test_latest_issued_wins_with_guard(trains):
    handler, gates = _racing_trains(trains)
    store = AppStore(transport=FakeTransport({("GET", "/trains"): handler}))
    await _race(store, gates)
    assert [t.id for t in store.state.trains] == [trains[1].id]
    assert store.state.loading is False


async def test_guard_is_per_collection(store, fake, recs):
    gate = asyncio.Event()

    async def slow(body, params):
        await gate.wait()
        return env([r.wire() for r in recs])

    fake.routes[("GET", "/recommendations")] = slow
    pending = asyncio.create_task(store.fetch_recommendations())
    await asyncio.sleep(0)
    await store.fetch_trains()
    gate.set()
    await pending
    assert len(store.state.recommendations) == 1
    assert len(store.state.trains) == 4


async def test_listeners_see_every_commit(store):
    seen = []
    unsubscribe = store.subscribe(lambda s: seen.append(s.loading))
    await store.fetch_trains()
    assert seen == [True, False]
    unsubscribe()
    await store.fetch_trains()
    assert len(seen) == 2


async def test_setters(store, trains):
    store.set_trains(trains[:1])
    store.set_selected_trains(["train-001"])
    store.set_error("custom")
    store.set_loading(True)
    s = store.state
    assert len(s.trains) == 1 and "trains" in s.last_updated
    assert s.selected_trains == ["train-001"]
    assert s.error == "custom"
    assert s.loading is True
