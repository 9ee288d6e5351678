import inspect

import pytest

from railops.api import app as mock_app
from railops.errors import TransportError
from railops.store import AppStore, MemoryStorage
from railops.utils import data as seeds


def env(data, **extra)->dict:
    return {"data": data, "success": True, "message": "ok", **extra}


class FakeTransport:
    """Route table keyed by (method, path). Values are returned as-is, raised if they are
    exceptions, or called with (body, params) if callable (sync or async)."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    async def request(self, method, path, body=None, params=None, headers=None):
        self.calls.append((method, path, body))
        handler = self.routes.get((method, path))
        if handler is None:
            raise TransportError("HTTP error! status: 404", 404)
        if isinstance(handler, Exception):
            raise handler
        if callable(handler):
            result = handler(body, params)
            if inspect.isawaitable(result):
                result = await result
            return result
        return handler

    async def get(self, path, params=None, headers=None):
        return await self.request("GET", path, params=params, headers=headers)

    async def post(self, path, body=None, headers=None):
        return await self.request("POST", path, body=body, headers=headers)

    async def put(self, path, body=None, headers=None):
        return await self.request("PUT", path, body=body, headers=headers)

    async def delete(self, path, headers=None):
        return await self.request("DELETE", path, headers=headers)


@pytest.fixture
def trains():
    return seeds.load_trains()


@pytest.fixture
def recs():
    return seeds.load_recommendations()


@pytest.fixture
def fake(trains, recs):
    kpis = seeds.load_kpis()
    return FakeTransport({
        ("GET", "/trains"): env([t.wire() for t in trains]),
        ("GET", "/recommendations"): env([r.wire() for r in recs]),
        ("GET", "/kpis"): env({"kpis": [k.wire() for k in kpis], "networkStatus": "normal",
                               "summary": {"totalTrains": 4, "delayedTrains": 2, "activeRecommendations": 1,
                                           "systemHealth": "good"}}),
        ("POST", "/predictions"): env([p.wire() for p in seeds.load_predictions()]),
        ("POST", "/audit"): env({"id": "audit-srv-1"}),
        ("GET", "/audit"): env([l.wire() for l in seeds.load_audit_logs()]),
    })


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(fake, storage):
    return AppStore(transport=fake, storage=storage, actor="Controller: Test")


@pytest.fixture
async def loaded(store):
    await store.fetch_trains()
    await store.fetch_recommendations()
    return store


@pytest.fixture
def mock_db():
    mock_app.db.reset()
    yield mock_app.db
    mock_app.db.reset()
