"""
Serialization boundary between the live store state and durable storage.

Only the fields in PERSISTED_FIELDS survive a restart. Chat sessions stay
private to the running process and audit logs are always fetched fresh.
"""

import logging
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ValidationError

from railops.api.models import KPI, FilterState, Prediction, Recommendation, Train
from .state import StoreState

logger = logging.getLogger(__name__)

PERSISTED_FIELDS = ("trains", "recommendations", "predictions", "kpis", "selected_trains", "active_filters", "last_updated")


class PersistedState(BaseModel):
    trains: list[Train] = []
    recommendations: list[Recommendation] = []
    predictions: list[Prediction] = []
    kpis: list[KPI] = []
    selected_trains: list[str] = []
    active_filters: FilterState = FilterState()
    last_updated: dict[str, datetime] = {}


def snapshot(state:StoreState)->PersistedState:
    return PersistedState(**{f: getattr(state, f) for f in PERSISTED_FIELDS})


def hydrate(persisted:PersistedState|None)->StoreState:
    if persisted is None:
        return StoreState()
    return StoreState().model_copy(update={f: getattr(persisted, f) for f in PERSISTED_FIELDS})


class MemoryStorage:
    def __init__(self, initial:PersistedState|None=None):
        self.saved = initial
        self.writes = 0

    def load(self)->PersistedState|None:
        return self.saved

    def save(self, persisted:PersistedState):
        self.saved = persisted
        self.writes += 1


class JsonFileStorage:
    """Persists the snapshot as a JSON document on disk."""

    def __init__(self, path:str|Path):
        self.path = Path(path)

    def load(self)->PersistedState|None:
        if not self.path.exists():
            return None
        try:
            return PersistedState.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.error("Ignoring unreadable store file %s: %s", self.path, e)
            return None

    def save(self, persisted:PersistedState):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(persisted.model_dump_json(), encoding="utf-8")
        except OSError as e:
            logger.error("Could not persist store to %s: %s", self.path, e)
