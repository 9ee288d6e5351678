from .app_store import AppStore
from .persistence import PERSISTED_FIELDS, JsonFileStorage, MemoryStorage, PersistedState, hydrate, snapshot
from .state import StoreState

__all__ = ["AppStore", "JsonFileStorage", "MemoryStorage", "PERSISTED_FIELDS", "PersistedState", "StoreState",
           "hydrate", "snapshot"]
