import asyncio
import requests
import streamlit as st

from railops.config import get_api_base, settings
from railops.store import AppStore, JsonFileStorage

def server_root()->str:
    base = get_api_base().rstrip("/")
    return base[:-4] if base.endswith("/api") else base
def api_up()->bool:
    try:
        r = requests.get(f"{server_root()}/health", timeout=1.2); return r.ok
    except requests.RequestException: return False
def reset()->None:
    try: requests.post(f"{server_root()}/reset", timeout=3)
    except requests.RequestException: pass
def get_store()->AppStore:
    """One store per browser session, restored from the state file on first use."""
    if "store" not in st.session_state:
        st.session_state.store = AppStore(storage=JsonFileStorage(settings.STATE_FILE))
    return st.session_state.store
def run(coro):
    return asyncio.run(coro)
