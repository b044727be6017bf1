from __future__ import annotations

from typing import Callable, Optional

import streamlit as st

from catalog import default_catalog, load_catalog
from debug_log import configure_debug_log
from quote_config import Settings, load_settings
from quote_model import Quote
from quote_reducer import Action
from quote_session import QuoteSession
from snapshot_store import JsonFileKeyValueStore, SnapshotStore

SESSION_KEY = "_quote_session"


def build_quote_session(settings: Optional[Settings] = None) -> QuoteSession:
    """Session wired from settings: optional JSON catalog, snapshot file, debug log."""
    s = settings or load_settings()
    configure_debug_log(s.debug_log_path, s.debug_run_id)
    catalog = load_catalog(s.catalog_path) if s.catalog_path else default_catalog()
    return QuoteSession(catalog=catalog, store=SnapshotStore(JsonFileKeyValueStore(s.state_path)))


def get_quote_session(factory: Optional[Callable[[], QuoteSession]] = None) -> QuoteSession:
    """
    The QuoteSession for the current browser session.

    Streamlit reruns the script on every interaction, so the session lives in
    `st.session_state` and hydration from `st.query_params` happens exactly once. A rerun
    must never hydrate again over the user's first edit.
    """
    session = st.session_state.get(SESSION_KEY)
    if not isinstance(session, QuoteSession):
        session = (factory or build_quote_session)()
        st.session_state[SESSION_KEY] = session
    if not session.hydrated:
        session.hydrate(st.query_params)
    return session


def dispatch(action: Action, factory: Optional[Callable[[], QuoteSession]] = None) -> Quote:
    return get_quote_session(factory).dispatch(action)
