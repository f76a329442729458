"""Data access layer."""

from flowforge.dal.sessions import (
    CachedSessionStore,
    InMemorySessionStore,
    SessionStore,
    SqlSessionStore,
    build_session_store,
)

__all__ = [
    "CachedSessionStore",
    "InMemorySessionStore",
    "SessionStore",
    "SqlSessionStore",
    "build_session_store",
]
