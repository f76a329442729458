"""Unit-test conftest: DB isolation safety net.

Any unit test that reaches the real database engine fails immediately
instead of hanging on a Postgres connection. Tests that need a session
store use ``InMemorySessionStore`` or inject a session factory.
"""

from __future__ import annotations

import pytest

import flowforge.storage as _storage_mod


@pytest.fixture(autouse=True)
def _db_guard(monkeypatch: pytest.MonkeyPatch) -> None:
    def _guarded(*args, **kwargs):
        raise RuntimeError(
            "Unit test attempted a real DB connection. "
            "Use InMemorySessionStore or inject a session factory."
        )

    monkeypatch.setattr(_storage_mod, "_engine", None)
    monkeypatch.setattr(_storage_mod, "_session_factory", None)
    monkeypatch.setattr(_storage_mod, "get_engine", _guarded)
    monkeypatch.setattr(_storage_mod, "get_session_factory", _guarded)
