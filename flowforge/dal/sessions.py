"""Session persistence.

``SessionStore`` is the narrow load/save/delete surface the conversation
service depends on. Sessions are stored as JSON documents, so every load
returns an independent copy; writes are last-write-wins.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy import delete as sa_delete
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from flowforge.exceptions import DALError
from flowforge.graph.state import ConversationSession
from flowforge.settings import Settings, get_settings
from flowforge.storage.entities import ConversationSessionRecord

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    async def load(self, session_id: str) -> ConversationSession | None: ...

    async def save(self, session: ConversationSession) -> None: ...

    async def delete(self, session_id: str) -> None: ...


class InMemorySessionStore:
    """Process-local store, for development and tests."""

    def __init__(self) -> None:
        self._documents: dict[str, str] = {}

    async def load(self, session_id: str) -> ConversationSession | None:
        document = self._documents.get(session_id)
        if document is None:
            return None
        return ConversationSession.model_validate_json(document)

    async def save(self, session: ConversationSession) -> None:
        self._documents[session.id] = session.model_dump_json()

    async def delete(self, session_id: str) -> None:
        self._documents.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._documents)


class SqlSessionStore:
    """Sessions persisted in the ``conversation_session`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None):
        self._session_factory = session_factory

    def _factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            from flowforge.storage import get_session_factory

            self._session_factory = get_session_factory()
        return self._session_factory

    async def load(self, session_id: str) -> ConversationSession | None:
        try:
            async with self._factory()() as db:
                result = await db.execute(
                    select(ConversationSessionRecord).where(ConversationSessionRecord.id == session_id)
                )
                record = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DALError(f"Failed to load session {session_id}: {e}") from e
        if record is None:
            return None
        return ConversationSession.model_validate(record.state)

    async def save(self, session: ConversationSession) -> None:
        record = ConversationSessionRecord(
            id=session.id,
            user_id=session.user_id,
            phase=session.phase.value,
            title=session.title,
            state=session.model_dump(mode="json"),
        )
        try:
            async with self._factory()() as db:
                await db.merge(record)
                await db.commit()
        except SQLAlchemyError as e:
            raise DALError(f"Failed to save session {session.id}: {e}") from e

    async def delete(self, session_id: str) -> None:
        try:
            async with self._factory()() as db:
                await db.execute(
                    sa_delete(ConversationSessionRecord).where(ConversationSessionRecord.id == session_id)
                )
                await db.commit()
        except SQLAlchemyError as e:
            raise DALError(f"Failed to delete session {session_id}: {e}") from e


@dataclass
class _CacheEntry:
    document: str
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class CachedSessionStore:
    """Write-through TTL cache in front of another store.

    Entries expire ``ttl_seconds`` after they were written or loaded; an
    expired entry is re-read from the backing store.
    """

    def __init__(
        self,
        backing: SessionStore,
        ttl_seconds: float = 60.0,
        time_func: Callable[[], float] = time.monotonic,
    ):
        self.backing = backing
        self.ttl_seconds = ttl_seconds
        self._time = time_func
        self._entries: dict[str, _CacheEntry] = {}

    def _remember(self, session: ConversationSession) -> None:
        self._entries[session.id] = _CacheEntry(
            document=session.model_dump_json(),
            expires_at=self._time() + self.ttl_seconds,
        )

    async def load(self, session_id: str) -> ConversationSession | None:
        entry = self._entries.get(session_id)
        if entry is not None and not entry.is_expired(self._time()):
            return ConversationSession.model_validate_json(entry.document)
        self._entries.pop(session_id, None)

        session = await self.backing.load(session_id)
        if session is not None:
            self._remember(session)
        return session

    async def save(self, session: ConversationSession) -> None:
        await self.backing.save(session)
        self._remember(session)

    async def delete(self, session_id: str) -> None:
        await self.backing.delete(session_id)
        self._entries.pop(session_id, None)

    def invalidate(self, session_id: str | None = None) -> None:
        if session_id is None:
            self._entries.clear()
        else:
            self._entries.pop(session_id, None)


def build_session_store(settings: Settings | None = None) -> SessionStore:
    """Store selected by ``SESSION_STORE``; database stores get a TTL cache."""
    settings = settings or get_settings()
    if settings.session_store == "memory":
        return InMemorySessionStore()

    store: SessionStore = SqlSessionStore()
    if settings.session_cache_ttl_seconds > 0:
        store = CachedSessionStore(store, ttl_seconds=settings.session_cache_ttl_seconds)
    logger.info("Using database session store (cache ttl %.0fs)", settings.session_cache_ttl_seconds)
    return store
