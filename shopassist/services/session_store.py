"""In-memory session store with inactivity eviction.

Sessions live for the lifetime of the process only. Requests take a lease
on their session through :meth:`SessionStore.checkout`; the periodic sweep
never evicts a leased session.

Concurrent requests for the *same* session are not serialised. Chat UIs
are effectively single-writer per session, so the last write to
``last_query``/``last_results`` simply wins.
"""

import asyncio
import time
from collections import Counter
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, MutableMapping

import structlog

from shopassist.models.schemas import Filters, HistoryEntry, LastQuery, Product, Session

logger = structlog.get_logger()

Clock = Callable[[], float]


class SessionStore:
    def __init__(
        self,
        ttl_seconds: float = 3600,
        max_history: int = 50,
        backing: MutableMapping[str, Session] | None = None,
        clock: Clock = time.time,
    ) -> None:
        self._sessions: MutableMapping[str, Session] = backing if backing is not None else {}
        self._leases: Counter[str] = Counter()
        self._ttl = ttl_seconds
        self._max_history = max_history
        self._clock = clock

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            now = self._clock()
            session = Session(session_id=session_id, created_at=now, updated_at=now)
            self._sessions[session_id] = session
            logger.debug("session_created", session_id=session_id)
        return session

    @asynccontextmanager
    async def checkout(self, session_id: str) -> AsyncIterator[Session]:
        """Lease a session (creating it if needed) for one request."""
        session = self.get_or_create(session_id)
        self._leases[session_id] += 1
        try:
            yield session
        finally:
            self._leases[session_id] -= 1
            if self._leases[session_id] <= 0:
                del self._leases[session_id]

    def list_sessions(self, limit: int = 20, offset: int = 0) -> list[Session]:
        """Sessions ordered by most recent activity."""
        ordered = sorted(self._sessions.values(), key=lambda s: s.updated_at, reverse=True)
        return ordered[offset : offset + limit]

    def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    # -- Mutations used by the assistant pipeline --

    def record_query(self, session: Session, category: str, filters: Filters) -> None:
        now = self._clock()
        session.last_query = LastQuery(category=category, filters=filters, timestamp=now)
        session.updated_at = now

    def record_results(self, session: Session, products: list[Product]) -> None:
        session.last_results = list(products)

    def append_history(self, session: Session, role: str, text: str) -> None:
        now = self._clock()
        session.history.append(HistoryEntry(role=role, text=text, timestamp=now))
        session.updated_at = now
        if self._max_history > 0 and len(session.history) > self._max_history:
            del session.history[: len(session.history) - self._max_history]

    def reset(self, session: Session) -> None:
        session.last_query = None
        session.last_results = []

    # -- Eviction --

    def evict_expired(self) -> list[str]:
        """Drop idle, unleased sessions. Returns the evicted ids."""
        cutoff = self._clock() - self._ttl
        expired = [
            session_id
            for session_id, session in list(self._sessions.items())
            if session.updated_at < cutoff and not self._leases.get(session_id)
        ]
        for session_id in expired:
            self._sessions.pop(session_id, None)
        if expired:
            logger.info("sessions_evicted", count=len(expired))
        return expired

    async def run_sweeper(self, interval_seconds: float) -> None:
        """Evict expired sessions every ``interval_seconds`` until cancelled."""
        while True:
            await asyncio.sleep(interval_seconds)
            self.evict_expired()

    def __len__(self) -> int:
        return len(self._sessions)
