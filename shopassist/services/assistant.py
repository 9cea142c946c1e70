"""Message handling pipeline: resolve, merge, retrieve, filter, reply."""

import re
import uuid
from typing import Protocol

import structlog

from shopassist.models.schemas import (
    CatalogFailure,
    ChatResponse,
    ConversationIntent,
    Product,
    Session,
)
from shopassist.services.filters import apply_filters, carry_over, normalize_filters
from shopassist.services.resolvers import ResolverChain
from shopassist.services.responses import EMPTY_MESSAGE_REPLY, RESET_REPLY, compose, retrieval_failed
from shopassist.services.session_store import SessionStore

logger = structlog.get_logger()

_RESET_RE = re.compile(r"clear|reset", re.IGNORECASE)


class CandidateSource(Protocol):
    async def fetch_candidates(self, query: str) -> list[Product] | CatalogFailure: ...


def is_reset_command(message: str) -> bool:
    return _RESET_RE.search(message) is not None


class ShoppingAssistant:
    def __init__(self, resolvers: ResolverChain, catalog: CandidateSource, sessions: SessionStore) -> None:
        self.resolvers = resolvers
        self.catalog = catalog
        self.sessions = sessions

    async def handle_message(self, message: str | None, session_id: str | None = None) -> ChatResponse:
        text = (message or "").strip()
        if not text:
            return ChatResponse(reply=EMPTY_MESSAGE_REPLY, products=[], session_id=session_id)

        session_id = session_id or str(uuid.uuid4())
        structlog.contextvars.bind_contextvars(session_id=session_id)

        async with self.sessions.checkout(session_id) as session:
            self.sessions.append_history(session, "user", text)
            if is_reset_command(text):
                self.sessions.reset(session)
                logger.info("session_reset")
                response = ChatResponse(reply=RESET_REPLY, products=[], session_id=session_id)
            else:
                response = await self._respond(text, session)
            self.sessions.append_history(session, "assistant", response.reply)
        return response

    async def _respond(self, text: str, session: Session) -> ChatResponse:
        intent, source = await self.resolvers.resolve(text, session)
        intent = carry_over(intent, text, session.last_query)

        if isinstance(intent, ConversationIntent):
            logger.info("intent_resolved", resolver=source, type=intent.type)
            return ChatResponse(reply=intent.message, products=[], session_id=session.session_id)

        filters = normalize_filters(intent.filters)
        logger.info(
            "intent_resolved",
            resolver=source,
            type=intent.type,
            category=intent.category,
            filters=filters.present(),
        )
        # Recorded before retrieval so a failed search can still be refined.
        self.sessions.record_query(session, intent.category, filters)

        result = await self.catalog.fetch_candidates(intent.category)
        if isinstance(result, CatalogFailure):
            logger.warning("catalog_unavailable", error=result.message)
            self.sessions.record_results(session, [])
            return ChatResponse(reply=retrieval_failed(result.message), products=[], session_id=session.session_id)

        products = apply_filters(result, filters)
        self.sessions.record_results(session, products)
        logger.info("search_completed", candidates=len(result), matched=len(products))
        return ChatResponse(
            reply=compose(intent.category, filters, len(products), query=text),
            products=products,
            session_id=session.session_id,
        )
