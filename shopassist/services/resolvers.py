"""Intent resolvers: a model-backed one and a deterministic rule-based one.

``ResolverChain`` tries the configured resolvers in order and always ends
with the rule-based resolver, which never fails.
"""

import asyncio
import json
import re
from typing import Any, Protocol, Sequence

import structlog
from pydantic import ValidationError

from shopassist.models.schemas import (
    ConversationIntent,
    LastQuery,
    ProductSearchIntent,
    ResolvedIntent,
    Session,
    resolved_intent_adapter,
)
from shopassist.services.extractors import detect_category, extract_filters, is_refinement
from shopassist.services.filters import merge_filters, normalize_filters
from shopassist.services.llm import Completer, ModelUnavailable
from shopassist.services.responses import CONVERSATION_PROMPT

logger = structlog.get_logger()


class ResolutionFailed(Exception):
    """A resolver could not turn the message into an intent."""


class IntentResolver(Protocol):
    name: str

    async def resolve(self, message: str, session: Session) -> ResolvedIntent: ...


# -- Rule-based --


class RuleBasedResolver:
    name = "rules"

    def __init__(self, conversation_prompt: str = CONVERSATION_PROMPT) -> None:
        self.conversation_prompt = conversation_prompt

    def classify(self, message: str, last_query: LastQuery | None) -> ResolvedIntent:
        text = message.lower()

        if last_query is not None and is_refinement(text):
            filters = merge_filters(last_query.filters, extract_filters(text))
            return ProductSearchIntent(category=last_query.category, filters=filters)

        category = detect_category(text)
        if category:
            return ProductSearchIntent(category=category, filters=extract_filters(text))

        return ConversationIntent(message=self.conversation_prompt)

    async def resolve(self, message: str, session: Session) -> ResolvedIntent:
        return self.classify(message, session.last_query)


# -- Model-backed --

SYSTEM_PROMPT = """You classify messages sent to a shopping assistant.

Reply with a single JSON object and nothing else, in one of two shapes:

1. Small talk, greetings or questions that are not a product request:
   {"type": "conversation", "message": "<short friendly reply>"}

2. A product request:
   {"type": "product_search", "category": "<singular lowercase product noun>",
    "filters": {"price_max": <number>, "price_min": <number>, "brand": "<brand>", "color": "<color>"}}
   Omit any filter the user did not state. Prices are in rupees; expand "30k" to 30000
   and "1 lakh" to 100000.

When the message starts with "Previous search was for X", the user is refining that
search: keep category X unless they clearly ask for something else.

Examples:
"hello" -> {"type": "conversation", "message": "Hi! What are you shopping for today?"}
"show me laptops under 50000" -> {"type": "product_search", "category": "laptop", "filters": {"price_max": 50000}}
"samsung phones above 20k" -> {"type": "product_search", "category": "phone", "filters": {"price_min": 20000, "brand": "Samsung"}}
"Previous search was for phone. Now user says: black" -> {"type": "product_search", "category": "phone", "filters": {"color": "Black"}}
"""

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)


def build_prompt(message: str, last_query: LastQuery | None) -> str:
    if last_query is not None and is_refinement(message):
        return f"Previous search was for {last_query.category}. Now user says: {message}"
    return message


def strip_code_fence(text: str) -> str:
    """Return the contents of the first fenced block, or the text itself."""
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def parse_reply(reply: str) -> ResolvedIntent:
    """Turn the model's raw reply into an intent or raise ``ResolutionFailed``."""
    try:
        data: Any = json.loads(strip_code_fence(reply))
    except json.JSONDecodeError as exc:
        raise ResolutionFailed(f"reply is not JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ResolutionFailed("reply is not a JSON object")

    if data.get("type") == "product_search":
        data = dict(data)
        data["category"] = str(data.get("category") or "").strip().lower()
        data["filters"] = normalize_filters(data.get("filters")).model_dump()

    try:
        return resolved_intent_adapter.validate_python(data)
    except ValidationError as exc:
        raise ResolutionFailed(f"unrecognised reply shape: {exc.error_count()} errors") from exc


class ModelResolver:
    name = "model"

    def __init__(self, completer: Completer | None, timeout: float = 10.0) -> None:
        self._completer = completer
        self._timeout = timeout

    async def resolve(self, message: str, session: Session) -> ResolvedIntent:
        if self._completer is None:
            raise ResolutionFailed("model resolver is not configured")

        prompt = build_prompt(message, session.last_query)
        try:
            reply = await asyncio.wait_for(
                self._completer.complete(prompt, system=SYSTEM_PROMPT),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            raise ResolutionFailed("model call timed out") from exc
        except ModelUnavailable as exc:
            raise ResolutionFailed(str(exc)) from exc

        return parse_reply(reply)


# -- Chain --


class ResolverChain:
    def __init__(self, resolvers: Sequence[IntentResolver], fallback: RuleBasedResolver | None = None):
        self._resolvers = list(resolvers)
        self._fallback = fallback or RuleBasedResolver()

    @property
    def names(self) -> list[str]:
        return [r.name for r in self._resolvers] + [self._fallback.name]

    async def resolve(self, message: str, session: Session) -> tuple[ResolvedIntent, str]:
        """Return the first successful intent and the name of its resolver."""
        for resolver in self._resolvers:
            try:
                return await resolver.resolve(message, session), resolver.name
            except ResolutionFailed as exc:
                logger.warning("resolver_failed", resolver=resolver.name, reason=str(exc))
        return await self._fallback.resolve(message, session), self._fallback.name
