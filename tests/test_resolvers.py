"""Tests for the rule-based resolver, the model-backed resolver and the chain."""

import json

import pytest

from conftest import FakeCompleter, make_session
from shopassist.models.schemas import ConversationIntent, Filters, LastQuery, ProductSearchIntent
from shopassist.services.llm import ModelUnavailable
from shopassist.services.resolvers import (
    ModelResolver,
    ResolutionFailed,
    ResolverChain,
    RuleBasedResolver,
    build_prompt,
    parse_reply,
    strip_code_fence,
)
from shopassist.services.responses import CONVERSATION_PROMPT


def _last(category: str, **filters) -> LastQuery:
    return LastQuery(category=category, filters=Filters(**filters), timestamp=0)


class TestRuleBasedResolver:
    def setup_method(self):
        self.resolver = RuleBasedResolver()

    def test_fresh_search(self):
        intent = self.resolver.classify("Show me laptops under 50000", None)
        assert intent == ProductSearchIntent(category="laptop", filters=Filters(price_max=50000))

    def test_refinement_carries_category(self):
        intent = self.resolver.classify("under 30k", _last("laptop"))
        assert intent == ProductSearchIntent(category="laptop", filters=Filters(price_max=30000))

    def test_refinement_keeps_prior_filters(self):
        intent = self.resolver.classify("black", _last("phone", price_min=20000))
        assert intent == ProductSearchIntent(
            category="phone", filters=Filters(price_min=20000, color="Black")
        )

    def test_refinement_overwrites_same_field(self):
        intent = self.resolver.classify("under 20k", _last("phone", price_max=40000, brand="Samsung"))
        assert intent.filters == Filters(price_max=20000, brand="Samsung")

    def test_non_refinement_starts_fresh(self):
        intent = self.resolver.classify("show me headphones", _last("phone", price_min=20000))
        assert intent == ProductSearchIntent(category="headphones", filters=Filters())

    def test_price_only_message_without_context_is_conversation(self):
        intent = self.resolver.classify("under 30k", None)
        assert intent == ConversationIntent(message=CONVERSATION_PROMPT)

    def test_color_word_without_context_uses_noun_heuristic(self):
        # "black friday deals" style misreads are accepted behaviour.
        intent = self.resolver.classify("black friday deals", None)
        assert isinstance(intent, ProductSearchIntent)
        assert intent.category == "black"

    def test_overlong_price_is_dropped(self):
        intent = self.resolver.classify("laptops under " + "9" * 400, None)
        assert intent == ProductSearchIntent(category="laptop", filters=Filters())

    def test_chit_chat(self):
        assert isinstance(self.resolver.classify("hello", None), ConversationIntent)

    @pytest.mark.asyncio
    async def test_resolve_reads_session(self):
        session = make_session()
        session.last_query = _last("laptop")
        intent = await self.resolver.resolve("below 40000", session)
        assert intent == ProductSearchIntent(category="laptop", filters=Filters(price_max=40000))


class TestPromptAndParsing:
    def test_prompt_mentions_previous_category_for_refinements(self):
        assert build_prompt("under 30k", _last("laptop")) == (
            "Previous search was for laptop. Now user says: under 30k"
        )

    def test_prompt_unchanged_otherwise(self):
        assert build_prompt("show me phones", _last("laptop")) == "show me phones"
        assert build_prompt("under 30k", None) == "under 30k"

    def test_strip_code_fence(self):
        assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'
        assert strip_code_fence('Sure!\n```\n{"a": 1}\n```\nDone.') == '{"a": 1}'
        assert strip_code_fence('  {"a": 1} ') == '{"a": 1}'

    def test_parse_fenced_product_search(self):
        reply = '```json\n{"type": "product_search", "category": "Laptops ", "filters": {"price_max": "30k", "brand": "dell"}}\n```'
        assert parse_reply(reply) == ProductSearchIntent(
            category="laptops", filters=Filters(price_max=30000, brand="Dell")
        )

    def test_parse_raw_conversation(self):
        reply = json.dumps({"type": "conversation", "message": "Hi there!"})
        assert parse_reply(reply) == ConversationIntent(message="Hi there!")

    def test_parse_missing_filters(self):
        reply = json.dumps({"type": "product_search", "category": "phone"})
        assert parse_reply(reply) == ProductSearchIntent(category="phone", filters=Filters())

    def test_overlong_model_price_is_dropped(self):
        reply = json.dumps({"type": "product_search", "category": "tv", "filters": {"price_max": "9" * 400}})
        assert parse_reply(reply) == ProductSearchIntent(category="tv", filters=Filters())

    @pytest.mark.parametrize(
        "reply",
        [
            "I think you want a laptop.",
            "[1, 2, 3]",
            '{"type": "recommendation", "items": []}',
            '{"type": "product_search", "category": ""}',
            '{"type": "conversation"}',
        ],
    )
    def test_unusable_replies_fail(self, reply):
        with pytest.raises(ResolutionFailed):
            parse_reply(reply)


class TestModelResolver:
    @pytest.mark.asyncio
    async def test_success(self):
        completer = FakeCompleter(reply='{"type": "product_search", "category": "phone", "filters": {"color": "black"}}')
        session = make_session()
        session.last_query = _last("phone", price_min=20000)
        intent = await ModelResolver(completer).resolve("black", session)
        assert intent == ProductSearchIntent(category="phone", filters=Filters(color="Black"))
        assert completer.prompts == ["Previous search was for phone. Now user says: black"]

    @pytest.mark.asyncio
    async def test_not_configured(self):
        with pytest.raises(ResolutionFailed):
            await ModelResolver(None).resolve("laptops", make_session())

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        completer = FakeCompleter(error=ModelUnavailable("APIConnectionError"))
        with pytest.raises(ResolutionFailed):
            await ModelResolver(completer).resolve("laptops", make_session())

    @pytest.mark.asyncio
    async def test_timeout(self):
        completer = FakeCompleter(reply='{"type": "conversation", "message": "hi"}', delay=1.0)
        with pytest.raises(ResolutionFailed):
            await ModelResolver(completer, timeout=0.01).resolve("laptops", make_session())


class TestResolverChain:
    @pytest.mark.asyncio
    async def test_model_result_used_when_available(self):
        completer = FakeCompleter(reply='{"type": "conversation", "message": "Hello!"}')
        chain = ResolverChain([ModelResolver(completer)])
        intent, source = await chain.resolve("hi", make_session())
        assert source == "model"
        assert intent == ConversationIntent(message="Hello!")

    @pytest.mark.asyncio
    async def test_falls_back_on_malformed_reply(self):
        chain = ResolverChain([ModelResolver(FakeCompleter(reply="not json at all"))])
        intent, source = await chain.resolve("Show me laptops under 50000", make_session())
        assert source == "rules"
        assert intent == ProductSearchIntent(category="laptop", filters=Filters(price_max=50000))

    @pytest.mark.asyncio
    async def test_falls_back_on_transport_failure(self):
        chain = ResolverChain([ModelResolver(FakeCompleter(error=ModelUnavailable("timeout")))])
        _, source = await chain.resolve("phones", make_session())
        assert source == "rules"

    def test_names(self):
        assert ResolverChain([ModelResolver(None)]).names == ["model", "rules"]
        assert ResolverChain([]).names == ["rules"]
