"""Shared fakes for the assistant pipeline.

The catalog and the language model are replaced by in-memory fakes so the
tests never touch the network.
"""

import asyncio

import pytest

from shopassist.models.schemas import CatalogFailure, Product, Session
from shopassist.services.assistant import ShoppingAssistant
from shopassist.services.resolvers import ResolverChain
from shopassist.services.session_store import SessionStore


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeCatalog:
    def __init__(self, products: list[Product] | None = None, failure: str | None = None) -> None:
        self.products = products or []
        self.failure = failure
        self.queries: list[str] = []

    async def fetch_candidates(self, query: str):
        self.queries.append(query)
        if self.failure:
            return CatalogFailure(message=self.failure)
        return [p for p in self.products if p.category == query]

    async def get_products(self):
        return self.products


class FakeCompleter:
    """Returns a canned reply, raises a canned error, or stalls."""

    def __init__(self, reply: str = "", error: Exception | None = None, delay: float = 0.0) -> None:
        self.reply = reply
        self.error = error
        self.delay = delay
        self.prompts: list[str] = []

    async def complete(self, prompt: str, *, system: str = "") -> str:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


def make_product(id: int, name: str, price: float, category: str = "laptop", color: str = "") -> Product:
    return Product(id=id, name=name, price=price, category=category, color=color)


def make_session(session_id: str = "s1") -> Session:
    return Session(session_id=session_id, created_at=0.0, updated_at=0.0)


CATALOG = [
    make_product(1, "Dell Inspiron 15", 45000, color="silver"),
    make_product(2, "HP Pavilion 14", 62000, color="blue"),
    make_product(3, "Lenovo IdeaPad Slim", 28000, color="grey"),
    make_product(4, "Samsung Galaxy S23", 64999, category="phone", color="black"),
    make_product(5, "Samsung Galaxy M34", 16999, category="phone", color="blue"),
    make_product(6, "OnePlus Nord Black Edition", 24999, category="phone"),
]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> SessionStore:
    return SessionStore(ttl_seconds=3600, max_history=50, clock=clock)


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog(list(CATALOG))


@pytest.fixture
def assistant(store: SessionStore, catalog: FakeCatalog) -> ShoppingAssistant:
    return ShoppingAssistant(resolvers=ResolverChain([]), catalog=catalog, sessions=store)
