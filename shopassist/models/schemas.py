from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


# --- Filters & intents ---

class Filters(BaseModel):
    """Optional search constraints. ``None`` means "no constraint"."""

    price_max: int | None = None
    price_min: int | None = None
    brand: str | None = None
    color: str | None = None

    def present(self) -> dict:
        return self.model_dump(exclude_none=True)


class ConversationIntent(BaseModel):
    type: Literal["conversation"] = "conversation"
    message: str


class ProductSearchIntent(BaseModel):
    type: Literal["product_search"] = "product_search"
    category: str = Field(min_length=1)
    filters: Filters = Field(default_factory=Filters)


ResolvedIntent = Annotated[
    Union[ConversationIntent, ProductSearchIntent],
    Field(discriminator="type"),
]

resolved_intent_adapter = TypeAdapter(ResolvedIntent)


# --- Catalog ---

class Product(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int | str
    name: str
    price: float
    color: str = ""
    category: str = ""
    site: str | None = None
    description: str = ""
    image_url: str | None = None
    store_url: str | None = None
    rating: float | None = None


class CatalogFailure(BaseModel):
    error: Literal[True] = True
    message: str


# --- Session state ---

class LastQuery(BaseModel):
    category: str
    filters: Filters = Field(default_factory=Filters)
    timestamp: float


class HistoryEntry(BaseModel):
    role: Literal["user", "assistant"]
    text: str
    timestamp: float


class Session(BaseModel):
    session_id: str
    created_at: float
    updated_at: float
    last_query: LastQuery | None = None
    last_results: list[Product] = Field(default_factory=list)
    history: list[HistoryEntry] = Field(default_factory=list)


# --- Session schemas ---

class SessionInfo(BaseModel):
    session_id: str
    created_at: float
    message_count: int
    last_active: float


class SessionDetail(BaseModel):
    session_id: str
    created_at: float
    updated_at: float
    last_query: LastQuery | None = None
    last_results: list[Product] = Field(default_factory=list)
    history: list[HistoryEntry] = Field(default_factory=list)


# --- Chat schemas ---

class ChatRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str | None = None
    session_id: str | None = None


class ChatResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    reply: str
    products: list[Product] = Field(default_factory=list)
    session_id: str | None = None
