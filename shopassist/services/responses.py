"""User-facing reply texts."""

from shopassist.models.schemas import Filters
from shopassist.services.vocabulary import EXAMPLE_CATEGORIES

_EXAMPLES = ", ".join(EXAMPLE_CATEGORIES[:-1]) + f", or {EXAMPLE_CATEGORIES[-1]}"

EMPTY_MESSAGE_REPLY = (
    f"Please ask me something! I can help you find {_EXAMPLES}. 😊"
)
RESET_REPLY = "Okay, I've cleared our previous search. What would you like to look for now?"
CONVERSATION_PROMPT = (
    f"I can help you shop for {_EXAMPLES}. "
    'Try something like "laptops under 50000" or "black phones".'
)
INTERNAL_ERROR_REPLY = "Sorry, I encountered an error. Please try again."


def _rupees(amount: int) -> str:
    return f"₹{amount:,}"


def describe_filters(filters: Filters) -> list[str]:
    clauses = []
    if filters.price_max is not None:
        clauses.append(f"under {_rupees(filters.price_max)}")
    if filters.price_min is not None:
        clauses.append(f"above {_rupees(filters.price_min)}")
    if filters.brand:
        clauses.append(f"{filters.brand} branded")
    if filters.color:
        clauses.append(f"{filters.color.lower()} colored")
    return clauses


def no_results(query: str) -> str:
    return f'Sorry, I couldn\'t find any products matching "{query}". Try searching for: {_EXAMPLES}!'


def compose(category: str, filters: Filters, product_count: int, query: str = "") -> str:
    """Summarise a search result, or apologise when nothing matched."""
    if product_count == 0:
        return no_results(query or category)
    reply = f"Found {product_count} {category} products"
    clauses = describe_filters(filters)
    if clauses:
        reply += " " + ", ".join(clauses)
    return reply + ":"


def retrieval_failed(message: str) -> str:
    return f"Sorry, I couldn't reach the product catalog right now ({message}). Please try again in a moment."
