"""Filter canonicalisation, carry-over merging and local product filtering."""

from typing import Any, Iterable, Mapping

from shopassist.models.schemas import Filters, LastQuery, Product, ProductSearchIntent, ResolvedIntent
from shopassist.services.extractors import is_refinement, parse_amount

_NUMERIC_FIELDS = ("price_max", "price_min")
_TEXT_FIELDS = ("brand", "color")


def _coerce_amount(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        amount: int | None = int(value)
    elif isinstance(value, str):
        amount = parse_amount(value)
    else:
        return None
    if amount is None or amount < 0:
        return None
    return amount


def _canonical_text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    text = " ".join(value.split())
    if not text:
        return None
    return text.title()


def normalize_filters(raw: Filters | Mapping[str, Any] | None) -> Filters:
    """Coerce raw filters into canonical form.

    Prices become non-negative ints, brand and color are trimmed and title
    cased. Anything that does not coerce is dropped rather than defaulted.
    """
    if raw is None:
        return Filters()
    if isinstance(raw, Filters):
        raw = raw.model_dump()
    elif not isinstance(raw, Mapping):
        return Filters()

    values: dict[str, Any] = {}
    for field in _NUMERIC_FIELDS:
        values[field] = _coerce_amount(raw.get(field))
    for field in _TEXT_FIELDS:
        values[field] = _canonical_text(raw.get(field))
    return Filters(**values)


def merge_filters(previous: Filters, incoming: Filters) -> Filters:
    """Overlay ``incoming`` on ``previous``; fields set in ``incoming`` win."""
    merged = previous.model_dump()
    merged.update(incoming.present())
    return Filters(**merged)


def carry_over(intent: ResolvedIntent, message: str, last_query: LastQuery | None) -> ResolvedIntent:
    """Merge a refinement message's filters with the previous query's.

    Only product searches produced from a refinement message are touched.
    Re-applying the merge to an already merged intent is a no-op.
    """
    if not isinstance(intent, ProductSearchIntent) or last_query is None:
        return intent
    if not is_refinement(message):
        return intent
    filters = merge_filters(last_query.filters, normalize_filters(intent.filters))
    return intent.model_copy(update={"filters": filters})


def apply_filters(products: Iterable[Product], filters: Filters) -> list[Product]:
    """Keep the products that satisfy every present filter, in input order."""
    brand = filters.brand.lower() if filters.brand else None
    color = filters.color.lower() if filters.color else None

    kept = []
    for product in products:
        if product.price <= 0:
            continue
        if filters.price_max is not None and product.price > filters.price_max:
            continue
        if filters.price_min is not None and product.price < filters.price_min:
            continue
        name = product.name.lower()
        if brand and brand not in name:
            continue
        if color and color not in (product.color or "").lower() and color not in name:
            continue
        kept.append(product)
    return kept
