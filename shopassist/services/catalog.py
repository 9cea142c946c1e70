import json
import time
from pathlib import Path

import httpx
import structlog

from shopassist.models.schemas import CatalogFailure, Product
from shopassist.services.vocabulary import CATEGORY_KEYWORDS

logger = structlog.get_logger()


class CatalogUnavailable(Exception):
    """The remote catalog could not be fetched."""


class CatalogClient:
    """Product source backed by a remote JSON catalog with a local fallback file.

    The remote list is cached for ``cache_seconds``. When the remote fetch
    fails the bundled products are served instead.
    """

    def __init__(
        self,
        api_url: str,
        products_file: str | None = None,
        usd_to_inr: float = 80.0,
        cache_seconds: float = 300,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
        clock=time.monotonic,
    ):
        self.api_url = api_url
        self.products_file = Path(products_file) if products_file else None
        self.usd_to_inr = usd_to_inr
        self.cache_seconds = cache_seconds
        self._clock = clock
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._cache: list[Product] | None = None
        self._cached_at: float | None = None
        self._local: list[Product] | None = None

    # -- Low-level helpers --

    async def _fetch_remote(self) -> list[Product]:
        """Download and convert the remote product list."""
        try:
            response = await self._client.get(self.api_url)
            response.raise_for_status()
            raw_products = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise CatalogUnavailable(f"{type(exc).__name__}: {exc}") from exc
        if not isinstance(raw_products, list):
            raise CatalogUnavailable("catalog response is not a list")
        try:
            return [self._parse_product(raw) for raw in raw_products]
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise CatalogUnavailable(f"malformed catalog item: {type(exc).__name__}: {exc}") from exc

    def _load_local(self) -> list[Product]:
        """Read the bundled products file once; an unreadable file yields []."""
        if self._local is None:
            self._local = []
            if self.products_file is not None:
                try:
                    data = json.loads(self.products_file.read_text(encoding="utf-8"))
                    self._local = [Product.model_validate(item) for item in data]
                    logger.info("local_products_loaded", count=len(self._local))
                except (OSError, ValueError) as exc:
                    logger.error("local_products_load_failed", path=str(self.products_file), error=str(exc))
        return self._local

    # -- Product methods --

    async def get_products(self) -> list[Product]:
        """Return the full catalog, remote if reachable, else the local copy."""
        now = self._clock()
        if self._cache is not None and self._cached_at is not None and now - self._cached_at < self.cache_seconds:
            return self._cache

        try:
            products = await self._fetch_remote()
            logger.info("catalog_fetched", count=len(products))
        except CatalogUnavailable as exc:
            logger.warning("catalog_fetch_failed", error=str(exc))
            products = self._load_local()
            if not products:
                raise

        self._cache = products
        self._cached_at = now
        return products

    async def fetch_candidates(self, query: str) -> list[Product] | CatalogFailure:
        """Products matching a category or free-text query."""
        try:
            products = await self.get_products()
        except CatalogUnavailable as exc:
            return CatalogFailure(message=str(exc))
        return match_products(products, query)

    # -- Helper to clean up raw catalog items --

    def _parse_product(self, raw: dict) -> Product:
        """Turn a raw remote catalog item into a Product priced in rupees."""
        remote_category = str(raw.get("category", ""))
        if "clothing" in remote_category:
            category = "clothing"
        elif remote_category == "jewelery":
            category = "jewelry"
        else:
            category = "electronics"

        description = str(raw.get("description") or "")
        rating = raw.get("rating") or {}
        return Product(
            id=int(raw["id"]) + 1000,
            name=raw["title"],
            price=round(float(raw["price"]) * self.usd_to_inr),
            color="mixed",
            category=category,
            site="Online Store",
            description=description[:100] + "..." if description else "",
            image_url=raw.get("image"),
            store_url=f"{self.api_url.rstrip('/')}/{raw['id']}",
            rating=rating.get("rate", 4.0) if isinstance(rating, dict) else 4.0,
        )

    async def close(self):
        """Close the underlying HTTP client."""
        await self._client.aclose()


def match_products(products: list[Product], query: str) -> list[Product]:
    """Select products for a category, falling back to free-text matching."""
    term = query.strip().lower()
    if not term:
        return []
    triggers = next((kw for category, kw in CATEGORY_KEYWORDS if category == term), (term,))

    by_category = [p for p in products if p.category.lower() == term]
    if by_category:
        return by_category

    matched = []
    for product in products:
        haystack = f"{product.name} {product.description}".lower()
        if any(trigger in haystack for trigger in triggers):
            matched.append(product)
    return matched
