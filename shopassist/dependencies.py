import structlog
from fastapi import Request

from shopassist.config import Settings
from shopassist.services.assistant import ShoppingAssistant
from shopassist.services.catalog import CatalogClient
from shopassist.services.llm import AnthropicCompleter, ModelUnavailable
from shopassist.services.resolvers import IntentResolver, ModelResolver, ResolverChain, RuleBasedResolver
from shopassist.services.session_store import SessionStore

logger = structlog.get_logger()


def build_resolvers(settings: Settings) -> ResolverChain:
    """Model resolver first when configured, rule-based resolver always last."""
    resolvers: list[IntentResolver] = []
    if settings.USE_MODEL_RESOLVER:
        try:
            completer = AnthropicCompleter(
                api_key=settings.ANTHROPIC_API_KEY,
                model=settings.CLAUDE_MODEL,
                timeout=settings.LLM_TIMEOUT_SECONDS,
                max_tokens=settings.LLM_MAX_TOKENS,
            )
        except ModelUnavailable as exc:
            logger.warning("model_resolver_disabled", reason=str(exc))
        else:
            resolvers.append(ModelResolver(completer, timeout=settings.LLM_TIMEOUT_SECONDS))
    return ResolverChain(resolvers, fallback=RuleBasedResolver())


def build_assistant(settings: Settings) -> ShoppingAssistant:
    catalog = CatalogClient(
        api_url=settings.CATALOG_API_URL,
        products_file=settings.PRODUCTS_FILE,
        usd_to_inr=settings.USD_TO_INR,
        cache_seconds=settings.CATALOG_CACHE_SECONDS,
        timeout=settings.CATALOG_TIMEOUT_SECONDS,
    )
    sessions = SessionStore(
        ttl_seconds=settings.SESSION_TTL_SECONDS,
        max_history=settings.MAX_CONVERSATION_TURNS,
    )
    return ShoppingAssistant(resolvers=build_resolvers(settings), catalog=catalog, sessions=sessions)


def get_assistant(request: Request) -> ShoppingAssistant:
    """Provide the application's assistant to endpoint functions."""
    return request.app.state.assistant


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.assistant.sessions


def get_catalog(request: Request) -> CatalogClient:
    return request.app.state.assistant.catalog
