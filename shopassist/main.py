import asyncio
import uuid
from contextlib import asynccontextmanager, suppress

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shopassist.api.router import router
from shopassist.config import settings
from shopassist.dependencies import build_assistant
from shopassist.logging import configure_logging
from shopassist.services.responses import INTERNAL_ERROR_REPLY

configure_logging()

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup: build services, start the idle-session sweep
    assistant = build_assistant(settings)
    app.state.assistant = assistant
    sweeper = asyncio.create_task(assistant.sessions.run_sweeper(settings.SESSION_SWEEP_INTERVAL_SECONDS))
    logger.info("startup_complete", resolvers=assistant.resolvers.names)
    yield
    # shutdown: stop the sweep, close outbound clients
    sweeper.cancel()
    with suppress(asyncio.CancelledError):
        await sweeper
    await assistant.catalog.close()


app = FastAPI(
    title="Conversational Shopping Assistant",
    description="Turns chat messages into product searches with structured filters and session context.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Bind a request id into structlog context and echo it back."""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"reply": INTERNAL_ERROR_REPLY, "products": []})


app.include_router(router)


@app.get("/api/health")
async def health():
    return {"status": "ok"}
