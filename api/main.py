"""
api/main.py -- FastAPI application entry point for TaskVault.

Run with:      python main.py serve
               uvicorn api.main:app --reload

This module is the composition root. The lifespan builds the stores, the one
SessionRegistry for the process, and the services that share it, and hangs
them on app.state. Route handlers and the access guard read them from there;
nothing else constructs a registry.

Middleware stack (outermost to innermost):
  1. CORSMiddleware     -- credentials allowed so the jwt cookie crosses origins
  2. SlowAPIMiddleware  -- enforces default and per-route limits from api.limiter
  3. log_requests       -- one log line per request with latency

Every error leaves as {"message": "..."}: TaskVaultError subclasses carry
their own status code, body validation failures become 400, rate limiting
429, and anything unexpected a generic 500.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError

from api.limiter import limiter
from api.models import ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.tasks import router as tasks_router
from auth.dependencies import AccessGuard
from auth.service import Authenticator
from auth.sessions import SessionRegistry
from auth.store import AccountStore
from core.config import get_settings
from core.errors import InternalError, TaskVaultError
from tasks.service import TaskService
from tasks.store import TaskStore

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("taskvault.api")

_settings = get_settings()

# ---------------------------------------------------------------------------
# Background session purge
# ---------------------------------------------------------------------------


async def _purge_loop(app: FastAPI, interval: int) -> None:
    """Drop expired sessions from the registry every `interval` seconds.

    Expired tokens are already rejected by signature checks; this only keeps
    the registry from growing without bound. CancelledError from task.cancel()
    during shutdown propagates out of asyncio.sleep and ends the loop.
    """
    while True:
        await asyncio.sleep(interval)
        removed = app.state.session_registry.purge_expired()
        if removed:
            logger.info("Purged %d expired session(s)", removed)


# ---------------------------------------------------------------------------
# Lifespan -- composition root
# ---------------------------------------------------------------------------


def wire_services(
    app: FastAPI,
    account_store: AccountStore,
    task_store: TaskStore,
    registry: SessionRegistry,
    enforce_revocation: bool,
    scope_task_updates: bool,
) -> None:
    """Attach stores and services to app.state. Shared by the lifespan and tests."""
    app.state.account_store = account_store
    app.state.task_store = task_store
    app.state.session_registry = registry
    app.state.authenticator = Authenticator(account_store, registry)
    app.state.access_guard = AccessGuard(registry, enforce_revocation=enforce_revocation)
    app.state.task_service = TaskService(account_store, task_store, scope_updates=scope_task_updates)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build application resources on startup and release them on shutdown.

    The AccountStore is created before the TaskStore because the tasks table
    references accounts.id.
    """
    logger.info("TaskVault API starting up")
    account_store = AccountStore(_settings.database_url)
    task_store = TaskStore(_settings.database_url)
    registry = SessionRegistry(expire_seconds=_settings.token_expire_seconds)
    wire_services(
        app,
        account_store,
        task_store,
        registry,
        enforce_revocation=_settings.enforce_revocation,
        scope_task_updates=_settings.scope_task_updates,
    )
    logger.info(
        "Stores initialized (accounts=%d, enforce_revocation=%s, scope_task_updates=%s)",
        account_store.count_accounts(),
        _settings.enforce_revocation,
        _settings.scope_task_updates,
    )
    app.state.purge_task = asyncio.create_task(_purge_loop(app, _settings.session_purge_seconds))

    yield

    app.state.purge_task.cancel()
    try:
        await app.state.purge_task
    except asyncio.CancelledError:
        pass
    task_store.close()
    account_store.close()
    logger.info("TaskVault API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="TaskVault API",
    description="Multi-user task tracker with per-account isolation.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, tags=["Auth"])
app.include_router(tasks_router, tags=["Tasks"])


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(message=message).model_dump())


@app.exception_handler(TaskVaultError)
async def taskvault_error_handler(request: Request, exc: TaskVaultError) -> JSONResponse:
    """Translate a core error into its status code and a {"message"} body."""
    if isinstance(exc, InternalError):
        logger.error("Internal error on %s %s: %s", request.method, request.url.path, exc.message)
    return _error(exc.status_code, exc.message)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with Retry-After when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error(429, "Too many requests, please try again later.")
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and path parameters are client errors like any other: 400."""
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request.")
    return _error(400, f"{location}: {message}" if location else message)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors.

    The exception is logged with its traceback; the client only gets a
    generic message so store or library internals never leak.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


@limiter.exempt  # health checks from load balancers must not be throttled
@app.get("/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness and whether the database answers."""
    try:
        database = "ok" if request.app.state.account_store.ping() else "error"
    except SQLAlchemyError:
        logger.warning("Health check: database unreachable")
        database = "error"
    return HealthResponse(version=VERSION, components={"app": "ok", "database": database})
