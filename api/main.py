"""
api/main.py -- FastAPI application entry point for the product catalog API.

Run with:  uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Lifespan opens the user and product stores on startup and disposes their
engines on shutdown.

Every response, success or failure, uses the envelope defined in
api/models.py. The exception handlers below are the single place where
failures become envelopes; no exception reaches the ASGI server raw.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.openapi.docs import get_redoc_html, get_swagger_ui_html
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

from api.limiter import limiter
from api.models import ErrorEnvelope, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.products import router as products_router
from auth.dependencies import get_current_user
from auth.models import User
from auth.store import UserStore
from catalog.store import ProductStore
from core.config import get_settings
from core.errors import ApiError, AuthenticationFailed, StoreError, ValidationFailed
from core.messages import Translator

__version__ = "1.0.0"

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=_settings.log_level.upper(),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("catalogapi.api")

# ---------------------------------------------------------------------------
# Lifespan -- modern startup / shutdown pattern (replaces @app.on_event)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown.
    """
    logger.info("Catalog API starting up")
    app.state.translator = Translator(_settings.locale)
    app.state.user_store = UserStore(_settings.auth_db_url or None)
    app.state.products = ProductStore(_settings.catalog_db_url or None)
    logger.info("Stores initialized (locale=%s)", _settings.locale)

    yield

    app.state.products.close()
    app.state.user_store.close()
    logger.info("Catalog API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Catalog API",
    description="Authenticated product catalog: registration, token login, and product CRUD.",
    version=__version__,
    lifespan=lifespan,
    # Built-in /docs and /redoc are replaced by auth-protected routes below.
    docs_url=None,
    redoc_url=None,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(TrustedHostMiddleware, allowed_hosts=_settings.allowed_hosts)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
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

app.include_router(auth_router, prefix=_settings.api_prefix, tags=["Auth"])
app.include_router(products_router, prefix=_settings.api_prefix, tags=["Products"])


# ---------------------------------------------------------------------------
# Auth-protected API documentation
# ---------------------------------------------------------------------------


@app.get("/docs", include_in_schema=False)
async def docs(user: User = Depends(get_current_user)):
    """Swagger UI -- requires a bearer token."""
    return get_swagger_ui_html(openapi_url="/openapi.json", title="Catalog API")


@app.get("/redoc", include_in_schema=False)
async def redoc(user: User = Depends(get_current_user)):
    """ReDoc UI -- requires a bearer token."""
    return get_redoc_html(openapi_url="/openapi.json", title="Catalog API")


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorEnvelope so API clients can parse errors
# uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _translator(request: Request) -> Translator:
    return getattr(request.app.state, "translator", None) or Translator(_settings.locale)


def _envelope(status_code: int, body: ErrorEnvelope) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Render any core.errors.ApiError into the envelope with its own status."""
    errors = exc.errors if isinstance(exc, ValidationFailed) else None
    detail = exc.detail if isinstance(exc, StoreError) else None
    if isinstance(exc, StoreError):
        logger.error("Store error on %s %s: %s", request.method, request.url.path, detail)
    response = _envelope(exc.status_code, ErrorEnvelope(message=exc.message, errors=errors, error=detail))
    if isinstance(exc, AuthenticationFailed):
        response.headers["Cache-Control"] = "no-store"
    return response


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Wrap unexpected persistence failures as StoreError (500).

    The driver message is returned in the error field for operability. There
    is no multi-tenant data in this service for it to leak.
    """
    detail = str(getattr(exc, "orig", None) or exc)
    store_error = StoreError(_translator(request)("database_error"), detail=detail)
    return await api_error_handler(request, store_error)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _envelope(429, ErrorEnvelope(message=_translator(request)("rate_limited"), error=str(exc.detail)))
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 when FastAPI rejects a path parameter or an unparseable body.

    Errors are keyed by the last element of each error location so they read
    like the field-keyed errors produced by core/validation.py. A malformed
    JSON body reports ("body", <char offset>) and is keyed as "body".
    """
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = err.get("loc") or ("body",)
        key = loc[-1] if len(loc) > 1 and isinstance(loc[-1], str) else "body"
        errors.setdefault(key, []).append(err.get("msg", "Invalid value."))
    t = _translator(request)
    return _envelope(422, ErrorEnvelope(message=t("validation_failed"), errors=errors))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Envelope for framework-raised HTTP errors (unknown route, wrong method)."""
    message = _translator(request)("not_found") if exc.status_code == 404 else str(exc.detail)
    response = _envelope(exc.status_code, ErrorEnvelope(message=message))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is logged with its traceback, never written to the
    response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _envelope(500, ErrorEnvelope(message=_translator(request)("server_error")))


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable.
# No auth and no rate limit -- load balancers must not be throttled.
# ---------------------------------------------------------------------------


@app.get(f"{_settings.api_prefix}/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness plus a reachability probe for each store."""
    components = {"app": "ok"}
    for name, store in (("auth_db", request.app.state.user_store), ("catalog_db", request.app.state.products)):
        try:
            store.ping()
            components[name] = "ok"
        except SQLAlchemyError:
            logger.exception("Health check failed for %s", name)
            components[name] = "error"
    return HealthResponse(version=__version__, components=components)
