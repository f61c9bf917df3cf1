"""
Name: FastAPI Application Entry Point

Responsibilities:
  - Initialize FastAPI application with metadata (title, version)
  - Configure middleware (body limit, request context, CORS)
  - Mount the storefront router under /v1 prefix
  - Expose health, readiness and metrics endpoints

Collaborators:
  - FastAPI: ASGI web framework
  - CORSMiddleware: Cross-Origin Resource Sharing handler
  - RequestContextMiddleware: Request ID, logging context and HTTP metrics
  - interfaces.api.http.router: storefront endpoints
  - container: stores used by /readyz and the dev admin seed

Notes:
  - Middleware order matters: BodyLimit → RequestContext → CORS → routes
  - /readyz reports each store separately; one reachable store is enough
    to serve traffic (reads fall back, writes follow the store of record)
  - Settings validation happens at startup (lifespan), not import time
"""

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from ..application.dev_seed_admin import ensure_dev_admin
from ..container import (
    get_document_store,
    get_identity_resolver,
    get_relational_store,
)
from ..crosscutting.config import get_settings
from ..crosscutting.logger import logger
from ..crosscutting.metrics import get_metrics_response
from ..crosscutting.middleware import BodyLimitMiddleware, RequestContextMiddleware
from ..identity.auth_users import hash_password
from ..infrastructure.db.pool import close_pool, init_pool
from ..interfaces.api.http.router import router
from .exception_handlers import register_exception_handlers


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle. Validates settings and initializes pool."""
    settings = get_settings()

    pool_enabled = bool(settings.database_url.strip()) and not settings.is_test()
    if pool_enabled:
        await init_pool(
            database_url=settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )

    try:
        await ensure_dev_admin(
            settings,
            relational=get_relational_store(),
            password_hasher=hash_password,
        )

        logger.info(
            "Storefront API starting up",
            extra={
                "app_env": settings.app_env,
                "postgres": pool_enabled,
                "firebase": settings.firebase_enabled,
                "store_timeout_s": settings.store_timeout_seconds,
                "db_pool_min": settings.db_pool_min_size,
                "db_pool_max": settings.db_pool_max_size,
            },
        )

        yield

    finally:
        # R: convergencias de rol pendientes terminan antes de cerrar el pool.
        await get_identity_resolver().drain()
        if pool_enabled:
            await close_pool()
        logger.info("Storefront API shutting down")


def _get_allowed_origins() -> list[str]:
    """Get CORS origins from settings, with fallback for import-time errors."""
    try:
        return get_settings().get_allowed_origins_list()
    except Exception:
        return ["http://localhost:3000"]


app = FastAPI(
    title="Storefront API",
    version="0.1.0",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "auth", "description": "Registro, login, 2FA y recuperación"},
        {"name": "catalog", "description": "Categorías y productos"},
        {"name": "orders", "description": "Checkout e historial (invitados permitidos)"},
        {"name": "admin", "description": "Dashboard, pedidos y roles (admin)"},
    ],
)

# R: Middleware order (bottom = first to execute)
app.add_middleware(BodyLimitMiddleware)
app.add_middleware(RequestContextMiddleware)

try:
    _cors_allow_credentials = get_settings().cors_allow_credentials
except Exception:
    _cors_allow_credentials = False
app.add_middleware(
    CORSMiddleware,
    allow_origins=_get_allowed_origins(),
    allow_credentials=_cors_allow_credentials,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "X-Request-Id",
        "X-Firebase-Token",
        "X-User-Id",
        "X-Firebase-Uid",
        "X-User-Email",
    ],
)

app.include_router(router, prefix="/v1")

register_exception_handlers(app)


async def _ping_status(name: str, ping) -> str:
    try:
        return "connected" if await ping() else "disconnected"
    except Exception as e:
        logger.warning("Ready check: store unavailable", extra={"store": name, "error": str(e)})
        return "disconnected"


@app.get("/healthz")
def healthz(request: Request):
    """Liveness: el proceso responde (no toca stores)."""
    return {"ok": True, "request_id": getattr(request.state, "request_id", None)}


@app.get("/readyz")
async def readyz(request: Request):
    """
    Readiness por store.

    Returns:
        ok: True si AL MENOS un store responde
        relational / document: "connected" o "disconnected"
    """
    relational, document = await asyncio.gather(
        _ping_status("relational", get_relational_store().ping),
        _ping_status("document", get_document_store().ping),
    )
    return {
        "ok": "connected" in (relational, document),
        "relational": relational,
        "document": document,
        "request_id": getattr(request.state, "request_id", None),
    }


@app.get("/metrics")
def metrics():
    """Expose Prometheus metrics (private registry)."""
    body, content_type = get_metrics_response()
    return Response(content=body, media_type=content_type)
