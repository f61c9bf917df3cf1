"""
===============================================================================
TARJETA CRC — router.py (Router raíz / Composición)
===============================================================================

Responsabilidades:
  - Definir el APIRouter raíz que se incluye en FastAPI (app.include_router).
  - Centralizar responses RFC7807 para OpenAPI.
  - Componer routers por feature (auth/catalog/orders/lists/content/admin).

Patrones aplicados:
  - Composition over inheritance: router raíz compone sub-routers.
  - Factory: build_router() para testear composición y evitar side-effects al importar.

Notas:
  - Este router se incluye desde app/api/main.py con prefix="/v1".
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter

from ....crosscutting.error_responses import OPENAPI_ERROR_RESPONSES
from .routers import (
    admin_router,
    admin_users_router,
    auth_router,
    catalog_router,
    content_router,
    lists_router,
    orders_router,
    profile_router,
)


def build_router() -> APIRouter:
    """Construye el router raíz v1."""
    api_router = APIRouter(responses=OPENAPI_ERROR_RESPONSES)

    # Orden: identidad primero, admin al final.
    api_router.include_router(auth_router)
    api_router.include_router(profile_router)
    api_router.include_router(catalog_router)
    api_router.include_router(orders_router)
    api_router.include_router(lists_router)
    api_router.include_router(content_router)
    api_router.include_router(admin_router)
    api_router.include_router(admin_users_router)

    return api_router


router = build_router()

__all__ = ["router", "build_router"]
