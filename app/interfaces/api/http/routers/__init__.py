"""
===============================================================================
TARJETA CRC — app/interfaces/api/http/routers/__init__.py
===============================================================================

Name:
    Routers Package (HTTP)

Responsibilities:
    - Exponer routers segmentados por feature para ser incluidos por el
      router principal.

Notas:
    - Este archivo NO define endpoints. Solo re-exporta routers.
===============================================================================
"""

from .admin import router as admin_router
from .admin import users_router as admin_users_router
from .auth import router as auth_router
from .catalog import router as catalog_router
from .content import router as content_router
from .lists import router as lists_router
from .orders import router as orders_router
from .profile import router as profile_router

__all__ = [
    "admin_router",
    "admin_users_router",
    "auth_router",
    "catalog_router",
    "content_router",
    "lists_router",
    "orders_router",
    "profile_router",
]
