"""
Entrypoint ASGI de la Storefront API.

    uvicorn app.main:app

La construcción de la app (routers, middlewares, lifespan de stores) vive en
app.api.main; este módulo sólo la re-exporta.
"""

from app.api.main import app

__all__ = ["app"]
