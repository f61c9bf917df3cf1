"""
===============================================================================
TARJETA CRC — app/api/exception_handlers.py (Manejo Centralizado de Excepciones)
===============================================================================

Responsabilidades:
  - Traducir StorefrontError y derivadas a respuestas HTTP RFC7807.
  - Centralizar logging de errores con request_id + error_id.
  - Evitar filtrar detalles internos en errores no controlados.

Mapeo:
  - MalformedKeyError          -> 400 MALFORMED_KEY
  - StoreUnavailableError      -> 503 STORE_UNAVAILABLE
  - DatabaseError              -> 503 DATABASE_ERROR
  - DocumentStoreError         -> 503 STORE_UNAVAILABLE
  - IdentityProviderError      -> 503 SERVICE_UNAVAILABLE
  - NotificationError          -> 503 SERVICE_UNAVAILABLE
  - PaymentGatewayError        -> 502 PAYMENT_ERROR
  - StorefrontError (base)     -> 500 INTERNAL_ERROR

Colaboradores:
  - crosscutting.error_responses: AppHTTPException, ErrorCode, app_exception_handler
  - crosscutting.exceptions: StorefrontError y derivadas
===============================================================================
"""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse

from ..crosscutting.config import get_settings
from ..crosscutting.error_responses import (
    AppHTTPException,
    ErrorCode,
    app_exception_handler,
)
from ..crosscutting.exceptions import (
    DatabaseError,
    DocumentStoreError,
    IdentityProviderError,
    MalformedKeyError,
    NotificationError,
    PaymentGatewayError,
    StorefrontError,
    StoreUnavailableError,
)
from ..crosscutting.logger import logger


def _request_id_from(request: Request) -> str | None:
    return getattr(getattr(request, "state", None), "request_id", None)


async def _handle_service_error(
    request: Request,
    *,
    exc: StorefrontError,
    code: ErrorCode,
    status_code: int,
    detail: str | None = None,
) -> JSONResponse:
    """Helper común para errores tipados de servicios."""
    request_id = _request_id_from(request)

    log = logger.warning if status_code < 500 else logger.error
    log(
        "Error de servicio",
        extra={
            "code": code.value,
            "error_id": exc.error_id,
            "error_message": exc.message,
            "request_id": request_id,
        },
    )

    app_exc = AppHTTPException(
        status_code=status_code,
        code=code,
        detail=detail or exc.message,
        errors=[{"error_id": exc.error_id, "request_id": request_id}],
    )
    return await app_exception_handler(request, app_exc)


async def malformed_key_handler(request: Request, exc: MalformedKeyError) -> JSONResponse:
    return await _handle_service_error(
        request, exc=exc, code=ErrorCode.MALFORMED_KEY, status_code=400
    )


async def store_unavailable_handler(
    request: Request, exc: StoreUnavailableError
) -> JSONResponse:
    return await _handle_service_error(
        request,
        exc=exc,
        code=ErrorCode.STORE_UNAVAILABLE,
        status_code=503,
        detail="Los stores de datos no están disponibles.",
    )


async def database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    return await _handle_service_error(
        request,
        exc=exc,
        code=ErrorCode.DATABASE_ERROR,
        status_code=503,
        detail="Base de datos no disponible.",
    )


async def document_store_error_handler(
    request: Request, exc: DocumentStoreError
) -> JSONResponse:
    return await _handle_service_error(
        request,
        exc=exc,
        code=ErrorCode.STORE_UNAVAILABLE,
        status_code=503,
        detail="Store documental no disponible.",
    )


async def external_service_error_handler(
    request: Request, exc: StorefrontError
) -> JSONResponse:
    return await _handle_service_error(
        request, exc=exc, code=ErrorCode.SERVICE_UNAVAILABLE, status_code=503
    )


async def payment_error_handler(request: Request, exc: PaymentGatewayError) -> JSONResponse:
    return await _handle_service_error(
        request, exc=exc, code=ErrorCode.PAYMENT_ERROR, status_code=502
    )


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    # R: Errores base: tratamos como INTERNAL_ERROR por defecto.
    return await _handle_service_error(
        request, exc=exc, code=ErrorCode.INTERNAL_ERROR, status_code=500
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handler para excepciones no tipadas.

    - Log completo (stacktrace).
    - Respuesta genérica (evita filtrar internos).
    """
    request_id = _request_id_from(request)
    settings = get_settings()

    logger.error(
        "Excepción no controlada",
        exc_info=True,
        extra={"request_id": request_id, "error": str(exc)},
    )

    detail = str(exc) if not settings.is_production() else "Error interno."

    app_exc = AppHTTPException(
        status_code=500,
        code=ErrorCode.INTERNAL_ERROR,
        detail=detail,
        errors=[{"request_id": request_id}],
    )
    return await app_exception_handler(request, app_exc)


def register_exception_handlers(app) -> None:
    """
    Registra handlers en la app FastAPI.

    Importante:
      - AppHTTPException debe registrarse para respetar RFC7807.
      - Exception genérica se registra al final como fallback.
    """
    app.add_exception_handler(MalformedKeyError, malformed_key_handler)
    app.add_exception_handler(StoreUnavailableError, store_unavailable_handler)
    app.add_exception_handler(DatabaseError, database_error_handler)
    app.add_exception_handler(DocumentStoreError, document_store_error_handler)
    app.add_exception_handler(IdentityProviderError, external_service_error_handler)
    app.add_exception_handler(NotificationError, external_service_error_handler)
    app.add_exception_handler(PaymentGatewayError, payment_error_handler)
    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(AppHTTPException, app_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = ["register_exception_handlers"]
