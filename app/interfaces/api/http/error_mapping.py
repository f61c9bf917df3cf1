"""
===============================================================================
TARJETA CRC — error_mapping.py (UseCase Error -> HTTP RFC7807)
===============================================================================

Responsabilidades:
  - Traducir UseCaseError a HTTP Exceptions RFC7807.
  - Centralizar el mapeo para evitar duplicación en routers.
  - Mantener el dominio libre de HTTP.

Reglas:
  - Los use cases devuelven errores tipados (code + message [+ resource]).
  - La API traduce a RFC7807 (crosscutting.error_responses).

Colaboradores:
  - application.usecases.results (UseCaseError, UseCaseErrorCode, Result)
  - crosscutting.error_responses
===============================================================================
"""

from __future__ import annotations

from typing import TypeVar

from app.application.usecases import Result, UseCaseError, UseCaseErrorCode
from app.crosscutting.error_responses import (
    conflict,
    forbidden,
    invalid_or_expired_code,
    not_found,
    service_unavailable,
    unauthorized,
    validation_error,
)

T = TypeVar("T")


def raise_use_case_error(error: UseCaseError, identifier: object = None) -> None:
    """
    Traduce UseCaseErrorCode -> HTTP.

    Nota:
      - identifier se usa para NOT_FOUND consistente (resource + id).
    """
    code = error.code
    if code == UseCaseErrorCode.UNAUTHORIZED:
        raise unauthorized(error.message)
    if code == UseCaseErrorCode.FORBIDDEN:
        raise forbidden(error.message)
    if code == UseCaseErrorCode.CONFLICT:
        raise conflict(error.message)
    if code == UseCaseErrorCode.INVALID_OR_EXPIRED_CODE:
        raise invalid_or_expired_code()
    if code == UseCaseErrorCode.NOT_FOUND:
        raise not_found(error.resource or "Resource", str(identifier or "unknown"))
    if code == UseCaseErrorCode.SYNC_FAILED:
        raise service_unavailable("sync")
    # Fallback seguro: si aparece un código nuevo, lo tratamos como 422
    raise validation_error(error.message)


def unwrap(result: Result[T], identifier: object = None) -> T:
    """Devuelve el valor o traduce el error a HTTP."""
    if result.error is not None:
        raise_use_case_error(result.error, identifier)
    return result.value  # type: ignore[return-value]
