"""
===============================================================================
USE CASE RESULTS (Shared Result / Error Models)
===============================================================================

Name:
    Storefront Use Case Results

Business Goal:
    Proveer un contrato de resultado tipado para todos los casos de uso del
    storefront (cuentas, catálogo, pedidos, listas, contenido, admin).

Why (Context / Intención):
    - "No encontrado", "prohibido", "inválido" y "conflicto" son resultados
      esperables de negocio: viajan como datos, no como excepciones.
    - La capa HTTP mapea UseCaseErrorCode -> RFC 7807 en un solo lugar.
    - Las excepciones quedan reservadas para condiciones realmente
      excepcionales (MalformedKey, StoreUnavailable, Notification).

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Component:
    results models (module)

Responsibilities:
    - Definir UseCaseErrorCode (categorías estables).
    - Representar UseCaseError (code + message).
    - Representar Result[T] (value | error).

Collaborators:
    - interfaces/api/http/error_mapping.py (mapeo a HTTP)
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class UseCaseErrorCode(str, Enum):
    """
    Códigos:
      - VALIDATION_ERROR: inputs inválidos o incompletos.
      - UNAUTHORIZED: credenciales ausentes o inválidas (mensaje genérico).
      - FORBIDDEN: actor sin permiso para la operación.
      - NOT_FOUND: entidad inexistente en ambos stores.
      - CONFLICT: unicidad (email/username ya en uso).
      - INVALID_OR_EXPIRED_CODE: código OTP o token de reset no aceptado.
      - SYNC_FAILED: ningún store aceptó un cambio sincronizado.
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INVALID_OR_EXPIRED_CODE = "INVALID_OR_EXPIRED_CODE"
    SYNC_FAILED = "SYNC_FAILED"


@dataclass(frozen=True)
class UseCaseError:
    code: UseCaseErrorCode
    message: str
    resource: str | None = None


@dataclass
class Result(Generic[T]):
    """
    Contrato:
      - error is None => value es el resultado (puede ser None en comandos).
      - error != None => value debería ser None; un cambio sincronizado
        fallido puede adjuntar su SyncOutcome por store.
    """

    value: T | None = None
    error: UseCaseError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def validation_failed(message: str) -> Result:
    return Result(error=UseCaseError(UseCaseErrorCode.VALIDATION_ERROR, message))


def not_found(resource: str, identifier: object) -> Result:
    return Result(
        error=UseCaseError(
            UseCaseErrorCode.NOT_FOUND, str(identifier), resource=resource
        )
    )


def forbidden(message: str = "Acceso denegado") -> Result:
    return Result(error=UseCaseError(UseCaseErrorCode.FORBIDDEN, message))


def unauthorized(message: str = "Credenciales inválidas") -> Result:
    return Result(error=UseCaseError(UseCaseErrorCode.UNAUTHORIZED, message))


def conflict(message: str) -> Result:
    return Result(error=UseCaseError(UseCaseErrorCode.CONFLICT, message))


def invalid_code() -> Result:
    return Result(
        error=UseCaseError(
            UseCaseErrorCode.INVALID_OR_EXPIRED_CODE, "Código inválido o expirado."
        )
    )


def sync_failed(message: str = "No se pudo aplicar el cambio en ningún store") -> Result:
    return Result(error=UseCaseError(UseCaseErrorCode.SYNC_FAILED, message))
