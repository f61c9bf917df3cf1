"""
===============================================================================
MÓDULO: Excepciones tipadas del backend (errores internos)
===============================================================================

Objetivo
--------
Excepciones internas coherentes, con:
- error_code estable
- error_id para correlación con logs
- message legible (sin secretos)

Solo se lanzan para condiciones realmente excepcionales: clave mal formada,
ambos stores caídos, canal de notificación caído cuando el flujo existe para
entregar un código. "No encontrado" y "sincronización parcial" viajan como
datos (ver domain.results).

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  StorefrontError + subclases

Responsabilidades:
  - Estandarizar errores internos que luego se mapean a HTTP
  - Generar error_id para rastreo

Colaboradores:
  - api/exception_handlers.py (mapea a AppHTTPException)
  - crosscutting/logger.py
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4


@dataclass(frozen=True)
class ErrorResponse:
    """Forma mínima serializable de un error interno."""

    error_code: str
    message: str
    error_id: str

    def to_dict(self) -> dict:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "error_id": self.error_id,
        }


class StorefrontError(Exception):
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      StorefrontError

    Responsabilidades:
      - Base para errores internos del sistema
      - Proveer error_code + error_id + message

    Colaboradores:
      - api/exception_handlers.py
    ----------------------------------------------------------------------------
    """

    error_code: str = "STOREFRONT_ERROR"

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.error_id = error_id or str(uuid4())
        self.original_error = original_error
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            error_code=self.error_code, message=self.message, error_id=self.error_id
        )


class MalformedKeyError(StorefrontError):
    """Un ID que debía ser numérico no se pudo parsear."""

    error_code: str = "MALFORMED_KEY"

    def __init__(self, key: object, *, entity: str | None = None):
        self.key = key
        self.entity = entity
        label = f"{entity} " if entity else ""
        super().__init__(f"Identificador de {label}inválido: {key!r}")


class StoreUnavailableError(StorefrontError):
    """Ningún store pudo atender la operación (no queda fallback)."""

    error_code: str = "STORE_UNAVAILABLE"

    def __init__(
        self,
        message: str,
        *,
        stores: tuple[str, ...] = (),
        original_error: Exception | None = None,
    ):
        self.stores = stores
        super().__init__(message, original_error=original_error)


class DatabaseError(StorefrontError):
    """Errores del store relacional (conexión, query, timeout, pool)."""

    error_code: str = "DATABASE_ERROR"


class DuplicateRecordError(DatabaseError):
    """Violación de unicidad (email/username/uid ya registrados)."""

    error_code: str = "DUPLICATE_RECORD"


class DocumentStoreError(StorefrontError):
    """Errores del store documental (SDK, permisos, red)."""

    error_code: str = "DOCUMENT_STORE_ERROR"


class IdentityProviderError(StorefrontError):
    """Errores del proveedor de identidad externo."""

    error_code: str = "IDENTITY_PROVIDER_ERROR"


class NotificationError(StorefrontError):
    """El canal de notificación no pudo entregar el mensaje."""

    error_code: str = "NOTIFICATION_ERROR"


class PaymentGatewayError(StorefrontError):
    """Errores del gateway de pagos (provider externo)."""

    error_code: str = "PAYMENT_GATEWAY_ERROR"
