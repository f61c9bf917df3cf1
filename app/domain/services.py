"""
===============================================================================
TARJETA CRC — domain/services.py
===============================================================================

Módulo:
    Puertos de Servicios Externos (Protocols)

Responsabilidades:
    - Definir contratos para el proveedor de identidad, el canal de
      notificación y el gateway de pagos.
    - Proteger a application/identity de detalles de cada SDK.

Colaboradores:
    - infrastructure/services/*: implementaciones concretas y fakes.
    - identity/*, application/usecases/*: consumen estos puertos.

Reglas:
    - SOLO interfaces: nada de implementación.
    - Todas las llamadas son awaitables (límite de I/O).
===============================================================================
"""

from __future__ import annotations

from typing import Mapping, Protocol

from .value_objects import ExternalIdentity, PaymentIntent


class IdentityProvider(Protocol):
    """Proveedor de identidad externo (UIDs opacos, sign-in con provider)."""

    async def verify_id_token(self, id_token: str) -> ExternalIdentity | None:
        """Valida un ID token firmado; None si es inválido o expiró."""
        ...

    async def email_exists(self, email: str) -> bool:
        """¿Existe una cuenta externa con este email?"""
        ...

    async def update_password(self, uid: str, new_password: str) -> None:
        """Actualiza el password de la cuenta externa."""
        ...


class NotificationChannel(Protocol):
    """Canal de notificación out-of-band (email)."""

    async def send(self, recipient: str, subject: str, body: str) -> None: ...


class PaymentGateway(Protocol):
    """Gateway de pagos (opaco)."""

    async def create_payment_intent(
        self,
        *,
        amount_cents: int,
        currency: str,
        metadata: Mapping[str, str] | None = None,
    ) -> PaymentIntent: ...
