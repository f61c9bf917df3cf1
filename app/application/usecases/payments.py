"""
===============================================================================
USE CASE: Create Payment Intent
===============================================================================

Business Goal:
    Iniciar un pago en el gateway externo y devolver el client secret que el
    frontend necesita para confirmar el cobro.

Reglas:
    - amount > 0; se convierte a centavos enteros (ROUND_HALF_UP).
    - La moneda sale de la configuración.
===============================================================================
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from ...domain.services import PaymentGateway
from ...domain.value_objects import PaymentIntent
from ...identity.session import SessionContext, owner_id
from .results import Result, validation_failed


def to_cents(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class CreatePaymentIntentUseCase:
    def __init__(self, gateway: PaymentGateway, *, currency: str = "usd") -> None:
        self._gateway = gateway
        self._currency = currency

    async def execute(
        self, context: SessionContext, amount: object
    ) -> Result[PaymentIntent]:
        try:
            value = Decimal(str(amount))
        except (InvalidOperation, ValueError):
            return validation_failed("Monto inválido.")
        if not value.is_finite() or value <= 0:
            return validation_failed("El monto debe ser mayor a cero.")

        metadata = {"acting": context.kind.value}
        user_id = owner_id(context)
        if user_id is not None:
            metadata["user_id"] = str(user_id)

        intent = await self._gateway.create_payment_intent(
            amount_cents=to_cents(value), currency=self._currency, metadata=metadata
        )
        return Result(value=intent)
