"""
============================================================
TARJETA CRC — infrastructure/services/stripe_gateway.py
============================================================
Class: StripePaymentGateway

Responsibilities:
  - Implementar PaymentGateway contra la API REST de Stripe (httpx).
  - Crear PaymentIntents y devolver el handle opaco (id + client_secret).
  - Reintentar fallas transitorias con backoff (retry.create_retry_decorator).

Collaborators:
  - httpx.AsyncClient
  - infrastructure.services.retry (tenacity)
  - crosscutting.exceptions.PaymentGatewayError

Constraints:
  - 4xx permanentes no se reintentan (fail-fast).
  - La respuesta sin id/client_secret es un error del gateway.
============================================================
"""

from __future__ import annotations

from typing import Mapping

import httpx

from ...crosscutting.exceptions import PaymentGatewayError
from ...crosscutting.logger import logger
from ...domain.value_objects import PaymentIntent
from .retry import create_retry_decorator

_PAYMENT_INTENTS_PATH = "/v1/payment_intents"


class StripePaymentGateway:
    def __init__(
        self,
        *,
        secret_key: str,
        api_base: str = "https://api.stripe.com",
        timeout_s: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not secret_key:
            raise ValueError("STRIPE_SECRET_KEY is required")
        self._secret_key = secret_key
        self._api_base = api_base.rstrip("/")
        self._timeout_s = timeout_s
        self._transport = transport
        self._post = create_retry_decorator()(self._post_once)

    async def _post_once(self, path: str, data: Mapping[str, str]) -> dict:
        async with httpx.AsyncClient(
            base_url=self._api_base,
            timeout=self._timeout_s,
            transport=self._transport,
        ) as client:
            response = await client.post(
                path,
                data=dict(data),
                headers={"Authorization": f"Bearer {self._secret_key}"},
            )
            response.raise_for_status()
            return response.json()

    async def create_payment_intent(
        self,
        *,
        amount_cents: int,
        currency: str,
        metadata: Mapping[str, str] | None = None,
    ) -> PaymentIntent:
        form = {
            "amount": str(amount_cents),
            "currency": currency,
            "automatic_payment_methods[enabled]": "true",
        }
        for key, value in (metadata or {}).items():
            form[f"metadata[{key}]"] = str(value)

        try:
            payload = await self._post(_PAYMENT_INTENTS_PATH, form)
        except httpx.HTTPError as exc:
            logger.exception(
                "Stripe create_payment_intent failed",
                extra={"amount_cents": amount_cents, "currency": currency, "error": str(exc)},
            )
            raise PaymentGatewayError("payment intent creation failed", original_error=exc) from exc

        intent_id = payload.get("id")
        client_secret = payload.get("client_secret")
        if not intent_id or not client_secret:
            raise PaymentGatewayError("payment gateway returned an incomplete intent")
        return PaymentIntent(
            id=intent_id,
            client_secret=client_secret,
            amount_cents=int(payload.get("amount", amount_cents)),
            currency=payload.get("currency", currency),
        )
