"""
============================================================
TARJETA CRC — infrastructure/services/fakes.py
============================================================
Test doubles de servicios externos (tests / local dev).

  - FakeIdentityProvider: tokens registrados a mano -> ExternalIdentity.
  - RecordingNotificationChannel: guarda los mensajes enviados (o falla).
  - FakePaymentGateway: intents determinísticos.

NOT FOR PRODUCTION.
============================================================
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Mapping

from ...crosscutting.exceptions import IdentityProviderError, NotificationError
from ...domain.value_objects import ExternalIdentity, PaymentIntent


class FakeIdentityProvider:
    def __init__(self) -> None:
        self._tokens: dict[str, ExternalIdentity] = {}
        self._accounts: dict[str, str] = {}  # email -> uid
        self.passwords: dict[str, str] = {}  # uid -> último password seteado
        self.fail_password_updates = False

    def register(self, token: str, identity: ExternalIdentity) -> None:
        self._tokens[token] = identity
        if identity.email:
            self._accounts[identity.email.lower()] = identity.uid

    async def verify_id_token(self, id_token: str) -> ExternalIdentity | None:
        return self._tokens.get(id_token)

    async def email_exists(self, email: str) -> bool:
        return email.strip().lower() in self._accounts

    async def update_password(self, uid: str, new_password: str) -> None:
        if self.fail_password_updates:
            raise IdentityProviderError("identity provider unavailable")
        self.passwords[uid] = new_password


@dataclass(frozen=True)
class SentMessage:
    recipient: str
    subject: str
    body: str


class RecordingNotificationChannel:
    def __init__(self) -> None:
        self.sent: list[SentMessage] = []
        self.fail = False

    async def send(self, recipient: str, subject: str, body: str) -> None:
        if self.fail:
            raise NotificationError("notification channel unavailable")
        self.sent.append(SentMessage(recipient, subject, body))

    def last_to(self, recipient: str) -> SentMessage | None:
        return next((m for m in reversed(self.sent) if m.recipient == recipient), None)


class FakePaymentGateway:
    def __init__(self) -> None:
        self._seq = itertools.count(1)
        self.created: list[PaymentIntent] = []

    async def create_payment_intent(
        self,
        *,
        amount_cents: int,
        currency: str,
        metadata: Mapping[str, str] | None = None,
    ) -> PaymentIntent:
        n = next(self._seq)
        intent = PaymentIntent(
            id=f"pi_fake_{n}",
            client_secret=f"pi_fake_{n}_secret",
            amount_cents=amount_cents,
            currency=currency,
        )
        self.created.append(intent)
        return intent
