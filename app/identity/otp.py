"""
===============================================================================
TARJETA CRC — identity/otp.py
===============================================================================

Módulo:
    OneTimeCodeAuthenticator (códigos de 6 dígitos por email)

Responsabilidades:
    - Emitir un código de 6 dígitos con expiración configurable por flujo.
    - Archivarlo bajo TODAS las claves conocidas del owner (id numérico, UID
      externo, email) para que cualquier pista del request lo encuentre.
    - Entregarlo por el canal de notificación.
    - Verificar: expiración ANTES que igualdad; trim + comparación exacta;
      un solo uso; tope de intentos fallidos (Exhausted).

Colaboradores:
    - domain.repositories.CodeStore
    - domain.services.NotificationChannel
    - crosscutting.config (TTL por flujo, max attempts)

Estados:
    Issued -> Verified | Expired | Exhausted

Reglas:
    - El resultado hacia afuera es genérico (no revela cuál regla falló);
      el estado detallado queda para logs/tests.
    - El código nunca se loguea.
===============================================================================
"""

from __future__ import annotations

import hmac
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Mapping
from uuid import uuid4

from ..crosscutting.config import Settings
from ..crosscutting.exceptions import NotificationError
from ..crosscutting.logger import logger
from ..domain.entities import CodePurpose, OneTimeCode
from ..domain.repositories import CodeStore
from ..domain.services import NotificationChannel
from .users import User

CODE_LENGTH = 6
CODE_SUBJECT = "Your Verification Code"


class CodeState(str, Enum):
    VERIFIED = "verified"
    INVALID = "invalid"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"
    USED = "used"
    MISSING = "missing"


@dataclass(frozen=True, slots=True)
class IssuedCode:
    code: str
    expires_at: datetime
    owner_keys: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class CodeVerification:
    state: CodeState
    user_id: int | None = None

    @property
    def ok(self) -> bool:
        return self.state == CodeState.VERIFIED

    def __bool__(self) -> bool:
        return self.ok


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_owner_key(key: object) -> str:
    text = str(key).strip()
    return text.lower() if "@" in text else text


def owner_keys_for(user: User) -> tuple[str, ...]:
    keys = [str(user.id)]
    if user.external_uid:
        keys.append(user.external_uid)
    if user.email:
        keys.append(user.email.strip().lower())
    return tuple(dict.fromkeys(normalize_owner_key(k) for k in keys))


def generate_code() -> str:
    return f"{secrets.randbelow(10**CODE_LENGTH):0{CODE_LENGTH}d}"


class OneTimeCodeAuthenticator:
    def __init__(
        self,
        codes: CodeStore,
        notifier: NotificationChannel,
        *,
        ttl_minutes: Mapping[CodePurpose, int],
        max_attempts: int = 5,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._codes = codes
        self._notifier = notifier
        self._ttl_minutes = dict(ttl_minutes)
        self._max_attempts = max_attempts
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        codes: CodeStore,
        notifier: NotificationChannel,
        settings: Settings,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> "OneTimeCodeAuthenticator":
        return cls(
            codes,
            notifier,
            ttl_minutes={
                CodePurpose.LOGIN: settings.otp_login_ttl_minutes,
                CodePurpose.SETUP: settings.otp_setup_ttl_minutes,
                CodePurpose.DISABLE: settings.otp_disable_ttl_minutes,
                CodePurpose.PASSWORD_RESET: settings.otp_password_reset_ttl_minutes,
            },
            max_attempts=settings.otp_max_attempts,
            clock=clock,
        )

    def ttl_for(self, purpose: CodePurpose) -> timedelta:
        return timedelta(minutes=self._ttl_minutes.get(purpose, 10))

    async def issue(self, user: User, purpose: CodePurpose) -> IssuedCode:
        """Genera, entrega y archiva un código. NotificationError si no se entrega."""
        now = self._clock()
        ttl = self.ttl_for(purpose)
        record = OneTimeCode(
            issuance_id=uuid4().hex,
            purpose=purpose,
            code=generate_code(),
            expires_at=now + ttl,
            user_id=user.id,
            created_at=now,
        )
        keys = owner_keys_for(user)

        minutes = int(ttl.total_seconds() // 60)
        body = (
            f"Your verification code is: {record.code}. "
            f"This code will expire in {minutes} minutes."
        )
        try:
            await self._notifier.send(user.email, CODE_SUBJECT, body)
        except Exception as exc:
            logger.warning(
                "Code delivery failed",
                extra={"user_id": user.id, "purpose": purpose.value},
            )
            raise NotificationError(
                "No se pudo enviar el código de verificación", original_error=exc
            ) from exc

        # R: se archiva recién entregado; si el envío falla, el código anterior sigue vigente.
        await self._codes.put(record, keys)
        logger.info(
            "One-time code issued",
            extra={"user_id": user.id, "purpose": purpose.value},
        )
        return IssuedCode(code=record.code, expires_at=record.expires_at, owner_keys=keys)

    async def verify(
        self, owner_key: object, supplied: str | None, purpose: CodePurpose
    ) -> CodeVerification:
        record = await self._codes.get(purpose, normalize_owner_key(owner_key))
        if record is None:
            return CodeVerification(CodeState.MISSING)
        if record.used:
            return CodeVerification(CodeState.USED)
        if self._clock() > record.expires_at:
            return CodeVerification(CodeState.EXPIRED)
        if record.attempts >= self._max_attempts:
            return CodeVerification(CodeState.EXHAUSTED)

        candidate = (supplied or "").strip()
        if not hmac.compare_digest(candidate.encode("utf-8"), record.code.encode("utf-8")):
            attempts = await self._codes.register_failed_attempt(record.issuance_id)
            if attempts >= self._max_attempts:
                logger.warning(
                    "One-time code exhausted",
                    extra={"user_id": record.user_id, "purpose": purpose.value},
                )
                return CodeVerification(CodeState.EXHAUSTED)
            return CodeVerification(CodeState.INVALID)

        await self._codes.mark_used(record.issuance_id)
        return CodeVerification(CodeState.VERIFIED, user_id=record.user_id)
