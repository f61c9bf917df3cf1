"""
===============================================================================
USE CASE: Password reset (OTP por email + token firmado)
===============================================================================

Business Goal:
    Recuperar acceso en tres pasos:
      1) forgot: emite un código al email (respuesta SIEMPRE genérica)
      2) verify-code: valida el código y devuelve un token de reset firmado
      3) reset: valida el token y propaga el nuevo password a ambos lados
         (hash relacional + proveedor de identidad)

Why (Context / Intención):
    - No enumerar cuentas: forgot nunca revela si el email existe.
    - El token queda atado al hash vigente: tras un reset exitoso, el mismo
      token deja de servir (un solo uso sin estado extra).

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Classes:
    ForgotPasswordUseCase / VerifyResetCodeUseCase / ResetPasswordUseCase

Collaborators:
    - IdentityResolver
    - OneTimeCodeAuthenticator (purpose = PASSWORD_RESET)
    - identity.auth_users (reset tokens)
    - RoleStateSynchronizer.sync_password
===============================================================================
"""

from __future__ import annotations

import hmac

from ....crosscutting.exceptions import NotificationError
from ....crosscutting.logger import logger
from ....domain.entities import CodePurpose
from ....domain.results import RELATIONAL, Found, SyncOutcome
from ....domain.value_objects import IdentityHints
from ....identity.auth_users import (
    create_password_reset_token,
    decode_password_reset_token,
    password_fingerprint,
)
from ....identity.otp import OneTimeCodeAuthenticator
from ....identity.resolver import IdentityResolver
from ...role_sync import RoleStateSynchronizer, SyncTarget
from ..results import Result, invalid_code, sync_failed, validation_failed
from .register_user import MIN_PASSWORD_LENGTH


class ForgotPasswordUseCase:
    def __init__(
        self, resolver: IdentityResolver, codes: OneTimeCodeAuthenticator
    ) -> None:
        self._resolver = resolver
        self._codes = codes

    async def execute(self, email: str) -> Result[None]:
        normalized = (email or "").strip().lower()
        if not normalized:
            return Result()
        lookup = await self._resolver.resolve(IdentityHints(email=normalized))
        if not isinstance(lookup, Found):
            return Result()
        try:
            await self._codes.issue(lookup.value, CodePurpose.PASSWORD_RESET)
        except NotificationError:
            # R: respuesta genérica igual; el fallo queda en logs.
            logger.warning(
                "Password reset code could not be delivered",
                extra={"user_id": lookup.value.id},
            )
        return Result()


class VerifyResetCodeUseCase:
    def __init__(
        self, resolver: IdentityResolver, codes: OneTimeCodeAuthenticator
    ) -> None:
        self._resolver = resolver
        self._codes = codes

    async def execute(self, email: str, code: str) -> Result[str]:
        check = await self._codes.verify(email, code, CodePurpose.PASSWORD_RESET)
        if not check.ok or check.user_id is None:
            return invalid_code()
        lookup = await self._resolver.resolve(IdentityHints(numeric_id=check.user_id))
        if not isinstance(lookup, Found):
            return invalid_code()
        return Result(value=create_password_reset_token(lookup.value))


class ResetPasswordUseCase:
    def __init__(
        self, resolver: IdentityResolver, synchronizer: RoleStateSynchronizer
    ) -> None:
        self._resolver = resolver
        self._synchronizer = synchronizer

    async def execute(self, token: str, new_password: str) -> Result[SyncOutcome]:
        if len(new_password or "") < MIN_PASSWORD_LENGTH:
            return validation_failed(
                f"El password debe tener al menos {MIN_PASSWORD_LENGTH} caracteres."
            )
        decoded = decode_password_reset_token(token or "")
        if decoded is None:
            return invalid_code()
        user_id, fingerprint = decoded

        lookup = await self._resolver.resolve(IdentityHints(numeric_id=user_id))
        if not isinstance(lookup, Found):
            return invalid_code()
        user = lookup.value
        if not hmac.compare_digest(fingerprint, password_fingerprint(user.password_hash)):
            return invalid_code()

        outcome = await self._synchronizer.sync_password(SyncTarget.of(user), new_password)
        if not outcome.succeeded(RELATIONAL):
            # R: el login valida contra el hash relacional; sin él el reset no aplicó
            # y el token sigue atado al hash viejo.
            logger.warning(
                "Password reset not applied to relational store",
                extra={"user_id": user.id, "per_store": outcome.to_dict()},
            )
            return Result(
                value=outcome,
                error=sync_failed("No se pudo actualizar el password en el store relacional").error,
            )
        logger.info(
            "Password reset applied",
            extra={"user_id": user.id, "result": outcome.summary},
        )
        return Result(value=outcome)
