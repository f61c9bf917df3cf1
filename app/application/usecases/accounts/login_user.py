"""
===============================================================================
USE CASE: Login (password + segundo factor opcional por email)
===============================================================================

Business Goal:
    Autenticar con email/password. Si el usuario tiene 2FA activo, el login
    queda "pendiente" hasta verificar el código enviado por email.

Why (Context / Intención):
    - Usuario inexistente y password incorrecto devuelven el MISMO error.
    - Código incorrecto, vencido, usado o agotado devuelven el MISMO error.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Classes:
    LoginUseCase / VerifyLoginCodeUseCase / ResendLoginCodeUseCase

Collaborators:
    - IdentityResolver
    - OneTimeCodeAuthenticator (purpose = LOGIN)
    - identity.auth_users.verify_password
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass

from ....crosscutting.logger import logger
from ....domain.entities import CodePurpose
from ....domain.results import Found
from ....domain.value_objects import IdentityHints
from ....identity.auth_users import verify_password
from ....identity.otp import OneTimeCodeAuthenticator
from ....identity.resolver import IdentityResolver
from ....identity.users import User
from ..results import Result, invalid_code, unauthorized


@dataclass(frozen=True)
class LoginOutcome:
    user: User
    requires_two_factor: bool = False


def _hints_for_owner_key(owner_key: str) -> IdentityHints:
    key = (owner_key or "").strip()
    if "@" in key:
        return IdentityHints(email=key)
    return IdentityHints(numeric_id=key)


class LoginUseCase:
    def __init__(
        self, resolver: IdentityResolver, codes: OneTimeCodeAuthenticator
    ) -> None:
        self._resolver = resolver
        self._codes = codes

    async def execute(self, email: str, password: str) -> Result[LoginOutcome]:
        normalized = (email or "").strip().lower()
        if not normalized or not password:
            return unauthorized()

        lookup = await self._resolver.resolve(IdentityHints(email=normalized))
        if not isinstance(lookup, Found):
            return unauthorized()
        user = lookup.value
        if not verify_password(password, user.password_hash):
            logger.info("Login rejected", extra={"user_id": user.id})
            return unauthorized()

        if user.two_factor_enabled:
            await self._codes.issue(user, CodePurpose.LOGIN)
            return Result(value=LoginOutcome(user=user, requires_two_factor=True))
        return Result(value=LoginOutcome(user=user))


class VerifyLoginCodeUseCase:
    def __init__(
        self, resolver: IdentityResolver, codes: OneTimeCodeAuthenticator
    ) -> None:
        self._resolver = resolver
        self._codes = codes

    async def execute(self, owner_key: str, code: str) -> Result[User]:
        check = await self._codes.verify(owner_key, code, CodePurpose.LOGIN)
        if not check.ok:
            logger.info("Login code rejected", extra={"state": check.state.value})
            return invalid_code()

        hints = (
            IdentityHints(numeric_id=check.user_id)
            if check.user_id is not None
            else _hints_for_owner_key(owner_key)
        )
        lookup = await self._resolver.resolve(hints)
        if not isinstance(lookup, Found):
            return invalid_code()
        return Result(value=lookup.value)


class ResendLoginCodeUseCase:
    """Re-emite el código de login. Respuesta genérica aunque no exista el owner."""

    def __init__(
        self, resolver: IdentityResolver, codes: OneTimeCodeAuthenticator
    ) -> None:
        self._resolver = resolver
        self._codes = codes

    async def execute(self, owner_key: str) -> Result[None]:
        lookup = await self._resolver.resolve(_hints_for_owner_key(owner_key))
        if isinstance(lookup, Found) and lookup.value.two_factor_enabled:
            await self._codes.issue(lookup.value, CodePurpose.LOGIN)
        return Result()
