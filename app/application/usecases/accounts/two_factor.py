"""
===============================================================================
USE CASE: Activar / desactivar segundo factor (código por email)
===============================================================================

Business Goal:
    Cambiar `two_factor_enabled` solo después de demostrar control del email:
      1) request: emite un código (SETUP para activar, DISABLE para apagar)
      2) confirm: verifica el código y sincroniza el flag en ambos stores

Why (Context / Intención):
    - El flag vive en ambos stores: se propaga con el RoleStateSynchronizer
      (resultado por-store, nunca excepción).

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Classes:
    RequestTwoFactorCodeUseCase / ConfirmTwoFactorChangeUseCase

Collaborators:
    - OneTimeCodeAuthenticator
    - RoleStateSynchronizer.sync_state
===============================================================================
"""

from __future__ import annotations

from ....domain.entities import CodePurpose
from ....domain.results import SyncOutcome
from ....identity.otp import OneTimeCodeAuthenticator
from ....identity.users import User
from ...role_sync import RoleStateSynchronizer, SyncTarget
from ..results import Result, invalid_code, sync_failed, validation_failed


def purpose_for(enable: bool) -> CodePurpose:
    return CodePurpose.SETUP if enable else CodePurpose.DISABLE


class RequestTwoFactorCodeUseCase:
    def __init__(self, codes: OneTimeCodeAuthenticator) -> None:
        self._codes = codes

    async def execute(self, user: User, *, enable: bool) -> Result[None]:
        if user.two_factor_enabled == enable:
            state = "activado" if enable else "desactivado"
            return validation_failed(f"El segundo factor ya está {state}.")
        await self._codes.issue(user, purpose_for(enable))
        return Result()


class ConfirmTwoFactorChangeUseCase:
    def __init__(
        self, codes: OneTimeCodeAuthenticator, synchronizer: RoleStateSynchronizer
    ) -> None:
        self._codes = codes
        self._synchronizer = synchronizer

    async def execute(
        self, user: User, code: str, *, enable: bool
    ) -> Result[SyncOutcome]:
        check = await self._codes.verify(str(user.id), code, purpose_for(enable))
        if not check.ok or check.user_id not in (None, user.id):
            return invalid_code()

        outcome = await self._synchronizer.sync_state(
            SyncTarget.of(user),
            {"two_factor_enabled": enable},
            operation="enable_2fa" if enable else "disable_2fa",
        )
        if not outcome.overall_success:
            return sync_failed()
        return Result(value=outcome)
