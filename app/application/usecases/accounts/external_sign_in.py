"""
===============================================================================
USE CASE: External Sign-In (ID token del proveedor de identidad)
===============================================================================

Business Goal:
    Canjear un ID token del proveedor externo por una sesión propia:
    verificar el token, resolver el usuario por UID/email y auto-provisionarlo
    si todavía no existe.

Collaborators:
    - IdentityProvider.verify_id_token
    - IdentityResolver (cascada + provisión)
===============================================================================
"""

from __future__ import annotations

from ....domain.results import Found
from ....domain.services import IdentityProvider
from ....domain.value_objects import IdentityHints, RegistrationPayload
from ....identity.resolver import IdentityResolver
from ....identity.users import User
from ..results import Result, unauthorized


class ExternalSignInUseCase:
    def __init__(
        self, identity_provider: IdentityProvider, resolver: IdentityResolver
    ) -> None:
        self._identity_provider = identity_provider
        self._resolver = resolver

    async def execute(
        self, id_token: str, *, username: str | None = None
    ) -> Result[User]:
        identity = await self._identity_provider.verify_id_token(id_token)
        if identity is None:
            return unauthorized("Token externo inválido")

        hints = IdentityHints(
            external_uid=identity.uid,
            email=identity.email,
            registration=RegistrationPayload(
                email=identity.email,
                username=username,
                photo_url=identity.photo_url,
                full_name=identity.display_name,
            ),
        )
        lookup = await self._resolver.resolve(hints)
        if not isinstance(lookup, Found):
            return unauthorized("No se pudo vincular la cuenta externa")
        return Result(value=lookup.value)
