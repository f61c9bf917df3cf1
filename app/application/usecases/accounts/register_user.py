"""
===============================================================================
USE CASE: Register User (email + username + password)
===============================================================================

Business Goal:
    Crear una cuenta local con password hasheado (Argon2) y rol user.

Why (Context / Intención):
    - El email debe ser único en TODA la identidad: tanto si lo tiene el
      store relacional como si lo tiene el proveedor externo.
    - Las altas nunca crean admins.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Class:
    RegisterUserUseCase

Responsibilities:
    - Validar/normalizar inputs.
    - Rechazar emails en uso (409 "El email ya está en uso").
    - Persistir el usuario (store relacional = registro canónico).

Collaborators:
    - IdentityResolver (búsqueda tolerante por email)
    - RelationalStore.create_user
    - IdentityProvider.email_exists (best-effort)
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass

from ....crosscutting.exceptions import DuplicateRecordError
from ....crosscutting.logger import logger
from ....domain.repositories import RelationalStore
from ....domain.results import Found
from ....domain.services import IdentityProvider
from ....domain.value_objects import IdentityHints
from ....identity.auth_users import hash_password
from ....identity.resolver import IdentityResolver
from ....identity.users import User, UserDraft, UserRole
from ..results import Result, conflict, validation_failed

MIN_PASSWORD_LENGTH = 8
MIN_USERNAME_LENGTH = 3
EMAIL_IN_USE = "El email ya está en uso"


@dataclass(frozen=True)
class RegisterUserInput:
    email: str
    username: str
    password: str
    full_name: str | None = None


class RegisterUserUseCase:
    def __init__(
        self,
        resolver: IdentityResolver,
        relational: RelationalStore,
        identity_provider: IdentityProvider | None = None,
    ) -> None:
        self._resolver = resolver
        self._relational = relational
        self._identity_provider = identity_provider

    async def execute(self, data: RegisterUserInput) -> Result[User]:
        email = (data.email or "").strip().lower()
        username = (data.username or "").strip()
        if "@" not in email:
            return validation_failed("Email inválido.")
        if len(username) < MIN_USERNAME_LENGTH:
            return validation_failed(
                f"El username debe tener al menos {MIN_USERNAME_LENGTH} caracteres."
            )
        if len(data.password or "") < MIN_PASSWORD_LENGTH:
            return validation_failed(
                f"El password debe tener al menos {MIN_PASSWORD_LENGTH} caracteres."
            )

        existing = await self._resolver.resolve(IdentityHints(email=email))
        if isinstance(existing, Found):
            return conflict(EMAIL_IN_USE)
        if await self._email_taken_externally(email):
            return conflict(EMAIL_IN_USE)

        draft = UserDraft(
            email=email,
            username=username,
            password_hash=hash_password(data.password),
            role=UserRole.USER,
            full_name=(data.full_name or "").strip() or None,
        )
        try:
            user = await self._relational.create_user(draft)
        except DuplicateRecordError:
            return conflict("El email o username ya está en uso")

        logger.info("User registered", extra={"user_id": user.id})
        return Result(value=user)

    async def _email_taken_externally(self, email: str) -> bool:
        if self._identity_provider is None:
            return False
        try:
            return await self._identity_provider.email_exists(email)
        except Exception as exc:
            # R: el proveedor externo no es de registro para altas locales.
            logger.warning(
                "Identity provider email check failed",
                extra={"error_type": type(exc).__name__},
            )
            return False
