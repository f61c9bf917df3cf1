"""
===============================================================================
TARJETA CRC — identity/session.py
===============================================================================

Módulo:
    Contexto de sesión por request (Authenticated | FirebaseOnly | Guest)

Responsabilidades:
    - Derivar UNA identidad efectiva por request a partir de:
        1) JWT de sesión firmado (Authorization: Bearer / cookie)
        2) ID token del proveedor externo (X-Firebase-Token)
        3) headers legacy sin firmar (solo si la config lo permite)
    - Conservar la cascada del IdentityResolver (UID, id, email, provisión).
    - Exponer helpers para operaciones de carrito/wishlist/pedidos
      (owner_id / can_persist_lists).

Colaboradores:
    - identity.resolver.IdentityResolver
    - identity.auth_users.decode_access_token
    - domain.services.IdentityProvider
    - context.set_acting_kind (enriquecer logs)

Reglas:
    - Token de sesión inválido => 401 (no se degrada a Guest).
    - Sin credenciales => Guest (nunca error).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from ..context import set_acting_kind
from ..crosscutting.error_responses import unauthorized
from ..crosscutting.logger import logger
from ..domain.results import Found
from ..domain.services import IdentityProvider
from ..domain.value_objects import IdentityHints, RegistrationPayload
from .auth_users import decode_access_token
from .resolver import IdentityResolver
from .users import User


class ActingKind(str, Enum):
    AUTHENTICATED = "authenticated"
    FIREBASE_ONLY = "firebase_only"
    GUEST = "guest"


@dataclass(frozen=True, slots=True)
class Authenticated:
    user: User
    kind: ActingKind = ActingKind.AUTHENTICATED


@dataclass(frozen=True, slots=True)
class FirebaseOnly:
    """Identidad externa válida sin registro canónico (aún)."""

    uid: str
    email: str | None = None
    kind: ActingKind = ActingKind.FIREBASE_ONLY


@dataclass(frozen=True, slots=True)
class Guest:
    kind: ActingKind = ActingKind.GUEST


SessionContext = Union[Authenticated, FirebaseOnly, Guest]


def owner_id(context: SessionContext) -> int | None:
    """Dueño numérico para pedidos/listas; None para invitados y FirebaseOnly."""
    return context.user.id if isinstance(context, Authenticated) else None


def can_persist_lists(context: SessionContext) -> bool:
    """Carrito/wishlist solo se persisten con registro canónico."""
    return isinstance(context, Authenticated)


@dataclass(frozen=True, slots=True)
class SessionCredentials:
    """Credenciales crudas extraídas del request."""

    access_token: str | None = None
    firebase_token: str | None = None
    user_id_header: str | None = None
    external_uid_header: str | None = None
    email_header: str | None = None


class SessionContextResolver:
    def __init__(
        self,
        resolver: IdentityResolver,
        identity_provider: IdentityProvider | None = None,
        *,
        accept_unsigned_headers: bool = False,
    ) -> None:
        self._resolver = resolver
        self._identity_provider = identity_provider
        self._accept_unsigned_headers = accept_unsigned_headers

    async def resolve(
        self,
        credentials: SessionCredentials,
        registration: RegistrationPayload | None = None,
    ) -> SessionContext:
        context = await self._resolve(credentials, registration)
        set_acting_kind(context.kind.value)
        return context

    async def _resolve(
        self,
        credentials: SessionCredentials,
        registration: RegistrationPayload | None,
    ) -> SessionContext:
        if credentials.access_token:
            payload = decode_access_token(credentials.access_token)
            lookup = await self._resolver.resolve(IdentityHints(numeric_id=payload.user_id))
            if isinstance(lookup, Found):
                return Authenticated(lookup.value)
            raise unauthorized("Token inválido.")

        if credentials.firebase_token and self._identity_provider is not None:
            identity = await self._identity_provider.verify_id_token(
                credentials.firebase_token
            )
            if identity is None:
                raise unauthorized("Token externo inválido.")
            payload = RegistrationPayload(
                email=(registration.email if registration else None) or identity.email,
                username=registration.username if registration else None,
                photo_url=(registration.photo_url if registration else None)
                or identity.photo_url,
                full_name=(registration.full_name if registration else None)
                or identity.display_name,
            )
            lookup = await self._resolver.resolve(
                IdentityHints(
                    external_uid=identity.uid,
                    email=identity.email,
                    registration=payload,
                )
            )
            if isinstance(lookup, Found):
                return Authenticated(lookup.value)
            return FirebaseOnly(uid=identity.uid, email=identity.email)

        if self._accept_unsigned_headers and (
            credentials.user_id_header or credentials.external_uid_header
        ):
            logger.info("Resolving identity from unsigned headers")
            lookup = await self._resolver.resolve(
                IdentityHints(
                    numeric_id=credentials.user_id_header,
                    external_uid=credentials.external_uid_header,
                    email=credentials.email_header,
                    registration=registration,
                )
            )
            if isinstance(lookup, Found):
                return Authenticated(lookup.value)
            if credentials.external_uid_header:
                return FirebaseOnly(
                    uid=credentials.external_uid_header, email=credentials.email_header
                )

        return Guest()
