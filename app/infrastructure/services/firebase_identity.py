"""
============================================================
TARJETA CRC — infrastructure/services/firebase_identity.py
============================================================
Class: FirebaseIdentityProvider

Responsibilities:
  - Implementar IdentityProvider sobre firebase_admin.auth.
  - Verificar ID tokens firmados -> ExternalIdentity.
  - Consultar existencia de email y actualizar passwords externos.

Collaborators:
  - firebase_admin.auth
  - FirebaseClientFactory (App)

Constraints:
  - Token inválido/expirado/revocado -> None (no excepción).
  - Errores del SDK (red, permisos) -> IdentityProviderError.
  - El SDK es bloqueante: cada llamada corre en un thread.
============================================================
"""

from __future__ import annotations

import asyncio

from firebase_admin import auth

from ...crosscutting.exceptions import IdentityProviderError
from ...crosscutting.logger import logger
from ...domain.value_objects import ExternalIdentity
from .firebase_app import FirebaseClientFactory


class FirebaseIdentityProvider:
    def __init__(self, factory: FirebaseClientFactory) -> None:
        self._factory = factory

    async def verify_id_token(self, id_token: str) -> ExternalIdentity | None:
        if not id_token:
            return None
        try:
            claims = await asyncio.to_thread(
                auth.verify_id_token, id_token, app=self._factory.app()
            )
        except (
            auth.InvalidIdTokenError,
            auth.ExpiredIdTokenError,
            auth.RevokedIdTokenError,
            auth.UserDisabledError,
        ) as exc:
            logger.info("ID token rechazado", extra={"reason": type(exc).__name__})
            return None
        except Exception as exc:
            logger.exception("verify_id_token failed", extra={"error": str(exc)})
            raise IdentityProviderError("verify_id_token failed", original_error=exc) from exc

        return ExternalIdentity(
            uid=claims["uid"],
            email=claims.get("email"),
            display_name=claims.get("name"),
            photo_url=claims.get("picture"),
            email_verified=bool(claims.get("email_verified", False)),
        )

    async def email_exists(self, email: str) -> bool:
        try:
            await asyncio.to_thread(auth.get_user_by_email, email, app=self._factory.app())
        except auth.UserNotFoundError:
            return False
        except Exception as exc:
            logger.exception("email_exists failed", extra={"error": str(exc)})
            raise IdentityProviderError("email_exists failed", original_error=exc) from exc
        return True

    async def update_password(self, uid: str, new_password: str) -> None:
        try:
            await asyncio.to_thread(
                auth.update_user, uid, password=new_password, app=self._factory.app()
            )
        except Exception as exc:
            logger.exception(
                "update_password failed", extra={"uid": uid, "error": str(exc)}
            )
            raise IdentityProviderError("update_password failed", original_error=exc) from exc
