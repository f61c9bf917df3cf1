"""
===============================================================================
TARJETA CRC — dependencies.py (Dependencias comunes de routers)
===============================================================================

Responsabilidades:
  - Derivar el SessionContext del request (bearer/cookie, token externo,
    headers legacy) y exponerlo vía Depends.
  - Guardas: require_user (sesión autenticada) y require_admin (rol admin
    en cualquiera de los dos stores).

Colaboradores:
  - container.get_session_resolver / get_identity_resolver
  - identity.session (SessionCredentials, Authenticated)
  - identity.auth_users.extract_access_token
  - crosscutting.error_responses (401/403)
===============================================================================
"""

from __future__ import annotations

from fastapi import Depends, Header, Request

from app.container import get_identity_resolver, get_session_resolver
from app.crosscutting.error_responses import forbidden, unauthorized
from app.identity.auth_users import extract_access_token
from app.identity.session import Authenticated, SessionContext, SessionCredentials
from app.identity.users import User


async def get_session_context(
    request: Request,
    authorization: str | None = Header(default=None),
    x_firebase_token: str | None = Header(default=None),
    x_user_id: str | None = Header(default=None),
    x_firebase_uid: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
) -> SessionContext:
    """Sin credenciales => Guest; credenciales inválidas => 401."""
    credentials = SessionCredentials(
        access_token=extract_access_token(request, authorization),
        firebase_token=x_firebase_token,
        user_id_header=x_user_id,
        external_uid_header=x_firebase_uid,
        email_header=x_user_email,
    )
    return await get_session_resolver().resolve(credentials)


async def require_user(context: SessionContext = Depends(get_session_context)) -> User:
    if isinstance(context, Authenticated):
        return context.user
    raise unauthorized()


async def require_admin(user: User = Depends(require_user)) -> User:
    # R: admin si CUALQUIER store lo dice (el resolver converge en background).
    if await get_identity_resolver().is_admin(user):
        return user
    raise forbidden("Se requiere rol admin.")
