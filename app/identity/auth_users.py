"""
===============================================================================
TARJETA CRC — identity/auth_users.py
===============================================================================

Módulo:
    Autenticación de Usuarios (passwords + JWT)

Responsabilidades:
    - Hashear/verificar passwords (Argon2; verifica también hashes scrypt
      heredados con formato "hash.salt").
    - Emitir JWT de sesión con expiración (sub = id numérico).
    - Decodificar y validar JWT (firma, exp, claims mínimos, typ).
    - Emitir/validar tokens de reset de password (un solo uso: atados al hash
      vigente del usuario).
    - Extraer token desde Authorization: Bearer o cookie.

Colaboradores:
    - crosscutting.config.get_settings: secretos, TTL, cookie settings.
    - crosscutting.error_responses: unauthorized estándar.
    - identity.users: User / UserRole / placeholder de credencial externa.
    - identity.session: consume decode_access_token.

Decisiones de diseño:
    - La lógica criptográfica vive acá (borde de identidad), NO en dominio.
    - Claims mínimos: sub, email, role, exp, iat, typ.
    - No loguear secretos ni tokens.
===============================================================================
"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from fastapi import Request

from ..crosscutting.config import get_settings
from ..crosscutting.error_responses import unauthorized
from ..domain.ids import try_parse_numeric_id
from .users import EXTERNAL_AUTH_PASSWORD_PLACEHOLDER, User, UserRole

# ---------------------------------------------------------------------------
# Constantes (evitan strings mágicos)
# ---------------------------------------------------------------------------

JWT_ALGORITHM: str = "HS256"

DEFAULT_ACCESS_TOKEN_COOKIE: str = "session_token"

CLAIM_SUB: str = "sub"
CLAIM_EMAIL: str = "email"
CLAIM_ROLE: str = "role"
CLAIM_IAT: str = "iat"
CLAIM_EXP: str = "exp"
CLAIM_TYP: str = "typ"
CLAIM_PWD: str = "pwd"

TOKEN_TYPE_ACCESS: str = "access"
TOKEN_TYPE_PASSWORD_RESET: str = "password_reset"

# R: parámetros de scrypt usados por los hashes heredados (N=2^14, r=8, p=1, 64 bytes).
_LEGACY_SCRYPT_N = 16384
_LEGACY_SCRYPT_R = 8
_LEGACY_SCRYPT_P = 1
_LEGACY_SCRYPT_DKLEN = 64

_password_hasher = PasswordHasher()


# ---------------------------------------------------------------------------
# Contratos internos
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AuthSettings:
    """Settings de auth (snapshot)."""

    jwt_secret: str
    jwt_access_ttl_minutes: int
    jwt_cookie_name: str
    jwt_cookie_secure: bool
    password_reset_token_ttl_minutes: int = 30


@dataclass(frozen=True, slots=True)
class TokenPayload:
    """Payload mínimo que esperamos de un access token."""

    user_id: int
    email: str
    role: UserRole


def get_auth_settings() -> AuthSettings:
    """Construye un snapshot de settings de auth."""
    s = get_settings()
    return AuthSettings(
        jwt_secret=s.jwt_secret,
        jwt_access_ttl_minutes=s.jwt_access_ttl_minutes,
        jwt_cookie_name=s.jwt_cookie_name,
        jwt_cookie_secure=s.jwt_cookie_secure,
        password_reset_token_ttl_minutes=s.password_reset_token_ttl_minutes,
    )


# ---------------------------------------------------------------------------
# Passwords (Argon2 + scrypt heredado)
# ---------------------------------------------------------------------------


def hash_password(password: str) -> str:
    """Hashea un password usando Argon2."""
    return _password_hasher.hash(password)


def _verify_legacy_scrypt(password: str, stored: str) -> bool:
    """Verifica "hex(hash).hex(salt)"; la sal se usa como texto, no decodificada."""
    hashed_hex, _, salt = stored.partition(".")
    if not hashed_hex or not salt:
        return False
    try:
        expected = bytes.fromhex(hashed_hex)
    except ValueError:
        return False
    supplied = hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=_LEGACY_SCRYPT_N,
        r=_LEGACY_SCRYPT_R,
        p=_LEGACY_SCRYPT_P,
        dklen=_LEGACY_SCRYPT_DKLEN,
    )
    return hmac.compare_digest(supplied, expected)


def verify_password(password: str, password_hash: str) -> bool:
    """Verifica password vs hash almacenado (nunca verifica el placeholder)."""
    if not password_hash or password_hash == EXTERNAL_AUTH_PASSWORD_PLACEHOLDER:
        return False
    if password_hash.startswith("$argon2"):
        try:
            return _password_hasher.verify(password_hash, password)
        except (VerifyMismatchError, VerificationError, InvalidHashError):
            return False
    return _verify_legacy_scrypt(password, password_hash)


def password_fingerprint(password_hash: str) -> str:
    """Huella corta del hash vigente (invalida tokens de reset tras un cambio)."""
    return hashlib.sha256(password_hash.encode("utf-8")).hexdigest()[:16]


# ---------------------------------------------------------------------------
# Tokens JWT (emitir / decodificar)
# ---------------------------------------------------------------------------


def create_access_token(
    user: User, settings: AuthSettings | None = None
) -> tuple[str, int]:
    """Crea un JWT de sesión firmado.

    Retorna:
        (token, expires_in_seconds)
    """
    auth_settings = settings or get_auth_settings()

    now = datetime.now(timezone.utc)
    expires_in = int(auth_settings.jwt_access_ttl_minutes * 60)

    payload: dict[str, object] = {
        CLAIM_SUB: str(user.id),
        CLAIM_EMAIL: user.email,
        CLAIM_ROLE: user.role.value,
        CLAIM_IAT: int(now.timestamp()),
        CLAIM_EXP: int((now + timedelta(seconds=expires_in)).timestamp()),
        CLAIM_TYP: TOKEN_TYPE_ACCESS,
    }

    token = jwt.encode(payload, auth_settings.jwt_secret, algorithm=JWT_ALGORITHM)
    return token, expires_in


def decode_access_token(
    token: str, settings: AuthSettings | None = None
) -> TokenPayload:
    """Decodifica y valida un JWT de sesión.

    Errores:
        - 401 si expiró o firma inválida.
        - 401 si faltan claims mínimos o el typ no es de sesión.
    """
    auth_settings = settings or get_auth_settings()

    try:
        payload = jwt.decode(
            token,
            auth_settings.jwt_secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": [CLAIM_SUB, CLAIM_EMAIL, CLAIM_ROLE, CLAIM_EXP]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise unauthorized("Token expirado.") from exc
    except jwt.InvalidTokenError as exc:
        raise unauthorized("Token inválido.") from exc

    token_type = payload.get(CLAIM_TYP)
    if token_type is not None and token_type != TOKEN_TYPE_ACCESS:
        raise unauthorized("Tipo de token inválido.")

    user_id = try_parse_numeric_id(payload.get(CLAIM_SUB))
    email = payload.get(CLAIM_EMAIL)
    if user_id is None or not email:
        raise unauthorized("Token inválido.")

    try:
        role = UserRole.parse(payload.get(CLAIM_ROLE))
    except ValueError as exc:
        raise unauthorized("Token inválido.") from exc

    return TokenPayload(user_id=user_id, email=str(email), role=role)


def create_password_reset_token(
    user: User, settings: AuthSettings | None = None
) -> str:
    """Token de reset: válido por TTL y solo mientras el hash no cambie."""
    auth_settings = settings or get_auth_settings()
    now = datetime.now(timezone.utc)
    ttl = timedelta(minutes=auth_settings.password_reset_token_ttl_minutes)
    payload: dict[str, object] = {
        CLAIM_SUB: str(user.id),
        CLAIM_EMAIL: user.email,
        CLAIM_PWD: password_fingerprint(user.password_hash),
        CLAIM_IAT: int(now.timestamp()),
        CLAIM_EXP: int((now + ttl).timestamp()),
        CLAIM_TYP: TOKEN_TYPE_PASSWORD_RESET,
    }
    return jwt.encode(payload, auth_settings.jwt_secret, algorithm=JWT_ALGORITHM)


def decode_password_reset_token(
    token: str, settings: AuthSettings | None = None
) -> tuple[int, str] | None:
    """Devuelve (user_id, fingerprint) o None si el token no sirve."""
    auth_settings = settings or get_auth_settings()
    try:
        payload = jwt.decode(
            token,
            auth_settings.jwt_secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": [CLAIM_SUB, CLAIM_EXP, CLAIM_TYP, CLAIM_PWD]},
        )
    except jwt.InvalidTokenError:
        return None
    if payload.get(CLAIM_TYP) != TOKEN_TYPE_PASSWORD_RESET:
        return None
    user_id = try_parse_numeric_id(payload.get(CLAIM_SUB))
    if user_id is None:
        return None
    return user_id, str(payload[CLAIM_PWD])


# ---------------------------------------------------------------------------
# Extracción de token (header/cookie)
# ---------------------------------------------------------------------------


def _extract_bearer_token(authorization: str | None) -> str | None:
    """Extrae token desde `Authorization: Bearer <token>`."""
    if not authorization:
        return None
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    token = parts[1].strip()
    return token or None


def extract_access_token(request: Request, authorization: str | None) -> str | None:
    """Resuelve token desde Authorization o cookie."""
    token = _extract_bearer_token(authorization)
    if token:
        return token

    cookie_name = (
        get_auth_settings().jwt_cookie_name or ""
    ).strip() or DEFAULT_ACCESS_TOKEN_COOKIE
    return request.cookies.get(cookie_name)
