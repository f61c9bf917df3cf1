"""
===============================================================================
TARJETA CRC — identity/users.py
===============================================================================

Módulo:
    Modelo canónico de Usuario

Responsabilidades:
    - Definir el enum de roles (user / admin).
    - Definir el dataclass User canónico: la única forma que circula por la
      aplicación, sin importar si vino del store relacional o del documental.
    - Definir el placeholder de credencial para cuentas delegadas a un
      proveedor externo (nunca verifica como password).

Colaboradores:
    - identity/auth_users.py: emite/valida tokens de sesión.
    - identity/resolver.py: resuelve y provisiona usuarios.
    - infrastructure/repositories/*: mapean filas/documentos -> User.

Notas:
    - Solo "shapes" de datos, sin lógica de negocio.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

# R: No es un hash válido de argon2 ni de scrypt: verify_password siempre falla.
EXTERNAL_AUTH_PASSWORD_PLACEHOLDER = "!external-auth"


class UserRole(str, Enum):
    """Roles soportados."""

    USER = "user"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: object, default: "UserRole | None" = None) -> "UserRole":
        """Parse tolerante (documentos viejos guardan 'Admin', ' user ', etc.)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            if default is None:
                raise
            return default


@dataclass(frozen=True, slots=True)
class User:
    """Registro canónico de usuario."""

    id: int
    email: str
    username: str
    password_hash: str
    role: UserRole = UserRole.USER
    external_uid: str | None = None
    full_name: str | None = None
    address: str | None = None
    phone: str | None = None
    photo_url: str | None = None
    two_factor_enabled: bool = False
    stripe_customer_id: str | None = None
    created_at: datetime | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def has_local_password(self) -> bool:
        return self.password_hash != EXTERNAL_AUTH_PASSWORD_PLACEHOLDER


@dataclass(frozen=True, slots=True)
class UserDraft:
    """Datos para crear un usuario (el store relacional asigna el id)."""

    email: str
    username: str
    password_hash: str
    role: UserRole = UserRole.USER
    external_uid: str | None = None
    full_name: str | None = None
    photo_url: str | None = None


@dataclass(frozen=True, slots=True)
class DocumentProfile:
    """
    Perfil de usuario tal como vive en el store documental (users/{uid}).

    Puede existir sin contraparte relacional (estado huérfano).
    """

    uid: str
    email: str | None = None
    username: str | None = None
    display_name: str | None = None
    photo_url: str | None = None
    role: UserRole = UserRole.USER
    two_factor_enabled: bool = False
