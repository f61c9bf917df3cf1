"""
===============================================================================
TASK: Dev Seed Admin (local-only)
===============================================================================

Qué es:
    Asegura que exista un usuario admin para desarrollo cuando está
    configurado (DEV_SEED_ADMIN=true).

Seguridad:
    - Guard estricto: solo corre con app_env local/development.

CRC:
    Component: ensure_dev_admin
    Responsibilities:
      - Validar guard de ambiente
      - Asegurar usuario (create, o reset si force_reset)
    Collaborators:
      - RelationalStore (get_user_by_email / create_user / update_user)
      - password_hasher
      - Settings
===============================================================================
"""

from __future__ import annotations

from typing import Callable, Final

from ..crosscutting.config import Settings
from ..crosscutting.logger import logger
from ..domain.repositories import RelationalStore
from ..identity.users import UserDraft, UserRole

_ALLOWED_ENVS: Final[frozenset[str]] = frozenset({"local", "development"})


def _assert_allowed_environment(settings: Settings) -> None:
    env = (settings.app_env or "").strip().lower()
    if env not in _ALLOWED_ENVS:
        raise RuntimeError(
            f"FATAL: DEV_SEED_ADMIN is enabled but ENV is '{env}' "
            "(must be 'local' or 'development'). "
            "Safety guard prevents accidental overrides."
        )


async def ensure_dev_admin(
    settings: Settings,
    *,
    relational: RelationalStore,
    password_hasher: Callable[[str], str],
) -> None:
    """
    Behavior:
      - If disabled: no-op
      - If enabled:
          - Create admin if missing
          - If force_reset: update password and role
          - Otherwise: skip if exists
    """
    if not settings.dev_seed_admin:
        return

    _assert_allowed_environment(settings)

    email = (settings.dev_seed_admin_email or "").strip().lower()
    password = settings.dev_seed_admin_password or ""
    if not email or not password:
        raise ValueError("Dev seed admin is enabled but email/password are empty")

    logger.info(
        "Dev seed admin: ensuring admin user",
        extra={"email": email, "force_reset": settings.dev_seed_admin_force_reset},
    )

    existing = await relational.get_user_by_email(email)
    if existing is None:
        await relational.create_user(
            UserDraft(
                email=email,
                username=email.split("@", 1)[0] or "admin",
                password_hash=password_hasher(password),
                role=UserRole.ADMIN,
            )
        )
        logger.info("Dev seed admin: user created", extra={"email": email})
        return

    if settings.dev_seed_admin_force_reset:
        await relational.update_user(
            existing.id,
            {"password_hash": password_hasher(password), "role": UserRole.ADMIN},
        )
        logger.info("Dev seed admin: user reset applied", extra={"email": email})
        return

    logger.info("Dev seed admin: user exists; skipping", extra={"email": email})
