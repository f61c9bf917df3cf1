"""
===============================================================================
TARJETA CRC — identity/resolver.py
===============================================================================

Módulo:
    IdentityResolver (cascada de pistas -> usuario canónico)

Responsabilidades:
    - Resolver un User a partir de pistas heterogéneas, en orden:
        1) UID externo
        2) id numérico
        3) id no numérico tratado como UID externo
        4) email
        5) auto-provisión si hay payload de registro + UID
    - Tolerar fallas de store en cada paso (sigue con la próxima pista).
    - Decidir autoridad de admin: relacional O documental; si solo el
      documental dice admin, converger en segundo plano (fire-and-forget).

Colaboradores:
    - domain.repositories.RelationalStore / DocumentStore
    - application.role_sync.RoleStateSynchronizer (convergencia de rol)
    - application.store_calls.guarded (timeout por llamada)

Reglas:
    - NotFound si al menos una búsqueda respondió limpio y nada coincidió.
    - StoreUnavailableError solo si TODAS las búsquedas fallaron y no hubo
      provisión posible.
    - La provisión es idempotente: un duplicado concurrente se resuelve
      re-buscando el registro ganador.
===============================================================================
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

from ..application.role_sync import RoleStateSynchronizer, SyncTarget
from ..application.store_calls import StoreCall, guarded
from ..crosscutting.exceptions import DuplicateRecordError, StoreUnavailableError
from ..crosscutting.logger import logger
from ..domain.ids import try_parse_numeric_id
from ..domain.repositories import DocumentStore, RelationalStore
from ..domain.results import DOCUMENT, RELATIONAL, Found, Lookup, NotFound
from ..domain.value_objects import IdentityHints
from .users import EXTERNAL_AUTH_PASSWORD_PLACEHOLDER, User, UserDraft, UserRole


class IdentityResolver:
    def __init__(
        self,
        relational: RelationalStore,
        document: DocumentStore,
        synchronizer: RoleStateSynchronizer | None = None,
        *,
        timeout_s: float = 5.0,
    ) -> None:
        self._relational = relational
        self._document = document
        self._synchronizer = synchronizer
        self._timeout_s = timeout_s
        # R: referencias fuertes a tareas fire-and-forget (evita GC prematuro).
        self._background: set[asyncio.Task] = set()

    async def _call(
        self, store: str, operation: str, call: Callable[[], Awaitable[Any]]
    ) -> StoreCall[Any]:
        return await guarded(store, operation, call, timeout_s=self._timeout_s)

    # ------------------------------------------------------------------
    # Cascada
    # ------------------------------------------------------------------

    async def resolve(self, hints: IdentityHints) -> Lookup[User]:
        """Found(User) | NotFound. Puede escribir (auto-provisión)."""
        uid = (hints.external_uid or "").strip() or None
        numeric_id = try_parse_numeric_id(hints.numeric_id)
        uid_from_id: str | None = None
        if numeric_id is None and hints.numeric_id not in (None, ""):
            candidate = str(hints.numeric_id).strip()
            if candidate and candidate != uid:
                uid_from_id = candidate
        email = hints.normalized_email

        steps: list[tuple[str, Callable[[], Awaitable[Any]]]] = []
        if uid:
            steps.append(("get_user_by_uid", lambda: self._relational.get_user_by_uid(uid)))
        if numeric_id is not None:
            steps.append(
                ("get_user_by_id", lambda: self._relational.get_user_by_id(numeric_id))
            )
        if uid_from_id:
            steps.append(
                ("get_user_by_uid", lambda: self._relational.get_user_by_uid(uid_from_id))
            )
        if email:
            steps.append(
                ("get_user_by_email", lambda: self._relational.get_user_by_email(email))
            )

        answered = False
        last_error: Exception | None = None
        for operation, call in steps:
            result = await self._call(RELATIONAL, operation, call)
            if not result.ok:
                last_error = result.error
                continue
            answered = True
            if result.value is not None:
                user = result.value
                if operation == "get_user_by_email":
                    user = await self._bind_uid(user, uid or uid_from_id)
                return Found(user)

        provision_uid = uid or uid_from_id
        if hints.registration is not None and provision_uid:
            provisioned = await self._provision(hints, provision_uid)
            if provisioned is not None:
                return Found(provisioned)

        if steps and not answered:
            raise StoreUnavailableError(
                "No se pudo resolver la identidad",
                stores=(RELATIONAL,),
                original_error=last_error,
            )
        return NotFound()

    async def _bind_uid(self, user: User, uid: str | None) -> User:
        """Vincula un UID externo a un usuario hallado por email (best-effort)."""
        if not uid or user.external_uid:
            return user
        result = await self._call(
            RELATIONAL,
            "update_user",
            lambda: self._relational.update_user(user.id, {"external_uid": uid}),
        )
        if result.ok and result.value is not None:
            logger.info("Bound external UID to user", extra={"user_id": user.id})
            return result.value
        return user

    async def _provision(self, hints: IdentityHints, uid: str) -> User | None:
        registration = hints.registration
        email = (registration.email or hints.email or "").strip().lower()
        if not email:
            logger.info("Auto-provisioning skipped: no email", extra={"uid": uid})
            return None

        username = (registration.username or "").strip() or email.split("@", 1)[0]
        draft = UserDraft(
            email=email,
            username=username,
            password_hash=EXTERNAL_AUTH_PASSWORD_PLACEHOLDER,
            role=UserRole.USER,
            external_uid=uid,
            full_name=registration.full_name,
            photo_url=registration.photo_url,
        )
        created = await self._call(
            RELATIONAL, "create_user", lambda: self._relational.create_user(draft)
        )
        if not created.ok:
            if not isinstance(created.error, DuplicateRecordError):
                raise StoreUnavailableError(
                    "No se pudo provisionar el usuario",
                    stores=(RELATIONAL,),
                    original_error=created.error,
                )
            # R: otro request ganó la carrera (o el email ya existía): re-buscar.
            for operation, call in (
                ("get_user_by_uid", lambda: self._relational.get_user_by_uid(uid)),
                ("get_user_by_email", lambda: self._relational.get_user_by_email(email)),
            ):
                again = await self._call(RELATIONAL, operation, call)
                if again.ok and again.value is not None:
                    return await self._bind_uid(again.value, uid)
            logger.warning(
                "Auto-provisioning conflicted and no winner found",
                extra={"uid": uid},
            )
            return None

        user: User = created.value
        logger.info(
            "Auto-provisioned user", extra={"user_id": user.id, "uid": uid}
        )
        mirror = await self._call(
            DOCUMENT,
            "merge_profile",
            lambda: self._document.merge_profile(
                uid,
                {
                    "email": user.email,
                    "username": user.username,
                    "display_name": user.full_name,
                    "photo_url": user.photo_url,
                    "role": user.role,
                },
            ),
        )
        if not mirror.ok:
            logger.warning(
                "Profile mirror failed after provisioning",
                extra={"uid": uid, "error": mirror.error_message},
            )
        return user

    # ------------------------------------------------------------------
    # Autoridad de admin
    # ------------------------------------------------------------------

    async def is_admin(self, user: User) -> bool:
        """Admin si CUALQUIER store lo dice; converge el relacional en background."""
        if user.is_admin:
            return True
        if not user.external_uid:
            return False

        profile = await self._call(
            DOCUMENT,
            "get_profile",
            lambda: self._document.get_profile(user.external_uid),
        )
        if not profile.ok or profile.value is None:
            return False
        if profile.value.role != UserRole.ADMIN:
            return False

        if self._synchronizer is not None:
            task = asyncio.create_task(
                self._synchronizer.sync_role(SyncTarget.of(user), UserRole.ADMIN)
            )
            self._background.add(task)
            task.add_done_callback(self._background.discard)
            logger.info(
                "Admin role only in document store; converging relational",
                extra={"user_id": user.id},
            )
        return True

    async def drain(self) -> None:
        """Espera las tareas de convergencia pendientes (tests / shutdown)."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
