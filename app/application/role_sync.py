"""
===============================================================================
TARJETA CRC — application/role_sync.py
===============================================================================

Módulo:
    RoleStateSynchronizer (propagación de rol/estado a ambos stores)

Responsabilidades:
    - sync_role / sync_state: aplicar el cambio en el store relacional y en el
      documental EN PARALELO, sin cortocircuito entre ambos.
    - Materializar un registro relacional mínimo desde el perfil documental
      cuando el usuario solo existe en el store documental (requiere email).
    - Escribir el lado documental con set-with-merge (el documento puede no
      existir todavía).
    - sync_password: hash relacional + password del proveedor de identidad.
    - Devolver SIEMPRE un SyncOutcome; nunca lanzar.

Colaboradores:
    - domain.repositories.RelationalStore / DocumentStore
    - domain.services.IdentityProvider
    - application.store_calls.guarded
    - identity.auth_users.hash_password
    - crosscutting.metrics.record_sync_result

Reglas:
    - Last-write-wins por store; no hay transacción entre stores.
    - Falla parcial = dato (SyncOutcome.is_partial), nunca excepción.
===============================================================================
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping

from ..crosscutting.logger import logger
from ..crosscutting.metrics import record_sync_result
from ..domain.repositories import DocumentStore, RelationalStore
from ..domain.results import (
    DOCUMENT,
    IDENTITY_PROVIDER,
    RELATIONAL,
    StoreOutcome,
    SyncOutcome,
)
from ..domain.services import IdentityProvider
from ..identity.auth_users import hash_password
from ..identity.users import (
    EXTERNAL_AUTH_PASSWORD_PLACEHOLDER,
    User,
    UserDraft,
    UserRole,
)
from .store_calls import guarded

# R: campos de estado que se propagan a ambos stores.
SYNCABLE_FIELDS: frozenset[str] = frozenset({"role", "two_factor_enabled"})


@dataclass(frozen=True, slots=True)
class SyncTarget:
    """Identidad a sincronizar: cualquiera de las claves conocidas."""

    user_id: int | None = None
    external_uid: str | None = None
    email: str | None = None

    @classmethod
    def of(cls, user: User) -> "SyncTarget":
        return cls(user_id=user.id, external_uid=user.external_uid, email=user.email)


class _SideFailed(Exception):
    """Falla de un lado de la sincronización (se reporta como dato)."""


class RoleStateSynchronizer:
    def __init__(
        self,
        relational: RelationalStore,
        document: DocumentStore,
        identity_provider: IdentityProvider | None = None,
        *,
        timeout_s: float = 5.0,
    ) -> None:
        self._relational = relational
        self._document = document
        self._identity_provider = identity_provider
        self._timeout_s = timeout_s

    async def _require(
        self, store: str, operation: str, call: Callable[[], Awaitable[Any]]
    ) -> Any:
        result = await guarded(store, operation, call, timeout_s=self._timeout_s)
        if not result.ok:
            raise _SideFailed(result.error_message)
        return result.value

    # ------------------------------------------------------------------
    # API pública
    # ------------------------------------------------------------------

    async def sync_role(self, target: SyncTarget, new_role: UserRole) -> SyncOutcome:
        return await self.sync_state(target, {"role": UserRole(new_role)}, operation="sync_role")

    async def sync_state(
        self,
        target: SyncTarget,
        patch: Mapping[str, Any],
        *,
        operation: str = "sync_state",
    ) -> SyncOutcome:
        changes = {k: v for k, v in patch.items() if k in SYNCABLE_FIELDS}
        if "role" in changes:
            changes["role"] = UserRole.parse(changes["role"])

        rel, doc = await asyncio.gather(
            self._run_side(RELATIONAL, self._relational_side(target, changes)),
            self._run_side(DOCUMENT, self._document_side(target, changes)),
        )
        return self._finish(operation, target, {RELATIONAL: rel, DOCUMENT: doc})

    async def sync_password(self, target: SyncTarget, new_password: str) -> SyncOutcome:
        password_hash = hash_password(new_password)
        rel, idp = await asyncio.gather(
            self._run_side(
                RELATIONAL,
                self._relational_side(target, {"password_hash": password_hash}, materialize=False),
            ),
            self._run_side(IDENTITY_PROVIDER, self._identity_provider_side(target, new_password)),
        )
        return self._finish("sync_password", target, {RELATIONAL: rel, IDENTITY_PROVIDER: idp})

    # ------------------------------------------------------------------
    # Lados
    # ------------------------------------------------------------------

    async def _run_side(
        self, store: str, side: Awaitable[StoreOutcome]
    ) -> tuple[StoreOutcome, str | None]:
        try:
            return await side, None
        except _SideFailed as exc:
            return StoreOutcome.FAILED, str(exc)
        except Exception as exc:
            logger.warning(
                "Sync side raised unexpectedly",
                extra={"store": store, "error_type": type(exc).__name__},
            )
            return StoreOutcome.FAILED, str(exc) or type(exc).__name__

    async def _find_relational(self, target: SyncTarget) -> User | None:
        if target.external_uid:
            user = await self._require(
                RELATIONAL,
                "get_user_by_uid",
                lambda: self._relational.get_user_by_uid(target.external_uid),
            )
            if user is not None:
                return user
        if target.user_id is not None:
            return await self._require(
                RELATIONAL,
                "get_user_by_id",
                lambda: self._relational.get_user_by_id(target.user_id),
            )
        return None

    async def _materialize(self, target: SyncTarget, changes: Mapping[str, Any]) -> User:
        """Crea un registro relacional mínimo desde el perfil documental."""
        profile = None
        if target.external_uid:
            profile = await self._require(
                DOCUMENT,
                "get_profile",
                lambda: self._document.get_profile(target.external_uid),
            )
        email = ((profile.email if profile else None) or target.email or "").strip().lower()
        if not email:
            raise _SideFailed("no relational record and no email to materialize one")

        username = (profile.username if profile else None) or email.split("@", 1)[0]
        draft = UserDraft(
            email=email,
            username=username,
            password_hash=EXTERNAL_AUTH_PASSWORD_PLACEHOLDER,
            role=changes.get("role") or (profile.role if profile else UserRole.USER),
            external_uid=target.external_uid,
            full_name=profile.display_name if profile else None,
            photo_url=profile.photo_url if profile else None,
        )
        logger.info(
            "Materializing relational user from document profile",
            extra={"uid": target.external_uid},
        )
        return await self._require(
            RELATIONAL, "create_user", lambda: self._relational.create_user(draft)
        )

    async def _relational_side(
        self,
        target: SyncTarget,
        changes: Mapping[str, Any],
        *,
        materialize: bool = True,
    ) -> StoreOutcome:
        user = await self._find_relational(target)
        if user is None:
            if not materialize:
                raise _SideFailed("relational record not found")
            user = await self._materialize(target, changes)
        updated = await self._require(
            RELATIONAL,
            "update_user",
            lambda: self._relational.update_user(user.id, changes),
        )
        if updated is None:
            raise _SideFailed("relational record vanished during update")
        return StoreOutcome.SUCCEEDED

    async def _resolve_uid(self, target: SyncTarget) -> str | None:
        if target.external_uid:
            return target.external_uid
        if target.user_id is None:
            return None
        user = await self._require(
            RELATIONAL,
            "get_user_by_id",
            lambda: self._relational.get_user_by_id(target.user_id),
        )
        return user.external_uid if user else None

    async def _document_side(
        self, target: SyncTarget, changes: Mapping[str, Any]
    ) -> StoreOutcome:
        uid = await self._resolve_uid(target)
        if not uid:
            return StoreOutcome.SKIPPED
        await self._require(
            DOCUMENT, "merge_profile", lambda: self._document.merge_profile(uid, changes)
        )
        return StoreOutcome.SUCCEEDED

    async def _identity_provider_side(
        self, target: SyncTarget, new_password: str
    ) -> StoreOutcome:
        if self._identity_provider is None:
            return StoreOutcome.SKIPPED
        uid = await self._resolve_uid(target)
        if not uid:
            return StoreOutcome.SKIPPED
        await self._require(
            IDENTITY_PROVIDER,
            "update_password",
            lambda: self._identity_provider.update_password(uid, new_password),
        )
        return StoreOutcome.SUCCEEDED

    def _finish(
        self,
        operation: str,
        target: SyncTarget,
        sides: Mapping[str, tuple[StoreOutcome, str | None]],
    ) -> SyncOutcome:
        outcome = SyncOutcome(
            operation=operation,
            per_store={store: result for store, (result, _) in sides.items()},
            errors={store: err for store, (_, err) in sides.items() if err},
        )
        record_sync_result(operation=operation, result=outcome.summary)
        if outcome.summary != "full":
            logger.warning(
                "Dual-store sync incomplete",
                extra={
                    "operation": operation,
                    "user_id": target.user_id,
                    "uid": target.external_uid,
                    "result": outcome.summary,
                    "per_store": {k: v.value for k, v in outcome.per_store.items()},
                },
            )
        return outcome
