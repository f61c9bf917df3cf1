"""
===============================================================================
USE CASE: Update Profile
===============================================================================

Business Goal:
    Editar datos de perfil (nombre, dirección, teléfono, foto, username).
    El rol NO se cambia acá (solo vía /users/role).

Collaborators:
    - RelationalStore.update_user (registro canónico)
    - DocumentStore.merge_profile (espejo best-effort si hay UID)
===============================================================================
"""

from __future__ import annotations

from typing import Any, Mapping

from ....crosscutting.exceptions import DuplicateRecordError
from ....crosscutting.logger import logger
from ....domain.repositories import DocumentStore, RelationalStore
from ....domain.results import DOCUMENT
from ....identity.users import User
from ...store_calls import guarded
from ..results import Result, conflict, not_found, validation_failed

EDITABLE_PROFILE_FIELDS: frozenset[str] = frozenset(
    {"username", "full_name", "address", "phone", "photo_url"}
)


class UpdateProfileUseCase:
    def __init__(
        self,
        relational: RelationalStore,
        document: DocumentStore,
        *,
        timeout_s: float = 5.0,
    ) -> None:
        self._relational = relational
        self._document = document
        self._timeout_s = timeout_s

    async def execute(self, user: User, changes: Mapping[str, Any]) -> Result[User]:
        unknown = set(changes) - EDITABLE_PROFILE_FIELDS
        if unknown:
            return validation_failed(
                f"Campos no editables: {', '.join(sorted(unknown))}"
            )
        cleaned = {
            key: (value.strip() if isinstance(value, str) else value)
            for key, value in changes.items()
        }
        if "username" in cleaned and not cleaned["username"]:
            return validation_failed("El username no puede estar vacío.")
        if not cleaned:
            return Result(value=user)

        try:
            updated = await self._relational.update_user(user.id, cleaned)
        except DuplicateRecordError:
            return conflict("El username ya está en uso")
        if updated is None:
            return not_found("Usuario", user.id)

        if updated.external_uid:
            mirror = {
                "username": updated.username,
                "display_name": updated.full_name,
                "photo_url": updated.photo_url,
            }
            result = await guarded(
                DOCUMENT,
                "merge_profile",
                lambda: self._document.merge_profile(updated.external_uid, mirror),
                timeout_s=self._timeout_s,
            )
            if not result.ok:
                logger.warning(
                    "Profile mirror failed",
                    extra={"user_id": updated.id, "error": result.error_message},
                )
        return Result(value=updated)
