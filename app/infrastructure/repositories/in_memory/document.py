"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/document.py
============================================================
Class: InMemoryDocumentStore

Responsibilities:
  - Implementar DocumentStore en memoria (tests / local dev sin Firebase).
  - Perfiles como dict de campos con semántica set-with-merge.
  - Inyección de fallas vía `faults`.

Constraints:
  - Thread-safe: acceso protegido por Lock.
  - merge_profile crea el perfil si no existe (igual que set(merge=True)).
============================================================
"""

from __future__ import annotations

from threading import Lock
from typing import Any, Mapping

from ....crosscutting.exceptions import DocumentStoreError
from ....domain.entities import EntityKind
from ....identity.users import DocumentProfile, UserRole
from .faults import FaultInjector
from .relational import entity_key, matches_where


class InMemoryDocumentStore:
    def __init__(self) -> None:
        self._lock = Lock()
        self._entities: dict[EntityKind, dict[int, Any]] = {k: {} for k in EntityKind}
        self._profiles: dict[str, dict[str, Any]] = {}
        self.faults = FaultInjector(DocumentStoreError, "document")

    # ============================================================
    # Entidades
    # ============================================================
    async def get_entity(self, kind: EntityKind, entity_id: int) -> Any | None:
        await self.faults.check("get_entity")
        with self._lock:
            return self._entities[kind].get(entity_id)

    async def list_entities(
        self, kind: EntityKind, where: Mapping[str, Any] | None = None
    ) -> list[Any]:
        await self.faults.check("list_entities")
        with self._lock:
            items = sorted(self._entities[kind].items())
        return [e for _, e in items if matches_where(e, where)]

    async def save_entity(self, kind: EntityKind, entity: Any) -> Any:
        await self.faults.check("save_entity")
        with self._lock:
            self._entities[kind][entity_key(kind, entity)] = entity
            return entity

    async def create_entity(self, kind: EntityKind, entity: Any) -> Any | None:
        await self.faults.check("create_entity")
        with self._lock:
            key = entity_key(kind, entity)
            if key in self._entities[kind]:
                return None
            self._entities[kind][key] = entity
            return entity

    async def delete_entity(self, kind: EntityKind, entity_id: int) -> bool:
        await self.faults.check("delete_entity")
        with self._lock:
            return self._entities[kind].pop(entity_id, None) is not None

    async def max_entity_id(self, kind: EntityKind) -> int | None:
        await self.faults.check("max_entity_id")
        with self._lock:
            keys = self._entities[kind].keys()
            return max(keys) if keys else None

    # ============================================================
    # Perfiles
    # ============================================================
    async def get_profile(self, uid: str) -> DocumentProfile | None:
        await self.faults.check("get_profile")
        with self._lock:
            raw = self._profiles.get(uid)
            if raw is None:
                return None
            raw = dict(raw)
        return DocumentProfile(
            uid=uid,
            email=raw.get("email"),
            username=raw.get("username"),
            display_name=raw.get("display_name"),
            photo_url=raw.get("photo_url"),
            role=UserRole.parse(raw.get("role") or UserRole.USER, default=UserRole.USER),
            two_factor_enabled=bool(raw.get("two_factor_enabled", False)),
        )

    async def merge_profile(self, uid: str, fields: Mapping[str, Any]) -> None:
        await self.faults.check("merge_profile")
        with self._lock:
            self._profiles.setdefault(uid, {}).update(fields)

    def raw_profile(self, uid: str) -> dict[str, Any] | None:
        """Snapshot de los campos crudos (para tests)."""
        with self._lock:
            raw = self._profiles.get(uid)
            return dict(raw) if raw is not None else None

    async def ping(self) -> bool:
        await self.faults.check("ping")
        return True


__all__ = ["InMemoryDocumentStore"]
