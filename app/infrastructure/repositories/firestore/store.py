"""
============================================================
TARJETA CRC — infrastructure/repositories/firestore/store.py
============================================================
Class: FirestoreDocumentStore

Responsibilities:
  - Implementar DocumentStore sobre Cloud Firestore (firebase_admin).
  - Colecciones por tipo de entidad; ID de documento = str(id numérico).
  - Perfiles de usuario en `users/{uid}` con escrituras set(merge=True).
  - Ejecutar el SDK (bloqueante) en un thread: el event loop nunca se bloquea.

Collaborators:
  - google.cloud.firestore.Client (vía FirebaseClientFactory)
  - firestore.codecs (documento <-> entidad)
  - crosscutting.exceptions.DocumentStoreError

Constraints:
  - Los filtros `where` se traducen a igualdades cuando el campo es conocido;
    el llamador vuelve a filtrar en proceso (semántica idéntica entre stores).
  - Cualquier error del SDK -> DocumentStoreError (con causa encadenada).
  - El timeout lo acota el llamador (guarded); acá no se reintenta.
============================================================
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Mapping

from google.api_core.exceptions import AlreadyExists
from google.cloud.firestore_v1.base_query import FieldFilter

from ....crosscutting.exceptions import DocumentStoreError
from ....crosscutting.logger import logger
from ....domain.entities import EntityKind
from ....domain.ids import to_document_key, try_parse_numeric_id
from ....identity.users import DocumentProfile
from .codecs import (
    COLLECTIONS,
    USERS_COLLECTION,
    decode_entity,
    decode_profile,
    encode_entity,
    encode_profile_fields,
    entity_key,
    where_to_document,
)


class FirestoreDocumentStore:
    """DocumentStore sobre Firestore. `client_provider` retorna un firestore.Client."""

    def __init__(self, client_provider: Callable[[], Any]) -> None:
        self._client_provider = client_provider

    def _collection(self, kind: EntityKind):
        try:
            name = COLLECTIONS[kind]
        except KeyError as exc:
            raise DocumentStoreError(f"No document collection for kind: {kind}") from exc
        return self._client_provider().collection(name)

    async def _run(self, op: str, fn: Callable[[], Any], **log_extra: object) -> Any:
        try:
            return await asyncio.to_thread(fn)
        except DocumentStoreError:
            raise
        except Exception as exc:
            logger.exception(
                f"FirestoreDocumentStore: {op} failed",
                extra={**log_extra, "error": str(exc)},
            )
            raise DocumentStoreError(
                f"FirestoreDocumentStore: {op} failed: {exc}", original_error=exc
            ) from exc

    # ============================================================
    # Entidades
    # ============================================================
    async def get_entity(self, kind: EntityKind, entity_id: int) -> Any | None:
        def _get():
            snap = self._collection(kind).document(to_document_key(entity_id)).get()
            if not snap.exists:
                return None
            return decode_entity(kind, snap.id, snap.to_dict() or {})

        return await self._run("get_entity", _get, kind=kind.value, id=entity_id)

    async def list_entities(
        self, kind: EntityKind, where: Mapping[str, Any] | None = None
    ) -> list[Any]:
        def _list():
            query = self._collection(kind)
            for field, value in where_to_document(where):
                query = query.where(filter=FieldFilter(field, "==", value))
            out = []
            for snap in query.stream():
                entity = decode_entity(kind, snap.id, snap.to_dict() or {})
                if entity is not None:
                    out.append(entity)
            return out

        return await self._run("list_entities", _list, kind=kind.value)

    async def save_entity(self, kind: EntityKind, entity: Any) -> Any:
        key = entity_key(kind, entity)

        def _save():
            self._collection(kind).document(to_document_key(key)).set(
                encode_entity(kind, entity), merge=True
            )
            return entity

        return await self._run("save_entity", _save, kind=kind.value, id=key)

    async def create_entity(self, kind: EntityKind, entity: Any) -> Any | None:
        key = entity_key(kind, entity)

        def _create():
            ref = self._collection(kind).document(to_document_key(key))
            try:
                ref.create(encode_entity(kind, entity))
            except AlreadyExists:
                return None
            return entity

        return await self._run("create_entity", _create, kind=kind.value, id=key)

    async def delete_entity(self, kind: EntityKind, entity_id: int) -> bool:
        def _delete():
            ref = self._collection(kind).document(to_document_key(entity_id))
            if not ref.get().exists:
                return False
            ref.delete()
            return True

        return await self._run("delete_entity", _delete, kind=kind.value, id=entity_id)

    async def max_entity_id(self, kind: EntityKind) -> int | None:
        # R: IDs de documento son strings: el máximo numérico se calcula en proceso.
        def _max():
            ids = [
                try_parse_numeric_id(ref.id)
                for ref in self._collection(kind).list_documents()
            ]
            numeric = [i for i in ids if i is not None]
            return max(numeric) if numeric else None

        return await self._run("max_entity_id", _max, kind=kind.value)

    # ============================================================
    # Perfiles
    # ============================================================
    async def get_profile(self, uid: str) -> DocumentProfile | None:
        def _get():
            snap = self._client_provider().collection(USERS_COLLECTION).document(uid).get()
            if not snap.exists:
                return None
            return decode_profile(uid, snap.to_dict() or {})

        return await self._run("get_profile", _get, uid=uid)

    async def merge_profile(self, uid: str, fields: Mapping[str, Any]) -> None:
        doc = encode_profile_fields(fields)

        def _merge():
            self._client_provider().collection(USERS_COLLECTION).document(uid).set(
                doc, merge=True
            )

        await self._run("merge_profile", _merge, uid=uid, fields=sorted(doc))

    async def ping(self) -> bool:
        def _ping():
            next(iter(self._client_provider().collection(USERS_COLLECTION).limit(1).stream()), None)
            return True

        return await self._run("ping", _ping)
