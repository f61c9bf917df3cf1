"""
===============================================================================
TARJETA CRC — application/dual_store.py
===============================================================================

Módulo:
    DualStoreAccessor (lecturas con fallback, escrituras con espejo)

Responsabilidades:
    - Leer primero del store documental; ante vacío, error o timeout, caer al
      relacional sin exponer el error documental.
    - Escribir según el store de registro de cada tipo de entidad:
        * relacional de registro (pedidos, reseñas, wishlists): relacional
          primero, espejo documental best-effort (se loguea, no se lanza).
        * documental de registro (productos, categorías, carritos): documental
          primero con fallback al relacional; espejo relacional best-effort.
    - Mintear IDs numéricos nuevos como 1 + máximo visible en ambos stores;
      el alta es insert-if-absent y re-mintea si el id ya fue tomado.
    - Las lecturas que alimentan una mutación van primero al store de registro.
    - Coercionar claves: toda clave pasa por parse_numeric_id
      (MalformedKeyError si no es numérica).
    - Aplicar filtros de catálogo en proceso, después de leer.

Colaboradores:
    - domain.repositories.RelationalStore / DocumentStore
    - application.store_calls.guarded (timeout + métricas)
    - domain.ids, domain.value_objects.ProductFilter

Reglas:
    - StoreUnavailableError solo si NO queda fallback (ambos stores fallaron,
      o falló el store de registro en una escritura relacional de registro).
    - "No encontrado" es NotFound (dato), nunca excepción.
===============================================================================
"""

from __future__ import annotations

import asyncio
import dataclasses
from typing import Any, Callable, Mapping, TypeVar

from ..crosscutting.exceptions import StoreUnavailableError
from ..crosscutting.logger import logger
from ..crosscutting.metrics import record_fallback_read
from ..domain.entities import EntityKind
from ..domain.ids import next_numeric_id, parse_numeric_id
from ..domain.repositories import DocumentStore, RelationalStore
from ..domain.results import DOCUMENT, RELATIONAL, Found, Lookup, NotFound
from ..domain.value_objects import ProductFilter
from .store_calls import StoreCall, guarded

T = TypeVar("T")

# R: Store de registro por tipo de entidad.
STORE_OF_RECORD: dict[EntityKind, str] = {
    EntityKind.PRODUCT: DOCUMENT,
    EntityKind.CATEGORY: DOCUMENT,
    EntityKind.CART: DOCUMENT,
    EntityKind.ORDER: RELATIONAL,
    EntityKind.REVIEW: RELATIONAL,
    EntityKind.WISHLIST: RELATIONAL,
}

CREATE_ATTEMPTS = 5


def _matches_where(entity: Any, where: Mapping[str, Any] | None) -> bool:
    if not where:
        return True
    return all(getattr(entity, field, None) == value for field, value in where.items())


class DualStoreAccessor:
    """Acceso a entidades que viven en ambos stores."""

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

    async def _call(
        self, store: str, operation: str, call: Callable[[], Any]
    ) -> StoreCall[Any]:
        return await guarded(store, operation, call, timeout_s=self._timeout_s)

    def _store(self, store: str) -> Any:
        return self._document if store == DOCUMENT else self._relational

    # ------------------------------------------------------------------
    # Lecturas
    # ------------------------------------------------------------------

    async def read(self, kind: EntityKind, key: object) -> Lookup[Any]:
        """Found(entity) | NotFound. MalformedKeyError si la clave no es numérica."""
        entity_id = parse_numeric_id(key, entity=kind.value)
        return await self._read(kind, entity_id, primary=DOCUMENT)

    async def read_for_update(self, kind: EntityKind, key: object) -> Lookup[Any]:
        """
        Lectura que alimenta una mutación: primero el store de registro.

        Una copia espejo desactualizada (espejo fallido) nunca se escribe de
        vuelta sobre el store de registro.
        """
        entity_id = parse_numeric_id(key, entity=kind.value)
        return await self._read(kind, entity_id, primary=STORE_OF_RECORD[kind])

    async def _read(self, kind: EntityKind, entity_id: int, *, primary: str) -> Lookup[Any]:
        secondary = RELATIONAL if primary == DOCUMENT else DOCUMENT
        op = f"get_{kind.value}"

        first = await self._call(
            primary, op, lambda: self._store(primary).get_entity(kind, entity_id)
        )
        if first.ok and first.value is not None:
            return Found(first.value)

        second = await self._call(
            secondary, op, lambda: self._store(secondary).get_entity(kind, entity_id)
        )
        if second.ok:
            if second.value is None:
                return NotFound()
            record_fallback_read(kind.value)
            logger.info(
                "Read served by fallback store",
                extra={
                    "store": secondary,
                    "entity": kind.value,
                    "key": entity_id,
                    "primary_error": first.error_message or None,
                },
            )
            return Found(second.value)

        if first.ok:
            # R: el primario respondió "no existe"; el otro store no pudo confirmar.
            return NotFound()
        raise StoreUnavailableError(
            f"No se pudo leer {kind.value} {entity_id}",
            stores=(DOCUMENT, RELATIONAL),
            original_error=second.error,
        )

    async def list(
        self,
        kind: EntityKind,
        *,
        where: Mapping[str, Any] | None = None,
        product_filter: ProductFilter | None = None,
    ) -> list[Any]:
        """Lista desde el primer store que responda con datos; filtra en proceso."""
        op = f"list_{kind.value}"
        doc = await self._call(
            DOCUMENT, op, lambda: self._document.list_entities(kind, where)
        )
        items: list[Any] | None = doc.value if doc.ok and doc.value else None

        if items is None:
            rel = await self._call(
                RELATIONAL, op, lambda: self._relational.list_entities(kind, where)
            )
            if rel.ok:
                items = list(rel.value or [])
                if items:
                    record_fallback_read(kind.value)
            elif doc.ok:
                items = []
            else:
                raise StoreUnavailableError(
                    f"No se pudo listar {kind.value}",
                    stores=(DOCUMENT, RELATIONAL),
                    original_error=rel.error,
                )

        result = [item for item in items if _matches_where(item, where)]
        if product_filter is not None:
            result = product_filter.apply(result)
        return sorted(result, key=lambda item: getattr(item, "id", 0))

    # ------------------------------------------------------------------
    # Escrituras
    # ------------------------------------------------------------------

    async def _mirror(self, store: str, kind: EntityKind, entity: Any) -> bool:
        target = self._document if store == DOCUMENT else self._relational
        call = await self._call(
            store, f"mirror_{kind.value}", lambda: target.save_entity(kind, entity)
        )
        if not call.ok:
            logger.warning(
                "Mirror write failed",
                extra={
                    "store": store,
                    "entity": kind.value,
                    "key": getattr(entity, "id", None),
                    "error": call.error_message,
                },
            )
        return call.ok

    async def save(self, kind: EntityKind, entity: T) -> T:
        """Upsert por id explícito, respetando el store de registro."""
        op = f"save_{kind.value}"
        if STORE_OF_RECORD[kind] == RELATIONAL:
            rel = await self._call(
                RELATIONAL, op, lambda: self._relational.save_entity(kind, entity)
            )
            if not rel.ok:
                raise StoreUnavailableError(
                    f"No se pudo guardar {kind.value}",
                    stores=(RELATIONAL,),
                    original_error=rel.error,
                )
            saved = rel.value if rel.value is not None else entity
            await self._mirror(DOCUMENT, kind, saved)
            return saved

        doc = await self._call(
            DOCUMENT, op, lambda: self._document.save_entity(kind, entity)
        )
        if doc.ok:
            saved = doc.value if doc.value is not None else entity
            await self._mirror(RELATIONAL, kind, saved)
            return saved

        logger.warning(
            "Document write failed, falling back to relational",
            extra={"entity": kind.value, "error": doc.error_message},
        )
        rel = await self._call(
            RELATIONAL, op, lambda: self._relational.save_entity(kind, entity)
        )
        if not rel.ok:
            raise StoreUnavailableError(
                f"No se pudo guardar {kind.value}",
                stores=(DOCUMENT, RELATIONAL),
                original_error=rel.error,
            )
        return rel.value if rel.value is not None else entity

    async def insert(self, kind: EntityKind, draft: Any) -> Any:
        """Alta con id serial del store relacional (pedidos, reseñas) + espejo."""
        if STORE_OF_RECORD[kind] != RELATIONAL:
            raise ValueError(f"{kind.value} no es relacional de registro")
        rel = await self._call(
            RELATIONAL,
            f"insert_{kind.value}",
            lambda: self._relational.insert_entity(kind, draft),
        )
        if not rel.ok:
            raise StoreUnavailableError(
                f"No se pudo crear {kind.value}",
                stores=(RELATIONAL,),
                original_error=rel.error,
            )
        await self._mirror(DOCUMENT, kind, rel.value)
        return rel.value

    async def mint_id(self, kind: EntityKind) -> int:
        """1 + máximo id visible en cualquiera de los stores."""
        op = f"max_id_{kind.value}"
        doc, rel = await asyncio.gather(
            self._call(DOCUMENT, op, lambda: self._document.max_entity_id(kind)),
            self._call(RELATIONAL, op, lambda: self._relational.max_entity_id(kind)),
        )
        if not doc.ok and not rel.ok:
            raise StoreUnavailableError(
                f"No se pudo asignar id para {kind.value}",
                stores=(DOCUMENT, RELATIONAL),
                original_error=rel.error,
            )
        return next_numeric_id(
            doc.value if doc.ok else None, rel.value if rel.ok else None
        )

    async def _create_once(self, kind: EntityKind, entity: T) -> T | None:
        """Insert-if-absent en el store de registro; None si el id ya estaba tomado."""
        op = f"create_{kind.value}"
        primary = STORE_OF_RECORD[kind]
        secondary = RELATIONAL if primary == DOCUMENT else DOCUMENT

        first = await self._call(
            primary, op, lambda: self._store(primary).create_entity(kind, entity)
        )
        if first.ok:
            if first.value is not None:
                await self._mirror(secondary, kind, first.value)
            return first.value

        if primary == RELATIONAL:
            raise StoreUnavailableError(
                f"No se pudo crear {kind.value}",
                stores=(RELATIONAL,),
                original_error=first.error,
            )
        logger.warning(
            "Document create failed, falling back to relational",
            extra={"entity": kind.value, "error": first.error_message},
        )
        second = await self._call(
            secondary, op, lambda: self._store(secondary).create_entity(kind, entity)
        )
        if not second.ok:
            raise StoreUnavailableError(
                f"No se pudo crear {kind.value}",
                stores=(DOCUMENT, RELATIONAL),
                original_error=second.error,
            )
        return second.value

    async def create(self, kind: EntityKind, build: Callable[[int], T]) -> T:
        """
        Alta con id minteado. Si otro alta concurrente tomó el mismo id, se
        vuelve a mintear (nunca se pisa una entidad existente).
        """
        for _ in range(CREATE_ATTEMPTS):
            entity_id = await self.mint_id(kind)
            created = await self._create_once(kind, build(entity_id))
            if created is not None:
                return created
            logger.info(
                "Minted id already taken, re-minting",
                extra={"entity": kind.value, "key": entity_id},
            )
        raise StoreUnavailableError(
            f"No se pudo asignar un id libre para {kind.value}",
            stores=(DOCUMENT, RELATIONAL),
        )

    async def write(
        self, kind: EntityKind, key: object, patch: Mapping[str, Any]
    ) -> Lookup[Any]:
        """Aplica un patch parcial sobre la entidad actual (leer -> reemplazar -> guardar)."""
        current = await self.read_for_update(kind, key)
        if isinstance(current, NotFound):
            return current
        fields = {f.name for f in dataclasses.fields(current.value)}
        changes = {k: v for k, v in patch.items() if k in fields and k != "id"}
        updated = dataclasses.replace(current.value, **changes)
        return Found(await self.save(kind, updated))

    async def delete(self, kind: EntityKind, key: object) -> bool:
        """Borra en ambos stores en paralelo; True si alguno tenía la entidad."""
        entity_id = parse_numeric_id(key, entity=kind.value)
        op = f"delete_{kind.value}"
        doc, rel = await asyncio.gather(
            self._call(DOCUMENT, op, lambda: self._document.delete_entity(kind, entity_id)),
            self._call(
                RELATIONAL, op, lambda: self._relational.delete_entity(kind, entity_id)
            ),
        )
        if not doc.ok and not rel.ok:
            raise StoreUnavailableError(
                f"No se pudo borrar {kind.value} {entity_id}",
                stores=(DOCUMENT, RELATIONAL),
                original_error=rel.error,
            )
        return bool((doc.ok and doc.value) or (rel.ok and rel.value))
