"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/store.py
============================================================
Class: PostgresStore

Responsibilities:
  - Implementar RelationalStore sobre PostgreSQL (psycopg 3, pool async).
  - Usuarios: lookups por id / external_uid / email, alta y updates parciales.
  - Entidades de catálogo/pedidos/listas: SQL parametrizado por TableSpec.
  - Contenido de home (banners, testimonios): sólo relacional.
  - Traducir fallos: UniqueViolation -> DuplicateRecordError, resto -> DatabaseError.

Collaborators:
  - psycopg_pool.AsyncConnectionPool (via get_pool, inyectable)
  - postgres.rows (contrato de columnas + mappers)
  - crosscutting.logger / crosscutting.exceptions

Constraints / Notes:
  - Retorna None/False cuando no existe el recurso (sin excepción por "not found").
  - Nunca interpola input del caller: nombres de columna salen de whitelists.
  - Emails se comparan en minúsculas (lower(email)).
============================================================
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping

from psycopg_pool import AsyncConnectionPool

from ....crosscutting.exceptions import DatabaseError, DuplicateRecordError
from ....crosscutting.logger import logger
from ....domain.entities import EntityKind, HeroBanner, Testimonial
from ....identity.users import User, UserDraft
from ...db.errors import is_unique_violation
from .rows import (
    BANNER_COLUMNS,
    TABLES,
    TESTIMONIAL_COLUMNS,
    USER_COLUMNS,
    USER_UPDATABLE_COLUMNS,
    TableSpec,
    row_to_banner,
    row_to_testimonial,
    row_to_user,
    user_param,
)

_USER_ORDER_BY = "created_at DESC, id DESC"

_BANNER_WRITABLE = frozenset(
    {
        "title",
        "subtitle",
        "image",
        "button_text",
        "button_link",
        "active",
        "start_date",
        "end_date",
    }
)
_TESTIMONIAL_WRITABLE = frozenset({"name", "comment", "rating", "image", "featured"})


def _default_pool() -> AsyncConnectionPool:
    from ...db.pool import get_pool

    return get_pool()


def _spec(kind: EntityKind) -> TableSpec:
    try:
        return TABLES[kind]
    except KeyError as exc:
        raise DatabaseError(f"No relational table for entity kind: {kind}") from exc


def _where_params(
    spec: TableSpec, where: Mapping[str, Any] | None
) -> tuple[str, list[Any]]:
    """R: Igualdades sobre columnas conocidas; claves desconocidas se ignoran (filtro en proceso)."""
    if not where:
        return "", []
    clauses: list[str] = []
    params: list[Any] = []
    for column, value in where.items():
        if column not in spec.columns:
            continue
        clauses.append(f"{column} = %s")
        params.append(value.value if hasattr(value, "value") else value)
    if not clauses:
        return "", []
    return " WHERE " + " AND ".join(clauses), params


class PostgresStore:
    """RelationalStore sobre PostgreSQL."""

    def __init__(
        self, pool_provider: Callable[[], AsyncConnectionPool] = _default_pool
    ) -> None:
        self._pool_provider = pool_provider

    # ============================================================
    # Helpers de ejecución
    # ============================================================
    async def _fetchone(
        self,
        *,
        query: str,
        params: Iterable[object] = (),
        log_msg: str,
        log_extra: dict[str, object],
    ) -> dict[str, Any] | None:
        try:
            pool = self._pool_provider()
            async with pool.connection() as conn:
                cur = await conn.execute(query, tuple(params))
                return await cur.fetchone()
        except Exception as exc:
            if is_unique_violation(exc):
                logger.warning(log_msg, extra={**log_extra, "error": "unique_violation"})
                raise DuplicateRecordError(f"{log_msg}: {exc}", original_error=exc) from exc
            logger.exception(log_msg, extra={**log_extra, "error": str(exc)})
            raise DatabaseError(f"{log_msg}: {exc}", original_error=exc) from exc

    async def _fetchall(
        self,
        *,
        query: str,
        params: Iterable[object] = (),
        log_msg: str,
        log_extra: dict[str, object],
    ) -> list[dict[str, Any]]:
        try:
            pool = self._pool_provider()
            async with pool.connection() as conn:
                cur = await conn.execute(query, tuple(params))
                return await cur.fetchall()
        except Exception as exc:
            logger.exception(log_msg, extra={**log_extra, "error": str(exc)})
            raise DatabaseError(f"{log_msg}: {exc}", original_error=exc) from exc

    async def _execute(
        self,
        *,
        query: str,
        params: Iterable[object] = (),
        log_msg: str,
        log_extra: dict[str, object],
    ) -> int:
        """Ejecuta un DML y retorna rowcount."""
        try:
            pool = self._pool_provider()
            async with pool.connection() as conn:
                cur = await conn.execute(query, tuple(params))
                return cur.rowcount
        except Exception as exc:
            logger.exception(log_msg, extra={**log_extra, "error": str(exc)})
            raise DatabaseError(f"{log_msg}: {exc}", original_error=exc) from exc

    # ============================================================
    # Users
    # ============================================================
    async def get_user_by_id(self, user_id: int) -> User | None:
        row = await self._fetchone(
            query=f"SELECT {USER_COLUMNS} FROM users WHERE id = %s",
            params=(user_id,),
            log_msg="PostgresStore: get_user_by_id failed",
            log_extra={"user_id": user_id},
        )
        return row_to_user(row) if row else None

    async def get_user_by_uid(self, uid: str) -> User | None:
        row = await self._fetchone(
            query=f"SELECT {USER_COLUMNS} FROM users WHERE external_uid = %s",
            params=(uid,),
            log_msg="PostgresStore: get_user_by_uid failed",
            log_extra={"external_uid": uid},
        )
        return row_to_user(row) if row else None

    async def get_user_by_email(self, email: str) -> User | None:
        row = await self._fetchone(
            query=f"SELECT {USER_COLUMNS} FROM users WHERE lower(email) = lower(%s)",
            params=(email.strip(),),
            log_msg="PostgresStore: get_user_by_email failed",
            log_extra={"email": email},
        )
        return row_to_user(row) if row else None

    async def create_user(self, draft: UserDraft) -> User:
        row = await self._fetchone(
            query=f"""
                INSERT INTO users (
                    email, username, password_hash, role, external_uid, full_name, photo_url
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                RETURNING {USER_COLUMNS}
            """,
            params=(
                draft.email.strip().lower(),
                draft.username,
                draft.password_hash,
                draft.role.value,
                draft.external_uid,
                draft.full_name,
                draft.photo_url,
            ),
            log_msg="PostgresStore: create_user failed",
            log_extra={"email": draft.email, "external_uid": draft.external_uid},
        )
        if row is None:
            raise DatabaseError("PostgresStore: create_user returned no row")
        return row_to_user(row)

    async def update_user(self, user_id: int, changes: Mapping[str, Any]) -> User | None:
        unknown = set(changes) - USER_UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Unsupported user fields: {sorted(unknown)}")
        if not changes:
            return await self.get_user_by_id(user_id)

        columns = sorted(changes)
        assignments = ", ".join(f"{c} = %s" for c in columns)
        params = [user_param(changes[c]) for c in columns]
        row = await self._fetchone(
            query=f"""
                UPDATE users SET {assignments}
                WHERE id = %s
                RETURNING {USER_COLUMNS}
            """,
            params=(*params, user_id),
            log_msg="PostgresStore: update_user failed",
            log_extra={"user_id": user_id, "fields": columns},
        )
        return row_to_user(row) if row else None

    async def list_users(self, *, limit: int = 200, offset: int = 0) -> list[User]:
        if limit <= 0:
            return []
        offset = max(offset, 0)
        rows = await self._fetchall(
            query=f"""
                SELECT {USER_COLUMNS}
                FROM users
                ORDER BY {_USER_ORDER_BY}
                LIMIT %s OFFSET %s
            """,
            params=(limit, offset),
            log_msg="PostgresStore: list_users failed",
            log_extra={"limit": limit, "offset": offset},
        )
        return [row_to_user(r) for r in rows]

    async def count_users(self) -> int:
        row = await self._fetchone(
            query="SELECT count(*) AS total FROM users",
            log_msg="PostgresStore: count_users failed",
            log_extra={},
        )
        return int(row["total"]) if row else 0

    # ============================================================
    # Entidades genéricas
    # ============================================================
    async def get_entity(self, kind: EntityKind, entity_id: int) -> Any | None:
        spec = _spec(kind)
        row = await self._fetchone(
            query=f"SELECT {spec.select_list} FROM {spec.table} WHERE {spec.key} = %s",
            params=(entity_id,),
            log_msg="PostgresStore: get_entity failed",
            log_extra={"kind": kind.value, "id": entity_id},
        )
        return spec.to_entity(row) if row else None

    async def list_entities(
        self, kind: EntityKind, where: Mapping[str, Any] | None = None
    ) -> list[Any]:
        spec = _spec(kind)
        where_sql, params = _where_params(spec, where)
        rows = await self._fetchall(
            query=(
                f"SELECT {spec.select_list} FROM {spec.table}{where_sql} "
                f"ORDER BY {spec.key}"
            ),
            params=params,
            log_msg="PostgresStore: list_entities failed",
            log_extra={"kind": kind.value},
        )
        return [spec.to_entity(r) for r in rows]

    async def save_entity(self, kind: EntityKind, entity: Any) -> Any:
        spec = _spec(kind)
        data = spec.to_row(entity)
        columns = list(data)
        placeholders = ", ".join(["%s"] * len(columns))
        updates = ", ".join(
            f"{c} = EXCLUDED.{c}" for c in columns if c != spec.key
        )
        row = await self._fetchone(
            query=f"""
                INSERT INTO {spec.table} ({", ".join(columns)})
                VALUES ({placeholders})
                ON CONFLICT ({spec.key}) DO UPDATE SET {updates}
                RETURNING {spec.select_list}
            """,
            params=[data[c] for c in columns],
            log_msg="PostgresStore: save_entity failed",
            log_extra={"kind": kind.value, "id": data.get(spec.key)},
        )
        if row is None:
            raise DatabaseError("PostgresStore: save_entity returned no row")
        return spec.to_entity(row)

    async def create_entity(self, kind: EntityKind, entity: Any) -> Any | None:
        spec = _spec(kind)
        data = spec.to_row(entity)
        columns = list(data)
        # R: sin fila => el id ya estaba tomado (otro alta concurrente ganó).
        row = await self._fetchone(
            query=f"""
                INSERT INTO {spec.table} ({", ".join(columns)})
                VALUES ({", ".join(["%s"] * len(columns))})
                ON CONFLICT ({spec.key}) DO NOTHING
                RETURNING {spec.select_list}
            """,
            params=[data[c] for c in columns],
            log_msg="PostgresStore: create_entity failed",
            log_extra={"kind": kind.value, "id": data.get(spec.key)},
        )
        return spec.to_entity(row) if row is not None else None

    async def insert_entity(self, kind: EntityKind, draft: Any) -> Any:
        spec = _spec(kind)
        if spec.draft_to_row is None:
            raise DatabaseError(f"Entity kind {kind.value} has no serial insert")
        data = spec.draft_to_row(draft)
        columns = list(data)
        row = await self._fetchone(
            query=f"""
                INSERT INTO {spec.table} ({", ".join(columns)})
                VALUES ({", ".join(["%s"] * len(columns))})
                RETURNING {spec.select_list}
            """,
            params=[data[c] for c in columns],
            log_msg="PostgresStore: insert_entity failed",
            log_extra={"kind": kind.value},
        )
        if row is None:
            raise DatabaseError("PostgresStore: insert_entity returned no row")
        return spec.to_entity(row)

    async def delete_entity(self, kind: EntityKind, entity_id: int) -> bool:
        spec = _spec(kind)
        count = await self._execute(
            query=f"DELETE FROM {spec.table} WHERE {spec.key} = %s",
            params=(entity_id,),
            log_msg="PostgresStore: delete_entity failed",
            log_extra={"kind": kind.value, "id": entity_id},
        )
        return count > 0

    async def max_entity_id(self, kind: EntityKind) -> int | None:
        spec = _spec(kind)
        row = await self._fetchone(
            query=f"SELECT max({spec.key}) AS max_id FROM {spec.table}",
            log_msg="PostgresStore: max_entity_id failed",
            log_extra={"kind": kind.value},
        )
        return row["max_id"] if row else None

    # ============================================================
    # Home content
    # ============================================================
    async def list_banners(self) -> list[HeroBanner]:
        rows = await self._fetchall(
            query=f"SELECT {BANNER_COLUMNS} FROM hero_banners ORDER BY id",
            log_msg="PostgresStore: list_banners failed",
            log_extra={},
        )
        return [row_to_banner(r) for r in rows]

    async def get_banner(self, banner_id: int) -> HeroBanner | None:
        row = await self._fetchone(
            query=f"SELECT {BANNER_COLUMNS} FROM hero_banners WHERE id = %s",
            params=(banner_id,),
            log_msg="PostgresStore: get_banner failed",
            log_extra={"banner_id": banner_id},
        )
        return row_to_banner(row) if row else None

    async def insert_banner(self, data: Mapping[str, Any]) -> HeroBanner:
        columns = sorted(c for c in data if c in _BANNER_WRITABLE)
        row = await self._fetchone(
            query=f"""
                INSERT INTO hero_banners ({", ".join(columns)})
                VALUES ({", ".join(["%s"] * len(columns))})
                RETURNING {BANNER_COLUMNS}
            """,
            params=[data[c] for c in columns],
            log_msg="PostgresStore: insert_banner failed",
            log_extra={"fields": columns},
        )
        if row is None:
            raise DatabaseError("PostgresStore: insert_banner returned no row")
        return row_to_banner(row)

    async def update_banner(
        self, banner_id: int, changes: Mapping[str, Any]
    ) -> HeroBanner | None:
        columns = sorted(c for c in changes if c in _BANNER_WRITABLE)
        if not columns:
            return await self.get_banner(banner_id)
        row = await self._fetchone(
            query=f"""
                UPDATE hero_banners SET {", ".join(f"{c} = %s" for c in columns)}
                WHERE id = %s
                RETURNING {BANNER_COLUMNS}
            """,
            params=(*[changes[c] for c in columns], banner_id),
            log_msg="PostgresStore: update_banner failed",
            log_extra={"banner_id": banner_id, "fields": columns},
        )
        return row_to_banner(row) if row else None

    async def delete_banner(self, banner_id: int) -> bool:
        count = await self._execute(
            query="DELETE FROM hero_banners WHERE id = %s",
            params=(banner_id,),
            log_msg="PostgresStore: delete_banner failed",
            log_extra={"banner_id": banner_id},
        )
        return count > 0

    async def list_testimonials(self) -> list[Testimonial]:
        rows = await self._fetchall(
            query=f"SELECT {TESTIMONIAL_COLUMNS} FROM testimonials ORDER BY id",
            log_msg="PostgresStore: list_testimonials failed",
            log_extra={},
        )
        return [row_to_testimonial(r) for r in rows]

    async def insert_testimonial(self, data: Mapping[str, Any]) -> Testimonial:
        columns = sorted(c for c in data if c in _TESTIMONIAL_WRITABLE)
        row = await self._fetchone(
            query=f"""
                INSERT INTO testimonials ({", ".join(columns)})
                VALUES ({", ".join(["%s"] * len(columns))})
                RETURNING {TESTIMONIAL_COLUMNS}
            """,
            params=[data[c] for c in columns],
            log_msg="PostgresStore: insert_testimonial failed",
            log_extra={"fields": columns},
        )
        if row is None:
            raise DatabaseError("PostgresStore: insert_testimonial returned no row")
        return row_to_testimonial(row)

    async def ping(self) -> bool:
        row = await self._fetchone(
            query="SELECT 1 AS ok",
            log_msg="PostgresStore: ping failed",
            log_extra={},
        )
        return bool(row and row["ok"] == 1)


__all__ = ["PostgresStore"]
