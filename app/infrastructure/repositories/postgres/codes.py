"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/codes.py
============================================================
Class: PostgresCodeStore

Responsibilities:
  - Persistir códigos de un solo uso en `one_time_codes`.
  - Una fila por owner key; todas las filas de una emisión comparten issuance_id.
  - Reemplazar el código previo del mismo propósito (PK = purpose, owner_key).

Collaborators:
  - psycopg_pool.AsyncConnectionPool
  - domain.entities.OneTimeCode / CodePurpose

Constraints:
  - put() corre en una transacción: borrar previos + insertar nuevos.
  - used/attempts se actualizan por issuance_id (todas las claves a la vez).
============================================================
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Sequence

from psycopg_pool import AsyncConnectionPool

from ....crosscutting.exceptions import DatabaseError
from ....crosscutting.logger import logger
from ....domain.entities import CodePurpose, OneTimeCode

_CODE_COLUMNS = "issuance_id, purpose, code, user_id, expires_at, used, attempts, created_at"


def _default_pool() -> AsyncConnectionPool:
    from ...db.pool import get_pool

    return get_pool()


def _row_to_code(row: Mapping[str, Any]) -> OneTimeCode:
    try:
        purpose = CodePurpose(row["purpose"])
    except ValueError as exc:
        raise DatabaseError(f"Invalid code purpose in database: {row['purpose']}") from exc
    return OneTimeCode(
        issuance_id=row["issuance_id"],
        purpose=purpose,
        code=row["code"],
        expires_at=row["expires_at"],
        user_id=row["user_id"],
        used=bool(row["used"]),
        attempts=row["attempts"] or 0,
        created_at=row["created_at"],
    )


class PostgresCodeStore:
    def __init__(
        self, pool_provider: Callable[[], AsyncConnectionPool] = _default_pool
    ) -> None:
        self._pool_provider = pool_provider

    async def put(self, record: OneTimeCode, owner_keys: Sequence[str]) -> None:
        keys = list(dict.fromkeys(owner_keys))
        try:
            pool = self._pool_provider()
            async with pool.connection() as conn:
                async with conn.transaction():
                    await conn.execute(
                        "DELETE FROM one_time_codes WHERE purpose = %s AND owner_key = ANY(%s)",
                        (record.purpose.value, keys),
                    )
                    async with conn.cursor() as cur:
                        await cur.executemany(
                            """
                            INSERT INTO one_time_codes (
                                issuance_id, purpose, owner_key, code, user_id,
                                expires_at, used, attempts
                            )
                            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                            """,
                            [
                                (
                                    record.issuance_id,
                                    record.purpose.value,
                                    key,
                                    record.code,
                                    record.user_id,
                                    record.expires_at,
                                    record.used,
                                    record.attempts,
                                )
                                for key in keys
                            ],
                        )
        except Exception as exc:
            logger.exception(
                "PostgresCodeStore: put failed",
                extra={"purpose": record.purpose.value, "error": str(exc)},
            )
            raise DatabaseError(f"PostgresCodeStore: put failed: {exc}", original_error=exc) from exc

    async def get(self, purpose: CodePurpose, owner_key: str) -> OneTimeCode | None:
        try:
            pool = self._pool_provider()
            async with pool.connection() as conn:
                cur = await conn.execute(
                    f"""
                    SELECT {_CODE_COLUMNS}
                    FROM one_time_codes
                    WHERE purpose = %s AND owner_key = %s
                    """,
                    (purpose.value, owner_key),
                )
                row = await cur.fetchone()
        except Exception as exc:
            logger.exception(
                "PostgresCodeStore: get failed",
                extra={"purpose": purpose.value, "error": str(exc)},
            )
            raise DatabaseError(f"PostgresCodeStore: get failed: {exc}", original_error=exc) from exc
        return _row_to_code(row) if row else None

    async def _update(self, query: str, issuance_id: str, op: str) -> Mapping[str, Any] | None:
        try:
            pool = self._pool_provider()
            async with pool.connection() as conn:
                cur = await conn.execute(query, (issuance_id,))
                return await cur.fetchone() if cur.description else None
        except Exception as exc:
            logger.exception(
                f"PostgresCodeStore: {op} failed",
                extra={"issuance_id": issuance_id, "error": str(exc)},
            )
            raise DatabaseError(f"PostgresCodeStore: {op} failed: {exc}", original_error=exc) from exc

    async def mark_used(self, issuance_id: str) -> None:
        await self._update(
            "UPDATE one_time_codes SET used = TRUE WHERE issuance_id = %s",
            issuance_id,
            "mark_used",
        )

    async def register_failed_attempt(self, issuance_id: str) -> int:
        row = await self._update(
            """
            UPDATE one_time_codes SET attempts = attempts + 1
            WHERE issuance_id = %s
            RETURNING attempts
            """,
            issuance_id,
            "register_failed_attempt",
        )
        return int(row["attempts"]) if row else 0
