"""
===============================================================================
CRC CARD — infrastructure/db/errors.py
===============================================================================

Componente:
  Errores tipados del pool + clasificación de errores de psycopg

Responsabilidades:
  - Evitar RuntimeError genéricos al usar el pool ("no inicializado", etc.).
  - Reconocer violaciones de unicidad para traducirlas a DuplicateRecordError.
===============================================================================
"""

from __future__ import annotations

from psycopg import errors as pg_errors


class DatabasePoolError(Exception):
    """Base de errores de pool de base de datos."""


class PoolAlreadyInitializedError(DatabasePoolError):
    """Se intentó inicializar el pool más de una vez."""


class PoolNotInitializedError(DatabasePoolError):
    """Se intentó usar el pool sin init_pool()."""


def is_unique_violation(exc: BaseException) -> bool:
    """True si el error (o su causa) es una violación de UNIQUE/PK."""
    current: BaseException | None = exc
    while current is not None:
        if isinstance(current, pg_errors.UniqueViolation):
            return True
        current = current.__cause__
    return False
