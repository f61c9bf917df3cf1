"""
PostgreSQL Store Implementations.

SQL crudo parametrizado sobre psycopg 3 (pool async).
"""

from .codes import PostgresCodeStore
from .store import PostgresStore

__all__ = ["PostgresStore", "PostgresCodeStore"]
