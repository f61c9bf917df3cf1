"""
============================================================
TARJETA CRC
============================================================
Class: app.infrastructure.repositories (Package exports)

Responsibilities:
- Exponer implementaciones concretas de los stores (Postgres, Firestore e
  InMemory) en un único punto de importación.
- Mantener una API estable para el composition root (container.py).

Collaborators:
- Postgres (SQL crudo, store relacional + códigos)
- Firestore (store documental + perfiles)
- InMemory (testing / local dev)
============================================================
"""

# ---------------------------
# In-memory implementations
# Usados para tests unitarios rápidos o entornos volátiles.
# ---------------------------
from .in_memory import InMemoryCodeStore, InMemoryDocumentStore, InMemoryRelationalStore

# ---------------------------
# Producción
# ---------------------------
from .firestore import FirestoreDocumentStore
from .postgres import PostgresCodeStore, PostgresStore

__all__ = [
    "PostgresStore",
    "PostgresCodeStore",
    "FirestoreDocumentStore",
    "InMemoryRelationalStore",
    "InMemoryDocumentStore",
    "InMemoryCodeStore",
]
