"""
In-Memory Store Implementations.

For testing and local development. NOT FOR PRODUCTION.
Data is lost on process restart.
"""

from .codes import InMemoryCodeStore
from .document import InMemoryDocumentStore
from .faults import FaultInjector
from .relational import InMemoryRelationalStore

__all__ = [
    "InMemoryRelationalStore",
    "InMemoryDocumentStore",
    "InMemoryCodeStore",
    "FaultInjector",
]
