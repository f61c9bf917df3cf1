"""
===============================================================================
TARJETA CRC — domain/results.py
===============================================================================

Módulo:
    Tipos de resultado del core (Found | NotFound, resultado de sincronización)

Responsabilidades:
    - Representar "no encontrado" como dato, no como excepción.
    - Representar el resultado por-store de una escritura dual
      (succeeded / failed / skipped) con detalle de error.

Colaboradores:
    - identity.resolver, application.dual_store: devuelven Found | NotFound.
    - application.role_sync: devuelve SyncOutcome (nunca lanza).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Found(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class NotFound:
    """Ausente en todos los stores consultados."""

    reason: str = "not_found"


Lookup = Union[Found[T], NotFound]


class StoreOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


RELATIONAL = "relational"
DOCUMENT = "document"
IDENTITY_PROVIDER = "identity_provider"


@dataclass(frozen=True, slots=True)
class SyncOutcome:
    """
    Resultado de propagar un cambio a dos stores.

    overall_success es True si AL MENOS un store aceptó el cambio. Una falla
    parcial (PartialSyncFailure) se expresa con is_partial, nunca con una
    excepción.
    """

    operation: str
    per_store: dict[str, StoreOutcome]
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def overall_success(self) -> bool:
        return any(o == StoreOutcome.SUCCEEDED for o in self.per_store.values())

    @property
    def is_partial(self) -> bool:
        # R: SKIPPED (nada que escribir en ese store) no cuenta como falla.
        return self.overall_success and any(
            o == StoreOutcome.FAILED for o in self.per_store.values()
        )

    def succeeded(self, store: str) -> bool:
        return self.per_store.get(store) == StoreOutcome.SUCCEEDED

    @property
    def summary(self) -> str:
        if not self.overall_success:
            return "failed"
        return "partial" if self.is_partial else "full"

    def to_dict(self) -> dict[str, object]:
        return {
            "overallSuccess": self.overall_success,
            "perStore": {store: self.succeeded(store) for store in self.per_store},
            "outcomes": {store: o.value for store, o in self.per_store.items()},
            "errors": dict(self.errors),
        }
