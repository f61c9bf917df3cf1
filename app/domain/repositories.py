"""
CRC — domain/repositories.py

Name
- Persistence ports (Protocols) for the two stores and the code store

Responsibilities
- RelationalStore: integer-keyed access to users, catalog, orders, reviews,
  wishlists, carts, hero banners and testimonials.
- DocumentStore: string-keyed collections over the same logical entities,
  with merge-capable partial updates and user profiles keyed by external UID.
- CodeStore: one-time codes filed under several owner keys.

Collaborators
- domain.entities, identity.users: canonical shapes crossing these ports
- infrastructure.repositories.postgres / firestore / in_memory: implementations
- application.dual_store, identity.resolver, application.role_sync: consumers

Constraints
- Every method is a coroutine: each call is an I/O suspension point.
- Ports speak canonical entities only; store-native shapes (rows, documents)
  never cross this boundary.
- Absence is None (or False for deletes); failures raise StorefrontError
  subclasses (DatabaseError / DocumentStoreError).
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence

from ..identity.users import DocumentProfile, User, UserDraft
from .entities import (
    CodePurpose,
    EntityKind,
    HeroBanner,
    OneTimeCode,
    Testimonial,
)


class RelationalStore(Protocol):
    """
    R: Store relacional (PostgreSQL). Claves primarias enteras.

    Las entidades de catálogo se guardan con id explícito (save_entity) para
    que un id minteado por cualquiera de los stores se respete; pedidos y
    reseñas se crean con id serial (insert_entity).
    """

    # --- Users ---
    async def get_user_by_id(self, user_id: int) -> User | None: ...

    async def get_user_by_uid(self, uid: str) -> User | None: ...

    async def get_user_by_email(self, email: str) -> User | None: ...

    async def create_user(self, draft: UserDraft) -> User:
        """R: Raises DuplicateRecordError on unique violations (email/username/uid)."""
        ...

    async def update_user(
        self, user_id: int, changes: Mapping[str, Any]
    ) -> User | None: ...

    async def list_users(self, *, limit: int = 200, offset: int = 0) -> list[User]: ...

    async def count_users(self) -> int: ...

    # --- Generic entities (product/category/order/review/wishlist/cart) ---
    async def get_entity(self, kind: EntityKind, entity_id: int) -> Any | None: ...

    async def list_entities(
        self, kind: EntityKind, where: Mapping[str, Any] | None = None
    ) -> list[Any]: ...

    async def save_entity(self, kind: EntityKind, entity: Any) -> Any:
        """R: Upsert by explicit id."""
        ...

    async def create_entity(self, kind: EntityKind, entity: Any) -> Any | None:
        """R: Insert-if-absent by explicit id; None if the id is taken."""
        ...

    async def insert_entity(self, kind: EntityKind, draft: Any) -> Any:
        """R: Insert with serial id (orders, reviews)."""
        ...

    async def delete_entity(self, kind: EntityKind, entity_id: int) -> bool: ...

    async def max_entity_id(self, kind: EntityKind) -> int | None: ...

    # --- Home content (relational only) ---
    async def list_banners(self) -> list[HeroBanner]: ...

    async def get_banner(self, banner_id: int) -> HeroBanner | None: ...

    async def insert_banner(self, data: Mapping[str, Any]) -> HeroBanner: ...

    async def update_banner(
        self, banner_id: int, changes: Mapping[str, Any]
    ) -> HeroBanner | None: ...

    async def delete_banner(self, banner_id: int) -> bool: ...

    async def list_testimonials(self) -> list[Testimonial]: ...

    async def insert_testimonial(self, data: Mapping[str, Any]) -> Testimonial: ...

    async def ping(self) -> bool: ...


class DocumentStore(Protocol):
    """
    R: Store documental (Firestore). Claves string; escrituras con merge.

    Las entidades numéricas usan str(id) como ID de documento; los perfiles de
    usuario usan el UID externo.
    """

    async def get_entity(self, kind: EntityKind, entity_id: int) -> Any | None: ...

    async def list_entities(
        self, kind: EntityKind, where: Mapping[str, Any] | None = None
    ) -> list[Any]: ...

    async def save_entity(self, kind: EntityKind, entity: Any) -> Any:
        """R: set(..., merge=True) on the document keyed by str(entity.id)."""
        ...

    async def create_entity(self, kind: EntityKind, entity: Any) -> Any | None:
        """R: document(...).create(); None if the document already exists."""
        ...

    async def delete_entity(self, kind: EntityKind, entity_id: int) -> bool: ...

    async def max_entity_id(self, kind: EntityKind) -> int | None: ...

    async def get_profile(self, uid: str) -> DocumentProfile | None: ...

    async def merge_profile(self, uid: str, fields: Mapping[str, Any]) -> None:
        """R: Set-with-merge; creates the document when missing."""
        ...

    async def ping(self) -> bool: ...


class CodeStore(Protocol):
    """R: Persistencia de códigos de un solo uso, indexados por (purpose, owner_key)."""

    async def put(self, record: OneTimeCode, owner_keys: Sequence[str]) -> None:
        """R: Replaces any previous code of the same purpose under those keys."""
        ...

    async def get(self, purpose: CodePurpose, owner_key: str) -> OneTimeCode | None: ...

    async def mark_used(self, issuance_id: str) -> None: ...

    async def register_failed_attempt(self, issuance_id: str) -> int:
        """R: Returns the attempt count after incrementing."""
        ...
