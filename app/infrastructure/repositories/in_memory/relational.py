"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/relational.py
============================================================
Class: InMemoryRelationalStore

Responsibilities:
  - Implementar RelationalStore en memoria (tests / local dev sin Postgres).
  - Replicar las restricciones UNIQUE de `users` (email, username, external_uid).
  - Ids seriales para users, orders, reviews, banners y testimonios.
  - Inyección de fallas vía `faults` (store caído, lento).

Collaborators:
  - domain.repositories.RelationalStore (contrato)
  - in_memory.faults.FaultInjector

Constraints / Notes:
  - Thread-safe: acceso protegido por Lock.
  - Entidades inmutables (frozen): se guardan por referencia sin copias.
  - Ordering determinístico alineado con Postgres (por clave).
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Mapping

from ....crosscutting.exceptions import DatabaseError, DuplicateRecordError
from ....domain.entities import (
    EntityKind,
    HeroBanner,
    Order,
    OrderDraft,
    Review,
    ReviewDraft,
    Testimonial,
)
from ....identity.users import User, UserDraft
from .faults import FaultInjector

_SERIAL_KINDS = (EntityKind.ORDER, EntityKind.REVIEW)
_USER_FIELDS = frozenset(
    {
        "email",
        "username",
        "password_hash",
        "role",
        "external_uid",
        "full_name",
        "address",
        "phone",
        "photo_url",
        "two_factor_enabled",
        "stripe_customer_id",
    }
)


def entity_key(kind: EntityKind, entity: Any) -> int:
    if kind in (EntityKind.WISHLIST, EntityKind.CART):
        return entity.user_id
    return entity.id


def matches_where(entity: Any, where: Mapping[str, Any] | None) -> bool:
    if not where:
        return True
    return all(getattr(entity, k, None) == v for k, v in where.items())


class InMemoryRelationalStore:
    def __init__(self) -> None:
        self._lock = Lock()
        self._users: dict[int, User] = {}
        self._entities: dict[EntityKind, dict[int, Any]] = {k: {} for k in EntityKind}
        self._banners: dict[int, HeroBanner] = {}
        self._testimonials: dict[int, Testimonial] = {}
        self._serials: dict[str, int] = {}
        self.faults = FaultInjector(DatabaseError, "relational")

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    def _next_serial(self, name: str) -> int:
        value = self._serials.get(name, 0) + 1
        self._serials[name] = value
        return value

    def _check_unique(self, candidate: User, *, ignore_id: int | None = None) -> None:
        for existing in self._users.values():
            if existing.id == ignore_id:
                continue
            if existing.email.lower() == candidate.email.lower():
                raise DuplicateRecordError(f"email already registered: {candidate.email}")
            if existing.username == candidate.username:
                raise DuplicateRecordError(f"username already taken: {candidate.username}")
            if candidate.external_uid and existing.external_uid == candidate.external_uid:
                raise DuplicateRecordError(f"external uid already linked: {candidate.external_uid}")

    # ============================================================
    # Users
    # ============================================================
    async def get_user_by_id(self, user_id: int) -> User | None:
        await self.faults.check("get_user_by_id")
        with self._lock:
            return self._users.get(user_id)

    async def get_user_by_uid(self, uid: str) -> User | None:
        await self.faults.check("get_user_by_uid")
        with self._lock:
            return next((u for u in self._users.values() if u.external_uid == uid), None)

    async def get_user_by_email(self, email: str) -> User | None:
        await self.faults.check("get_user_by_email")
        target = email.strip().lower()
        with self._lock:
            return next((u for u in self._users.values() if u.email.lower() == target), None)

    async def create_user(self, draft: UserDraft) -> User:
        await self.faults.check("create_user")
        with self._lock:
            user = User(
                id=0,
                email=draft.email.strip().lower(),
                username=draft.username,
                password_hash=draft.password_hash,
                role=draft.role,
                external_uid=draft.external_uid,
                full_name=draft.full_name,
                photo_url=draft.photo_url,
                created_at=self._now(),
            )
            self._check_unique(user)
            user = replace(user, id=self._next_serial("users"))
            self._users[user.id] = user
            return user

    async def update_user(self, user_id: int, changes: Mapping[str, Any]) -> User | None:
        await self.faults.check("update_user")
        unknown = set(changes) - _USER_FIELDS
        if unknown:
            raise ValueError(f"Unsupported user fields: {sorted(unknown)}")
        with self._lock:
            current = self._users.get(user_id)
            if current is None:
                return None
            updated = replace(current, **dict(changes))
            self._check_unique(updated, ignore_id=user_id)
            self._users[user_id] = updated
            return updated

    async def list_users(self, *, limit: int = 200, offset: int = 0) -> list[User]:
        await self.faults.check("list_users")
        if limit <= 0:
            return []
        with self._lock:
            users = sorted(
                self._users.values(),
                key=lambda u: (u.created_at or datetime.min.replace(tzinfo=timezone.utc), u.id),
                reverse=True,
            )
        offset = max(offset, 0)
        return users[offset : offset + limit]

    async def count_users(self) -> int:
        await self.faults.check("count_users")
        with self._lock:
            return len(self._users)

    # ============================================================
    # Entidades genéricas
    # ============================================================
    async def get_entity(self, kind: EntityKind, entity_id: int) -> Any | None:
        await self.faults.check("get_entity")
        with self._lock:
            return self._entities[kind].get(entity_id)

    async def list_entities(
        self, kind: EntityKind, where: Mapping[str, Any] | None = None
    ) -> list[Any]:
        await self.faults.check("list_entities")
        with self._lock:
            items = sorted(self._entities[kind].items())
        return [e for _, e in items if matches_where(e, where)]

    async def save_entity(self, kind: EntityKind, entity: Any) -> Any:
        await self.faults.check("save_entity")
        with self._lock:
            key = entity_key(kind, entity)
            self._entities[kind][key] = entity
            if kind in _SERIAL_KINDS:
                self._serials[kind.value] = max(self._serials.get(kind.value, 0), key)
            return entity

    async def create_entity(self, kind: EntityKind, entity: Any) -> Any | None:
        await self.faults.check("create_entity")
        with self._lock:
            key = entity_key(kind, entity)
            if key in self._entities[kind]:
                return None
            self._entities[kind][key] = entity
            if kind in _SERIAL_KINDS:
                self._serials[kind.value] = max(self._serials.get(kind.value, 0), key)
            return entity

    async def insert_entity(self, kind: EntityKind, draft: Any) -> Any:
        await self.faults.check("insert_entity")
        with self._lock:
            if kind is EntityKind.ORDER and isinstance(draft, OrderDraft):
                now = self._now()
                entity: Any = Order(
                    id=self._next_serial(kind.value),
                    user_id=draft.user_id,
                    items=list(draft.items),
                    total_amount=draft.total_amount,
                    shipping_address=dict(draft.shipping_address),
                    payment_intent=draft.payment_intent,
                    created_at=now,
                    updated_at=now,
                )
            elif kind is EntityKind.REVIEW and isinstance(draft, ReviewDraft):
                entity = Review(
                    id=self._next_serial(kind.value),
                    product_id=draft.product_id,
                    user_id=draft.user_id,
                    rating=draft.rating,
                    comment=draft.comment,
                    images=list(draft.images),
                    created_at=self._now(),
                )
            else:
                raise DatabaseError(f"Entity kind {kind.value} has no serial insert")
            self._entities[kind][entity.id] = entity
            return entity

    async def delete_entity(self, kind: EntityKind, entity_id: int) -> bool:
        await self.faults.check("delete_entity")
        with self._lock:
            return self._entities[kind].pop(entity_id, None) is not None

    async def max_entity_id(self, kind: EntityKind) -> int | None:
        await self.faults.check("max_entity_id")
        with self._lock:
            keys = self._entities[kind].keys()
            return max(keys) if keys else None

    # ============================================================
    # Home content
    # ============================================================
    async def list_banners(self) -> list[HeroBanner]:
        await self.faults.check("list_banners")
        with self._lock:
            return [b for _, b in sorted(self._banners.items())]

    async def get_banner(self, banner_id: int) -> HeroBanner | None:
        await self.faults.check("get_banner")
        with self._lock:
            return self._banners.get(banner_id)

    async def insert_banner(self, data: Mapping[str, Any]) -> HeroBanner:
        await self.faults.check("insert_banner")
        with self._lock:
            banner = HeroBanner(id=self._next_serial("banners"), **dict(data))
            self._banners[banner.id] = banner
            return banner

    async def update_banner(
        self, banner_id: int, changes: Mapping[str, Any]
    ) -> HeroBanner | None:
        await self.faults.check("update_banner")
        with self._lock:
            current = self._banners.get(banner_id)
            if current is None:
                return None
            updated = replace(current, **{k: v for k, v in changes.items() if k != "id"})
            self._banners[banner_id] = updated
            return updated

    async def delete_banner(self, banner_id: int) -> bool:
        await self.faults.check("delete_banner")
        with self._lock:
            return self._banners.pop(banner_id, None) is not None

    async def list_testimonials(self) -> list[Testimonial]:
        await self.faults.check("list_testimonials")
        with self._lock:
            return [t for _, t in sorted(self._testimonials.items())]

    async def insert_testimonial(self, data: Mapping[str, Any]) -> Testimonial:
        await self.faults.check("insert_testimonial")
        with self._lock:
            testimonial = Testimonial(id=self._next_serial("testimonials"), **dict(data))
            self._testimonials[testimonial.id] = testimonial
            return testimonial

    async def ping(self) -> bool:
        await self.faults.check("ping")
        return True
