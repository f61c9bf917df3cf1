"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/codes.py
============================================================
Class: InMemoryCodeStore

Responsibilities:
  - Guardar códigos de un solo uso por (purpose, owner_key) en memoria.
  - Compartir estado (used/attempts) entre todas las claves de una emisión.

Constraints:
  - Thread-safe: acceso protegido por Lock.
  - put() reemplaza el código previo del mismo propósito bajo esas claves.
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from threading import Lock
from typing import Sequence

from ....crosscutting.exceptions import DatabaseError
from ....domain.entities import CodePurpose, OneTimeCode
from .faults import FaultInjector


class InMemoryCodeStore:
    def __init__(self) -> None:
        self._lock = Lock()
        # R: issuance_id -> registro; (purpose, owner_key) -> issuance_id
        self._records: dict[str, OneTimeCode] = {}
        self._index: dict[tuple[CodePurpose, str], str] = {}
        self.faults = FaultInjector(DatabaseError, "codes")

    async def put(self, record: OneTimeCode, owner_keys: Sequence[str]) -> None:
        await self.faults.check("put")
        with self._lock:
            self._records[record.issuance_id] = record
            for key in owner_keys:
                self._index[(record.purpose, key)] = record.issuance_id
            live = set(self._index.values())
            for stale in [i for i in self._records if i not in live]:
                del self._records[stale]

    async def get(self, purpose: CodePurpose, owner_key: str) -> OneTimeCode | None:
        await self.faults.check("get")
        with self._lock:
            issuance_id = self._index.get((purpose, owner_key))
            return self._records.get(issuance_id) if issuance_id else None

    async def mark_used(self, issuance_id: str) -> None:
        await self.faults.check("mark_used")
        with self._lock:
            record = self._records.get(issuance_id)
            if record is not None:
                self._records[issuance_id] = replace(record, used=True)

    async def register_failed_attempt(self, issuance_id: str) -> int:
        await self.faults.check("register_failed_attempt")
        with self._lock:
            record = self._records.get(issuance_id)
            if record is None:
                return 0
            record = replace(record, attempts=record.attempts + 1)
            self._records[issuance_id] = record
            return record.attempts
