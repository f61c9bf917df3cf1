"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/faults.py
============================================================
Class: FaultInjector

Responsibilities:
  - Simular un store caído o lento en tests (por operación o completo).
  - Registrar las operaciones invocadas para aserciones de tests.

Constraints:
  - "*" hace fallar todas las operaciones.
  - El delay se aplica antes de fallar/ejecutar (permite probar timeouts).
============================================================
"""

from __future__ import annotations

import asyncio
from typing import Type


class FaultInjector:
    def __init__(self, error_cls: Type[Exception], store_name: str) -> None:
        self._error_cls = error_cls
        self._store_name = store_name
        self._failing: set[str] = set()
        self._delays: dict[str, float] = {}
        self.calls: list[str] = []

    def fail(self, *operations: str) -> None:
        """Hace fallar las operaciones indicadas (sin argumentos: todas)."""
        self._failing.update(operations or ("*",))

    def delay(self, seconds: float, *operations: str) -> None:
        for op in operations or ("*",):
            self._delays[op] = seconds

    def heal(self) -> None:
        self._failing.clear()
        self._delays.clear()

    async def check(self, operation: str) -> None:
        self.calls.append(operation)
        seconds = self._delays.get(operation, self._delays.get("*", 0.0))
        if seconds:
            await asyncio.sleep(seconds)
        if operation in self._failing or "*" in self._failing:
            raise self._error_cls(f"{self._store_name} unavailable ({operation})")
