"""
===============================================================================
TARJETA CRC — application/store_calls.py
===============================================================================

Módulo:
    Guard de llamadas a stores (timeout + captura + métricas)

Responsabilidades:
    - Ejecutar una llamada a un store con un timeout acotado.
    - Convertir cualquier fallo en dato (StoreCall.ok=False), nunca en
      excepción: el llamador decide si hay fallback.
    - Registrar métricas y un warning por llamada fallida.

Colaboradores:
    - crosscutting.metrics.record_store_call
    - crosscutting.logger
    - application.dual_store, identity.resolver, application.role_sync

Reglas:
    - Un timeout cuenta como fallo de ese store (cae al siguiente).
    - asyncio.CancelledError NO se captura (cancelación cooperativa).
===============================================================================
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, TypeVar

from ..crosscutting.logger import logger
from ..crosscutting.metrics import record_store_call

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class StoreCall(Generic[T]):
    """Resultado de una llamada protegida."""

    ok: bool
    value: T | None = None
    error: Exception | None = None
    timed_out: bool = False

    @property
    def error_message(self) -> str:
        if self.timed_out:
            return "timeout"
        if self.error is None:
            return ""
        return str(self.error) or type(self.error).__name__


async def guarded(
    store: str,
    operation: str,
    call: Callable[[], Awaitable[T]],
    *,
    timeout_s: float,
) -> StoreCall[T]:
    """Ejecuta `call()` contra `store` con timeout; nunca lanza (salvo cancelación)."""
    try:
        value = await asyncio.wait_for(call(), timeout=timeout_s)
    except asyncio.TimeoutError as exc:
        record_store_call(store=store, operation=operation, outcome="timeout")
        logger.warning(
            "Store call timed out",
            extra={"store": store, "operation": operation, "timeout_s": timeout_s},
        )
        return StoreCall(ok=False, error=exc, timed_out=True)
    except Exception as exc:
        record_store_call(store=store, operation=operation, outcome="error")
        logger.warning(
            "Store call failed",
            extra={
                "store": store,
                "operation": operation,
                "error_type": type(exc).__name__,
            },
        )
        return StoreCall(ok=False, error=exc)

    record_store_call(store=store, operation=operation, outcome="ok")
    return StoreCall(ok=True, value=value)
