"""app.infrastructure.services.retry

Name: Retry Helper with Exponential Backoff + Jitter

Qué es
------
Utilidad de resiliencia para llamadas HTTP salientes (gateway de pagos).
  - Clasificación de errores: transient (reintentar) vs permanent (fail-fast)
  - Decorator de `tenacity` con exponential backoff + jitter (sync o async)
  - Logging estructurado de cada reintento (con request_id del contexto)

CRC (Component Card)
--------------------
Component: retry helper
Responsibilities:
  - Decidir qué errores son reintentables
  - Proveer un decorator estándar (tenacity) con backoff+jitter
Collaborators:
  - tenacity (motor de retry; detecta coroutines solo)
  - crosscutting.config.get_settings (retry_*)
  - crosscutting.context (request_id)
Constraints:
  - Reintentar SOLO 408/429/5xx, timeouts y errores de conexión
  - No reintentar 400/401/402/403/404
"""

from __future__ import annotations

from typing import Callable, TypeVar

import httpx
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from ...crosscutting.config import get_settings
from ...context import get_context_dict
from ...crosscutting.logger import logger

T = TypeVar("T")

# R: HTTP status codes que indican fallas transitorias (reintentables)
TRANSIENT_HTTP_CODES: frozenset[int] = frozenset({408, 429, 500, 502, 503, 504})

# R: HTTP status codes que indican fallas permanentes (402 = card declined en Stripe)
PERMANENT_HTTP_CODES: frozenset[int] = frozenset({400, 401, 402, 403, 404})


def get_http_status_code(exception: BaseException) -> int | None:
    """R: Extrae un status code HTTP (httpx.HTTPStatusError o `status_code` plano)."""
    if isinstance(exception, httpx.HTTPStatusError):
        return exception.response.status_code
    status_code = getattr(exception, "status_code", None)
    if isinstance(status_code, int):
        return status_code
    return None


def is_transient_error(exception: BaseException) -> bool:
    """R: Decide si un error es transitorio (reintentar) o permanente (fail-fast).

    Reglas (en orden):
      1) Status code HTTP: permanent -> False, transient -> True.
      2) Timeouts/errores de transporte de httpx y built-in de red: True.
      3) Default: fail-fast (False).
    """
    status_code = get_http_status_code(exception)
    if status_code is not None:
        if status_code in PERMANENT_HTTP_CODES:
            return False
        return status_code in TRANSIENT_HTTP_CODES

    if isinstance(exception, (httpx.TimeoutException, httpx.TransportError)):
        return True
    if isinstance(exception, (TimeoutError, ConnectionError)):
        return True

    return False


def _log_retry(retry_state: RetryCallState) -> None:
    fn = getattr(retry_state, "fn", None)
    wait_time = retry_state.next_action.sleep if retry_state.next_action else 0
    exc = retry_state.outcome.exception() if retry_state.outcome else None

    logger.warning(
        "Retrying external call",
        extra={
            "function": getattr(fn, "__name__", "unknown"),
            "attempt": retry_state.attempt_number,
            "wait_seconds": round(float(wait_time), 2),
            "request_id": get_context_dict().get("request_id"),
            "error": str(exc) if exc else None,
            "error_type": type(exc).__name__ if exc else None,
        },
    )


def create_retry_decorator(
    max_attempts: int | None = None,
    base_delay: float | None = None,
    max_delay: float | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """R: Crea un decorator `tenacity` con exponential backoff + jitter.

    Overrides explícitos tienen prioridad sobre settings (retry_*).
    """
    settings = get_settings()
    _max_attempts = settings.retry_max_attempts if max_attempts is None else max_attempts
    _base_delay = (
        settings.retry_base_delay_seconds if base_delay is None else float(base_delay)
    )
    _max_delay = settings.retry_max_delay_seconds if max_delay is None else float(max_delay)

    if _max_attempts <= 0:
        raise ValueError("max_attempts must be > 0")
    if _base_delay < 0:
        raise ValueError("base_delay must be >= 0")
    if _max_delay <= 0:
        raise ValueError("max_delay must be > 0")

    return retry(
        stop=stop_after_attempt(_max_attempts),
        wait=wait_exponential_jitter(initial=_base_delay, max=_max_delay, jitter=_base_delay),
        retry=retry_if_exception(is_transient_error),
        before_sleep=_log_retry,
        reraise=True,
    )
