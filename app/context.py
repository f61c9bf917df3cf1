"""
===============================================================================
TARJETA CRC — app/context.py (Contexto por request)
===============================================================================

Responsabilidades:
  - Mantener contexto request-scoped con ContextVars (async-safe).
  - Correlacionar logs sin pasar parámetros por todo el stack, incluidas las
    tareas fire-and-forget que heredan el contexto al crearse.

Colaboradores:
  - crosscutting.middleware: setea request_id/method/path al inicio del request.
  - crosscutting.logger: enriquece logs leyendo get_context_dict().

Restricciones:
  - Solo strings; "" significa "no disponible".
===============================================================================
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import Final

request_id_var: ContextVar[str] = ContextVar("request_id", default="")
http_method_var: ContextVar[str] = ContextVar("http_method", default="")
http_path_var: ContextVar[str] = ContextVar("http_path", default="")

# Identidad efectiva (authenticated / firebase_only / guest), útil en auditoría.
acting_kind_var: ContextVar[str] = ContextVar("acting_kind", default="")

_CONTEXT_KEYS: Final[tuple[tuple[str, ContextVar[str]], ...]] = (
    ("request_id", request_id_var),
    ("method", http_method_var),
    ("path", http_path_var),
    ("acting_kind", acting_kind_var),
)


def set_request_context(
    *, request_id: str = "", method: str = "", path: str = ""
) -> None:
    """Setea el contexto mínimo del request."""
    request_id_var.set(request_id or "")
    http_method_var.set(method or "")
    http_path_var.set(path or "")


def set_acting_kind(kind: str) -> None:
    acting_kind_var.set(kind or "")


def get_context_dict() -> dict[str, str]:
    """Devuelve el contexto actual omitiendo claves vacías."""
    return {key: value for key, var in _CONTEXT_KEYS if (value := var.get())}


def clear_context() -> None:
    """
    Limpia el contexto al final del request.

    Evita que un request herede el request_id del anterior en el mismo worker.
    """
    for _, var in _CONTEXT_KEYS:
        var.set("")
