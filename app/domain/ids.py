"""
===============================================================================
TARJETA CRC — domain/ids.py
===============================================================================

Módulo:
    Coerción de IDs entre espacios (int relacional <-> string documental)

Responsabilidades:
    - Parsear IDs numéricos (int o string numérica) a int.
    - Convertir int -> clave de documento (str).
    - Distinguir "no es numérico" (candidato a UID externo) de "debía ser
      numérico y no lo es" (MalformedKeyError).

Colaboradores:
    - application.dual_store: toda clave pasa por aquí antes de tocar un store.
    - identity.resolver: decide si un numericId es en realidad un UID.
    - infrastructure.repositories.firestore: IDs de documento.

Reglas:
    - Nunca devolver None silenciosamente para una clave que debía ser numérica.
    - bool NO es un int válido (True no es el id 1).
===============================================================================
"""

from __future__ import annotations

from ..crosscutting.exceptions import MalformedKeyError


def try_parse_numeric_id(value: object) -> int | None:
    """
    Devuelve el int si `value` es un ID numérico positivo; None si no lo es.

    Acepta int y strings de dígitos (con espacios alrededor). No acepta
    signos, decimales, notación científica ni bool.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str):
        text = value.strip()
        if text.isascii() and text.isdigit():
            parsed = int(text)
            return parsed if parsed > 0 else None
    return None


def parse_numeric_id(value: object, *, entity: str | None = None) -> int:
    """Como try_parse_numeric_id, pero un valor no numérico es MalformedKeyError."""
    parsed = try_parse_numeric_id(value)
    if parsed is None:
        raise MalformedKeyError(value, entity=entity)
    return parsed


def to_document_key(value: int | str, *, entity: str | None = None) -> str:
    """int -> "int" para usar como ID de documento (valida que sea numérico)."""
    return str(parse_numeric_id(value, entity=entity))


def next_numeric_id(*known_ids: int | None) -> int:
    """
    Siguiente ID libre: 1 + el mayor ID conocido (en cualquiera de los stores).

    Los None representan stores que no pudieron informar su máximo.
    """
    return max((i for i in known_ids if i is not None), default=0) + 1
