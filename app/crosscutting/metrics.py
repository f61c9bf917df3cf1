"""
===============================================================================
ARCHIVO: crosscutting/metrics.py
===============================================================================

CRC CARD (Módulo)
-------------------------------------------------------------------------------
Nombre:
    Métricas (Prometheus)

Responsabilidades:
    - Definir métricas Prometheus en un registry propio.
    - Proveer funciones pequeñas para registrar requests, llamadas a stores,
      fallbacks y resultados de sincronización.
    - Cuidar cardinalidad (NO user_id, NO claves de entidad, paths normalizados).
    - Generar la respuesta de /metrics.

Colaboradores:
    - crosscutting.middleware: latencia y conteo HTTP.
    - application.store_calls: outcome de cada llamada a store.
    - application.dual_store: lecturas servidas por fallback.
    - application.role_sync: resultados full/partial/failed.
===============================================================================
"""

from __future__ import annotations

import re

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

_registry = CollectorRegistry()

_requests_total = Counter(
    "storefront_requests_total",
    "Total de requests HTTP",
    ["endpoint", "method", "status"],
    registry=_registry,
)

_request_latency = Histogram(
    "storefront_request_latency_seconds",
    "Latencia de requests HTTP (segundos)",
    ["endpoint", "method"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
    registry=_registry,
)

_store_calls_total = Counter(
    "storefront_store_calls_total",
    "Llamadas a stores por outcome (ok/error/timeout)",
    ["store", "operation", "outcome"],
    registry=_registry,
)

_fallback_reads_total = Counter(
    "storefront_fallback_reads_total",
    "Lecturas resueltas por el store relacional tras fallar/vaciar el documental",
    ["entity"],
    registry=_registry,
)

_sync_results_total = Counter(
    "storefront_sync_results_total",
    "Resultados de sincronización dual (full/partial/failed)",
    ["operation", "result"],
    registry=_registry,
)

# /products/12 -> /products/{id}, /orders/ORD171... -> /orders/{id}
_ID_SEGMENT = re.compile(r"/(\d+|[0-9a-fA-F-]{32,36}|ORD\d+)(?=/|$)")


def normalize_endpoint(path: str) -> str:
    return _ID_SEGMENT.sub("/{id}", path or "/")


def record_request_metrics(
    *, endpoint: str, method: str, status_code: int, latency_seconds: float
) -> None:
    normalized = normalize_endpoint(endpoint)
    _requests_total.labels(normalized, method, str(status_code)).inc()
    _request_latency.labels(normalized, method).observe(latency_seconds)


def record_store_call(*, store: str, operation: str, outcome: str) -> None:
    _store_calls_total.labels(store, operation, outcome).inc()


def record_fallback_read(entity: str) -> None:
    _fallback_reads_total.labels(entity).inc()


def record_sync_result(*, operation: str, result: str) -> None:
    _sync_results_total.labels(operation, result).inc()


def get_metrics_response() -> tuple[bytes, str]:
    """Devuelve (body, content_type) para el endpoint /metrics."""
    return generate_latest(_registry), CONTENT_TYPE_LATEST
