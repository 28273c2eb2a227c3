"""Prometheus metrics.

HTTP request metrics come from prometheus-fastapi-instrumentator; the
counters below describe what the matching engine concluded.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI
from prometheus_client import Counter, Gauge, Histogram
from prometheus_fastapi_instrumentator import Instrumentator

logger = structlog.get_logger("vinylmatch.metrics")

app_info = Gauge("vinylmatch_info", "Running vinylmatch version", ["version"])

matching_requests_total = Counter(
    "matching_requests_total",
    "Completed match calculations by overall compatibility",
    ["compatibility"],
)
matching_failures_total = Counter(
    "matching_failures_total",
    "Rejected match requests and skipped SUT analyses by error code",
    ["code"],
)
weight_estimations_total = Counter(
    "cartridge_weight_estimations_total",
    "Cartridge weight estimations by reference population tier",
    ["tier"],
)
resonance_frequency_hz = Histogram(
    "matching_resonance_frequency_hz",
    "Computed tonearm/cartridge resonance frequencies",
    buckets=(4, 6, 7, 8, 9, 10, 11, 12, 13, 14, 16, 20),
)

catalog_db_pool_size = Gauge("catalog_db_pool_size", "Catalog database pool size")
catalog_db_pool_max_overflow = Gauge(
    "catalog_db_pool_max_overflow",
    "Catalog database connections allowed beyond the pool size",
)

# Served by the app itself or not worth timing
_UNTIMED_PATHS = ["/metrics", "/docs", "/openapi.json", "/redoc", "/api/health"]


def setup_metrics(app: FastAPI, app_version: str) -> None:
    """Instrument ``app`` and expose its metrics at /metrics (idempotent per app)."""
    if getattr(app.state, "metrics_enabled", False):
        return

    Instrumentator(
        should_group_status_codes=False,
        should_ignore_untemplated=True,
        should_instrument_requests_inprogress=True,
        excluded_handlers=_UNTIMED_PATHS,
    ).instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

    app.state.metrics_enabled = True
    app_info.labels(version=app_version).set(1)
    logger.info("Metrics endpoint enabled", version=app_version)
