"""
Prometheus metrics for the Chia operator.

Reconcile invocations are counted and timed per kind. Each child reconcile
adds one sample labelled with its outcome, so a converged cluster shows up
as a steady stream of ``Unchanged``. Readiness-wait checks and explicit
requeues have their own counters. MetricsServer exposes the registry on
``/metrics`` next to a ``/healthz`` endpoint.
"""

import logging
import time
from contextlib import asynccontextmanager

from aiohttp.web import (
    Application,
    AppRunner,
    Request,
    Response,
    TCPSite,
)
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

PREFIX = "chia_operator"

# Not the default registry, so repeated imports in tests never re-register
_metrics_registry = CollectorRegistry()

RECONCILIATION_TOTAL = Counter(
    f"{PREFIX}_reconciliation_total",
    "Reconcile invocations by kind and result",
    ["resource_type", "namespace", "result"],
    registry=_metrics_registry,
)

RECONCILIATION_DURATION = Histogram(
    f"{PREFIX}_reconciliation_duration_seconds",
    "Wall time of reconcile invocations, including readiness waits",
    ["resource_type", "namespace"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
    registry=_metrics_registry,
)

RECONCILIATION_ERRORS = Counter(
    f"{PREFIX}_reconciliation_errors_total",
    "Failed reconcile invocations by error type",
    ["resource_type", "namespace", "error_type", "retryable"],
    registry=_metrics_registry,
)

CHILD_OUTCOMES = Counter(
    f"{PREFIX}_child_outcomes_total",
    "Child object reconciles by owner kind, child kind and outcome",
    ["resource_type", "child_kind", "outcome"],
    registry=_metrics_registry,
)

READINESS_WAIT_ATTEMPTS = Counter(
    f"{PREFIX}_readiness_wait_attempts_total",
    "Predicate checks made by readiness waits, by whether the wait succeeded",
    ["resource_type", "found"],
    registry=_metrics_registry,
)

REQUEUES_TOTAL = Counter(
    f"{PREFIX}_requeues_total",
    "Explicit requeues requested by reconcile invocations",
    ["resource_type", "reason"],
    registry=_metrics_registry,
)


def get_metrics_registry() -> CollectorRegistry:
    return _metrics_registry


def _flag(value: bool) -> str:
    return "true" if value else "false"


class MetricsCollector:
    """Thin recording API over the module-level metrics."""

    def __init__(self):
        self.registry = get_metrics_registry()

    @asynccontextmanager
    async def track_reconciliation(self, resource_type: str, namespace: str):
        """
        Count and time the wrapped reconcile invocation.

        Exceptions are counted by type and re-raised unchanged.
        """
        started = time.monotonic()
        result = "error"
        try:
            yield
            result = "success"
        except Exception as e:
            RECONCILIATION_ERRORS.labels(
                resource_type=resource_type,
                namespace=namespace,
                error_type=type(e).__name__,
                retryable=_flag(getattr(e, "retryable", False)),
            ).inc()
            raise
        finally:
            RECONCILIATION_TOTAL.labels(
                resource_type=resource_type, namespace=namespace, result=result
            ).inc()
            RECONCILIATION_DURATION.labels(
                resource_type=resource_type, namespace=namespace
            ).observe(time.monotonic() - started)

    def record_child_outcome(
        self, resource_type: str, child_kind: str, outcome: str
    ) -> None:
        CHILD_OUTCOMES.labels(
            resource_type=resource_type, child_kind=child_kind, outcome=outcome
        ).inc()

    def record_wait(self, resource_type: str, attempts: int, found: bool) -> None:
        READINESS_WAIT_ATTEMPTS.labels(
            resource_type=resource_type, found=_flag(found)
        ).inc(attempts)

    def record_requeue(self, resource_type: str, reason: str) -> None:
        REQUEUES_TOTAL.labels(resource_type=resource_type, reason=reason).inc()


async def _serve_metrics(request: Request) -> Response:
    # aiohttp wants the charset separately from the content type
    content_type, _, _ = CONTENT_TYPE_LATEST.partition(";")
    return Response(
        body=generate_latest(get_metrics_registry()),
        content_type=content_type,
        charset="utf-8",
    )


async def _serve_healthz(request: Request) -> Response:
    return Response(text="ok")


def create_metrics_app() -> Application:
    """aiohttp application serving /metrics and /healthz."""
    app = Application()
    app.router.add_get("/metrics", _serve_metrics)
    app.router.add_get("/healthz", _serve_healthz)
    return app


class MetricsServer:
    """Runs the metrics application on its own TCP site inside kopf's loop."""

    def __init__(self, port: int = 8081, host: str = "0.0.0.0"):
        self.port = port
        self.host = host
        self.app = create_metrics_app()
        self.runner: AppRunner | None = None
        self.site: TCPSite | None = None

    @property
    def running(self) -> bool:
        return self.site is not None

    async def start(self) -> None:
        self.runner = AppRunner(self.app)
        await self.runner.setup()
        self.site = TCPSite(self.runner, self.host, self.port)
        await self.site.start()
        logger.info(f"Serving metrics on http://{self.host}:{self.port}/metrics")

    async def stop(self) -> None:
        if self.site:
            await self.site.stop()
            self.site = None
        if self.runner:
            await self.runner.cleanup()
            self.runner = None
        logger.info("Metrics server stopped")

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()


metrics_collector = MetricsCollector()
