"""
Structured logging for the Chia operator.

Each reconcile invocation gets a short correlation ID, stored in a context
variable so it follows the invocation across awaits. Records are emitted as
one JSON object per line, carrying the resource and child identity fields
that OperatorLogger attaches.
"""

import json
import logging
import uuid
from collections.abc import Iterable
from contextvars import ContextVar
from datetime import UTC, datetime

correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

# Endpoints polled by kubelet and Prometheus
HEALTH_PROBE_PATHS = frozenset({"/healthz", "/metrics"})

# Record attributes copied into the JSON payload when present
STRUCTURED_FIELDS = (
    "resource_type",
    "resource_name",
    "namespace",
    "operation",
    "duration",
    "error_type",
    "child_kind",
    "child_name",
    "outcome",
    "attempt",
    "max_attempts",
    "requeue_after",
)

# Libraries whose INFO output drowns the operator's own records
QUIET_LOGGERS = (
    "kopf",
    "kubernetes",
    "urllib3",
    "aiohttp.access",
    "aiohttp.server",
    "aiohttp.web",
)

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
TEXT_FORMAT_WITH_ID = "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s"


class HealthProbeFilter(logging.Filter):
    """Drops records that mention a probe or scrape endpoint."""

    def __init__(self, paths: Iterable[str] = HEALTH_PROBE_PATHS):
        super().__init__()
        self.paths = frozenset(paths)

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        return not any(path in message for path in self.paths)


class CorrelationIDFilter(logging.Filter):
    """Stamps every record with the current correlation ID, creating one if unset."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or set_correlation_id(
            generate_correlation_id()
        )
        return True


class StructuredFormatter(logging.Formatter):
    """Formats records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", ""),
        }
        payload.update(
            (name, getattr(record, name))
            for name in STRUCTURED_FIELDS
            if hasattr(record, name)
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def generate_correlation_id() -> str:
    return uuid.uuid4().hex[:8]


def set_correlation_id(corr_id: str) -> str:
    correlation_id.set(corr_id)
    return corr_id


def get_correlation_id() -> str:
    return correlation_id.get()


def _build_formatter(json_output: bool, with_correlation_id: bool) -> logging.Formatter:
    if json_output:
        return StructuredFormatter()
    return logging.Formatter(
        TEXT_FORMAT_WITH_ID if with_correlation_id else TEXT_FORMAT
    )


def setup_structured_logging(
    log_level: str = "INFO",
    enable_json_formatting: bool = True,
    correlation_id_enabled: bool = True,
    log_health_probes: bool = False,
) -> None:
    """
    Replace the root logger's handlers with one configured stream handler.

    Args:
        log_level: Root level name (DEBUG, INFO, WARNING, ERROR)
        enable_json_formatting: Emit JSON instead of plain text
        correlation_id_enabled: Attach correlation IDs to records
        log_health_probes: Keep records about /healthz and /metrics requests
    """
    handler = logging.StreamHandler()
    handler.setFormatter(
        _build_formatter(enable_json_formatting, correlation_id_enabled)
    )
    if correlation_id_enabled:
        handler.addFilter(CorrelationIDFilter())
    if not log_health_probes:
        handler.addFilter(HealthProbeFilter())

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


# Child outcome → log level; anything not listed is logged at INFO
_OUTCOME_LEVELS = {
    "Unchanged": logging.DEBUG,
    "Failed": logging.ERROR,
}


class OperatorLogger:
    """
    Logger for reconcile events of Chia resources.

    Every helper attaches the resource or child identity as record
    attributes, which StructuredFormatter turns into JSON fields.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    @staticmethod
    def _resource_fields(
        resource_type: str, resource_name: str, namespace: str, operation: str
    ) -> dict[str, str]:
        return {
            "resource_type": resource_type,
            "resource_name": resource_name,
            "namespace": namespace,
            "operation": operation,
        }

    def log_reconciliation_start(
        self,
        resource_type: str,
        resource_name: str,
        namespace: str,
        correlation_id: str | None = None,
    ) -> str:
        """
        Log the start of a reconcile invocation and bind its correlation ID.

        Returns:
            The correlation ID bound to the current context
        """
        corr_id = set_correlation_id(correlation_id or generate_correlation_id())
        self.logger.info(
            f"Reconciling {resource_type} {namespace}/{resource_name}",
            extra=self._resource_fields(
                resource_type, resource_name, namespace, "reconcile_start"
            ),
        )
        return corr_id

    def log_reconciliation_success(
        self, resource_type: str, resource_name: str, namespace: str, duration: float
    ) -> None:
        extra = self._resource_fields(
            resource_type, resource_name, namespace, "reconcile_success"
        )
        self.logger.info(
            f"Reconciled {resource_type} {namespace}/{resource_name} in {duration:.2f}s",
            extra={**extra, "duration": duration},
        )

    def log_reconciliation_error(
        self,
        resource_type: str,
        resource_name: str,
        namespace: str,
        error: Exception,
        duration: float,
    ) -> None:
        extra = self._resource_fields(
            resource_type, resource_name, namespace, "reconcile_error"
        )
        self.logger.error(
            f"Failed to reconcile {resource_type} {namespace}/{resource_name}: {error}",
            extra={**extra, "error_type": type(error).__name__, "duration": duration},
            exc_info=True,
        )

    def log_child_outcome(
        self,
        child_kind: str,
        child_name: str,
        namespace: str,
        outcome: str,
        reason: str | None = None,
    ) -> None:
        """Log what reconciling one child did; unchanged children only at DEBUG."""
        message = f"{child_kind} {namespace}/{child_name}: {outcome}"
        if reason:
            message += f" ({reason})"

        self.logger.log(
            _OUTCOME_LEVELS.get(outcome, logging.INFO),
            message,
            extra={
                "child_kind": child_kind,
                "child_name": child_name,
                "namespace": namespace,
                "outcome": outcome,
                "operation": "reconcile_child",
            },
        )

    def debug(self, message: str, **fields) -> None:
        self.logger.debug(message, extra=fields)

    def info(self, message: str, **fields) -> None:
        self.logger.info(message, extra=fields)

    def warning(self, message: str, **fields) -> None:
        self.logger.warning(message, extra=fields)

    def error(self, message: str, exc_info: bool = False, **fields) -> None:
        self.logger.error(message, exc_info=exc_info, extra=fields)
