"""Operator settings read from the environment (and an optional .env file).

Field names are the attribute names; the environment variable for each is
given by its validation_alias.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from chia_operator.constants import (
    DEFAULT_CA_SECRET_WAIT_ATTEMPTS,
    DEFAULT_CA_SECRET_WAIT_INTERVAL,
    DEFAULT_REQUEUE_DELAY,
)


class Settings(BaseSettings):
    """Runtime configuration of the Chia operator.

    Defaults suit an in-cluster deployment watching every namespace.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    json_logs: bool = Field(
        default=True,
        validation_alias="JSON_LOGS",
        description="Enable JSON formatted logging for structured log aggregation",
    )
    correlation_ids: bool = Field(
        default=True,
        validation_alias="CORRELATION_IDS",
        description="Enable correlation IDs in logs for request tracing",
    )
    log_health_probes: bool = Field(
        default=False,
        validation_alias="LOG_HEALTH_PROBES",
        description="Log requests to the health and metrics endpoints",
    )

    # Namespace watching
    namespaces: str = Field(
        default="",
        validation_alias="CHIA_OPERATOR_NAMESPACES",
        description="Comma-separated list of namespaces to watch (empty = all namespaces)",
    )

    # Metrics and observability
    metrics_port: int = Field(
        default=8081,
        validation_alias="METRICS_PORT",
        description="Port for Prometheus metrics endpoint",
    )
    metrics_host: str = Field(
        default="0.0.0.0",
        validation_alias="METRICS_HOST",
        description="Host address to bind metrics server",
    )

    # Reconciliation behavior
    max_workers: int = Field(
        default=20,
        validation_alias="MAX_WORKERS",
        description=(
            "Maximum number of Kubernetes API calls running concurrently "
            "in worker threads"
        ),
        ge=1,
    )
    ca_secret_wait_attempts: int = Field(
        default=DEFAULT_CA_SECRET_WAIT_ATTEMPTS,
        validation_alias="CA_SECRET_WAIT_ATTEMPTS",
        description="How many times to check for the generated CA secret per reconcile",
        ge=1,
    )
    ca_secret_wait_interval_seconds: float = Field(
        default=DEFAULT_CA_SECRET_WAIT_INTERVAL,
        validation_alias="CA_SECRET_WAIT_INTERVAL_SECONDS",
        description="Seconds to sleep between CA secret checks",
        ge=0,
    )
    requeue_delay_seconds: float = Field(
        default=DEFAULT_REQUEUE_DELAY,
        validation_alias="REQUEUE_DELAY_SECONDS",
        description="Delay before a resource that is not ready yet is reconciled again",
        gt=0,
    )

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {value!r}")
        return level

    @property
    def watched_namespaces(self) -> list[str] | None:
        """Parse watched namespaces from comma-separated string.

        Returns:
            List of namespace names, or None to watch all namespaces
        """
        if self.namespaces:
            return [ns.strip() for ns in self.namespaces.split(",") if ns.strip()]
        return None


# Read once at import; tests construct their own Settings
settings = Settings()
