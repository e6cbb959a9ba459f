#!/usr/bin/env python3
"""
Chia Operator - Main entry point for the Kopf-based Chia operator.

The operator converges Chia blockchain components declared as custom
resources (ChiaCA, ChiaFarmer, ChiaWallet, ChiaSeeder) into Deployments,
Services, Jobs and RBAC objects.

Usage:
    chia-operator
    # Or with kopf directly:
    kopf run -m chia_operator.operator --all-namespaces

Environment Variables:
    CHIA_OPERATOR_NAMESPACES: Comma-separated list of namespaces to watch
    LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
    See chia_operator.settings for the full list.
"""

import asyncio
import logging
import random
import sys
from concurrent.futures import ThreadPoolExecutor

import kopf

# Importing the handler module registers its decorators with kopf
from chia_operator.handlers import chia  # noqa: F401
from chia_operator.observability.logging import setup_structured_logging
from chia_operator.observability.metrics import MetricsServer
from chia_operator.services import build_reconcilers
from chia_operator.settings import settings as operator_settings
from chia_operator.utils.kubernetes import KubernetesObjectStore, get_kubernetes_client

logger = logging.getLogger(__name__)

PEERING_NAME = "chia-operator"
LIVENESS_ENDPOINT = "http://0.0.0.0:8080/healthz"
API_THREAD_PREFIX = "chia-operator-api"


def configure_logging() -> None:
    setup_structured_logging(
        log_level=operator_settings.log_level,
        enable_json_formatting=operator_settings.json_logs,
        correlation_id_enabled=operator_settings.correlation_ids,
        log_health_probes=operator_settings.log_health_probes,
    )


def get_watched_namespaces() -> list[str] | None:
    """Namespaces to watch, or None for cluster-wide mode."""
    return operator_settings.watched_namespaces


def configure_kopf(settings: kopf.OperatorSettings) -> None:
    settings.watching.reconnect_backoff = 1.0

    # Replicas race on a random priority; the highest one is active
    settings.peering.name = PEERING_NAME
    settings.peering.priority = random.randint(0, 32767)
    logger.info(f"Peering as {PEERING_NAME} with priority {settings.peering.priority}")


def configure_executor(max_workers: int) -> None:
    """
    Size the thread pool that Kubernetes API calls run in.

    Reconcilers hand every blocking client call to ``asyncio.to_thread``,
    which uses the running loop's default executor.
    """
    asyncio.get_running_loop().set_default_executor(
        ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=API_THREAD_PREFIX
        )
    )


async def start_metrics_server() -> MetricsServer | None:
    server = MetricsServer(
        port=operator_settings.metrics_port, host=operator_settings.metrics_host
    )
    try:
        await server.start()
    except OSError as e:
        # Metrics are optional; reconciling is not
        logger.warning(f"Continuing without metrics server: {e}")
        return None
    return server


@kopf.on.startup()
async def startup_handler(
    settings: kopf.OperatorSettings, memo: kopf.Memo, **_
) -> None:
    """
    Configure kopf and build the objects handlers use.

    The object store and one reconciler per kind are put in ``memo``; every
    reconciler shares the store.
    """
    logger.info("Starting Chia Operator")
    configure_kopf(settings)
    configure_executor(operator_settings.max_workers)

    watched_namespaces = get_watched_namespaces()
    if watched_namespaces:
        logger.info(f"Watching namespaces: {', '.join(watched_namespaces)}")
    else:
        logger.info("Watching all namespaces")

    memo.store = KubernetesObjectStore(get_kubernetes_client())
    memo.reconcilers = build_reconcilers(memo.store, operator_settings)
    logger.info(f"Reconciling kinds: {', '.join(sorted(memo.reconcilers))}")

    memo.metrics_server = await start_metrics_server()


@kopf.on.cleanup()
async def cleanup_handler(memo: kopf.Memo, **_) -> None:
    logger.info("Shutting down Chia Operator")
    metrics_server = memo.get("metrics_server")
    if metrics_server:
        await metrics_server.stop()


@kopf.on.probe(id="reconcilers")
async def reconcilers_probe(memo: kopf.Memo, **_) -> list[str]:
    """Kinds the operator reconciles, reported on the liveness endpoint."""
    return sorted(memo.get("reconcilers") or {})


def main() -> None:
    configure_logging()

    watched_namespaces = get_watched_namespaces()
    scope = (
        {"namespaces": watched_namespaces}
        if watched_namespaces
        else {"clusterwide": True}
    )

    try:
        kopf.run(liveness_endpoint=LIVENESS_ENDPOINT, **scope)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Operator failed with error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
