"""
Base reconciler class providing common patterns for resource reconciliation.

This module defines the BaseReconciler class that drives one reconcile
invocation for a Chia custom resource: fetch the resource, reconcile its
children in dependency order and record the result in its status.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Generic, Protocol, TypeVar

from pydantic import ValidationError

from chia_operator.constants import (
    REASON_CHILD_FAILED,
    REASON_RECONCILED,
)
from chia_operator.errors import (
    ConfigurationError,
    NotFoundError,
    OperatorError,
    ReconciliationError,
    TemporaryError,
)
from chia_operator.models.common import ChiaResource
from chia_operator.observability.logging import OperatorLogger
from chia_operator.observability.metrics import metrics_collector
from chia_operator.settings import Settings
from chia_operator.settings import settings as default_settings
from chia_operator.utils.dependency_graph import reconcile_order
from chia_operator.utils.readiness import Sleep
from chia_operator.utils.resources import (
    ChildDescriptor,
    ObjectStore,
    ReconcileOutcome,
    reconcile_resource,
)
from chia_operator.utils.status import StatusUpdater

R = TypeVar("R", bound=ChiaResource)


class ClusterStore(ObjectStore, Protocol):
    """Everything a reconciler needs from the cluster."""

    def get_custom_resource(
        self, kind: str, plural: str, namespace: str, name: str
    ) -> dict[str, Any]: ...

    def patch_custom_resource_status(
        self,
        kind: str,
        plural: str,
        namespace: str,
        name: str,
        status: dict[str, Any],
    ) -> dict[str, Any]: ...


@dataclass
class DispatchResult:
    """
    What one reconcile invocation did.

    Attributes:
        requeue_after: Seconds after which the resource should be reconciled
            again, or None when it converged
        outcomes: Outcome per child descriptor key, in reconcile order
        ready: Whether the resource was marked ready
    """

    requeue_after: float | None = None
    outcomes: dict[str, ReconcileOutcome] = field(default_factory=dict)
    ready: bool = False


class BaseReconciler(ABC, Generic[R]):
    """
    Base class for all Chia resource reconcilers.

    The store is synchronous; every call to it runs in a worker thread so
    reconciles of different resources proceed concurrently.

    Provides common patterns for:
    - Fetching and parsing the custom resource
    - Reconciling children in dependency order with per-child logging and metrics
    - Status management with a Ready condition
    - Error wrapping with the resource identity
    """

    kind: ClassVar[str]
    plural: ClassVar[str]
    model: ClassVar[type[ChiaResource]]

    def __init__(
        self,
        store: ClusterStore,
        settings: Settings | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        """
        Initialize base reconciler.

        Args:
            store: Access to the cluster, shared by all reconcilers
            settings: Operator settings, the process-wide settings if omitted
            sleep: Sleep used by readiness waits
        """
        self.store = store
        self.settings = settings or default_settings
        self.sleep = sleep
        self.status_updater = StatusUpdater(store, self.kind, self.plural)
        self.logger = OperatorLogger(self.__class__.__name__)

    async def reconcile(self, namespace: str, name: str) -> DispatchResult:
        """
        Main reconciliation entry point with metrics tracking.

        A resource that no longer exists is not an error: nothing is written
        and nothing is requeued.

        Raises:
            OperatorError: On any failure, with retry behavior attached
        """
        start_time = time.time()
        self.logger.log_reconciliation_start(
            resource_type=self.kind, resource_name=name, namespace=namespace
        )

        async with metrics_collector.track_reconciliation(self.kind, namespace):
            try:
                try:
                    raw = await asyncio.to_thread(
                        self.store.get_custom_resource,
                        self.kind, self.plural, namespace, name
                    )
                except NotFoundError:
                    self.logger.info(
                        f"{self.kind} {namespace}/{name} not found, it was probably deleted",
                        resource_type=self.kind,
                        resource_name=name,
                        namespace=namespace,
                    )
                    return DispatchResult()

                resource = self.parse(raw)
                result = await self.do_reconcile(resource, raw.get("status") or {})

            except OperatorError as e:
                self.logger.log_reconciliation_error(
                    resource_type=self.kind,
                    resource_name=name,
                    namespace=namespace,
                    error=e,
                    duration=time.time() - start_time,
                )
                raise

            except Exception as e:
                # Wrap unexpected errors as temporary to allow retry
                error = TemporaryError(
                    f"Unexpected error during reconciliation: {str(e)}"
                )
                self.logger.log_reconciliation_error(
                    resource_type=self.kind,
                    resource_name=name,
                    namespace=namespace,
                    error=error,
                    duration=time.time() - start_time,
                )
                raise error from e

        self.logger.log_reconciliation_success(
            resource_type=self.kind,
            resource_name=name,
            namespace=namespace,
            duration=time.time() - start_time,
        )
        return result

    def parse(self, raw: dict[str, Any]) -> R:
        try:
            return self.model.model_validate(raw)
        except ValidationError as e:
            metadata = raw.get("metadata") or {}
            raise ConfigurationError(
                f"Invalid {self.kind} {metadata.get('namespace')}/{metadata.get('name')}: {e}",
                user_action=f"Fix the {self.kind} spec",
            ) from e

    @abstractmethod
    async def do_reconcile(self, resource: R, status: dict[str, Any]) -> DispatchResult:
        """
        Reconcile one parsed resource.

        Args:
            resource: The custom resource as currently stored
            status: Its current status, used to avoid redundant status writes
        """

    async def reconcile_children(
        self,
        resource: R,
        status: dict[str, Any],
        children: list[ChildDescriptor],
        result: DispatchResult,
    ) -> None:
        """
        Reconcile children in dependency order, stopping at the first failure.

        Children converged before a failure are left in place. The failure
        marks the resource not ready and is raised with the resource identity.
        """
        for child in reconcile_order(children):
            try:
                child_result = await asyncio.to_thread(
                    reconcile_resource, self.store, child
                )
            except OperatorError as e:
                result.outcomes[child.key] = ReconcileOutcome.FAILED
                self._record_child(child, ReconcileOutcome.FAILED, str(e))

                message = (
                    f"{self.kind} {resource.namespace}/{resource.name} encountered "
                    f"error reconciling {child.kind} {child.name}: {e}"
                )
                await self.mark_not_ready(
                    resource, status, REASON_CHILD_FAILED, message
                )
                raise ReconciliationError(
                    message, retryable=e.retryable, delay=e.delay, cause=e
                ) from e

            result.outcomes[child.key] = child_result.outcome
            self._record_child(child, child_result.outcome, child_result.reason)

    def _record_child(
        self, child: ChildDescriptor, outcome: ReconcileOutcome, reason: str | None
    ) -> None:
        self.logger.log_child_outcome(
            child_kind=child.kind,
            child_name=child.name,
            namespace=child.namespace,
            outcome=outcome.value,
            reason=reason,
        )
        metrics_collector.record_child_outcome(self.kind, child.kind, outcome.value)

    async def mark_ready(
        self,
        resource: R,
        status: dict[str, Any],
        message: str = "All child resources reconciled",
    ) -> bool:
        return await asyncio.to_thread(
            self.status_updater.update,
            resource.namespace,
            resource.name,
            status,
            ready=True,
            reason=REASON_RECONCILED,
            message=message,
            generation=resource.metadata.generation,
        )

    async def mark_not_ready(
        self, resource: R, status: dict[str, Any], reason: str, message: str
    ) -> bool:
        """
        Record that the resource is not ready.

        Best effort: a failed status write is logged and reported as False,
        so the error that led here stays the one surfaced to the caller.
        """
        try:
            return await asyncio.to_thread(
                self.status_updater.update,
                resource.namespace,
                resource.name,
                status,
                ready=False,
                reason=reason,
                message=message,
                generation=resource.metadata.generation,
            )
        except OperatorError as e:
            self.logger.warning(
                f"Failed to mark {self.kind} {resource.namespace}/{resource.name} "
                f"not ready: {e}",
                resource_type=self.kind,
                resource_name=resource.name,
                namespace=resource.namespace,
            )
            return False
