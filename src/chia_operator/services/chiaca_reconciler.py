"""
ChiaCA reconciler.

Runs the CA generator Job until the CA Secret exists. The Job is only
reconciled while the Secret is missing; once the Secret exists the resource
is ready, whether the Job created it or it was provided up front.
"""

import asyncio
from typing import Any, ClassVar

from chia_operator.builders import chiaca
from chia_operator.constants import (
    KIND_CHIACA,
    PLURAL_CHIACA,
    REASON_WAITING_FOR_CA_SECRET,
)
from chia_operator.errors import NotFoundError
from chia_operator.models import ChiaCA
from chia_operator.models.common import ChiaResource
from chia_operator.observability.metrics import metrics_collector
from chia_operator.utils.readiness import wait_for

from .base_reconciler import BaseReconciler, DispatchResult


class ChiaCAReconciler(BaseReconciler[ChiaCA]):
    kind = KIND_CHIACA
    plural = PLURAL_CHIACA
    model: ClassVar[type[ChiaResource]] = ChiaCA

    def ca_secret_exists(self, ca: ChiaCA) -> bool:
        try:
            self.store.get("Secret", ca.namespace, ca.spec.secret)
        except NotFoundError:
            return False
        return True

    async def do_reconcile(self, resource: ChiaCA, status: dict[str, Any]) -> DispatchResult:
        result = DispatchResult()
        children = chiaca.assemble(resource)

        secret_exists = await asyncio.to_thread(self.ca_secret_exists, resource)
        if secret_exists:
            self.logger.debug(
                f"CA Secret {resource.namespace}/{resource.spec.secret} exists, "
                "skipping the generator Job",
                resource_type=self.kind,
                resource_name=resource.name,
                namespace=resource.namespace,
            )
            children = [child for child in children if child.key != chiaca.JOB_KEY]

        await self.reconcile_children(resource, status, children, result)

        if not secret_exists:
            secret_exists = await self.wait_for_ca_secret(resource)

        if secret_exists:
            await self.mark_ready(resource, status)
            result.ready = True
            return result

        message = (
            f"Waiting for the CA generator Job to create Secret "
            f"{resource.namespace}/{resource.spec.secret}"
        )
        await self.mark_not_ready(
            resource, status, REASON_WAITING_FOR_CA_SECRET, message
        )
        result.requeue_after = self.settings.requeue_delay_seconds
        metrics_collector.record_requeue(self.kind, REASON_WAITING_FOR_CA_SECRET)
        self.logger.info(
            f"{message}, checking again in {result.requeue_after}s",
            resource_type=self.kind,
            resource_name=resource.name,
            namespace=resource.namespace,
            requeue_after=result.requeue_after,
        )
        return result

    async def wait_for_ca_secret(self, ca: ChiaCA) -> bool:
        max_attempts = self.settings.ca_secret_wait_attempts
        attempt = 0

        async def secret_created() -> bool:
            nonlocal attempt
            attempt += 1
            self.logger.debug(
                f"Checking for CA Secret {ca.namespace}/{ca.spec.secret}, "
                f"attempt {attempt}/{max_attempts}",
                attempt=attempt,
                max_attempts=max_attempts,
            )
            return await asyncio.to_thread(self.ca_secret_exists, ca)

        wait = await wait_for(
            secret_created,
            max_attempts=max_attempts,
            interval=self.settings.ca_secret_wait_interval_seconds,
            sleep=self.sleep,
        )
        metrics_collector.record_wait(self.kind, wait.attempts, wait.found)
        return wait.found
