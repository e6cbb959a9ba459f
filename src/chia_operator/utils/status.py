"""
Status subresource handling for Chia custom resources.

Status is written through the status subresource only and only when its
content would actually change, so a converged resource sees no writes at all
on repeat reconciles.
"""

import logging
from datetime import UTC, datetime
from typing import Any, Protocol

from chia_operator.constants import CONDITION_FALSE, CONDITION_READY, CONDITION_TRUE

logger = logging.getLogger(__name__)


class StatusStore(Protocol):
    def patch_custom_resource_status(
        self,
        kind: str,
        plural: str,
        namespace: str,
        name: str,
        status: dict[str, Any],
    ) -> dict[str, Any]: ...


def _find_condition(
    conditions: list[dict[str, Any]], condition_type: str
) -> dict[str, Any] | None:
    for condition in conditions:
        if isinstance(condition, dict) and condition.get("type") == condition_type:
            return condition
    return None


def build_status(
    current: dict[str, Any] | None,
    ready: bool,
    reason: str,
    message: str,
    generation: int,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Compute the status a resource should carry.

    The Ready condition keeps its lastTransitionTime while its status does not
    change. Conditions of other types are preserved as they are.
    """
    current = current or {}
    conditions = [c for c in current.get("conditions") or [] if isinstance(c, dict)]
    condition_status = CONDITION_TRUE if ready else CONDITION_FALSE

    existing = _find_condition(conditions, CONDITION_READY)
    if existing and existing.get("status") == condition_status and existing.get(
        "lastTransitionTime"
    ):
        transition_time = existing["lastTransitionTime"]
    else:
        transition_time = (now or datetime.now(UTC)).isoformat()

    ready_condition = {
        "type": CONDITION_READY,
        "status": condition_status,
        "reason": reason,
        "message": message,
        "lastTransitionTime": transition_time,
        "observedGeneration": generation,
    }

    others = [c for c in conditions if c.get("type") != CONDITION_READY]
    return {
        "ready": ready,
        "conditions": [*others, ready_condition],
        "observedGeneration": generation,
    }


def status_changed(current: dict[str, Any] | None, desired: dict[str, Any]) -> bool:
    current = current or {}
    return any(current.get(key) != value for key, value in desired.items())


class StatusUpdater:
    """Writes the status of one custom resource kind."""

    def __init__(self, store: StatusStore, kind: str, plural: str):
        self.store = store
        self.kind = kind
        self.plural = plural

    def update(
        self,
        namespace: str,
        name: str,
        current: dict[str, Any] | None,
        ready: bool,
        reason: str,
        message: str,
        generation: int,
    ) -> bool:
        """
        Write the status unless it already matches.

        Returns:
            True if a write was issued
        """
        desired = build_status(current, ready, reason, message, generation)
        if not status_changed(current, desired):
            logger.debug(f"Status of {self.kind} {namespace}/{name} is up to date")
            return False

        self.store.patch_custom_resource_status(
            self.kind, self.plural, namespace, name, desired
        )
        logger.info(
            f"Updated status of {self.kind} {namespace}/{name}: ready={ready} ({reason})"
        )
        return True
