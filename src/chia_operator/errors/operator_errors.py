"""
Operator error hierarchy with categorization and retry logic.

Every failure that leaves a reconcile invocation is an OperatorError. It
knows whether kopf should retry it, after how long, and what a user can do
about it. Handlers turn it into a kopf exception with as_kopf_error().
"""

import kopf

# Default retry delays, seconds
DEFAULT_RETRY_DELAY = 30
RECONCILE_RETRY_DELAY = 60
CONFLICT_RETRY_DELAY = 5

# API failures that repeat identically until someone changes RBAC or the object
NON_RETRYABLE_REASONS = frozenset({"Forbidden", "Unauthorized", "Invalid"})


class OperatorError(Exception):
    """
    Base error class for all operator-related exceptions.

    Attributes:
        category: Coarse error class used in logs (kubernetes, reconciliation, ...)
        retryable: Whether kopf should retry the handler
        delay: Seconds kopf waits before the retry
        user_action: Hint appended to the message for whoever reads the event
        cause: The exception this one wraps, if any
    """

    def __init__(
        self,
        message: str,
        category: str,
        retryable: bool = True,
        delay: float = DEFAULT_RETRY_DELAY,
        user_action: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.category = category
        self.retryable = retryable
        self.delay = delay
        self.user_action = user_action
        self.cause = cause

    def as_kopf_error(self) -> kopf.TemporaryError | kopf.PermanentError:
        """Convert to the kopf exception that gives the same retry behavior."""
        if not self.retryable:
            return kopf.PermanentError(str(self))
        return kopf.TemporaryError(str(self), delay=self.delay)

    def __str__(self) -> str:
        message = super().__str__()
        if not self.user_action:
            return message
        return f"{message}\nAction required: {self.user_action}"


class TemporaryError(OperatorError):
    """Transient failure; the handler is retried after ``delay``."""

    def __init__(
        self,
        message: str,
        delay: float = DEFAULT_RETRY_DELAY,
        user_action: str | None = None,
    ):
        super().__init__(
            message=message,
            category="temporary",
            delay=delay,
            user_action=user_action or "None, the operator retries automatically",
        )


class RequeueRequested(TemporaryError):
    """The resource is not ready yet and should be reconciled again later."""

    def __init__(self, message: str, delay: float):
        super().__init__(
            message=message,
            delay=delay,
            user_action="None, the operator will check again",
        )


class KubernetesAPIError(OperatorError):
    """
    A call to the Kubernetes API failed.

    ``reason`` is the API status reason (Forbidden, NotFound, ...). Reasons in
    NON_RETRYABLE_REASONS make the error permanent regardless of ``retryable``.
    """

    def __init__(
        self,
        message: str,
        reason: str | None = None,
        retryable: bool = True,
        status: int | None = None,
    ):
        self.reason = reason
        self.status = status
        if reason:
            message = f"{message} (reason: {reason})"

        super().__init__(
            message=f"Kubernetes API error: {message}",
            category="kubernetes",
            retryable=retryable and reason not in NON_RETRYABLE_REASONS,
            user_action="Check the operator's RBAC permissions and cluster connectivity",
        )


class NotFoundError(KubernetesAPIError):
    """The requested object does not exist in the cluster."""

    def __init__(self, kind: str, namespace: str, name: str):
        self.kind = kind
        self.namespace = namespace
        self.name = name
        super().__init__(
            message=f"{kind} {namespace}/{name} not found",
            reason="NotFound",
            status=404,
        )


class ConflictError(KubernetesAPIError):
    """The object changed between our read and our write (HTTP 409)."""

    def __init__(self, kind: str, namespace: str, name: str, message: str = ""):
        detail = f": {message}" if message else ""
        super().__init__(
            message=f"Conflict writing {kind} {namespace}/{name}{detail}",
            reason="Conflict",
            status=409,
        )
        self.delay = CONFLICT_RETRY_DELAY


class ReconciliationError(OperatorError):
    """A child of a custom resource could not be converged."""

    def __init__(
        self,
        message: str,
        retryable: bool = True,
        delay: float = RECONCILE_RETRY_DELAY,
        user_action: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category="reconciliation",
            retryable=retryable,
            delay=delay,
            user_action=user_action
            or "Check the operator logs and the events of the failing child",
            cause=cause,
        )


class ConfigurationError(OperatorError):
    """The resource, its children or the operator are misconfigured."""

    def __init__(
        self, message: str, retryable: bool = False, user_action: str | None = None
    ):
        super().__init__(
            message=message,
            category="configuration",
            retryable=retryable,
            user_action=user_action or "Correct the custom resource or operator settings",
        )
