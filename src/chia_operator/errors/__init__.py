"""
Error handling module for the Chia operator.

This module provides a comprehensive error hierarchy that integrates with kopf
and provides clear categorization for different types of failures.
"""

from .operator_errors import (
    ConfigurationError,
    ConflictError,
    KubernetesAPIError,
    NotFoundError,
    OperatorError,
    ReconciliationError,
    RequeueRequested,
    TemporaryError,
)

__all__ = [
    "OperatorError",
    "TemporaryError",
    "RequeueRequested",
    "KubernetesAPIError",
    "NotFoundError",
    "ConflictError",
    "ConfigurationError",
    "ReconciliationError",
]
