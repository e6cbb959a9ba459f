"""
Service layer for the Chia operator.

One reconciler per custom resource kind, all sharing BaseReconciler.
"""

from chia_operator.settings import Settings

from .base_reconciler import BaseReconciler, ClusterStore, DispatchResult
from .chiaca_reconciler import ChiaCAReconciler
from .component_reconciler import (
    ChiaFarmerReconciler,
    ChiaSeederReconciler,
    ChiaWalletReconciler,
)

__all__ = [
    "BaseReconciler",
    "DispatchResult",
    "ChiaCAReconciler",
    "ChiaFarmerReconciler",
    "ChiaWalletReconciler",
    "ChiaSeederReconciler",
    "build_reconcilers",
]


def build_reconcilers(
    store: ClusterStore, settings: Settings | None = None
) -> dict[str, BaseReconciler]:
    """Create one reconciler per kind, all sharing the same store."""
    reconcilers = (
        ChiaCAReconciler(store, settings),
        ChiaFarmerReconciler(store, settings),
        ChiaWalletReconciler(store, settings),
        ChiaSeederReconciler(store, settings),
    )
    return {reconciler.kind: reconciler for reconciler in reconcilers}
