"""
Reconcilers for the chia components: farmers, wallets and seeders.

All three converge the same shape of children (a Service, an optional
metrics Service and a Deployment) and are ready as soon as those exist in
their desired form.
"""

from collections.abc import Callable
from typing import Any, ClassVar

from chia_operator.builders import chiafarmer, chiaseeder, chiawallet
from chia_operator.constants import (
    KIND_CHIAFARMER,
    KIND_CHIASEEDER,
    KIND_CHIAWALLET,
    PLURAL_CHIAFARMER,
    PLURAL_CHIASEEDER,
    PLURAL_CHIAWALLET,
)
from chia_operator.models import ChiaFarmer, ChiaSeeder, ChiaWallet
from chia_operator.models.common import ChiaResource
from chia_operator.utils.resources import ChildDescriptor

from .base_reconciler import BaseReconciler, DispatchResult, R


class ComponentReconciler(BaseReconciler[R]):
    """Reconciles a chia component resource into its Services and Deployment."""

    assemble: ClassVar[Callable[[Any], list[ChildDescriptor]]]

    async def do_reconcile(self, resource: R, status: dict[str, Any]) -> DispatchResult:
        result = DispatchResult()
        children = self.assemble(resource)

        await self.reconcile_children(resource, status, children, result)

        await self.mark_ready(resource, status)
        result.ready = True
        return result


class ChiaFarmerReconciler(ComponentReconciler[ChiaFarmer]):
    kind = KIND_CHIAFARMER
    plural = PLURAL_CHIAFARMER
    model: ClassVar[type[ChiaResource]] = ChiaFarmer
    assemble = staticmethod(chiafarmer.assemble)


class ChiaWalletReconciler(ComponentReconciler[ChiaWallet]):
    kind = KIND_CHIAWALLET
    plural = PLURAL_CHIAWALLET
    model: ClassVar[type[ChiaResource]] = ChiaWallet
    assemble = staticmethod(chiawallet.assemble)


class ChiaSeederReconciler(ComponentReconciler[ChiaSeeder]):
    kind = KIND_CHIASEEDER
    plural = PLURAL_CHIASEEDER
    model: ClassVar[type[ChiaResource]] = ChiaSeeder
    assemble = staticmethod(chiaseeder.assemble)
