"""
Chia resource handlers - map kopf events onto the reconcilers.

Creation, update and operator resume all lead to the same full reconcile:
the reconcilers are idempotent, so there is no difference between creating
children for the first time and checking them again.

Deletion needs no handler. Every child carries an owner reference to its
custom resource and is removed by the Kubernetes garbage collector.
"""

from __future__ import annotations

from typing import Any

import kopf

from chia_operator.constants import (
    API_GROUP,
    API_VERSION,
    KIND_CHIACA,
    KIND_CHIAFARMER,
    KIND_CHIASEEDER,
    KIND_CHIAWALLET,
    PLURAL_CHIACA,
    PLURAL_CHIAFARMER,
    PLURAL_CHIASEEDER,
    PLURAL_CHIAWALLET,
)
from chia_operator.errors import OperatorError, RequeueRequested


async def dispatch(kind: str, name: str, namespace: str, memo: kopf.Memo) -> None:
    """
    Run the reconciler for one resource and translate its result for kopf.

    A result asking for a requeue becomes a kopf.TemporaryError with that
    delay, so kopf calls the handler again later. Operator errors carry their
    own retry behavior.
    """
    reconciler = memo.reconcilers[kind]
    try:
        result = await reconciler.reconcile(namespace=namespace, name=name)
    except OperatorError as e:
        raise e.as_kopf_error() from e

    if result.requeue_after is not None:
        raise RequeueRequested(
            f"{kind} {namespace}/{name} is not ready yet",
            delay=result.requeue_after,
        ).as_kopf_error()


@kopf.on.create(PLURAL_CHIACA, group=API_GROUP, version=API_VERSION)
@kopf.on.update(PLURAL_CHIACA, group=API_GROUP, version=API_VERSION)
@kopf.on.resume(PLURAL_CHIACA, group=API_GROUP, version=API_VERSION)
async def reconcile_chiaca(
    name: str, namespace: str, memo: kopf.Memo, **kwargs: Any
) -> None:
    await dispatch(KIND_CHIACA, name, namespace, memo)


@kopf.on.create(PLURAL_CHIAFARMER, group=API_GROUP, version=API_VERSION)
@kopf.on.update(PLURAL_CHIAFARMER, group=API_GROUP, version=API_VERSION)
@kopf.on.resume(PLURAL_CHIAFARMER, group=API_GROUP, version=API_VERSION)
async def reconcile_chiafarmer(
    name: str, namespace: str, memo: kopf.Memo, **kwargs: Any
) -> None:
    await dispatch(KIND_CHIAFARMER, name, namespace, memo)


@kopf.on.create(PLURAL_CHIAWALLET, group=API_GROUP, version=API_VERSION)
@kopf.on.update(PLURAL_CHIAWALLET, group=API_GROUP, version=API_VERSION)
@kopf.on.resume(PLURAL_CHIAWALLET, group=API_GROUP, version=API_VERSION)
async def reconcile_chiawallet(
    name: str, namespace: str, memo: kopf.Memo, **kwargs: Any
) -> None:
    await dispatch(KIND_CHIAWALLET, name, namespace, memo)


@kopf.on.create(PLURAL_CHIASEEDER, group=API_GROUP, version=API_VERSION)
@kopf.on.update(PLURAL_CHIASEEDER, group=API_GROUP, version=API_VERSION)
@kopf.on.resume(PLURAL_CHIASEEDER, group=API_GROUP, version=API_VERSION)
async def reconcile_chiaseeder(
    name: str, namespace: str, memo: kopf.Memo, **kwargs: Any
) -> None:
    await dispatch(KIND_CHIASEEDER, name, namespace, memo)
