"""Ordering of child objects by their declared dependencies."""

from collections.abc import Sequence
from graphlib import CycleError, TopologicalSorter

from chia_operator.errors import ConfigurationError

from .resources import ChildDescriptor


def reconcile_order(children: Sequence[ChildDescriptor]) -> list[ChildDescriptor]:
    """
    Order children so every child comes after the children it depends on.

    Children with no ordering constraint between them keep the order they
    were assembled in.

    Raises:
        ConfigurationError: On duplicate keys, unknown dependencies or cycles
    """
    by_key: dict[str, ChildDescriptor] = {}
    for child in children:
        if child.key in by_key:
            raise ConfigurationError(f"Duplicate child key: {child.key}")
        by_key[child.key] = child

    sorter: TopologicalSorter[str] = TopologicalSorter()
    for child in children:
        unknown = [dep for dep in child.depends_on if dep not in by_key]
        if unknown:
            raise ConfigurationError(
                f"Child {child.key} depends on unknown children: {', '.join(unknown)}"
            )
        sorter.add(child.key, *child.depends_on)

    try:
        order = list(sorter.static_order())
    except CycleError as e:
        raise ConfigurationError(f"Dependency cycle between children: {e.args[1]}") from e

    return [by_key[key] for key in order]
