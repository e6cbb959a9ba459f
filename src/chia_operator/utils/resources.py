"""
Idempotent reconciliation of a single child object.

Every child kind the operator manages goes through the same
get / create / compare / replace cycle. What differs between kinds is which
fields are owned by the operator and therefore compared.

Owned spec fields must match exactly: the API server may add its defaults
(terminationMessagePath, nodePort, ...) but any other difference, a
key someone added or a key the resource no longer asks for, is drift.
Labels and annotations are shared with other controllers, so there only the
keys the operator wants, or wanted on its last write, are compared. The
latter are recorded in the MANAGED_METADATA_ANNOTATION of every child.
"""

import copy
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from kubernetes.utils import parse_quantity

from chia_operator.constants import MANAGED_METADATA_ANNOTATION
from chia_operator.errors import ConfigurationError, NotFoundError

FieldPath = tuple[str, ...]


class ReconcileOutcome(str, Enum):
    """Result of reconciling one child object."""

    CREATED = "Created"
    UPDATED = "Updated"
    UNCHANGED = "Unchanged"
    FAILED = "Failed"


@dataclass(frozen=True)
class ResourceKind:
    """
    A child kind and the fields the operator owns on it.

    Attributes:
        kind: Kubernetes kind, e.g. "Deployment"
        owned_fields: Paths compared between desired and live objects, and
            carried onto the live object when they differ
    """

    kind: str
    owned_fields: tuple[FieldPath, ...]


_LABELS: FieldPath = ("metadata", "labels")
_ANNOTATIONS: FieldPath = ("metadata", "annotations")

RESOURCE_KINDS: dict[str, ResourceKind] = {
    kind.kind: kind
    for kind in (
        ResourceKind("ServiceAccount", (_LABELS, _ANNOTATIONS)),
        ResourceKind("Role", (_LABELS, ("rules",))),
        ResourceKind("RoleBinding", (_LABELS, ("roleRef",), ("subjects",))),
        # A Job's pod template is immutable once created, only labels converge
        ResourceKind("Job", (_LABELS,)),
        ResourceKind(
            "Service",
            (
                _LABELS,
                _ANNOTATIONS,
                ("spec", "type"),
                ("spec", "ports"),
                ("spec", "selector"),
            ),
        ),
        ResourceKind(
            "Deployment",
            (
                _LABELS,
                _ANNOTATIONS,
                ("spec", "replicas"),
                ("spec", "selector"),
                ("spec", "template"),
            ),
        ),
    )
}


def get_resource_kind(kind: str) -> ResourceKind:
    try:
        return RESOURCE_KINDS[kind]
    except KeyError:
        raise ConfigurationError(f"Unsupported child kind: {kind}") from None


@dataclass
class ChildDescriptor:
    """
    One desired child object, as produced by a builder.

    Attributes:
        key: Identifier unique within one assembled set, used for ordering
        kind: Kubernetes kind of the child
        manifest: Full desired object in API server (camelCase) form
        depends_on: Keys of children that must be reconciled first
    """

    key: str
    kind: str
    manifest: dict[str, Any]
    depends_on: tuple[str, ...] = ()

    @property
    def name(self) -> str:
        return self.manifest["metadata"]["name"]

    @property
    def namespace(self) -> str:
        return self.manifest["metadata"]["namespace"]

    @property
    def owner_references(self) -> list[dict[str, Any]]:
        return self.manifest["metadata"].get("ownerReferences") or []


@dataclass
class ResourceResult:
    """Outcome of reconciling one child, plus the object as last seen."""

    descriptor: ChildDescriptor
    outcome: ReconcileOutcome
    live: dict[str, Any] | None = None
    drifted: list[FieldPath] = field(default_factory=list)

    @property
    def reason(self) -> str | None:
        if not self.drifted:
            return None
        return "drifted: " + ", ".join(".".join(path) for path in self.drifted)


class ObjectStore(Protocol):
    def get(self, kind: str, namespace: str, name: str) -> dict[str, Any]: ...

    def create(self, kind: str, manifest: dict[str, Any]) -> dict[str, Any]: ...

    def replace(self, kind: str, manifest: dict[str, Any]) -> dict[str, Any]: ...


_MISSING = object()

# Stands for whatever value the API server picked
ANY = object()

# Fields the API server fills in inside owned sub-trees when a manifest leaves
# them out, by field name, with the value it fills in
SERVER_DEFAULTS: dict[str, Any] = {
    "protocol": "TCP",
    "targetPort": ANY,
    "nodePort": ANY,
    "imagePullPolicy": ANY,
    "terminationMessagePath": "/dev/termination-log",
    "terminationMessagePolicy": "File",
    "restartPolicy": "Always",
    "dnsPolicy": "ClusterFirst",
    "schedulerName": "default-scheduler",
    "terminationGracePeriodSeconds": 30,
    "defaultMode": 420,
    "enableServiceLinks": True,
}

METADATA_FIELDS = (_LABELS, _ANNOTATIONS)


def _lookup(obj: dict[str, Any], path: FieldPath) -> Any:
    current: Any = obj
    for part in path:
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _assign(obj: dict[str, Any], path: FieldPath, value: Any) -> None:
    target = obj
    for part in path[:-1]:
        if not isinstance(target.get(part), dict):
            target[part] = {}
        target = target[part]
    target[path[-1]] = value


def _discard(obj: dict[str, Any], path: FieldPath) -> None:
    parent = _lookup(obj, path[:-1])
    if isinstance(parent, dict):
        parent.pop(path[-1], None)


def _is_empty(value: Any) -> bool:
    return value is None or value is _MISSING or value == {} or value == []


def is_server_default(key: str, value: Any) -> bool:
    """Whether a live-only ``key`` holds what the API server would have filled in."""
    if _is_empty(value):
        return True
    default = SERVER_DEFAULTS.get(key, _MISSING)
    if default is ANY:
        return True
    return default is not _MISSING and default == value


def _is_quantity(path: FieldPath) -> bool:
    return (
        len(path) >= 3
        and path[-3] == "resources"
        and path[-2] in ("requests", "limits")
    )


def same_quantity(desired: Any, live: Any) -> bool:
    """Compare resource quantities by value, e.g. "0.5" and "500m"."""
    try:
        return parse_quantity(desired) == parse_quantity(live)
    except (TypeError, ValueError):
        return desired == live


def is_subset(desired: Any, live: Any) -> bool:
    """
    Check that everything set in ``desired`` is present and equal in ``live``.

    Dicts may carry extra keys on the live side. Lists must match in length
    and elementwise. An empty desired collection matches an absent live one,
    since the API server drops empty maps and lists.
    """
    if isinstance(desired, dict):
        if live is None or live is _MISSING:
            return not desired
        if not isinstance(live, dict):
            return False
        return all(
            is_subset(value, live.get(key, _MISSING))
            for key, value in desired.items()
        )

    if isinstance(desired, list):
        if live is None or live is _MISSING:
            return not desired
        if not isinstance(live, list) or len(live) != len(desired):
            return False
        return all(is_subset(d, lv) for d, lv in zip(desired, live, strict=True))

    if desired is None:
        return live is None or live is _MISSING

    return desired == live


def matches(desired: Any, live: Any, path: FieldPath = ()) -> bool:
    """
    Check that ``live`` holds exactly ``desired``, up to server defaults.

    A key only the live side has must be a server default (SERVER_DEFAULTS or
    an empty value); anything else is drift, whether it was added by someone
    else or removed from the desired object. Lists match elementwise,
    quantities under ``resources.requests``/``limits`` by value, and empty
    collections match absent ones.

    Args:
        desired: Desired value of an owned field
        live: Live value of the same field
        path: Location of the field, used to recognize resource quantities
    """
    if _is_empty(desired) and _is_empty(live):
        return True

    if isinstance(desired, dict):
        if not isinstance(live, dict):
            return False
        for key in desired.keys() | live.keys():
            if key not in live:
                if not _is_empty(desired[key]):
                    return False
            elif key not in desired:
                if not is_server_default(key, live[key]):
                    return False
            elif not matches(desired[key], live[key], (*path, key)):
                return False
        return True

    if isinstance(desired, list):
        if not isinstance(live, list) or len(live) != len(desired):
            return False
        return all(
            matches(d, lv, path) for d, lv in zip(desired, live, strict=True)
        )

    if _is_quantity(path) and not _is_empty(live):
        return same_quantity(desired, live)

    return desired == live


def _with_server_defaults(desired: Any, live: Any) -> Any:
    """``desired`` plus the server-defaulted keys the live value carries."""
    if isinstance(desired, dict) and isinstance(live, dict):
        merged = {
            key: _with_server_defaults(value, live.get(key, _MISSING))
            for key, value in desired.items()
        }
        merged.update(
            (key, copy.deepcopy(value))
            for key, value in live.items()
            if key not in desired and is_server_default(key, value)
        )
        return merged
    if (
        isinstance(desired, list)
        and isinstance(live, list)
        and len(desired) == len(live)
    ):
        return [
            _with_server_defaults(d, lv) for d, lv in zip(desired, live, strict=True)
        ]
    return copy.deepcopy(desired)


def _annotations(obj: dict[str, Any]) -> dict[str, Any]:
    annotations = _lookup(obj, _ANNOTATIONS)
    return annotations if isinstance(annotations, dict) else {}


def managed_metadata(
    kind: ResourceKind, manifest: dict[str, Any]
) -> dict[str, list[str]]:
    """Label and annotation keys ``manifest`` sets, for the metadata ``kind`` owns."""
    record = {}
    for path in kind.owned_fields:
        if path not in METADATA_FIELDS:
            continue
        values = _lookup(manifest, path)
        keys = values if isinstance(values, dict) else {}
        record[path[-1]] = sorted(k for k in keys if k != MANAGED_METADATA_ANNOTATION)
    return record


def recorded_metadata(live: dict[str, Any]) -> dict[str, list[str]] | None:
    """The managed metadata record of a live object, None if it has none."""
    raw = _annotations(live).get(MANAGED_METADATA_ANNOTATION)
    if not isinstance(raw, str):
        return None
    try:
        record = json.loads(raw)
    except ValueError:
        return None
    return record if isinstance(record, dict) else None


def with_managed_metadata(
    kind: ResourceKind, manifest: dict[str, Any]
) -> dict[str, Any]:
    """Copy of ``manifest`` annotated with the label and annotation keys it sets."""
    desired = copy.deepcopy(manifest)
    annotations = desired["metadata"].setdefault("annotations", {})
    annotations[MANAGED_METADATA_ANNOTATION] = json.dumps(
        managed_metadata(kind, manifest), sort_keys=True, separators=(",", ":")
    )
    return desired


def _without_record(values: Any) -> dict[str, Any]:
    if not isinstance(values, dict):
        return {}
    return {k: v for k, v in values.items() if k != MANAGED_METADATA_ANNOTATION}


def stale_keys(
    path: FieldPath, wanted: dict[str, Any], current: Any, record: dict | None
) -> list[str]:
    """Keys the operator set on its last write, no longer wants, and are still live."""
    if not record or not isinstance(current, dict):
        return []
    previous = record.get(path[-1])
    if not isinstance(previous, list):
        return []
    return [key for key in previous if key not in wanted and key in current]


def drifted_fields(
    kind: ResourceKind, desired: dict[str, Any], live: dict[str, Any]
) -> list[FieldPath]:
    """
    List the owned fields whose live value differs from the desired one.

    Labels and annotations may carry keys set by others; only desired keys
    and keys this operator set before and has since dropped count. Every
    other owned field must match exactly, up to server defaults.
    """
    record = recorded_metadata(live)
    drifted = []
    for path in kind.owned_fields:
        wanted = _lookup(desired, path)
        current = _lookup(live, path)
        if path in METADATA_FIELDS:
            wanted = _without_record(wanted)
            in_sync = is_subset(wanted, current) and not stale_keys(
                path, wanted, current, record
            )
        else:
            in_sync = matches(wanted, current, path)
        if not in_sync:
            drifted.append(path)

    wanted_record = _annotations(desired).get(MANAGED_METADATA_ANNOTATION)
    if wanted_record is not None and json.loads(wanted_record) != record:
        drifted.append((*_ANNOTATIONS, MANAGED_METADATA_ANNOTATION))
    return drifted


def apply_owned_fields(
    kind: ResourceKind, desired: dict[str, Any], live: dict[str, Any]
) -> dict[str, Any]:
    """
    Carry the desired owned fields onto a copy of the live object.

    Owned spec fields are replaced as a whole, keeping only the server
    defaulted keys of the live value. Labels and annotations keep the keys
    others set and lose the ones this operator dropped. Fields outside the
    owned set (resourceVersion, clusterIP, status) are left as they are.
    """
    record = recorded_metadata(live)
    updated = copy.deepcopy(live)
    for path in kind.owned_fields:
        wanted = _lookup(desired, path)
        current = _lookup(live, path)
        if path in METADATA_FIELDS:
            wanted = wanted if isinstance(wanted, dict) else {}
            if current is _MISSING and not wanted:
                continue
            value = dict(current) if isinstance(current, dict) else {}
            for key in stale_keys(path, wanted, current, record):
                del value[key]
            value.update(copy.deepcopy(wanted))
            _assign(updated, path, value)
        elif wanted is _MISSING:
            _discard(updated, path)
        else:
            _assign(updated, path, _with_server_defaults(wanted, current))

    wanted_record = _annotations(desired).get(MANAGED_METADATA_ANNOTATION)
    if wanted_record is not None:
        _assign(updated, (*_ANNOTATIONS, MANAGED_METADATA_ANNOTATION), wanted_record)
    return updated


def reconcile_resource(
    store: ObjectStore, descriptor: ChildDescriptor
) -> ResourceResult:
    """
    Make one child object match its descriptor.

    Creates the object when absent, replaces it when an owned field drifted and
    performs no write at all when it already matches. Errors from the store
    propagate unchanged. A conflict on replace means the object moved under us
    and is left for the next reconcile.

    Raises:
        ConfigurationError: If the descriptor carries no owner reference
    """
    kind = get_resource_kind(descriptor.kind)

    if not descriptor.owner_references:
        raise ConfigurationError(
            f"{descriptor.kind} {descriptor.namespace}/{descriptor.name} "
            "has no owner reference"
        )

    desired = with_managed_metadata(kind, descriptor.manifest)
    try:
        live = store.get(descriptor.kind, descriptor.namespace, descriptor.name)
    except NotFoundError:
        created = store.create(descriptor.kind, desired)
        return ResourceResult(descriptor, ReconcileOutcome.CREATED, live=created)

    drifted = drifted_fields(kind, desired, live)
    if not drifted:
        return ResourceResult(descriptor, ReconcileOutcome.UNCHANGED, live=live)

    updated = store.replace(descriptor.kind, apply_owned_fields(kind, desired, live))
    return ResourceResult(
        descriptor, ReconcileOutcome.UPDATED, live=updated, drifted=drifted
    )
