"""Shared pytest fixtures: an in-memory stand-in for the cluster."""

import copy
import itertools
from typing import Any

import pytest

from chia_operator.errors import ConflictError, NotFoundError


class FakeObjectStore:
    """
    In-memory object store mimicking the parts of API server behavior the
    reconcilers depend on.

    Objects get a uid and a resourceVersion on every write, replace requires
    the current resourceVersion, and a few fields are defaulted the way the
    server does (clusterIP, nodePort, pod and container defaults, empty
    annotations dropped).
    Every call is recorded in ``calls`` as ``(verb, kind, namespace, name)``.
    """

    def __init__(self):
        self.objects: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.custom_resources: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.calls: list[tuple[str, str, str, str]] = []
        self.failures: dict[tuple[str, str], Exception] = {}
        self._versions = itertools.count(1000)

    # Test helpers

    def add(self, kind: str, obj: dict[str, Any]) -> dict[str, Any]:
        meta = obj["metadata"]
        stored = copy.deepcopy(obj)
        stored["metadata"].setdefault("resourceVersion", str(next(self._versions)))
        self.objects[(kind, meta["namespace"], meta["name"])] = stored
        return stored

    def add_custom_resource(self, obj: dict[str, Any]) -> None:
        meta = obj["metadata"]
        self.custom_resources[(obj["kind"], meta["namespace"], meta["name"])] = (
            copy.deepcopy(obj)
        )

    def delete(self, kind: str, namespace: str, name: str) -> None:
        del self.objects[(kind, namespace, name)]

    def fail(self, verb: str, kind: str, error: Exception) -> None:
        self.failures[(verb, kind)] = error

    def writes(self) -> list[tuple[str, str, str, str]]:
        return [c for c in self.calls if c[0] in ("create", "replace", "patch_status")]

    def kinds(self, verb: str) -> list[str]:
        return [c[1] for c in self.calls if c[0] == verb]

    def _record(self, verb: str, kind: str, namespace: str, name: str) -> None:
        self.calls.append((verb, kind, namespace, name))
        error = self.failures.get((verb, kind))
        if error is not None:
            raise error

    def _apply_defaults(self, kind: str, obj: dict[str, Any]) -> None:
        meta = obj["metadata"]
        if not meta.get("annotations"):
            meta.pop("annotations", None)
        if kind == "Service":
            obj["spec"].setdefault("clusterIP", "10.96.0.42")
            obj["spec"].setdefault("sessionAffinity", "None")
            if obj["spec"].get("type") in ("NodePort", "LoadBalancer"):
                for index, port in enumerate(obj["spec"].get("ports") or []):
                    port.setdefault("nodePort", 30000 + index)
        if kind == "Deployment":
            obj["spec"].setdefault(
                "strategy", {"type": "RollingUpdate", "rollingUpdate": {}}
            )
            obj["spec"].setdefault("progressDeadlineSeconds", 600)
            pod = obj["spec"]["template"]["spec"]
            pod.setdefault("restartPolicy", "Always")
            pod.setdefault("dnsPolicy", "ClusterFirst")
            pod.setdefault("schedulerName", "default-scheduler")
            pod.setdefault("terminationGracePeriodSeconds", 30)
            pod.setdefault("securityContext", {})
            for container in pod["containers"]:
                container.setdefault("terminationMessagePath", "/dev/termination-log")
                container.setdefault("terminationMessagePolicy", "File")
            for volume in pod.get("volumes") or []:
                if "secret" in volume:
                    volume["secret"].setdefault("defaultMode", 420)

    # ObjectStore interface

    def get(self, kind: str, namespace: str, name: str) -> dict[str, Any]:
        self._record("get", kind, namespace, name)
        try:
            return copy.deepcopy(self.objects[(kind, namespace, name)])
        except KeyError:
            raise NotFoundError(kind, namespace, name) from None

    def create(self, kind: str, manifest: dict[str, Any]) -> dict[str, Any]:
        namespace = manifest["metadata"]["namespace"]
        name = manifest["metadata"]["name"]
        self._record("create", kind, namespace, name)
        if (kind, namespace, name) in self.objects:
            raise ConflictError(kind, namespace, name, message="AlreadyExists")

        obj = copy.deepcopy(manifest)
        obj["metadata"]["uid"] = f"uid-{kind.lower()}-{name}"
        obj["metadata"]["resourceVersion"] = str(next(self._versions))
        self._apply_defaults(kind, obj)
        self.objects[(kind, namespace, name)] = obj
        return copy.deepcopy(obj)

    def replace(self, kind: str, manifest: dict[str, Any]) -> dict[str, Any]:
        namespace = manifest["metadata"]["namespace"]
        name = manifest["metadata"]["name"]
        self._record("replace", kind, namespace, name)
        current = self.objects.get((kind, namespace, name))
        if current is None:
            raise NotFoundError(kind, namespace, name)
        if manifest["metadata"].get("resourceVersion") != current["metadata"].get(
            "resourceVersion"
        ):
            raise ConflictError(kind, namespace, name, message="stale resourceVersion")

        obj = copy.deepcopy(manifest)
        obj["metadata"]["resourceVersion"] = str(next(self._versions))
        self._apply_defaults(kind, obj)
        self.objects[(kind, namespace, name)] = obj
        return copy.deepcopy(obj)

    def get_custom_resource(
        self, kind: str, plural: str, namespace: str, name: str
    ) -> dict[str, Any]:
        self._record("get", kind, namespace, name)
        try:
            return copy.deepcopy(self.custom_resources[(kind, namespace, name)])
        except KeyError:
            raise NotFoundError(kind, namespace, name) from None

    def patch_custom_resource_status(
        self,
        kind: str,
        plural: str,
        namespace: str,
        name: str,
        status: dict[str, Any],
    ) -> dict[str, Any]:
        self._record("patch_status", kind, namespace, name)
        resource = self.custom_resources[(kind, namespace, name)]
        resource["status"] = copy.deepcopy(status)
        return copy.deepcopy(resource)

    def status_of(self, kind: str, namespace: str, name: str) -> dict[str, Any]:
        return self.custom_resources[(kind, namespace, name)].get("status") or {}


@pytest.fixture
def store():
    """A fresh in-memory cluster per test."""
    return FakeObjectStore()


@pytest.fixture
def no_sleep():
    """Sleep replacement that records requested delays without waiting."""
    delays: list[float] = []

    async def sleep(seconds: float) -> None:
        delays.append(seconds)

    sleep.delays = delays
    return sleep
