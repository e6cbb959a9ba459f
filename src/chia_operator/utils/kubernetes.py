"""
Kubernetes utilities for the Chia operator.

This module provides helper functions for interacting with the Kubernetes API.

Key functionality:
- Kubernetes client management and configuration
- A small get/create/replace object store over the typed client APIs
- Translation of API exceptions into the operator error hierarchy
- Owner references for garbage collection
"""

import logging
from typing import Any

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from chia_operator.constants import API_GROUP, API_VERSION
from chia_operator.errors import (
    ConfigurationError,
    ConflictError,
    KubernetesAPIError,
    NotFoundError,
)

logger = logging.getLogger(__name__)

# Child kinds the operator manages, mapped to the typed API class serving
# them and the suffix of that API's *_namespaced_<suffix> methods.
KIND_APIS: dict[str, tuple[type, str]] = {
    "ServiceAccount": (client.CoreV1Api, "service_account"),
    "Secret": (client.CoreV1Api, "secret"),
    "Service": (client.CoreV1Api, "service"),
    "Role": (client.RbacAuthorizationV1Api, "role"),
    "RoleBinding": (client.RbacAuthorizationV1Api, "role_binding"),
    "Job": (client.BatchV1Api, "job"),
    "Deployment": (client.AppsV1Api, "deployment"),
}

_STATUS_REASONS = {401: "Unauthorized", 403: "Forbidden", 422: "Invalid"}

_serializer = client.ApiClient()


def get_kubernetes_client() -> client.ApiClient:
    """
    Get configured Kubernetes API client.

    Tries in-cluster configuration first and falls back to the local
    kubeconfig for development.

    Returns:
        Configured Kubernetes API client
    """
    try:
        config.load_incluster_config()
        logger.debug("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        try:
            config.load_kube_config()
            logger.debug("Loaded kubeconfig from local environment")
        except config.ConfigException as e:
            logger.error(f"Failed to load Kubernetes configuration: {e}")
            raise

    return client.ApiClient()


def to_manifest(obj: Any) -> dict[str, Any]:
    """Serialize a kubernetes client model into a plain camelCase dict."""
    return _serializer.sanitize_for_serialization(obj)


def translate_api_exception(
    error: ApiException, kind: str, namespace: str, name: str
) -> KubernetesAPIError:
    """
    Map an ApiException onto the operator error hierarchy.

    404 becomes NotFoundError and 409 becomes ConflictError. Everything else
    is a KubernetesAPIError, retryable unless the reason says the request
    can never succeed as sent.
    """
    if error.status == 404:
        return NotFoundError(kind, namespace, name)
    if error.status == 409:
        return ConflictError(kind, namespace, name, message=str(error.reason or ""))

    reason = _STATUS_REASONS.get(error.status, error.reason)
    return KubernetesAPIError(
        message=f"Failed to access {kind} {namespace}/{name}",
        reason=reason,
        status=error.status,
    )


def build_owner_reference(
    owner_kind: str,
    owner_name: str,
    owner_uid: str,
    api_version: str = f"{API_GROUP}/{API_VERSION}",
) -> client.V1OwnerReference:
    """
    Build the controller owner reference placed on every child object.

    Args:
        owner_kind: Kind of the owner resource
        owner_name: Name of the owner resource
        owner_uid: UID of the owner resource
        api_version: API version of the owner resource
    """
    return client.V1OwnerReference(
        api_version=api_version,
        kind=owner_kind,
        name=owner_name,
        uid=owner_uid,
        controller=True,
        block_owner_deletion=True,
    )


class KubernetesObjectStore:
    """
    Read and write access to the objects the operator manages.

    Objects go in and come out as plain dicts in the API server's camelCase
    form, so the reconciler can compare desired and live state without caring
    which typed model a kind maps to.
    """

    def __init__(self, api_client: client.ApiClient | None = None):
        self._api_client = api_client
        self._apis: dict[type, Any] = {}

    @property
    def api_client(self) -> client.ApiClient:
        if self._api_client is None:
            self._api_client = get_kubernetes_client()
        return self._api_client

    def _api(self, kind: str) -> tuple[Any, str]:
        try:
            api_cls, suffix = KIND_APIS[kind]
        except KeyError:
            raise ConfigurationError(f"Unsupported child kind: {kind}") from None

        if api_cls not in self._apis:
            self._apis[api_cls] = api_cls(self.api_client)
        return self._apis[api_cls], suffix

    def get(self, kind: str, namespace: str, name: str) -> dict[str, Any]:
        """Read one object. Raises NotFoundError when it does not exist."""
        api, suffix = self._api(kind)
        try:
            obj = getattr(api, f"read_namespaced_{suffix}")(
                name=name, namespace=namespace
            )
        except ApiException as e:
            raise translate_api_exception(e, kind, namespace, name) from e
        return self.api_client.sanitize_for_serialization(obj)

    def create(self, kind: str, manifest: dict[str, Any]) -> dict[str, Any]:
        api, suffix = self._api(kind)
        namespace = manifest["metadata"]["namespace"]
        name = manifest["metadata"]["name"]
        try:
            obj = getattr(api, f"create_namespaced_{suffix}")(
                namespace=namespace, body=manifest
            )
        except ApiException as e:
            raise translate_api_exception(e, kind, namespace, name) from e
        logger.debug(f"Created {kind} {namespace}/{name}")
        return self.api_client.sanitize_for_serialization(obj)

    def replace(self, kind: str, manifest: dict[str, Any]) -> dict[str, Any]:
        """
        Replace an object with the given full manifest.

        The manifest must carry the resourceVersion it was read at; a stale
        version surfaces as ConflictError.
        """
        api, suffix = self._api(kind)
        namespace = manifest["metadata"]["namespace"]
        name = manifest["metadata"]["name"]
        try:
            obj = getattr(api, f"replace_namespaced_{suffix}")(
                name=name, namespace=namespace, body=manifest
            )
        except ApiException as e:
            raise translate_api_exception(e, kind, namespace, name) from e
        logger.debug(f"Replaced {kind} {namespace}/{name}")
        return self.api_client.sanitize_for_serialization(obj)

    def get_custom_resource(
        self, kind: str, plural: str, namespace: str, name: str
    ) -> dict[str, Any]:
        custom_api = client.CustomObjectsApi(self.api_client)
        try:
            return custom_api.get_namespaced_custom_object(
                group=API_GROUP,
                version=API_VERSION,
                namespace=namespace,
                plural=plural,
                name=name,
            )
        except ApiException as e:
            raise translate_api_exception(e, kind, namespace, name) from e

    def patch_custom_resource_status(
        self,
        kind: str,
        plural: str,
        namespace: str,
        name: str,
        status: dict[str, Any],
    ) -> dict[str, Any]:
        """Write the status subresource of a custom resource."""
        custom_api = client.CustomObjectsApi(self.api_client)
        try:
            return custom_api.patch_namespaced_custom_object_status(
                group=API_GROUP,
                version=API_VERSION,
                namespace=namespace,
                plural=plural,
                name=name,
                body={"status": status},
            )
        except ApiException as e:
            raise translate_api_exception(e, kind, namespace, name) from e
