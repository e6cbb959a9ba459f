"""
Building blocks shared by every desired-state builder.

All functions here are pure: they turn a parsed custom resource into
kubernetes client models without touching the cluster.
"""

from typing import Any

from kubernetes import client

from chia_operator.constants import (
    CHIA_CA_PATH,
    CHIA_CA_VOLUME,
    CHIA_EXPORTER_PORT,
    CHIA_KEY_PATH,
    CHIA_KEY_VOLUME,
    CHIA_ROOT_PATH,
    CHIA_ROOT_VOLUME,
    DAEMON_PORT,
    LABEL_COMPONENT,
    LABEL_INSTANCE,
    LABEL_MANAGED_BY,
    LABEL_NAME,
    LABEL_PART_OF,
    METRICS_SERVICE_SUFFIX,
    OPERATOR_NAME,
    PART_OF,
)
from chia_operator.models.common import (
    AdditionalMetadata,
    ChiaResource,
    CommonChiaConfig,
    CommonSpec,
    SecretKeyReference,
)
from chia_operator.utils.kubernetes import build_owner_reference, to_manifest
from chia_operator.utils.resources import ChildDescriptor

# Descriptor keys used by the chia component builders
SERVICE_KEY = "service"
METRICS_SERVICE_KEY = "metrics-service"
DEPLOYMENT_KEY = "deployment"


def selector_labels(resource: ChiaResource) -> dict[str, str]:
    """Labels identifying the pods of one resource. Never user-overridable."""
    return {
        LABEL_NAME: resource.kind.lower(),
        LABEL_INSTANCE: resource.name,
    }


def common_labels(
    resource: ChiaResource,
    component: str,
    additional: AdditionalMetadata | None = None,
) -> dict[str, str]:
    """Recommended labels for a child object, with user labels applied on top."""
    labels = {
        **selector_labels(resource),
        LABEL_MANAGED_BY: OPERATOR_NAME,
        LABEL_PART_OF: PART_OF,
        LABEL_COMPONENT: component,
    }
    if additional:
        labels.update(additional.labels)
    return labels


def object_meta(
    resource: ChiaResource,
    name: str,
    component: str,
    additional: AdditionalMetadata | None = None,
    extra_labels: dict[str, str] | None = None,
) -> client.V1ObjectMeta:
    labels = common_labels(resource, component, additional)
    if extra_labels:
        labels.update(extra_labels)

    return client.V1ObjectMeta(
        name=name,
        namespace=resource.namespace,
        labels=labels,
        annotations=dict(additional.annotations) if additional else {},
        owner_references=[
            build_owner_reference(
                owner_kind=resource.kind,
                owner_name=resource.name,
                owner_uid=resource.metadata.uid,
                api_version=resource.api_version,
            )
        ],
    )


def describe(
    key: str, obj: Any, depends_on: tuple[str, ...] = ()
) -> ChildDescriptor:
    """Wrap a kubernetes client model as a child descriptor."""
    manifest = to_manifest(obj)
    return ChildDescriptor(
        key=key, kind=manifest["kind"], manifest=manifest, depends_on=depends_on
    )


def chia_env(
    config: CommonChiaConfig,
    service: str,
    keys: str | None = None,
    full_node_peer: str | None = None,
) -> list[client.V1EnvVar]:
    """
    Environment for a chia container.

    Args:
        config: Chia configuration from the resource spec
        service: Which chia services the container runs, e.g. "farmer-only"
        keys: Path of the mnemonic file, or "none" to run without keys
        full_node_peer: Full node the service connects to, host:port
    """
    env = [
        client.V1EnvVar(name="service", value=service),
        client.V1EnvVar(name="CHIA_ROOT", value=CHIA_ROOT_PATH),
        client.V1EnvVar(name="ca", value=CHIA_CA_PATH),
    ]
    if keys:
        env.append(client.V1EnvVar(name="keys", value=keys))
    if config.testnet is not None:
        env.append(client.V1EnvVar(name="testnet", value=str(config.testnet).lower()))
    if config.timezone:
        env.append(client.V1EnvVar(name="TZ", value=config.timezone))
    if config.log_level:
        env.append(client.V1EnvVar(name="log_level", value=config.log_level))
    if full_node_peer:
        env.append(client.V1EnvVar(name="full_node_peer", value=full_node_peer))
    return env


def key_path(secret_key: SecretKeyReference) -> str:
    return f"{CHIA_KEY_PATH}/{secret_key.key}"


def chia_volumes(
    config: CommonChiaConfig, secret_key: SecretKeyReference | None = None
) -> tuple[list[client.V1Volume], list[client.V1VolumeMount]]:
    """Volumes and matching mounts for the CA secret, key secret and chia root."""
    volumes = [
        client.V1Volume(
            name=CHIA_CA_VOLUME,
            secret=client.V1SecretVolumeSource(secret_name=config.ca_secret_name),
        ),
    ]
    mounts = [client.V1VolumeMount(name=CHIA_CA_VOLUME, mount_path=CHIA_CA_PATH)]

    if secret_key:
        volumes.append(
            client.V1Volume(
                name=CHIA_KEY_VOLUME,
                secret=client.V1SecretVolumeSource(secret_name=secret_key.name),
            )
        )
        mounts.append(client.V1VolumeMount(name=CHIA_KEY_VOLUME, mount_path=CHIA_KEY_PATH))

    volumes.append(
        client.V1Volume(
            name=CHIA_ROOT_VOLUME, empty_dir=client.V1EmptyDirVolumeSource()
        )
    )
    mounts.append(client.V1VolumeMount(name=CHIA_ROOT_VOLUME, mount_path=CHIA_ROOT_PATH))
    return volumes, mounts


def _port(name: str, port: int, protocol: str = "TCP") -> tuple[str, int, str]:
    return name, port, protocol


def daemon_port() -> tuple[str, int, str]:
    return _port("daemon", DAEMON_PORT)


def container_ports(ports: list[tuple[str, int, str]]) -> list[client.V1ContainerPort]:
    return [
        client.V1ContainerPort(name=name, container_port=port, protocol=protocol)
        for name, port, protocol in ports
    ]


def service_ports(ports: list[tuple[str, int, str]]) -> list[client.V1ServicePort]:
    return [
        client.V1ServicePort(name=name, port=port, target_port=port, protocol=protocol)
        for name, port, protocol in ports
    ]


def chia_container(
    name: str,
    config: CommonChiaConfig,
    env: list[client.V1EnvVar],
    ports: list[tuple[str, int, str]],
    mounts: list[client.V1VolumeMount],
) -> client.V1Container:
    resources = None
    if config.resources and (config.resources.requests or config.resources.limits):
        resources = client.V1ResourceRequirements(
            requests=config.resources.requests or None,
            limits=config.resources.limits or None,
        )

    return client.V1Container(
        name=name,
        image=config.image,
        image_pull_policy=config.image_pull_policy,
        env=env,
        ports=container_ports(ports),
        volume_mounts=mounts,
        resources=resources,
    )


def exporter_container(spec: CommonSpec) -> client.V1Container:
    """chia-exporter sidecar reading the shared chia root."""
    return client.V1Container(
        name="chia-exporter",
        image=spec.chia_exporter.image,
        image_pull_policy="IfNotPresent",
        env=[client.V1EnvVar(name="CHIA_ROOT", value=CHIA_ROOT_PATH)],
        ports=container_ports([_port("metrics", CHIA_EXPORTER_PORT)]),
        volume_mounts=[
            client.V1VolumeMount(name=CHIA_ROOT_VOLUME, mount_path=CHIA_ROOT_PATH)
        ],
    )


def chia_service(
    resource: ChiaResource,
    spec: CommonSpec,
    component: str,
    ports: list[tuple[str, int, str]],
) -> client.V1Service:
    """The main Service exposing a chia component."""
    return client.V1Service(
        api_version="v1",
        kind="Service",
        metadata=object_meta(
            resource, resource.name, component, spec.additional_metadata
        ),
        spec=client.V1ServiceSpec(
            type=spec.service_type,
            selector=selector_labels(resource),
            ports=service_ports(ports),
        ),
    )


def metrics_service(resource: ChiaResource, spec: CommonSpec) -> client.V1Service:
    """ClusterIP Service for the chia-exporter sidecar."""
    return client.V1Service(
        api_version="v1",
        kind="Service",
        metadata=object_meta(
            resource,
            f"{resource.name}{METRICS_SERVICE_SUFFIX}",
            "metrics",
            spec.additional_metadata,
            extra_labels=spec.chia_exporter.service_labels,
        ),
        spec=client.V1ServiceSpec(
            type="ClusterIP",
            selector=selector_labels(resource),
            ports=service_ports([_port("metrics", CHIA_EXPORTER_PORT)]),
        ),
    )


def chia_deployment(
    resource: ChiaResource,
    spec: CommonSpec,
    component: str,
    container: client.V1Container,
    volumes: list[client.V1Volume],
) -> client.V1Deployment:
    """Single-replica Deployment running a chia component, plus the exporter if enabled."""
    containers = [container]
    if spec.chia_exporter.enabled:
        containers.append(exporter_container(spec))

    pod_labels = {
        **common_labels(resource, component, spec.additional_metadata),
        **selector_labels(resource),
    }

    return client.V1Deployment(
        api_version="apps/v1",
        kind="Deployment",
        metadata=object_meta(
            resource, resource.name, component, spec.additional_metadata
        ),
        spec=client.V1DeploymentSpec(
            replicas=1,
            selector=client.V1LabelSelector(match_labels=selector_labels(resource)),
            template=client.V1PodTemplateSpec(
                metadata=client.V1ObjectMeta(
                    labels=pod_labels,
                    annotations=dict(spec.additional_metadata.annotations) or None,
                ),
                spec=client.V1PodSpec(
                    containers=containers,
                    volumes=volumes,
                    image_pull_secrets=[
                        client.V1LocalObjectReference(name=ref.name)
                        for ref in spec.image_pull_secrets
                    ]
                    or None,
                    node_selector=spec.node_selector or None,
                    security_context=spec.pod_security_context,
                ),
            ),
        ),
    )


def component_children(
    resource: ChiaResource,
    spec: CommonSpec,
    component: str,
    ports: list[tuple[str, int, str]],
    container: client.V1Container,
    volumes: list[client.V1Volume],
) -> list[ChildDescriptor]:
    """
    Children of a chia component: its Service, the optional metrics Service
    and the Deployment, which depends on both.
    """
    children = [describe(SERVICE_KEY, chia_service(resource, spec, component, ports))]
    if spec.chia_exporter.enabled:
        children.append(describe(METRICS_SERVICE_KEY, metrics_service(resource, spec)))

    deployment = chia_deployment(resource, spec, component, container, volumes)
    children.append(
        describe(
            DEPLOYMENT_KEY,
            deployment,
            depends_on=tuple(child.key for child in children),
        )
    )
    return children
