"""
Pydantic models shared by every Chia custom resource.

These models mirror the fields the CRDs expose. Schema validation happens
upstream in the API server; the models exist to give the operator typed,
defaulted access to the resource's spec field.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from chia_operator.constants import (
    API_GROUP_VERSION,
    DEFAULT_CHIA_EXPORTER_IMAGE,
    DEFAULT_CHIA_IMAGE,
)


class ObjectMeta(BaseModel):
    """The subset of Kubernetes object metadata the operator relies on."""

    model_config = {"populate_by_name": True}

    name: str = Field(..., description="Name of the resource")
    namespace: str = Field("default", description="Namespace of the resource")
    uid: str = Field("", description="UID assigned by the API server")
    generation: int = Field(0, description="Spec generation")
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)


class AdditionalMetadata(BaseModel):
    """Labels and annotations copied onto every child object."""

    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)


class LocalObjectReference(BaseModel):
    """Reference to an object by name in the same namespace."""

    name: str


class SecretKeyReference(BaseModel):
    """
    Reference to a key within a secret.

    The secret must live in the same namespace as the resource referencing it.
    """

    name: str = Field(..., description="Name of the secret")
    key: str = Field(..., description="Key within the secret")


class ResourceRequirements(BaseModel):
    """Compute resource requests and limits for a container."""

    requests: dict[str, str] = Field(default_factory=dict)
    limits: dict[str, str] = Field(default_factory=dict)


class ChiaExporterConfig(BaseModel):
    """Configuration for the chia-exporter metrics sidecar."""

    model_config = {"populate_by_name": True}

    enabled: bool = Field(False, description="Run the chia-exporter sidecar")
    image: str = Field(DEFAULT_CHIA_EXPORTER_IMAGE, description="Exporter image")
    service_labels: dict[str, str] = Field(
        default_factory=dict,
        alias="serviceLabels",
        description="Extra labels for the exporter's metrics Service",
    )


class CommonChiaConfig(BaseModel):
    """Configuration shared by every chia component container."""

    model_config = {"populate_by_name": True}

    image: str = Field(DEFAULT_CHIA_IMAGE, description="Chia container image")
    image_pull_policy: str = Field("IfNotPresent", alias="imagePullPolicy")
    ca_secret_name: str = Field(
        ...,
        alias="caSecretName",
        description="Secret holding the private CA generated by a ChiaCA",
    )
    testnet: bool | None = Field(None, description="Switch the node to testnet")
    timezone: str | None = Field(None, description="TZ database name, e.g. UTC")
    log_level: str | None = Field(None, alias="logLevel")
    resources: ResourceRequirements | None = Field(None)


class CommonSpec(BaseModel):
    """Spec fields shared by farmer, wallet and seeder resources."""

    model_config = {"populate_by_name": True}

    additional_metadata: AdditionalMetadata = Field(
        default_factory=AdditionalMetadata, alias="additionalMetadata"
    )
    image_pull_secrets: list[LocalObjectReference] = Field(
        default_factory=list, alias="imagePullSecrets"
    )
    chia_exporter: ChiaExporterConfig = Field(
        default_factory=ChiaExporterConfig, alias="chiaExporter"
    )
    service_type: str = Field("ClusterIP", alias="serviceType")
    node_selector: dict[str, str] = Field(default_factory=dict, alias="nodeSelector")
    pod_security_context: dict[str, Any] | None = Field(
        None, alias="podSecurityContext"
    )

    @field_validator("service_type")
    @classmethod
    def validate_service_type(cls, v):
        valid_types = ["ClusterIP", "NodePort", "LoadBalancer"]
        if v not in valid_types:
            raise ValueError(f"Service type must be one of {valid_types}")
        return v


class ChiaCondition(BaseModel):
    """Status condition written by the operator."""

    model_config = {"populate_by_name": True}

    type: str
    status: str
    reason: str | None = None
    message: str | None = None
    last_transition_time: str | None = Field(None, alias="lastTransitionTime")
    observed_generation: int | None = Field(None, alias="observedGeneration")


class ChiaStatus(BaseModel):
    """
    Observed state of a Chia custom resource.

    Written only by the operator, after reconciliation.
    """

    model_config = {"populate_by_name": True}

    ready: bool = Field(False, description="All children converged")
    conditions: list[ChiaCondition] = Field(default_factory=list)
    observed_generation: int | None = Field(None, alias="observedGeneration")


class ChiaResource(BaseModel):
    """Envelope shared by all Chia custom resources."""

    model_config = {"populate_by_name": True}

    api_version: str = Field(API_GROUP_VERSION, alias="apiVersion")
    kind: str
    metadata: ObjectMeta
    status: ChiaStatus = Field(default_factory=ChiaStatus)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace
