"""Pydantic models for ChiaCA resources."""

from typing import Literal

from pydantic import BaseModel, Field

from chia_operator.constants import DEFAULT_CA_GEN_IMAGE, KIND_CHIACA

from .common import ChiaResource, LocalObjectReference


class ChiaCASpec(BaseModel):
    """Desired state of a ChiaCA: which secret the CA generator should create."""

    model_config = {"populate_by_name": True}

    image: str = Field(DEFAULT_CA_GEN_IMAGE, description="CA generator image")
    image_pull_secrets: list[LocalObjectReference] = Field(
        default_factory=list, alias="imagePullSecrets"
    )
    secret: str = Field(..., description="Name of the CA secret to generate")


class ChiaCA(ChiaResource):
    kind: Literal["ChiaCA"] = KIND_CHIACA
    spec: ChiaCASpec
