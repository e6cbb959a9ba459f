"""Pydantic models for ChiaFarmer resources."""

from typing import Literal

from pydantic import Field

from chia_operator.constants import KIND_CHIAFARMER

from .common import ChiaResource, CommonChiaConfig, CommonSpec, SecretKeyReference


class ChiaFarmerConfig(CommonChiaConfig):
    """Chia configuration for a farmer container."""

    full_node_peer: str = Field(
        ...,
        alias="fullNodePeer",
        description="The farmer's full_node peer in host:port format",
    )
    secret_key: SecretKeyReference = Field(
        ..., alias="secretKey", description="Secret holding the farmer's mnemonic"
    )


class ChiaFarmerSpec(CommonSpec):
    chia: ChiaFarmerConfig


class ChiaFarmer(ChiaResource):
    kind: Literal["ChiaFarmer"] = KIND_CHIAFARMER
    spec: ChiaFarmerSpec
