"""Pydantic models for ChiaWallet resources."""

from typing import Literal

from pydantic import Field

from chia_operator.constants import KIND_CHIAWALLET

from .common import ChiaResource, CommonChiaConfig, CommonSpec, SecretKeyReference


class ChiaWalletConfig(CommonChiaConfig):
    """Chia configuration for a wallet container."""

    full_node_peer: str = Field(
        ...,
        alias="fullNodePeer",
        description=(
            "The wallet's full_node peer in host:port format, usually "
            "<node service>.<namespace>.svc.cluster.local:8444"
        ),
    )
    secret_key: SecretKeyReference = Field(
        ..., alias="secretKey", description="Secret holding the wallet's mnemonic"
    )


class ChiaWalletSpec(CommonSpec):
    chia: ChiaWalletConfig


class ChiaWallet(ChiaResource):
    kind: Literal["ChiaWallet"] = KIND_CHIAWALLET
    spec: ChiaWalletSpec
