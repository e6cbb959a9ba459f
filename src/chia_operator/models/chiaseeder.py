"""Pydantic models for ChiaSeeder resources."""

from typing import Literal

from pydantic import Field

from chia_operator.constants import KIND_CHIASEEDER

from .common import ChiaResource, CommonChiaConfig, CommonSpec


class ChiaSeederConfig(CommonChiaConfig):
    """Chia configuration for a DNS introducer (seeder) container."""

    bootstrap_peer: str | None = Field(
        None,
        alias="bootstrapPeer",
        description="A peer used to bootstrap the seeder's peer database",
    )
    minimum_height: int | None = Field(
        None,
        alias="minimumHeight",
        description="Only consider nodes synced at least to this height",
        ge=0,
    )
    domain_name: str = Field(
        ...,
        alias="domainName",
        description="Name of the NS record for the server, with a trailing period",
    )
    nameserver: str = Field(
        ..., description="Name of the A record for the server, with a trailing period"
    )
    rname: str = Field(
        ..., description="Administrator email address with '@' replaced by '.'"
    )
    ttl: int | None = Field(None, description="TTL on served DNS records", ge=0)


class ChiaSeederSpec(CommonSpec):
    chia: ChiaSeederConfig


class ChiaSeeder(ChiaResource):
    kind: Literal["ChiaSeeder"] = KIND_CHIASEEDER
    spec: ChiaSeederSpec
