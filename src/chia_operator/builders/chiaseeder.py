"""Desired state of a ChiaSeeder (DNS introducer)."""

from kubernetes import client

from chia_operator.constants import (
    NODE_PORT,
    NODE_RPC_PORT,
    NODE_TESTNET_PORT,
    SEEDER_DNS_PORT,
)
from chia_operator.models import ChiaSeeder
from chia_operator.models.chiaseeder import ChiaSeederConfig
from chia_operator.utils.resources import ChildDescriptor

from .common import (
    chia_container,
    chia_env,
    chia_volumes,
    component_children,
    daemon_port,
)

COMPONENT = "seeder"


def seeder_env(chia: ChiaSeederConfig) -> list[client.V1EnvVar]:
    """DNS server settings passed to the seeder container."""
    env = [
        client.V1EnvVar(name="seeder_domain_name", value=chia.domain_name),
        client.V1EnvVar(name="seeder_nameserver", value=chia.nameserver),
        client.V1EnvVar(name="seeder_soa_rname", value=chia.rname),
    ]
    if chia.bootstrap_peer:
        env.append(
            client.V1EnvVar(name="seeder_bootstrap_peers", value=chia.bootstrap_peer)
        )
    if chia.minimum_height is not None:
        env.append(
            client.V1EnvVar(
                name="seeder_minimum_height", value=str(chia.minimum_height)
            )
        )
    if chia.ttl is not None:
        env.append(client.V1EnvVar(name="seeder_ttl", value=str(chia.ttl)))
    return env


def assemble(seeder: ChiaSeeder) -> list[ChildDescriptor]:
    spec = seeder.spec
    chia = spec.chia
    peer_port = NODE_TESTNET_PORT if chia.testnet else NODE_PORT
    ports = [
        daemon_port(),
        ("dns", SEEDER_DNS_PORT, "UDP"),
        ("dns-tcp", SEEDER_DNS_PORT, "TCP"),
        ("peers", peer_port, "TCP"),
        ("rpc", NODE_RPC_PORT, "TCP"),
    ]

    # Seeders crawl the network and never hold keys
    volumes, mounts = chia_volumes(chia)
    env = chia_env(chia, service="seeder", keys="none") + seeder_env(chia)
    container = chia_container("chia", chia, env, ports, mounts)

    return component_children(seeder, spec, COMPONENT, ports, container, volumes)
