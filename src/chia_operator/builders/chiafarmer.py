"""Desired state of a ChiaFarmer."""

from chia_operator.constants import FARMER_PORT, FARMER_RPC_PORT
from chia_operator.models import ChiaFarmer
from chia_operator.utils.resources import ChildDescriptor

from .common import (
    chia_container,
    chia_env,
    chia_volumes,
    component_children,
    daemon_port,
    key_path,
)

COMPONENT = "farmer"


def assemble(farmer: ChiaFarmer) -> list[ChildDescriptor]:
    """Service, optional metrics Service and Deployment for a farmer."""
    spec = farmer.spec
    chia = spec.chia
    ports = [
        daemon_port(),
        ("peers", FARMER_PORT, "TCP"),
        ("rpc", FARMER_RPC_PORT, "TCP"),
    ]

    volumes, mounts = chia_volumes(chia, chia.secret_key)
    env = chia_env(
        chia,
        service="farmer-only",
        keys=key_path(chia.secret_key),
        full_node_peer=chia.full_node_peer,
    )
    container = chia_container("chia", chia, env, ports, mounts)

    return component_children(farmer, spec, COMPONENT, ports, container, volumes)
