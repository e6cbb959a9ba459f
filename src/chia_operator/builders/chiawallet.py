"""Desired state of a ChiaWallet."""

from chia_operator.constants import WALLET_PORT, WALLET_RPC_PORT
from chia_operator.models import ChiaWallet
from chia_operator.utils.resources import ChildDescriptor

from .common import (
    chia_container,
    chia_env,
    chia_volumes,
    component_children,
    daemon_port,
    key_path,
)

COMPONENT = "wallet"


def assemble(wallet: ChiaWallet) -> list[ChildDescriptor]:
    spec = wallet.spec
    chia = spec.chia
    ports = [
        daemon_port(),
        ("peers", WALLET_PORT, "TCP"),
        ("rpc", WALLET_RPC_PORT, "TCP"),
    ]

    volumes, mounts = chia_volumes(chia, chia.secret_key)
    env = chia_env(
        chia,
        service="wallet",
        keys=key_path(chia.secret_key),
        full_node_peer=chia.full_node_peer,
    )
    container = chia_container("chia", chia, env, ports, mounts)

    return component_children(wallet, spec, COMPONENT, ports, container, volumes)
