"""
Builders package - desired state of every child object.

Each module exposes ``assemble(resource)`` returning the child descriptors
for one custom resource kind. Builders never talk to the cluster.
"""

from . import chiaca, chiafarmer, chiaseeder, chiawallet

__all__ = ["chiaca", "chiafarmer", "chiaseeder", "chiawallet"]
