"""
Models package - Pydantic models for type-safe resource handling.

Defines data models for:
- ChiaCA certificate authority generation
- ChiaFarmer, ChiaWallet and ChiaSeeder component resources
- The status shape shared by all of them
"""

from .chiaca import ChiaCA, ChiaCASpec
from .chiafarmer import ChiaFarmer, ChiaFarmerSpec
from .chiaseeder import ChiaSeeder, ChiaSeederSpec
from .chiawallet import ChiaWallet, ChiaWalletSpec
from .common import ChiaCondition, ChiaResource, ChiaStatus

__all__ = [
    "ChiaCA",
    "ChiaCASpec",
    "ChiaFarmer",
    "ChiaFarmerSpec",
    "ChiaWallet",
    "ChiaWalletSpec",
    "ChiaSeeder",
    "ChiaSeederSpec",
    "ChiaCondition",
    "ChiaResource",
    "ChiaStatus",
]
