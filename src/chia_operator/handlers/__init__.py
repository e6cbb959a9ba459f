"""
Handlers package - Contains all Kopf event handlers for Chia resources.

- chia.py: create, update and resume handlers for ChiaCA, ChiaFarmer,
  ChiaWallet and ChiaSeeder
"""
