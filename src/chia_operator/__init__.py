"""
Chia Operator - A Kubernetes operator for Chia blockchain components.

This operator keeps the Kubernetes-native children of each Chia custom
resource in sync with its spec:
- ChiaCA: generates the private CA secret through a one-shot Job
- ChiaFarmer, ChiaWallet, ChiaSeeder: Services and a Deployment per resource
- Readiness reported on each custom resource's status subresource
"""

__version__ = "0.1.0"
