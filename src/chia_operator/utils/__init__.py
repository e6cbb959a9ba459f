"""
Utilities package - helper functions and shared building blocks.

Contains:
- Kubernetes client access and the child object store
- Idempotent reconciliation of individual child objects
- Dependency ordering and bounded readiness waits
- Status subresource updates
"""
