"""
Access Synchronization Package
"""

from app.services.access.synchronizer import AccessSynchronizer, ReconcileResult

__all__ = [
    "AccessSynchronizer",
    "ReconcileResult",
]
