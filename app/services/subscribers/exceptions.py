"""
Subscriber Snapshot Domain Exceptions
"""


class SubscriberStoreError(Exception):
    """Raised when the candidate list cannot be obtained; fatal to one job run only"""
    pass


class InvalidBroadcastTargetError(ValueError):
    """Raised when a broadcast target type is unknown"""
    pass
