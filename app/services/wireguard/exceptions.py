"""
WireGuard Gateway Client Exceptions

All exceptions raised by the access-control HTTP client.
"""


class WireGuardClientError(Exception):
    """Base exception for WireGuard gateway operations"""
    pass


class GatewayError(WireGuardClientError):
    """Transport failure, timeout, or authentication rejected after the single re-auth"""
    pass


class ProvisionError(GatewayError):
    """Failed to issue a new client credential"""
    pass


class NotFoundError(GatewayError):
    """Client id unknown to the gateway"""
    pass


class QrRenderError(WireGuardClientError):
    """QR SVG was fetched but could not be converted to PNG"""
    pass
