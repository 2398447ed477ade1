"""
WireGuard Gateway Package
"""

from app.services.wireguard.client import WireGuardClient, QR_IMAGE_SIZE

from app.services.wireguard.exceptions import (
    WireGuardClientError,
    GatewayError,
    ProvisionError,
    NotFoundError,
    QrRenderError,
)

__all__ = [
    "WireGuardClient",
    "QR_IMAGE_SIZE",
    "WireGuardClientError",
    "GatewayError",
    "ProvisionError",
    "NotFoundError",
    "QrRenderError",
]
