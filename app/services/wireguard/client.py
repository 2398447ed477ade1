"""
WireGuard Gateway Client

HTTP client for the access-control service (wg-easy compatible API).

API endpoints:
    POST /session: password in, connect.sid cookie out
    GET  /wireguard/client: list clients
    POST /wireguard/client: create client
    POST /wireguard/client/{id}/enable | /disable: toggle access
    GET  /wireguard/client/{id}/configuration: wg-quick config text
    GET  /wireguard/client/{id}/qrcode.svg: QR code of the config

Session handling:
    Authenticate lazily, cache the cookie on the instance. On 401/403 the
    cookie is cleared and the request is retried exactly once with a fresh
    session. A second rejection raises GatewayError.

The cookie is the only mutable state and is shared by every concurrent job,
so reads and writes go through self._session_lock. Invalidation is
compare-and-clear: a caller that saw a stale cookie never wipes the fresh one
another caller has just obtained.
"""

import asyncio
import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from app.services.wireguard.exceptions import (
    GatewayError,
    NotFoundError,
    ProvisionError,
    QrRenderError,
)

logger = logging.getLogger(__name__)

QR_IMAGE_SIZE = 512

_SESSION_COOKIE_RE = re.compile(r"connect\.sid=([^;]+)")
_AUTH_REJECTED = (401, 403)


def _svg_to_png(svg: bytes, size: int) -> bytes:
    # cairosvg loads the system libcairo on import
    import cairosvg
    return cairosvg.svg2png(bytestring=svg, output_width=size, output_height=size)


def build_timeout(read_timeout: float) -> httpx.Timeout:
    return httpx.Timeout(connect=5.0, read=read_timeout, write=5.0, pool=5.0)


class WireGuardClient:
    """
    Session-authenticated client for the WireGuard gateway.

    Args:
        base_url: API root, e.g. "https://wg.example.com/api"
        password: shared gateway password
        timeout: read timeout per request in seconds
        transport: optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        password: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        qr_size: int = QR_IMAGE_SIZE,
    ):
        if not base_url:
            raise ValueError("WireGuard base_url is required")
        self.base_url = base_url.rstrip("/")
        self._password = password
        self.qr_size = qr_size
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=build_timeout(timeout),
            transport=transport,
            headers={"Content-Type": "application/json"},
        )
        self._session_cookie: Optional[str] = None
        self._session_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    async def _ensure_session(self) -> str:
        """
        Return the cached session cookie, logging in first if there is none.

        Raises:
            GatewayError: login failed or no connect.sid in the response
        """
        async with self._session_lock:
            if self._session_cookie:
                return self._session_cookie

            try:
                response = await self._client.post("/session", json={"password": self._password})
            except httpx.HTTPError as e:
                raise GatewayError(f"WireGuard login failed: {type(e).__name__}: {e}") from e

            if not response.is_success:
                raise GatewayError(f"WireGuard login rejected: HTTP {response.status_code}")

            sid = None
            for header in response.headers.get_list("set-cookie"):
                match = _SESSION_COOKIE_RE.search(header)
                if match:
                    sid = match.group(1)
                    break
            if not sid:
                raise GatewayError("WireGuard login response has no connect.sid cookie")

            # Cookie is sent explicitly per request
            self._client.cookies.clear()
            self._session_cookie = f"connect.sid={sid}"
            logger.info("WIREGUARD_SESSION_ESTABLISHED")
            return self._session_cookie

    async def _invalidate_session(self, stale_cookie: str) -> None:
        async with self._session_lock:
            if self._session_cookie == stale_cookie:
                self._session_cookie = None

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """
        Perform a request with the session cookie; re-authenticate once on 401/403.

        Returns the response for any status other than 401/403; callers map
        the remaining statuses.

        Raises:
            GatewayError: transport failure, timeout, or rejected twice
        """
        for attempt in range(2):
            cookie = await self._ensure_session()
            try:
                response = await self._client.request(
                    method, path, headers={"Cookie": cookie}, **kwargs
                )
            except httpx.HTTPError as e:
                raise GatewayError(f"{method} {path} failed: {type(e).__name__}: {e}") from e

            if response.status_code not in _AUTH_REJECTED:
                return response

            await self._invalidate_session(cookie)
            if attempt == 0:
                logger.warning(
                    f"WIREGUARD_SESSION_EXPIRED [method={method}, path={path}, "
                    f"status={response.status_code}] re-authenticating"
                )

        raise GatewayError(f"{method} {path} rejected after re-authentication: HTTP {response.status_code}")

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def issue(self, name: str) -> Dict[str, Any]:
        """
        Create a new client.

        Raises:
            ProvisionError: gateway refused or returned an unusable body
        """
        try:
            response = await self._request("POST", "/wireguard/client", json={"name": name})
        except GatewayError as e:
            raise ProvisionError(f"Cannot issue client {name!r}: {e}") from e

        if not response.is_success:
            raise ProvisionError(f"Cannot issue client {name!r}: HTTP {response.status_code}")
        try:
            credential = response.json()
        except ValueError as e:
            raise ProvisionError(f"Cannot issue client {name!r}: invalid JSON") from e
        logger.info(f"WIREGUARD_CLIENT_ISSUED [name={name}]")
        return credential

    async def _toggle(self, gate_id: str, operation: str) -> bool:
        response = await self._request("POST", f"/wireguard/client/{gate_id}/{operation}")
        if response.status_code == 404:
            logger.warning(f"WIREGUARD_CLIENT_NOT_FOUND [gate_id={gate_id}, operation={operation}]")
            return False
        if not response.is_success:
            raise GatewayError(f"{operation} {gate_id} failed: HTTP {response.status_code}")
        return True

    async def enable(self, gate_id: str) -> bool:
        """
        Enable a client. Idempotent on the gateway side.

        Returns:
            True on success, False if the gateway does not know the client
        """
        return await self._toggle(gate_id, "enable")

    async def disable(self, gate_id: str) -> bool:
        return await self._toggle(gate_id, "disable")

    async def _get_existing(self, path: str, gate_id: str) -> httpx.Response:
        response = await self._request("GET", path)
        if response.status_code == 404:
            raise NotFoundError(f"WireGuard client {gate_id} not found")
        if not response.is_success:
            raise GatewayError(f"GET {path} failed: HTTP {response.status_code}")
        return response

    async def fetch_config(self, gate_id: str) -> str:
        response = await self._get_existing(f"/wireguard/client/{gate_id}/configuration", gate_id)
        return response.text

    async def fetch_qr_image(self, gate_id: str) -> bytes:
        """
        QR code of the client config as a PNG of qr_size x qr_size.

        Raises:
            NotFoundError: unknown client
            QrRenderError: SVG could not be rasterised
        """
        response = await self._get_existing(f"/wireguard/client/{gate_id}/qrcode.svg", gate_id)
        svg = response.content
        try:
            return await asyncio.to_thread(_svg_to_png, svg, self.qr_size)
        except Exception as e:
            logger.error(f"WIREGUARD_QR_RENDER_FAILED [gate_id={gate_id}, error={type(e).__name__}: {str(e)[:100]}]")
            raise QrRenderError(f"Cannot render QR for {gate_id}: {e}") from e

    async def list_clients(self) -> List[Dict[str, Any]]:
        response = await self._request("GET", "/wireguard/client")
        if not response.is_success:
            raise GatewayError(f"GET /wireguard/client failed: HTTP {response.status_code}")
        try:
            clients = response.json()
        except ValueError as e:
            raise GatewayError("Client list is not valid JSON") from e
        if not isinstance(clients, list):
            raise GatewayError(f"Client list has unexpected type {type(clients).__name__}")
        return clients

    async def find_client_id_by_public_key(self, public_key: str) -> Optional[str]:
        for item in await self.list_clients():
            if isinstance(item, dict) and item.get("publicKey") == public_key:
                return item.get("id")
        return None

    async def health_check(self) -> bool:
        """True if the gateway accepts our password and answers the client list."""
        try:
            await self.list_clients()
            return True
        except GatewayError as e:
            logger.warning(f"WIREGUARD_HEALTH_CHECK_FAILED: {e}")
            return False

    async def close(self) -> None:
        await self._client.aclose()
