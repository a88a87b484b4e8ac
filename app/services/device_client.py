# app/services/device_client.py
"""
HTTP client for the control endpoints served by the device itself.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from app.core.exceptions import DeviceTimeoutError, DeviceUnreachableError
from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class DeviceClient:
    """Calls the device's own HTTP API at its last known address. No retries."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        *,
        timeout_seconds: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._registry = registry
        self._client = httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds), transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    def base_url(self) -> str:
        address = self._registry.find_device_address()
        if "://" in address:
            return address.rstrip("/")
        return f"http://{address}"

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url()}{path}"
        try:
            resp = await self._client.request(method, url, json=json)
        except httpx.TimeoutException as e:
            logger.warning("[DEVICE] %s %s timed out", method, url)
            raise DeviceTimeoutError(f"ESP32 did not respond in time ({url})") from e
        except httpx.TransportError as e:
            logger.warning("[DEVICE] %s %s failed: %s", method, url, e)
            raise DeviceUnreachableError(f"Cannot reach ESP32 at {url}: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            data = {"message": resp.text}
        if not isinstance(data, dict):
            data = {"data": data}
        if resp.is_error:
            logger.warning("[DEVICE] %s %s returned HTTP %d: %s", method, url, resp.status_code, data)
            raise DeviceUnreachableError(data.get("message") or f"ESP32 returned HTTP {resp.status_code}")
        logger.info("[DEVICE] %s %s -> %s", method, url, data)
        return data

    async def start_sampling(self) -> Dict[str, Any]:
        return await self._request("POST", "/api/start")

    async def stop_sampling(self) -> Dict[str, Any]:
        return await self._request("POST", "/api/stop")

    async def status(self) -> Dict[str, Any]:
        return await self._request("GET", "/api/status")

    async def configure_dashboard(self, host: str, port: int) -> Dict[str, Any]:
        return await self._request("POST", "/api/config/dashboard", json={"host": host, "port": port})
