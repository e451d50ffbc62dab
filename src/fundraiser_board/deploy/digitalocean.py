"""Minimal DigitalOcean v2 droplets client."""

import logging
from typing import Any

import httpx

from ..core.errors import APIError
from ..core.retry import NETWORK_RETRY_CONFIG, async_retry

logger = logging.getLogger(__name__)

DIGITALOCEAN_API_URL = "https://api.digitalocean.com/v2"


def create_http_client(token: str, base_url: str = DIGITALOCEAN_API_URL) -> httpx.AsyncClient:
    """HTTP client authenticated with a DigitalOcean API token."""
    return httpx.AsyncClient(
        base_url=base_url,
        headers={"Authorization": f"Bearer {token}"},
        timeout=30.0,
    )


class DropletClient:
    """Droplet operations used by the provisioner.

    The given client must already carry the base URL and bearer token
    (see :func:`create_http_client`).
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def list_droplets(self, name: str | None = None) -> list[dict[str, Any]]:
        """List droplets, optionally only those with an exact name."""
        data = await self._call("GET", "/droplets", params={"per_page": 200})
        droplets = data.get("droplets", [])
        if name is not None:
            droplets = [d for d in droplets if d.get("name") == name]
        return droplets

    async def get_droplet(self, droplet_id: int) -> dict[str, Any]:
        data = await self._call("GET", f"/droplets/{droplet_id}")
        return data["droplet"]

    async def create_droplet(self, spec: dict[str, Any]) -> dict[str, Any]:
        data = await self._call("POST", "/droplets", json=spec)
        return data["droplet"]

    async def delete_droplet(self, droplet_id: int) -> None:
        await self._call("DELETE", f"/droplets/{droplet_id}")

    async def _call(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._request(method, path, **kwargs)
        except httpx.TransportError as e:
            raise APIError(f"Could not reach DigitalOcean ({method} {path})", cause=e) from e

        if not response.is_success:
            try:
                reason = response.json().get("message", "")
            except (ValueError, AttributeError):
                reason = response.text[:200]
            raise APIError(
                f"DigitalOcean {method} {path} failed: {reason or response.reason_phrase}",
                status_code=response.status_code,
            )

        if not response.content:
            return {}
        return response.json()

    @async_retry(NETWORK_RETRY_CONFIG)
    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        logger.debug("%s %s", method, path)
        return await self._client.request(method, path, **kwargs)
