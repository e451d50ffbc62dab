"""Droplet provisioning.

Replaces any droplet with the configured name by a fresh one whose
cloud-init script installs the package and starts the systemd service.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from ..core.config import Config, DeployConfig
from ..core.errors import DeploymentError
from ..core.retry import SleepFunc
from .cloud_init import build_user_data
from .digitalocean import DropletClient, create_http_client

logger = logging.getLogger(__name__)

DELETE_SETTLE_SECONDS = 5.0


@dataclass(frozen=True)
class DeploymentResult:
    """A droplet that is up and bootstrapping itself."""

    droplet_id: int
    name: str
    ip_address: str

    @property
    def dashboard_url(self) -> str:
        return f"https://cloud.digitalocean.com/droplets/{self.droplet_id}"


def public_ipv4(droplet: dict[str, Any]) -> str | None:
    """Public IPv4 address of a droplet, if it has one yet."""
    for network in droplet.get("networks", {}).get("v4", []):
        if network.get("type", "public") == "public" and network.get("ip_address"):
            return network["ip_address"]
    return None


class Provisioner:
    """Creates the droplet and waits for it to come up."""

    def __init__(
        self,
        droplets: DropletClient,
        deploy: DeployConfig,
        user_data: str,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self._droplets = droplets
        self._deploy = deploy
        self._user_data = user_data
        self._sleep = sleep

    async def remove_existing(self) -> list[int]:
        """Delete droplets that already use the configured name."""
        name = self._deploy.droplet_name
        existing = await self._droplets.list_droplets(name=name)
        if not existing:
            logger.info("No existing droplets named %s", name)
            return []

        removed = []
        for droplet in existing:
            logger.warning(
                "Deleting existing droplet %s (IP %s, status %s)",
                droplet["id"],
                public_ipv4(droplet) or "N/A",
                droplet.get("status", "unknown"),
            )
            await self._droplets.delete_droplet(droplet["id"])
            removed.append(droplet["id"])

        await self._sleep(DELETE_SETTLE_SECONDS)
        return removed

    async def create(self) -> dict[str, Any]:
        d = self._deploy
        logger.info("Creating droplet %s (%s in %s, %s)", d.droplet_name, d.size, d.region, d.image)
        droplet = await self._droplets.create_droplet(
            {
                "name": d.droplet_name,
                "region": d.region,
                "size": d.size,
                "image": d.image,
                "backups": False,
                "ipv6": False,
                "monitoring": True,
                "tags": [d.droplet_name],
                "user_data": self._user_data,
            }
        )
        logger.info("Droplet created, id %s", droplet["id"])
        return droplet

    async def wait_for_ip(self, droplet_id: int) -> str:
        """Poll until the droplet is active with a public IPv4 address.

        Raises:
            DeploymentError: If it is not up after ``boot_poll_attempts`` polls
        """
        for attempt in range(self._deploy.boot_poll_attempts):
            await self._sleep(self._deploy.poll_interval)
            droplet = await self._droplets.get_droplet(droplet_id)
            ip = public_ipv4(droplet)
            if droplet.get("status") == "active" and ip:
                return ip
            logger.debug(
                "Droplet %s not ready (status %s, poll %d)",
                droplet_id,
                droplet.get("status"),
                attempt + 1,
            )

        raise DeploymentError(
            "Failed to get droplet IP address",
            details={"droplet_id": droplet_id, "polls": self._deploy.boot_poll_attempts},
        )

    async def wait_for_setup(self) -> None:
        """Give cloud-init time to install and start the service."""
        total = self._deploy.setup_wait_seconds
        waited = 0.0
        while waited < total:
            step = min(self._deploy.poll_interval, total - waited)
            await self._sleep(step)
            waited += step
            logger.debug("Waiting for setup: %ds of %ds", waited, total)

    async def deploy(self) -> DeploymentResult:
        await self.remove_existing()
        droplet = await self.create()

        logger.info("Waiting for droplet to boot and get an IP address")
        ip = await self.wait_for_ip(droplet["id"])
        logger.info("Droplet is active at %s", ip)

        if self._deploy.setup_wait_seconds:
            logger.info(
                "Setting up the service via cloud-init (about %d minutes)",
                self._deploy.setup_wait_seconds // 60,
            )
            await self.wait_for_setup()

        return DeploymentResult(droplet_id=droplet["id"], name=droplet.get("name", ""), ip_address=ip)


async def deploy_droplet(config: Config, sleep: SleepFunc = asyncio.sleep) -> DeploymentResult:
    """Provision the droplet described by ``config.deploy``.

    Raises:
        DeploymentError: If no token is configured or the droplet never comes up
        APIError: If DigitalOcean rejects a request
    """
    token = config.deploy.token.get_secret_value()
    if not token:
        raise DeploymentError("DIGITALOCEAN_TOKEN is not configured")

    user_data = build_user_data(
        config.to_deploy_yaml(),
        package_spec=config.deploy.package_spec,
        service=config.deploy.droplet_name,
    )

    async with create_http_client(token) as client:
        provisioner = Provisioner(DropletClient(client), config.deploy, user_data, sleep=sleep)
        return await provisioner.deploy()
