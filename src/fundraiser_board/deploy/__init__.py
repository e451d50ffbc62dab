"""DigitalOcean deployment of the board service."""

from .cloud_init import build_user_data
from .digitalocean import DropletClient, create_http_client
from .provisioner import DeploymentResult, Provisioner, deploy_droplet

__all__ = [
    "build_user_data",
    "DropletClient",
    "create_http_client",
    "DeploymentResult",
    "Provisioner",
    "deploy_droplet",
]
