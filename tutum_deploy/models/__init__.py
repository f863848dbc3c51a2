"""Data models for the deployment configuration and remote state."""

from tutum_deploy.models.cluster import Cluster
from tutum_deploy.models.config import DeployConfig
from tutum_deploy.models.node import Node
from tutum_deploy.models.remote import TERMINAL_STATES, RemoteRecord
from tutum_deploy.models.service import ContainerPort, EnvVar, Service

__all__ = [
    "Cluster",
    "ContainerPort",
    "DeployConfig",
    "EnvVar",
    "Node",
    "RemoteRecord",
    "Service",
    "TERMINAL_STATES",
]
