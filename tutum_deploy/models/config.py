"""The configuration tree loaded from tutum.yaml."""

from pydantic import BaseModel, Field, field_validator

from tutum_deploy.models.cluster import Cluster
from tutum_deploy.models.node import Node
from tutum_deploy.models.service import Service


class DeployConfig(BaseModel):
    """Clusters, nodes and services in reconciliation order."""

    clusters: list[Cluster] = Field(default_factory=list)
    nodes: list[Node] = Field(default_factory=list)
    services: list[Service] = Field(default_factory=list)

    @field_validator("clusters", "nodes", "services", mode="before")
    @classmethod
    def empty_section(cls, v):
        # A key present with no entries parses as None
        return [] if v is None else v

    @field_validator("services")
    @classmethod
    def validate_unique_names(cls, v: list[Service]) -> list[Service]:
        """Validate service names are unique."""
        seen = set()
        for service in v:
            if service.name in seen:
                raise ValueError(f"duplicate service name '{service.name}'")
            seen.add(service.name)
        return v

    @property
    def build_enabled(self) -> bool:
        """Image building is disabled by any cluster with ``build: false``."""
        return all(cluster.build for cluster in self.clusters)

    def get_service(self, name: str) -> Service | None:
        return next((s for s in self.services if s.name == name), None)
