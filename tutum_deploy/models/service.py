"""Data models for service configuration."""

import re

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from tutum_deploy.models.cluster import normalize_tag_names
from tutum_deploy.models.remote import RemoteRecord

PORT_PATTERN = re.compile(r"^(\d+)(?:/(tcp|udp))?$")


class EnvVar(BaseModel):
    """A single container environment variable."""

    key: str
    value: str


class ContainerPort(BaseModel):
    """Port exposed by the service containers."""

    inner_port: int = Field(ge=1, le=65535)
    outer_port: int | None = Field(default=None, ge=1, le=65535)
    protocol: str = "tcp"
    published: bool | None = None

    @field_validator("protocol")
    @classmethod
    def validate_protocol(cls, v: str) -> str:
        """Validate protocol is tcp or udp."""
        allowed = ["tcp", "udp"]
        if v not in allowed:
            raise ValueError(f"protocol must be one of {allowed}, got '{v}'")
        return v


class Service(BaseModel):
    """Service configuration model.

    Shorthand keys from ``tutum.yaml`` are accepted on input and mapped to
    the field names the Tutum API uses: ``containers`` becomes
    ``target_num_containers``, ``ports`` becomes ``container_ports`` and the
    ``env`` mapping becomes the ordered ``container_envvars`` list.

    Fields the model does not declare are passed to the API unchanged.
    """

    model_config = ConfigDict(extra="allow")

    name: str
    image: str
    build: str | None = None
    target_num_containers: int = Field(
        default=1, ge=0, validation_alias=AliasChoices("target_num_containers", "containers")
    )
    container_ports: list[ContainerPort] = Field(
        default_factory=list, validation_alias=AliasChoices("container_ports", "ports")
    )
    container_envvars: list[EnvVar] = Field(
        default_factory=list, validation_alias=AliasChoices("container_envvars", "env")
    )
    tags: list[str] = Field(default_factory=list)
    require: list[str] = Field(default_factory=list)

    # Observed during a run, never sent to the API
    remote: RemoteRecord | None = Field(default=None, exclude=True)
    # Tag name to carrying clusters and nodes, for diagnostics only
    tag_refs: dict[str, list[str]] = Field(default_factory=dict, exclude=True)
    image_pushed: bool = Field(default=False, exclude=True)
    started: bool = Field(default=False, exclude=True)

    @field_validator("name", "image")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Validate name and image are not empty."""
        if not v:
            raise ValueError("cannot be empty")
        return v

    @field_validator("container_ports", mode="before")
    @classmethod
    def expand_ports(cls, v):
        """Accept ``80``, ``"53/udp"`` or full port mappings."""
        if v is None:
            return []
        ports = []
        for port in v:
            if isinstance(port, int):
                ports.append({"inner_port": port})
            elif isinstance(port, str):
                match = PORT_PATTERN.match(port.strip())
                if not match:
                    raise ValueError(f"port '{port}' must look like '80' or '53/udp'")
                ports.append({"inner_port": int(match.group(1)), "protocol": match.group(2) or "tcp"})
            else:
                ports.append(port)
        return ports

    @field_validator("container_envvars", mode="before")
    @classmethod
    def expand_env(cls, v):
        """Expand an ``env`` mapping into ordered key/value pairs."""
        if v is None:
            return []
        if isinstance(v, dict):
            return [
                {"key": str(k), "value": "" if val is None else str(val)} for k, val in v.items()
            ]
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v):
        return normalize_tag_names(v)

    @field_validator("require", mode="before")
    @classmethod
    def normalize_require(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v

    def tags_payload(self) -> dict:
        """Build the body for ``PATCH /service/<uuid>/``."""
        return {"tags": [{"name": t} for t in self.tags]}

    def to_payload(self, links: list[dict] | None = None) -> dict:
        """Build the body for ``POST /service/``.

        Args:
            links: Resolved ``linked_to_service`` entries for ``require``

        Returns:
            Payload without the build path, dependency names or run state
        """
        payload = self.model_dump(exclude={"build", "require", "tags"}, exclude_none=True)
        payload["tags"] = [{"name": t} for t in self.tags]
        if links:
            payload["linked_to_service"] = links
        return payload
