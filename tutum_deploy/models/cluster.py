"""Data model for node clusters."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from tutum_deploy.models.remote import RemoteRecord


def normalize_tag_names(v):
    """Accept tags as plain names or as ``{"name": ...}`` mappings."""
    if v is None:
        return []
    if isinstance(v, str):
        return [v]
    return [t["name"] if isinstance(t, dict) else t for t in v]


class Cluster(BaseModel):
    """Node cluster configuration.

    ``region`` and ``type`` hold names until region resolution replaces
    ``region`` with a resource URI and fills ``node_type``.
    """

    model_config = ConfigDict(extra="allow")

    name: str
    region: str
    type: str | None = None
    node_type: str | None = None
    target_num_nodes: int = Field(
        default=1, ge=1, validation_alias=AliasChoices("target_num_nodes", "nodes")
    )
    build: bool = True
    tags: list[str] = Field(default_factory=list)

    remote: RemoteRecord | None = Field(default=None, exclude=True)

    @field_validator("name", "region")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Validate name and region are not empty."""
        if not v:
            raise ValueError("cannot be empty")
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v):
        return normalize_tag_names(v)

    @model_validator(mode="after")
    def validate_node_type(self) -> "Cluster":
        """A cluster needs either a node type name or a resolved reference."""
        if self.type and self.type.startswith("/") and not self.node_type:
            self.node_type = self.type
        if not self.type and not self.node_type:
            raise ValueError(f"cluster '{self.name}' requires a node 'type'")
        if self.region_resolved and not self.node_type:
            raise ValueError(
                f"cluster '{self.name}': region {self.region} is a reference, so 'type' "
                f"must be a node type reference too, not '{self.type}'"
            )
        return self

    @property
    def region_resolved(self) -> bool:
        """Whether ``region`` already is a resource reference."""
        return self.region.startswith("/") and len(self.region) > 1

    def to_payload(self) -> dict:
        """Build the body for ``POST /nodecluster/``."""
        payload = self.model_dump(exclude={"build", "type", "tags"}, exclude_none=True)
        if self.tags:
            payload["tags"] = [{"name": t} for t in self.tags]
        return payload
