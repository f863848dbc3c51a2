"""Data model for nodes linked to Tutum out-of-band."""

from pydantic import BaseModel, Field, field_validator

from tutum_deploy.models.cluster import normalize_tag_names
from tutum_deploy.models.remote import RemoteRecord


class Node(BaseModel):
    """A pre-existing remote node; only its tag assignments are managed."""

    uuid: str
    name: str | None = None
    tags: list[str] = Field(default_factory=list)

    remote: RemoteRecord | None = Field(default=None, exclude=True)

    @field_validator("uuid")
    @classmethod
    def validate_uuid(cls, v: str) -> str:
        """Validate uuid is not empty."""
        if not v:
            raise ValueError("uuid cannot be empty")
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v):
        return normalize_tag_names(v)

    @property
    def label(self) -> str:
        return self.name or self.uuid

    def tags_payload(self) -> dict:
        """Build the body for ``PATCH /node/<uuid>/``."""
        return {"tags": [{"name": t} for t in self.tags]}
