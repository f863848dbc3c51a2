"""Index of tag names to the clusters and nodes carrying them."""

from tutum_deploy.logging_config import get_logger

logger = get_logger(__name__)


class TagIndex:
    """Maps a tag name to the resource URIs of clusters/nodes carrying it.

    Built up during a run from tag listings and consumed when resolving the
    tag names a service declares.
    """

    def __init__(self):
        self._index: dict[str, set[str]] = {}

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, name: str) -> bool:
        return name in self._index

    def add(self, name: str, resource_uri: str) -> None:
        self._index.setdefault(name, set()).add(resource_uri)

    def merge(self, tags: list[dict], resource_uri: str) -> None:
        """Record every ``{"name": ...}`` tag object as carried by ``resource_uri``."""
        for tag in tags:
            name = tag.get("name")
            if name:
                self.add(name, resource_uri)
        logger.debug(f"Tag index now holds {len(self._index)} tag(s)")

    def resources(self, name: str) -> list[str]:
        """Resource URIs carrying ``name``; empty if no resource does."""
        return sorted(self._index.get(name, ()))

    def resolve(self, names: list[str]) -> dict[str, list[str]]:
        return {name: self.resources(name) for name in names}

    def names(self) -> list[str]:
        return sorted(self._index)
