"""Records returned by the Tutum API."""

from pydantic import BaseModel, ConfigDict

TERMINAL_STATES = frozenset({"Terminating", "Terminated"})


class RemoteRecord(BaseModel):
    """A cluster, node or service as the Tutum API reports it.

    Only the fields the workflow reads are declared; everything else the API
    returns is kept verbatim.
    """

    model_config = ConfigDict(extra="allow")

    uuid: str | None = None
    name: str | None = None
    state: str | None = None
    resource_uri: str | None = None

    @property
    def is_terminal(self) -> bool:
        """Whether the entity is being or has been terminated."""
        return self.state in TERMINAL_STATES
