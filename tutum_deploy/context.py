"""Per-run state shared by every deploy step."""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from tutum_deploy.api import ApiClient
from tutum_deploy.models.config import DeployConfig
from tutum_deploy.tags import TagIndex


@dataclass
class SettlePolicy:
    """How long to poll a remote entity after an asynchronous action.

    Attributes:
        attempts: Number of polls before giving up
        interval: Seconds to wait before the first poll
        backoff: Factor applied to the wait after every poll
        max_interval: Upper bound for a single wait
    """

    attempts: int = 10
    interval: float = 2.0
    backoff: float = 1.5
    max_interval: float = 15.0

    def delays(self):
        """Yield the wait before each poll."""
        delay = self.interval
        for _ in range(self.attempts):
            yield delay
            delay = min(delay * self.backoff, self.max_interval)


@dataclass
class DeployContext:
    """Everything a step needs, constructed once per command invocation.

    Attributes:
        config: Configuration tree, mutated with observed remote state
        api: Client for the Tutum API, None for commands that make no calls
        tags: Tag index built from cluster and node tag listings
        cwd: Directory that service build paths are relative to
        settle: Polling policy after service create/start
        build_images: Whether docker build/push runs for services with a build path
        force_redeploy: Redeploy running services even if no image was pushed
        sleep: Wait function used while polling
    """

    config: DeployConfig
    api: ApiClient | None = None
    tags: TagIndex = field(default_factory=TagIndex)
    cwd: Path = field(default_factory=Path.cwd)
    settle: SettlePolicy = field(default_factory=SettlePolicy)
    build_images: bool = True
    force_redeploy: bool = False
    sleep: Callable[[float], None] = time.sleep
