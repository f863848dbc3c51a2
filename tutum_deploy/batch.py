"""Sequential execution of deploy steps."""

from collections.abc import Callable
from dataclasses import dataclass

from tutum_deploy.exceptions import BatchAbortedError
from tutum_deploy.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class Step:
    """A named, fallible unit of work."""

    description: str
    run: Callable[[], None]


class Batch:
    """Ordered list of steps run one at a time.

    The first failing step aborts the batch; later steps never run and
    nothing already applied is rolled back.
    """

    def __init__(self, name: str):
        self.name = name
        self.steps: list[Step] = []

    def __len__(self) -> int:
        return len(self.steps)

    def push(self, description: str, fn: Callable, *args) -> "Batch":
        """Append a step calling ``fn(*args)``."""
        self.steps.append(Step(description, lambda: fn(*args)))
        return self

    def run(self) -> int:
        """Run every step in order.

        Returns:
            Number of steps completed

        Raises:
            BatchAbortedError: Wrapping the first failure
        """
        logger.debug(f"Running {self.name}: {len(self.steps)} step(s)")
        for done, step in enumerate(self.steps):
            logger.debug(f"[{done + 1}/{len(self.steps)}] {step.description}")
            try:
                step.run()
            except Exception as e:
                logger.debug(f"{self.name} failed at '{step.description}': {e}")
                raise BatchAbortedError(step.description, e) from e
        return len(self.steps)
