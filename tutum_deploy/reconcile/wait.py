"""Polling a remote entity until it settles in an expected state."""

from tutum_deploy.context import DeployContext
from tutum_deploy.exceptions import RemoteStateError, SettleTimeoutError
from tutum_deploy.logging_config import get_logger
from tutum_deploy.models.remote import TERMINAL_STATES, RemoteRecord

logger = get_logger(__name__)


def wait_for_state(
    ctx: DeployContext,
    path: str,
    label: str,
    accept: set[str],
    fail: set[str] | None = None,
    pending: set[str] | None = None,
) -> RemoteRecord:
    """Poll ``path`` until the record's state is in ``accept``.

    Args:
        ctx: Deploy context
        path: API path of the single resource
        label: Name used in log and error messages
        accept: States that end the wait successfully
        fail: States that end the wait with an error, terminal states always do
        pending: States the record had before the action. Reads still showing
            one of them are taken as not yet updated until another state is seen

    Returns:
        The last record fetched

    Raises:
        RemoteStateError: If a fail state is reached
        SettleTimeoutError: If no accepted state is seen within the policy
    """
    fail = set(fail or ()) | TERMINAL_STATES
    pending = set(pending or ()) - TERMINAL_STATES
    state = None
    for attempt, delay in enumerate(ctx.settle.delays(), start=1):
        ctx.sleep(delay)
        record = RemoteRecord.model_validate(ctx.api.fetch(path, f"polling {label}"))
        state = record.state
        logger.debug(f"{label} state: {state} (poll {attempt}/{ctx.settle.attempts})")
        if state in accept:
            return record
        if state in pending:
            logger.debug(f"{label} still reports {state}, not updated yet")
            continue
        pending = set()
        if state in fail:
            raise RemoteStateError(f"{label} reached state {state}")

    raise SettleTimeoutError(
        f"{label} did not reach {' or '.join(sorted(accept))}",
        f"Last state: {state}",
    )
