"""Submit-then-confirm helper shared by every phase of the run."""

from dataclasses import dataclass
from typing import Callable, Type

from chain_client.client import ChainClientError, ConfirmationTimeout, PendingTx
from chain_client.models import TransactionReceipt

from .errors import ProvisioningError, TimeoutFailure


@dataclass(frozen=True)
class ConfirmationPolicy:
    timeout: float = 120.0
    poll_interval: float = 0.1


def submit_and_confirm(
    submit: Callable[[], PendingTx],
    policy: ConfirmationPolicy,
    failure: Type[ProvisioningError],
    component: str,
    action: str,
) -> TransactionReceipt:
    """Run ``submit`` and block until its transaction is confirmed.

    Client errors become ``failure``; an expired wait becomes ``TimeoutFailure``
    tagged with the same phase.
    """
    try:
        pending = submit()
    except ChainClientError as exc:
        raise failure(f"{action} could not be submitted: {exc}", component=component, cause=exc) from exc

    try:
        return pending.wait(policy.timeout, policy.poll_interval)
    except ConfirmationTimeout as exc:
        raise TimeoutFailure(
            f"{action} not confirmed within {policy.timeout}s (tx {exc.tx_hash})",
            phase=failure.phase,
            component=component,
            cause=exc,
        ) from exc
    except ChainClientError as exc:
        raise failure(f"{action} failed: {exc}", component=component, cause=exc) from exc
