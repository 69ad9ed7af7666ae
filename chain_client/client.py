"""Collaborator protocols the provisioning core talks to."""

from typing import Any, Protocol, Sequence, Tuple

from wallet_core.models import Identity

from .models import ContractSpec, DeployedComponent, TransactionReceipt


class ChainClientError(RuntimeError):
    """Base class for failures raised by a chain client."""


class TransactionRejected(ChainClientError):
    """Raised when a transaction cannot be built, signed or broadcast."""


class TransactionReverted(ChainClientError):
    """Raised when a confirmed transaction reports a failed status."""

    def __init__(self, tx_hash: str, reason: str = "") -> None:
        message = f"Transaction {tx_hash} reverted"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.tx_hash = tx_hash
        self.reason = reason


class ConfirmationTimeout(ChainClientError):
    """Raised when a receipt is not observed within the confirmation timeout."""

    def __init__(self, tx_hash: str, timeout: float) -> None:
        super().__init__(f"Transaction {tx_hash} not confirmed within {timeout}s")
        self.tx_hash = tx_hash
        self.timeout = timeout


class UnknownContractError(ChainClientError):
    """Raised when no ABI/bytecode is known for a contract name."""


class PendingTx(Protocol):
    @property
    def tx_hash(self) -> str:
        ...

    def wait(self, timeout: float, poll_interval: float) -> TransactionReceipt:
        ...


class ChainClient(Protocol):
    def list_identities(self) -> Tuple[Identity, ...]:
        ...

    def get_factory(self, contract_name: str) -> ContractSpec:
        ...

    def deploy(
        self, spec: ContractSpec, identity: Identity, constructor_args: Sequence[Any]
    ) -> PendingTx:
        ...

    def call(
        self,
        component: DeployedComponent,
        identity: Identity,
        method: str,
        args: Sequence[Any],
    ) -> PendingTx:
        ...
