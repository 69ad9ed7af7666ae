from .artifacts import ArtifactRegistry, spec_from_artifact
from .client import (
    ChainClient,
    ChainClientError,
    ConfirmationTimeout,
    PendingTx,
    TransactionRejected,
    TransactionReverted,
    UnknownContractError,
)
from .models import ContractSpec, DeployedComponent, Event, TransactionReceipt
from .simulator import BUILTIN_SPECS, InMemoryChain, SimulationError
from .web3_client import Web3ChainClient, Web3PendingTx

__all__ = [
    "ArtifactRegistry",
    "BUILTIN_SPECS",
    "ChainClient",
    "ChainClientError",
    "ConfirmationTimeout",
    "ContractSpec",
    "DeployedComponent",
    "Event",
    "InMemoryChain",
    "PendingTx",
    "SimulationError",
    "TransactionReceipt",
    "TransactionRejected",
    "TransactionReverted",
    "UnknownContractError",
    "Web3ChainClient",
    "Web3PendingTx",
    "spec_from_artifact",
]
