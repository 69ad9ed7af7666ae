"""Chain client models for contract specs, components, receipts and events."""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class ContractSpec:
    """Deployable contract descriptor: logical name, ABI and creation bytecode."""

    name: str
    abi: Tuple[Dict[str, Any], ...]
    bytecode: str

    def event_abis(self) -> Tuple[Dict[str, Any], ...]:
        """Named (non-anonymous) event entries, the ones a log topic can identify."""
        return tuple(
            entry
            for entry in self.abi
            if entry.get("type") == "event" and not entry.get("anonymous")
        )


@dataclass(frozen=True)
class DeployedComponent:
    name: str
    address: str
    abi: Tuple[Dict[str, Any], ...]
    tx_hash: str


@dataclass(frozen=True)
class Event:
    name: str
    args: Mapping[str, Any]
    address: str = ""
    log_index: int = 0


@dataclass(frozen=True)
class TransactionReceipt:
    tx_hash: str
    status: int
    block_number: int
    events: Tuple[Event, ...] = ()
    contract_address: Optional[str] = None
    gas_used: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status == 1
