"""Domain models for the provisioning plan and its report."""

from dataclasses import dataclass
from typing import Any, Dict, Tuple

from chain_client.models import DeployedComponent
from wallet_core.models import Identity


@dataclass(frozen=True)
class ComponentRef:
    """Constructor argument resolved to the address of an earlier step's component."""

    key: str


@dataclass(frozen=True)
class ComponentStep:
    key: str
    contract_name: str
    constructor_args: Tuple[Any, ...] = ()
    label: str = ""

    @property
    def display_name(self) -> str:
        return self.label or self.key

    @property
    def dependencies(self) -> Tuple[str, ...]:
        return tuple(arg.key for arg in self.constructor_args if isinstance(arg, ComponentRef))


@dataclass(frozen=True)
class DerivedEntityStep:
    factory_key: str
    token_a_key: str
    token_b_key: str
    method: str = "createPair"
    event_name: str = "PairCreated"
    event_field: str = "pair"
    label: str = "DEXPair"


@dataclass(frozen=True)
class ApprovalStep:
    token_key: str
    spender_key: str


@dataclass(frozen=True)
class DeploymentPlan:
    steps: Tuple[ComponentStep, ...]
    derived: DerivedEntityStep
    approvals: Tuple[ApprovalStep, ...]
    allowance: int


@dataclass(frozen=True)
class ApprovalRecord:
    token: str
    spender: str
    amount: int
    tx_hash: str


@dataclass(frozen=True)
class ProvisioningReport:
    identity: Identity
    components: Tuple[Tuple[str, DeployedComponent], ...]
    pair_address: str
    approvals: Tuple[ApprovalRecord, ...]

    def component(self, key: str) -> DeployedComponent:
        for component_key, component in self.components:
            if component_key == key:
                return component
        raise KeyError(f"Unknown component key: {key}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identity": self.identity.address,
            "components": [
                {
                    "key": key,
                    "name": component.name,
                    "address": component.address,
                    "tx_hash": component.tx_hash,
                }
                for key, component in self.components
            ],
            "pair_address": self.pair_address,
            "approvals": [
                {
                    "token": approval.token,
                    "spender": approval.spender,
                    "amount": str(approval.amount),
                    "tx_hash": approval.tx_hash,
                }
                for approval in self.approvals
            ],
        }
