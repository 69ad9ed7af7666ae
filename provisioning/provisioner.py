"""Deploys components one at a time, each only after its dependencies are confirmed."""

import logging
from typing import Any, Dict, Optional, Sequence, Tuple

from eth_utils import is_hex_address, to_checksum_address

from chain_client.client import ChainClient
from chain_client.models import ContractSpec, DeployedComponent
from wallet_core.models import Identity

from .confirmation import ConfirmationPolicy, submit_and_confirm
from .errors import DeploymentFailure

logger = logging.getLogger(__name__)


class ComponentProvisioner:
    """Deploys contract specs and remembers every confirmed component.

    A constructor argument that is an address must name a component this
    provisioner has already confirmed, or the acting identity itself.
    """

    def __init__(
        self,
        client: ChainClient,
        identity: Identity,
        policy: Optional[ConfirmationPolicy] = None,
    ) -> None:
        self._client = client
        self._identity = identity
        self._policy = policy or ConfirmationPolicy()
        self._confirmed: Dict[str, DeployedComponent] = {}

    @property
    def components(self) -> Tuple[DeployedComponent, ...]:
        return tuple(self._confirmed.values())

    def is_confirmed(self, address: str) -> bool:
        return address.lower() in self._confirmed

    def deploy(
        self,
        spec: ContractSpec,
        constructor_args: Sequence[Any] = (),
        name: Optional[str] = None,
    ) -> DeployedComponent:
        label = name or spec.name
        args = self._resolve_args(label, constructor_args)
        receipt = submit_and_confirm(
            lambda: self._client.deploy(spec, self._identity, args),
            self._policy,
            DeploymentFailure,
            component=label,
            action=f"Deployment of {label}",
        )
        if not receipt.contract_address:
            raise DeploymentFailure(
                f"Deployment of {label} confirmed without a contract address (tx {receipt.tx_hash})",
                component=label,
            )

        component = DeployedComponent(
            name=label,
            address=to_checksum_address(receipt.contract_address),
            abi=spec.abi,
            tx_hash=receipt.tx_hash,
        )
        self._confirmed[component.address.lower()] = component
        logger.info("%s deployed at: %s", label, component.address)
        return component

    def _resolve_args(self, label: str, constructor_args: Sequence[Any]) -> Tuple[Any, ...]:
        resolved = []
        for arg in constructor_args:
            if isinstance(arg, DeployedComponent):
                if self._confirmed.get(arg.address.lower()) != arg:
                    raise DeploymentFailure(
                        f"{label} depends on {arg.name}, which this run has not confirmed.",
                        component=label,
                    )
                resolved.append(arg.address)
            elif isinstance(arg, str) and is_hex_address(arg):
                if not self.is_confirmed(arg) and arg.lower() != self._identity.address.lower():
                    raise DeploymentFailure(
                        f"{label} constructor address {arg} is not a confirmed component.",
                        component=label,
                    )
                resolved.append(to_checksum_address(arg))
            else:
                resolved.append(arg)
        return tuple(resolved)
