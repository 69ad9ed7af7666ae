"""Runs identity resolution, provisioning, pair derivation and approvals in order."""

import logging
from typing import Any, Dict, Optional, Tuple

from chain_client.client import ChainClient, UnknownContractError
from chain_client.models import DeployedComponent
from wallet_core.models import Identity, IdentitySelector

from .authorizer import Authorizer
from .confirmation import ConfirmationPolicy
from .errors import DeploymentFailure
from .identity import resolve_identity
from .models import ApprovalRecord, ComponentRef, ComponentStep, DeploymentPlan, ProvisioningReport
from .plan import validate_plan
from .provisioner import ComponentProvisioner
from .resolver import DerivedEntityResolver

logger = logging.getLogger(__name__)


class Orchestrator:
    """All-or-nothing from the caller's view: the first failure propagates.

    Components confirmed before a failure stay on-chain; nothing is rolled back.
    """

    def __init__(
        self,
        client: ChainClient,
        plan: DeploymentPlan,
        selector: Optional[IdentitySelector] = None,
        policy: Optional[ConfirmationPolicy] = None,
    ) -> None:
        validate_plan(plan)
        self._client = client
        self._plan = plan
        self._selector = selector or IdentitySelector()
        self._policy = policy or ConfirmationPolicy()

    def run(self) -> ProvisioningReport:
        identity = resolve_identity(self._client, self._selector)

        provisioner = ComponentProvisioner(self._client, identity, self._policy)
        components: Dict[str, DeployedComponent] = {}
        for step in self._plan.steps:
            components[step.key] = self._deploy_step(provisioner, step, components)

        derived = self._plan.derived
        resolver = DerivedEntityResolver(
            self._client,
            identity,
            self._policy,
            method=derived.method,
            event_name=derived.event_name,
            event_field=derived.event_field,
            label=derived.label,
            is_confirmed=provisioner.is_confirmed,
        )
        pair_address = resolver.create_derived_entity(
            components[derived.factory_key],
            components[derived.token_a_key].address,
            components[derived.token_b_key].address,
        )

        approvals = self._authorize(identity, components)

        return ProvisioningReport(
            identity=identity,
            components=tuple((step.key, components[step.key]) for step in self._plan.steps),
            pair_address=pair_address,
            approvals=approvals,
        )

    def _deploy_step(
        self,
        provisioner: ComponentProvisioner,
        step: ComponentStep,
        components: Dict[str, DeployedComponent],
    ) -> DeployedComponent:
        try:
            spec = self._client.get_factory(step.contract_name)
        except UnknownContractError as exc:
            raise DeploymentFailure(str(exc), component=step.display_name, cause=exc) from exc

        args: Tuple[Any, ...] = tuple(
            components[arg.key] if isinstance(arg, ComponentRef) else arg
            for arg in step.constructor_args
        )
        return provisioner.deploy(spec, args, name=step.display_name)

    def _authorize(
        self, identity: Identity, components: Dict[str, DeployedComponent]
    ) -> Tuple[ApprovalRecord, ...]:
        authorizer = Authorizer(self._client, identity, self._policy)
        records = []
        for approval in self._plan.approvals:
            token = components[approval.token_key]
            spender = components[approval.spender_key]
            receipt = authorizer.authorize(token, spender, self._plan.allowance)
            records.append(
                ApprovalRecord(
                    token=token.address,
                    spender=spender.address,
                    amount=self._plan.allowance,
                    tx_hash=receipt.tx_hash,
                )
            )
        return tuple(records)
