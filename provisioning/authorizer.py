"""Grants a spender an allowance on a token, one confirmed approval at a time."""

import logging
from typing import Optional

from chain_client.client import ChainClient
from chain_client.models import DeployedComponent, TransactionReceipt
from wallet_core.models import Identity

from .confirmation import ConfirmationPolicy, submit_and_confirm
from .errors import AuthorizationFailure

logger = logging.getLogger(__name__)


class Authorizer:
    def __init__(
        self,
        client: ChainClient,
        identity: Identity,
        policy: Optional[ConfirmationPolicy] = None,
    ) -> None:
        self._client = client
        self._identity = identity
        self._policy = policy or ConfirmationPolicy()

    def authorize(
        self, token: DeployedComponent, spender: DeployedComponent, amount: int
    ) -> TransactionReceipt:
        """Set (not add to) the allowance; ``0`` revokes."""
        if amount < 0:
            raise ValueError("Allowance amount must be non-negative.")

        receipt = submit_and_confirm(
            lambda: self._client.call(token, self._identity, "approve", (spender.address, amount)),
            self._policy,
            AuthorizationFailure,
            component=token.name,
            action=f"{token.name}.approve({spender.name})",
        )
        logger.info("Approved %s to spend %s %s", spender.name, amount, token.name)
        return receipt
