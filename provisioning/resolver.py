"""Creates a derived entity and recovers its address from the receipt's events."""

import logging
from typing import Callable, Iterable, Optional

from eth_utils import is_address, to_checksum_address

from chain_client.client import ChainClient
from chain_client.models import DeployedComponent, Event
from wallet_core.models import Identity

from .confirmation import ConfirmationPolicy, submit_and_confirm
from .errors import AmbiguousEventFailure, DerivationFailure, EventNotFoundFailure

logger = logging.getLogger(__name__)

PAIR_CREATED = "PairCreated"


def event_named(name: str) -> Callable[[Event], bool]:
    return lambda event: event.name == name


def extract_single(
    events: Iterable[Event],
    predicate: Callable[[Event], bool],
    description: str,
    component: str = "",
) -> Event:
    """Return the only event matching ``predicate``.

    No match raises ``EventNotFoundFailure``; several matches raise
    ``AmbiguousEventFailure`` rather than picking the first.
    """
    matches = [event for event in events if predicate(event)]
    if not matches:
        raise EventNotFoundFailure(f"No {description} event in receipt.", component=component)
    if len(matches) > 1:
        positions = ", ".join(str(event.log_index) for event in matches)
        raise AmbiguousEventFailure(
            f"{len(matches)} {description} events in receipt (log indexes {positions}).",
            component=component,
        )
    return matches[0]


class DerivedEntityResolver:
    def __init__(
        self,
        client: ChainClient,
        identity: Identity,
        policy: Optional[ConfirmationPolicy] = None,
        method: str = "createPair",
        event_name: str = PAIR_CREATED,
        event_field: str = "pair",
        label: str = "DEXPair",
        is_confirmed: Optional[Callable[[str], bool]] = None,
    ) -> None:
        self._client = client
        self._identity = identity
        self._policy = policy or ConfirmationPolicy()
        self._method = method
        self._event_name = event_name
        self._event_field = event_field
        self._label = label
        self._is_confirmed = is_confirmed

    def create_derived_entity(
        self, factory: DeployedComponent, token_a: str, token_b: str
    ) -> str:
        if self._is_confirmed is not None:
            for address in (factory.address, token_a, token_b):
                if not self._is_confirmed(address):
                    raise DerivationFailure(
                        f"{address} is not a confirmed component; refusing to call {self._method}.",
                        component=self._label,
                    )

        # Token order is passed through; canonicalisation is the factory's job.
        receipt = submit_and_confirm(
            lambda: self._client.call(factory, self._identity, self._method, (token_a, token_b)),
            self._policy,
            DerivationFailure,
            component=self._label,
            action=f"{factory.name}.{self._method}",
        )

        event = extract_single(
            receipt.events,
            event_named(self._event_name),
            self._event_name,
            component=self._label,
        )
        value = event.args.get(self._event_field)
        if not isinstance(value, str) or not is_address(value):
            raise EventNotFoundFailure(
                f"{self._event_name} event has no address-typed '{self._event_field}' argument.",
                component=self._label,
            )

        address = to_checksum_address(value)
        logger.info("%s deployed at: %s", self._label, address)
        return address
