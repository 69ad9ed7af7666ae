"""Selection of the acting identity from the signer collaborator."""

import logging

from chain_client.client import ChainClient, ChainClientError
from wallet_core.models import Identity, IdentitySelector

from .errors import IdentityUnavailable

logger = logging.getLogger(__name__)


def resolve_identity(client: ChainClient, selector: IdentitySelector) -> Identity:
    try:
        identities = client.list_identities()
    except (ChainClientError, OSError) as exc:
        raise IdentityUnavailable(f"Could not list signing identities: {exc}", cause=exc) from exc

    if not identities:
        raise IdentityUnavailable("No signing identity is available.")

    if selector.address:
        wanted = selector.address.lower()
        for identity in identities:
            if identity.address.lower() == wanted:
                return _selected(identity)
        raise IdentityUnavailable(f"No signing identity matches {selector.describe()}.")

    if not 0 <= selector.index < len(identities):
        raise IdentityUnavailable(
            f"No signing identity at {selector.describe()}; {len(identities)} available."
        )
    return _selected(identities[selector.index])


def _selected(identity: Identity) -> Identity:
    logger.info("Deploying contracts with: %s", identity.address)
    return identity
