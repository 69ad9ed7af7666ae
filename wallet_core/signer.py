"""Signing surface used by the chain client to submit transactions."""

import logging
from typing import Any, Dict, Iterable, Protocol, Tuple

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from .models import Identity

logger = logging.getLogger(__name__)


class SignerError(RuntimeError):
    """Raised when a transaction cannot be signed for the requested identity."""


class Signer(Protocol):
    def list_identities(self) -> Tuple[Identity, ...]:
        ...

    def submit(self, transaction: Dict[str, Any], identity: Identity) -> str:
        ...


class LocalKeySigner:
    """Signs offline with private keys and broadcasts the raw transaction."""

    def __init__(self, w3: Web3, private_keys: Iterable[str]) -> None:
        self._w3 = w3
        self._accounts: Dict[str, LocalAccount] = {}
        for key in private_keys:
            account = Account.from_key(key)
            self._accounts[account.address] = account

    def list_identities(self) -> Tuple[Identity, ...]:
        return tuple(
            Identity(address=address, label=f"local-{index}")
            for index, address in enumerate(self._accounts)
        )

    def submit(self, transaction: Dict[str, Any], identity: Identity) -> str:
        account = self._account_for(identity)
        prepared = dict(transaction)
        prepared["from"] = account.address
        # Nonces come from the pending pool so sequential submissions never collide.
        prepared.setdefault("nonce", self._w3.eth.get_transaction_count(account.address, "pending"))
        prepared.setdefault("chainId", self._w3.eth.chain_id)
        signed = account.sign_transaction(prepared)
        tx_hash = self._w3.eth.send_raw_transaction(signed.raw_transaction)
        logger.debug("Broadcast %s from %s", Web3.to_hex(tx_hash), account.address)
        return Web3.to_hex(tx_hash)

    def _account_for(self, identity: Identity) -> LocalAccount:
        address = Web3.to_checksum_address(identity.address)
        if address not in self._accounts:
            raise SignerError(f"No private key loaded for {identity.address}.")
        return self._accounts[address]


class NodeAccountSigner:
    """Delegates signing to accounts the connected node manages (e.g. a Hardhat node)."""

    def __init__(self, w3: Web3) -> None:
        self._w3 = w3

    def list_identities(self) -> Tuple[Identity, ...]:
        return tuple(
            Identity(address=Web3.to_checksum_address(address), label=f"node-{index}")
            for index, address in enumerate(self._w3.eth.accounts)
        )

    def submit(self, transaction: Dict[str, Any], identity: Identity) -> str:
        prepared = dict(transaction)
        prepared["from"] = Web3.to_checksum_address(identity.address)
        tx_hash = self._w3.eth.send_transaction(prepared)
        logger.debug("Submitted %s from node account %s", Web3.to_hex(tx_hash), identity.address)
        return Web3.to_hex(tx_hash)
