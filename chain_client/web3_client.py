"""web3.py-backed chain client: build, sign, broadcast and confirm transactions."""

import logging
from typing import Any, Dict, Iterable, Mapping, Sequence, Tuple

from eth_utils import event_abi_to_log_topic
from web3 import Web3
from web3.exceptions import MismatchedABI, TimeExhausted, Web3Exception

from wallet_core.models import Identity
from wallet_core.signer import Signer, SignerError

from .artifacts import ArtifactRegistry
from .client import ChainClientError, ConfirmationTimeout, TransactionRejected, TransactionReverted
from .models import ContractSpec, DeployedComponent, Event, TransactionReceipt

logger = logging.getLogger(__name__)

_NODE_ERRORS = (Web3Exception, SignerError, ValueError, OSError)


class Web3PendingTx:
    def __init__(self, client: "Web3ChainClient", tx_hash: str) -> None:
        self._client = client
        self._tx_hash = tx_hash

    @property
    def tx_hash(self) -> str:
        return self._tx_hash

    def wait(self, timeout: float, poll_interval: float) -> TransactionReceipt:
        try:
            raw = self._client.w3.eth.wait_for_transaction_receipt(
                self._tx_hash, timeout=timeout, poll_latency=poll_interval
            )
        except TimeExhausted as exc:
            raise ConfirmationTimeout(self._tx_hash, timeout) from exc
        except _NODE_ERRORS as exc:
            raise ChainClientError(f"Waiting for {self._tx_hash} failed: {exc}") from exc
        receipt = self._client.to_receipt(raw)
        if not receipt.succeeded:
            raise TransactionReverted(self._tx_hash)
        return receipt


class Web3ChainClient:
    """Chain client over a web3 provider with a pluggable signer."""

    def __init__(self, w3: Web3, signer: Signer, artifacts: ArtifactRegistry) -> None:
        self.w3 = w3
        self._signer = signer
        self._artifacts = artifacts
        self._event_abis: Dict[bytes, Dict[str, Any]] | None = None

    @classmethod
    def from_rpc_url(
        cls, rpc_url: str, signer_factory, artifacts: ArtifactRegistry
    ) -> "Web3ChainClient":
        w3 = Web3(Web3.HTTPProvider(rpc_url))
        return cls(w3, signer_factory(w3), artifacts)

    def list_identities(self) -> Tuple[Identity, ...]:
        try:
            return self._signer.list_identities()
        except _NODE_ERRORS as exc:
            raise ChainClientError(f"Listing identities failed: {exc}") from exc

    def get_factory(self, contract_name: str) -> ContractSpec:
        return self._artifacts.get(contract_name)

    def deploy(
        self, spec: ContractSpec, identity: Identity, constructor_args: Sequence[Any]
    ) -> Web3PendingTx:
        contract = self.w3.eth.contract(abi=list(spec.abi), bytecode=spec.bytecode)
        try:
            transaction = contract.constructor(*constructor_args).build_transaction(
                {"from": identity.address}
            )
            tx_hash = self._signer.submit(transaction, identity)
        except _NODE_ERRORS as exc:
            raise TransactionRejected(f"Deploying {spec.name} failed: {exc}") from exc
        logger.debug("Deployment of %s submitted as %s", spec.name, tx_hash)
        return Web3PendingTx(self, tx_hash)

    def call(
        self,
        component: DeployedComponent,
        identity: Identity,
        method: str,
        args: Sequence[Any],
    ) -> Web3PendingTx:
        contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(component.address), abi=list(component.abi)
        )
        try:
            function = getattr(contract.functions, method)
            transaction = function(*args).build_transaction({"from": identity.address})
            tx_hash = self._signer.submit(transaction, identity)
        except _NODE_ERRORS as exc:
            raise TransactionRejected(
                f"Calling {component.name}.{method} failed: {exc}"
            ) from exc
        logger.debug("%s.%s submitted as %s", component.name, method, tx_hash)
        return Web3PendingTx(self, tx_hash)

    def to_receipt(self, raw: Mapping[str, Any]) -> TransactionReceipt:
        contract_address = raw.get("contractAddress")
        return TransactionReceipt(
            tx_hash=Web3.to_hex(raw["transactionHash"]),
            status=int(raw["status"]),
            block_number=int(raw["blockNumber"]),
            events=tuple(self._decode_logs(raw.get("logs", ()))),
            contract_address=Web3.to_checksum_address(contract_address) if contract_address else None,
            gas_used=int(raw.get("gasUsed", 0)),
        )

    def _decode_logs(self, logs: Iterable[Mapping[str, Any]]) -> Iterable[Event]:
        event_abis = self._known_event_abis()
        for log in logs:
            topics = log.get("topics") or ()
            address = Web3.to_checksum_address(log["address"])
            log_index = int(log.get("logIndex", 0))
            event_abi = event_abis.get(bytes(topics[0])) if topics else None
            if event_abi is None:
                yield Event(name="", args={}, address=address, log_index=log_index)
                continue
            contract = self.w3.eth.contract(address=address, abi=[event_abi])
            try:
                decoded = getattr(contract.events, event_abi["name"])().process_log(log)
            except MismatchedABI:
                logger.debug("Log %s at %s does not match %s", log_index, address, event_abi["name"])
                yield Event(name="", args={}, address=address, log_index=log_index)
                continue
            yield Event(
                name=decoded["event"],
                args=dict(decoded["args"]),
                address=address,
                log_index=log_index,
            )

    def _known_event_abis(self) -> Dict[bytes, Dict[str, Any]]:
        if self._event_abis is None:
            event_abis: Dict[bytes, Dict[str, Any]] = {}
            for spec in self._artifacts.all_specs():
                for entry in spec.event_abis():
                    event_abis.setdefault(event_abi_to_log_topic(entry), entry)
            self._event_abis = event_abis
        return self._event_abis
