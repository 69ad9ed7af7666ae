"""Deterministic in-memory chain for dry runs without network calls."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from eth_utils import is_address, keccak, to_checksum_address

from wallet_core.models import Identity

from .client import (
    ConfirmationTimeout,
    TransactionRejected,
    TransactionReverted,
    UnknownContractError,
)
from .models import ContractSpec, DeployedComponent, Event, TransactionReceipt


class SimulationError(ValueError):
    """Raised when the simulated chain is configured inconsistently."""


class _Revert(Exception):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


_DEFAULT_GAS_USED = 21_000
_DEPLOY_GAS_USED = 1_000_000
_ZERO_ADDRESS = "0x" + "00" * 20


def _fn(name: str, inputs: Sequence[Tuple[str, str]], outputs: Sequence[str] = ()) -> Dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": [{"name": arg, "type": kind} for arg, kind in inputs],
        "outputs": [{"name": "", "type": kind} for kind in outputs],
        "stateMutability": "nonpayable",
    }


def _event(name: str, inputs: Sequence[Tuple[str, str, bool]]) -> Dict[str, Any]:
    return {
        "type": "event",
        "name": name,
        "anonymous": False,
        "inputs": [
            {"name": arg, "type": kind, "indexed": indexed} for arg, kind, indexed in inputs
        ],
    }


def _constructor(inputs: Sequence[Tuple[str, str]]) -> Dict[str, Any]:
    return {
        "type": "constructor",
        "inputs": [{"name": arg, "type": kind} for arg, kind in inputs],
        "stateMutability": "nonpayable",
    }


_TRANSFER = _event("Transfer", (("from", "address", True), ("to", "address", True), ("value", "uint256", False)))
_APPROVAL = _event("Approval", (("owner", "address", True), ("spender", "address", True), ("value", "uint256", False)))

BUILTIN_SPECS: Dict[str, ContractSpec] = {
    "ERC20Token": ContractSpec(
        name="ERC20Token",
        abi=(
            _constructor((("name", "string"), ("symbol", "string"), ("initialSupply", "uint256"))),
            _fn("approve", (("spender", "address"), ("amount", "uint256")), ("bool",)),
            _fn("allowance", (("owner", "address"), ("spender", "address")), ("uint256",)),
            _fn("balanceOf", (("account", "address"),), ("uint256",)),
            _TRANSFER,
            _APPROVAL,
        ),
        bytecode="0x",
    ),
    "WETH": ContractSpec(
        name="WETH",
        abi=(
            _constructor(()),
            _fn("approve", (("spender", "address"), ("amount", "uint256")), ("bool",)),
            _fn("deposit", ()),
            _TRANSFER,
            _APPROVAL,
        ),
        bytecode="0x",
    ),
    "DEXFactory": ContractSpec(
        name="DEXFactory",
        abi=(
            _constructor(()),
            _fn("createPair", (("tokenA", "address"), ("tokenB", "address")), ("address",)),
            _fn("getPair", (("tokenA", "address"), ("tokenB", "address")), ("address",)),
            _event(
                "PairCreated",
                (
                    ("token0", "address", True),
                    ("token1", "address", True),
                    ("pair", "address", False),
                    ("allPairsLength", "uint256", False),
                ),
            ),
        ),
        bytecode="0x",
    ),
    "DEXRouter": ContractSpec(
        name="DEXRouter",
        abi=(
            _constructor((("factory", "address"), ("WETH", "address"))),
            _fn("factory", (), ("address",)),
            _fn("WETH", (), ("address",)),
        ),
        bytecode="0x",
    ),
    "DEXPair": ContractSpec(
        name="DEXPair",
        abi=(
            _fn("token0", (), ("address",)),
            _fn("token1", (), ("address",)),
            _TRANSFER,
            _APPROVAL,
        ),
        bytecode="0x",
    ),
}


@dataclass
class _ContractState:
    name: str
    address: str
    constructor_args: Tuple[Any, ...]
    storage: Dict[Any, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class InMemoryPendingTx:
    tx_hash: str
    receipt: Optional[TransactionReceipt] = None
    revert_reason: str = ""
    times_out: bool = False

    def wait(self, timeout: float, poll_interval: float) -> TransactionReceipt:
        if self.times_out:
            raise ConfirmationTimeout(self.tx_hash, timeout)
        if self.receipt is None or not self.receipt.succeeded:
            raise TransactionReverted(self.tx_hash, self.revert_reason)
        return self.receipt


class InMemoryChain:
    """Network-free chain client modelling the DEX contracts.

    Unknown contract names can be registered through ``specs``; they deploy
    and accept calls declared in their ABI but have no behaviour.
    """

    def __init__(
        self,
        identities: Iterable[str] = (),
        specs: Iterable[ContractSpec] = (),
    ) -> None:
        addresses = tuple(identities) or (_derive_address("in-memory-identity", 0),)
        self._identities = tuple(
            Identity(address=to_checksum_address(address), label=f"sim-{index}")
            for index, address in enumerate(addresses)
        )
        self._specs: Dict[str, ContractSpec] = dict(BUILTIN_SPECS)
        for spec in specs:
            self._specs[spec.name] = spec
        self._contracts: Dict[str, _ContractState] = {}
        self._nonces: Dict[str, int] = {}
        self._failures: Dict[str, str] = {}
        self._block_number = 0
        self.submitted: List[Tuple[str, str, Tuple[Any, ...]]] = []

    def inject_failure(self, target: str, kind: str = "revert") -> None:
        """Fail the next transaction aimed at ``target``.

        ``target`` is a contract name for deployments or
        ``<component name>.<method>`` (e.g. ``TokenA.approve``) for calls. ``kind`` is
        ``revert``, ``reject`` or ``timeout``.
        """
        if kind not in ("revert", "reject", "timeout"):
            raise SimulationError(f"Unsupported failure kind: {kind}")
        self._failures[target] = kind

    def list_identities(self) -> Tuple[Identity, ...]:
        return self._identities

    def get_factory(self, contract_name: str) -> ContractSpec:
        if contract_name not in self._specs:
            raise UnknownContractError(f"No artifact found for contract: {contract_name}")
        return self._specs[contract_name]

    def deploy(
        self, spec: ContractSpec, identity: Identity, constructor_args: Sequence[Any]
    ) -> InMemoryPendingTx:
        sender = self._require_identity(identity)
        args = tuple(constructor_args)
        self.submitted.append(("deploy", spec.name, args))
        failure = self._failures.pop(spec.name, None)
        if failure == "reject":
            raise TransactionRejected(f"Deploying {spec.name} failed: rejected by node")

        nonce = self._next_nonce(sender)
        tx_hash = _derive_hash("deploy", sender, nonce)
        if failure == "timeout":
            return InMemoryPendingTx(tx_hash=tx_hash, times_out=True)
        if failure == "revert":
            return self._reverted(tx_hash, "constructor reverted")

        address = _derive_address(sender, nonce)
        state = _ContractState(name=spec.name, address=address, constructor_args=args)
        try:
            events = _CONSTRUCTORS.get(spec.name, _no_constructor)(self, state, sender)
        except _Revert as exc:
            return self._reverted(tx_hash, exc.reason)
        self._contracts[address] = state
        return InMemoryPendingTx(
            tx_hash=tx_hash,
            receipt=self._mine(tx_hash, events, contract_address=address, gas_used=_DEPLOY_GAS_USED),
        )

    def call(
        self,
        component: DeployedComponent,
        identity: Identity,
        method: str,
        args: Sequence[Any],
    ) -> InMemoryPendingTx:
        sender = self._require_identity(identity)
        call_args = tuple(args)
        self.submitted.append(("call", f"{component.name}.{method}", call_args))
        state = self._contracts.get(to_checksum_address(component.address))
        if state is None:
            raise TransactionRejected(f"No contract deployed at {component.address}")
        if not _abi_has_function(component.abi, method):
            raise TransactionRejected(f"Calling {component.name}.{method} failed: unknown function")

        failure = self._failures.pop(f"{component.name}.{method}", None)
        if failure == "reject":
            raise TransactionRejected(f"Calling {component.name}.{method} failed: rejected by node")

        tx_hash = _derive_hash("call", sender, self._next_nonce(sender))
        if failure == "timeout":
            return InMemoryPendingTx(tx_hash=tx_hash, times_out=True)
        if failure == "revert":
            return self._reverted(tx_hash, "execution reverted")

        handler = _METHODS.get((state.name, method))
        try:
            events = handler(self, state, sender, call_args) if handler else []
        except _Revert as exc:
            return self._reverted(tx_hash, exc.reason)
        except (TypeError, ValueError) as exc:
            raise TransactionRejected(
                f"Calling {component.name}.{method} failed: bad arguments {call_args!r}"
            ) from exc
        return InMemoryPendingTx(tx_hash=tx_hash, receipt=self._mine(tx_hash, events))

    def allowance(self, token_address: str, owner: str, spender: str) -> int:
        state = self._contracts[to_checksum_address(token_address)]
        allowances = state.storage.get("allowances", {})
        return allowances.get((to_checksum_address(owner), to_checksum_address(spender)), 0)

    def get_pair(self, token_a: str, token_b: str) -> str:
        for state in self._contracts.values():
            if state.name == "DEXFactory":
                pair = state.storage.get("pairs", {}).get(_sorted_pair(token_a, token_b))
                if pair:
                    return pair
        return _ZERO_ADDRESS

    def contract_at(self, address: str) -> Optional[str]:
        state = self._contracts.get(to_checksum_address(address))
        return state.name if state else None

    def _require_identity(self, identity: Identity) -> str:
        address = to_checksum_address(identity.address)
        if all(known.address != address for known in self._identities):
            raise TransactionRejected(f"Unknown sender: {identity.address}")
        return address

    def _next_nonce(self, sender: str) -> int:
        nonce = self._nonces.get(sender, 0)
        self._nonces[sender] = nonce + 1
        return nonce

    def _mine(
        self,
        tx_hash: str,
        events: Sequence[Event],
        contract_address: Optional[str] = None,
        gas_used: int = _DEFAULT_GAS_USED,
        status: int = 1,
    ) -> TransactionReceipt:
        self._block_number += 1
        return TransactionReceipt(
            tx_hash=tx_hash,
            status=status,
            block_number=self._block_number,
            events=tuple(
                Event(name=event.name, args=event.args, address=event.address, log_index=index)
                for index, event in enumerate(events)
            ),
            contract_address=contract_address,
            gas_used=gas_used,
        )

    def _reverted(self, tx_hash: str, reason: str) -> InMemoryPendingTx:
        receipt = self._mine(tx_hash, (), status=0)
        return InMemoryPendingTx(tx_hash=tx_hash, receipt=receipt, revert_reason=reason)

    def _deploy_internal(self, name: str, creator: str, salt: str, args: Tuple[Any, ...]) -> str:
        address = _derive_address(creator, salt)
        self._contracts[address] = _ContractState(name=name, address=address, constructor_args=args)
        return address


def _no_constructor(chain: InMemoryChain, state: _ContractState, sender: str) -> List[Event]:
    return []


def _erc20_constructor(chain: InMemoryChain, state: _ContractState, sender: str) -> List[Event]:
    if len(state.constructor_args) != 3:
        raise _Revert("ERC20Token expects (name, symbol, initialSupply)")
    _, _, supply = state.constructor_args
    minted = int(supply) * 10**18
    state.storage["balances"] = {sender: minted}
    state.storage["allowances"] = {}
    return [Event("Transfer", {"from": _ZERO_ADDRESS, "to": sender, "value": minted}, state.address)]


def _weth_constructor(chain: InMemoryChain, state: _ContractState, sender: str) -> List[Event]:
    state.storage["allowances"] = {}
    return []


def _router_constructor(chain: InMemoryChain, state: _ContractState, sender: str) -> List[Event]:
    if len(state.constructor_args) != 2:
        raise _Revert("DEXRouter expects (factory, WETH)")
    for value in state.constructor_args:
        if not is_address(value) or chain.contract_at(value) is None:
            raise _Revert(f"DEXRouter dependency {value!r} is not a deployed contract")
    state.storage["factory"], state.storage["WETH"] = state.constructor_args
    return []


def _approve(
    chain: InMemoryChain, state: _ContractState, sender: str, args: Tuple[Any, ...]
) -> List[Event]:
    spender, amount = args
    if not is_address(spender):
        raise _Revert("approve to invalid address")
    if int(amount) < 0 or int(amount) >= 2**256:
        raise _Revert("amount out of uint256 range")
    spender = to_checksum_address(spender)
    state.storage.setdefault("allowances", {})[(sender, spender)] = int(amount)
    return [Event("Approval", {"owner": sender, "spender": spender, "value": int(amount)}, state.address)]


def _create_pair(
    chain: InMemoryChain, state: _ContractState, sender: str, args: Tuple[Any, ...]
) -> List[Event]:
    token_a, token_b = args
    if not (is_address(token_a) and is_address(token_b)):
        raise _Revert("ZERO_ADDRESS")
    if to_checksum_address(token_a) == to_checksum_address(token_b):
        raise _Revert("IDENTICAL_ADDRESSES")
    key = _sorted_pair(token_a, token_b)
    if _ZERO_ADDRESS in key:
        raise _Revert("ZERO_ADDRESS")
    pairs = state.storage.setdefault("pairs", {})
    if key in pairs:
        raise _Revert("PAIR_EXISTS")
    pair = chain._deploy_internal("DEXPair", state.address, f"{key[0]}:{key[1]}", key)
    pairs[key] = pair
    return [
        Event(
            "PairCreated",
            {"token0": key[0], "token1": key[1], "pair": pair, "allPairsLength": len(pairs)},
            state.address,
        )
    ]


_CONSTRUCTORS: Dict[str, Callable[[InMemoryChain, _ContractState, str], List[Event]]] = {
    "ERC20Token": _erc20_constructor,
    "WETH": _weth_constructor,
    "DEXRouter": _router_constructor,
}

_METHODS: Dict[Tuple[str, str], Callable[..., List[Event]]] = {
    ("ERC20Token", "approve"): _approve,
    ("WETH", "approve"): _approve,
    ("DEXFactory", "createPair"): _create_pair,
}


def _abi_has_function(abi: Iterable[Dict[str, Any]], method: str) -> bool:
    return any(entry.get("type") == "function" and entry.get("name") == method for entry in abi)


def _sorted_pair(token_a: str, token_b: str) -> Tuple[str, str]:
    first, second = to_checksum_address(token_a), to_checksum_address(token_b)
    if int(first, 16) > int(second, 16):
        first, second = second, first
    return first, second


def _derive_address(creator: str, salt: Any) -> str:
    return to_checksum_address(keccak(text=f"{creator}:{salt}")[-20:])


def _derive_hash(kind: str, sender: str, nonce: int) -> str:
    return "0x" + keccak(text=f"{kind}:{sender}:{nonce}").hex()
