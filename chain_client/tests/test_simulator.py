"""Determinism and contract-behaviour tests for the in-memory chain."""

import unittest

from chain_client.client import (
    ConfirmationTimeout,
    TransactionRejected,
    TransactionReverted,
    UnknownContractError,
)
from chain_client.models import ContractSpec, DeployedComponent
from chain_client.simulator import InMemoryChain, SimulationError


class InMemoryChainTests(unittest.TestCase):
    def setUp(self) -> None:
        self.chain = InMemoryChain()
        self.identity = self.chain.list_identities()[0]

    def _deploy(self, chain: InMemoryChain, name: str, args=(), label: str = "") -> DeployedComponent:
        spec = chain.get_factory(name)
        receipt = chain.deploy(spec, self.identity, args).wait(timeout=1.0, poll_interval=0.1)
        return DeployedComponent(
            name=label or name, address=receipt.contract_address, abi=spec.abi, tx_hash=receipt.tx_hash
        )

    def _token(self, chain: InMemoryChain, label: str) -> DeployedComponent:
        return self._deploy(chain, "ERC20Token", (label, label[:4].upper(), 1_000_000), label)

    def test_deterministic_addresses(self) -> None:
        other = InMemoryChain()
        self.assertEqual(self._token(self.chain, "TokenA").address, self._token(other, "TokenA").address)
        self.assertNotEqual(
            self._token(self.chain, "TokenB").address, self._token(self.chain, "TokenC").address
        )

    def test_token_mint_emits_transfer(self) -> None:
        spec = self.chain.get_factory("ERC20Token")
        receipt = self.chain.deploy(spec, self.identity, ("TokenA", "ATKN", 5)).wait(1.0, 0.1)
        self.assertEqual([event.name for event in receipt.events], ["Transfer"])
        self.assertEqual(receipt.events[0].args["value"], 5 * 10**18)

    def test_create_pair_canonicalises_and_rejects_duplicates(self) -> None:
        token_a = self._token(self.chain, "TokenA")
        token_b = self._token(self.chain, "TokenB")
        factory = self._deploy(self.chain, "DEXFactory")

        receipt = self.chain.call(
            factory, self.identity, "createPair", (token_a.address, token_b.address)
        ).wait(1.0, 0.1)
        created = receipt.events[0]
        self.assertEqual(created.name, "PairCreated")
        self.assertLess(int(created.args["token0"], 16), int(created.args["token1"], 16))
        self.assertEqual(self.chain.contract_at(created.args["pair"]), "DEXPair")

        swapped = self.chain.call(factory, self.identity, "createPair", (token_b.address, token_a.address))
        with self.assertRaises(TransactionReverted) as ctx:
            swapped.wait(1.0, 0.1)
        self.assertIn("PAIR_EXISTS", str(ctx.exception))

    def test_identical_tokens_revert(self) -> None:
        token_a = self._token(self.chain, "TokenA")
        factory = self._deploy(self.chain, "DEXFactory")
        pending = self.chain.call(factory, self.identity, "createPair", (token_a.address, token_a.address))
        with self.assertRaises(TransactionReverted):
            pending.wait(1.0, 0.1)

    def test_router_requires_deployed_dependencies(self) -> None:
        spec = self.chain.get_factory("DEXRouter")
        pending = self.chain.deploy(spec, self.identity, ("0x" + "11" * 20, "0x" + "22" * 20))
        with self.assertRaises(TransactionReverted):
            pending.wait(1.0, 0.1)

    def test_injected_failures(self) -> None:
        spec = self.chain.get_factory("WETH")
        self.chain.inject_failure("WETH", "reject")
        with self.assertRaises(TransactionRejected):
            self.chain.deploy(spec, self.identity, ())

        self.chain.inject_failure("WETH", "timeout")
        with self.assertRaises(ConfirmationTimeout):
            self.chain.deploy(spec, self.identity, ()).wait(1.0, 0.1)

        self.chain.inject_failure("WETH", "revert")
        with self.assertRaises(TransactionReverted):
            self.chain.deploy(spec, self.identity, ()).wait(1.0, 0.1)

        self.assertIsNotNone(self.chain.deploy(spec, self.identity, ()).wait(1.0, 0.1).contract_address)
        with self.assertRaises(SimulationError):
            self.chain.inject_failure("WETH", "explode")

    def test_unknown_function_and_sender_rejected(self) -> None:
        weth = self._deploy(self.chain, "WETH")
        with self.assertRaises(TransactionRejected):
            self.chain.call(weth, self.identity, "createPair", ())
        stranger = self.identity.__class__(address="0x" + "ee" * 20)
        with self.assertRaises(TransactionRejected):
            self.chain.call(weth, stranger, "approve", (weth.address, 1))

    def test_unknown_contract_and_custom_specs(self) -> None:
        with self.assertRaises(UnknownContractError):
            self.chain.get_factory("Missing")
        custom = ContractSpec(name="Vault", abi=(), bytecode="0x00")
        chain = InMemoryChain(specs=(custom,))
        self.assertIs(chain.get_factory("Vault"), custom)


if __name__ == "__main__":
    unittest.main()
