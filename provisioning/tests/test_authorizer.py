"""Authorization tests against the in-memory chain's allowance model."""

import unittest

from chain_client.simulator import InMemoryChain

from provisioning.authorizer import Authorizer
from provisioning.errors import AuthorizationFailure, TimeoutFailure
from provisioning.provisioner import ComponentProvisioner


class AuthorizerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.chain = InMemoryChain()
        self.identity = self.chain.list_identities()[0]
        provisioner = ComponentProvisioner(self.chain, self.identity)
        self.token = provisioner.deploy(
            self.chain.get_factory("ERC20Token"), ("TokenA", "ATKN", 1_000_000), name="TokenA"
        )
        factory = provisioner.deploy(self.chain.get_factory("DEXFactory"))
        weth = provisioner.deploy(self.chain.get_factory("WETH"))
        self.router = provisioner.deploy(self.chain.get_factory("DEXRouter"), (factory, weth))
        self.authorizer = Authorizer(self.chain, self.identity)

    def _allowance(self) -> int:
        return self.chain.allowance(self.token.address, self.identity.address, self.router.address)

    def test_repeated_approval_sets_rather_than_adds(self) -> None:
        amount = 10_000 * 10**18
        first = self.authorizer.authorize(self.token, self.router, amount)
        second = self.authorizer.authorize(self.token, self.router, amount)

        self.assertNotEqual(first.tx_hash, second.tx_hash)
        self.assertEqual(self._allowance(), amount)

    def test_zero_revokes_existing_allowance(self) -> None:
        self.authorizer.authorize(self.token, self.router, 10_000)
        receipt = self.authorizer.authorize(self.token, self.router, 0)
        self.assertTrue(receipt.succeeded)
        self.assertEqual(self._allowance(), 0)

    def test_approval_event_emitted(self) -> None:
        receipt = self.authorizer.authorize(self.token, self.router, 5)
        self.assertEqual([event.name for event in receipt.events], ["Approval"])
        self.assertEqual(receipt.events[0].args["spender"], self.router.address)

    def test_negative_amount_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.authorizer.authorize(self.token, self.router, -1)

    def test_reverted_approval_is_authorization_failure(self) -> None:
        self.chain.inject_failure("TokenA.approve", "revert")
        with self.assertRaises(AuthorizationFailure) as ctx:
            self.authorizer.authorize(self.token, self.router, 10_000)
        self.assertEqual(ctx.exception.component, "TokenA")
        self.assertEqual(ctx.exception.phase, "authorize")

    def test_timeout_reported_for_authorize_phase(self) -> None:
        self.chain.inject_failure("TokenA.approve", "timeout")
        with self.assertRaises(TimeoutFailure) as ctx:
            self.authorizer.authorize(self.token, self.router, 10_000)
        self.assertEqual(ctx.exception.phase, "authorize")


if __name__ == "__main__":
    unittest.main()
