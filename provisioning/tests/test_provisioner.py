"""Component provisioner ordering and failure tests."""

import unittest

from eth_utils import to_checksum_address

from chain_client.models import DeployedComponent
from wallet_core.models import Identity

from provisioning.confirmation import ConfirmationPolicy
from provisioning.errors import DeploymentFailure, TimeoutFailure
from provisioning.provisioner import ComponentProvisioner

from scripted_chain import ADDRESSES, DEPLOYER, ScriptedChain, spec


class ComponentProvisionerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.chain = ScriptedChain()
        self.provisioner = ComponentProvisioner(
            self.chain,
            Identity(address=DEPLOYER),
            ConfirmationPolicy(timeout=5.0, poll_interval=0.01),
        )

    def test_component_available_only_after_confirmation(self) -> None:
        weth = self.provisioner.deploy(spec("WETH"))
        self.assertEqual(weth.address, to_checksum_address(ADDRESSES["WETH"]))
        self.assertEqual(
            [entry[0] for entry in self.chain.log],
            ["deploy", "wait"],
        )
        self.assertTrue(self.provisioner.is_confirmed(ADDRESSES["WETH"]))
        self.assertEqual(self.chain.confirmed, {"WETH"})

    def test_dependent_receives_confirmed_addresses(self) -> None:
        factory = self.provisioner.deploy(spec("DEXFactory"))
        weth = self.provisioner.deploy(spec("WETH"))
        self.provisioner.deploy(spec("DEXRouter"), (factory, weth))

        router_args = self.chain.entries("deploy")[-1][1]
        self.assertEqual(router_args, (factory.address, weth.address))
        router_index = self.chain.log.index(("deploy", "DEXRouter", router_args))
        self.assertIn(("wait", "DEXFactory", ()), self.chain.log[:router_index])
        self.assertIn(("wait", "WETH", ()), self.chain.log[:router_index])

    def test_unconfirmed_component_rejected_before_submission(self) -> None:
        foreign = DeployedComponent(
            name="DEXFactory", address=ADDRESSES["DEXFactory"], abi=(), tx_hash="0x01"
        )
        with self.assertRaises(DeploymentFailure):
            self.provisioner.deploy(spec("DEXRouter"), (foreign,))
        self.assertEqual(self.chain.entries("deploy"), [])

    def test_unconfirmed_raw_address_rejected(self) -> None:
        with self.assertRaises(DeploymentFailure):
            self.provisioner.deploy(spec("DEXRouter"), (ADDRESSES["DEXFactory"], ADDRESSES["WETH"]))
        self.assertEqual(self.chain.entries("deploy"), [])

    def test_identity_address_and_plain_values_allowed(self) -> None:
        self.chain.expect_deploys("TokenA")
        self.provisioner.deploy(spec("ERC20Token"), ("TokenA", "ATKN", 1_000_000, DEPLOYER), name="TokenA")
        _, args = self.chain.entries("deploy")[0]
        self.assertEqual(args, ("TokenA", "ATKN", 1_000_000, to_checksum_address(DEPLOYER)))

    def test_failure_carries_spec_name_and_cause(self) -> None:
        self.chain.failures["DEXRouter"] = "revert"
        with self.assertRaises(DeploymentFailure) as ctx:
            self.provisioner.deploy(spec("DEXRouter"))
        self.assertEqual(ctx.exception.component, "DEXRouter")
        self.assertIsNotNone(ctx.exception.cause)
        self.assertIn("DEXRouter", str(ctx.exception))

    def test_rejected_submission_is_deployment_failure(self) -> None:
        self.chain.failures["WETH"] = "reject"
        with self.assertRaises(DeploymentFailure):
            self.provisioner.deploy(spec("WETH"))
        self.assertEqual(self.provisioner.components, ())

    def test_timeout_is_distinct_from_deployment_failure(self) -> None:
        self.chain.failures["WETH"] = "timeout"
        with self.assertRaises(TimeoutFailure) as ctx:
            self.provisioner.deploy(spec("WETH"))
        self.assertNotIsInstance(ctx.exception, DeploymentFailure)
        self.assertEqual(self.chain.confirmed, set())
        self.assertEqual(ctx.exception.phase, "provision")

    def test_receipt_without_contract_address_fails(self) -> None:
        del self.chain.addresses["WETH"]
        with self.assertRaises(DeploymentFailure):
            self.provisioner.deploy(spec("WETH"))


if __name__ == "__main__":
    unittest.main()
