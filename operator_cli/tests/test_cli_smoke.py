"""Smoke tests for the provisioning CLI."""

import json
import os
import unittest
from contextlib import redirect_stderr, redirect_stdout
from io import StringIO
from unittest import mock

from operator_cli import cli
from operator_cli.cli import main


class OperatorCliSmokeTests(unittest.TestCase):
    def _run(self, args, env=None):
        out, err = StringIO(), StringIO()
        with mock.patch.dict(os.environ, env or {}, clear=True):
            with redirect_stdout(out), redirect_stderr(err):
                code = main(args)
        return code, out.getvalue(), err.getvalue()

    def test_dry_run_prints_every_address(self) -> None:
        code, output, errors = self._run(["--dry-run"])
        self.assertEqual(code, 0, errors)
        lines = output.splitlines()
        self.assertEqual(len(lines), 8)
        self.assertTrue(lines[0].startswith("Deploying contracts with: 0x"))
        names = ("TokenA", "TokenB", "WETH", "DEXFactory", "DEXRouter", "DEXPair")
        for name, line in zip(names, lines[1:7]):
            self.assertTrue(line.startswith(f"{name} deployed at: 0x"), line)
        self.assertEqual(lines[-1], "Approved router for 10000 of each token.")
        self.assertIn("DEXRouter deployed at:", errors)

    def test_quiet_log_level_still_prints_addresses(self) -> None:
        code, output, errors = self._run(["--dry-run"], env={"LOG_LEVEL": "WARNING"})
        self.assertEqual(code, 0, errors)
        self.assertNotIn("deployed at", errors)
        lines = output.splitlines()
        self.assertEqual(len(lines), 8)
        self.assertTrue(lines[6].startswith("DEXPair deployed at: 0x"))

    def test_dry_run_json_report(self) -> None:
        code, output, errors = self._run(["--dry-run", "--json"], env={"ALLOWANCE_AMOUNT": "5"})
        self.assertEqual(code, 0, errors)
        payload = json.loads(output)
        self.assertEqual(
            [component["key"] for component in payload["components"]],
            ["tokenA", "tokenB", "weth", "factory", "router"],
        )
        self.assertTrue(payload["pair_address"].startswith("0x"))
        self.assertEqual([a["amount"] for a in payload["approvals"]], [str(5 * 10**18)] * 2)
        self.assertIn("DEXPair deployed at:", errors)

    def test_identity_failure_exits_non_zero(self) -> None:
        code, output, errors = self._run(["--dry-run"], env={"IDENTITY_INDEX": "4"})
        self.assertEqual(code, 2)
        self.assertIn("ERROR:", errors)
        self.assertIn("[identity]", errors)
        self.assertNotIn("deployed at", output)

    def test_invalid_config_exits_non_zero(self) -> None:
        code, _, errors = self._run(["--dry-run"], env={"CONFIRMATION_TIMEOUT": "0"})
        self.assertEqual(code, 2)
        self.assertIn("ERROR:", errors)

    def test_unreachable_node_exits_non_zero(self) -> None:
        with mock.patch.object(cli, "build_client", side_effect=OSError("connection refused")):
            code, _, errors = self._run([])
        self.assertEqual(code, 2)
        self.assertIn("ERROR: Error in deployment: connection refused", errors)

    def test_missing_env_file_exits_non_zero(self) -> None:
        code, _, errors = self._run(["--dry-run", "--env-file", "/nonexistent/.env"])
        self.assertEqual(code, 2)
        self.assertIn("Env file not found", errors)


if __name__ == "__main__":
    unittest.main()
