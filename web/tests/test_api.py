"""Smoke tests for the provisioning web API."""

import unittest

try:
    from fastapi.testclient import TestClient
except ImportError:  # pragma: no cover - optional dependency
    TestClient = None

try:
    from web import app as web_app
except ImportError:  # pragma: no cover - optional dependency
    web_app = None


@unittest.skipIf(TestClient is None or web_app is None, "FastAPI not available")
class WebApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(web_app.app)

    def test_health(self) -> None:
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_dry_run_returns_report(self) -> None:
        response = self.client.post("/api/provision/dry-run", json={})
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        report = payload["report"]
        self.assertEqual(len(report["components"]), 5)
        self.assertTrue(report["pair_address"].startswith("0x"))
        self.assertEqual(
            [tx["target"] for tx in payload["transactions"]],
            [
                "ERC20Token",
                "ERC20Token",
                "WETH",
                "DEXFactory",
                "DEXRouter",
                "DEXFactory.createPair",
                "TokenA.approve",
                "TokenB.approve",
            ],
        )

    def test_custom_tokens_and_zero_allowance(self) -> None:
        response = self.client.post(
            "/api/provision/dry-run",
            json={
                "tokens": [
                    {"name": "Alpha", "symbol": "ALP", "initial_supply": 10},
                    {"name": "Beta", "symbol": "BET", "initial_supply": 20},
                ],
                "allowance_amount": "0",
            },
        )
        self.assertEqual(response.status_code, 200)
        approvals = response.json()["report"]["approvals"]
        self.assertEqual([approval["amount"] for approval in approvals], ["0", "0"])
        targets = [tx["target"] for tx in response.json()["transactions"]]
        self.assertIn("Alpha.approve", targets)

    def test_injected_router_failure_reports_phase(self) -> None:
        response = self.client.post(
            "/api/provision/dry-run",
            json={"failures": [{"target": "DEXRouter", "kind": "revert"}]},
        )
        self.assertEqual(response.status_code, 422)
        payload = response.json()
        self.assertEqual(payload["phase"], "provision")
        self.assertEqual(payload["component"], "DEXRouter")

    def test_bad_amount_is_client_error(self) -> None:
        response = self.client.post("/api/provision/dry-run", json={"allowance_amount": "lots"})
        self.assertEqual(response.status_code, 400)

    def test_single_token_rejected(self) -> None:
        response = self.client.post(
            "/api/provision/dry-run",
            json={"tokens": [{"name": "Solo", "symbol": "SOL", "initial_supply": 1}]},
        )
        self.assertEqual(response.status_code, 400)


if __name__ == "__main__":
    unittest.main()
