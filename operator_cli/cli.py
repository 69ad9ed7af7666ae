"""Operator CLI for provisioning the DEX contracts."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, TextIO

from web3 import Web3

from chain_client.artifacts import ArtifactRegistry
from chain_client.client import ChainClient, ChainClientError
from chain_client.simulator import InMemoryChain
from chain_client.web3_client import Web3ChainClient
from provisioning.config import ProvisioningConfig, load_config
from provisioning.errors import ProvisioningError
from provisioning.orchestrator import Orchestrator
from provisioning.plan import PlanValidationError, build_dex_plan
from wallet_core.keystore import FileKeyStore
from wallet_core.signer import LocalKeySigner, NodeAccountSigner, Signer

_LOGGER_NAMES = ("provisioning", "chain_client", "wallet_core")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="dex-provision",
        description="Deploy tokens, WETH, factory and router, create a pair and approve the router.",
    )
    parser.add_argument("--env-file", type=Path, help="Read settings from this .env file.")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run against an in-memory chain instead of RPC_URL.",
    )
    parser.add_argument("--json", action="store_true", help="Print the final report as JSON.")
    args = parser.parse_args(argv)

    try:
        config = load_config(env_file=args.env_file)
        with _progress_logging(config.log_level, sys.stderr):
            return _provision(config, args)
    except (
        ValueError,
        KeyError,
        OSError,
        ProvisioningError,
        PlanValidationError,
        ChainClientError,
    ) as exc:
        print(f"ERROR: Error in deployment: {exc}", file=sys.stderr)
        return 2


def _provision(config: ProvisioningConfig, args: argparse.Namespace) -> int:
    client = InMemoryChain() if args.dry_run else build_client(config)
    plan = build_dex_plan(config.allowance)
    orchestrator = Orchestrator(
        client,
        plan,
        selector=config.selector,
        policy=config.policy,
    )
    report = orchestrator.run()
    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print(f"Deploying contracts with: {report.identity.address}")
        for _, component in report.components:
            print(f"{component.name} deployed at: {component.address}")
        print(f"{plan.derived.label} deployed at: {report.pair_address}")
        print(f"Approved router for {config.allowance_amount} of each token.")
    return 0


def build_client(config: ProvisioningConfig) -> ChainClient:
    w3 = Web3(Web3.HTTPProvider(config.rpc_url))
    return Web3ChainClient(w3, _build_signer(w3, config), ArtifactRegistry(config.artifacts_dir))


def _build_signer(w3: Web3, config: ProvisioningConfig) -> Signer:
    keys = list(config.private_keys)
    if config.keystore_path is not None:
        if config.keystore_passphrase is None:
            raise ValueError("KEYSTORE_PASSPHRASE is required with KEYSTORE_PATH.")
        keys.extend(FileKeyStore(config.keystore_path).load_private_keys(config.keystore_passphrase))
    if keys:
        return LocalKeySigner(w3, keys)
    return NodeAccountSigner(w3)


@contextmanager
def _progress_logging(level: str, stream: TextIO) -> Iterator[None]:
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter("%(message)s"))
    loggers = [logging.getLogger(name) for name in _LOGGER_NAMES]
    previous = [logger.level for logger in loggers]
    for logger in loggers:
        logger.addHandler(handler)
        logger.setLevel(level)
    try:
        yield
    finally:
        for logger, old_level in zip(loggers, previous):
            logger.removeHandler(handler)
            logger.setLevel(old_level)


if __name__ == "__main__":
    raise SystemExit(main())
