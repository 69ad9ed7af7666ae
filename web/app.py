"""Local-only FastAPI shell for rehearsing a provisioning run against the in-memory chain."""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from chain_client.client import ChainClientError
from chain_client.simulator import InMemoryChain
from provisioning.errors import ProvisioningError
from provisioning.orchestrator import Orchestrator
from provisioning.plan import DEFAULT_TOKENS, PlanValidationError, build_dex_plan
from provisioning.units import parse_units
from wallet_core.models import IdentitySelector

logger = logging.getLogger(__name__)

app = FastAPI(title="DEX Provisioning", description="Local-first dry-run shell")


class TokenInput(BaseModel):
    name: str
    symbol: str
    initial_supply: int = Field(ge=0)


class FailureInput(BaseModel):
    target: str
    kind: str = "revert"


class DryRunRequest(BaseModel):
    tokens: Optional[List[TokenInput]] = None
    allowance_amount: str = "10000"
    token_decimals: int = Field(default=18, ge=0, le=77)
    identity_index: int = Field(default=0, ge=0)
    failures: List[FailureInput] = Field(default_factory=list)


@app.middleware("http")
async def _local_only(request: Request, call_next):
    client = request.client
    if client is not None:
        host = client.host
        if host not in {"127.0.0.1", "::1", "testclient"}:
            return JSONResponse({"error": "Remote access disabled."}, status_code=403)
    return await call_next(request)


async def _handle_provisioning_error(request: Request, exc: ProvisioningError):
    return JSONResponse(
        {"error": str(exc), "phase": exc.phase, "component": exc.component},
        status_code=422,
    )


async def _handle_errors(request: Request, exc: Exception):
    return JSONResponse({"error": str(exc)}, status_code=400)


app.add_exception_handler(ProvisioningError, _handle_provisioning_error)
for _exc_class in (ChainClientError, PlanValidationError, ValueError, KeyError):
    app.add_exception_handler(_exc_class, _handle_errors)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.post("/api/provision/dry-run")
async def provision_dry_run(payload: DryRunRequest) -> dict:
    tokens = DEFAULT_TOKENS
    if payload.tokens is not None:
        tokens = tuple((token.name, token.symbol, token.initial_supply) for token in payload.tokens)
    plan = build_dex_plan(parse_units(payload.allowance_amount, payload.token_decimals), tokens)

    chain = InMemoryChain()
    for failure in payload.failures:
        chain.inject_failure(failure.target, failure.kind)

    report = Orchestrator(
        chain, plan, selector=IdentitySelector(index=payload.identity_index)
    ).run()
    logger.info("Dry run finished; pair at %s", report.pair_address)
    return {
        "report": report.to_dict(),
        "transactions": [
            {"kind": kind, "target": target} for kind, target, _ in chain.submitted
        ],
    }
