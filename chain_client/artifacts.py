"""Lookup of compiled contract artifacts (Hardhat layout) by contract name."""

from pathlib import Path
from typing import Dict, Iterable, Tuple
import json

from .client import UnknownContractError
from .models import ContractSpec


class ArtifactRegistry:
    """Indexes ``<Name>.json`` artifacts under a build directory.

    Hardhat writes ``artifacts/contracts/<File>.sol/<Name>.json`` alongside
    ``<Name>.dbg.json`` debug files; the latter and interface-only artifacts
    without bytecode are kept for event decoding but cannot be deployed.
    """

    def __init__(self, root: Path) -> None:
        self._root = root
        self._specs: Dict[str, ContractSpec] | None = None

    def get(self, contract_name: str) -> ContractSpec:
        specs = self._load()
        if contract_name not in specs:
            raise UnknownContractError(f"No artifact found for contract: {contract_name}")
        return specs[contract_name]

    def all_specs(self) -> Tuple[ContractSpec, ...]:
        return tuple(self._load().values())

    def _load(self) -> Dict[str, ContractSpec]:
        if self._specs is None:
            self._specs = {spec.name: spec for spec in self._read_all()}
        return self._specs

    def _read_all(self) -> Iterable[ContractSpec]:
        if not self._root.exists():
            raise UnknownContractError(f"Artifacts directory not found: {self._root}")
        for path in sorted(self._root.rglob("*.json")):
            if path.name.endswith(".dbg.json"):
                continue
            data = json.loads(path.read_text())
            if not isinstance(data, dict) or "abi" not in data:
                continue
            yield spec_from_artifact(data, default_name=path.stem)


def spec_from_artifact(data: dict, default_name: str = "") -> ContractSpec:
    bytecode = data.get("bytecode") or "0x"
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object", "0x")
    if not bytecode.startswith("0x"):
        bytecode = "0x" + bytecode
    return ContractSpec(
        name=data.get("contractName") or default_name,
        abi=tuple(data["abi"]),
        bytecode=bytecode,
    )
