"""Encrypted JSON keystore loading for local signing keys."""

from pathlib import Path
from typing import Iterable, Protocol, Tuple
import json

from eth_account import Account


class KeyStore(Protocol):
    def load_private_keys(self, passphrase: str) -> Tuple[str, ...]:
        ...


class FileKeyStore:
    """Reads one keystore file, or every ``*.json`` keystore in a directory."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def load_private_keys(self, passphrase: str) -> Tuple[str, ...]:
        keys = []
        for keyfile in self._read_all():
            try:
                private_key = Account.decrypt(keyfile, passphrase)
            except ValueError as exc:
                raise ValueError("Invalid passphrase or corrupted keystore.") from exc
            keys.append("0x" + bytes(private_key).hex())
        return tuple(keys)

    def _read_all(self) -> Tuple[dict, ...]:
        if not self._path.exists():
            raise KeyError(f"Unknown keystore path: {self._path}")
        return tuple(json.loads(path.read_text()) for path in self._keyfile_paths())

    def _keyfile_paths(self) -> Iterable[Path]:
        if self._path.is_dir():
            return sorted(self._path.glob("*.json"))
        return (self._path,)
