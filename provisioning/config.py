"""Run configuration loaded from the environment and an optional ``.env`` file."""

from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple
import os

from dotenv import dotenv_values
from eth_utils import is_address
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from wallet_core.models import IdentitySelector

from .confirmation import ConfirmationPolicy
from .units import parse_units

_ENV_FIELDS: Dict[str, str] = {
    "RPC_URL": "rpc_url",
    "PRIVATE_KEYS": "private_keys",
    "KEYSTORE_PATH": "keystore_path",
    "KEYSTORE_PASSPHRASE": "keystore_passphrase",
    "IDENTITY_INDEX": "identity_index",
    "IDENTITY_ADDRESS": "identity_address",
    "ARTIFACTS_DIR": "artifacts_dir",
    "CONFIRMATION_TIMEOUT": "confirmation_timeout",
    "POLL_INTERVAL": "poll_interval",
    "ALLOWANCE_AMOUNT": "allowance_amount",
    "TOKEN_DECIMALS": "token_decimals",
    "LOG_LEVEL": "log_level",
}


class ProvisioningConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    rpc_url: str = "http://127.0.0.1:8545"
    private_keys: Tuple[str, ...] = ()
    keystore_path: Optional[Path] = None
    keystore_passphrase: Optional[str] = Field(default=None, repr=False)
    identity_index: int = Field(default=0, ge=0)
    identity_address: Optional[str] = None
    artifacts_dir: Path = Path("artifacts")
    confirmation_timeout: float = Field(default=120.0, gt=0)
    poll_interval: float = Field(default=0.1, gt=0)
    allowance_amount: str = "10000"
    token_decimals: int = Field(default=18, ge=0, le=77)
    log_level: str = "INFO"

    @field_validator("private_keys", mode="before")
    @classmethod
    def _split_keys(cls, value: Any) -> Any:
        if isinstance(value, str):
            return tuple(key.strip() for key in value.split(",") if key.strip())
        return value

    @field_validator("identity_address", "keystore_path", "keystore_passphrase", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("identity_address")
    @classmethod
    def _check_address(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_address(value):
            raise ValueError(f"IDENTITY_ADDRESS is not an address: {value}")
        return value

    @model_validator(mode="after")
    def _check_allowance(self) -> "ProvisioningConfig":
        parse_units(self.allowance_amount, self.token_decimals)
        return self

    @field_validator("log_level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unsupported log level: {value}")
        return normalized

    @property
    def selector(self) -> IdentitySelector:
        return IdentitySelector(index=self.identity_index, address=self.identity_address)

    @property
    def policy(self) -> ConfirmationPolicy:
        return ConfirmationPolicy(timeout=self.confirmation_timeout, poll_interval=self.poll_interval)

    @property
    def allowance(self) -> int:
        return parse_units(self.allowance_amount, self.token_decimals)


def load_config(
    env_file: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> ProvisioningConfig:
    """Process environment wins over ``env_file``; ``overrides`` win over both."""
    values: Dict[str, Any] = {}
    if env_file is None and Path(".env").is_file():
        env_file = Path(".env")
    if env_file is not None:
        if not env_file.is_file():
            raise ValueError(f"Env file not found: {env_file}")
        values.update(_from_env(dotenv_values(env_file)))
    values.update(_from_env(os.environ if environ is None else environ))
    values.update(overrides or {})
    return ProvisioningConfig(**values)


def _from_env(env: Mapping[str, Optional[str]]) -> Dict[str, Any]:
    return {
        field: env[name]
        for name, field in _ENV_FIELDS.items()
        if env.get(name) is not None
    }
