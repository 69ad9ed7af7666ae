"""Domain models for the wallet core."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Identity:
    """An address able to sign and pay for transactions."""

    address: str
    label: str = ""


@dataclass(frozen=True)
class IdentitySelector:
    """Explicit choice of acting identity: by address when given, else by index."""

    index: int = 0
    address: str | None = None

    def describe(self) -> str:
        if self.address:
            return f"address {self.address}"
        return f"index {self.index}"
