"""Failure taxonomy for the provisioning run.

Every error is fatal at this layer: nothing is retried and already-confirmed
on-chain changes are never rolled back.
"""

from typing import Optional


class ProvisioningError(RuntimeError):
    """Base class carrying the failing phase and component."""

    phase = "provision"

    def __init__(
        self,
        message: str,
        component: str = "",
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.component = component
        self.cause = cause

    def __str__(self) -> str:
        base = super().__str__()
        if self.component:
            return f"[{self.phase}:{self.component}] {base}"
        return f"[{self.phase}] {base}"


class IdentityUnavailable(ProvisioningError):
    """Raised when no signing identity matches the configured selector."""

    phase = "identity"


class DeploymentFailure(ProvisioningError):
    """Raised when a component fails to deploy or confirm."""

    phase = "provision"


class DerivationFailure(ProvisioningError):
    """Raised when the derived-entity creation transaction itself fails."""

    phase = "derive"


class EventNotFoundFailure(ProvisioningError):
    """Raised when a confirmed receipt lacks the expected creation event."""

    phase = "derive"


class AmbiguousEventFailure(ProvisioningError):
    """Raised when more than one event matches where exactly one is expected."""

    phase = "derive"


class AuthorizationFailure(ProvisioningError):
    """Raised when an approval transaction fails or reverts."""

    phase = "authorize"


class TimeoutFailure(ProvisioningError):
    """Raised when a confirmation is not observed within the configured timeout."""

    def __init__(
        self,
        message: str,
        phase: str,
        component: str = "",
        cause: Optional[BaseException] = None,
    ) -> None:
        self.phase = phase
        super().__init__(message, component=component, cause=cause)
