from .authorizer import Authorizer
from .config import ProvisioningConfig, load_config
from .confirmation import ConfirmationPolicy, submit_and_confirm
from .errors import (
    AmbiguousEventFailure,
    AuthorizationFailure,
    DeploymentFailure,
    DerivationFailure,
    EventNotFoundFailure,
    IdentityUnavailable,
    ProvisioningError,
    TimeoutFailure,
)
from .identity import resolve_identity
from .models import (
    ApprovalRecord,
    ApprovalStep,
    ComponentRef,
    ComponentStep,
    DeploymentPlan,
    DerivedEntityStep,
    ProvisioningReport,
)
from .orchestrator import Orchestrator
from .plan import PlanValidationError, build_dex_plan, order_steps, validate_plan
from .provisioner import ComponentProvisioner
from .resolver import DerivedEntityResolver, event_named, extract_single
from .units import parse_units

__all__ = [
    "AmbiguousEventFailure",
    "ApprovalRecord",
    "ApprovalStep",
    "AuthorizationFailure",
    "Authorizer",
    "ComponentProvisioner",
    "ComponentRef",
    "ComponentStep",
    "ConfirmationPolicy",
    "DeploymentFailure",
    "DeploymentPlan",
    "DerivationFailure",
    "DerivedEntityResolver",
    "DerivedEntityStep",
    "EventNotFoundFailure",
    "IdentityUnavailable",
    "Orchestrator",
    "PlanValidationError",
    "ProvisioningConfig",
    "ProvisioningError",
    "ProvisioningReport",
    "TimeoutFailure",
    "build_dex_plan",
    "event_named",
    "extract_single",
    "load_config",
    "order_steps",
    "parse_units",
    "resolve_identity",
    "submit_and_confirm",
    "validate_plan",
]
