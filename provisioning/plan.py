"""Dependency-ordered deployment plan builder with validation."""

from typing import Dict, Iterable, List, Sequence, Set, Tuple

from .models import (
    ApprovalStep,
    ComponentRef,
    ComponentStep,
    DeploymentPlan,
    DerivedEntityStep,
)


class PlanValidationError(ValueError):
    """Raised when a deployment plan violates ordering or reference rules."""


DEFAULT_TOKENS: Tuple[Tuple[str, str, int], ...] = (
    ("TokenA", "ATKN", 1_000_000),
    ("TokenB", "BTKN", 1_000_000),
)


def build_dex_plan(
    allowance: int,
    tokens: Sequence[Tuple[str, str, int]] = DEFAULT_TOKENS,
) -> DeploymentPlan:
    """Two tokens, WETH, factory and router, then one pair and two approvals."""
    if len(tokens) != 2:
        raise PlanValidationError("A DEX plan needs exactly two tokens.")

    (name_a, symbol_a, supply_a), (name_b, symbol_b, supply_b) = tokens
    steps = (
        ComponentStep("tokenA", "ERC20Token", (name_a, symbol_a, supply_a), label=name_a),
        ComponentStep("tokenB", "ERC20Token", (name_b, symbol_b, supply_b), label=name_b),
        ComponentStep("weth", "WETH", label="WETH"),
        ComponentStep("factory", "DEXFactory", label="DEXFactory"),
        ComponentStep(
            "router",
            "DEXRouter",
            (ComponentRef("factory"), ComponentRef("weth")),
            label="DEXRouter",
        ),
    )
    plan = DeploymentPlan(
        steps=order_steps(steps),
        derived=DerivedEntityStep(factory_key="factory", token_a_key="tokenA", token_b_key="tokenB"),
        approvals=(
            ApprovalStep(token_key="tokenA", spender_key="router"),
            ApprovalStep(token_key="tokenB", spender_key="router"),
        ),
        allowance=allowance,
    )
    validate_plan(plan)
    return plan


def order_steps(steps: Iterable[ComponentStep]) -> Tuple[ComponentStep, ...]:
    """Order steps so every reference follows the step it names.

    Among steps whose dependencies are already satisfied, declaration order
    wins, so an already-valid order is returned unchanged.
    """
    pending = list(steps)
    _validate_keys(pending)

    ordered: List[ComponentStep] = []
    placed: Set[str] = set()
    while pending:
        for index, step in enumerate(pending):
            if all(dependency in placed for dependency in step.dependencies):
                ordered.append(step)
                placed.add(step.key)
                del pending[index]
                break
        else:
            cycle = ", ".join(step.key for step in pending)
            raise PlanValidationError(f"Dependency cycle between steps: {cycle}")
    return tuple(ordered)


def validate_plan(plan: DeploymentPlan) -> None:
    if not plan.steps:
        raise PlanValidationError("Plan must include at least one step.")
    if plan.allowance < 0:
        raise PlanValidationError("Allowance must be non-negative.")

    _validate_keys(plan.steps)
    _validate_dependency_order(plan.steps)

    known = {step.key for step in plan.steps}
    derived = plan.derived
    for key in (derived.factory_key, derived.token_a_key, derived.token_b_key):
        if key not in known:
            raise PlanValidationError(f"Derived entity references unknown step: {key}")
    if derived.token_a_key == derived.token_b_key:
        raise PlanValidationError("Derived entity needs two distinct tokens.")
    for approval in plan.approvals:
        for key in (approval.token_key, approval.spender_key):
            if key not in known:
                raise PlanValidationError(f"Approval references unknown step: {key}")


def _validate_keys(steps: Sequence[ComponentStep]) -> None:
    seen: Dict[str, ComponentStep] = {}
    for step in steps:
        if not step.key:
            raise PlanValidationError("Step key must be non-empty.")
        if step.key in seen:
            raise PlanValidationError(f"Duplicate step key: {step.key}")
        seen[step.key] = step
    for step in steps:
        for dependency in step.dependencies:
            if dependency not in seen:
                raise PlanValidationError(
                    f"Step {step.key} references unknown step: {dependency}"
                )
            if dependency == step.key:
                raise PlanValidationError(f"Step {step.key} references itself.")


def _validate_dependency_order(steps: Sequence[ComponentStep]) -> None:
    placed: Set[str] = set()
    for step in steps:
        for dependency in step.dependencies:
            if dependency not in placed:
                raise PlanValidationError(
                    f"Step {step.key} must follow its dependency {dependency}."
                )
        placed.add(step.key)
