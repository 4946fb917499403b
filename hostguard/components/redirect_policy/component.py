"""
Redirect policy component - request evaluation and policy validation.

Invariants:
- I1: Redirect targets are built from policy data only
- I2: Status code is always 301
- I3: Unknown redirect keys are never reflected into a target
- I4: Evaluation never fails; every request gets a decision
- I5: A policy that fails validation is never constructed
"""

from __future__ import annotations

from ._impl import InvalidPolicy, Policy, decide, validate_policy
from .models import (
    DecideInput,
    DecisionOutput,
    PolicyValidationOutput,
    ValidatePolicyInput,
)
from .ports import PolicySourcePort

# --- Component Entry Points ---


def run_decide(
    inp: DecideInput,
    *,
    policy_source: PolicySourcePort,
) -> DecisionOutput:
    """
    Evaluate a request against the active policy.

    Args:
        inp: Input containing the incoming request.
        policy_source: Port supplying the active policy.

    Returns:
        DecisionOutput with a Redirect or NoRedirect decision.
    """
    policy = policy_source.get_policy()
    return DecisionOutput(decision=decide(inp.request, policy))


def run_validate(inp: ValidatePolicyInput) -> PolicyValidationOutput:
    """
    Validate policy data and build a Policy when it is valid.

    Args:
        inp: Input containing the raw policy fields.

    Returns:
        PolicyValidationOutput with the policy or the validation errors.
    """
    errors = validate_policy(inp.canonical_host, inp.fixed_rewrites, inp.whitelist)
    if errors:
        return PolicyValidationOutput(policy=None, errors=errors, success=False)

    try:
        policy = Policy(
            canonical_host=inp.canonical_host,
            enforce_https=inp.enforce_https,
            fixed_rewrites=inp.fixed_rewrites,
            whitelist=inp.whitelist,
        )
    except InvalidPolicy as e:
        return PolicyValidationOutput(policy=None, errors=e.errors, success=False)

    return PolicyValidationOutput(policy=policy, errors=[], success=True)


def run(
    inp: DecideInput | ValidatePolicyInput,
    *,
    policy_source: PolicySourcePort | None = None,
) -> DecisionOutput | PolicyValidationOutput:
    """
    Main entry point for the redirect policy component.

    Dispatches to appropriate handler based on input type.
    """
    if isinstance(inp, DecideInput):
        if policy_source is None:
            raise ValueError("policy_source is required to evaluate a request")
        return run_decide(inp, policy_source=policy_source)
    elif isinstance(inp, ValidatePolicyInput):
        return run_validate(inp)
    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
