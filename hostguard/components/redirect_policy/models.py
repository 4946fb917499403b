"""
Redirect policy component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ._impl import (
    IncomingRequest,
    Policy,
    PolicyValidationError,
    RedirectDecision,
)

# --- Input Models ---


@dataclass(frozen=True)
class DecideInput:
    """Input for evaluating a request."""

    request: IncomingRequest


@dataclass(frozen=True)
class ValidatePolicyInput:
    """Input for validating and building a policy."""

    canonical_host: str
    enforce_https: bool = True
    fixed_rewrites: dict[str, str] = field(default_factory=dict)
    whitelist: dict[str, str] = field(default_factory=dict)


# --- Output Models ---


@dataclass(frozen=True)
class DecisionOutput:
    """Output for decide operation. Evaluation cannot fail."""

    decision: RedirectDecision


@dataclass(frozen=True)
class PolicyValidationOutput:
    """Output for validate operation."""

    policy: Policy | None
    errors: list[PolicyValidationError] = field(default_factory=list)
    success: bool = True
