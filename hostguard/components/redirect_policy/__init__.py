"""
Redirect policy component - canonical host and open-redirect safe redirects.
"""

from ._impl import (
    NO_REDIRECT,
    REDIRECT_QUERY_PARAM,
    RULES,
    STATUS_MOVED_PERMANENTLY,
    IncomingRequest,
    InvalidPolicy,
    NoRedirect,
    Policy,
    PolicyValidationError,
    Redirect,
    RedirectDecision,
    RedirectPolicyService,
    canonical_url,
    create_redirect_policy_service,
    decide,
    is_same_site_path,
    parse_request_url,
    safe_request_path,
    validate_policy,
)
from .component import run, run_decide, run_validate
from .models import (
    DecideInput,
    DecisionOutput,
    PolicyValidationOutput,
    ValidatePolicyInput,
)
from .ports import PolicySourcePort

__all__ = [
    # Entry points
    "run",
    "run_decide",
    "run_validate",
    # Input models
    "DecideInput",
    "ValidatePolicyInput",
    # Output models
    "DecisionOutput",
    "PolicyValidationOutput",
    # Ports
    "PolicySourcePort",
    # _impl re-exports
    "NO_REDIRECT",
    "REDIRECT_QUERY_PARAM",
    "RULES",
    "STATUS_MOVED_PERMANENTLY",
    "IncomingRequest",
    "InvalidPolicy",
    "NoRedirect",
    "Policy",
    "PolicyValidationError",
    "Redirect",
    "RedirectDecision",
    "RedirectPolicyService",
    "canonical_url",
    "create_redirect_policy_service",
    "decide",
    "is_same_site_path",
    "parse_request_url",
    "safe_request_path",
    "validate_policy",
]
