"""
Redirect decision engine - canonical host, HTTPS and whitelist redirects.

Evaluates an incoming request against an immutable policy and returns a
redirect decision. Rules are applied in order, first match wins:

1. HTTPS enforcement
2. Canonical host enforcement (covers raw IP access)
3. Fixed path rewrites
4. Whitelisted dynamic redirects (``?redirect=<key>``)

Key behaviors:
- Redirects always use 301
- Targets are built from policy data only; request input is a lookup key
- Unknown ``redirect`` values are ignored, never echoed into a target
- Evaluation never raises; malformed input falls through to a redirect
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from threading import Lock
from types import MappingProxyType
from urllib.parse import parse_qsl, quote, unquote, urlsplit

STATUS_MOVED_PERMANENTLY = 301

REDIRECT_QUERY_PARAM = "redirect"

# RFC 3986 sub-delims, ":" and "@"; paths arrive decoded so "%" is always escaped
_PATH_SAFE_CHARS = "/:@!$&'()*+,;=-._~"


# --- Validation Errors ---


@dataclass(frozen=True)
class PolicyValidationError:
    """Policy validation error."""

    code: str
    message: str
    field: str | None = None


class InvalidPolicy(ValueError):
    """Raised when a policy cannot be constructed."""

    def __init__(self, errors: list[PolicyValidationError]) -> None:
        self.errors = errors
        detail = "; ".join(e.message for e in errors)
        super().__init__(f"Invalid redirect policy: {detail}")


# --- Path and Host Checks ---


def is_same_site_path(path: str) -> bool:
    """Check that a path stays on the current site."""
    if not path or not path.startswith("/"):
        return False

    # Protocol-relative URL
    if path.startswith("//"):
        return False

    # Browsers normalize "\" to "/" in some positions
    if "\\" in path:
        return False

    if any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in path):
        return False

    parsed = urlsplit(path)
    return not (parsed.scheme or parsed.netloc)


def _host_errors(canonical_host: str) -> list[PolicyValidationError]:
    if not canonical_host or not canonical_host.strip():
        return [
            PolicyValidationError(
                code="canonical_host_required",
                message="Canonical host is required",
                field="canonical_host",
            )
        ]

    if "://" in canonical_host or any(ch in canonical_host for ch in "/?#@\\"):
        return [
            PolicyValidationError(
                code="canonical_host_not_bare",
                message="Canonical host must be a bare host name, not a URL",
                field="canonical_host",
            )
        ]

    if any(ch.isspace() for ch in canonical_host):
        return [
            PolicyValidationError(
                code="canonical_host_whitespace",
                message="Canonical host must not contain whitespace",
                field="canonical_host",
            )
        ]

    try:
        parsed = urlsplit("//" + canonical_host)
        valid = bool(parsed.hostname) and (parsed.port is None or parsed.port > 0)
    except ValueError:
        valid = False

    if not valid:
        return [
            PolicyValidationError(
                code="canonical_host_invalid",
                message=f"Canonical host '{canonical_host}' is not a valid host",
                field="canonical_host",
            )
        ]

    return []


def _target_errors(
    target: str,
    fixed_rewrites: Mapping[str, str],
    field_name: str,
    prefix: str,
) -> list[PolicyValidationError]:
    """Targets must not lead into another rule once followed."""
    parsed = urlsplit(target)
    errors: list[PolicyValidationError] = []

    # Rules match on the decoded path, not the full target string
    if unquote(parsed.path) in fixed_rewrites:
        errors.append(
            PolicyValidationError(
                code=f"{prefix}_target_rewritten",
                message=f"Target '{target}' is itself rewritten",
                field=field_name,
            )
        )

    query_keys = {key for key, _ in parse_qsl(parsed.query, keep_blank_values=True)}
    if REDIRECT_QUERY_PARAM in query_keys:
        errors.append(
            PolicyValidationError(
                code=f"{prefix}_target_has_redirect_param",
                message=f"Target '{target}' must not carry a '{REDIRECT_QUERY_PARAM}' parameter",
                field=field_name,
            )
        )

    return errors


def validate_policy(
    canonical_host: str,
    fixed_rewrites: Mapping[str, str],
    whitelist: Mapping[str, str],
) -> list[PolicyValidationError]:
    """
    Validate policy data.

    Checks:
    - Canonical host is a non-empty bare host (optionally with port)
    - Rewrite sources are same-site paths without query or fragment
    - Whitelist keys are non-empty
    - Rewrite and whitelist targets are same-site paths
    - No target path is itself a rewrite source
    - No target carries a ``redirect`` query parameter
    """
    errors = _host_errors(canonical_host)

    for source, target in fixed_rewrites.items():
        if not is_same_site_path(source):
            errors.append(
                PolicyValidationError(
                    code="rewrite_source_invalid",
                    message=f"Rewrite source '{source}' must be a same-site path",
                    field="fixed_rewrites",
                )
            )
        elif "?" in source or "#" in source:
            # Matched against the request path, which never has these
            errors.append(
                PolicyValidationError(
                    code="rewrite_source_has_query",
                    message=f"Rewrite source '{source}' must not have a query or fragment",
                    field="fixed_rewrites",
                )
            )
        if not is_same_site_path(target):
            errors.append(
                PolicyValidationError(
                    code="rewrite_target_invalid",
                    message=f"Rewrite target for '{source}' must be a same-site path",
                    field="fixed_rewrites",
                )
            )
        else:
            errors.extend(_target_errors(target, fixed_rewrites, "fixed_rewrites", "rewrite"))

    for key, target in whitelist.items():
        if not key:
            errors.append(
                PolicyValidationError(
                    code="whitelist_key_required",
                    message="Whitelist keys must be non-empty",
                    field="whitelist",
                )
            )
        if not is_same_site_path(target):
            errors.append(
                PolicyValidationError(
                    code="whitelist_target_invalid",
                    message=f"Whitelist target for '{key}' must be a same-site path",
                    field="whitelist",
                )
            )
        else:
            errors.extend(_target_errors(target, fixed_rewrites, "whitelist", "whitelist"))

    return errors


# --- Models ---


@dataclass(frozen=True)
class Policy:
    """Immutable redirect policy. Validated on construction."""

    canonical_host: str
    enforce_https: bool = True
    fixed_rewrites: Mapping[str, str] = field(default_factory=dict)
    whitelist: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        errors = validate_policy(self.canonical_host, self.fixed_rewrites, self.whitelist)
        if errors:
            raise InvalidPolicy(errors)

        # Read-only views over private copies
        object.__setattr__(self, "fixed_rewrites", MappingProxyType(dict(self.fixed_rewrites)))
        object.__setattr__(self, "whitelist", MappingProxyType(dict(self.whitelist)))

    def is_canonical_host(self, host: str) -> bool:
        """Case-insensitive host comparison."""
        return host.lower() == self.canonical_host.lower()


@dataclass(frozen=True)
class IncomingRequest:
    """The parts of an HTTP request the engine looks at. Path is decoded."""

    host: str
    scheme: str
    path: str
    query: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class NoRedirect:
    """Request passes through to normal handling."""


@dataclass(frozen=True)
class Redirect:
    """Permanent redirect to a policy-derived target."""

    target_url: str
    status_code: int = STATUS_MOVED_PERMANENTLY
    rule: str = field(default="", compare=False)


RedirectDecision = Redirect | NoRedirect

NO_REDIRECT = NoRedirect()


# --- URL Building ---


def safe_request_path(path: str) -> str:
    """
    Force a request path into a same-host absolute path.

    Empty becomes "/", a missing leading slash is added, and characters
    outside the URL-safe set are percent-encoded.
    """
    if not path:
        return "/"

    if not path.startswith("/"):
        path = "/" + path

    return quote(path, safe=_PATH_SAFE_CHARS)


def canonical_url(policy: Policy, path: str) -> str:
    """Absolute https URL on the canonical host."""
    return f"https://{policy.canonical_host}{path}"


def parse_request_url(url: str) -> IncomingRequest:
    """
    Build an IncomingRequest from an absolute URL.

    The path is percent-decoded, like a server-supplied request path.
    Repeated query keys keep their first value.
    """
    parsed = urlsplit(url)

    query: dict[str, str] = {}
    for key, value in parse_qsl(parsed.query, keep_blank_values=True):
        query.setdefault(key, value)

    return IncomingRequest(
        host=parsed.netloc,
        scheme=parsed.scheme,
        path=unquote(parsed.path),
        query=query,
    )


# --- Rules ---


def _enforce_https(request: IncomingRequest, policy: Policy) -> Redirect | None:
    if policy.enforce_https and request.scheme.lower() != "https":
        return Redirect(
            target_url=canonical_url(policy, safe_request_path(request.path)),
            rule="https",
        )
    return None


def _enforce_canonical_host(request: IncomingRequest, policy: Policy) -> Redirect | None:
    if not policy.is_canonical_host(request.host):
        return Redirect(
            target_url=canonical_url(policy, safe_request_path(request.path)),
            rule="canonical_host",
        )
    return None


def _apply_fixed_rewrite(request: IncomingRequest, policy: Policy) -> Redirect | None:
    target = policy.fixed_rewrites.get(request.path)
    if target is None:
        return None
    return Redirect(target_url=canonical_url(policy, target), rule="fixed_rewrite")


def _apply_whitelist(request: IncomingRequest, policy: Policy) -> Redirect | None:
    key = request.query.get(REDIRECT_QUERY_PARAM)
    if key is None:
        return None

    # Unknown values are dropped, never reflected
    target = policy.whitelist.get(key)
    if target is None:
        return None
    return Redirect(target_url=canonical_url(policy, target), rule="whitelist")


RULES: tuple[Callable[[IncomingRequest, Policy], Redirect | None], ...] = (
    _enforce_https,
    _enforce_canonical_host,
    _apply_fixed_rewrite,
    _apply_whitelist,
)


def decide(request: IncomingRequest, policy: Policy) -> RedirectDecision:
    """Evaluate the redirect rules in order. First match wins."""
    for rule in RULES:
        redirect = rule(request, policy)
        if redirect is not None:
            return redirect
    return NO_REDIRECT


# --- Redirect Policy Service ---


class RedirectPolicyService:
    """
    Redirect policy service.

    Holds the current policy. Replacing it swaps the reference; the old
    policy object is never modified.
    """

    def __init__(self, policy: Policy) -> None:
        """Initialize service."""
        self._policy = policy
        self._swap_lock = Lock()

    @property
    def policy(self) -> Policy:
        return self._policy

    def decide(self, request: IncomingRequest) -> RedirectDecision:
        """Evaluate a request against the current policy."""
        return decide(request, self._policy)

    def swap_policy(self, policy: Policy) -> Policy:
        """Install a new policy and return the previous one."""
        with self._swap_lock:
            previous = self._policy
            self._policy = policy
        return previous


# --- Factory ---


def create_redirect_policy_service(
    canonical_host: str,
    enforce_https: bool = True,
    fixed_rewrites: Mapping[str, str] | None = None,
    whitelist: Mapping[str, str] | None = None,
) -> RedirectPolicyService:
    """Create a RedirectPolicyService. Raises InvalidPolicy."""
    policy = Policy(
        canonical_host=canonical_host,
        enforce_https=enforce_https,
        fixed_rewrites=fixed_rewrites or {},
        whitelist=whitelist or {},
    )
    return RedirectPolicyService(policy)
