"""
Redirect policy middleware.

Applies the redirect decision engine in the request path. A Redirect decision
short-circuits with a 301 and a Location header; NoRedirect falls through to
the next handler.

Key behaviors:
- Host is taken from the request URL (port kept only when explicit)
- Scheme comes from X-Forwarded-Proto only when the proxy is trusted
- Exempt paths (health probes) are never redirected
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from fastapi import Request
from fastapi.responses import RedirectResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from hostguard.components.redirect_policy import (
    DecideInput,
    IncomingRequest,
    PolicySourcePort,
    Redirect,
    run_decide,
)

logger = logging.getLogger(__name__)

DEFAULT_EXEMPT_PATHS = frozenset({"/health", "/health/live"})


def request_host(request: Request) -> str:
    """Host as the client addressed it, without a default port."""
    hostname = request.url.hostname or ""
    if ":" in hostname:
        # IPv6 literal
        hostname = f"[{hostname}]"

    port = request.url.port
    if port is None:
        return hostname
    return f"{hostname}:{port}"


def request_scheme(request: Request, trust_forwarded_proto: bool = False) -> str:
    if trust_forwarded_proto:
        forwarded = request.headers.get("x-forwarded-proto")
        if forwarded:
            # First hop wins when proxies append
            return forwarded.split(",")[0].strip().lower()
    return request.url.scheme


def to_incoming_request(
    request: Request,
    trust_forwarded_proto: bool = False,
) -> IncomingRequest:
    """Translate a Starlette request into the engine's request model."""
    query: dict[str, str] = {}
    for key, value in request.query_params.multi_items():
        query.setdefault(key, value)

    return IncomingRequest(
        host=request_host(request),
        scheme=request_scheme(request, trust_forwarded_proto),
        # Decoded and not re-split, so an escaped "?" or "#" stays in the path
        path=request.scope["path"],
        query=query,
    )


class RedirectPolicyMiddleware(BaseHTTPMiddleware):
    """Evaluate every request against the active redirect policy."""

    def __init__(
        self,
        app: ASGIApp,
        policy_source: PolicySourcePort,
        exempt_paths: Iterable[str] = DEFAULT_EXEMPT_PATHS,
        trust_forwarded_proto: bool = False,
    ) -> None:
        super().__init__(app)
        self._policy_source = policy_source
        self._exempt_paths = frozenset(exempt_paths)
        self._trust_forwarded_proto = trust_forwarded_proto

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.scope["path"] in self._exempt_paths:
            return await call_next(request)

        incoming = to_incoming_request(request, self._trust_forwarded_proto)
        output = run_decide(DecideInput(request=incoming), policy_source=self._policy_source)
        decision = output.decision

        if isinstance(decision, Redirect):
            logger.debug(
                "Redirecting %s://%s%s via %s rule",
                incoming.scheme,
                incoming.host,
                incoming.path,
                decision.rule,
            )
            return RedirectResponse(url=decision.target_url, status_code=decision.status_code)

        return await call_next(request)
