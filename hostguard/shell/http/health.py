"""
Health endpoints.

Key behaviors:
- /health: overall status plus the active policy's canonical host
- /health/live: liveness probe (process alive)

These paths are exempt from the redirect middleware by default so that
probes over plain HTTP on an IP address are answered instead of redirected.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from hostguard.components.redirect_policy import PolicySourcePort

# --- Types ---


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass
class CheckResult:
    """Result of a single health check."""

    name: str
    status: HealthStatus
    message: str = ""
    details: dict[str, Any] = field(default_factory=dict)


# --- Built-in Checks ---


class PolicyCheck:
    """Check that a redirect policy is active."""

    name = "policy"

    def __init__(self, policy_source: PolicySourcePort) -> None:
        self._policy_source = policy_source

    def check(self) -> CheckResult:
        try:
            policy = self._policy_source.get_policy()
        except Exception as e:
            return CheckResult(
                name=self.name,
                status=HealthStatus.UNHEALTHY,
                message=f"Policy unavailable: {e!s}",
            )

        return CheckResult(
            name=self.name,
            status=HealthStatus.HEALTHY,
            message="Policy active",
            details={
                "canonical_host": policy.canonical_host,
                "enforce_https": policy.enforce_https,
                "fixed_rewrites": len(policy.fixed_rewrites),
                "whitelist": len(policy.whitelist),
            },
        )


# --- FastAPI Router ---


def create_health_router(
    policy_source: PolicySourcePort,
    version: str = "0.0.0",
) -> APIRouter:
    """
    Create FastAPI router for health endpoints.

    Args:
        policy_source: Source of the active redirect policy
        version: Application version string

    Returns:
        FastAPI router with health endpoints
    """
    router = APIRouter(tags=["health"])
    started_at = time.time()
    policy_check = PolicyCheck(policy_source)

    @router.get(
        "/health",
        response_model=None,
        responses={
            200: {"description": "Service is healthy"},
            503: {"description": "Service is unhealthy"},
        },
    )
    def health_check() -> JSONResponse:
        result = policy_check.check()
        response = {
            "status": result.status.value,
            "version": version,
            "uptime_seconds": time.time() - started_at,
            "checks": [
                {
                    "name": result.name,
                    "status": result.status.value,
                    "message": result.message,
                    "details": result.details,
                }
            ],
        }

        status_code = (
            status.HTTP_200_OK
            if result.status == HealthStatus.HEALTHY
            else status.HTTP_503_SERVICE_UNAVAILABLE
        )
        return JSONResponse(content=response, status_code=status_code)

    @router.get("/health/live", response_model=None)
    def liveness_check() -> JSONResponse:
        """Always 200 while the process is responding."""
        return JSONResponse(
            content={"alive": True, "uptime_seconds": time.time() - started_at},
            status_code=status.HTTP_200_OK,
        )

    return router
