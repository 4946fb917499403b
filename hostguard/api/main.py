import logging
import sys

from fastapi import FastAPI

from hostguard import __version__
from hostguard.adapters.policy_source import FilePolicySource
from hostguard.api.deps import Settings, get_settings
from hostguard.api.middleware import RedirectPolicyMiddleware
from hostguard.app_shell.config import validate_settings
from hostguard.components.redirect_policy import PolicySourcePort
from hostguard.shell.http.health import create_health_router

logger = logging.getLogger(__name__)

VERSION = __version__


def create_app(
    policy_source: PolicySourcePort,
    settings: Settings | None = None,
) -> FastAPI:
    """Build the application with the redirect middleware installed."""
    settings = settings or get_settings()

    app = FastAPI(
        title="hostguard",
        version=VERSION,
        docs_url=None,
        redoc_url=None,
    )

    app.include_router(create_health_router(policy_source, version=VERSION))

    app.add_middleware(
        RedirectPolicyMiddleware,
        policy_source=policy_source,
        exempt_paths=settings.exempt_paths,
        trust_forwarded_proto=settings.trust_forwarded_proto,
    )

    return app


def create_app_from_env() -> FastAPI:
    """Entry point for ASGI servers. Exits on invalid configuration."""
    settings = get_settings()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if validate_settings(settings):
        sys.exit(1)

    logging.getLogger().setLevel(settings.log_level)

    # Load policy on startup (fail-fast)
    try:
        policy_source = FilePolicySource(settings.policy_path, settings.env)
    except Exception as e:
        logger.critical("Redirect policy load failed: %s", e)
        sys.exit(1)

    return create_app(policy_source, settings)
