import logging

from hostguard.api.deps import Settings

logger = logging.getLogger(__name__)


def validate_settings(settings: Settings) -> list[str]:
    """
    Validate operational requirements before startup.
    Returns a list of problems; empty when startup may proceed.
    """
    problems = []

    # 1. Policy file
    if not settings.policy_path.is_file():
        problems.append(f"Policy file not found: {settings.policy_path}")

    # 2. Exempt paths must be plain absolute paths
    for path in settings.exempt_paths:
        if not path.startswith("/"):
            problems.append(f"Exempt path must start with '/': {path!r}")

    # 3. Log level
    if not isinstance(logging.getLevelName(settings.log_level), int):
        problems.append(f"Unknown log level: {settings.log_level}")

    for problem in problems:
        logger.error(problem)

    if not problems:
        logger.info("Configuration validated.")

    return problems
