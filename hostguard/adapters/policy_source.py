"""
Policy source adapters.

Supply the active redirect policy to the HTTP layer. The file-backed source
supports hot reload: a new Policy is built off to the side and the reference
is swapped in one assignment, so readers never see a half-updated policy.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from threading import Lock

from hostguard.components.redirect_policy import Policy
from hostguard.rules.loader import load_policy

logger = logging.getLogger(__name__)


class StaticPolicySource:
    """Fixed policy, for tests and embedded use."""

    def __init__(self, policy: Policy) -> None:
        self._policy = policy

    def get_policy(self) -> Policy:
        return self._policy


class FilePolicySource:
    """Policy loaded from a rules file, reloadable at runtime."""

    def __init__(
        self,
        path: Path,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._path = path
        self._env = env if env is not None else os.environ
        self._reload_lock = Lock()
        # Fail fast: an unloadable policy prevents startup
        self._policy = load_policy(self._path, self._env)
        logger.info(
            "Redirect policy loaded from %s (canonical host: %s)",
            self._path,
            self._policy.canonical_host,
        )

    @property
    def path(self) -> Path:
        return self._path

    def get_policy(self) -> Policy:
        return self._policy

    def reload(self) -> Policy:
        """
        Re-read the rules file and swap in the new policy.

        On failure the current policy stays active and the error propagates.
        """
        with self._reload_lock:
            try:
                policy = load_policy(self._path, self._env)
            except Exception:
                logger.exception("Redirect policy reload failed; keeping previous policy")
                raise

            self._policy = policy

        logger.info("Redirect policy reloaded from %s", self._path)
        return policy
