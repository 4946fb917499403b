import os
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

from hostguard.rules.loader import parse_bool

ENV_POLICY_PATH = "HOSTGUARD_POLICY_PATH"
ENV_TRUST_FORWARDED_PROTO = "HOSTGUARD_TRUST_FORWARDED_PROTO"
ENV_EXEMPT_PATHS = "HOSTGUARD_EXEMPT_PATHS"
ENV_LOG_LEVEL = "HOSTGUARD_LOG_LEVEL"


# --- Settings ---
class Settings:
    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        env = env if env is not None else os.environ
        self.env = env
        self.base_dir = Path(os.getcwd())
        self.policy_path = Path(
            env.get(ENV_POLICY_PATH, str(self.base_dir / "redirect_rules.yaml"))
        )
        self.trust_forwarded_proto = parse_bool(env.get(ENV_TRUST_FORWARDED_PROTO, "false"))
        exempt = env.get(ENV_EXEMPT_PATHS, "/health,/health/live")
        self.exempt_paths = tuple(p.strip() for p in exempt.split(",") if p.strip())
        self.log_level = env.get(ENV_LOG_LEVEL, "INFO").upper()


@lru_cache
def get_settings() -> Settings:
    return Settings()
