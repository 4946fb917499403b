from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import ValidationError

from hostguard.components.redirect_policy import Policy
from hostguard.rules.models import RedirectRules

ENV_CANONICAL_HOST = "HOSTGUARD_CANONICAL_HOST"
ENV_ENFORCE_HTTPS = "HOSTGUARD_ENFORCE_HTTPS"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _strip_markdown_fence(content: str) -> str:
    """Return the first ```yaml block if there is one, else the whole text."""
    yaml_lines = []
    in_block = False
    found_block = False

    for line in content.splitlines():
        s_line = line.strip()
        if s_line.startswith("```yaml"):
            in_block = True
            found_block = True
            continue
        if in_block and s_line.startswith("```"):
            break

        if in_block:
            yaml_lines.append(line)

    if found_block:
        return "\n".join(yaml_lines)
    return content


def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")


def load_rules(path: Path) -> RedirectRules:
    """
    Load and validate the redirect rules file.
    Raises FileNotFoundError if file missing.
    Raises ValueError if YAML or schema invalid.
    """
    if not path.exists():
        raise FileNotFoundError(f"Rules file not found at: {path}")

    with open(path) as f:
        content = f.read()

    try:
        data = yaml.safe_load(_strip_markdown_fence(content))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in rules file: {e}") from e

    try:
        return RedirectRules.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Rules validation failed:\n{e}") from e


def apply_env_overrides(
    rules: RedirectRules,
    env: Mapping[str, str],
) -> RedirectRules:
    """Override canonical host and HTTPS flag from the environment."""
    updates: dict[str, object] = {}

    if env.get(ENV_CANONICAL_HOST):
        updates["canonical_host"] = env[ENV_CANONICAL_HOST]

    if env.get(ENV_ENFORCE_HTTPS):
        updates["enforce_https"] = parse_bool(env[ENV_ENFORCE_HTTPS])

    if not updates:
        return rules
    return rules.model_copy(update=updates)


def load_policy(path: Path, env: Mapping[str, str] | None = None) -> Policy:
    """
    Load rules, apply environment overrides and build the policy.
    Raises InvalidPolicy if the rules describe an unsafe policy.
    """
    rules = load_rules(path)
    if env is not None:
        rules = apply_env_overrides(rules, env)
    return rules.to_policy()
