from pathlib import Path

import pytest

from hostguard.components.redirect_policy import InvalidPolicy
from hostguard.rules.loader import (
    ENV_CANONICAL_HOST,
    ENV_ENFORCE_HTTPS,
    apply_env_overrides,
    load_policy,
    load_rules,
    parse_bool,
)
from hostguard.rules.models import RedirectRules


def test_load_rules(rules_path: Path) -> None:
    rules = load_rules(rules_path)
    assert rules.canonical_host == "example.com"
    assert rules.enforce_https is True
    assert rules.fixed_rewrites == {"/old-page": "/new-page"}
    assert rules.whitelist == {"allowed-page1": "/allowed-page1"}


def test_load_rules_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_rules(tmp_path / "missing.yaml")


def test_load_rules_defaults(tmp_path: Path) -> None:
    path = tmp_path / "rules.yaml"
    path.write_text("canonical_host: example.com\n")
    rules = load_rules(path)
    assert rules.enforce_https is True
    assert rules.fixed_rewrites == {}
    assert rules.whitelist == {}


def test_load_rules_from_markdown_fence(tmp_path: Path) -> None:
    path = tmp_path / "rules.md"
    path.write_text(
        "# Redirect rules\n\nSome prose.\n\n```yaml\ncanonical_host: example.org\n```\n\nMore prose.\n"
    )
    assert load_rules(path).canonical_host == "example.org"


def test_load_rules_invalid_yaml(tmp_path: Path) -> None:
    path = tmp_path / "rules.yaml"
    path.write_text("canonical_host: [unclosed\n")
    with pytest.raises(ValueError, match="Invalid YAML syntax"):
        load_rules(path)


def test_load_rules_unknown_key(tmp_path: Path) -> None:
    path = tmp_path / "rules.yaml"
    path.write_text("canonical_host: example.com\nredirect_to_anything: true\n")
    with pytest.raises(ValueError, match="Rules validation failed"):
        load_rules(path)


def test_load_rules_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "rules.yaml"
    path.write_text("")
    with pytest.raises(ValueError, match="Rules validation failed"):
        load_rules(path)


def test_load_policy(rules_path: Path) -> None:
    policy = load_policy(rules_path)
    assert policy.canonical_host == "example.com"
    assert policy.whitelist["allowed-page1"] == "/allowed-page1"


def test_load_policy_rejects_open_redirect_whitelist(tmp_path: Path) -> None:
    path = tmp_path / "rules.yaml"
    path.write_text("canonical_host: example.com\nwhitelist:\n  out: https://evil.com\n")
    with pytest.raises(InvalidPolicy):
        load_policy(path)


def test_env_overrides(rules_path: Path) -> None:
    env = {ENV_CANONICAL_HOST: "example.org", ENV_ENFORCE_HTTPS: "false"}
    policy = load_policy(rules_path, env)
    assert policy.canonical_host == "example.org"
    assert policy.enforce_https is False


def test_env_overrides_ignore_empty_values() -> None:
    rules = RedirectRules(canonical_host="example.com")
    assert apply_env_overrides(rules, {ENV_CANONICAL_HOST: ""}) is rules


def test_env_override_bad_bool(rules_path: Path) -> None:
    with pytest.raises(ValueError, match="Invalid boolean"):
        load_policy(rules_path, {ENV_ENFORCE_HTTPS: "maybe"})


@pytest.mark.parametrize(
    ("value", "expected"),
    [("1", True), ("TRUE", True), (" yes ", True), ("off", False), ("0", False)],
)
def test_parse_bool(value: str, expected: bool) -> None:
    assert parse_bool(value) is expected


def test_shipped_rules_file_is_valid() -> None:
    path = Path(__file__).parent.parent.parent / "redirect_rules.yaml"
    policy = load_policy(path)
    assert policy.canonical_host == "example.com"
