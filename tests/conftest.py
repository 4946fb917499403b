from pathlib import Path

import pytest

from hostguard.components.redirect_policy import Policy

RULES_YAML = """\
canonical_host: example.com
enforce_https: true
fixed_rewrites:
  /old-page: /new-page
whitelist:
  allowed-page1: /allowed-page1
"""


@pytest.fixture
def policy() -> Policy:
    """Policy from the redirect scenarios: example.com, HTTPS, one whitelist key."""
    return Policy(
        canonical_host="example.com",
        enforce_https=True,
        fixed_rewrites={"/legacy": "/current"},
        whitelist={"allowed-page1": "/allowed-page1"},
    )


@pytest.fixture
def rules_path(tmp_path: Path) -> Path:
    """Valid rules file in a temporary directory."""
    path = tmp_path / "redirect_rules.yaml"
    path.write_text(RULES_YAML)
    return path
