import logging
from pathlib import Path

import pytest
from fastapi import FastAPI

from hostguard.api.deps import Settings, get_settings
from hostguard.api.main import create_app_from_env
from hostguard.app_shell.config import validate_settings


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_valid_settings(rules_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    settings = Settings(env={"HOSTGUARD_POLICY_PATH": str(rules_path)})
    with caplog.at_level(logging.INFO):
        assert validate_settings(settings) == []
    assert "Configuration validated." in caplog.text


def test_missing_policy_file(tmp_path: Path) -> None:
    settings = Settings(env={"HOSTGUARD_POLICY_PATH": str(tmp_path / "nope.yaml")})
    problems = validate_settings(settings)
    assert len(problems) == 1
    assert "Policy file not found" in problems[0]


def test_bad_exempt_path_and_log_level(rules_path: Path) -> None:
    settings = Settings(
        env={
            "HOSTGUARD_POLICY_PATH": str(rules_path),
            "HOSTGUARD_EXEMPT_PATHS": "health",
            "HOSTGUARD_LOG_LEVEL": "chatty",
        }
    )
    problems = validate_settings(settings)
    assert len(problems) == 2


def test_create_app_from_env(rules_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOSTGUARD_POLICY_PATH", str(rules_path))
    monkeypatch.delenv("HOSTGUARD_CANONICAL_HOST", raising=False)
    monkeypatch.delenv("HOSTGUARD_ENFORCE_HTTPS", raising=False)
    monkeypatch.delenv("HOSTGUARD_LOG_LEVEL", raising=False)
    assert isinstance(create_app_from_env(), FastAPI)


def test_create_app_from_env_exits_on_bad_policy(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    path = tmp_path / "rules.yaml"
    path.write_text("canonical_host: example.com\nwhitelist:\n  out: https://evil.com\n")
    monkeypatch.setenv("HOSTGUARD_POLICY_PATH", str(path))
    monkeypatch.delenv("HOSTGUARD_LOG_LEVEL", raising=False)

    with pytest.raises(SystemExit) as exc_info:
        create_app_from_env()
    assert exc_info.value.code == 1


def test_create_app_from_env_exits_on_missing_file(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("HOSTGUARD_POLICY_PATH", str(tmp_path / "missing.yaml"))
    with pytest.raises(SystemExit):
        create_app_from_env()
