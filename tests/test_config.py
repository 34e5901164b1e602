from __future__ import annotations

from pathlib import Path

import pytest

from handler_gateway import validate_env
from handler_gateway.config import DEFAULT_MAX_BODY_BYTES, Settings, load_settings
from handler_gateway.errors import ConfigurationError, StartupError

ENV_VARS = (
    "INTERNAL_AUTH_TOKEN",
    "PORT",
    "HOST",
    "CHECK_HANDLER",
    "IDENTIFY_DUPLICATES_HANDLER",
    "MAX_BODY_BYTES",
    "LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env: pytest.MonkeyPatch) -> None:
    settings = load_settings(dotenv=False)

    assert settings == Settings()
    assert settings.port == 3000
    assert settings.host == "0.0.0.0"
    assert settings.max_body_bytes == DEFAULT_MAX_BODY_BYTES == 2 * 1024 * 1024
    assert settings.auth_token is None


def test_environment_overrides(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("INTERNAL_AUTH_TOKEN", "tok")
    clean_env.setenv("PORT", "8080")
    clean_env.setenv("CHECK_HANDLER", "handlers.check")
    clean_env.setenv("LOG_LEVEL", "debug")

    settings = load_settings(dotenv=False)

    assert settings.auth_token == "tok"
    assert settings.port == 8080
    assert settings.check_handler == "handlers.check"
    assert settings.log_level == "DEBUG"


def test_empty_token_counts_as_unset(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("INTERNAL_AUTH_TOKEN", "")

    assert load_settings(dotenv=False).auth_token is None


def test_invalid_port(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("PORT", "http")

    with pytest.raises(ConfigurationError, match="PORT"):
        load_settings(dotenv=False)


def test_settings_are_immutable() -> None:
    settings = Settings(auth_token="a")

    with pytest.raises(AttributeError):
        settings.auth_token = "b"  # type: ignore[misc]


def _write_handlers(tmp_path: Path) -> None:
    (tmp_path / "gw_cfg_check.py").write_text(
        "def handler(event, context):\n    return {'body': 'check'}\n", encoding="utf-8"
    )
    (tmp_path / "gw_cfg_identify.py").write_text(
        "def default(event, context):\n    return {'body': 'identify'}\n", encoding="utf-8"
    )
    (tmp_path / "gw_cfg_broken.py").write_text("handler = None\n", encoding="utf-8")


def test_validate_env_resolves_both_handlers(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write_handlers(tmp_path)
    monkeypatch.syspath_prepend(str(tmp_path))

    check, identify = validate_env.validate_env_or_raise(
        Settings(check_handler="gw_cfg_check", identify_duplicates_handler="gw_cfg_identify")
    )

    assert check.name == "check"
    assert check.fn({}, {}) == {"body": "check"}
    assert identify.name == "identify-duplicates"
    assert identify.fn({}, {}) == {"body": "identify"}


def test_validate_env_fails_on_unresolvable_handler(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write_handlers(tmp_path)
    monkeypatch.syspath_prepend(str(tmp_path))

    with pytest.raises(StartupError, match="identify-duplicates"):
        validate_env.validate_env_or_raise(
            Settings(check_handler="gw_cfg_check", identify_duplicates_handler="gw_cfg_broken")
        )


def test_validate_env_script_reports_failure(
    clean_env: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    clean_env.setenv("CHECK_HANDLER", "gw_cfg_does_not_exist")
    clean_env.setattr(validate_env, "load_settings", lambda: load_settings(dotenv=False))

    assert validate_env.main(["validate_env"]) == 1
    assert "validate_env failed" in capsys.readouterr().err


def test_validate_env_script_reports_ok(
    tmp_path: Path, clean_env: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_handlers(tmp_path)
    clean_env.syspath_prepend(str(tmp_path))
    clean_env.setenv("CHECK_HANDLER", "gw_cfg_check")
    clean_env.setenv("IDENTIFY_DUPLICATES_HANDLER", "gw_cfg_identify")
    clean_env.setattr(validate_env, "load_settings", lambda: load_settings(dotenv=False))

    assert validate_env.main(["validate_env"]) == 0
    out = capsys.readouterr().out
    assert "validate_env OK" in out
    assert "auth_token=missing" in out


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("debug", "DEBUG"), ("Info", "INFO"), ("warn", "WARNING"), ("fatal", "CRITICAL"), ("error", "ERROR")],
)
def test_log_level_is_normalized(clean_env: pytest.MonkeyPatch, raw: str, expected: str) -> None:
    clean_env.setenv("LOG_LEVEL", raw)

    assert load_settings(dotenv=False).log_level == expected


@pytest.mark.parametrize("raw", ["verbose", "trace", "10"])
def test_unknown_log_level_is_rejected(clean_env: pytest.MonkeyPatch, raw: str) -> None:
    clean_env.setenv("LOG_LEVEL", raw)

    with pytest.raises(ConfigurationError, match="LOG_LEVEL"):
        load_settings(dotenv=False)
