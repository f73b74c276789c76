"""Tests for configuration loading and validation logic.

Updates:
  v0.2.0 - 2026-10-15 - Cover remote target validation from JSON and env.
  v0.1.1 - 2026-10-14 - Warn and ignore LiteLLM API secrets supplied via JSON configuration.
  v0.1.0 - 2026-10-11 - Cover JSON/env/.env precedence and validation errors.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from pytest import LogCaptureFixture, MonkeyPatch

from config import PromptHubSettings, SettingsError, load_settings


def _write_config(store: Path, payload: dict[str, object]) -> Path:
    store.mkdir(parents=True, exist_ok=True)
    path = store / "config.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_defaults_without_any_configuration() -> None:
    settings = load_settings()

    assert settings.store_path == Path(".prompthub")
    assert settings.default_model == "gpt-4"
    assert settings.max_tokens == 2000
    assert settings.temperature == 0.2
    assert settings.default_branch == "main"
    assert settings.remote is None
    assert not settings.llm_configured


def test_json_config_in_store_root_is_loaded(tmp_path: Path) -> None:
    store = tmp_path / "store"
    _write_config(store, {"model": "claude-3", "max_tokens": 500, "default_branch": "dev"})

    settings = load_settings(store_path=store)

    assert settings.default_model == "claude-3"
    assert settings.max_tokens == 500
    assert settings.default_branch == "dev"
    assert settings.config_path == store / "config.json"


def test_json_config_takes_precedence_over_env(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    store = tmp_path / "store"
    _write_config(store, {"default_model": "from-json"})
    monkeypatch.setenv("PROMPTHUB_DEFAULT_MODEL", "from-env")
    monkeypatch.setenv("PROMPTHUB_TEMPERATURE", "0.7")

    settings = load_settings(store_path=store)

    assert settings.default_model == "from-json"
    assert settings.temperature == 0.7


def test_keyword_overrides_win(tmp_path: Path) -> None:
    store = tmp_path / "store"
    _write_config(store, {"default_model": "from-json"})

    settings = load_settings(store_path=store, default_model="from-kwargs")

    assert settings.default_model == "from-kwargs"


def test_openai_api_key_alias_configures_execution(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "  sk-test-123456  ")

    settings = load_settings()

    assert settings.litellm_api_key == "sk-test-123456"
    assert settings.llm_configured
    assert "sk-test" not in repr(settings)


def test_secrets_in_json_are_ignored(tmp_path: Path, caplog: LogCaptureFixture) -> None:
    store = tmp_path / "store"
    _write_config(store, {"litellm_api_key": "leaked", "default_model": "gpt-4o"})

    with caplog.at_level(logging.WARNING, logger="prompthub.settings"):
        settings = load_settings(store_path=store)

    assert settings.litellm_api_key is None
    assert settings.default_model == "gpt-4o"
    assert "Ignoring secret key" in caplog.text


def test_dotenv_values_are_read(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    env_file = tmp_path / "custom.env"
    env_file.write_text("PROMPTHUB_DEFAULT_MODEL=from-dotenv\n", encoding="utf-8")
    monkeypatch.setenv("PROMPTHUB_ENV_FILE", str(env_file))

    assert load_settings().default_model == "from-dotenv"


def test_explicit_config_path_must_exist(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("PROMPTHUB_CONFIG_JSON", str(tmp_path / "missing.json"))

    with pytest.raises(SettingsError):
        load_settings()


def test_invalid_json_raises_settings_error(tmp_path: Path) -> None:
    store = tmp_path / "store"
    store.mkdir()
    (store / "config.json").write_text("{oops", encoding="utf-8")

    with pytest.raises(SettingsError):
        load_settings(store_path=store)


@pytest.mark.parametrize(
    "overrides",
    [{"temperature": 3.5}, {"max_tokens": 0}, {"default_model": "  "}],
)
def test_invalid_values_raise_settings_error(overrides: dict[str, object]) -> None:
    with pytest.raises(SettingsError):
        load_settings(**overrides)


def test_remote_from_json_is_normalised(tmp_path: Path) -> None:
    store = tmp_path / "store"
    _write_config(store, {"remote": {"type": "S3", "options": {"bucket": "prompts"}}})

    settings = load_settings(store_path=store)

    assert settings.remote is not None
    assert settings.remote.type == "s3"
    assert settings.remote.options == {"bucket": "prompts"}


def test_unknown_remote_type_is_rejected(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setenv("PROMPTHUB_REMOTE_TYPE", "ftp")

    with pytest.raises(SettingsError):
        load_settings()


def test_drop_params_accept_comma_separated_env(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setenv("PROMPTHUB_LITELLM_DROP_PARAMS", "temperature, max_tokens")

    settings = PromptHubSettings()

    assert settings.litellm_drop_params == ["temperature", "max_tokens"]
