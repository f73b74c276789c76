"""Settings management utilities for PromptHub configuration.

Updates:
  v0.3.0 - 2026-10-15 - Add remote target settings validated against supported types.
  v0.2.1 - 2026-10-14 - Accept OPENAI_API_KEY as an alias for the LiteLLM API key.
  v0.2.0 - 2026-10-13 - Load JSON config from the store root and ignore secrets found there.
  v0.1.0 - 2026-10-11 - Introduce pydantic settings with env, .env, and JSON sources.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Literal, cast

from dotenv import dotenv_values
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

logger = logging.getLogger("prompthub.settings")

_DOTENV_FALLBACK_PATH = ".env"

DEFAULT_STORE_PATH = Path(".prompthub")
CONFIG_FILENAME = "config.json"
DEFAULT_MODEL = "gpt-4"
DEFAULT_MAX_TOKENS = 2000
DEFAULT_TEMPERATURE = 0.2
DEFAULT_BRANCH = "main"

REMOTE_TYPES: tuple[str, ...] = ("s3", "github", "rest")
SECRET_KEYS = frozenset({"litellm_api_key", "OPENAI_API_KEY", "LITELLM_API_KEY"})

# Field name -> environment keys probed after the PROMPTHUB_ prefix. Upper-case
# keys are also probed without the prefix.
_ENV_ALIASES: dict[str, list[str]] = {
    "store_path": ["STORE_PATH", "store_path"],
    "default_model": ["DEFAULT_MODEL", "MODEL", "default_model"],
    "max_tokens": ["MAX_TOKENS", "max_tokens"],
    "temperature": ["TEMPERATURE", "temperature"],
    "default_branch": ["DEFAULT_BRANCH", "default_branch"],
    "litellm_api_key": ["LITELLM_API_KEY", "litellm_api_key", "OPENAI_API_KEY"],
    "litellm_api_base": ["LITELLM_API_BASE", "litellm_api_base", "OPENAI_API_BASE"],
    "litellm_api_version": ["LITELLM_API_VERSION", "litellm_api_version"],
    "litellm_drop_params": ["LITELLM_DROP_PARAMS", "litellm_drop_params"],
    "litellm_timeout_seconds": ["LITELLM_TIMEOUT_SECONDS", "litellm_timeout_seconds"],
    "litellm_logging_enabled": ["LITELLM_LOGGING_ENABLED", "litellm_logging_enabled"],
    "logging_config_path": ["LOGGING_CONFIG", "logging_config_path"],
}

# Keys copied from the JSON config file when present.
_JSON_KEYS = (
    "default_model",
    "max_tokens",
    "temperature",
    "default_branch",
    "litellm_api_base",
    "litellm_api_version",
    "litellm_drop_params",
    "litellm_timeout_seconds",
    "litellm_logging_enabled",
    "logging_config_path",
    "remote",
)


class SettingsError(Exception):
    """Raised when PromptHub configuration cannot be loaded or validated."""


def _read_dotenv_values() -> dict[str, str]:
    """Load ``.env`` entries into a mapping without mutating ``os.environ``."""
    env_file_override = os.getenv("PROMPTHUB_ENV_FILE")
    if env_file_override is not None:
        candidate = env_file_override.strip()
        if not candidate:
            return {}
        path = Path(candidate).expanduser()
    else:
        path = Path(_DOTENV_FALLBACK_PATH).expanduser()
    if not path.is_file():
        return {}
    raw_values = dotenv_values(str(path))
    return {str(key): str(value) for key, value in raw_values.items() if value is not None}


def resolve_config_path(store_path: str | Path | None = None) -> Path:
    """Return the JSON config path for *store_path*.

    ``PROMPTHUB_CONFIG_JSON`` wins when set; otherwise the file lives inside
    the store root.
    """
    explicit_path = os.getenv("PROMPTHUB_CONFIG_JSON")
    if explicit_path and explicit_path.strip():
        return Path(explicit_path.strip()).expanduser()
    root = store_path or os.getenv("PROMPTHUB_STORE_PATH") or DEFAULT_STORE_PATH
    return Path(str(root)).expanduser() / CONFIG_FILENAME


class RemoteSettings(BaseModel):
    """Configured remote target. Recorded only; nothing is synchronised."""

    type: Literal["s3", "github", "rest"]
    options: dict[str, str] = Field(default_factory=dict)

    @field_validator("type", mode="before")
    def _normalise_type(cls, value: object) -> str:
        """Lower-case the remote type and reject unsupported ones."""
        text = str(value or "").strip().lower()
        if text not in REMOTE_TYPES:
            raise ValueError(
                f"Unsupported remote type {value!r}; expected one of: {', '.join(REMOTE_TYPES)}"
            )
        return text


class PromptHubSettings(BaseSettings):
    """Application configuration sourced from keyword overrides, JSON, env, and .env."""

    store_path: Path = Field(default=DEFAULT_STORE_PATH)
    default_model: str = Field(
        default=DEFAULT_MODEL,
        description="LiteLLM model used when a command does not name one.",
    )
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS)
    temperature: float = Field(default=DEFAULT_TEMPERATURE)
    default_branch: str = Field(default=DEFAULT_BRANCH)
    litellm_api_key: str | None = Field(
        default=None,
        description="LiteLLM API key.",
        repr=False,
    )
    litellm_api_base: str | None = Field(
        default=None,
        description="Optional LiteLLM API base URL override.",
    )
    litellm_api_version: str | None = Field(
        default=None,
        description="Optional LiteLLM API version (useful for Azure OpenAI).",
    )
    litellm_drop_params: list[str] | None = Field(
        default=None,
        description="Optional LiteLLM parameters to drop before forwarding requests.",
    )
    litellm_timeout_seconds: float | None = Field(default=None)
    litellm_logging_enabled: bool = Field(
        default=False,
        description="Surface LiteLLM's own loggers instead of silencing them.",
    )
    logging_config_path: Path | None = Field(default=None)
    remote: RemoteSettings | None = None

    model_config = cast(
        "SettingsConfigDict",
        {
            "env_prefix": "PROMPTHUB_",
            "case_sensitive": False,
            "populate_by_name": True,
        },
    )

    @field_validator("store_path", mode="before")
    def _normalise_path(cls, value: Any) -> Path:
        """Expand user-relative paths and coerce values to Path instances."""
        if value is None or not str(value).strip():
            raise ValueError("a filesystem path is required")
        return Path(str(value).strip()).expanduser()

    @field_validator("max_tokens")
    def _validate_max_tokens(cls, value: int) -> int:
        """Ensure the token budget is positive."""
        if value <= 0:
            raise ValueError("max_tokens must be greater than zero")
        return value

    @field_validator("temperature")
    def _validate_temperature(cls, value: float) -> float:
        """Keep temperature within the range providers accept."""
        if not 0.0 <= value <= 2.0:
            raise ValueError("temperature must be between 0 and 2")
        return value

    @field_validator("default_model", "default_branch", mode="before")
    def _require_text(cls, value: object) -> str:
        """Reject blank model and branch names."""
        text = str(value or "").strip()
        if not text:
            raise ValueError("value must be a non-empty string")
        return text

    @field_validator("litellm_api_key", "litellm_api_base", "litellm_api_version", mode="before")
    def _strip_strings(cls, value: str | None) -> str | None:
        """Normalise optional strings by stripping whitespace and empty values."""
        if value is None:
            return None
        stripped = str(value).strip()
        return stripped or None

    @field_validator("litellm_drop_params", mode="before")
    def _normalise_drop_params(cls, value: object) -> list[str] | None:
        if value in (None, "", [], ()):  # type: ignore[comparison-overlap]
            return None
        if isinstance(value, str):
            stripped = value.strip()
            try:
                parsed = json.loads(stripped)
            except json.JSONDecodeError:
                items = [item.strip() for item in stripped.split(",") if item.strip()]
            else:
                if isinstance(parsed, Sequence) and not isinstance(parsed, (str, bytes, bytearray)):
                    sequence = cast("Sequence[object]", parsed)
                    items = [str(item).strip() for item in sequence if str(item).strip()]
                else:
                    items = [str(parsed).strip()]
            return items or None
        if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
            sequence_value = cast("Sequence[object]", value)
            items = [str(item).strip() for item in sequence_value if str(item).strip()]
            return items or None
        raise ValueError(
            "litellm_drop_params must be a list, comma-separated string, or JSON array"
        )

    @property
    def config_path(self) -> Path:
        """Return the JSON config file these settings read and persist to."""
        return resolve_config_path(self.store_path)

    @property
    def llm_configured(self) -> bool:
        """Return True when credentials for model execution are present."""
        return bool(self.litellm_api_key)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
    ]:
        """Define configuration source precedence.

        Order (highest → lowest):
            1. Explicit keyword arguments (e.g. load_settings(store_path="...")).
            2. JSON configuration file in the store root.
            3. Environment variables / aliases, then ``.env`` entries.
        """
        init_kwargs = cast("Mapping[str, Any]", getattr(init_settings, "init_kwargs", {}))

        def env_with_aliases(_: BaseSettings | None = None) -> dict[str, Any]:
            data: dict[str, Any] = {}
            prefix = str(cast("dict[str, Any]", cls.model_config).get("env_prefix", ""))
            dotenv_map = _read_dotenv_values()

            def _lookup(candidate: str) -> str | None:
                value = os.getenv(candidate)
                if value is None:
                    value = dotenv_map.get(candidate)
                if value is None:
                    return None
                stripped_value = str(value).strip()
                return stripped_value or None

            for field, keys in _ENV_ALIASES.items():
                for key in keys:
                    candidates = [f"{prefix}{key}", f"{prefix}{key.upper()}"]
                    if key.isupper():
                        candidates.append(key)
                    value = next(
                        (found for found in map(_lookup, candidates) if found is not None),
                        None,
                    )
                    if value is not None:
                        data[field] = value
                        break
            remote_type = _lookup(f"{prefix}REMOTE_TYPE")
            if remote_type is not None:
                data["remote"] = {"type": remote_type}
            return data

        return (
            init_settings,
            cls._json_config_settings_source(init_kwargs.get("store_path")),
            cast("PydanticBaseSettingsSource", env_with_aliases),
        )

    @classmethod
    def _json_config_settings_source(
        cls,
        store_path: str | Path | None,
    ) -> PydanticBaseSettingsSource:
        """Return settings extracted from an optional JSON config file."""

        def _loader(_: BaseSettings | None = None) -> dict[str, Any]:
            path = resolve_config_path(store_path)
            if not path.exists():
                if os.getenv("PROMPTHUB_CONFIG_JSON"):
                    raise SettingsError(f"Configuration file not found: {path}")
                return {}
            try:
                raw_contents = path.read_text(encoding="utf-8")
            except OSError as exc:  # pragma: no cover - filesystem failure is env-specific
                raise SettingsError(f"Unable to read configuration file: {path}") from exc
            try:
                data = json.loads(raw_contents)
            except json.JSONDecodeError as exc:
                raise SettingsError(f"Invalid JSON in configuration file: {path}") from exc
            if not isinstance(data, dict):
                raise SettingsError(f"Configuration file {path} must contain a JSON object")
            mapping_data = cast("Mapping[object, Any]", data)
            data_dict: dict[str, Any] = {str(key): value for key, value in mapping_data.items()}
            removed_secrets = sorted(key for key in SECRET_KEYS if key in data_dict)
            if removed_secrets:
                logger.warning(
                    "Ignoring secret key(s) %s in configuration file %s; "
                    "set credentials via environment variables instead.",
                    ", ".join(removed_secrets),
                    path,
                )
            # Older config files store the model under "model".
            mapped: dict[str, Any] = {}
            if "model" in data_dict and "default_model" not in data_dict:
                mapped["default_model"] = data_dict["model"]
            for key in _JSON_KEYS:
                if key in data_dict and data_dict[key] is not None:
                    mapped[key] = data_dict[key]
            return mapped

        return cast("PydanticBaseSettingsSource", _loader)


def load_settings(**overrides: Any) -> PromptHubSettings:
    """Return validated settings, raising SettingsError on failure."""
    try:
        return PromptHubSettings(**overrides)
    except SettingsError:
        raise
    except ValidationError as exc:
        raise SettingsError(f"Invalid PromptHub configuration: {exc}") from exc


__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_BRANCH",
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_MODEL",
    "DEFAULT_STORE_PATH",
    "DEFAULT_TEMPERATURE",
    "PromptHubSettings",
    "REMOTE_TYPES",
    "RemoteSettings",
    "SECRET_KEYS",
    "SettingsError",
    "load_settings",
    "resolve_config_path",
]
