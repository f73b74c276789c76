"""Helpers for persisting PromptHub configuration to the store's JSON file.

Updates:
  v0.2.0 - 2026-10-15 - Validate and persist remote targets; unknown types are rejected.
  v0.1.0 - 2026-10-13 - Persist non-secret settings via temporary file and atomic rename.
"""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, cast

from config.settings import (
    DEFAULT_BRANCH,
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    REMOTE_TYPES,
    SECRET_KEYS,
    SettingsError,
    logger,
    resolve_config_path,
)

_DEFAULTS: dict[str, object] = {
    "default_model": DEFAULT_MODEL,
    "max_tokens": DEFAULT_MAX_TOKENS,
    "temperature": DEFAULT_TEMPERATURE,
    "default_branch": DEFAULT_BRANCH,
}


def _normalise_drop_params(value: object | None) -> list[str] | None:
    if value is None:
        return None
    items: list[str]
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",") if part.strip()]
    elif isinstance(value, Iterable):
        iterable = cast("Iterable[object]", value)
        items = [str(item).strip() for item in iterable if str(item).strip()]
    else:
        return None
    cleaned: list[str] = []
    for text in items:
        if text and text not in cleaned:
            cleaned.append(text)
    return cleaned or None


def load_config_data(path: Path) -> dict[str, Any]:
    """Return the JSON object stored at *path*, or an empty mapping."""
    if not path.exists():
        return {}
    try:
        parsed = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        logger.warning("Configuration file %s is not valid JSON; rewriting it", path)
        return {}
    except OSError as exc:
        raise SettingsError(f"Unable to read configuration file: {path}") from exc
    if not isinstance(parsed, Mapping):
        return {}
    parsed_mapping = cast("Mapping[object, Any]", parsed)
    return {str(key): value for key, value in parsed_mapping.items()}


def _write_config_data(path: Path, config_data: Mapping[str, Any]) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(suffix=".tmp", prefix=".config_", dir=path.parent)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(json.dumps(config_data, indent=2, ensure_ascii=False))
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_name, path)
    except OSError as exc:
        raise SettingsError(f"Unable to write configuration file: {path}") from exc


def persist_settings_to_config(
    updates: Mapping[str, object | None],
    path: Path | None = None,
) -> Path:
    """Persist selected settings to the store's ``config.json``.

    Secrets (e.g. API keys) are never written to disk. Values equal to the
    built-in defaults are omitted so later default changes still apply.
    """
    config_path = path or resolve_config_path()
    config_data = load_config_data(config_path)

    for key, value in updates.items():
        if key in SECRET_KEYS:
            config_data.pop(key, None)
            continue
        if key == "litellm_drop_params":
            value = _normalise_drop_params(value)
        if key == "litellm_logging_enabled":
            value = True if bool(value) else None
        if key in _DEFAULTS and value == _DEFAULTS[key]:
            value = None
        if value is not None:
            config_data[key] = value
        else:
            config_data.pop(key, None)

    _write_config_data(config_path, config_data)
    return config_path


def set_remote(
    remote_type: str,
    options: Mapping[str, str] | None = None,
    path: Path | None = None,
) -> dict[str, Any]:
    """Record a remote target in the config file and return the stored entry.

    Only the target is recorded; no synchronisation is performed.
    """
    normalised = str(remote_type or "").strip().lower()
    if normalised not in REMOTE_TYPES:
        raise SettingsError(
            f"Invalid remote type {remote_type!r}. Must be one of: {', '.join(REMOTE_TYPES)}"
        )
    remote: dict[str, Any] = {
        "type": normalised,
        "options": {str(key): str(value) for key, value in (options or {}).items()},
    }
    persist_settings_to_config({"remote": remote}, path)
    return remote


__all__ = ["load_config_data", "persist_settings_to_config", "set_remote"]
