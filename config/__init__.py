"""Configuration helpers for PromptHub.

Updates: v0.2.0 - 2026-10-15 - Export remote settings and persistence helpers.
Updates: v0.1.0 - 2026-10-11 - Expose settings loader and configuration error types.
"""

from .persistence import load_config_data, persist_settings_to_config, set_remote
from .settings import (
    DEFAULT_STORE_PATH,
    REMOTE_TYPES,
    PromptHubSettings,
    RemoteSettings,
    SettingsError,
    load_settings,
    resolve_config_path,
)

__all__ = [
    "DEFAULT_STORE_PATH",
    "PromptHubSettings",
    "REMOTE_TYPES",
    "RemoteSettings",
    "SettingsError",
    "load_config_data",
    "load_settings",
    "persist_settings_to_config",
    "resolve_config_path",
    "set_remote",
]
