"""Configuration management for Chorus."""

import os
import re
from pathlib import Path
from typing import Any, Optional

import yaml

from .settings import (
    CompactionConfig,
    CompactionStrategy,
    ConversationConfig,
    LoggingConfig,
    Settings,
)

# Singleton instance
_settings: Optional[Settings] = None

# Default config locations
CONFIG_DIR = Path.home() / ".chorus"
CONFIG_FILE = CONFIG_DIR / "config.yaml"
DEFAULTS_FILE = Path(__file__).parent / "defaults.yaml"

# Top-level YAML sections that map onto Settings fields
SETTINGS_SECTIONS = ("conversation", "compaction", "logging")


def _expand_env_vars(value: Any) -> Any:
    """Recursively expand ${ENV_VAR} syntax in strings."""
    if isinstance(value, str):
        # Match ${VAR_NAME} pattern
        pattern = r"\$\{([^}]+)\}"
        matches = re.findall(pattern, value)
        for var_name in matches:
            env_value = os.environ.get(var_name, "")
            value = value.replace(f"${{{var_name}}}", env_value)
        return value if value else None
    elif isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    return value


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_yaml_file(path: Path) -> dict:
    """Load a YAML file and return its contents."""
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        content = yaml.safe_load(f)
        return content if content else {}


def _drop_none(value: Any) -> Any:
    """Remove None keys and list items so model defaults apply."""
    if isinstance(value, dict):
        return {k: _drop_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_drop_none(item) for item in value if item is not None]
    return value


def ensure_config_dir() -> None:
    """Ensure the config directory exists."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)


def create_default_config() -> None:
    """Create a default config file if it doesn't exist."""
    ensure_config_dir()
    if not CONFIG_FILE.exists():
        # Copy defaults to user config location
        defaults = DEFAULTS_FILE.read_text(encoding="utf-8")
        CONFIG_FILE.write_text(defaults, encoding="utf-8")


def load_settings(
    config_path: Optional[Path] = None,
    force_reload: bool = False,
    overrides: Optional[dict] = None,
) -> Settings:
    """
    Load settings with priority: overrides > config file > env vars > defaults.

    The packaged defaults.yaml mirrors the model defaults and serves as the
    template written by ``create_default_config``.

    Args:
        config_path: Optional path to a custom config file
        force_reload: Force reload even if settings are cached
        overrides: Nested values merged over the config file

    Returns:
        Settings instance
    """
    global _settings

    if _settings is not None and not force_reload:
        return _settings

    user_config = _load_yaml_file(config_path or CONFIG_FILE)
    if overrides:
        user_config = _deep_merge(user_config, overrides)

    # Expand environment variables; unset ones fall back to defaults
    expanded = _drop_none(_expand_env_vars(user_config))

    settings_dict = {k: expanded[k] for k in SETTINGS_SECTIONS if k in expanded}

    # Create Settings instance (this also reads from environment variables)
    _settings = Settings(**settings_dict)

    return _settings


def get_settings() -> Settings:
    """Get the current settings instance, loading if necessary."""
    if _settings is None:
        return load_settings()
    return _settings


def reset_settings() -> None:
    """Reset the settings singleton (useful for testing)."""
    global _settings
    _settings = None


__all__ = [
    "CompactionConfig",
    "CompactionStrategy",
    "ConversationConfig",
    "LoggingConfig",
    "Settings",
    "get_settings",
    "load_settings",
    "reset_settings",
    "ensure_config_dir",
    "create_default_config",
    "CONFIG_DIR",
    "CONFIG_FILE",
]
