"""Preferences manager for grpc-ratls-secrets.

Persistent user preferences live next to the config file, under
$XDG_CONFIG_HOME/grpc-ratls-secrets/preferences.json
(~/.config/grpc-ratls-secrets/preferences.json when XDG_CONFIG_HOME is unset).
Only the keys in KNOWN_KEYS are accepted.
"""
import json
import os
import logging
from pathlib import Path
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)

APP_DIR_NAME = "grpc-ratls-secrets"
KNOWN_KEYS = ("config_path",)


def config_home() -> Path:
    """Base configuration directory honoring XDG_CONFIG_HOME."""
    xdg = os.getenv("XDG_CONFIG_HOME")
    return Path(xdg) if xdg else Path.home() / ".config"


def preferences_dir() -> Path:
    """Directory holding preferences.json and the default config.yml."""
    return config_home() / APP_DIR_NAME


def preferences_file() -> Path:
    return preferences_dir() / "preferences.json"


def _read() -> Dict[str, Any]:
    """Read the preferences file; a missing or unreadable file yields {}."""
    path = preferences_file()
    if not path.exists():
        return {}

    try:
        data = json.loads(path.read_text())
    except (OSError, ValueError) as e:
        logger.error(f"Ignoring unreadable preferences file {path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.error(f"Ignoring preferences file {path}: expected a JSON object")
        return {}
    return data


def _write(preferences: Dict[str, Any]) -> None:
    path = preferences_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    # Write-then-rename so readers never see a half-written file
    tmp_file = path.with_suffix(".json.tmp")
    tmp_file.write_text(json.dumps(preferences, indent=2))
    os.replace(tmp_file, path)


def _check_key(key: str) -> None:
    if key not in KNOWN_KEYS:
        raise ValueError(f"Unknown preference '{key}'. Known preferences: {', '.join(KNOWN_KEYS)}")


def get_preference(key: str) -> Optional[str]:
    """Return the stored value for key, or None."""
    return _read().get(key)


def set_preference(key: str, value: str) -> None:
    """
    Store a preference.

    Raises:
        ValueError: If key is not one of KNOWN_KEYS
    """
    _check_key(key)
    preferences = _read()
    preferences[key] = value
    _write(preferences)
    logger.info(f"Preference '{key}' set to: {value}")


def clear_preference(key: str) -> None:
    """Remove a preference; clearing an unset key is a no-op."""
    preferences = _read()
    if preferences.pop(key, None) is None:
        logger.debug(f"Preference '{key}' not set, nothing to clear")
        return
    _write(preferences)
    logger.info(f"Preference '{key}' cleared")


def get_all_preferences() -> Dict[str, Any]:
    return _read()
