"""
Configuration management for Pocketnote.

Uses XDG base directories:
- Config: ~/.config/pocketnote/config.toml
- Data: ~/pocketnote/ (notes, media, logs)
"""

from pathlib import Path
from typing import Any
import copy
import os

# XDG defaults
DEFAULT_CONFIG_HOME = Path.home() / ".config"
DEFAULT_DATA_HOME = Path.home() / "pocketnote"


def get_config_dir() -> Path:
    """Get the config directory (XDG_CONFIG_HOME/pocketnote)."""
    base = Path(os.environ.get("XDG_CONFIG_HOME", DEFAULT_CONFIG_HOME))
    return base / "pocketnote"


def get_pocketnote_home() -> Path:
    """Get the data directory (~/pocketnote or POCKETNOTE_HOME)."""
    if env_home := os.environ.get("POCKETNOTE_HOME"):
        return Path(env_home)
    return DEFAULT_DATA_HOME


def get_config_path() -> Path:
    """Get the path to config.toml."""
    return get_config_dir() / "config.toml"


def get_db_path() -> Path:
    """Get the path to pocketnote.db (sqlite backend)."""
    return get_pocketnote_home() / "pocketnote.db"


def get_media_dir() -> Path:
    """Get the directory holding captured photos and voice clips."""
    return get_pocketnote_home() / "media"


def get_log_path() -> Path:
    """Get the path to pocketnote.log."""
    return get_pocketnote_home() / "pocketnote.log"


def ensure_dirs() -> None:
    """Ensure all required directories exist."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_pocketnote_home().mkdir(parents=True, exist_ok=True)
    get_media_dir().mkdir(parents=True, exist_ok=True)


def load_config() -> dict[str, Any]:
    """
    Load configuration from config.toml.

    Sections missing from the file (or the whole file) fall back to defaults.
    Keys inside a section override the default keys one by one.
    """
    config = get_default_config()
    config_path = get_config_path()

    if not config_path.exists():
        return config

    # Lazy import tomli only when needed
    import tomli

    with open(config_path, "rb") as f:
        user_config = tomli.load(f)

    for section, values in user_config.items():
        if isinstance(values, dict) and isinstance(config.get(section), dict):
            config[section].update(values)
        else:
            config[section] = values

    return config


def get_default_config() -> dict[str, Any]:
    """Return default configuration."""
    return copy.deepcopy({
        "pocketnote": {
            "home": str(get_pocketnote_home()),
        },
        "storage": {
            "backend": "file",  # or "sqlite"
            "key": "notes",
        },
        "media": {
            "recorder": ["arecord", "-q", "-f", "cd", "-t", "wav"],
            "player": ["paplay"],
        },
        "telegram": {},
        "logging": {
            "level": "INFO",
        },
    })
