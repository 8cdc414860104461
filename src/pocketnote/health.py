"""
Health check module for Pocketnote.

Reports system status across all components.
"""

import os
import shutil
from typing import Any

from pocketnote.config import get_media_dir, load_config
from pocketnote.errors import CorruptDataError, StorageError


def check_storage(config: dict[str, Any]) -> tuple[str, str]:
    """Check that the note blob loads."""
    from pocketnote.storage import open_storage
    from pocketnote.store import NoteStore

    backend = config.get("storage", {}).get("backend", "file")
    try:
        store = NoteStore(open_storage(config), key=config.get("storage", {}).get("key", "notes"))
        notes = store.load()
    except CorruptDataError as e:
        return "✗", f"Corrupt ({e})"
    except (StorageError, ValueError) as e:
        return "✗", f"Error: {e}"

    if not notes:
        return "✓", f"OK ({backend}, empty)"
    return "✓", f"OK ({backend}, {len(notes)} notes)"


def check_media(config: dict[str, Any]) -> tuple[str, str]:
    """Check that attachments referenced by notes still exist."""
    from pocketnote.media import MediaLibrary
    from pocketnote.storage import open_storage
    from pocketnote.store import NoteStore

    media_dir = get_media_dir()
    if not media_dir.exists():
        return "-", "No media yet"

    try:
        store = NoteStore(open_storage(config), key=config.get("storage", {}).get("key", "notes"))
        notes = store.load()
    except (StorageError, ValueError):
        return "-", "N/A"

    missing = MediaLibrary(media_dir).missing(notes)
    if missing:
        return "!", f"{len(missing)} missing attachments"
    files = sum(1 for p in media_dir.iterdir() if p.is_file())
    return "✓", f"OK ({files} files)"


def check_tool(command: list[str]) -> tuple[str, str]:
    """Check that an external audio tool is on PATH."""
    if not command:
        return "-", "Not configured"
    if shutil.which(command[0]):
        return "✓", f"OK ({command[0]})"
    return "!", f"{command[0]} not found"


def check_telegram(config: dict[str, Any]) -> tuple[str, str]:
    """Check Telegram bot status."""
    tg_config = config.get("telegram", {})

    token = tg_config.get("token") or os.environ.get("POCKETNOTE_TELEGRAM_TOKEN")
    if not token:
        return "-", "Not configured"

    users = tg_config.get("authorized_users", [])
    if not users:
        env_users = os.environ.get("POCKETNOTE_TELEGRAM_USERS", "")
        if env_users:
            users = [u.strip() for u in env_users.split(",") if u.strip()]

    if not users:
        return "!", "No authorized users"

    return "✓", f"OK ({len(users)} users)"


def run_health_check(config: dict[str, Any] | None = None) -> dict[str, tuple[str, str]]:
    """Run all health checks."""
    config = config or load_config()
    media_config = config.get("media", {})
    return {
        "Storage": check_storage(config),
        "Media": check_media(config),
        "Recorder": check_tool(media_config.get("recorder", [])),
        "Player": check_tool(media_config.get("player", [])),
        "Telegram": check_telegram(config),
    }


def format_health_report(checks: dict[str, tuple[str, str]]) -> str:
    """Format health check results."""
    lines = ["Pocketnote Health Check", "-" * 40]

    for name, (status, message) in checks.items():
        lines.append(f"{status} {name}: {message}")

    return "\n".join(lines)
