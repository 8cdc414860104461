"""
Display formatting for Pocketnote.

Terminal output with ANSI colors, plus a compact plain-text form for chat.
"""

import os
from typing import Any

from pocketnote.models import Note


# ANSI color codes
class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    WHITE = "\033[37m"

    BRIGHT_RED = "\033[91m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_MAGENTA = "\033[95m"
    BRIGHT_CYAN = "\033[96m"

    @classmethod
    def enabled(cls) -> bool:
        """Check if colors should be enabled."""
        if os.environ.get("NO_COLOR"):
            return False
        return True


def c(text: str, *codes: str) -> str:
    """Apply color codes to text if colors are enabled."""
    if not Colors.enabled():
        return text
    return "".join(codes) + text + Colors.RESET


FILTER_TITLES = {
    "all": "NOTES",
    "favorite": "FAVORITES",
    "archived": "ARCHIVED",
}


def format_id(note_id: str) -> str:
    """Format note ID with hyphens for readability (4-3-3-3 pattern)."""
    clean = note_id.replace("-", "")
    # Only millisecond timestamps get grouped
    if not clean.isdigit():
        return note_id
    if len(clean) >= 13:
        return f"{clean[:4]}-{clean[4:7]}-{clean[7:10]}-{clean[10:]}"
    elif len(clean) >= 10:
        return f"{clean[:4]}-{clean[4:7]}-{clean[7:]}"
    elif len(clean) >= 7:
        return f"{clean[:4]}-{clean[4:]}"
    return clean


def note_label(note: Note, width: int = 42) -> str:
    """Title, or the first line of the body for untitled notes."""
    label = note.title.strip() or note.text.strip().split("\n")[0]
    if not label:
        label = "(voice note)" if note.audio_uri else "(photo)" if note.image else "(empty)"
    if len(label) > width:
        label = label[:width - 1] + "…"
    return label


def note_markers(note: Note) -> str:
    """Short markers: ♥ favorite, ▣ archived, 📷 photo, 🎙 voice."""
    markers = ""
    if note.favorite:
        markers += "♥"
    if note.archived:
        markers += "▣"
    if note.image:
        markers += "📷"
    if note.audio_uri:
        markers += "🎙"
    return markers


def format_note_list(notes: list[Note], filter_mode: str = "all", query: str = "") -> str:
    """Format a list of notes as a colored table."""
    if not notes:
        if query:
            return c(f"No notes matching '{query}'.", Colors.DIM)
        return c("No notes found.", Colors.DIM)

    header_text = FILTER_TITLES.get(filter_mode, "NOTES")
    if query:
        header_text = f"{header_text} · SEARCH: {query}"

    lines = [c(f"━━━ {header_text} ━━━", Colors.BOLD, Colors.BLUE), ""]
    lines.append(c(f"{'ID':16}  {'':4}  TITLE", Colors.DIM))
    lines.append(c("─" * 70, Colors.DIM))

    for note in notes:
        id_str = c(f"{format_id(note.id):16}", Colors.DIM)
        markers = note_markers(note)
        marker_str = c(f"{markers:4}", Colors.BRIGHT_RED) if markers else " " * 4
        title = c(note_label(note), Colors.BOLD, Colors.WHITE)

        tags = [tag for tag in note.tags if tag]
        extra = c("  #" + " #".join(tags), Colors.BRIGHT_CYAN) if tags else ""

        lines.append(f"{id_str}  {marker_str}  {title}{extra}")

    return "\n".join(lines)


def format_note_detail(note: Note) -> str:
    """Format one note with all of its fields."""
    lines = [c(note.title or "(untitled)", Colors.BOLD, Colors.WHITE)]
    lines.append(c(format_id(note.id), Colors.DIM))
    lines.append("")

    if note.text:
        lines.append(note.text)
        lines.append("")

    if any(note.tags):
        lines.append(c("Tags: ", Colors.DIM) + ", ".join(note.tags))
    if note.image:
        lines.append(c("Photo: ", Colors.DIM) + note.image)
    if note.audio_uri:
        lines.append(c("Voice: ", Colors.DIM) + note.audio_uri)

    flags = []
    if note.favorite:
        flags.append(c("favorite", Colors.BRIGHT_RED))
    if note.archived:
        flags.append(c("archived", Colors.YELLOW))
    if flags:
        lines.append(c("Flags: ", Colors.DIM) + ", ".join(flags))

    return "\n".join(lines).rstrip()


def format_stats(stats: dict[str, Any]) -> str:
    """Format store statistics."""
    lines = ["Pocketnote Statistics", "-" * 30]
    lines.append(f"Total notes: {stats['total_notes']}")
    lines.append(f"Favorites: {stats['favorites']}")
    lines.append(f"Archived: {stats['archived']}")
    lines.append(f"With photo: {stats['with_photo']}")
    lines.append(f"With voice: {stats['with_voice']}")

    if stats.get("top_tags"):
        lines.append("\nTop tags:")
        for tag, count in stats["top_tags"]:
            lines.append(f"  {tag}: {count}")

    return "\n".join(lines)


def format_notes_plain(notes: list[Note], title: str, limit: int = 15) -> str:
    """Format notes for chat (plain text, compact)."""
    if not notes:
        return f"{title}\n\nNo notes found."

    lines = [title, ""]

    for note in notes[:limit]:
        markers = note_markers(note)
        prefix = f"{markers} " if markers else ""
        lines.append(f"{format_id(note.id)}  {prefix}{note_label(note, width=40)}")

    if len(notes) > limit:
        lines.append(f"\n... and {len(notes) - limit} more")

    return "\n".join(lines)
