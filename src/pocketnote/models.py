"""
Data model for Pocketnote.

A Note is the only stored entity. It serializes to the JSON shape
``{id, title, text, tags, image, audioUri, favorite, archived}``.
"""

import time
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field

# Filter modes are mutually exclusive; "all" hides archived notes.
FILTER_MODES = ("all", "favorite", "archived")

# Boolean flags a user can toggle on a note.
FLAGS = ("favorite", "archived")


def generate_id() -> str:
    """Generate a note ID (Unix timestamp in milliseconds)."""
    return str(int(time.time() * 1000))


def parse_tags(raw: str) -> list[str]:
    """
    Split comma-separated tag input.

    Pieces are trimmed but not filtered, so ``"a, b ,,c"`` keeps its empty
    tag: ``["a", "b", "", "c"]`` and blank input gives ``[""]``.
    """
    return [tag.strip() for tag in raw.split(",")]


def format_tags(tags: Sequence[str]) -> str:
    """Join tags back into the comma-separated input form."""
    return ", ".join(tags)


class Note(BaseModel):
    """A stored note. Immutable: mutations go through ``model_copy``."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(min_length=1, description="Unix ms at creation")
    title: str = Field(default="", description="May be empty")
    text: str = Field(default="", description="Body, may be empty")
    tags: tuple[str, ...] = ()
    image: str | None = Field(default=None, description="Photo file URI")
    audio_uri: str | None = Field(
        default=None, alias="audioUri", description="Voice clip file URI"
    )
    favorite: bool = False
    archived: bool = False

    def to_record(self) -> dict:
        """Return the JSON-ready dict used in the stored blob."""
        return self.model_dump(by_alias=True)


class NoteDraft(BaseModel):
    """Content submitted from the compose form, before it becomes a Note."""

    title: str = ""
    text: str = ""
    tags: list[str] = Field(default_factory=list)
    image: str | None = None
    audio_uri: str | None = None

    def has_content(self) -> bool:
        """True if there is anything worth saving as a new note."""
        return bool(
            self.title.strip()
            or self.text.strip()
            or self.image
            or self.audio_uri
        )

    def content_fields(self) -> dict:
        """The mutable Note fields this draft sets."""
        return {
            "title": self.title,
            "text": self.text,
            "tags": tuple(self.tags),
            "image": self.image,
            "audio_uri": self.audio_uri,
        }
