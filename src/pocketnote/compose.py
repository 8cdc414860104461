"""
Compose form for Pocketnote.

Holds what the user has typed or attached so far, for a new note or an edit
of an existing one. The form is surface state; the store only ever sees the
NoteDraft it produces.
"""

from dataclasses import dataclass, field

from pocketnote.models import Note, NoteDraft, format_tags, parse_tags
from pocketnote.store import NoteStore


@dataclass
class ComposeForm:
    """Mutable create/edit form. ``tags`` is the raw comma-separated input."""

    title: str = ""
    text: str = ""
    tags: str = ""
    image: str | None = None
    audio_uri: str | None = None
    edit_target: str | None = None
    # Tags of the note being edited, reused while the tag text is unchanged.
    original_tags: tuple[str, ...] | None = field(default=None, repr=False, compare=False)

    @classmethod
    def for_note(cls, note: Note) -> "ComposeForm":
        """Open an existing note for editing."""
        return cls(
            title=note.title,
            text=note.text,
            tags=format_tags(note.tags),
            image=note.image or None,
            audio_uri=note.audio_uri or None,
            edit_target=note.id,
            original_tags=note.tags,
        )

    @property
    def is_editing(self) -> bool:
        return self.edit_target is not None

    def to_draft(self) -> NoteDraft:
        if self.original_tags is not None and self.tags == format_tags(self.original_tags):
            tags = list(self.original_tags)
        else:
            tags = parse_tags(self.tags)
        return NoteDraft(
            title=self.title,
            text=self.text,
            tags=tags,
            image=self.image,
            audio_uri=self.audio_uri,
        )

    def submit(self, store: NoteStore) -> list[Note]:
        """
        Save the form through the store and clear it.

        If the save raises, the form keeps its contents so the user can retry.
        """
        notes = store.upsert(self.to_draft(), self.edit_target)
        self.reset()
        return notes

    def reset(self) -> None:
        self.title = ""
        self.text = ""
        self.tags = ""
        self.image = None
        self.audio_uri = None
        self.edit_target = None
        self.original_tags = None
