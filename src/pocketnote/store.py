"""
Note store for Pocketnote.

Single source of truth for the note list. Every mutation builds a new list,
serializes the whole thing to JSON and writes it under one storage key.
In-memory state changes only after the write succeeds.
"""

import json
import logging
from collections import Counter
from typing import Any, Callable

from pydantic import ValidationError

from pocketnote.errors import CorruptDataError, StorageReadError, StorageWriteError
from pocketnote.models import FILTER_MODES, FLAGS, Note, NoteDraft, generate_id
from pocketnote.storage import KeyValueStorage

logger = logging.getLogger(__name__)

STORAGE_KEY = "notes"


def filtered_notes(
    notes: list[Note],
    filter_mode: str = "all",
    query: str = "",
) -> list[Note]:
    """
    Return the notes visible under a filter mode and search query.

    "all" hides archived notes, "favorite" shows favorites (archived or not),
    "archived" shows only archived notes. The query is a case-sensitive
    substring match on title or text; an empty query matches everything.
    """
    if filter_mode not in FILTER_MODES:
        raise ValueError(f"Invalid filter mode: {filter_mode}")

    def visible(note: Note) -> bool:
        if filter_mode == "favorite":
            return note.favorite
        if filter_mode == "archived":
            return note.archived
        return not note.archived

    return [
        note for note in notes
        if visible(note) and (query in note.title or query in note.text)
    ]


def decode_notes(blob: str) -> list[Note]:
    """Parse a stored blob. Raises CorruptDataError if it is not a note list."""
    try:
        data = json.loads(blob)
    except json.JSONDecodeError as e:
        raise CorruptDataError(f"Stored notes are not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise CorruptDataError(
            f"Stored notes should be a JSON array, got {type(data).__name__}"
        )

    try:
        notes = [Note.model_validate(item) for item in data]
    except ValidationError as e:
        raise CorruptDataError(f"Stored note is malformed: {e}") from e

    seen: set[str] = set()
    for note in notes:
        if note.id in seen:
            raise CorruptDataError(f"Duplicate note id in storage: {note.id}")
        seen.add(note.id)

    return notes


def encode_notes(notes: list[Note]) -> str:
    """Serialize the full note list."""
    return json.dumps([note.to_record() for note in notes], ensure_ascii=False)


def _next_id(candidate: str) -> str:
    """Bump a colliding id to the next one in sequence."""
    if candidate.isdigit():
        return str(int(candidate) + 1)
    return f"{candidate}-1"


class NoteStore:
    """Holds the note list and mirrors it to a storage backend."""

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = STORAGE_KEY,
        id_factory: Callable[[], str] = generate_id,
    ):
        self.storage = storage
        self.key = key
        self.id_factory = id_factory
        self._notes: list[Note] = []

    @property
    def notes(self) -> list[Note]:
        """A copy of the current note list, most recent first."""
        return list(self._notes)

    def load(self) -> list[Note]:
        """
        Load the note list from storage.

        No stored blob means no notes yet. A blob that cannot be decoded
        raises CorruptDataError and leaves the current list in place, so a
        damaged file is never silently replaced by an empty one.
        """
        try:
            blob = self.storage.get_item(self.key)
        except Exception as e:
            logger.error(f"Error loading notes: {e}")
            raise StorageReadError(f"Could not read notes: {e}") from e

        if blob is None or not blob.strip():
            self._notes = []
            return self.notes

        try:
            notes = decode_notes(blob)
        except CorruptDataError as e:
            logger.error(f"Error loading notes: {e}")
            raise

        self._notes = notes
        logger.debug(f"Loaded {len(notes)} notes")
        return self.notes

    def save(self, notes: list[Note]) -> list[Note]:
        """
        Write the full list, then adopt it as the in-memory state.

        On failure the in-memory list is untouched and StorageWriteError is
        raised so the caller can tell the user nothing was saved.
        """
        notes = list(notes)
        try:
            self.storage.set_item(self.key, encode_notes(notes))
        except Exception as e:
            logger.error(f"Error saving notes: {e}")
            raise StorageWriteError(f"Could not save notes: {e}") from e

        self._notes = notes
        return self.notes

    def get(self, note_id: str) -> Note | None:
        """Get a single note by ID."""
        for note in self._notes:
            if note.id == note_id:
                return note
        return None

    def resolve_id(self, identifier: str) -> str | None:
        """Resolve a raw or hyphenated (display) ID to a stored ID."""
        identifier = identifier.strip().lstrip("#")
        if self.get(identifier):
            return identifier
        clean = identifier.replace("-", "")
        if clean and self.get(clean):
            return clean
        return None

    def upsert(self, draft: NoteDraft, edit_target_id: str | None = None) -> list[Note]:
        """
        Apply the compose form.

        Editing an existing note replaces its content fields and keeps its id
        and flags. Otherwise a new note is prepended, but only if the draft
        has content; an empty draft is dropped without writing.
        """
        if edit_target_id is not None and self.get(edit_target_id):
            updated = [
                note.model_copy(update=draft.content_fields())
                if note.id == edit_target_id else note
                for note in self._notes
            ]
            notes = self.save(updated)
            logger.info(f"Updated note {edit_target_id}")
            return notes

        if not draft.has_content():
            logger.debug("Dropped empty note")
            return self.notes

        note = Note(id=self._fresh_id(), **draft.content_fields())
        notes = self.save([note, *self._notes])
        logger.info(f"Created note {note.id}")
        return notes

    def remove(self, note_id: str) -> list[Note]:
        """Delete a note. Unknown IDs are ignored."""
        if not self.get(note_id):
            return self.notes

        notes = self.save([note for note in self._notes if note.id != note_id])
        logger.info(f"Deleted note {note_id}")
        return notes

    def set_flag(self, note_id: str, flag: str) -> list[Note]:
        """Flip ``favorite`` or ``archived`` on one note. Unknown IDs are ignored."""
        if flag not in FLAGS:
            raise ValueError(f"Invalid flag: {flag}")

        if not self.get(note_id):
            return self.notes

        updated = [
            note.model_copy(update={flag: not getattr(note, flag)})
            if note.id == note_id else note
            for note in self._notes
        ]
        notes = self.save(updated)
        logger.info(f"Toggled {flag} on note {note_id}")
        return notes

    def toggle_favorite(self, note_id: str) -> list[Note]:
        return self.set_flag(note_id, "favorite")

    def toggle_archive(self, note_id: str) -> list[Note]:
        return self.set_flag(note_id, "archived")

    def filtered(self, filter_mode: str = "all", query: str = "") -> list[Note]:
        """Notes visible under ``filter_mode`` matching ``query``."""
        return filtered_notes(self._notes, filter_mode, query)

    def stats(self) -> dict[str, Any]:
        """Get note statistics."""
        tag_counts = Counter(
            tag for note in self._notes for tag in note.tags if tag
        )
        return {
            "total_notes": len(self._notes),
            "favorites": sum(1 for n in self._notes if n.favorite),
            "archived": sum(1 for n in self._notes if n.archived),
            "with_photo": sum(1 for n in self._notes if n.image),
            "with_voice": sum(1 for n in self._notes if n.audio_uri),
            "top_tags": tag_counts.most_common(5),
        }

    def _fresh_id(self) -> str:
        """A new ID from the factory, bumped past any existing one."""
        taken = {note.id for note in self._notes}
        candidate = self.id_factory()
        while candidate in taken:
            candidate = _next_id(candidate)
        return candidate


def open_store(config: dict[str, Any] | None = None) -> NoteStore:
    """Build a store from configuration and load it."""
    from pocketnote.config import load_config
    from pocketnote.storage import open_storage

    config = config or load_config()
    storage = open_storage(config)
    store = NoteStore(storage, key=config.get("storage", {}).get("key", STORAGE_KEY))
    store.load()
    return store
