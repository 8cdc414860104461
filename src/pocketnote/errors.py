"""
Error types for Pocketnote.

Storage and media failures are logged where they happen and raised as one of
these so the CLI, bot and MCP server can tell the user what went wrong.
"""


class PocketNoteError(Exception):
    """Base class for all Pocketnote failures."""


class StorageError(PocketNoteError):
    """The note blob could not be read or written."""


class StorageReadError(StorageError):
    """Reading the note blob failed."""


class CorruptDataError(StorageReadError):
    """A note blob exists but is not a valid list of notes."""


class StorageWriteError(StorageError):
    """Writing the note blob failed; the change was not saved."""


class MediaError(PocketNoteError):
    """A photo or voice capture/playback failed."""


class MediaPermissionError(MediaError):
    """The OS refused access to the camera, microphone or media file."""


class MediaCaptureError(MediaError):
    """The capture or playback tool failed or produced nothing."""
