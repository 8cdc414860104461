"""
Media capture and playback for Pocketnote.

Photos and voice clips are plain files in the media directory. Notes only
keep their ``file://`` URIs. Recording and playback shell out to whatever
audio tools are configured (``arecord``/``paplay`` by default).
"""

import logging
import shutil
import signal
import subprocess
import time
from pathlib import Path
from urllib.parse import unquote, urlparse

from pocketnote.config import get_media_dir
from pocketnote.errors import MediaCaptureError, MediaPermissionError
from pocketnote.models import Note

logger = logging.getLogger(__name__)

MEDIA_KINDS = ("photo", "voice")


class MediaLibrary:
    """Directory of captured photos and voice clips."""

    def __init__(self, media_dir: Path | None = None):
        self.media_dir = media_dir or get_media_dir()

    def new_path(self, kind: str, suffix: str) -> Path:
        """Reserve a fresh file name like ``photo-1768427187928.jpg``."""
        if kind not in MEDIA_KINDS:
            raise ValueError(f"Invalid media kind: {kind}")

        self.media_dir.mkdir(parents=True, exist_ok=True)
        suffix = suffix if suffix.startswith(".") else f".{suffix}"
        stamp = int(time.time() * 1000)
        path = self.media_dir / f"{kind}-{stamp}{suffix}"
        while path.exists():
            stamp += 1
            path = self.media_dir / f"{kind}-{stamp}{suffix}"
        return path

    def store_photo(self, data: bytes, suffix: str = ".jpg") -> str:
        """Save photo bytes. Returns the file URI."""
        return self._write(self.new_path("photo", suffix), data)

    def store_audio(self, data: bytes, suffix: str = ".ogg") -> str:
        """Save voice clip bytes. Returns the file URI."""
        return self._write(self.new_path("voice", suffix), data)

    def import_file(self, source: Path, kind: str) -> str:
        """Copy an existing file into the library. Returns the file URI."""
        source = Path(source).expanduser()
        if not source.is_file():
            raise MediaCaptureError(f"No such file: {source}")

        dest = self.new_path(kind, source.suffix or ".bin")
        try:
            shutil.copyfile(source, dest)
        except PermissionError as e:
            logger.error(f"Media import error: {e}")
            raise MediaPermissionError(f"Cannot read {source}: {e}") from e
        except OSError as e:
            logger.error(f"Media import error: {e}")
            raise MediaCaptureError(f"Could not import {source}: {e}") from e

        return dest.resolve().as_uri()

    def path_for(self, uri: str) -> Path:
        """Map a ``file://`` URI (or a bare path) to a local path."""
        parsed = urlparse(uri)
        if parsed.scheme == "file":
            return Path(unquote(parsed.path))
        if parsed.scheme:
            raise MediaCaptureError(f"Not a local media reference: {uri}")
        return Path(uri)

    def missing(self, notes: list[Note]) -> list[str]:
        """Attachment URIs whose files no longer exist."""
        missing = []
        for note in notes:
            for uri in (note.image, note.audio_uri):
                if not uri:
                    continue
                try:
                    exists = self.path_for(uri).exists()
                except MediaCaptureError:
                    exists = False
                if not exists:
                    missing.append(uri)
        return missing

    def _write(self, path: Path, data: bytes) -> str:
        try:
            path.write_bytes(data)
        except PermissionError as e:
            logger.error(f"Media write error: {e}")
            raise MediaPermissionError(f"Cannot write {path}: {e}") from e
        except OSError as e:
            logger.error(f"Media write error: {e}")
            raise MediaCaptureError(f"Could not save {path}: {e}") from e
        return path.resolve().as_uri()


class AudioRecorder:
    """
    Records a voice clip with an external command.

    ``start()`` launches the recorder writing to a new library file;
    ``stop()`` interrupts it and returns the clip's URI. Nothing stops a
    recording except ``stop()``.
    """

    def __init__(self, command: list[str], library: MediaLibrary):
        self.command = list(command)
        self.library = library
        self._process: subprocess.Popen | None = None
        self._path: Path | None = None

    @property
    def is_recording(self) -> bool:
        return self._process is not None

    def start(self) -> Path:
        if self._process is not None:
            raise MediaCaptureError("Already recording")
        if not self.command or not shutil.which(self.command[0]):
            raise MediaCaptureError(f"Recorder not found: {self.command[:1]}")

        path = self.library.new_path("voice", ".wav")
        try:
            self._process = subprocess.Popen(
                [*self.command, str(path)],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except PermissionError as e:
            logger.error(f"Recording error: {e}")
            raise MediaPermissionError(f"Recorder not permitted: {e}") from e
        except OSError as e:
            logger.error(f"Recording error: {e}")
            raise MediaCaptureError(f"Could not start recorder: {e}") from e

        self._path = path
        logger.info(f"Recording to {path}")
        return path

    def stop(self) -> str:
        if self._process is None or self._path is None:
            raise MediaCaptureError("Not recording")

        process, path = self._process, self._path
        self._process = None
        self._path = None

        process.send_signal(signal.SIGINT)
        try:
            _, stderr = process.communicate(timeout=5)
        except subprocess.TimeoutExpired:
            process.kill()
            _, stderr = process.communicate()

        if not path.exists() or path.stat().st_size == 0:
            detail = (stderr or b"").decode("utf-8", "replace").strip()
            logger.error(f"Stop recording error: {detail or 'no audio captured'}")
            if "denied" in detail.lower():
                raise MediaPermissionError(f"Microphone access denied: {detail}")
            raise MediaCaptureError(f"No audio captured{': ' + detail if detail else ''}")

        return path.resolve().as_uri()


def play_audio(uri: str, command: list[str], library: MediaLibrary | None = None) -> subprocess.Popen:
    """Start playing a voice clip. Returns the player process."""
    library = library or MediaLibrary()
    path = library.path_for(uri)
    if not path.exists():
        raise MediaCaptureError(f"Voice clip missing: {path}")
    if not command or not shutil.which(command[0]):
        raise MediaCaptureError(f"Player not found: {command[:1]}")

    try:
        return subprocess.Popen(
            [*command, str(path)],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except PermissionError as e:
        logger.error(f"Playback error: {e}")
        raise MediaPermissionError(f"Player not permitted: {e}") from e
    except OSError as e:
        logger.error(f"Playback error: {e}")
        raise MediaCaptureError(f"Could not start player: {e}") from e
