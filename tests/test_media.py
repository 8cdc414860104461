"""Tests for media capture helpers."""

import time

import pytest

from pocketnote.errors import MediaCaptureError
from pocketnote.media import AudioRecorder, MediaLibrary, play_audio
from pocketnote.models import Note


@pytest.fixture
def library(tmp_path) -> MediaLibrary:
    return MediaLibrary(tmp_path / "media")


class TestMediaLibrary:
    def test_store_photo_returns_file_uri(self, library: MediaLibrary) -> None:
        uri = library.store_photo(b"\xff\xd8jpeg")
        assert uri.startswith("file://")
        path = library.path_for(uri)
        assert path.read_bytes() == b"\xff\xd8jpeg"
        assert path.name.startswith("photo-")
        assert path.suffix == ".jpg"

    def test_store_audio_names_are_unique(self, library: MediaLibrary) -> None:
        first = library.store_audio(b"one")
        second = library.store_audio(b"two")
        assert first != second

    def test_import_file(self, library: MediaLibrary, tmp_path) -> None:
        source = tmp_path / "clip.wav"
        source.write_bytes(b"RIFF")
        uri = library.import_file(source, "voice")
        path = library.path_for(uri)
        assert path.parent == library.media_dir.resolve()
        assert path.suffix == ".wav"
        assert path.read_bytes() == b"RIFF"

    def test_import_missing_file(self, library: MediaLibrary, tmp_path) -> None:
        with pytest.raises(MediaCaptureError):
            library.import_file(tmp_path / "nope.jpg", "photo")

    def test_invalid_kind(self, library: MediaLibrary) -> None:
        with pytest.raises(ValueError):
            library.new_path("video", ".mp4")

    def test_path_for_plain_path(self, library: MediaLibrary) -> None:
        assert str(library.path_for("/tmp/x.jpg")) == "/tmp/x.jpg"

    def test_path_for_remote_uri(self, library: MediaLibrary) -> None:
        with pytest.raises(MediaCaptureError):
            library.path_for("https://example.com/x.jpg")

    def test_missing(self, library: MediaLibrary) -> None:
        present = library.store_photo(b"x")
        notes = [
            Note(id="1", image=present),
            Note(id="2", audio_uri="file:///nowhere/v.ogg"),
            Note(id="3", image="content://media/1"),
        ]
        assert library.missing(notes) == ["file:///nowhere/v.ogg", "content://media/1"]


# Recorder stand-in: writes a header to the target path given as $0, then
# waits to be interrupted.
WRITE_THEN_WAIT = 'printf RIFF > "$0"; exec sleep 30'


def wait_for_content(path, timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if path.exists() and path.stat().st_size > 0:
            return
        time.sleep(0.05)
    raise AssertionError(f"{path} was never written")


class TestAudioRecorder:
    def test_missing_recorder(self, library: MediaLibrary) -> None:
        recorder = AudioRecorder(["definitely-not-a-recorder"], library)
        with pytest.raises(MediaCaptureError):
            recorder.start()
        assert not recorder.is_recording

    def test_stop_without_start(self, library: MediaLibrary) -> None:
        with pytest.raises(MediaCaptureError):
            AudioRecorder(["arecord"], library).stop()

    def test_records_clip(self, library: MediaLibrary) -> None:
        recorder = AudioRecorder(["sh", "-c", WRITE_THEN_WAIT], library)
        path = recorder.start()
        assert recorder.is_recording
        wait_for_content(path)

        uri = recorder.stop()
        assert not recorder.is_recording
        assert uri == path.resolve().as_uri()
        assert library.path_for(uri).read_bytes() == b"RIFF"

    def test_silent_recorder(self, library: MediaLibrary) -> None:
        recorder = AudioRecorder(["sh", "-c", "exec sleep 30"], library)
        recorder.start()
        with pytest.raises(MediaCaptureError, match="No audio captured"):
            recorder.stop()


class TestPlayAudio:
    def test_missing_clip(self, library: MediaLibrary) -> None:
        with pytest.raises(MediaCaptureError):
            play_audio("file:///nowhere/v.ogg", ["paplay"], library)

    def test_missing_player(self, library: MediaLibrary) -> None:
        uri = library.store_audio(b"ogg")
        with pytest.raises(MediaCaptureError):
            play_audio(uri, ["definitely-not-a-player"], library)

    def test_starts_player(self, library: MediaLibrary) -> None:
        uri = library.store_audio(b"ogg")
        process = play_audio(uri, ["true"], library)
        assert process.wait(timeout=5) == 0
        assert process.args[-1] == str(library.path_for(uri))
