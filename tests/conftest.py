"""Shared fixtures."""

import itertools

import pytest

from pocketnote.models import Note
from pocketnote.storage import MemoryStorage
from pocketnote.store import NoteStore


@pytest.fixture(autouse=True)
def pocketnote_home(tmp_path, monkeypatch):
    """Point every test at its own data and config directories."""
    home = tmp_path / "pocketnote"
    monkeypatch.setenv("POCKETNOTE_HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("NO_COLOR", "1")
    monkeypatch.delenv("POCKETNOTE_TELEGRAM_TOKEN", raising=False)
    monkeypatch.delenv("POCKETNOTE_TELEGRAM_USERS", raising=False)
    return home


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def id_factory():
    """Deterministic millisecond-style IDs: 1700000000001, ...002, ..."""
    counter = itertools.count(1700000000001)
    return lambda: str(next(counter))


@pytest.fixture
def store(storage, id_factory) -> NoteStore:
    return NoteStore(storage, id_factory=id_factory)


@pytest.fixture
def sample_notes() -> list[Note]:
    return [
        Note(id="3", title="Groceries", text="oat milk", tags=["shop"], favorite=True),
        Note(id="2", title="Trip", text="Pack the charger", archived=True),
        Note(id="1", title="", text="call the plumber"),
    ]


class FailingStorage(MemoryStorage):
    """Storage whose reads and/or writes raise OSError."""

    def __init__(self, fail_reads: bool = False, fail_writes: bool = True, **kwargs):
        super().__init__(**kwargs)
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes

    def get_item(self, key):
        if self.fail_reads:
            raise OSError("disk unreadable")
        return super().get_item(key)

    def set_item(self, key, value):
        if self.fail_writes:
            raise OSError("disk full")
        super().set_item(key, value)
