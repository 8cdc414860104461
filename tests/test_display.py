"""Tests for display formatting."""

import pytest

from pocketnote.display import (
    format_id,
    format_note_detail,
    format_note_list,
    format_notes_plain,
    format_stats,
    note_label,
)
from pocketnote.models import Note


@pytest.mark.parametrize("raw, expected", [
    ("1768427187928", "1768-427-187-928"),
    ("1768427187", "1768-427-187"),
    ("1768427", "1768-427"),
    ("123", "123"),
    ("abc-def", "abc-def"),
])
def test_format_id(raw: str, expected: str) -> None:
    assert format_id(raw) == expected


class TestNoteLabel:
    def test_title_first(self) -> None:
        assert note_label(Note(id="1", title="T", text="body")) == "T"

    def test_falls_back_to_first_body_line(self) -> None:
        assert note_label(Note(id="1", text="first\nsecond")) == "first"

    def test_media_only(self) -> None:
        assert note_label(Note(id="1", audio_uri="file:///v.ogg")) == "(voice note)"
        assert note_label(Note(id="1", image="file:///p.jpg")) == "(photo)"

    def test_truncates(self) -> None:
        assert len(note_label(Note(id="1", title="x" * 100), width=10)) == 10


class TestFormatNoteList:
    def test_empty(self) -> None:
        assert format_note_list([]) == "No notes found."
        assert format_note_list([], query="zz") == "No notes matching 'zz'."

    def test_rows(self, sample_notes) -> None:
        output = format_note_list(sample_notes, "favorite", "Gro")
        assert "FAVORITES · SEARCH: Gro" in output
        assert "Groceries" in output
        assert "#shop" in output

    def test_no_color_codes_when_disabled(self, sample_notes) -> None:
        assert "\033[" not in format_note_list(sample_notes)


def test_format_note_detail() -> None:
    note = Note(id="1768427187928", title="Trip", text="Pack", tags=["a", ""],
                image="file:///p.jpg", favorite=True)
    output = format_note_detail(note)
    assert output.splitlines()[0] == "Trip"
    assert "1768-427-187-928" in output
    assert "Tags: a, " in output
    assert "Photo: file:///p.jpg" in output
    assert "Flags: favorite" in output


def test_detail_hides_blank_tags() -> None:
    assert "Tags:" not in format_note_detail(Note(id="1", title="x", tags=[""]))


def test_format_notes_plain_limit(sample_notes) -> None:
    output = format_notes_plain(sample_notes, "NOTES", limit=2)
    assert output.startswith("NOTES")
    assert "... and 1 more" in output
    assert format_notes_plain([], "NOTES") == "NOTES\n\nNo notes found."


def test_format_stats() -> None:
    output = format_stats({
        "total_notes": 3, "favorites": 1, "archived": 0,
        "with_photo": 0, "with_voice": 2, "top_tags": [("work", 2)],
    })
    assert "Total notes: 3" in output
    assert "  work: 2" in output
