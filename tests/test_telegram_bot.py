"""Tests for the Telegram bot handlers."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from pocketnote import telegram_bot as bot
from pocketnote.compose import ComposeForm
from pocketnote.media import MediaLibrary
from pocketnote.models import Note
from pocketnote.storage import JsonFileStorage
from pocketnote.store import NoteStore

from conftest import FailingStorage

USER_ID = 42


@pytest.fixture
def library(tmp_path) -> MediaLibrary:
    return MediaLibrary(tmp_path / "media")


@pytest.fixture
def context(store: NoteStore, library: MediaLibrary) -> MagicMock:
    ctx = MagicMock()
    ctx.bot_data = {"authorized_users": {USER_ID}, "store": store, "library": library}
    ctx.chat_data = {}
    ctx.args = []
    return ctx


def make_update(text: str | None = None, user_id: int = USER_ID) -> MagicMock:
    update = MagicMock()
    update.effective_user.id = user_id
    update.message.text = text
    update.message.caption = None
    update.message.reply_text = AsyncMock()
    update.message.reply_voice = AsyncMock()
    update.message.reply_photo = AsyncMock()
    update.effective_message = update.message
    return update


def last_reply(update: MagicMock) -> str:
    return update.message.reply_text.await_args.args[0]


class TestConfig:
    def test_is_authorized(self) -> None:
        assert bot.is_authorized(1, {1, 2})
        assert not bot.is_authorized(3, {1, 2})
        assert not bot.is_authorized(1, set())

    def test_token_required(self) -> None:
        with pytest.raises(ValueError):
            bot.get_bot_config({"telegram": {}})

    def test_env_users(self, monkeypatch) -> None:
        monkeypatch.setenv("POCKETNOTE_TELEGRAM_TOKEN", "abc")
        monkeypatch.setenv("POCKETNOTE_TELEGRAM_USERS", "1, 2,")
        config = bot.get_bot_config({"telegram": {}})
        assert config == {"token": "abc", "authorized_users": {1, 2}}


class TestCompose:
    async def test_unauthorized_user_is_rejected(self, context, store) -> None:
        update = make_update("hello", user_id=7)
        await bot.handle_message(update, context)
        assert "Unauthorized" in last_reply(update)
        assert store.notes == []

    async def test_text_without_form_is_quick_note(self, context, store) -> None:
        update = make_update("remember the milk")
        await bot.handle_message(update, context)
        assert store.notes[0].text == "remember the milk"
        assert last_reply(update).startswith("Saved:")

    async def test_compose_and_save(self, context, store) -> None:
        await bot.new_command(make_update(), context)

        context.args = ["Trip", "plan"]
        await bot.title_command(make_update(), context)
        context.args = ["travel,", "todo"]
        await bot.tags_command(make_update(), context)
        await bot.handle_message(make_update("Pack the charger"), context)

        update = make_update()
        await bot.save_command(update, context)

        note = store.notes[0]
        assert note.title == "Trip plan"
        assert note.text == "Pack the charger"
        assert note.tags == ("travel", "todo")
        assert "compose" not in context.chat_data
        assert last_reply(update).startswith("Saved:")

    async def test_save_empty_form(self, context, store) -> None:
        await bot.new_command(make_update(), context)
        update = make_update()
        await bot.save_command(update, context)
        assert store.notes == []
        assert "empty" in last_reply(update)

    async def test_voice_message_attaches_clip(self, context, store) -> None:
        update = make_update()
        voice_file = MagicMock()
        voice_file.download_as_bytearray = AsyncMock(return_value=bytearray(b"OggS"))
        update.message.voice.get_file = AsyncMock(return_value=voice_file)

        await bot.handle_voice(update, context)
        uri = context.chat_data["compose"].audio_uri
        assert uri.startswith("file://")

        await bot.save_command(make_update(), context)
        assert store.notes[0].audio_uri == uri

    async def test_edit_keeps_flags(self, context, store) -> None:
        store.save([Note(id="1700000000000", title="old", favorite=True)])
        context.args = ["1700-000-000-000"]
        await bot.edit_command(make_update(), context)
        assert context.chat_data["compose"].edit_target == "1700000000000"

        await bot.handle_message(make_update("new body"), context)
        update = make_update()
        await bot.save_command(update, context)

        note = store.get("1700000000000")
        assert note.text == "new body"
        assert note.title == "old"
        assert note.favorite is True
        assert last_reply(update) == "Updated."

    async def test_cancel(self, context) -> None:
        context.chat_data["compose"] = ComposeForm(title="x")
        await bot.cancel_command(make_update(), context)
        assert "compose" not in context.chat_data


class TestNoteCommands:
    @pytest.fixture(autouse=True)
    def notes(self, store) -> None:
        store.save([
            Note(id="3", title="Groceries", favorite=True),
            Note(id="2", title="Trip", archived=True),
        ])

    async def test_list_hides_archived(self, context) -> None:
        update = make_update()
        await bot.list_command(update, context)
        assert "Groceries" in last_reply(update)
        assert "Trip" not in last_reply(update)

    async def test_archived(self, context) -> None:
        update = make_update()
        await bot.archived_command(update, context)
        assert "Trip" in last_reply(update)

    async def test_find(self, context) -> None:
        context.args = ["Groc"]
        update = make_update()
        await bot.find_command(update, context)
        assert "Groceries" in last_reply(update)

    async def test_toggle_favorite(self, context, store) -> None:
        context.args = ["3"]
        update = make_update()
        await bot.fav_command(update, context)
        assert store.get("3").favorite is False
        assert last_reply(update) == "Favorite off: 3"

    async def test_unknown_note(self, context) -> None:
        context.args = ["99"]
        update = make_update()
        await bot.archive_command(update, context)
        assert last_reply(update) == "Note not found: 99"

    async def test_delete_asks_then_removes(self, context, store) -> None:
        context.args = ["2"]
        update = make_update()
        await bot.delete_command(update, context)
        assert "Are you sure?" in last_reply(update)
        assert store.get("2") is not None

        callback = make_update()
        callback.callback_query.data = "delete:2"
        callback.callback_query.answer = AsyncMock()
        callback.callback_query.edit_message_text = AsyncMock()
        await bot.delete_callback(callback, context)

        assert store.get("2") is None
        callback.callback_query.edit_message_text.assert_awaited_once_with("Deleted: 2")

    async def test_delete_cancelled(self, context, store) -> None:
        callback = make_update()
        callback.callback_query.data = "delete-cancel"
        callback.callback_query.answer = AsyncMock()
        callback.callback_query.edit_message_text = AsyncMock()
        await bot.delete_callback(callback, context)
        assert len(store.notes) == 2

    async def test_play_without_clip(self, context) -> None:
        context.args = ["3"]
        update = make_update()
        await bot.play_command(update, context)
        assert last_reply(update) == "That note has no voice clip."


class TestAttachmentsAndFailures:
    async def test_photo_with_caption(self, context, store, library) -> None:
        photo_file = MagicMock()
        photo_file.download_as_bytearray = AsyncMock(return_value=bytearray(b"\xff\xd8jpeg"))
        largest = MagicMock()
        largest.get_file = AsyncMock(return_value=photo_file)
        update = make_update()
        update.message.caption = "receipt"
        update.message.photo = [MagicMock(), largest]

        await bot.handle_photo(update, context)
        form = context.chat_data["compose"]
        uri = form.image
        assert form.text == "receipt"
        assert library.path_for(uri).read_bytes() == b"\xff\xd8jpeg"
        assert last_reply(update) == "Photo attached. /save when done."

        await bot.save_command(make_update(), context)
        assert store.notes[0].image == uri
        assert store.notes[0].text == "receipt"

    async def test_save_failure_keeps_form(self, context, id_factory) -> None:
        context.bot_data["store"] = NoteStore(FailingStorage(), id_factory=id_factory)
        context.chat_data["compose"] = ComposeForm(title="keep me")

        update = make_update()
        await bot.save_command(update, context)

        assert "Note not saved" in last_reply(update)
        assert context.chat_data["compose"].title == "keep me"

    async def test_unreadable_storage_is_reported(self, context, id_factory) -> None:
        context.bot_data["store"] = NoteStore(FailingStorage(fail_reads=True), id_factory=id_factory)
        update = make_update()
        await bot.list_command(update, context)
        assert last_reply(update).startswith("Error:")


class TestSharedStorage:
    """The bot and another process writing the same notes file."""

    @pytest.fixture
    def storage(self, tmp_path) -> JsonFileStorage:
        return JsonFileStorage(tmp_path / "data")

    @pytest.fixture
    def other(self, storage, id_factory) -> NoteStore:
        return NoteStore(storage, id_factory=id_factory)

    async def test_capture_keeps_notes_written_elsewhere(self, context, storage, other) -> None:
        context.bot_data["store"].load()
        ComposeForm(text="from cli").submit(other)

        await bot.handle_message(make_update("from bot"), context)

        fresh = NoteStore(storage)
        fresh.load()
        assert {note.text for note in fresh.notes} == {"from cli", "from bot"}

    async def test_list_shows_notes_written_elsewhere(self, context, other) -> None:
        context.bot_data["store"].load()
        ComposeForm(title="Added by cli").submit(other)

        update = make_update()
        await bot.list_command(update, context)
        assert "Added by cli" in last_reply(update)

    async def test_delete_elsewhere_is_seen(self, context, store, other) -> None:
        store.save([Note(id="5", title="Gone soon")])
        other.load()
        other.remove("5")

        context.args = ["5"]
        update = make_update()
        await bot.show_command(update, context)
        assert last_reply(update) == "Note not found: 5"
