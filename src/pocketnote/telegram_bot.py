"""
Telegram bot for Pocketnote.

Mobile access via Telegram. Photos and voice messages sent to the bot are
attached to the note being composed.
"""

import logging
import os
from typing import Any

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from pocketnote.compose import ComposeForm
from pocketnote.config import ensure_dirs, load_config
from pocketnote.display import format_id, format_note_detail, format_notes_plain
from pocketnote.errors import PocketNoteError
from pocketnote.log import configure_logging
from pocketnote.media import MediaLibrary
from pocketnote.store import NoteStore, open_store

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "Pocketnote Commands:\n\n"
    "/new - Start a new note\n"
    "/title <text> - Set the title\n"
    "/tags <a, b> - Set tags (comma separated)\n"
    "/save - Save the note\n"
    "/cancel - Discard the note being composed\n"
    "/edit <id> - Edit a note\n"
    "/list - List notes\n"
    "/favorites - List favorite notes\n"
    "/archived - List archived notes\n"
    "/find <query> - Search notes\n"
    "/show <id> - Show a note\n"
    "/fav <id> - Toggle favorite\n"
    "/archive <id> - Toggle archived\n"
    "/delete <id> - Delete a note\n"
    "/play <id> - Play a voice note\n"
    "/id - Show your user ID\n"
    "/help - Show this message\n\n"
    "While composing, text sets the body and photos or voice messages are "
    "attached. Otherwise any text is saved as a new note."
)


def get_bot_config(config: dict[str, Any] | None = None) -> dict[str, Any]:
    """Get bot configuration."""
    config = config or load_config()
    bot_config = config.get("telegram", {})

    # Token from config or environment
    token = bot_config.get("token") or os.environ.get("POCKETNOTE_TELEGRAM_TOKEN")
    if not token:
        raise ValueError(
            "Telegram bot token not found. "
            "Set POCKETNOTE_TELEGRAM_TOKEN env var or add to config.toml"
        )

    # Authorized user IDs (comma-separated in env, list in config)
    authorized = bot_config.get("authorized_users", [])
    if not authorized:
        env_users = os.environ.get("POCKETNOTE_TELEGRAM_USERS", "")
        if env_users:
            authorized = [int(uid.strip()) for uid in env_users.split(",") if uid.strip()]

    return {
        "token": token,
        "authorized_users": {int(uid) for uid in authorized},
    }


def is_authorized(user_id: int, authorized_users: set[int]) -> bool:
    """Check if user is authorized."""
    # If no users configured, deny all (secure default)
    if not authorized_users:
        return False
    return user_id in authorized_users


async def _check_user(update: Update, context: ContextTypes.DEFAULT_TYPE) -> bool:
    """Reply and return False unless the sender is authorized."""
    if not update.effective_user or not update.effective_message:
        return False

    user_id = update.effective_user.id
    authorized_users = context.bot_data.get("authorized_users", set())

    if not is_authorized(user_id, authorized_users):
        logger.warning(f"Unauthorized message attempt from user {user_id}")
        await update.effective_message.reply_text(f"Unauthorized. Your ID: {user_id}")
        return False
    return True


async def _store(update: Update, context: ContextTypes.DEFAULT_TYPE) -> NoteStore | None:
    """The shared store, reloaded so edits from the CLI or MCP server are seen."""
    store = context.bot_data["store"]
    try:
        store.load()
    except PocketNoteError as e:
        logger.error(f"Failed to load notes: {e}")
        await update.effective_message.reply_text(f"Error: {e}")
        return None
    return store


def _library(context: ContextTypes.DEFAULT_TYPE) -> MediaLibrary:
    return context.bot_data["library"]


def _form(context: ContextTypes.DEFAULT_TYPE, create: bool = False) -> ComposeForm | None:
    """The chat's open compose form, optionally opening a blank one."""
    form = context.chat_data.get("compose")
    if form is None and create:
        form = ComposeForm()
        context.chat_data["compose"] = form
    return form


async def _resolve(
    update: Update, context: ContextTypes.DEFAULT_TYPE, store: NoteStore, usage: str
) -> str | None:
    """Resolve the first command argument to a note ID, replying on failure."""
    if not context.args:
        await update.effective_message.reply_text(f"Usage: {usage}")
        return None

    identifier = context.args[0]
    note_id = store.resolve_id(identifier)
    if not note_id:
        await update.effective_message.reply_text(f"Note not found: {identifier}")
    return note_id


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command."""
    if not update.effective_user:
        return

    user_id = update.effective_user.id
    authorized_users = context.bot_data.get("authorized_users", set())

    if is_authorized(user_id, authorized_users):
        await update.message.reply_text("Pocketnote bot ready.\n\n" + HELP_TEXT)
    else:
        await update.message.reply_text(
            f"Unauthorized. Your user ID: {user_id}\n"
            "Add this ID to POCKETNOTE_TELEGRAM_USERS to authorize."
        )


async def id_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /id command - show user's Telegram ID."""
    if not update.effective_user:
        return

    user_id = update.effective_user.id
    await update.message.reply_text(f"Your Telegram user ID: {user_id}")


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help command."""
    if not update.effective_user:
        return

    await update.message.reply_text(HELP_TEXT)


async def new_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /new command - open a blank compose form."""
    if not await _check_user(update, context):
        return

    context.chat_data["compose"] = ComposeForm()
    await update.message.reply_text(
        "New note. Send text, a photo or a voice message, then /save."
    )


async def title_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /title command."""
    if not await _check_user(update, context):
        return

    form = _form(context, create=True)
    form.title = " ".join(context.args or [])
    await update.message.reply_text(f"Title: {form.title or '(none)'}")


async def tags_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /tags command."""
    if not await _check_user(update, context):
        return

    form = _form(context, create=True)
    form.tags = " ".join(context.args or [])
    await update.message.reply_text(f"Tags: {form.tags or '(none)'}")


async def save_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /save command - submit the compose form."""
    if not await _check_user(update, context):
        return

    form = _form(context)
    if form is None:
        await update.message.reply_text("Nothing to save. Start with /new.")
        return

    store = await _store(update, context)
    if store is None:
        return
    editing = form.is_editing and store.get(form.edit_target) is not None
    before = len(store.notes)

    try:
        notes = form.submit(store)
    except PocketNoteError as e:
        logger.error(f"Failed to save note: {e}")
        await update.message.reply_text(f"Error: {e}\nNote not saved; /save to retry.")
        return

    context.chat_data.pop("compose", None)
    if editing:
        await update.message.reply_text("Updated.")
    elif len(notes) > before:
        await update.message.reply_text(f"Saved: {format_id(notes[0].id)}")
    else:
        await update.message.reply_text("Nothing to save: note is empty.")


async def cancel_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /cancel command."""
    if not await _check_user(update, context):
        return

    context.chat_data.pop("compose", None)
    await update.message.reply_text("Discarded.")


async def edit_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /edit command - load a note into the compose form."""
    if not await _check_user(update, context):
        return

    store = await _store(update, context)
    if store is None:
        return

    note_id = await _resolve(update, context, store, "/edit <id>")
    if not note_id:
        return

    note = store.get(note_id)
    context.chat_data["compose"] = ComposeForm.for_note(note)
    await update.message.reply_text(
        f"Editing {format_id(note_id)}.\n\n{format_note_detail(note)}\n\n"
        "Send new text, /title, /tags, a photo or a voice message, then /save."
    )


async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle plain text: body of the open form, or a quick note."""
    if not await _check_user(update, context):
        return

    text = update.message.text
    if not text:
        return

    form = _form(context)
    if form is not None:
        form.text = text
        await update.message.reply_text("Body set. /save when done.")
        return

    store = await _store(update, context)
    if store is None:
        return

    try:
        notes = ComposeForm(text=text).submit(store)
    except PocketNoteError as e:
        logger.error(f"Failed to capture: {e}")
        await update.message.reply_text(f"Error saving note: {e}")
        return

    await update.message.reply_text(f"Saved: {format_id(notes[0].id)}")
    logger.info(f"Captured from Telegram user {update.effective_user.id}: {notes[0].id}")


async def handle_photo(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle a photo - attach it to the compose form."""
    if not await _check_user(update, context):
        return

    try:
        photo = await update.message.photo[-1].get_file()
        data = await photo.download_as_bytearray()
        uri = _library(context).store_photo(bytes(data))
    except PocketNoteError as e:
        await update.message.reply_text(f"Error saving photo: {e}")
        return

    form = _form(context, create=True)
    form.image = uri
    if update.message.caption and not form.text:
        form.text = update.message.caption
    await update.message.reply_text("Photo attached. /save when done.")


async def handle_voice(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle a voice message - attach it to the compose form."""
    if not await _check_user(update, context):
        return

    try:
        voice = await update.message.voice.get_file()
        data = await voice.download_as_bytearray()
        uri = _library(context).store_audio(bytes(data), ".ogg")
    except PocketNoteError as e:
        await update.message.reply_text(f"Error saving voice note: {e}")
        return

    form = _form(context, create=True)
    form.audio_uri = uri
    await update.message.reply_text("Voice note recorded. /save when done.")


async def _list(update: Update, context: ContextTypes.DEFAULT_TYPE, filter_mode: str, title: str) -> None:
    if not await _check_user(update, context):
        return

    store = await _store(update, context)
    if store is None:
        return

    query = " ".join(context.args or [])
    notes = store.filtered(filter_mode, query)
    if query:
        title = f"{title} · SEARCH: {query}"
    await update.message.reply_text(format_notes_plain(notes, title))


async def list_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /list command."""
    await _list(update, context, "all", "NOTES")


async def favorites_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /favorites command."""
    await _list(update, context, "favorite", "FAVORITES")


async def archived_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /archived command."""
    await _list(update, context, "archived", "ARCHIVED")


async def find_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /find command - search notes."""
    if not context.args:
        if await _check_user(update, context):
            await update.message.reply_text("Usage: /find <query>")
        return
    await _list(update, context, "all", "NOTES")


async def show_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /show command - text, photo and voice of one note."""
    if not await _check_user(update, context):
        return

    store = await _store(update, context)
    if store is None:
        return

    note_id = await _resolve(update, context, store, "/show <id>")
    if not note_id:
        return

    note = store.get(note_id)
    library = _library(context)
    await update.message.reply_text(format_note_detail(note))

    if note.image:
        path = library.path_for(note.image)
        if path.exists():
            await update.message.reply_photo(photo=path)
    if note.audio_uri:
        path = library.path_for(note.audio_uri)
        if path.exists():
            await update.message.reply_voice(voice=path)


async def _toggle(update: Update, context: ContextTypes.DEFAULT_TYPE, flag: str, usage: str) -> None:
    if not await _check_user(update, context):
        return

    store = await _store(update, context)
    if store is None:
        return

    note_id = await _resolve(update, context, store, usage)
    if not note_id:
        return

    try:
        store.set_flag(note_id, flag)
    except PocketNoteError as e:
        await update.message.reply_text(f"Error: {e}")
        return

    state = "on" if getattr(store.get(note_id), flag) else "off"
    await update.message.reply_text(f"{flag.capitalize()} {state}: {context.args[0]}")


async def fav_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /fav command - toggle favorite."""
    await _toggle(update, context, "favorite", "/fav <id>")


async def archive_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /archive command - toggle archived."""
    await _toggle(update, context, "archived", "/archive <id>")


async def delete_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /delete command - ask for confirmation."""
    if not await _check_user(update, context):
        return

    store = await _store(update, context)
    if store is None:
        return

    note_id = await _resolve(update, context, store, "/delete <id>")
    if not note_id:
        return

    keyboard = InlineKeyboardMarkup([[
        InlineKeyboardButton("Cancel", callback_data="delete-cancel"),
        InlineKeyboardButton("Delete", callback_data=f"delete:{note_id}"),
    ]])
    await update.message.reply_text(
        f"Delete note {format_id(note_id)}? Are you sure?",
        reply_markup=keyboard,
    )


async def delete_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle the Cancel/Delete confirmation buttons."""
    query = update.callback_query
    if not await _check_user(update, context):
        await query.answer()
        return

    await query.answer()
    if query.data == "delete-cancel":
        await query.edit_message_text("Cancelled.")
        return

    note_id = query.data.split(":", 1)[1]
    store = await _store(update, context)
    if store is None:
        return

    try:
        store.remove(note_id)
    except PocketNoteError as e:
        await query.edit_message_text(f"Error: {e}\nNote not deleted.")
        return

    await query.edit_message_text(f"Deleted: {format_id(note_id)}")


async def play_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /play command - send a note's voice clip."""
    if not await _check_user(update, context):
        return

    store = await _store(update, context)
    if store is None:
        return

    note_id = await _resolve(update, context, store, "/play <id>")
    if not note_id:
        return

    note = store.get(note_id)
    if not note.audio_uri:
        await update.message.reply_text("That note has no voice clip.")
        return

    path = _library(context).path_for(note.audio_uri)
    if not path.exists():
        await update.message.reply_text("Voice clip is missing.")
        return

    await update.message.reply_voice(voice=path)


def build_application(config: dict[str, Any], store: NoteStore, library: MediaLibrary) -> Application:
    """Create the bot application with all handlers registered."""
    bot_config = get_bot_config(config)

    app = Application.builder().token(bot_config["token"]).build()

    app.bot_data["authorized_users"] = bot_config["authorized_users"]
    app.bot_data["store"] = store
    app.bot_data["library"] = library

    app.add_handler(CommandHandler("start", start_command))
    app.add_handler(CommandHandler("help", help_command))
    app.add_handler(CommandHandler("id", id_command))
    app.add_handler(CommandHandler("new", new_command))
    app.add_handler(CommandHandler("title", title_command))
    app.add_handler(CommandHandler("tags", tags_command))
    app.add_handler(CommandHandler("save", save_command))
    app.add_handler(CommandHandler("cancel", cancel_command))
    app.add_handler(CommandHandler("edit", edit_command))
    app.add_handler(CommandHandler("list", list_command))
    app.add_handler(CommandHandler("favorites", favorites_command))
    app.add_handler(CommandHandler("archived", archived_command))
    app.add_handler(CommandHandler("find", find_command))
    app.add_handler(CommandHandler("show", show_command))
    app.add_handler(CommandHandler("fav", fav_command))
    app.add_handler(CommandHandler("archive", archive_command))
    app.add_handler(CommandHandler("delete", delete_command))
    app.add_handler(CommandHandler("play", play_command))
    app.add_handler(CallbackQueryHandler(delete_callback, pattern=r"^delete"))
    app.add_handler(MessageHandler(filters.PHOTO, handle_photo))
    app.add_handler(MessageHandler(filters.VOICE, handle_voice))
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_message))

    if bot_config["authorized_users"]:
        logger.info(f"Bot starting. Authorized users: {bot_config['authorized_users']}")
    else:
        logger.warning("No authorized users configured! Bot will deny all messages.")

    return app


def run_bot() -> None:
    """Run the Telegram bot."""
    config = load_config()
    ensure_dirs()
    configure_logging(config, stream=True)

    store = open_store(config)
    app = build_application(config, store, MediaLibrary())
    app.run_polling(allowed_updates=Update.ALL_TYPES)


def main() -> int:
    """Entry point for CLI."""
    try:
        run_bot()
        return 0
    except (ValueError, PocketNoteError) as e:
        print(f"Error: {e}")
        return 1
    except KeyboardInterrupt:
        print("\nBot stopped.")
        return 0


if __name__ == "__main__":
    import sys
    sys.exit(main())
