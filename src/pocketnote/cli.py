"""
CLI for Pocketnote.

Minimal CLI using stdlib for fast startup on the capture path.
Subcommands are imported lazily to avoid startup overhead.

Usage:
    pocketnote "your note here"     # Quick capture
    pocketnote list                 # List notes
    pocketnote --help               # Show help
"""

import sys


def print_help() -> None:
    """Print help message."""
    print("""pocketnote - local-first pocket notebook

Usage:
    pocketnote "your note here"   Capture a note (body only)

Commands:
    pocketnote add [options] [text]   Create a note
        --title, -t TITLE             Note title
        --tags TAGS                   Comma-separated tags ("work, ideas")
        --image PATH                  Attach a photo
        --audio PATH                  Attach a voice clip
        --record                      Record a voice clip now
    pocketnote edit <id> [options]    Edit a note (same options, plus
                                      --text, --no-image, --no-audio)
    pocketnote list [options] [query] List notes (--favorites, --archived)
    pocketnote find <query>           Search titles and text (case-sensitive)
    pocketnote show <id>              Show one note
    pocketnote fav <id>               Toggle favorite
    pocketnote archive <id>           Toggle archived
    pocketnote delete <id> [--yes]    Delete a note (asks first)
    pocketnote play <id>              Play a note's voice clip
    pocketnote stats                  Show note statistics
    pocketnote health                 Check storage, media and tools

Options:
    pocketnote --help, -h             Show this help
    pocketnote --version, -v          Show version

Examples:
    pocketnote "Buy oat milk"
    pocketnote add -t "Trip" --tags "travel, todo" Pack the charger
    pocketnote list --favorites
    pocketnote find Trip
    pocketnote delete 1768-427-187-928""")


def print_version() -> None:
    """Print version."""
    from pocketnote import __version__
    print(f"pocketnote {__version__}")


def parse_options(
    args: list[str],
    value_options: dict[str, str],
    flag_options: dict[str, str],
) -> tuple[dict[str, str | bool], list[str]]:
    """
    Split ``args`` into options and positional words.

    ``value_options`` and ``flag_options`` map each spelling (``--title``,
    ``-t``) to the option name. Unknown dashed words are kept as text.
    """
    options: dict[str, str | bool] = {}
    positional: list[str] = []

    i = 0
    while i < len(args):
        arg = args[i]
        if arg in value_options:
            if i + 1 >= len(args):
                raise ValueError(f"{arg} needs a value")
            options[value_options[arg]] = args[i + 1]
            i += 2
        elif arg in flag_options:
            options[flag_options[arg]] = True
            i += 1
        else:
            positional.append(arg)
            i += 1

    return options, positional


CONTENT_OPTIONS = {
    "--title": "title",
    "-t": "title",
    "--text": "text",
    "--tags": "tags",
    "--image": "image",
    "--audio": "audio",
}


def _open_store():
    """Load the configured store, reporting failures on stderr."""
    from pocketnote.config import ensure_dirs, load_config
    from pocketnote.errors import PocketNoteError
    from pocketnote.log import configure_logging
    from pocketnote.store import open_store

    config = load_config()
    ensure_dirs()
    configure_logging(config)

    try:
        return open_store(config), config
    except (PocketNoteError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return None, config


def _resolve(store, identifier: str) -> str | None:
    note_id = store.resolve_id(identifier)
    if not note_id:
        print(f"Note not found: {identifier}", file=sys.stderr)
    return note_id


def _record_voice(config, library) -> str:
    """Record until the user presses Enter. Returns the clip URI."""
    from pocketnote.media import AudioRecorder

    recorder = AudioRecorder(config["media"]["recorder"], library)
    recorder.start()
    try:
        input("Recording... press Enter to stop. ")
    finally:
        uri = recorder.stop()
    return uri


def _discard_media(library, uris: list[str]) -> None:
    """Delete attachments copied in for a note that was not saved."""
    for uri in uris:
        library.path_for(uri).unlink(missing_ok=True)


def capture(text: str) -> int:
    """Capture a body-only note."""
    from pocketnote.compose import ComposeForm
    from pocketnote.display import format_id
    from pocketnote.errors import PocketNoteError

    store, _ = _open_store()
    if store is None:
        return 1

    form = ComposeForm(text=text)
    try:
        notes = form.submit(store)
    except PocketNoteError as e:
        print(f"Error: {e}. Note not saved.", file=sys.stderr)
        return 1

    print(format_id(notes[0].id))
    return 0


def cmd_add(args: list[str]) -> int:
    """Create a note from options and trailing text."""
    from pocketnote.compose import ComposeForm
    from pocketnote.display import format_id
    from pocketnote.errors import PocketNoteError
    from pocketnote.media import MediaLibrary

    try:
        options, words = parse_options(args, CONTENT_OPTIONS, {"--record": "record"})
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    store, config = _open_store()
    if store is None:
        return 1

    form = ComposeForm(
        title=str(options.get("title", "")),
        text=str(options.get("text", " ".join(words))),
        tags=str(options.get("tags", "")),
    )

    library = MediaLibrary()
    added = []
    try:
        if "image" in options:
            form.image = library.import_file(options["image"], "photo")
            added.append(form.image)
        if "audio" in options:
            form.audio_uri = library.import_file(options["audio"], "voice")
            added.append(form.audio_uri)
        if options.get("record"):
            form.audio_uri = _record_voice(config, library)
            added.append(form.audio_uri)

        before = len(store.notes)
        notes = form.submit(store)
    except PocketNoteError as e:
        _discard_media(library, added)
        print(f"Error: {e}. Note not saved.", file=sys.stderr)
        return 1

    if len(notes) == before:
        print("Nothing to save: note is empty.", file=sys.stderr)
        return 1

    print(format_id(notes[0].id))
    return 0


def cmd_edit(args: list[str]) -> int:
    """Edit a note's content."""
    from pocketnote.compose import ComposeForm
    from pocketnote.errors import PocketNoteError
    from pocketnote.media import MediaLibrary

    try:
        options, words = parse_options(
            args,
            CONTENT_OPTIONS,
            {"--record": "record", "--no-image": "no_image", "--no-audio": "no_audio"},
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not words:
        print("Usage: pocketnote edit <id> [options]", file=sys.stderr)
        return 1

    store, config = _open_store()
    if store is None:
        return 1

    note_id = _resolve(store, words[0])
    if not note_id:
        return 1

    form = ComposeForm.for_note(store.get(note_id))
    for field in ("title", "text", "tags"):
        if field in options:
            setattr(form, field, str(options[field]))
    if options.get("no_image"):
        form.image = None
    if options.get("no_audio"):
        form.audio_uri = None

    library = MediaLibrary()
    added = []
    try:
        if "image" in options:
            form.image = library.import_file(options["image"], "photo")
            added.append(form.image)
        if "audio" in options:
            form.audio_uri = library.import_file(options["audio"], "voice")
            added.append(form.audio_uri)
        if options.get("record"):
            form.audio_uri = _record_voice(config, library)
            added.append(form.audio_uri)

        form.submit(store)
    except PocketNoteError as e:
        _discard_media(library, added)
        print(f"Error: {e}. Changes not saved.", file=sys.stderr)
        return 1

    print(f"Updated: {words[0]}")
    return 0


def cmd_list(args: list[str]) -> int:
    """List notes with optional filter and search query."""
    from pocketnote.display import format_note_list

    options, words = parse_options(
        args, {}, {
            "--favorites": "favorite",
            "-f": "favorite",
            "--archived": "archived",
            "-a": "archived",
        },
    )
    if options.get("favorite") and options.get("archived"):
        print("Error: --favorites and --archived are exclusive", file=sys.stderr)
        return 1

    filter_mode = "all"
    if options.get("favorite"):
        filter_mode = "favorite"
    elif options.get("archived"):
        filter_mode = "archived"
    query = " ".join(words)

    store, _ = _open_store()
    if store is None:
        return 1

    print(format_note_list(store.filtered(filter_mode, query), filter_mode, query))
    return 0


def cmd_find(args: list[str]) -> int:
    """Search notes."""
    if not args:
        print("Usage: pocketnote find <query>", file=sys.stderr)
        return 1
    return cmd_list(args)


def cmd_show(args: list[str]) -> int:
    """Show one note."""
    from pocketnote.display import format_note_detail

    if not args:
        print("Usage: pocketnote show <id>", file=sys.stderr)
        return 1

    store, _ = _open_store()
    if store is None:
        return 1

    note_id = _resolve(store, args[0])
    if not note_id:
        return 1

    print(format_note_detail(store.get(note_id)))
    return 0


def cmd_flag(args: list[str], flag: str) -> int:
    """Toggle a flag on a note."""
    from pocketnote.errors import PocketNoteError

    if not args:
        command = "fav" if flag == "favorite" else "archive"
        print(f"Usage: pocketnote {command} <id>", file=sys.stderr)
        return 1

    store, _ = _open_store()
    if store is None:
        return 1

    note_id = _resolve(store, args[0])
    if not note_id:
        return 1

    try:
        store.set_flag(note_id, flag)
    except PocketNoteError as e:
        print(f"Error: {e}. Change not saved.", file=sys.stderr)
        return 1

    state = "on" if getattr(store.get(note_id), flag) else "off"
    print(f"{flag.capitalize()} {state}: {args[0]}")
    return 0


def cmd_delete(args: list[str]) -> int:
    """Delete a note after confirmation."""
    from pocketnote.display import note_label
    from pocketnote.errors import PocketNoteError

    options, words = parse_options(args, {}, {"--yes": "yes", "-y": "yes"})
    if not words:
        print("Usage: pocketnote delete <id> [--yes]", file=sys.stderr)
        return 1

    store, _ = _open_store()
    if store is None:
        return 1

    note_id = _resolve(store, words[0])
    if not note_id:
        return 1

    if not options.get("yes"):
        label = note_label(store.get(note_id))
        try:
            answer = input(f"Delete note '{label}'? Are you sure? [y/N] ")
        except EOFError:
            answer = ""
        if answer.strip().lower() not in ("y", "yes"):
            print("Cancelled.")
            return 0

    try:
        store.remove(note_id)
    except PocketNoteError as e:
        print(f"Error: {e}. Note not deleted.", file=sys.stderr)
        return 1

    print(f"Deleted: {words[0]}")
    return 0


def cmd_play(args: list[str]) -> int:
    """Play a note's voice clip."""
    from pocketnote.errors import PocketNoteError
    from pocketnote.media import play_audio

    if not args:
        print("Usage: pocketnote play <id>", file=sys.stderr)
        return 1

    store, config = _open_store()
    if store is None:
        return 1

    note_id = _resolve(store, args[0])
    if not note_id:
        return 1

    note = store.get(note_id)
    if not note.audio_uri:
        print(f"No voice clip on note: {args[0]}", file=sys.stderr)
        return 1

    try:
        play_audio(note.audio_uri, config["media"]["player"]).wait()
    except PocketNoteError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def cmd_stats() -> int:
    """Show note statistics."""
    from pocketnote.display import format_stats

    store, _ = _open_store()
    if store is None:
        return 1

    print(format_stats(store.stats()))
    return 0


def cmd_health() -> int:
    """Show health report."""
    from pocketnote.health import format_health_report, run_health_check

    print(format_health_report(run_health_check()))
    return 0


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point.

    Optimized for minimal startup time on the capture path.
    """
    args = sys.argv[1:] if argv is None else argv

    # No args - check for piped input
    if not args:
        if not sys.stdin.isatty():
            text = sys.stdin.read().strip()
            if text:
                return capture(text)
        print_help()
        return 0

    first_arg = args[0]

    if first_arg in ("--help", "-h", "help"):
        print_help()
        return 0

    if first_arg in ("--version", "-v", "version"):
        print_version()
        return 0

    # Subcommands (lazy import to keep startup fast)
    if first_arg == "add":
        return cmd_add(args[1:])

    if first_arg == "edit":
        return cmd_edit(args[1:])

    if first_arg == "list":
        return cmd_list(args[1:])

    if first_arg == "find":
        return cmd_find(args[1:])

    if first_arg == "show":
        return cmd_show(args[1:])

    if first_arg == "fav":
        return cmd_flag(args[1:], "favorite")

    if first_arg == "archive":
        return cmd_flag(args[1:], "archived")

    if first_arg == "delete":
        return cmd_delete(args[1:])

    if first_arg == "play":
        return cmd_play(args[1:])

    if first_arg == "stats":
        return cmd_stats()

    if first_arg == "health":
        return cmd_health()

    # Everything else is a note to capture
    text = " ".join(args)

    if not text.strip():
        print("Error: Empty note", file=sys.stderr)
        return 1

    return capture(text)


if __name__ == "__main__":
    sys.exit(main())
