"""
MCP Server for Pocketnote.

Exposes the note store as tools for MCP clients.
"""

import asyncio

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from pocketnote.compose import ComposeForm
from pocketnote.config import ensure_dirs, load_config
from pocketnote.display import format_id, format_note_detail, format_notes_plain
from pocketnote.models import FILTER_MODES
from pocketnote.store import NoteStore, open_store

# Create MCP server
server = Server("pocketnote")

NOTE_ID_SCHEMA = {
    "type": "string",
    "description": "Note ID (digits, hyphens optional)",
}


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        Tool(
            name="notes_add",
            description="Create a note. At least one of title or text must be non-empty.",
            inputSchema={
                "type": "object",
                "properties": {
                    "title": {"type": "string", "description": "Note title"},
                    "text": {"type": "string", "description": "Note body"},
                    "tags": {
                        "type": "string",
                        "description": "Comma-separated tags, e.g. 'work, ideas'",
                    },
                },
            },
        ),
        Tool(
            name="notes_list",
            description="List notes. 'all' hides archived notes.",
            inputSchema={
                "type": "object",
                "properties": {
                    "filter": {
                        "type": "string",
                        "enum": list(FILTER_MODES),
                        "default": "all",
                    },
                    "limit": {
                        "type": "integer",
                        "description": "Maximum results to return (default: 20)",
                        "default": 20,
                    },
                },
            },
        ),
        Tool(
            name="notes_search",
            description="Search note titles and text (case-sensitive substring).",
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "Search text"},
                    "filter": {
                        "type": "string",
                        "enum": list(FILTER_MODES),
                        "default": "all",
                    },
                    "limit": {
                        "type": "integer",
                        "description": "Maximum results to return (default: 10)",
                        "default": 10,
                    },
                },
                "required": ["query"],
            },
        ),
        Tool(
            name="notes_show",
            description="Show a note with all its fields.",
            inputSchema={
                "type": "object",
                "properties": {"note_id": NOTE_ID_SCHEMA},
                "required": ["note_id"],
            },
        ),
        Tool(
            name="notes_edit",
            description="Edit a note's title, text or tags. Omitted fields keep their value.",
            inputSchema={
                "type": "object",
                "properties": {
                    "note_id": NOTE_ID_SCHEMA,
                    "title": {"type": "string"},
                    "text": {"type": "string"},
                    "tags": {"type": "string", "description": "Comma-separated tags"},
                },
                "required": ["note_id"],
            },
        ),
        Tool(
            name="notes_toggle_favorite",
            description="Toggle a note's favorite flag.",
            inputSchema={
                "type": "object",
                "properties": {"note_id": NOTE_ID_SCHEMA},
                "required": ["note_id"],
            },
        ),
        Tool(
            name="notes_toggle_archive",
            description="Toggle a note's archived flag.",
            inputSchema={
                "type": "object",
                "properties": {"note_id": NOTE_ID_SCHEMA},
                "required": ["note_id"],
            },
        ),
        Tool(
            name="notes_delete",
            description="Permanently delete a note. Requires confirm=true.",
            inputSchema={
                "type": "object",
                "properties": {
                    "note_id": NOTE_ID_SCHEMA,
                    "confirm": {
                        "type": "boolean",
                        "description": "Must be true; deletion cannot be undone",
                    },
                },
                "required": ["note_id", "confirm"],
            },
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    """Handle tool calls."""
    try:
        if name == "notes_add":
            return await tool_add(arguments)
        elif name == "notes_list":
            return await tool_list(arguments)
        elif name == "notes_search":
            return await tool_search(arguments)
        elif name == "notes_show":
            return await tool_show(arguments)
        elif name == "notes_edit":
            return await tool_edit(arguments)
        elif name == "notes_toggle_favorite":
            return await tool_toggle(arguments, "favorite")
        elif name == "notes_toggle_archive":
            return await tool_toggle(arguments, "archived")
        elif name == "notes_delete":
            return await tool_delete(arguments)
        else:
            return [TextContent(type="text", text=f"Unknown tool: {name}")]
    except Exception as e:
        return [TextContent(type="text", text=f"Error: {e}")]


def _text(message: str) -> list[TextContent]:
    return [TextContent(type="text", text=message)]


def _get_store() -> NoteStore:
    """Load the store fresh so edits from the CLI or bot are visible."""
    ensure_dirs()
    return open_store(load_config())


async def tool_add(args: dict) -> list[TextContent]:
    """Create a note."""
    store = _get_store()
    form = ComposeForm(
        title=args.get("title", ""),
        text=args.get("text", ""),
        tags=args.get("tags", ""),
    )
    before = len(store.notes)
    notes = form.submit(store)

    if len(notes) == before:
        return _text("Error: Empty note")
    return _text(f"Created: {format_id(notes[0].id)}")


async def tool_list(args: dict) -> list[TextContent]:
    """List notes."""
    filter_mode = args.get("filter", "all")
    limit = args.get("limit", 20)

    notes = _get_store().filtered(filter_mode)
    title = {"all": "NOTES", "favorite": "FAVORITES", "archived": "ARCHIVED"}[filter_mode]
    return _text(format_notes_plain(notes, title, limit=limit))


async def tool_search(args: dict) -> list[TextContent]:
    """Search notes."""
    query = args.get("query", "")
    filter_mode = args.get("filter", "all")
    limit = args.get("limit", 10)

    if not query.strip():
        return _text("Error: Empty query")

    notes = _get_store().filtered(filter_mode, query)
    if not notes:
        return _text(f"No notes matching '{query}'.")
    return _text(format_notes_plain(notes, f"SEARCH: {query}", limit=limit))


async def tool_show(args: dict) -> list[TextContent]:
    """Show one note."""
    store = _get_store()
    note_id = store.resolve_id(args.get("note_id", ""))
    if not note_id:
        return _text(f"Note not found: {args.get('note_id', '')}")
    return _text(format_note_detail(store.get(note_id)))


async def tool_edit(args: dict) -> list[TextContent]:
    """Edit a note's text fields."""
    store = _get_store()
    note_id = store.resolve_id(args.get("note_id", ""))
    if not note_id:
        return _text(f"Note not found: {args.get('note_id', '')}")

    form = ComposeForm.for_note(store.get(note_id))
    for field in ("title", "text", "tags"):
        if field in args:
            setattr(form, field, args[field])
    form.submit(store)

    return _text(f"Updated: {format_id(note_id)}")


async def tool_toggle(args: dict, flag: str) -> list[TextContent]:
    """Toggle favorite or archived."""
    store = _get_store()
    note_id = store.resolve_id(args.get("note_id", ""))
    if not note_id:
        return _text(f"Note not found: {args.get('note_id', '')}")

    store.set_flag(note_id, flag)
    state = "on" if getattr(store.get(note_id), flag) else "off"
    return _text(f"{flag.capitalize()} {state}: {format_id(note_id)}")


async def tool_delete(args: dict) -> list[TextContent]:
    """Delete a note."""
    if args.get("confirm") is not True:
        return _text("Not deleted: pass confirm=true to delete permanently.")

    store = _get_store()
    note_id = store.resolve_id(args.get("note_id", ""))
    if not note_id:
        return _text(f"Note not found: {args.get('note_id', '')}")

    store.remove(note_id)
    return _text(f"Deleted: {format_id(note_id)}")


async def main():
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
