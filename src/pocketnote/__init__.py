"""
Pocketnote: local-first pocket notebook.

A small note keeper that provides:
- Titled, tagged notes with optional photo and voice attachments
- Favorites and an archive
- One local store shared by the CLI, a Telegram bot and an MCP server
"""

__version__ = "0.1.0"
