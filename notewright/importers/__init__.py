"""Data importers for export formats."""

from .base import BaseImporter
from .mock import MockImporter
from .claude_export import ClaudeExportImporter, pair_chat_messages

__all__ = ["BaseImporter", "MockImporter", "ClaudeExportImporter", "pair_chat_messages"]
