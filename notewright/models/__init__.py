"""Data models for Notewright."""

from .records import (
    Message,
    ImportConversation,
    Document,
    ImportProject,
    ImportOptions,
    normalize_list_option,
)
from .vault import ConversationEntry, DocumentEntry, ProjectEntry, VaultIndex

__all__ = [
    "Message",
    "ImportConversation",
    "Document",
    "ImportProject",
    "ImportOptions",
    "normalize_list_option",
    "ConversationEntry",
    "DocumentEntry",
    "ProjectEntry",
    "VaultIndex",
]
