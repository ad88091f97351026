"""Merging of import records into vault notes."""

from .writer import MergeOutcome, NoteWrite, NoteWriter
from .conversations import ConversationMerger, ConversationMergeResult
from .projects import (
    ProjectMerger,
    ProjectMergeResult,
    linked_documents,
    replace_documents_section,
    replace_overview_intro,
)
from .templates import sanitize_filename, conversation_title, document_filename

__all__ = [
    "MergeOutcome",
    "NoteWrite",
    "NoteWriter",
    "ConversationMerger",
    "ConversationMergeResult",
    "ProjectMerger",
    "ProjectMergeResult",
    "linked_documents",
    "replace_documents_section",
    "replace_overview_intro",
    "sanitize_filename",
    "conversation_title",
    "document_filename",
]
