"""
Notewright: incremental importer for Claude data exports.

Turns conversations and projects into a vault of markdown notes and keeps
them current on every re-import without touching manual edits.
"""

__version__ = "0.1.0"
__author__ = "Notewright Project"

# Import main components
from .models import ImportConversation, ImportProject, ImportOptions, VaultIndex
from .vault import scan_vault, plan_updates, UpdateAction
from .merging import ConversationMerger, ProjectMerger, NoteWriter
from .importers import BaseImporter, MockImporter, ClaudeExportImporter
from .pipeline import ImportPipeline, RunReport
from .config import ConfigManager

__all__ = [
    "ImportConversation",
    "ImportProject",
    "ImportOptions",
    "VaultIndex",
    "scan_vault",
    "plan_updates",
    "UpdateAction",
    "ConversationMerger",
    "ProjectMerger",
    "NoteWriter",
    "BaseImporter",
    "MockImporter",
    "ClaudeExportImporter",
    "ImportPipeline",
    "RunReport",
    "ConfigManager",
]
