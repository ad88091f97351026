"""
Vault index builder for Notewright.

Recovers the state of previous imports by reading the frontmatter of every
note in the vault. There is no side database: the notes are the state.
"""

import logging
import re
from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterator, List, NamedTuple, Union

from ..models import ConversationEntry, DocumentEntry, ProjectEntry, VaultIndex
from .frontmatter import parse_frontmatter


NOTE_SUFFIX = ".md"
DOCUMENT_INDEX_PATTERN = re.compile(r"^(\d+)_")

TYPE_CONVERSATION = "conversation"
TYPE_PROJECT_OVERVIEW = "project-overview"
TYPE_PROJECT_DOCUMENT = "project-document"


class ScannedNote(NamedTuple):
    path: Path
    fields: Dict[str, str]


def read_note(path: Union[str, Path]) -> str:
    """Read a note as UTF-8 text with its line endings untouched."""
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def document_index(filename: str) -> int:
    """Numeric ``NNN_`` prefix of a document filename, or 0."""
    match = DOCUMENT_INDEX_PATTERN.match(filename)
    return int(match.group(1)) if match else 0


class VaultScanner:
    """
    Walks a vault and builds an index of previously imported notes.

    Files without a frontmatter block are not managed notes and are skipped
    silently. Hidden directories (``.obsidian``, ``.trash``) are ignored.
    """

    def __init__(self, vault_root: Union[str, Path]):
        self.vault_root = Path(vault_root)

    def scan(self) -> VaultIndex:
        """
        Scan the vault.

        Returns:
            VaultIndex with conversations and projects keyed by uuid. A vault
            root that does not exist yields an empty index.
        """
        if not self.vault_root.exists():
            logging.info(f"Vault directory {self.vault_root} does not exist yet, nothing to scan")
            return VaultIndex()

        notes = list(self._read_notes())
        by_type: Dict[str, List[ScannedNote]] = defaultdict(list)
        for note in notes:
            by_type[note.fields.get("type", "")].append(note)

        conversations = self._index_conversations(by_type[TYPE_CONVERSATION])
        documents = self._index_documents(by_type[TYPE_PROJECT_DOCUMENT])
        projects = self._index_projects(by_type[TYPE_PROJECT_OVERVIEW], documents)

        logging.debug(
            f"Scanned {len(notes)} managed notes in {self.vault_root}: "
            f"{len(conversations)} conversations, {len(projects)} projects"
        )
        return VaultIndex(conversations=conversations, projects=projects, total_files=len(notes))

    def _read_notes(self) -> Iterator[ScannedNote]:
        for path in sorted(self.vault_root.rglob(f"*{NOTE_SUFFIX}")):
            relative = path.relative_to(self.vault_root)
            if any(part.startswith(".") for part in relative.parts[:-1]):
                continue
            if not path.is_file():
                continue
            try:
                text = read_note(path)
            except (OSError, UnicodeDecodeError) as e:
                logging.warning(f"Skipping unreadable note {path}: {e}")
                continue

            parsed = parse_frontmatter(text)
            if parsed.present:
                yield ScannedNote(path, parsed.fields)

    def _index_conversations(self, notes: List[ScannedNote]) -> Dict[str, ConversationEntry]:
        conversations: Dict[str, ConversationEntry] = {}
        for note in notes:
            uuid = note.fields.get("uuid")
            if not uuid:
                logging.debug(f"Conversation note without uuid ignored: {note.path}")
                continue
            if uuid in conversations:
                logging.warning(
                    f"Duplicate conversation uuid {uuid}: {note.path} shadows {conversations[uuid].file_path}"
                )
            conversations[uuid] = ConversationEntry(
                file_path=str(note.path),
                uuid=uuid,
                created_at=note.fields.get("created_at"),
                updated_at=note.fields.get("updated_at"),
                obsidized_at=note.fields.get("obsidized_at"),
            )
        return conversations

    def _index_documents(self, notes: List[ScannedNote]) -> Dict[Path, List[DocumentEntry]]:
        """Group project documents by the directory that contains them."""
        by_folder: Dict[Path, List[DocumentEntry]] = defaultdict(list)
        for note in notes:
            by_folder[note.path.parent].append(DocumentEntry(
                file_path=str(note.path),
                filename=note.path.name,
                uuid=note.fields.get("uuid"),
                index=document_index(note.path.name),
                created_at=note.fields.get("created_at"),
            ))
        return by_folder

    def _index_projects(
        self,
        notes: List[ScannedNote],
        documents: Dict[Path, List[DocumentEntry]],
    ) -> Dict[str, ProjectEntry]:
        projects: Dict[str, ProjectEntry] = {}
        for note in notes:
            uuid = note.fields.get("uuid")
            if not uuid:
                logging.debug(f"Project overview without uuid ignored: {note.path}")
                continue
            folder = note.path.parent
            if uuid in projects:
                logging.warning(
                    f"Duplicate project uuid {uuid}: {note.path} shadows {projects[uuid].overview_path}"
                )
            projects[uuid] = ProjectEntry(
                folder_path=str(folder),
                overview_path=str(note.path),
                uuid=uuid,
                name=note.fields.get("project_name"),
                created_at=note.fields.get("created_at"),
                updated_at=note.fields.get("updated_at"),
                obsidized_at=note.fields.get("obsidized_at"),
                documents=list(documents.get(folder, [])),
            )
        return projects


def scan_vault(vault_root: Union[str, Path]) -> VaultIndex:
    """Scan a vault and return its index."""
    return VaultScanner(vault_root).scan()
