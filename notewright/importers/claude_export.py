"""
Claude data export importer for Notewright.

Loads ``conversations.json`` and ``projects.json`` from an extracted export
folder or from the ZIP archive (``.zip`` / ``.dms``) the export is delivered
as, and validates every record into ImportConversation / ImportProject
models. Invalid records are dropped and reported as human-readable strings.
"""

import json
import logging
import shutil
import tempfile
import zipfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..exceptions import DataPackError
from ..models import Document, ImportConversation, ImportProject, Message
from ..vault.frontmatter import parse_iso_timestamp
from .base import BaseImporter


CONVERSATIONS_FILE = "conversations.json"
PROJECTS_FILE = "projects.json"
REQUIRED_FILES = (CONVERSATIONS_FILE, PROJECTS_FILE)

DEFAULT_PROJECT_NAME = "Untitled Project"
DEFAULT_DOCUMENT_FILENAME = "document.md"
DEFAULT_DOCUMENT_TIMESTAMP = "1970-01-01T00:00:00Z"

HUMAN_SENDER = "human"
ASSISTANT_SENDER = "assistant"


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _valid_timestamp(value: Any) -> bool:
    return parse_iso_timestamp(value) is not None


def _message_text(message: Dict[str, Any]) -> str:
    """Text of a native export message; falls back to its text content blocks."""
    text = message.get("text")
    if isinstance(text, str) and text.strip():
        return text
    parts = []
    for block in message.get("content") or []:
        if isinstance(block, dict) and block.get("type") == "text" and isinstance(block.get("text"), str):
            parts.append(block["text"])
    return "\n\n".join(parts)


def pair_chat_messages(chat_messages: List[Any]) -> List[Dict[str, Optional[str]]]:
    """
    Pair native ``chat_messages`` into question/answer chats.

    A human message opens a new pair; assistant messages fill in its answer.
    An assistant reply with no preceding question becomes a pair without one.
    """
    chats: List[Dict[str, Optional[str]]] = []
    current: Optional[Dict[str, Optional[str]]] = None

    for message in chat_messages:
        if not isinstance(message, dict):
            continue
        sender = message.get("sender")
        text = _message_text(message)

        if sender == HUMAN_SENDER:
            current = {"q": text, "a": None, "create_time": message.get("created_at")}
            chats.append(current)
        elif sender == ASSISTANT_SENDER:
            if current is None:
                current = {"q": None, "a": None, "create_time": message.get("created_at")}
                chats.append(current)
            current["a"] = f"{current['a']}\n\n{text}" if current["a"] else text
        # Unknown sender types are skipped

    return chats


class ClaudeExportImporter(BaseImporter):
    """
    Importer for Claude data exports.

    Args:
        input_path: Export folder, or a ``.zip`` / ``.dms`` archive

    Raises:
        DataPackError: If the input is missing, cannot be extracted, lacks
            the required JSON files, or holds invalid JSON
    """

    def __init__(self, input_path: Union[str, Path]):
        self.input_path = Path(input_path)
        self.validation_errors: List[str] = []
        self.validation_warnings: List[str] = []
        self._temp_dir: Optional[Path] = None
        self._conversations: Optional[List[ImportConversation]] = None
        self._projects: Optional[List[ImportProject]] = None

        self.data_dir = self._resolve_data_dir()
        missing = [name for name in REQUIRED_FILES if not (self.data_dir / name).is_file()]
        if missing:
            self.close()
            raise DataPackError(f"Missing required files: {', '.join(missing)}")

        logging.info(f"Initialized Claude export importer for: {self.input_path}")

    def _resolve_data_dir(self) -> Path:
        if self.input_path.is_dir():
            return self.input_path
        if not self.input_path.exists():
            raise DataPackError(f"Input not found: {self.input_path}")
        if not zipfile.is_zipfile(self.input_path):
            raise DataPackError(f"Unknown input type: {self.input_path}")
        return self._extract_archive()

    def _extract_archive(self) -> Path:
        self._temp_dir = Path(tempfile.mkdtemp(prefix="notewright-"))
        logging.info(f"Extracting archive {self.input_path} to {self._temp_dir}")
        try:
            with zipfile.ZipFile(self.input_path) as archive:
                archive.extractall(self._temp_dir)
        except (zipfile.BadZipFile, OSError) as e:
            self.close()
            raise DataPackError(f"Failed to extract archive {self.input_path}: {e}") from e

        # Some archives wrap the export in a single top-level folder
        if not (self._temp_dir / CONVERSATIONS_FILE).exists():
            nested = sorted(self._temp_dir.rglob(CONVERSATIONS_FILE))
            if nested:
                return nested[0].parent
        return self._temp_dir

    def close(self) -> None:
        """Remove the temporary extraction directory, if any."""
        if self._temp_dir is not None and self._temp_dir.exists():
            shutil.rmtree(self._temp_dir, ignore_errors=True)
            logging.debug(f"Cleaned up temporary directory: {self._temp_dir}")
        self._temp_dir = None

    def _load_json(self, filename: str) -> List[Any]:
        path = self.data_dir / filename
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DataPackError(f"Failed to parse {path}: {e}") from e
        if isinstance(data, list):
            return data
        return [data]

    def get_conversations(self) -> List[ImportConversation]:
        """
        Load and validate all conversations.

        Returns:
            Valid conversations in file order
        """
        if self._conversations is None:
            raw = self._load_json(CONVERSATIONS_FILE)
            self._conversations = [c for c in (self.validate_conversation(item) for item in raw) if c]
            logging.info(f"Loaded {len(self._conversations)} of {len(raw)} conversations")
        return self._conversations

    def get_projects(self) -> List[ImportProject]:
        """
        Load and validate all projects.

        Returns:
            Valid projects in file order
        """
        if self._projects is None:
            raw = self._load_json(PROJECTS_FILE)
            self._projects = [p for p in (self.validate_project(item) for item in raw) if p]
            logging.info(f"Loaded {len(self._projects)} of {len(raw)} projects")
        return self._projects

    # -- validation --------------------------------------------------------

    def _error(self, message: str) -> None:
        self.validation_errors.append(message)
        logging.warning(message)

    def _warning(self, message: str) -> None:
        self.validation_warnings.append(message)
        logging.debug(message)

    def validate_conversation(self, raw: Any) -> Optional[ImportConversation]:
        """Validate one raw conversation; None when it must be dropped."""
        if not isinstance(raw, dict):
            self._error(f"Conversation entry is not an object: {raw!r:.80}")
            return None

        uuid = raw.get("uuid")
        if _is_blank(uuid):
            self._error("Conversation missing UUID")
            return None
        created_at = raw.get("created_at")
        if not _valid_timestamp(created_at):
            self._error(f"Conversation {uuid}: invalid created_at timestamp {created_at!r}")
            return None

        updated_at = raw.get("updated_at")
        if not _valid_timestamp(updated_at):
            updated_at = created_at

        if "chats" in raw:
            chats = raw.get("chats") or []
        else:
            chats = pair_chat_messages(raw.get("chat_messages") or [])

        messages: List[Message] = []
        for chat in chats:
            if not isinstance(chat, dict):
                continue
            question, answer = chat.get("q"), chat.get("a")
            if _is_blank(question) and _is_blank(answer):
                continue
            create_time = chat.get("create_time")
            messages.append(Message(
                question=question if isinstance(question, str) else None,
                answer=answer if isinstance(answer, str) else None,
                create_time=create_time if _valid_timestamp(create_time) else created_at,
            ))

        if len(messages) < len(chats):
            self._warning(f"Conversation {uuid}: filtered out {len(chats) - len(messages)} invalid chat entries")

        name = raw.get("name")
        return ImportConversation(
            uuid=uuid.strip(),
            name=name.strip() if not _is_blank(name) else None,
            created_at=created_at,
            updated_at=updated_at,
            messages=messages,
        )

    def validate_project(self, raw: Any) -> Optional[ImportProject]:
        """Validate one raw project; None when it must be dropped."""
        if not isinstance(raw, dict):
            self._error(f"Project entry is not an object: {raw!r:.80}")
            return None

        uuid = raw.get("uuid")
        if _is_blank(uuid):
            self._error("Project missing UUID")
            return None
        created_at = raw.get("created_at")
        if not _valid_timestamp(created_at):
            self._error(f"Project {uuid}: invalid created_at timestamp {created_at!r}")
            return None

        updated_at = raw.get("updated_at")
        if not _valid_timestamp(updated_at):
            updated_at = created_at

        raw_docs = raw.get("docs")
        if raw_docs is None:
            raw_docs = raw.get("documents") or []

        documents: List[Document] = []
        for doc in raw_docs:
            if not isinstance(doc, dict) or _is_blank(doc.get("uuid")):
                continue
            filename = doc.get("filename")
            doc_created = doc.get("created_at")
            content = doc.get("content")
            documents.append(Document(
                uuid=doc["uuid"].strip(),
                filename=filename if not _is_blank(filename) else DEFAULT_DOCUMENT_FILENAME,
                content=content if isinstance(content, str) else "",
                created_at=doc_created if _valid_timestamp(doc_created) else DEFAULT_DOCUMENT_TIMESTAMP,
            ))

        if len(documents) < len(raw_docs):
            self._warning(f"Project {uuid}: filtered out {len(raw_docs) - len(documents)} invalid documents")

        name = raw.get("name")
        description = raw.get("description")
        return ImportProject(
            uuid=uuid.strip(),
            name=name if not _is_blank(name) else DEFAULT_PROJECT_NAME,
            description=description if isinstance(description, str) else "",
            created_at=created_at,
            updated_at=updated_at,
            documents=documents,
        )
