"""
Note templates and naming rules for Notewright.

Everything that decides how a note looks on disk lives here: frontmatter
templates, message blocks, project sections and filename sanitization.
"""

import re
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from ..models import Document, ImportConversation, Message
from ..vault.frontmatter import parse_iso_timestamp, render


# Application constants
SOURCE_IDENTIFIER = "claude-export"
VERSION_KEY = "notewright_version"

# Default values
DEFAULT_CONVERSATION_TITLE = "Untitled Conversation"
DEFAULT_DATE_PREFIX = "Unknown Date"
DEFAULT_PROJECT_NAME = "untitled-project"
MISSING_QUESTION = "[Missing question]"
MISSING_ANSWER = "[Missing answer]"
MISSING_TIME = "Unknown time"
NO_MESSAGES = "[No messages found]"

USER_LABEL = "Me"
ASSISTANT_LABEL = "Claude"

DOCUMENTS_HEADING = "## Project Documents"
LINKS_HEADING = "## Linked to"

CONVERSATION_KEYS = [
    "uuid", "type", "created_at", "updated_at", "obsidized_at", "source", VERSION_KEY, "tags", "links",
]
PROJECT_OVERVIEW_KEYS = [
    "uuid", "type", "project_name", "created_at", "updated_at", "obsidized_at", "source", VERSION_KEY,
]
PROJECT_DOCUMENT_KEYS = [
    "uuid", "type", "project_name", "created_at", "obsidized_at", "source", VERSION_KEY,
]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-z0-9\-._]")
_UNSAFE_FOLDER_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


def base_frontmatter(note_type: str, app_version: str) -> dict:
    """Frontmatter fields common to every managed note."""
    return {
        "type": note_type,
        "source": SOURCE_IDENTIFIER,
        VERSION_KEY: app_version,
    }


# ---------------------------------------------------------------------------
# Names
# ---------------------------------------------------------------------------

def _sanitize_part(text: str) -> str:
    text = _UNSAFE_FILENAME_CHARS.sub("-", text.lower())
    text = re.sub(r"-+", "-", text)
    return text.strip("-")


def sanitize_filename(filename: str) -> str:
    """Lower-case a filename and collapse unsafe characters to ``-``, keeping the extension."""
    if "." in filename:
        name, extension = filename.rsplit(".", 1)
        return f"{_sanitize_part(name)}.{extension}"
    return _sanitize_part(filename)


def project_folder_name(name: Optional[str]) -> str:
    """Readable directory name for a project."""
    folder = _UNSAFE_FOLDER_CHARS.sub("-", (name or "").strip()).strip(" .")
    return folder or DEFAULT_PROJECT_NAME


def project_overview_filename(name: Optional[str]) -> str:
    sanitized = sanitize_filename(f"{name or ''}.md")
    if sanitized == ".md":
        return f"{DEFAULT_PROJECT_NAME}.md"
    return sanitized


def document_filename(index: int, document: Document) -> str:
    """``NNN_`` prefixed, sanitized filename that always ends in ``.md``."""
    original = sanitize_filename(document.filename.strip()) if document.filename and document.filename.strip() else ""
    if not original or original.startswith("."):
        original = f"doc-{index}.md"
    if original.lower().endswith(".md"):
        original = original[:-3] + ".md"
    else:
        original += ".md"
    return f"{index:03d}_{original}"


def conversation_title(conversation: ImportConversation) -> str:
    """
    Title of a conversation note.

    Nameless conversations are titled with the date of their first message
    followed by the first six words of its question.
    """
    if conversation.name and conversation.name.strip():
        return " ".join(conversation.name.split())

    if not conversation.messages:
        return f"{DEFAULT_DATE_PREFIX} {DEFAULT_CONVERSATION_TITLE}"

    first = conversation.messages[0]
    words = (first.question or "").split()
    first_words = " ".join(words[:6]) if words else DEFAULT_CONVERSATION_TITLE
    create_time = (first.create_time or "").strip()
    date_prefix = create_time.split("T")[0] if create_time else DEFAULT_DATE_PREFIX
    return f"{date_prefix} {first_words}"


def conversation_filename(title: str, uuid: str) -> str:
    return sanitize_filename(f"{title}__{uuid}.md")


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------

def format_timestamp(timestamp: Optional[str]) -> str:
    """Display form of an ISO timestamp: ``2025-08-04T10:30:00.123Z`` -> ``2025-08-04 10:30:00``."""
    if not timestamp or not timestamp.strip():
        return MISSING_TIME
    text = timestamp.strip().replace("T", " ")
    if text.endswith("Z"):
        text = text[:-1]
    return text.split(".")[0]


def timestamp_sort_key(timestamp: Optional[str]) -> Tuple[int, datetime]:
    """Chronological sort key; missing or unparsable timestamps sort first."""
    parsed = parse_iso_timestamp(timestamp)
    if parsed is None:
        return (0, _EPOCH)
    return (1, parsed)


def latest_timestamp(timestamps: Iterable[Optional[str]]) -> Optional[str]:
    """The latest parsable timestamp, as its original text."""
    valid = [ts for ts in timestamps if parse_iso_timestamp(ts) is not None]
    if not valid:
        return None
    return max(valid, key=timestamp_sort_key)


# ---------------------------------------------------------------------------
# Conversation bodies
# ---------------------------------------------------------------------------

def _display_question(message: Message) -> str:
    question = (message.question or "").strip()
    return question or MISSING_QUESTION


def format_message(message: Message) -> str:
    """Two-line question/answer block for one message."""
    answer = (message.answer or "").strip() or MISSING_ANSWER
    return (
        f"**{format_timestamp(message.create_time)} {USER_LABEL}:** {_display_question(message)}\n\n"
        f"**{ASSISTANT_LABEL}:** {answer}\n"
    )


def format_messages(messages: Iterable[Message]) -> str:
    return "\n".join(format_message(message) for message in messages)


def message_signature(message: Message) -> Tuple[str, str]:
    """Dedup key of a message: (create_time, trimmed question)."""
    return ((message.create_time or "").strip(), (message.question or "").strip())


def signature_present(text: str, message: Message) -> bool:
    """Whether the message's question line is already rendered in ``text``."""
    create_time, _ = message_signature(message)
    question = _display_question(message)
    stamps = {format_timestamp(create_time)}
    if create_time:
        stamps.add(create_time)
    lines = (f"**{stamp} {USER_LABEL}:** {question}" for stamp in stamps)
    return any(re.search(re.escape(line) + r"(?:\r?\n|\Z)", text) for line in lines)


def format_conversation_content(frontmatter: dict, title: str, messages: List[Message]) -> str:
    body = format_messages(messages) if messages else NO_MESSAGES
    return f"{render(frontmatter, CONVERSATION_KEYS)}# {title}\n\n{body}"


# ---------------------------------------------------------------------------
# Project bodies
# ---------------------------------------------------------------------------

def _bare_link(link: str) -> str:
    link = link.strip()
    if link.startswith("[[") and link.endswith("]]"):
        link = link[2:-2]
    return link.strip()


def wikilink_list(names: Iterable[str]) -> str:
    return "\n".join(f"- [[{_bare_link(name)}]]" for name in names)


def format_documents_section(filenames: List[str]) -> str:
    if not filenames:
        return DOCUMENTS_HEADING
    return f"{DOCUMENTS_HEADING}\n\n{wikilink_list(filenames)}"


def format_links_section(links: List[str]) -> str:
    if not links:
        return ""
    return f"{LINKS_HEADING}\n\n{wikilink_list(links)}"


def format_tags_line(tags: List[str]) -> str:
    return " ".join(f"#{tag.lstrip('#')}" for tag in tags if tag.lstrip("#"))


def format_frontmatter_links(links: List[str]) -> List[str]:
    return [f'"[[{_bare_link(link)}]]"' for link in links]


def format_project_content(
    frontmatter: dict,
    name: str,
    description: str,
    document_filenames: List[str],
    links: List[str],
    tags: List[str],
) -> str:
    sections = [f"# {name}\n\n{description or ''}".rstrip("\n")]
    if document_filenames:
        sections.append(format_documents_section(document_filenames))
    for extra in (format_links_section(links), format_tags_line(tags)):
        if extra:
            sections.append(extra)
    return render(frontmatter, PROJECT_OVERVIEW_KEYS) + "\n\n".join(sections) + "\n"


def format_document_content(frontmatter: dict, content: str, tags: List[str]) -> str:
    tags_line = format_tags_line(tags)
    suffix = f"\n\n{tags_line}" if tags_line else ""
    return render(frontmatter, PROJECT_DOCUMENT_KEYS) + (content or "") + suffix
