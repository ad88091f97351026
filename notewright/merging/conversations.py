"""
Conversation merger for Notewright.

Turns a conversation record into a note write: a fresh note when none exists,
an append of the new messages when the note is behind, or nothing at all.
Existing text is never rewritten apart from the ``updated_at`` and
``obsidized_at`` header values.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Union

from ..models import ConversationEntry, ImportConversation, ImportOptions, Message
from ..vault.frontmatter import current_timestamp, parse_frontmatter, parse_iso_timestamp, substitute_fields
from ..vault.scanner import TYPE_CONVERSATION, read_note
from .templates import (
    base_frontmatter,
    conversation_filename,
    conversation_title,
    format_conversation_content,
    format_frontmatter_links,
    format_messages,
    latest_timestamp,
    message_signature,
    signature_present,
    timestamp_sort_key,
)
from .writer import MergeOutcome, NoteWrite


@dataclass
class ConversationMergeResult:
    uuid: str
    outcome: MergeOutcome
    path: Path
    new_messages: int = 0
    writes: List[NoteWrite] = field(default_factory=list)


def sort_messages(messages: List[Message]) -> List[Message]:
    """Messages in ascending create_time order; undated messages first."""
    return sorted(messages, key=lambda message: timestamp_sort_key(message.create_time))


class ConversationMerger:
    """
    Merges conversation records into the vault.

    Nothing is written here: every result carries the NoteWrite values the
    caller should hand to a NoteWriter.
    """

    def __init__(
        self,
        vault_root: Union[str, Path],
        options: Optional[ImportOptions] = None,
        clock: Callable[[], str] = current_timestamp,
    ):
        self.vault_root = Path(vault_root)
        self.options = options or ImportOptions()
        self.clock = clock

    def _progress(self, message: str) -> None:
        if self.options.verbose:
            logging.info(message)
        else:
            logging.debug(message)

    def target_path(self, conversation: ImportConversation, entry: Optional[ConversationEntry] = None) -> Path:
        """Existing note path from the index, else the generated filename under the vault root."""
        if entry is not None and not self.options.force_full:
            return Path(entry.file_path)
        title = conversation_title(conversation)
        return self.vault_root / conversation_filename(title, conversation.uuid)

    def render_new_note(self, conversation: ImportConversation) -> str:
        """Full text of a freshly created conversation note."""
        messages = sort_messages(conversation.messages)
        obsidized_at = latest_timestamp(m.create_time for m in messages) or self.clock()

        frontmatter = base_frontmatter(TYPE_CONVERSATION, self.options.app_version)
        frontmatter.update({
            "uuid": conversation.uuid,
            "created_at": conversation.created_at,
            "updated_at": conversation.updated_at,
            "obsidized_at": obsidized_at,
        })
        if self.options.tags:
            frontmatter["tags"] = self.options.tags
        if self.options.links:
            frontmatter["links"] = format_frontmatter_links(self.options.links)

        return format_conversation_content(frontmatter, conversation_title(conversation), messages)

    def new_messages(self, conversation: ImportConversation, text: str) -> Optional[List[Message]]:
        """
        Messages of the record that the note does not reflect yet.

        Args:
            conversation: Incoming record
            text: Current note text

        Returns:
            Candidate messages in ascending order, or None when the note has
            no usable ``obsidized_at`` watermark
        """
        parsed = parse_frontmatter(text)
        watermark = parse_iso_timestamp(parsed.fields.get("obsidized_at"))
        if watermark is None:
            return None

        candidates: List[Message] = []
        seen = set()
        for message in sort_messages(conversation.messages):
            created = parse_iso_timestamp(message.create_time)
            if created is None or created <= watermark:
                continue
            signature = message_signature(message)
            if signature in seen or signature_present(text, message):
                continue
            seen.add(signature)
            candidates.append(message)
        return candidates

    def merge(self, conversation: ImportConversation, entry: Optional[ConversationEntry] = None) -> ConversationMergeResult:
        """Merge one conversation record and return the pending writes."""
        path = self.target_path(conversation, entry)

        if self.options.force_full or not path.exists():
            self._progress(f"Creating conversation note {path.name}")
            content = self.render_new_note(conversation)
            return ConversationMergeResult(
                uuid=conversation.uuid,
                outcome=MergeOutcome.CREATED,
                path=path,
                new_messages=len(conversation.messages),
                writes=[NoteWrite(path, content, f"create conversation {conversation.uuid}")],
            )

        return self.merge_existing(conversation, path, read_note(path))

    def merge_existing(self, conversation: ImportConversation, path: Path, text: str) -> ConversationMergeResult:
        """Append the record's new messages to an existing note's text."""
        candidates = self.new_messages(conversation, text)

        if candidates is None:
            logging.warning(
                f"Skipping {path}: missing or unparsable obsidized_at, the note is left untouched"
            )
            return ConversationMergeResult(conversation.uuid, MergeOutcome.SKIPPED_CORRUPTED, path)

        if not candidates:
            self._progress(f"No new messages for {path.name}")
            return ConversationMergeResult(conversation.uuid, MergeOutcome.UNCHANGED, path)

        self._progress(f"Appending {len(candidates)} new messages to {path.name}")
        updated = substitute_fields(text, {
            "updated_at": conversation.updated_at,
            "obsidized_at": self.clock(),
        })
        separator = "\n" if updated.endswith("\n") else "\n\n"
        content = updated + separator + format_messages(candidates)

        return ConversationMergeResult(
            uuid=conversation.uuid,
            outcome=MergeOutcome.APPENDED,
            path=path,
            new_messages=len(candidates),
            writes=[NoteWrite(path, content, f"append {len(candidates)} messages to {conversation.uuid}")],
        )
