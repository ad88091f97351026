"""
Note writer for Notewright.

The only component that touches the vault for writing. Mergers hand it
pending NoteWrite values; a dry run simply never calls it.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Union

from ..exceptions import NoteWriteError
from ..vault.scanner import read_note


class MergeOutcome(str, Enum):
    CREATED = "created"
    APPENDED = "appended"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SKIPPED_CORRUPTED = "skipped-corrupted"


@dataclass
class NoteWrite:
    """A pending write: full note content for one path."""

    path: Path
    content: str
    description: str = ""


class NoteWriter:
    """
    Writes notes to disk, skipping files whose content is already identical.
    """

    def __init__(self):
        self.files_written = 0
        self.files_unchanged = 0

    def write(self, note: Union[NoteWrite, Path], content: str = None) -> bool:
        """
        Write a note.

        Args:
            note: Pending write, or a path when ``content`` is given
            content: Full note text

        Returns:
            True if the file was written, False if it already had this content

        Raises:
            NoteWriteError: If the file cannot be read back or written
        """
        if isinstance(note, NoteWrite):
            path, content = Path(note.path), note.content
        else:
            path = Path(note)

        try:
            if path.exists() and read_note(path) == content:
                self.files_unchanged += 1
                logging.debug(f"Unchanged, not rewriting: {path}")
                return False

            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8", newline="") as f:
                f.write(content)
        except (OSError, UnicodeDecodeError) as e:
            raise NoteWriteError(path, str(e)) from e

        self.files_written += 1
        logging.debug(f"Wrote {path}")
        return True
