"""
Project merger for Notewright.

A project is a folder holding one overview note and numbered document notes.
New documents get the next free ``NNN_`` index; the overview is rewritten
only when documents were added or the project metadata changed. Then its
managed header keys and ``## Project Documents`` section change, plus the
title and description when the metadata changed.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Set, Tuple, Union

from ..exceptions import OverviewParseError
from ..models import Document, DocumentEntry, ImportOptions, ImportProject, ProjectEntry
from ..vault.frontmatter import ParsedNote, current_timestamp, parse_frontmatter
from ..vault.scanner import (
    NOTE_SUFFIX,
    TYPE_PROJECT_DOCUMENT,
    TYPE_PROJECT_OVERVIEW,
    read_note,
)
from .templates import (
    DOCUMENTS_HEADING,
    base_frontmatter,
    document_filename,
    format_document_content,
    format_documents_section,
    format_project_content,
    project_folder_name,
    project_overview_filename,
    timestamp_sort_key,
)
from .writer import MergeOutcome, NoteWrite


WIKILINK_LINE = re.compile(r"^\s*-\s*\[\[([^\]]+)\]\]\s*$")
TAG_LINE = re.compile(r"^#[^\s#]")


@dataclass
class ProjectMergeResult:
    uuid: str
    outcome: MergeOutcome
    folder: Path
    new_documents: int = 0
    metadata_changed: bool = False
    writes: List[NoteWrite] = field(default_factory=list)


@dataclass
class OverviewState:
    """What an existing overview tells us about previously imported documents."""

    note: ParsedNote
    linked: Set[str]
    recovered: List[DocumentEntry]
    highest_index: int
    updated_at: Optional[str]


def _link_target(raw: str) -> str:
    return raw.split("|", 1)[0].strip()


def _section_bounds(lines: List[str]) -> Optional[Tuple[int, int]]:
    """Line range [start, end) of the documents heading and its run of blank/wikilink lines."""
    for start, line in enumerate(lines):
        if line.strip() == DOCUMENTS_HEADING:
            end = start + 1
            while end < len(lines) and (not lines[end].strip() or WIKILINK_LINE.match(lines[end])):
                end += 1
            # Blank lines separating the section from what follows stay in place
            while end > start + 1 and not lines[end - 1].strip():
                end -= 1
            return start, end
    return None


def linked_documents(body: str) -> Set[str]:
    """Filenames linked as ``- [[filename]]`` under the documents heading."""
    lines = body.split("\n")
    bounds = _section_bounds(lines)
    if bounds is None:
        return set()
    start, end = bounds
    linked = set()
    for line in lines[start + 1:end]:
        match = WIKILINK_LINE.match(line)
        if match:
            linked.add(_link_target(match.group(1)))
    return linked


def replace_documents_section(body: str, filenames: List[str]) -> str:
    """
    Replace the documents section of an overview body.

    Everything outside the section is kept as is. A body without the section
    gets it inserted before the first ``##`` heading or tag line after the
    title, or appended at the end. An empty listing adds no
    section to a body that has none.
    """
    lines = body.split("\n")
    bounds = _section_bounds(lines)
    if bounds is None and not filenames:
        return body
    section = format_documents_section(filenames).split("\n")

    if bounds is not None:
        start, end = bounds
        return "\n".join(lines[:start] + section + lines[end:])

    title = next((idx for idx, line in enumerate(lines) if line.startswith("# ")), None)
    if title is not None:
        for idx in range(title + 1, len(lines)):
            if lines[idx].startswith("## ") or TAG_LINE.match(lines[idx]):
                before = lines[:idx]
                if before and before[-1].strip():
                    before.append("")
                return "\n".join(before + section + [""] + lines[idx:])

    trailing = "\n" if body.endswith("\n") or not body else ""
    return body.rstrip("\n") + "\n\n" + "\n".join(section) + trailing


def replace_overview_intro(body: str, name: str, description: Optional[str]) -> str:
    """
    Replace the ``# title`` line and the description paragraph below it.

    The description runs up to the first ``##`` heading or tag line; those
    and everything after them are kept. A body without a title is returned
    unchanged.
    """
    lines = body.split("\n")
    title = next((idx for idx, line in enumerate(lines) if line.startswith("# ")), None)
    if title is None:
        return body
    end = title + 1
    while end < len(lines) and not (lines[end].startswith("## ") or TAG_LINE.match(lines[end])):
        end += 1

    intro = [f"# {name}"]
    text = (description or "").rstrip("\n")
    if text.strip():
        intro += [""] + text.split("\n")
    intro.append("")

    eol = "\r" if lines[title].endswith("\r") else ""
    intro = [line + eol for line in intro]
    if end == len(lines):
        intro[-1] = ""
    return "\n".join(lines[:title] + intro + lines[end:])


def _document_matches(entry: DocumentEntry, linked: Set[str]) -> bool:
    if entry.filename in linked:
        return True
    return entry.filename.endswith(NOTE_SUFFIX) and entry.filename[:-len(NOTE_SUFFIX)] in linked


class ProjectMerger:
    """
    Merges project records into the vault.

    Args:
        vault_root: Vault directory
        options: Per-run options (tags, links, force_full, verbosity)
        clock: Source of the ``obsidized_at`` timestamp
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

    # -- rendering ---------------------------------------------------------

    def _overview_frontmatter(self, project: ImportProject, obsidized_at: str) -> dict:
        frontmatter = base_frontmatter(TYPE_PROJECT_OVERVIEW, self.options.app_version)
        frontmatter.update({
            "uuid": project.uuid,
            "project_name": project.name,
            "created_at": project.created_at,
            "updated_at": project.updated_at,
            "obsidized_at": obsidized_at,
        })
        return frontmatter

    def _document_write(self, folder: Path, project: ImportProject, document: Document,
                        filename: str, obsidized_at: str) -> NoteWrite:
        frontmatter = base_frontmatter(TYPE_PROJECT_DOCUMENT, self.options.app_version)
        frontmatter.update({
            "uuid": document.uuid,
            "project_name": project.name,
            "created_at": document.created_at,
            "obsidized_at": obsidized_at,
        })
        content = format_document_content(frontmatter, document.content, self.options.tags)
        return NoteWrite(folder / filename, content, f"document {document.uuid}")

    # -- folder resolution -------------------------------------------------

    def _overview_owner(self, path: Path) -> Optional[str]:
        try:
            fields = parse_frontmatter(read_note(path)).fields
        except (OSError, UnicodeDecodeError):
            return None
        if fields.get("type") != TYPE_PROJECT_OVERVIEW:
            return None
        return fields.get("uuid")

    def resolve_folder(self, project: ImportProject) -> Path:
        """Folder for a new project, avoiding folders owned by another project."""
        folder = self.vault_root / project_folder_name(project.name)
        if not folder.is_dir():
            return folder

        for path in sorted(folder.glob(f"*{NOTE_SUFFIX}")):
            owner = self._overview_owner(path)
            if owner and owner != project.uuid:
                alternative = folder.with_name(f"{folder.name}-{project.uuid[:8]}")
                logging.warning(
                    f"Folder {folder} already holds project {owner}, using {alternative.name} for {project.uuid}"
                )
                return alternative
        return folder

    # -- merge -------------------------------------------------------------

    def merge(self, project: ImportProject, entry: Optional[ProjectEntry] = None) -> ProjectMergeResult:
        """Merge one project record and return the pending writes."""
        if entry is None:
            return self.create(project, self.resolve_folder(project))

        if self.options.force_full or not Path(entry.overview_path).exists():
            return self.create(project, Path(entry.folder_path))

        return self.update(project, entry)

    def create(self, project: ImportProject, folder: Path) -> ProjectMergeResult:
        """Render a whole project: every document (indices 1..N) and the overview."""
        self._progress(f"Creating project {project.name} in {folder}")
        obsidized_at = self.clock()

        writes: List[NoteWrite] = []
        listing: List[Tuple[str, str]] = []
        for index, document in enumerate(project.documents, start=1):
            filename = document_filename(index, document)
            writes.append(self._document_write(folder, project, document, filename, obsidized_at))
            listing.append((document.created_at, filename))

        overview = format_project_content(
            self._overview_frontmatter(project, obsidized_at),
            project.name,
            project.description,
            self._sorted_filenames(listing),
            self.options.links,
            self.options.tags,
        )
        writes.append(NoteWrite(folder / project_overview_filename(project.name), overview,
                                f"overview {project.uuid}"))

        return ProjectMergeResult(
            uuid=project.uuid,
            outcome=MergeOutcome.CREATED,
            folder=folder,
            new_documents=len(project.documents),
            metadata_changed=True,
            writes=writes,
        )

    def read_overview(self, entry: ProjectEntry) -> OverviewState:
        """
        Parse an existing overview against the folder's document index.

        Raises:
            OverviewParseError: If the overview cannot be read or has no header
        """
        path = Path(entry.overview_path)
        try:
            note = parse_frontmatter(read_note(path))
        except (OSError, UnicodeDecodeError) as e:
            raise OverviewParseError(path, str(e)) from e
        if not note.present:
            raise OverviewParseError(path, "no frontmatter block")

        linked = linked_documents(note.body)
        recovered = [doc for doc in entry.documents if _document_matches(doc, linked)]
        return OverviewState(
            note=note,
            linked=linked,
            recovered=recovered,
            highest_index=entry.highest_index,
            updated_at=note.fields.get("updated_at"),
        )

    def update(self, project: ImportProject, entry: ProjectEntry) -> ProjectMergeResult:
        """Add new documents and refresh the overview of an existing project."""
        folder = Path(entry.folder_path)
        state = self.read_overview(entry)

        known: Set[str] = {doc.uuid for doc in entry.documents if doc.uuid}
        new_documents: List[Document] = []
        for document in project.documents:
            if document.uuid in known:
                continue
            known.add(document.uuid)
            new_documents.append(document)

        metadata_changed = project.updated_at != state.updated_at

        if not new_documents and not metadata_changed:
            self._progress(f"No changes for project {project.name}")
            return ProjectMergeResult(project.uuid, MergeOutcome.UNCHANGED, folder)

        obsidized_at = self.clock()
        writes: List[NoteWrite] = []
        listing: List[Tuple[Optional[str], str]] = [(doc.created_at, doc.filename) for doc in state.recovered]

        next_index = state.highest_index
        for document in new_documents:
            next_index += 1
            filename = document_filename(next_index, document)
            writes.append(self._document_write(folder, project, document, filename, obsidized_at))
            listing.append((document.created_at, filename))

        if new_documents:
            self._progress(f"Adding {len(new_documents)} documents to project {project.name}")
        if metadata_changed:
            self._progress(f"Project metadata changed for {project.name}")

        note = state.note
        note.frontmatter.update(self._overview_frontmatter(project, obsidized_at))
        if metadata_changed:
            note.body = replace_overview_intro(note.body, project.name, project.description)
        note.body = replace_documents_section(note.body, self._sorted_filenames(listing))
        writes.append(NoteWrite(Path(entry.overview_path), note.assemble(), f"overview {project.uuid}"))

        return ProjectMergeResult(
            uuid=project.uuid,
            outcome=MergeOutcome.UPDATED,
            folder=folder,
            new_documents=len(new_documents),
            metadata_changed=metadata_changed,
            writes=writes,
        )

    @staticmethod
    def _sorted_filenames(listing: List[Tuple[Optional[str], str]]) -> List[str]:
        ordered = sorted(listing, key=lambda item: timestamp_sort_key(item[0]))
        return [filename for _, filename in ordered]
