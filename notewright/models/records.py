"""
Import record models for Notewright.

This module defines the standardized data structures that every importer
must convert its source data into before reconciliation against the vault.
"""

from typing import List, Optional, Union
from pydantic import BaseModel, Field, field_validator

from .. import __version__


class Message(BaseModel):
    """
    A single question/answer exchange inside a conversation.
    """

    question: Optional[str] = Field(
        default=None,
        description="The text the user sent"
    )

    answer: Optional[str] = Field(
        default=None,
        description="The assistant's reply"
    )

    create_time: Optional[str] = Field(
        default=None,
        description="ISO-8601 timestamp of the question"
    )


class ImportConversation(BaseModel):
    """
    A conversation record from a bulk export.

    Records are transient: they are built fresh on every run by an importer
    and correlated with existing notes through their uuid only.
    """

    uuid: str = Field(
        ...,
        description="Stable identity of the conversation across exports"
    )

    name: Optional[str] = Field(
        default=None,
        description="Conversation title; a title is derived from the first question when missing"
    )

    created_at: str = Field(
        ...,
        description="ISO-8601 creation timestamp"
    )

    updated_at: str = Field(
        ...,
        description="ISO-8601 timestamp of the last change in the export"
    )

    messages: List[Message] = Field(
        default_factory=list,
        description="Messages in export order"
    )


class Document(BaseModel):
    """
    A knowledge document attached to a project.
    """

    uuid: str = Field(..., description="Stable identity of the document")
    filename: Optional[str] = Field(default=None, description="Original filename in the export")
    content: str = Field(default="", description="Verbatim document content")
    created_at: str = Field(..., description="ISO-8601 creation timestamp")


class ImportProject(BaseModel):
    """
    A project record from a bulk export, with its documents in import order.
    """

    uuid: str = Field(..., description="Stable identity of the project")
    name: str = Field(default="Untitled Project", description="Project name")
    description: str = Field(default="", description="Project description")
    created_at: str = Field(..., description="ISO-8601 creation timestamp")
    updated_at: str = Field(..., description="ISO-8601 timestamp of the last change in the export")
    documents: List[Document] = Field(default_factory=list, description="Documents in import order")


def normalize_list_option(value: Union[None, str, List[str]]) -> List[str]:
    """Trim entries and drop blanks from a list or a comma-separated string."""
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = [str(item) for item in value]
    else:
        items = [str(value)]
    return [item.strip() for item in items if item and item.strip()]


class ImportOptions(BaseModel):
    """
    Per-run settings threaded explicitly through the pipeline and mergers.
    """

    dry_run: bool = Field(default=False, description="Compute everything but never write")
    verbose: bool = Field(default=False, description="Log per-item progress at INFO level")
    debug: bool = Field(default=False, description="Enable debug logging")
    force_full: bool = Field(default=False, description="Ignore the existing vault and render every note fresh")
    incremental: bool = Field(default=True, description="Scan the vault and update notes incrementally")
    tags: List[str] = Field(default_factory=list, description="Tags added to every generated note")
    links: List[str] = Field(default_factory=list, description="Wiki links added to every generated note")
    app_version: str = Field(default=__version__, description="Version recorded in note frontmatter")

    @field_validator("tags", "links", mode="before")
    @classmethod
    def _normalize(cls, value):
        return normalize_list_option(value)

    @property
    def scan_vault(self) -> bool:
        """Whether the existing vault should be scanned for prior state."""
        return self.incremental and not self.force_full
