"""
Vault state models for Notewright.

These structures are recovered from note frontmatter at the start of each run
and exist only in memory; the notes themselves are the durable record.
"""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class ConversationEntry(BaseModel):
    """
    A previously imported conversation note found in the vault.
    """

    file_path: str = Field(..., description="Path of the note file")
    uuid: str = Field(..., description="Conversation uuid from frontmatter")
    created_at: Optional[str] = Field(default=None, description="Raw created_at value")
    updated_at: Optional[str] = Field(default=None, description="Raw updated_at value")
    obsidized_at: Optional[str] = Field(default=None, description="Raw import watermark")


class DocumentEntry(BaseModel):
    """
    A project document note co-located with a project overview.
    """

    file_path: str = Field(..., description="Path of the document note")
    filename: str = Field(..., description="File name including the NNN_ prefix")
    uuid: Optional[str] = Field(default=None, description="Document uuid from frontmatter")
    index: int = Field(default=0, description="Numeric prefix of the filename, 0 when absent")
    created_at: Optional[str] = Field(default=None, description="Raw created_at value")


class ProjectEntry(BaseModel):
    """
    A previously imported project: its folder, overview note and documents.
    """

    folder_path: str = Field(..., description="Directory holding the project")
    overview_path: str = Field(..., description="Path of the project-overview note")
    uuid: str = Field(..., description="Project uuid from frontmatter")
    name: Optional[str] = Field(default=None, description="Project name from frontmatter")
    created_at: Optional[str] = Field(default=None, description="Raw created_at value")
    updated_at: Optional[str] = Field(default=None, description="Raw updated_at value")
    obsidized_at: Optional[str] = Field(default=None, description="Raw import watermark")
    documents: List[DocumentEntry] = Field(
        default_factory=list,
        description="All project-document notes in the overview's directory"
    )

    @property
    def highest_index(self) -> int:
        """Largest document index already present in the folder, or 0."""
        return max((doc.index for doc in self.documents), default=0)


class VaultIndex(BaseModel):
    """
    Index of everything previously imported into a vault, keyed by uuid.
    """

    conversations: Dict[str, ConversationEntry] = Field(default_factory=dict)
    projects: Dict[str, ProjectEntry] = Field(default_factory=dict)
    total_files: int = Field(default=0, description="Number of notes with a frontmatter block")
