"""
Base importer interface for Notewright.

This module defines the abstract interface that all data importers must implement.
"""

from abc import ABC, abstractmethod
from typing import List

from ..models import ImportConversation, ImportProject


class BaseImporter(ABC):
    """
    Abstract base class for all data importers.

    Each importer converts an export from a specific source into validated
    ImportConversation and ImportProject records.
    """

    @abstractmethod
    def get_conversations(self) -> List[ImportConversation]:
        """
        Retrieve all valid conversations from the data source.

        Returns:
            List of ImportConversation records in source order
        """
        pass

    @abstractmethod
    def get_projects(self) -> List[ImportProject]:
        """
        Retrieve all valid projects from the data source.

        Returns:
            List of ImportProject records with documents in source order
        """
        pass

    def close(self) -> None:
        """Release any resources held by the importer."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
