"""
Mock importer for testing Notewright.

This module provides a mock data source with hardcoded records for trying
the pipeline without a real export.
"""

from typing import List

from ..models import Document, ImportConversation, ImportProject, Message
from .base import BaseImporter


class MockImporter(BaseImporter):
    """
    Mock importer that returns hardcoded test data.

    Used for testing the core pipeline without requiring real data sources.
    """

    def __init__(self):
        """Initialize the mock importer with test data."""
        self._conversations = self._create_test_conversations()
        self._projects = self._create_test_projects()

    def get_conversations(self) -> List[ImportConversation]:
        return self._conversations

    def get_projects(self) -> List[ImportProject]:
        return self._projects

    def _create_test_conversations(self) -> List[ImportConversation]:
        """
        Create hardcoded conversations covering named and nameless records.

        Returns:
            List of test conversations
        """
        return [
            ImportConversation(
                uuid="6f1c2a9e-8d4b-4c3a-9f2e-1a2b3c4d5e6f",
                name="Planning the garden beds",
                created_at="2025-08-04T10:30:00Z",
                updated_at="2025-08-05T11:00:00Z",
                messages=[
                    Message(
                        question="Which vegetables grow well together?",
                        answer="Tomatoes, basil and marigolds are classic companions.",
                        create_time="2025-08-04T10:30:00Z",
                    ),
                    Message(
                        question="How far apart should tomato plants be?",
                        answer="Roughly 45 to 60 centimetres between plants.",
                        create_time="2025-08-05T11:00:00Z",
                    ),
                ],
            ),
            ImportConversation(
                uuid="0b7d3e21-5c6f-4a8b-b9d0-e1f2a3b4c5d6",
                created_at="2025-08-06T08:00:00Z",
                updated_at="2025-08-06T08:00:00Z",
                messages=[
                    Message(
                        question="Explain the difference between a list and a tuple in Python",
                        answer="Lists are mutable sequences, tuples are immutable.",
                        create_time="2025-08-06T08:00:00Z",
                    ),
                ],
            ),
        ]

    def _create_test_projects(self) -> List[ImportProject]:
        """
        Create a hardcoded project with two documents.

        Returns:
            List of test projects
        """
        return [
            ImportProject(
                uuid="9a8b7c6d-5e4f-4a3b-8c2d-1e0f9a8b7c6d",
                name="Home Renovation",
                description="Notes and quotes for the kitchen renovation.",
                created_at="2025-07-01T09:00:00Z",
                updated_at="2025-08-01T09:00:00Z",
                documents=[
                    Document(
                        uuid="d1000000-0000-4000-8000-000000000001",
                        filename="Budget.md",
                        content="# Budget\n\n- Cabinets: 4000\n- Worktop: 1500\n",
                        created_at="2025-07-01T09:05:00Z",
                    ),
                    Document(
                        uuid="d1000000-0000-4000-8000-000000000002",
                        filename="Contractors.md",
                        content="# Contractors\n\nThree quotes requested.\n",
                        created_at="2025-07-02T14:00:00Z",
                    ),
                ],
            ),
        ]
