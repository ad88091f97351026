"""
Update planner for Notewright.

Compares the vault index against incoming records and classifies each record
as create-new, update-existing or no-update. The resulting plan is the only
input of both the dry-run preview and the write pass.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Union

from ..models import ConversationEntry, ImportConversation, ImportProject, ProjectEntry, VaultIndex
from .frontmatter import parse_iso_timestamp


class UpdateAction(str, Enum):
    CREATE_NEW = "create-new"
    UPDATE_EXISTING = "update-existing"
    NO_UPDATE = "no-update"


KIND_CONVERSATION = "conversation"
KIND_PROJECT = "project"

Entry = Union[ConversationEntry, ProjectEntry]
Record = Union[ImportConversation, ImportProject]


@dataclass
class PlanItem:
    """One record together with its classification and vault entry."""

    kind: str
    uuid: str
    action: UpdateAction
    record: Record
    entry: Optional[Entry] = None


def _empty_buckets() -> Dict[UpdateAction, List[PlanItem]]:
    return {action: [] for action in UpdateAction}


@dataclass
class UpdatePlan:
    conversations: Dict[UpdateAction, List[PlanItem]] = field(default_factory=_empty_buckets)
    projects: Dict[UpdateAction, List[PlanItem]] = field(default_factory=_empty_buckets)

    @property
    def summary(self) -> Dict[str, Dict[str, int]]:
        """Counts per kind and action, keyed by the action's text value."""
        return {
            "conversations": {action.value: len(self.conversations[action]) for action in UpdateAction},
            "projects": {action.value: len(self.projects[action]) for action in UpdateAction},
        }

    def actionable(self) -> List[PlanItem]:
        """Items that need a merge, conversations first, in plan order."""
        items: List[PlanItem] = []
        for buckets in (self.conversations, self.projects):
            items.extend(buckets[UpdateAction.CREATE_NEW])
            items.extend(buckets[UpdateAction.UPDATE_EXISTING])
        return items


def classify(entry: Optional[Entry], record: Record) -> UpdateAction:
    """
    Decide what a record needs.

    Unparsable timestamps fail open: the record is re-checked by the merger
    rather than silently skipped.
    """
    if entry is None:
        return UpdateAction.CREATE_NEW

    obsidized_at = parse_iso_timestamp(entry.obsidized_at)
    updated_at = parse_iso_timestamp(record.updated_at)
    if obsidized_at is None or updated_at is None:
        return UpdateAction.UPDATE_EXISTING

    if obsidized_at < updated_at:
        return UpdateAction.UPDATE_EXISTING
    return UpdateAction.NO_UPDATE


def plan_updates(
    index: VaultIndex,
    conversations: Iterable[ImportConversation],
    projects: Iterable[ImportProject],
) -> UpdatePlan:
    """Classify every incoming conversation and project against the index."""
    plan = UpdatePlan()

    for conversation in conversations:
        entry = index.conversations.get(conversation.uuid)
        action = classify(entry, conversation)
        plan.conversations[action].append(
            PlanItem(KIND_CONVERSATION, conversation.uuid, action, conversation, entry)
        )

    for project in projects:
        entry = index.projects.get(project.uuid)
        action = classify(entry, project)
        plan.projects[action].append(PlanItem(KIND_PROJECT, project.uuid, action, project, entry))

    return plan


def format_plan_summary(summary: Dict[str, Dict[str, int]]) -> str:
    """Human-readable preview of a plan summary."""
    lines = ["Update plan:"]
    for kind in ("conversations", "projects"):
        counts = summary.get(kind, {})
        lines.append(
            f"  {kind.capitalize()}: {counts.get(UpdateAction.CREATE_NEW.value, 0)} new, "
            f"{counts.get(UpdateAction.UPDATE_EXISTING.value, 0)} updates, "
            f"{counts.get(UpdateAction.NO_UPDATE.value, 0)} unchanged"
        )
    return "\n".join(lines)
