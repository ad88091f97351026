"""
Import pipeline for Notewright.

One run is a single sequential pass: scan the vault, plan every record,
merge the actionable ones and hand their writes to the NoteWriter. A dry run
does everything except the last step.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Union

from .exceptions import OverviewParseError
from .merging import ConversationMerger, MergeOutcome, NoteWrite, NoteWriter, ProjectMerger
from .models import ImportConversation, ImportOptions, ImportProject, VaultIndex
from .vault import UpdatePlan, current_timestamp, plan_updates, scan_vault
from .vault.planner import KIND_CONVERSATION, PlanItem


@dataclass
class FailedItem:
    kind: str
    uuid: str
    message: str


@dataclass
class RunReport:
    """Outcome of one pipeline run."""

    dry_run: bool = False
    plan_summary: Dict[str, Dict[str, int]] = field(default_factory=dict)
    outcomes: Counter = field(default_factory=Counter)
    files_written: int = 0
    messages_appended: int = 0
    documents_added: int = 0
    failed: List[FailedItem] = field(default_factory=list)
    writes: List[NoteWrite] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed


def format_run_report(report: RunReport) -> str:
    """Human-readable summary of a run."""
    verb = "Would write" if report.dry_run else "Wrote"
    count = len(report.writes) if report.dry_run else report.files_written
    lines = [f"{verb} {count} notes"]
    if report.outcomes:
        outcomes = ", ".join(f"{name}: {total}" for name, total in sorted(report.outcomes.items()))
        lines.append(f"  Outcomes: {outcomes}")
    lines.append(f"  Messages appended: {report.messages_appended}")
    lines.append(f"  Documents added: {report.documents_added}")
    for failure in report.failed:
        lines.append(f"  FAILED {failure.kind} {failure.uuid}: {failure.message}")
    return "\n".join(lines)


class ImportPipeline:
    """
    Runs an import against one vault.

    Args:
        vault_root: Vault directory (created on the first write)
        options: Per-run options
        writer: NoteWriter to use; a new one by default
        clock: Source of ``obsidized_at`` timestamps
    """

    def __init__(
        self,
        vault_root: Union[str, Path],
        options: Optional[ImportOptions] = None,
        writer: Optional[NoteWriter] = None,
        clock: Callable[[], str] = current_timestamp,
    ):
        self.vault_root = Path(vault_root)
        self.options = options or ImportOptions()
        self.writer = writer or NoteWriter()
        self.conversation_merger = ConversationMerger(self.vault_root, self.options, clock)
        self.project_merger = ProjectMerger(self.vault_root, self.options, clock)

    def scan(self) -> VaultIndex:
        """Index the vault, or return an empty index when not running incrementally."""
        if not self.options.scan_vault:
            logging.info("Full import requested, existing notes are not scanned")
            return VaultIndex()
        index = scan_vault(self.vault_root)
        logging.info(
            f"Found {len(index.conversations)} conversations and {len(index.projects)} projects "
            f"in {index.total_files} managed notes"
        )
        return index

    def plan(
        self,
        index: VaultIndex,
        conversations: Iterable[ImportConversation],
        projects: Iterable[ImportProject],
    ) -> UpdatePlan:
        return plan_updates(index, conversations, projects)

    def _merge(self, item: PlanItem):
        if item.kind == KIND_CONVERSATION:
            return self.conversation_merger.merge(item.record, item.entry)
        return self.project_merger.merge(item.record, item.entry)

    def execute(self, plan: UpdatePlan) -> RunReport:
        """
        Merge every actionable plan item and write the results.

        Only items the plan enumerates are visited. A note that cannot be read
        marks its item as failed; a note that cannot be written raises
        NoteWriteError and stops the run, keeping notes already written.
        """
        report = RunReport(dry_run=self.options.dry_run, plan_summary=plan.summary)

        for item in plan.actionable():
            try:
                result = self._merge(item)
            except (OverviewParseError, OSError, UnicodeDecodeError) as e:
                logging.error(f"Failed to merge {item.kind} {item.uuid}: {e}")
                report.failed.append(FailedItem(item.kind, item.uuid, str(e)))
                continue

            report.outcomes[result.outcome.value] += 1
            if item.kind == KIND_CONVERSATION:
                if result.outcome == MergeOutcome.APPENDED:
                    report.messages_appended += result.new_messages
            else:
                report.documents_added += result.new_documents

            report.writes.extend(result.writes)
            if self.options.dry_run:
                for write in result.writes:
                    logging.info(f"[dry run] would write {write.path}")
                continue

            for write in result.writes:
                if self.writer.write(write):
                    report.files_written += 1

        return report

    def run(
        self,
        conversations: Iterable[ImportConversation],
        projects: Iterable[ImportProject],
    ) -> RunReport:
        """Scan, plan and execute in one call."""
        conversations = list(conversations)
        projects = list(projects)
        index = self.scan()
        plan = self.plan(index, conversations, projects)
        return self.execute(plan)
