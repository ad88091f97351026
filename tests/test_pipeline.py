from unittest.mock import MagicMock

import pytest

from notewright.exceptions import NoteWriteError
from notewright.importers import MockImporter
from notewright.merging import NoteWrite, NoteWriter
from notewright.models import ImportConversation, ImportOptions, Message
from notewright.pipeline import ImportPipeline, format_run_report

NOW = "2025-08-06T12:00:00.000Z"


def snapshot(root):
    return {str(p.relative_to(root)): p.read_bytes() for p in sorted(root.rglob("*.md"))}


def run_mock(vault, **option_values):
    importer = MockImporter()
    pipeline = ImportPipeline(vault, ImportOptions(**option_values), clock=lambda: NOW)
    return pipeline.run(importer.get_conversations(), importer.get_projects())


def test_writer_skips_identical_content(tmp_path):
    writer = NoteWriter()
    note = NoteWrite(tmp_path / "sub" / "a.md", "hello\n")

    assert writer.write(note) is True
    assert writer.write(note) is False
    assert (tmp_path / "sub" / "a.md").read_text(encoding="utf-8") == "hello\n"
    assert writer.files_written == 1


def test_writer_wraps_os_errors(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")

    with pytest.raises(NoteWriteError) as excinfo:
        NoteWriter().write(NoteWrite(blocker / "a.md", "hello\n"))

    assert isinstance(excinfo.value.__cause__, OSError)


def test_first_run_creates_everything(tmp_path):
    report = run_mock(tmp_path)

    assert report.success
    assert report.outcomes["created"] == 3
    assert report.files_written == 5
    assert report.documents_added == 2
    assert (tmp_path / "Home Renovation" / "001_budget.md").exists()
    assert (tmp_path / "planning-the-garden-beds__6f1c2a9e-8d4b-4c3a-9f2e-1a2b3c4d5e6f.md").exists()


def test_dry_run_writes_nothing(tmp_path):
    vault = tmp_path / "vault"
    writer = MagicMock()
    importer = MockImporter()
    pipeline = ImportPipeline(vault, ImportOptions(dry_run=True), writer=writer, clock=lambda: NOW)

    report = pipeline.run(importer.get_conversations(), importer.get_projects())

    writer.write.assert_not_called()
    assert not vault.exists()
    assert report.dry_run
    assert len(report.writes) == 5
    assert report.files_written == 0
    assert format_run_report(report).startswith("Would write 5 notes")


def test_rerun_is_idempotent(tmp_path):
    run_mock(tmp_path)
    before = snapshot(tmp_path)

    report = run_mock(tmp_path)

    assert report.files_written == 0
    assert report.plan_summary["conversations"]["create-new"] == 0
    assert snapshot(tmp_path) == before


def test_new_messages_are_appended_on_rerun(tmp_path):
    run_mock(tmp_path)
    importer = MockImporter()
    conversations = importer.get_conversations()
    updated = conversations[0].model_copy(update={
        "updated_at": "2025-08-07T09:00:00Z",
        "messages": conversations[0].messages + [
            Message(question="And peppers?", answer="They like the sun too.", create_time="2025-08-07T09:00:00Z"),
        ],
    })

    pipeline = ImportPipeline(tmp_path, ImportOptions(), clock=lambda: "2025-08-08T00:00:00.000Z")
    report = pipeline.run([updated], [])

    assert report.outcomes["appended"] == 1
    assert report.messages_appended == 1
    assert report.files_written == 1


def test_write_failure_propagates(tmp_path):
    writer = MagicMock()
    writer.write.side_effect = NoteWriteError(tmp_path / "x.md", "disk full")
    importer = MockImporter()
    pipeline = ImportPipeline(tmp_path, ImportOptions(), writer=writer, clock=lambda: NOW)

    with pytest.raises(NoteWriteError):
        pipeline.run(importer.get_conversations(), importer.get_projects())


def test_force_full_plans_everything_as_new(tmp_path):
    run_mock(tmp_path)

    report = run_mock(tmp_path, force_full=True)

    assert report.plan_summary["conversations"]["create-new"] == 2
    assert report.plan_summary["projects"]["create-new"] == 1
    # Same input, same clock: nothing differs on disk
    assert report.files_written == 0


def test_unreadable_overview_is_reported_as_failed(tmp_path):
    run_mock(tmp_path)
    overview = tmp_path / "Home Renovation" / "home-renovation.md"
    importer = MockImporter()
    project = importer.get_projects()[0].model_copy(update={"updated_at": "2025-09-01T00:00:00Z"})
    conversation = ImportConversation(uuid="conv-new", created_at="2025-09-01T00:00:00Z",
                                      updated_at="2025-09-01T00:00:00Z")

    pipeline = ImportPipeline(tmp_path, ImportOptions(), clock=lambda: NOW)
    index = pipeline.scan()
    plan = pipeline.plan(index, [conversation], [project])
    overview.write_text("frontmatter removed by hand\n", encoding="utf-8")
    report = pipeline.execute(plan)

    assert not report.success
    assert report.failed[0].uuid == project.uuid
    assert report.outcomes["created"] == 1
