import pytest

from notewright.exceptions import OverviewParseError
from notewright.merging import (
    MergeOutcome,
    NoteWriter,
    ProjectMerger,
    document_filename,
    linked_documents,
    replace_documents_section,
    replace_overview_intro,
)
from notewright.models import Document, ImportOptions, ImportProject, ProjectEntry
from notewright.vault import parse_frontmatter, scan_vault

NOW = "2025-08-06T12:00:00.000Z"


def make_project(documents, updated_at="2025-08-01T00:00:00Z"):
    return ImportProject(
        uuid="proj-1",
        name="Home Renovation",
        description="Kitchen work.",
        created_at="2025-07-01T00:00:00Z",
        updated_at=updated_at,
        documents=documents,
    )


def doc(uuid, filename, created_at, content="content"):
    return Document(uuid=uuid, filename=filename, created_at=created_at, content=content)


INITIAL_DOCS = [
    doc("doc-a", "Budget.md", "2025-07-02T00:00:00Z"),
    doc("doc-b", "notes.txt", "2025-07-01T00:00:00Z"),
    doc("doc-c", None, "2025-07-03T00:00:00Z"),
]


def write_all(result):
    writer = NoteWriter()
    for write in result.writes:
        writer.write(write)


@pytest.fixture
def options():
    return ImportOptions(app_version="0.1.0", tags=["ai"], links=["AI Tools"])


@pytest.fixture
def created_vault(tmp_path, options):
    merger = ProjectMerger(tmp_path, options, clock=lambda: NOW)
    write_all(merger.merge(make_project(INITIAL_DOCS)))
    return tmp_path


def project_entry(vault):
    return scan_vault(vault).projects["proj-1"]


def test_create_writes_documents_and_overview(tmp_path, options):
    merger = ProjectMerger(tmp_path, options, clock=lambda: NOW)

    result = merger.merge(make_project(INITIAL_DOCS))

    assert result.outcome == MergeOutcome.CREATED
    assert result.folder == tmp_path / "Home Renovation"
    assert [w.path.name for w in result.writes] == [
        "001_budget.md", "002_notes.txt.md", "003_doc-3.md", "home-renovation.md",
    ]
    assert result.writes[-1].content == (
        "---\n"
        "uuid: proj-1\n"
        "type: project-overview\n"
        "project_name: Home Renovation\n"
        "created_at: 2025-07-01T00:00:00Z\n"
        "updated_at: 2025-08-01T00:00:00Z\n"
        f"obsidized_at: {NOW}\n"
        "source: claude-export\n"
        "notewright_version: 0.1.0\n"
        "---\n"
        "\n"
        "# Home Renovation\n"
        "\n"
        "Kitchen work.\n"
        "\n"
        "## Project Documents\n"
        "\n"
        "- [[002_notes.txt.md]]\n"
        "- [[001_budget.md]]\n"
        "- [[003_doc-3.md]]\n"
        "\n"
        "## Linked to\n"
        "\n"
        "- [[AI Tools]]\n"
        "\n"
        "#ai\n"
    )
    assert result.writes[0].content == (
        "---\n"
        "uuid: doc-a\n"
        "type: project-document\n"
        "project_name: Home Renovation\n"
        "created_at: 2025-07-02T00:00:00Z\n"
        f"obsidized_at: {NOW}\n"
        "source: claude-export\n"
        "notewright_version: 0.1.0\n"
        "---\n"
        "\n"
        "content\n"
        "\n"
        "#ai"
    )


def test_new_documents_continue_the_numbering(created_vault, options):
    merger = ProjectMerger(created_vault, options, clock=lambda: "2025-08-10T00:00:00.000Z")
    incoming = INITIAL_DOCS + [
        doc("doc-d", "Early.md", "2025-06-30T00:00:00Z"),
        doc("doc-e", "Late.md", "2025-07-10T00:00:00Z"),
    ]

    result = merger.merge(make_project(incoming), project_entry(created_vault))

    assert result.outcome == MergeOutcome.UPDATED
    assert result.new_documents == 2
    assert [w.path.name for w in result.writes] == ["004_early.md", "005_late.md", "home-renovation.md"]

    write_all(result)
    overview = (created_vault / "Home Renovation" / "home-renovation.md").read_text(encoding="utf-8")
    assert linked_documents(parse_frontmatter(overview).body) == {
        "001_budget.md", "002_notes.txt.md", "003_doc-3.md", "004_early.md", "005_late.md",
    }
    section = overview.split("## Project Documents\n\n")[1].split("\n\n")[0]
    assert section.split("\n") == [
        "- [[004_early.md]]",
        "- [[002_notes.txt.md]]",
        "- [[001_budget.md]]",
        "- [[003_doc-3.md]]",
        "- [[005_late.md]]",
    ]


def test_indices_are_never_reused(created_vault, options):
    folder = created_vault / "Home Renovation"
    overview_path = folder / "home-renovation.md"
    # The user unlinks the third document but keeps its file
    overview_path.write_text(
        overview_path.read_text(encoding="utf-8").replace("- [[003_doc-3.md]]\n", ""), encoding="utf-8"
    )
    merger = ProjectMerger(created_vault, options, clock=lambda: NOW)

    # Earlier documents are gone from the import
    result = merger.merge(make_project([doc("doc-f", "Fresh.md", "2025-07-20T00:00:00Z")]),
                          project_entry(created_vault))

    assert [w.path.name for w in result.writes] == ["004_fresh.md", "home-renovation.md"]
    overview = result.writes[-1].content
    assert "003_doc-3.md" not in overview
    assert "- [[004_fresh.md]]" in overview


def test_unchanged_project_writes_nothing(created_vault, options):
    merger = ProjectMerger(created_vault, options, clock=lambda: NOW)

    result = merger.merge(make_project(INITIAL_DOCS), project_entry(created_vault))

    assert result.outcome == MergeOutcome.UNCHANGED
    assert result.writes == []


def test_metadata_change_rewrites_only_the_overview(created_vault, options):
    merger = ProjectMerger(created_vault, options, clock=lambda: "2025-08-20T00:00:00.000Z")

    result = merger.merge(make_project(INITIAL_DOCS, updated_at="2025-08-15T00:00:00Z"),
                          project_entry(created_vault))

    assert result.outcome == MergeOutcome.UPDATED
    assert result.metadata_changed is True
    assert result.new_documents == 0
    assert [w.path.name for w in result.writes] == ["home-renovation.md"]
    fields = parse_frontmatter(result.writes[0].content).fields
    assert fields["updated_at"] == "2025-08-15T00:00:00Z"
    assert fields["obsidized_at"] == "2025-08-20T00:00:00.000Z"


def test_user_edits_to_the_overview_survive(created_vault, options):
    overview_path = created_vault / "Home Renovation" / "home-renovation.md"
    text = overview_path.read_text(encoding="utf-8")
    text = text.replace("source: claude-export\n", "source: claude-export\nrating: 5\n")
    text = text.replace("Kitchen work.\n", "Kitchen work, with my own remarks.\n")
    text += "\n## My notes\n\nCall the electrician.\n"
    overview_path.write_text(text, encoding="utf-8")
    merger = ProjectMerger(created_vault, ImportOptions(app_version="0.1.0"), clock=lambda: NOW)

    result = merger.merge(make_project(INITIAL_DOCS + [doc("doc-d", "New.md", "2025-07-04T00:00:00Z")]),
                          project_entry(created_vault))

    content = result.writes[-1].content
    assert parse_frontmatter(content).fields["rating"] == "5"
    assert "Kitchen work, with my own remarks.\n" in content
    assert "## Linked to\n\n- [[AI Tools]]\n\n#ai\n" in content
    assert content.endswith("## My notes\n\nCall the electrician.\n")
    assert "- [[003_doc-3.md]]\n- [[004_new.md]]\n\n## Linked to" in content


def test_missing_overview_is_recreated(tmp_path, options):
    entry = ProjectEntry(folder_path=str(tmp_path / "Gone"), overview_path=str(tmp_path / "Gone" / "gone.md"),
                         uuid="proj-1")
    merger = ProjectMerger(tmp_path, options, clock=lambda: NOW)

    result = merger.merge(make_project(INITIAL_DOCS), entry)

    assert result.outcome == MergeOutcome.CREATED
    assert result.folder == tmp_path / "Gone"


def test_unreadable_overview_raises(tmp_path, options):
    folder = tmp_path / "Broken"
    folder.mkdir()
    (folder / "broken.md").write_text("no header\n", encoding="utf-8")
    entry = ProjectEntry(folder_path=str(folder), overview_path=str(folder / "broken.md"), uuid="proj-1")
    merger = ProjectMerger(tmp_path, options, clock=lambda: NOW)

    with pytest.raises(OverviewParseError):
        merger.merge(make_project(INITIAL_DOCS), entry)


def test_folder_collision_gets_uuid_suffix(created_vault, options):
    other = ImportProject(uuid="abcdef12-3456", name="Home Renovation", created_at="2025-07-01T00:00:00Z",
                          updated_at="2025-07-01T00:00:00Z")
    merger = ProjectMerger(created_vault, options, clock=lambda: NOW)

    result = merger.merge(other)

    assert result.folder == created_vault / "Home Renovation-abcdef12"


def test_replace_documents_section_inserts_before_next_heading():
    body = "\n# Project\n\nDescription\n\n## Linked to\n\n- [[X]]\n"

    assert replace_documents_section(body, ["001_a.md"]) == (
        "\n# Project\n\nDescription\n\n## Project Documents\n\n- [[001_a.md]]\n\n## Linked to\n\n- [[X]]\n"
    )


def test_replace_documents_section_appends_when_nothing_follows():
    assert replace_documents_section("\n# Project\n", ["001_a.md"]) == (
        "\n# Project\n\n## Project Documents\n\n- [[001_a.md]]\n"
    )


def test_linked_documents_accepts_aliases():
    body = "## Project Documents\n\n- [[001_a.md|Budget]]\n- [[002_b]]\n\nText after\n- [[not-a-doc]]\n"

    assert linked_documents(body) == {"001_a.md", "002_b"}


def test_metadata_change_rewrites_title_and_description(created_vault, options):
    overview_path = created_vault / "Home Renovation" / "home-renovation.md"
    overview_path.write_text(
        overview_path.read_text(encoding="utf-8") + "\n## My notes\n\nCall the electrician.\n", encoding="utf-8"
    )
    merger = ProjectMerger(created_vault, options, clock=lambda: "2025-08-20T00:00:00.000Z")
    renamed = make_project(INITIAL_DOCS, updated_at="2025-08-15T00:00:00Z").model_copy(
        update={"name": "Kitchen Remodel", "description": "New cabinets.\nNew floor."}
    )

    result = merger.merge(renamed, project_entry(created_vault))

    assert [w.path.name for w in result.writes] == ["home-renovation.md"]
    content = result.writes[0].content
    assert "\n# Kitchen Remodel\n\nNew cabinets.\nNew floor.\n\n## Project Documents\n" in content
    assert "# Home Renovation" not in content
    assert "Kitchen work." not in content
    assert "## Linked to\n\n- [[AI Tools]]\n\n#ai\n" in content
    assert content.endswith("## My notes\n\nCall the electrician.\n")
    assert parse_frontmatter(content).fields["project_name"] == "Kitchen Remodel"


def test_metadata_change_without_documents_adds_no_empty_section(tmp_path):
    merger = ProjectMerger(tmp_path, ImportOptions(app_version="0.1.0"), clock=lambda: NOW)
    write_all(merger.merge(make_project([])))

    result = merger.merge(make_project([], updated_at="2025-08-15T00:00:00Z"), project_entry(tmp_path))

    assert result.outcome == MergeOutcome.UPDATED
    content = result.writes[-1].content
    assert "## Project Documents" not in content
    assert content.endswith("---\n\n# Home Renovation\n\nKitchen work.\n")


def test_upper_case_extension_is_found_on_rerun(tmp_path, options):
    merger = ProjectMerger(tmp_path, options, clock=lambda: NOW)
    documents = [doc("doc-r", "README.MD", "2025-07-02T00:00:00Z")]
    created = merger.merge(make_project(documents))
    assert created.writes[0].path.name == "001_readme.md"
    write_all(created)

    result = merger.merge(make_project(documents, updated_at="2025-08-15T00:00:00Z"), project_entry(tmp_path))

    assert result.new_documents == 0
    assert [w.path.name for w in result.writes] == ["home-renovation.md"]
    assert "- [[001_readme.md]]" in result.writes[0].content


def test_document_filename_lowercases_the_extension():
    assert document_filename(2, doc("d", "Notes.Md", "2025-07-01T00:00:00Z")) == "002_notes.md"
    assert document_filename(3, doc("d", "plain.txt", "2025-07-01T00:00:00Z")) == "003_plain.txt.md"


def test_replace_documents_section_with_no_documents_keeps_body():
    body = "\n# Project\n\nDescription\n\n## Linked to\n\n- [[X]]\n"

    assert replace_documents_section(body, []) == body


def test_replace_overview_intro_keeps_following_sections():
    body = "\r\n# Old\r\n\r\nold text\r\n\r\n#ai\r\n"

    assert replace_overview_intro(body, "New", "Fresh text") == "\r\n# New\r\n\r\nFresh text\r\n\r\n#ai\r\n"
    assert replace_overview_intro("\n# Old\n\nold text\n", "New", "") == "\n# New\n"
    assert replace_overview_intro("No title here\n", "New", "Text") == "No title here\n"
