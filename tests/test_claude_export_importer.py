import json
import zipfile

import pytest

from notewright.exceptions import DataPackError
from notewright.importers import ClaudeExportImporter, MockImporter, pair_chat_messages

CONVERSATIONS = [
    {
        "uuid": "11111111-1111-1111-1111-111111111111",
        "name": "Garden Plans",
        "created_at": "2025-08-04T10:00:00Z",
        "updated_at": "not a date",
        "chats": [
            {"q": "Hello", "a": "Hi", "create_time": "2025-08-04T10:00:00Z"},
            {"q": "", "a": "   "},
            {"q": "No time", "a": "Uses the conversation time", "create_time": "bad"},
        ],
    },
    {
        "uuid": "22222222-2222-2222-2222-222222222222",
        "name": "",
        "created_at": "2025-08-05T10:00:00Z",
        "updated_at": "2025-08-05T11:00:00Z",
        "chat_messages": [
            {"sender": "human", "text": "Question one", "created_at": "2025-08-05T10:00:00Z"},
            {"sender": "assistant", "text": "Answer one", "created_at": "2025-08-05T10:00:05Z"},
            {"sender": "human", "text": "", "content": [{"type": "text", "text": "Question two"}],
             "created_at": "2025-08-05T10:30:00Z"},
            {"sender": "assistant", "text": "Answer two", "created_at": "2025-08-05T10:30:05Z"},
        ],
    },
    {"name": "No uuid", "created_at": "2025-08-05T10:00:00Z"},
    {"uuid": "33333333-3333-3333-3333-333333333333", "created_at": "yesterday"},
]

PROJECTS = {
    "uuid": "44444444-4444-4444-4444-444444444444",
    "created_at": "2025-07-01T00:00:00Z",
    "docs": [
        {"uuid": "doc-1", "filename": "", "content": "text", "created_at": "garbage"},
        {"filename": "no-uuid.md"},
    ],
}


@pytest.fixture
def export_dir(tmp_path):
    folder = tmp_path / "export"
    folder.mkdir()
    (folder / "conversations.json").write_text(json.dumps(CONVERSATIONS), encoding="utf-8")
    (folder / "projects.json").write_text(json.dumps(PROJECTS), encoding="utf-8")
    return folder


def test_conversations_are_validated(export_dir):
    importer = ClaudeExportImporter(export_dir)

    conversations = importer.get_conversations()

    assert [c.uuid for c in conversations] == [
        "11111111-1111-1111-1111-111111111111",
        "22222222-2222-2222-2222-222222222222",
    ]
    first = conversations[0]
    assert first.updated_at == first.created_at
    assert [m.question for m in first.messages] == ["Hello", "No time"]
    assert first.messages[1].create_time == "2025-08-04T10:00:00Z"
    assert conversations[1].name is None
    assert len(importer.validation_errors) == 2


def test_native_chat_messages_are_paired(export_dir):
    conversation = ClaudeExportImporter(export_dir).get_conversations()[1]

    assert [(m.question, m.answer) for m in conversation.messages] == [
        ("Question one", "Answer one"),
        ("Question two", "Answer two"),
    ]
    assert conversation.messages[1].create_time == "2025-08-05T10:30:00Z"


def test_pair_chat_messages_without_question():
    chats = pair_chat_messages([
        {"sender": "assistant", "text": "Unprompted"},
        {"sender": "assistant", "text": "More"},
        {"sender": "system", "text": "ignored"},
    ])

    assert chats == [{"q": None, "a": "Unprompted\n\nMore", "create_time": None}]


def test_single_project_object_and_defaults(export_dir):
    importer = ClaudeExportImporter(export_dir)

    projects = importer.get_projects()

    assert len(projects) == 1
    project = projects[0]
    assert project.name == "Untitled Project"
    assert project.updated_at == "2025-07-01T00:00:00Z"
    assert len(project.documents) == 1
    document = project.documents[0]
    assert document.filename == "document.md"
    assert document.created_at == "1970-01-01T00:00:00Z"
    assert importer.validation_warnings


def test_zip_archive_is_extracted_and_cleaned_up(export_dir, tmp_path):
    archive = tmp_path / "data-2025-08-05.dms"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.write(export_dir / "conversations.json", "data/conversations.json")
        zf.write(export_dir / "projects.json", "data/projects.json")

    with ClaudeExportImporter(archive) as importer:
        extracted = importer.data_dir
        assert extracted.exists()
        assert len(importer.get_conversations()) == 2

    assert not extracted.exists()


def test_missing_files_raise(tmp_path):
    (tmp_path / "conversations.json").write_text("[]", encoding="utf-8")

    with pytest.raises(DataPackError, match="projects.json"):
        ClaudeExportImporter(tmp_path)


def test_invalid_json_raises(export_dir):
    (export_dir / "conversations.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(DataPackError, match="Failed to parse"):
        ClaudeExportImporter(export_dir).get_conversations()


def test_unknown_input_raises(tmp_path):
    plain = tmp_path / "notes.txt"
    plain.write_text("hello", encoding="utf-8")

    with pytest.raises(DataPackError, match="Unknown input type"):
        ClaudeExportImporter(plain)
    with pytest.raises(DataPackError, match="Input not found"):
        ClaudeExportImporter(tmp_path / "missing.zip")


def test_mock_importer_returns_valid_records():
    importer = MockImporter()

    assert len(importer.get_conversations()) == 2
    assert importer.get_projects()[0].documents
