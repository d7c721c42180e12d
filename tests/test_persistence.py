# tests/test_persistence.py

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import pytest

from termtodo.tasks.errors import CorruptDataError, StorageError
from termtodo.tasks.persistence import FORMAT_VERSION, JsonTaskFile, decode_document, encode_store
from termtodo.tasks.task_models import Priority
from termtodo.tasks.task_store import TaskStore

from .fakes import FakeBackend, FixedClock


def _populate(store: TaskStore) -> None:
    trip = store.add_task("Plan trip #travel friday at 2pm !high")
    store.add_subtask(trip, "Book hotel #travel #money")
    visa = store.add_subtask(trip, "Renew visa [low]")
    store.toggle_complete(visa)
    store.add_task("Café with Zoë")


def test_encode_layout(store: TaskStore) -> None:
    _populate(store)
    doc = json.loads(encode_store(store))

    assert doc["version"] == FORMAT_VERSION
    assert doc["next_id"] == 5
    first = doc["tasks"][0]
    assert first["title"] == "Plan trip"
    assert first["priority"] == "high"
    assert first["tags"] == ["travel"]
    assert first["due"] == "2026-10-16T14:00:00+00:00"
    assert [s["title"] for s in first["subtasks"]] == ["Book hotel", "Renew visa"]
    assert first["subtasks"][1]["completed"] is True
    assert doc["tasks"][1]["due"] is None


def test_encoded_text_is_readable_utf8(store: TaskStore) -> None:
    store.add_task("Café with Zoë")
    assert "Café with Zoë" in encode_store(store).decode("utf-8")


def _deep_chain(store: TaskStore) -> None:
    parent = store.add_task("Level 0 #deep")
    for depth in range(1, 6):
        parent = store.add_subtask(parent, f"Level {depth}")
    store.toggle_complete(parent)


def _undated(store: TaskStore) -> None:
    store.add_task("No date here")


def _tags_only(store: TaskStore) -> None:
    store.add_task("Inbox #errands #home #later")


def _ids_retired_by_delete(store: TaskStore) -> None:
    keep = store.add_task("Keep me")
    store.delete(store.add_task("Drop me"))
    store.delete(store.add_task("Drop me too"))
    assert store.next_id > keep + 1


@pytest.mark.parametrize(
    "build",
    [
        pytest.param(lambda store: None, id="empty"),
        pytest.param(_populate, id="mixed"),
        pytest.param(_deep_chain, id="deep-nesting"),
        pytest.param(_undated, id="no-due-date"),
        pytest.param(_tags_only, id="tags-only"),
        pytest.param(_ids_retired_by_delete, id="next-id-above-max"),
    ],
)
def test_round_trip_preserves_the_tree(store: TaskStore, build) -> None:
    build(store)
    snap = store.snapshot()

    doc = decode_document(encode_store(store))

    assert doc.tasks == snap.tasks
    assert tuple(doc.roots) == snap.roots
    assert doc.next_id == snap.next_id


@pytest.mark.parametrize(
    "data",
    [
        b"{not json",
        b"\xff\xfe\x00",
        b'"just a string"',
        b"42",
        b'{"tasks": {}}',
        b"[1, 2]",
        b'[{"id": 1}]',
        b'[{"id": 1, "title": "x", "completed": "yes"}]',
        b'[{"id": 1, "title": "x", "due": "next week"}]',
        b'[{"id": 1, "title": "x", "tags": "work"}]',
        b'[{"id": 1, "title": "x", "subtasks": {}}]',
        b'[{"id": 1, "title": "x", "subtasks": 3}]',
    ],
)
def test_malformed_data_is_corrupt(data: bytes) -> None:
    with pytest.raises(CorruptDataError):
        decode_document(data)


def test_store_refuses_to_open_corrupt_data(now: datetime) -> None:
    with pytest.raises(CorruptDataError):
        TaskStore(FakeBackend(b"garbage"), clock=FixedClock(now))


def test_missing_or_empty_data_gives_empty_store(now: datetime) -> None:
    assert len(TaskStore(FakeBackend(None), clock=FixedClock(now))) == 0
    assert len(TaskStore(FakeBackend(b""), clock=FixedClock(now))) == 0


def test_unknown_fields_and_priorities_are_tolerated() -> None:
    doc = decode_document(b'{"tasks": [{"id": 3, "title": "x", "priority": "blocker", "colour": "red"}]}')
    task = doc.tasks[3]
    assert task.priority is Priority.MEDIUM
    assert doc.next_id == 4


def test_older_record_layout_is_understood() -> None:
    legacy = [
        {
            "id": 1,
            "description": "Write report",
            "completed": False,
            "priority": "High",
            "due_date": "2026-10-20",
            "tags": ["#work"],
            "sub_tasks": [
                {
                    "id": 1,
                    "description": "Outline",
                    "completed": True,
                    "priority": "Low",
                    "due_date": None,
                    "tags": [],
                    "sub_tasks": [],
                }
            ],
        }
    ]

    doc = decode_document(json.dumps(legacy))

    assert doc.roots == [1]
    root = doc.tasks[1]
    assert root.title == "Write report"
    assert root.priority is Priority.HIGH
    assert root.tags == {"work"}
    assert root.due_at is not None
    assert root.due_at.tzinfo is not None
    assert (root.due_at.date().isoformat(), root.due_at.hour, root.due_at.minute) == ("2026-10-20", 23, 59)

    # the duplicated id is replaced, not merged
    assert root.children == [2]
    child = doc.tasks[2]
    assert child.title == "Outline"
    assert child.completed is True
    assert child.priority is Priority.LOW
    assert doc.next_id == 3


def test_missing_ids_are_assigned_after_the_highest() -> None:
    doc = decode_document(b'[{"title": "a"}, {"id": 7, "title": "b"}]')
    assert doc.roots == [8, 7]
    assert doc.next_id == 9


def test_json_file_missing_returns_none(tmp_path: Path) -> None:
    assert JsonTaskFile(tmp_path / "tasks.json").load() is None


def test_json_file_save_and_reload(tmp_path: Path, now: datetime) -> None:
    path = tmp_path / "nested" / "tasks.json"
    store = TaskStore(JsonTaskFile(path), clock=FixedClock(now))
    _populate(store)

    assert path.exists()
    assert not path.with_name("tasks.json.tmp").exists()

    reopened = TaskStore(JsonTaskFile(path), clock=FixedClock(now))
    assert reopened.snapshot() == store.snapshot()


def test_quarantine_moves_file_aside(tmp_path: Path) -> None:
    path = tmp_path / "tasks.json"
    path.write_text("garbage", encoding="utf-8")
    backend = JsonTaskFile(path)

    moved = backend.quarantine(now=datetime(2026, 10, 17, 9, 30, 5))

    assert moved == tmp_path / "tasks.json.corrupt-20261017-093005"
    assert moved.read_text(encoding="utf-8") == "garbage"
    assert not path.exists()
    assert backend.quarantine() is None


def test_null_collections_read_as_empty() -> None:
    doc = decode_document(b'{"tasks": [{"id": 1, "title": "x", "subtasks": null, "tags": null, "due": null}]}')
    assert doc.tasks[1].children == []
    assert doc.tasks[1].tags == set()
    assert doc.tasks[1].due_at is None

    assert decode_document(b'{"tasks": null}').roots == []
    assert decode_document(b'[{"id": 1, "title": "x", "sub_tasks": null}]').tasks[1].children == []


def test_quarantine_failure_raises_storage_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "tasks.json"
    path.write_text("garbage", encoding="utf-8")

    def refuse(src, dst):
        raise PermissionError("read-only file system")

    monkeypatch.setattr("termtodo.tasks.persistence.os.replace", refuse)

    with pytest.raises(StorageError, match="cannot move"):
        JsonTaskFile(path).quarantine()
    assert path.read_text(encoding="utf-8") == "garbage"
