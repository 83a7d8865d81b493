import pytest
from sqlalchemy.exc import OperationalError

import crud
from database import ActionItem, Transcript
from errors import DependencyUnavailable, NotFound
from models import ExtractedItem


def test_create_transcript_with_items_keeps_insertion_order(db, seed) -> None:
    transcript = seed(
        "Alice will send the report by Friday. Bob to review budget.",
        [("Send the report", "Alice", "Friday"), ("Review budget", "Bob", None)],
    )

    assert transcript.id > 0
    assert transcript.created_at is not None
    items = transcript.action_items
    assert [item.task_description for item in items] == ["Send the report", "Review budget"]
    assert [item.owner for item in items] == ["Alice", "Bob"]
    assert [item.due_date for item in items] == ["Friday", None]
    assert all(item.is_done is False and item.tags == [] for item in items)
    assert all(item.transcript_id == transcript.id for item in items)


def test_create_transcript_without_items(db, seed) -> None:
    transcript = seed("Nothing actionable was said today.")
    assert transcript.action_items == []
    assert db.query(Transcript).count() == 1


@pytest.mark.parametrize(
    "text, expected",
    [
        ("short text", "short text"),
        ("x" * 100, "x" * 100),
        ("y" * 101, "y" * 100 + "..."),
    ],
)
def test_make_preview(text, expected) -> None:
    assert crud.make_preview(text) == expected


def test_list_recent_transcripts_newest_first_with_counts(db, seed) -> None:
    for index in range(7):
        seed(f"Transcript number {index} " + "z" * 120, [("task", None, None)] * (index % 3))

    history = crud.list_recent_transcripts(db, limit=5)

    assert len(history) == 5
    assert [entry.preview_text[:20] for entry in history] == [
        f"Transcript number {index} "[:20] for index in (6, 5, 4, 3, 2)
    ]
    assert [entry.action_item_count for entry in history] == [0, 2, 1, 0, 2]
    assert all(entry.preview_text.endswith("...") and len(entry.preview_text) == 103 for entry in history)
    timestamps = [entry.created_at for entry in history]
    assert timestamps == sorted(timestamps, reverse=True)


def test_list_items_for_transcript(db, seed) -> None:
    first = seed("First meeting transcript", [("a", None, None), ("b", None, None)])
    seed("Second meeting transcript", [("c", None, None)])

    items = crud.list_items_for_transcript(db, first.id)

    assert [item.task_description for item in items] == ["a", "b"]
    assert [item.id for item in items] == sorted(item.id for item in items)
    assert crud.list_items_for_transcript(db, 9999) == []


def test_update_action_item_applies_only_supplied_fields(db, seed) -> None:
    transcript = seed("Weekly sync transcript", [("Send the report", "Alice", "Friday")])
    item_id = transcript.action_items[0].id

    updated = crud.update_action_item(db, item_id, {"is_done": True, "tags": ["finance", "q3"]})

    assert updated.is_done is True
    assert updated.tags == ["finance", "q3"]
    assert updated.task_description == "Send the report"
    assert updated.owner == "Alice"
    assert updated.due_date == "Friday"


def test_update_action_item_can_clear_owner(db, seed) -> None:
    transcript = seed("Weekly sync transcript", [("Send the report", "Alice", "Friday")])
    item_id = transcript.action_items[0].id

    updated = crud.update_action_item(db, item_id, {"owner": None})

    assert updated.owner is None


def test_update_missing_item_raises_not_found(db, seed) -> None:
    seed("Weekly sync transcript", [("Send the report", "Alice", "Friday")])

    with pytest.raises(NotFound):
        crud.update_action_item(db, 4242, {"is_done": True})

    assert db.query(ActionItem).filter(ActionItem.is_done.is_(True)).count() == 0


def test_delete_action_item(db, seed) -> None:
    transcript = seed("Weekly sync transcript", [("a", None, None), ("b", None, None)])
    first_id, second_id = (item.id for item in transcript.action_items)

    assert crud.delete_action_item(db, first_id) == first_id

    remaining = crud.list_items_for_transcript(db, transcript.id)
    assert [item.id for item in remaining] == [second_id]


def test_delete_missing_item_raises_not_found(db, seed) -> None:
    seed("Weekly sync transcript", [("a", None, None)])

    with pytest.raises(NotFound):
        crud.delete_action_item(db, 4242)

    assert db.query(ActionItem).count() == 1


def test_delete_transcript_cascades_to_items(db, seed) -> None:
    doomed = seed("Transcript to remove", [("a", None, None), ("b", None, None)])
    kept = seed("Transcript to keep", [("c", None, None)])

    crud.delete_transcript(db, doomed.id)

    assert db.query(Transcript).count() == 1
    assert [item.task_description for item in db.query(ActionItem).all()] == ["c"]
    assert crud.get_transcript(db, kept.id).id == kept.id
    with pytest.raises(NotFound):
        crud.get_transcript(db, doomed.id)


def test_failed_item_insert_leaves_no_partial_transcript(db) -> None:
    items = [
        ExtractedItem(taskDescription="Send the report", owner="Alice", dueDate="Friday"),
        ExtractedItem.model_construct(taskDescription=None, owner=None, dueDate=None),
    ]

    with pytest.raises(DependencyUnavailable):
        crud.create_transcript_with_items(db, "Alice will send the report by Friday.", items)

    assert db.query(Transcript).count() == 0
    assert db.query(ActionItem).count() == 0


def test_failed_update_commit_is_rolled_back(db, seed) -> None:
    transcript = seed("Weekly sync transcript", [("Send the report", "Alice", "Friday")])
    item_id = transcript.action_items[0].id

    with pytest.raises(DependencyUnavailable):
        crud.update_action_item(db, item_id, {"task_description": None, "is_done": True})

    db.expire_all()
    item = db.get(ActionItem, item_id)
    assert item.task_description == "Send the report"
    assert item.is_done is False


def test_failed_delete_commit_is_rolled_back(db, seed, monkeypatch) -> None:
    transcript = seed("Weekly sync transcript", [("a", None, None)])
    item_id = transcript.action_items[0].id

    def failing_commit():
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db, "commit", failing_commit)
    with pytest.raises(DependencyUnavailable):
        crud.delete_action_item(db, item_id)
    monkeypatch.undo()

    db.expire_all()
    assert db.query(ActionItem).count() == 1
    assert db.get(ActionItem, item_id) is not None
