# crud.py
import logging
from typing import Any, Dict, Iterable, List

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import ActionItem, Transcript
from errors import DependencyUnavailable, NotFound
from models import ExtractedItem, HistoryEntry

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 100


def make_preview(text: str, length: int = PREVIEW_LENGTH) -> str:
    if len(text) > length:
        return text[:length] + "..."
    return text


def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Database error while %s: %s", action, exc)
        raise DependencyUnavailable(f"Database error while {action}") from exc


def create_transcript_with_items(db: Session, raw_text: str, items: Iterable[ExtractedItem]) -> Transcript:
    """Insert a transcript and all of its action items in one transaction."""
    transcript = Transcript(
        raw_text=raw_text,
        action_items=[
            ActionItem(
                task_description=item.taskDescription,
                owner=item.owner,
                due_date=item.dueDate,
                is_done=False,
                tags=[],
            )
            for item in items
        ],
    )
    db.add(transcript)
    _commit(db, "creating transcript")
    return transcript


def list_recent_transcripts(db: Session, limit: int = 5) -> List[HistoryEntry]:
    item_count = func.count(ActionItem.id).label("action_item_count")
    rows = (
        db.query(Transcript, item_count)
        .outerjoin(ActionItem, ActionItem.transcript_id == Transcript.id)
        .group_by(Transcript.id)
        .order_by(Transcript.created_at.desc(), Transcript.id.desc())
        .limit(limit)
        .all()
    )
    return [
        HistoryEntry(
            id=transcript.id,
            preview_text=make_preview(transcript.raw_text),
            created_at=transcript.created_at,
            action_item_count=count,
        )
        for transcript, count in rows
    ]


def list_items_for_transcript(db: Session, transcript_id: int) -> List[ActionItem]:
    return (
        db.query(ActionItem)
        .filter(ActionItem.transcript_id == transcript_id)
        .order_by(ActionItem.id.asc())
        .all()
    )


def get_transcript(db: Session, transcript_id: int) -> Transcript:
    transcript = db.get(Transcript, transcript_id)
    if transcript is None:
        raise NotFound("Transcript", transcript_id)
    return transcript


def get_action_item(db: Session, item_id: int) -> ActionItem:
    item = db.get(ActionItem, item_id)
    if item is None:
        raise NotFound("Action item", item_id)
    return item


def update_action_item(db: Session, item_id: int, changes: Dict[str, Any]) -> ActionItem:
    item = get_action_item(db, item_id)
    for field, value in changes.items():
        setattr(item, field, value)
    _commit(db, f"updating action item {item_id}")
    return item


def delete_action_item(db: Session, item_id: int) -> int:
    item = get_action_item(db, item_id)
    db.delete(item)
    _commit(db, f"deleting action item {item_id}")
    return item_id


def delete_transcript(db: Session, transcript_id: int) -> int:
    transcript = get_transcript(db, transcript_id)
    db.delete(transcript)
    _commit(db, f"deleting transcript {transcript_id}")
    return transcript_id
