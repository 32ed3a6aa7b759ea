"""
Top-3 priorities per day. Each date holds at most one priority of each
rank (1, 2, 3).
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from myka.database import utcnow
from myka.errors import ValidationError
from myka.models.priority import Priority
from myka.services.records import db_session, get_owned, require_bool, require_text, today_str
from myka.services.timeparse import require_date

logger = logging.getLogger(__name__)

RANKS = (1, 2, 3)


def _require_rank(value) -> int:
    if isinstance(value, bool) or value not in RANKS:
        raise ValidationError("priority must be 1, 2 or 3")
    return value


def _ensure_free(session, user_id: str, date: str, rank: int, exclude_id: Optional[str] = None) -> None:
    query = session.query(Priority).filter(
        Priority.user_id == user_id, Priority.date == date, Priority.priority == rank
    )
    if exclude_id:
        query = query.filter(Priority.id != exclude_id)
    if query.first() is not None:
        raise ValidationError(f"Priority {rank} already exists for this date")


def list_priorities(
    user_id: str,
    date: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> List[Dict]:
    with db_session() as session:
        query = session.query(Priority).filter(Priority.user_id == user_id)
        if start_date or end_date:
            if not (start_date and end_date):
                raise ValidationError("startDate and endDate must be given together")
            query = query.filter(
                Priority.date >= require_date(start_date, "startDate"),
                Priority.date <= require_date(end_date, "endDate"),
            )
        else:
            query = query.filter(Priority.date == (require_date(date) if date else today_str()))
        rows = query.order_by(Priority.date, Priority.priority).all()
        return [p.to_dict() for p in rows]


def create_priority(user_id: str, data: dict) -> Dict:
    title = require_text(data, "title", max_len=300)
    rank = _require_rank(data.get("priority"))
    date = require_date(data["date"]) if data.get("date") else today_str()
    description = data.get("description")
    if description is not None and not isinstance(description, str):
        raise ValidationError("description must be a string")

    with db_session() as session:
        _ensure_free(session, user_id, date, rank)
        priority = Priority(user_id=user_id, title=title, description=description, priority=rank, date=date)
        session.add(priority)
        session.commit()
        logger.info("Created priority %s (rank %d) for user=%s on %s", priority.id, rank, user_id, date)
        return priority.to_dict()


def update_priority(user_id: str, priority_id: str, data: dict) -> Dict:
    if not isinstance(data, dict) or not data:
        raise ValidationError("Nothing to update")
    with db_session() as session:
        priority = get_owned(session, Priority, priority_id, user_id)
        if "title" in data:
            priority.title = require_text(data, "title", max_len=300)
        if "description" in data:
            if data["description"] is not None and not isinstance(data["description"], str):
                raise ValidationError("description must be a string")
            priority.description = data["description"]
        if "completed" in data:
            priority.completed = require_bool(data["completed"], "completed")
        if "date" in data:
            priority.date = require_date(data["date"])
        if "priority" in data:
            priority.priority = _require_rank(data["priority"])
        if "date" in data or "priority" in data:
            _ensure_free(session, user_id, priority.date, priority.priority, exclude_id=priority.id)
        priority.updated_at = utcnow()
        session.commit()
        return priority.to_dict()


def delete_priority(user_id: str, priority_id: str) -> None:
    with db_session() as session:
        session.delete(get_owned(session, Priority, priority_id, user_id))
        session.commit()


def toggle_priority(user_id: str, priority_id: str) -> Dict:
    with db_session() as session:
        priority = get_owned(session, Priority, priority_id, user_id)
        priority.completed = not priority.completed
        priority.updated_at = utcnow()
        session.commit()
        return priority.to_dict()
