from __future__ import annotations

import logging
from typing import Dict, List, Optional

from myka.database import utcnow
from myka.errors import ValidationError
from myka.models.todo import Todo
from myka.services.records import db_session, get_owned, require_bool, require_text, today_str
from myka.services.timeparse import require_date

logger = logging.getLogger(__name__)


def list_todos(user_id: str, date: Optional[str] = None) -> List[Dict]:
    with db_session() as session:
        query = session.query(Todo).filter(Todo.user_id == user_id)
        if date:
            query = query.filter(Todo.date == require_date(date))
        todos = query.order_by(Todo.created_at.desc()).all()
        return [t.to_dict() for t in todos]


def create_todo(user_id: str, data: dict) -> Dict:
    title = require_text(data, "title", max_len=300)
    date = require_date(data["date"]) if data.get("date") else today_str()
    with db_session() as session:
        todo = Todo(user_id=user_id, title=title, date=date)
        session.add(todo)
        session.commit()
        logger.info("Created todo %s for user=%s", todo.id, user_id)
        return todo.to_dict()


def update_todo(user_id: str, todo_id: str, data: dict) -> Dict:
    if not isinstance(data, dict) or not data:
        raise ValidationError("Nothing to update")
    with db_session() as session:
        todo = get_owned(session, Todo, todo_id, user_id)
        if "title" in data:
            todo.title = require_text(data, "title", max_len=300)
        if "completed" in data:
            todo.completed = require_bool(data["completed"], "completed")
        if "date" in data:
            todo.date = require_date(data["date"])
        todo.updated_at = utcnow()
        session.commit()
        return todo.to_dict()


def delete_todo(user_id: str, todo_id: str) -> None:
    with db_session() as session:
        todo = get_owned(session, Todo, todo_id, user_id)
        session.delete(todo)
        session.commit()


def toggle_todo(user_id: str, todo_id: str) -> Dict:
    with db_session() as session:
        todo = get_owned(session, Todo, todo_id, user_id)
        todo.completed = not todo.completed
        todo.updated_at = utcnow()
        session.commit()
        return todo.to_dict()


def todo_stats(user_id: str, date: str) -> Dict:
    """Completion figures for one day; ``completionRate`` is a percentage."""
    date = require_date(date)
    with db_session() as session:
        todos = session.query(Todo).filter(Todo.user_id == user_id, Todo.date == date).all()

    total = len(todos)
    completed = len([t for t in todos if t.completed])
    rate = (completed / total) * 100 if total else 0
    return {
        "id": f"{user_id}-{date}",
        "userId": user_id,
        "date": date,
        "totalTodos": total,
        "completedTodos": completed,
        "completionRate": round(rate, 2),
    }
