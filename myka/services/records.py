from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, datetime
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError

from myka.config import TIMEZONE
from myka.database import SessionLocal
from myka.errors import AuthorizationError, NetworkError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


@contextmanager
def db_session(session_factory=None):
    """Session whose database failures surface as NetworkError."""
    factory = session_factory or SessionLocal
    try:
        with factory() as session:
            yield session
    except SQLAlchemyError as exc:
        logger.error("Database error: %s", exc)
        raise NetworkError("Data store unavailable") from exc


def get_owned(session, model, record_id: str, user_id: str):
    record = session.get(model, record_id)
    if record is None:
        raise NotFoundError(f"{model.__name__} not found")
    if record.user_id != user_id:
        raise AuthorizationError()
    return record


def today_str() -> str:
    return datetime.now(ZoneInfo(TIMEZONE)).date().isoformat()


def today() -> date:
    return date.fromisoformat(today_str())


def require_text(data: dict, field: str, max_len: int = 1000) -> str:
    value = data.get(field)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Missing required field: {field}")
    if len(value) > max_len:
        raise ValidationError(f"{field} is too long")
    return value.strip()


def require_bool(value, field: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{field} must be a boolean")
    return value


def require_number(value, field: str, positive: bool = True) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field} must be a number")
    if positive and value <= 0:
        raise ValidationError(f"{field} must be positive")
    return value
