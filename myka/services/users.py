from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from typing import Optional

from myka.database import utcnow
from myka.errors import NotFoundError
from myka.models.user import User
from myka.services.records import db_session

logger = logging.getLogger(__name__)

LINK_CODE_TTL = timedelta(minutes=15)


def ensure_user(session_factory, user_id: str) -> User:
    """Return the user row for ``user_id``, creating it on first sight."""
    with db_session(session_factory) as session:
        user = session.get(User, user_id)
        if user is None:
            user = User(id=user_id)
            session.add(user)
            session.commit()
            logger.info("Registered user %s", user_id)
        return user


def create_link_code(session_factory, user_id: str) -> str:
    """One-time code carried in the bot's /start deep link."""
    ensure_user(session_factory, user_id)
    code = secrets.token_urlsafe(16)
    with db_session(session_factory) as session:
        user = session.get(User, user_id)
        user.link_code = code
        user.link_code_expires = utcnow() + LINK_CODE_TTL
        session.commit()
    return code


def consume_link_code(session_factory, code: str, chat_id: int, name: Optional[str] = None) -> str:
    """Attach ``chat_id`` to the account owning ``code``; returns the user id."""
    with db_session(session_factory) as session:
        user = session.query(User).filter(User.link_code == code).first()
        if user is None or user.link_code_expires is None or user.link_code_expires < utcnow():
            raise NotFoundError("Link code is invalid or expired")
        # a chat belongs to one account at a time
        for other in session.query(User).filter(User.telegram_chat_id == chat_id, User.id != user.id).all():
            other.telegram_chat_id = None
        session.flush()
        user.telegram_chat_id = chat_id
        user.link_code = None
        user.link_code_expires = None
        if name:
            user.name = name
        session.commit()
        logger.info("Linked telegram chat %s to user %s", chat_id, user.id)
        return user.id


def find_user_by_chat(session_factory, chat_id: int) -> Optional[User]:
    with db_session(session_factory) as session:
        return session.query(User).filter(User.telegram_chat_id == chat_id).first()
