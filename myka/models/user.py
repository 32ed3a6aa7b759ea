# myka/models/user.py
from sqlalchemy import BigInteger, Column, DateTime, String

from myka.database import Base, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True)  # JWT subject
    telegram_chat_id = Column(BigInteger, unique=True, index=True, nullable=True)
    name = Column(String, nullable=True)
    language = Column(String, default="en")
    notification_permission = Column(String(10), default="default", nullable=False)  # granted/denied/default
    link_code = Column(String(32), unique=True, nullable=True)
    link_code_expires = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)
