from __future__ import annotations

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, UniqueConstraint

from myka.database import Base, new_id, utcnow


class MorningRoutineConfig(Base):
    __tablename__ = "morning_routines"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(64), unique=True, nullable=False)
    wake_up_time = Column(String(5), nullable=True)  # HH:MM
    enabled = Column(Boolean, default=True, nullable=False)
    tasks = Column(JSON, default=list, nullable=False)
    notification_settings = Column(JSON, default=dict, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "wakeUpTime": self.wake_up_time,
            "enabled": self.enabled,
            "tasks": list(self.tasks or []),
            "notificationSettings": dict(self.notification_settings or {}),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


class DailyProgress(Base):
    __tablename__ = "daily_progress"
    __table_args__ = (UniqueConstraint("user_id", "date"),)

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(64), index=True, nullable=False)
    date = Column(String(10), nullable=False)
    completed_tasks = Column(JSON, default=list, nullable=False)
    water_goal = Column(Integer, default=2000, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)
