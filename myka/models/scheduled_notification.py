from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String

from myka.database import Base, new_id, utcnow


def _iso(value):
    return value.isoformat() if value else None


class ScheduledNotification(Base):
    """A daily reminder: fires at ``time`` (HH:MM, local wall clock)."""

    __tablename__ = "scheduled_notifications"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(64), index=True, nullable=False)
    time = Column(String(5), nullable=False)
    title = Column(String(200), nullable=False)
    body = Column(String(1000), nullable=False)
    type = Column(String(50), nullable=False)
    actions = Column(JSON, default=list, nullable=False)  # [{"action", "title", "icon"}]
    enabled = Column(Boolean, default=True, nullable=False)
    snooze_enabled = Column(Boolean, default=True, nullable=False)
    snooze_duration = Column(Integer, default=10, nullable=False)  # minutes
    recurring = Column(Boolean, default=True, nullable=False)
    last_triggered = Column(DateTime, nullable=True)
    next_trigger = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "time": self.time,
            "title": self.title,
            "body": self.body,
            "type": self.type,
            "actions": list(self.actions or []),
            "enabled": self.enabled,
            "snoozeEnabled": self.snooze_enabled,
            "snoozeDuration": self.snooze_duration,
            "recurring": self.recurring,
            "lastTriggered": _iso(self.last_triggered),
            "nextTrigger": _iso(self.next_trigger),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
