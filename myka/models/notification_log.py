from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String

from myka.database import Base, new_id, utcnow


class NotificationLog(Base):
    __tablename__ = "notification_logs"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(64), index=True, nullable=False)
    notification_id = Column(String(36), index=True, nullable=False)
    notification_type = Column(String(50), nullable=False)
    triggered_at = Column(DateTime, default=utcnow, nullable=False)
    clicked_at = Column(DateTime, nullable=True)
    action = Column(String(50))  # log-weight, skip, snooze, ...
    snoozed = Column(Boolean, default=False)
    snooze_duration = Column(Integer, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "notificationId": self.notification_id,
            "type": self.notification_type,
            "triggeredAt": self.triggered_at.isoformat() if self.triggered_at else None,
            "clickedAt": self.clicked_at.isoformat() if self.clicked_at else None,
            "actionTaken": self.action,
            "snoozed": bool(self.snoozed),
            "snoozeDuration": self.snooze_duration,
        }


class PendingDelivery(Base):
    """A reminder whose display failed; kept until the user retries."""

    __tablename__ = "pending_deliveries"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(64), index=True, nullable=False)
    notification_id = Column(String(36), nullable=False)
    payload = Column(JSON, nullable=False)
    error = Column(String(500), nullable=True)
    queued_at = Column(DateTime, default=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "notificationId": self.notification_id,
            "title": self.payload.get("title"),
            "error": self.error,
            "queuedAt": self.queued_at.isoformat() if self.queued_at else None,
        }
