"""
Scheduled notification store: the database-backed record of every reminder,
its trigger log and the outbox of deliveries that failed.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from myka.database import utcnow
from myka.errors import NotFoundError, ValidationError
from myka.models.notification_log import NotificationLog, PendingDelivery
from myka.models.scheduled_notification import ScheduledNotification
from myka.services.records import db_session, require_bool
from myka.services.timeparse import require_time

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("time", "title", "body", "type")

# request field -> column
_FIELDS = {
    "time": "time",
    "title": "title",
    "body": "body",
    "type": "type",
    "actions": "actions",
    "enabled": "enabled",
    "snoozeEnabled": "snooze_enabled",
    "snooze_enabled": "snooze_enabled",
    "snoozeDuration": "snooze_duration",
    "snooze_duration": "snooze_duration",
    "recurring": "recurring",
}


def _normalize_actions(actions) -> List[Dict]:
    if actions is None:
        return []
    if not isinstance(actions, list):
        raise ValidationError("actions must be a list")
    normalized = []
    for item in actions:
        if not isinstance(item, dict):
            raise ValidationError("Each action must be an object")
        action_id = item.get("action") or item.get("id")
        if not isinstance(action_id, str) or not action_id.strip():
            raise ValidationError("Each action needs an id")
        normalized.append({
            "action": action_id.strip(),
            "title": item.get("title") or item.get("label") or action_id.strip(),
            "icon": item.get("icon"),
        })
    return normalized


def _clean_fields(fields: dict, partial: bool) -> dict:
    """Map request fields onto columns, validating every value present."""
    if not isinstance(fields, dict):
        raise ValidationError("Malformed notification")
    if not partial:
        missing = [f for f in REQUIRED_FIELDS if fields.get(f) in (None, "")]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    values = {}
    for key, value in fields.items():
        column = _FIELDS.get(key)
        if column is None:
            continue
        if column == "time":
            value = require_time(value)
        elif column in ("title", "body", "type"):
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"{key} must be a non-empty string")
            value = value.strip()
        elif column == "actions":
            value = _normalize_actions(value)
        elif column in ("enabled", "snooze_enabled", "recurring"):
            value = require_bool(value, key)
        elif column == "snooze_duration":
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValidationError("snoozeDuration must be a positive number of minutes")
        values[column] = value
    return values


class ScheduledNotificationStore:
    def __init__(self, session_factory):
        self.session_factory = session_factory

    # --- scheduled notifications -------------------------------------------

    def create(self, user_id: str, fields: dict) -> str:
        values = _clean_fields(fields, partial=False)
        with db_session(self.session_factory) as session:
            record = ScheduledNotification(user_id=user_id, **values)
            session.add(record)
            session.commit()
            logger.info("Created scheduled notification %s for user=%s at %s", record.id, user_id, record.time)
            return record.id

    def get(self, notification_id: str) -> Optional[ScheduledNotification]:
        with db_session(self.session_factory) as session:
            return session.get(ScheduledNotification, notification_id)

    def update(self, notification_id: str, partial: dict) -> ScheduledNotification:
        values = _clean_fields(partial, partial=True)
        with db_session(self.session_factory) as session:
            record = session.get(ScheduledNotification, notification_id)
            if record is None:
                raise NotFoundError("Scheduled notification not found")
            for column, value in values.items():
                setattr(record, column, value)
            record.updated_at = utcnow()
            session.commit()
            return record

    def delete(self, notification_id: str) -> bool:
        """Remove the record. Deleting an absent id is a no-op returning False."""
        with db_session(self.session_factory) as session:
            record = session.get(ScheduledNotification, notification_id)
            if record is None:
                return False
            session.delete(record)
            session.commit()
            logger.info("Deleted scheduled notification %s", notification_id)
            return True

    def list(self, user_id: str) -> List[ScheduledNotification]:
        with db_session(self.session_factory) as session:
            return (
                session.query(ScheduledNotification)
                .filter(ScheduledNotification.user_id == user_id)
                .order_by(ScheduledNotification.time)
                .all()
            )

    def list_all(self) -> List[ScheduledNotification]:
        with db_session(self.session_factory) as session:
            return session.query(ScheduledNotification).all()

    def list_enabled(self) -> List[ScheduledNotification]:
        with db_session(self.session_factory) as session:
            return session.query(ScheduledNotification).filter(ScheduledNotification.enabled.is_(True)).all()

    def delete_for_user(self, user_id: str) -> List[str]:
        with db_session(self.session_factory) as session:
            records = session.query(ScheduledNotification).filter(ScheduledNotification.user_id == user_id).all()
            ids = [r.id for r in records]
            for r in records:
                session.delete(r)
            session.commit()
        logger.info("Deleted %d scheduled notifications for user=%s", len(ids), user_id)
        return ids

    def set_next_trigger(self, notification_id: str, next_trigger: Optional[datetime]) -> None:
        with db_session(self.session_factory) as session:
            record = session.get(ScheduledNotification, notification_id)
            if record is None:
                return
            record.next_trigger = _as_utc(next_trigger)
            session.commit()

    # --- trigger log -------------------------------------------------------

    def log_trigger(self, notification: dict) -> str:
        with db_session(self.session_factory) as session:
            record = session.get(ScheduledNotification, notification["id"])
            if record is not None:
                record.last_triggered = utcnow()
            entry = NotificationLog(
                user_id=notification["userId"],
                notification_id=notification["id"],
                notification_type=notification["type"],
            )
            session.add(entry)
            session.commit()
            return entry.id

    def log_click(self, notification_id: str, action: str, snooze_duration: Optional[int] = None) -> None:
        """Attach the action to the latest trigger of this notification, if any."""
        with db_session(self.session_factory) as session:
            entry = (
                session.query(NotificationLog)
                .filter(NotificationLog.notification_id == notification_id)
                .order_by(NotificationLog.triggered_at.desc())
                .first()
            )
            if entry is None:
                return
            entry.clicked_at = utcnow()
            entry.action = action
            if snooze_duration is not None:
                entry.snoozed = True
                entry.snooze_duration = snooze_duration
            session.commit()

    def list_logs(self, user_id: str, notification_type: Optional[str] = None, limit: int = 50) -> List[NotificationLog]:
        with db_session(self.session_factory) as session:
            query = session.query(NotificationLog).filter(NotificationLog.user_id == user_id)
            if notification_type:
                query = query.filter(NotificationLog.notification_type == notification_type)
            return query.order_by(NotificationLog.triggered_at.desc()).limit(limit).all()

    # --- outbox ------------------------------------------------------------

    def queue_delivery(self, notification: dict, error: str) -> str:
        with db_session(self.session_factory) as session:
            pending = PendingDelivery(
                user_id=notification["userId"],
                notification_id=notification["id"],
                payload=notification,
                error=error[:500],
            )
            session.add(pending)
            session.commit()
            logger.info("Queued notification %s for retry", notification["id"])
            return pending.id

    def list_pending(self, user_id: str) -> List[PendingDelivery]:
        with db_session(self.session_factory) as session:
            return (
                session.query(PendingDelivery)
                .filter(PendingDelivery.user_id == user_id)
                .order_by(PendingDelivery.queued_at)
                .all()
            )

    def remove_pending(self, pending_id: str) -> None:
        with db_session(self.session_factory) as session:
            pending = session.get(PendingDelivery, pending_id)
            if pending is not None:
                session.delete(pending)
                session.commit()


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
