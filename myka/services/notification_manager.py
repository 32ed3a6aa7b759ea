from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from myka.errors import AuthorizationError, NetworkError, NotFoundError, PlatformUnsupportedError, ValidationError
from myka.models.scheduled_notification import ScheduledNotification
from myka.services.permissions import PermissionGateway
from myka.services.records import require_bool
from myka.services.reminders import SNOOZE_ACTION, ActionOutcome, NotificationScheduler, resolve_action
from myka.services.notifications import ScheduledNotificationStore
from myka.services.snapshot import NotificationSnapshot

logger = logging.getLogger(__name__)

_SKIP = {"action": "skip", "title": "Skip", "icon": "⏭️"}


def _snooze(minutes: int) -> dict:
    return {"action": "snooze", "title": f"Snooze {minutes}min", "icon": "⏰"}


DEFAULT_NOTIFICATIONS = [
    {
        "time": "06:00",
        "title": "Time to Track Your Progress! ⚖️",
        "body": "Start your day by logging your weight before your first glass of water.",
        "type": "weight-tracking",
        "actions": [{"action": "log-weight", "title": "Log Weight", "icon": "⚖️"}, _SKIP, _snooze(10)],
        "snoozeDuration": 10,
    },
    {
        "time": "06:30",
        "title": "Set Your Top 3 Priorities! 🎯",
        "body": "Review and set your most important goals for today.",
        "type": "priority-review",
        "actions": [{"action": "review-priorities", "title": "Review Priorities", "icon": "🎯"}, _SKIP, _snooze(10)],
        "snoozeDuration": 10,
    },
    {
        "time": "12:00",
        "title": "Log Your Lunch! 🍽️",
        "body": "Keep track of your nutrition by logging what you ate for lunch.",
        "type": "meal-logging",
        "actions": [{"action": "log-meal", "title": "Log Meal", "icon": "🍽️"}, _SKIP, _snooze(15)],
        "snoozeDuration": 15,
    },
    {
        "time": "18:00",
        "title": "Log Your Dinner! 🍽️",
        "body": "Don't forget to log your dinner for complete nutrition tracking.",
        "type": "meal-logging",
        "actions": [{"action": "log-meal", "title": "Log Meal", "icon": "🍽️"}, _SKIP, _snooze(15)],
        "snoozeDuration": 15,
    },
    {
        "time": "21:00",
        "title": "Final Water Check! 💧",
        "body": "Time for your last water intake of the day.",
        "type": "water-reminder",
        "actions": [{"action": "log-water", "title": "Log Water", "icon": "💧"}, _SKIP, _snooze(10)],
        "snoozeDuration": 10,
    },
    {
        "time": "22:00",
        "title": "Reflect on Your Day! 📝",
        "body": "Write down your wins, commitments, and plan for tomorrow.",
        "type": "evening-journal",
        "actions": [{"action": "write-journal", "title": "Write Journal", "icon": "📝"}, _SKIP, _snooze(15)],
        "snoozeDuration": 15,
    },
]

TEST_NOTIFICATIONS = {
    "weight-tracking": ("Track Your Progress! ⚖️", "Don't forget to log your weight today"),
    "water-reminder": ("Stay Hydrated! 💧", "Time to drink some water and stay healthy"),
}


class NotificationManager:
    """Entry point for every scheduled-notification operation.

    Each mutation goes to the store first; the scheduler and the local
    snapshot are then brought in line with the stored record.
    """

    def __init__(
        self,
        store: ScheduledNotificationStore,
        scheduler: NotificationScheduler,
        permissions: PermissionGateway,
        snapshot: NotificationSnapshot,
    ):
        self.store = store
        self.scheduler = scheduler
        self.permissions = permissions
        self.snapshot = snapshot

    def _owned(self, user_id: str, notification_id: str) -> ScheduledNotification:
        record = self.store.get(notification_id)
        if record is None:
            raise NotFoundError("Scheduled notification not found")
        if record.user_id != user_id:
            raise AuthorizationError()
        return record

    def _sync(self, record: ScheduledNotification) -> dict:
        next_trigger = self.scheduler.arm(record.to_dict())
        data = record.to_dict()
        data["nextTrigger"] = next_trigger.isoformat() if next_trigger else None
        try:
            self.snapshot.upsert(data)
        except OSError as e:
            logger.warning("Could not update notification snapshot: %s", e)
        return data

    def list(self, user_id: str) -> List[dict]:
        return [record.to_dict() for record in self.store.list(user_id)]

    def get(self, user_id: str, notification_id: str) -> dict:
        return self._owned(user_id, notification_id).to_dict()

    def create(self, user_id: str, fields: dict) -> dict:
        notification_id = self.store.create(user_id, fields)
        return self._sync(self.store.get(notification_id))

    def update(self, user_id: str, notification_id: str, partial: dict) -> dict:
        self._owned(user_id, notification_id)
        record = self.store.update(notification_id, partial)
        return self._sync(record)

    def toggle(self, user_id: str, notification_id: str, enabled) -> dict:
        return self.update(user_id, notification_id, {"enabled": require_bool(enabled, "enabled")})

    def update_time(self, user_id: str, notification_id: str, time: str) -> dict:
        return self.update(user_id, notification_id, {"time": time})

    def delete(self, user_id: str, notification_id: str) -> None:
        record = self.store.get(notification_id)
        if record is not None and record.user_id != user_id:
            raise AuthorizationError()
        self.store.delete(notification_id)
        self.scheduler.cancel(notification_id)
        self._forget([notification_id])

    def delete_for_user(self, user_id: str) -> int:
        ids = [record.id for record in self.store.list(user_id)]
        self.store.delete_for_user(user_id)
        for notification_id in ids:
            self.scheduler.cancel(notification_id)
        self._forget(ids)
        return len(ids)

    def _forget(self, ids: List[str]) -> None:
        try:
            self.snapshot.remove(ids)
        except OSError as e:
            logger.warning("Could not update notification snapshot: %s", e)

    def snooze(self, user_id: str, notification_id: str) -> datetime:
        self._owned(user_id, notification_id)
        run_at = self.scheduler.snooze(notification_id)
        if run_at is None:
            raise ValidationError("Snooze is disabled for this notification")
        return run_at

    def handle_action(self, user_id: str, notification_id: str, action: Optional[str]) -> ActionOutcome:
        self._owned(user_id, notification_id)
        if action == SNOOZE_ACTION:
            return ActionOutcome(action=action, snoozed_until=self.scheduler.snooze(notification_id))
        self.store.log_click(notification_id, action or "open")
        return ActionOutcome(action=action or "open", navigate_to=resolve_action(action))

    def seed_defaults(self, user_id: str) -> List[str]:
        """Create the default daily reminders unless the user already has some."""
        if self.store.list(user_id):
            return []
        created = []
        try:
            for template in DEFAULT_NOTIFICATIONS:
                created.append(self.create(user_id, dict(template))["id"])
        except Exception:
            logger.error("Seeding defaults failed for user=%s after %d reminders", user_id, len(created))
            self._discard(user_id, created)
            raise
        logger.info("Seeded %d default notifications for user=%s", len(created), user_id)
        return created

    def _discard(self, user_id: str, ids: List[str]) -> None:
        for notification_id in ids:
            try:
                self.delete(user_id, notification_id)
            except NetworkError:
                logger.exception("Could not remove partially seeded notification %s", notification_id)

    def send_test(self, user_id: str, notification_type: Optional[str] = None) -> dict:
        if not self.permissions.is_supported():
            raise PlatformUnsupportedError("Notifications are not supported on this platform")
        title, body = TEST_NOTIFICATIONS.get(
            notification_type or "",
            ("Test Notification", "This is a test notification from your settings."),
        )
        payload = {
            "id": "test",
            "userId": user_id,
            "title": title,
            "body": body,
            "type": notification_type or "custom",
            "actions": [],
        }
        chat_id = self.permissions.chat_for(user_id)
        self.scheduler.platform.show(chat_id, payload)
        return payload

    def pending(self, user_id: str) -> List[dict]:
        return [p.to_dict() for p in self.store.list_pending(user_id)]

    def flush_outbox(self, user_id: str) -> dict:
        """Retry deliveries that previously failed. Only runs when the user asks."""
        delivered, failed = 0, 0
        for pending in self.store.list_pending(user_id):
            try:
                self.scheduler.deliver(pending.payload)
            except (NetworkError, PlatformUnsupportedError, AuthorizationError) as e:
                logger.warning("Retry of notification %s failed: %s", pending.notification_id, e)
                failed += 1
                continue
            self.store.remove_pending(pending.id)
            delivered += 1
        return {"delivered": delivered, "failed": failed}
