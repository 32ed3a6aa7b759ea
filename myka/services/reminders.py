from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Dict, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.triggers.date import DateTrigger

from myka.errors import AuthorizationError, NetworkError, NotFoundError, PlatformUnsupportedError
from myka.services.delivery import GRANTED, NotificationPlatform
from myka.services.notifications import ScheduledNotificationStore
from myka.services.permissions import PermissionGateway
from myka.services.snapshot import NotificationSnapshot
from myka.services.timeparse import next_occurrence

logger = logging.getLogger(__name__)

SNOOZE_ACTION = "snooze"
SKIP_ACTION = "skip"

ACTION_ROUTES = {
    "log-weight": "/dashboard/weight",
    "review-priorities": "/dashboard/priorities",
    "log-meal": "/dashboard/meals",
    "log-water": "/dashboard/water",
    "drink-water": "/dashboard/water",
    "write-journal": "/dashboard/journal",
}
DEFAULT_ROUTE = "/dashboard/morning-routine"


class NotificationState(str, Enum):
    UNARMED = "unarmed"
    ARMED = "armed"
    FIRED = "fired"
    SNOOZED = "snoozed"


@dataclass
class ActionOutcome:
    action: str
    navigate_to: Optional[str] = None
    snoozed_until: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "action": self.action,
            "navigateTo": self.navigate_to,
            "snoozedUntil": self.snoozed_until.isoformat() if self.snoozed_until else None,
        }


def resolve_action(action: Optional[str]) -> Optional[str]:
    """Navigation target for a notification action; None for snooze and skip."""
    if action in (SNOOZE_ACTION, SKIP_ACTION):
        return None
    return ACTION_ROUTES.get(action or "", DEFAULT_ROUTE)


class NotificationScheduler:
    """Arms one APScheduler job per enabled scheduled notification.

    Timers live in memory only, so ``rearm_all`` must run on every startup.
    Each notification id owns at most one job; arming always removes the
    previous job for that id before adding the new one.
    """

    def __init__(
        self,
        scheduler,
        store: ScheduledNotificationStore,
        platform: NotificationPlatform,
        permissions: PermissionGateway,
        snapshot: NotificationSnapshot,
        timezone,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.scheduler = scheduler
        self.store = store
        self.platform = platform
        self.permissions = permissions
        self.snapshot = snapshot
        self.timezone = timezone
        self.clock = clock or (lambda: datetime.now(self.timezone))
        self._lock = threading.RLock()
        self._jobs: Dict[str, str] = {}
        self._states: Dict[str, NotificationState] = {}

    def now(self) -> datetime:
        return self.clock()

    def next_fire_time(self, hhmm: str, now: Optional[datetime] = None) -> datetime:
        return next_occurrence(hhmm, now or self.now())

    def state(self, notification_id: str) -> NotificationState:
        return self._states.get(notification_id, NotificationState.UNARMED)

    def current_job(self, notification_id: str) -> Optional[str]:
        return self._jobs.get(notification_id)

    def armed_at(self, notification_id: str) -> Optional[datetime]:
        job_id = self._jobs.get(notification_id)
        job = self.scheduler.get_job(job_id) if job_id else None
        return job.next_run_time if job else None

    def pending_jobs(self, notification_id: str) -> int:
        prefix = f"notification:{notification_id}:"
        return len([job for job in self.scheduler.get_jobs() if job.id.startswith(prefix)])

    # --- timers ------------------------------------------------------------

    def _set_timer(self, notification_id: str, run_at: datetime, state: NotificationState) -> None:
        with self._lock:
            self._remove_job(notification_id)
            job_id = f"notification:{notification_id}:{uuid.uuid4().hex[:8]}"
            self.scheduler.add_job(
                self.fire,
                trigger=DateTrigger(run_date=run_at),
                id=job_id,
                kwargs={"notification_id": notification_id, "job_id": job_id},
            )
            self._jobs[notification_id] = job_id
            self._states[notification_id] = state

    def _remove_job(self, notification_id: str) -> None:
        job_id = self._jobs.pop(notification_id, None)
        if job_id is None:
            return
        try:
            self.scheduler.remove_job(job_id)
        except JobLookupError:
            pass  # already ran

    def arm(self, notification: dict) -> Optional[datetime]:
        """(Re)arm for the next occurrence of its time; disabled ones are cancelled."""
        notification_id = notification["id"]
        if not notification.get("enabled"):
            self.cancel(notification_id)
            return None
        run_at = self.next_fire_time(notification["time"])
        self._set_timer(notification_id, run_at, NotificationState.ARMED)
        self._record_next_trigger(notification_id, run_at)
        logger.info("Notification %s (%s) armed for %s", notification_id, notification.get("title"), run_at.isoformat())
        return run_at

    def cancel(self, notification_id: str) -> None:
        with self._lock:
            self._remove_job(notification_id)
            self._states[notification_id] = NotificationState.UNARMED
        logger.info("Notification %s cancelled", notification_id)

    def snooze(self, notification_id: str) -> Optional[datetime]:
        record = self.store.get(notification_id)
        if record is None:
            raise NotFoundError("Scheduled notification not found")
        if not record.snooze_enabled:
            logger.info("Snooze disabled for notification %s", notification_id)
            return None
        run_at = self.now() + timedelta(minutes=record.snooze_duration)
        self._set_timer(notification_id, run_at, NotificationState.SNOOZED)
        self._record_next_trigger(notification_id, run_at)
        self.store.log_click(notification_id, SNOOZE_ACTION, snooze_duration=record.snooze_duration)
        logger.info("Notification %s snoozed for %d minutes", notification_id, record.snooze_duration)
        return run_at

    def _record_next_trigger(self, notification_id: str, run_at: Optional[datetime]) -> None:
        try:
            self.store.set_next_trigger(notification_id, run_at)
        except NetworkError as e:
            logger.warning("Could not record next trigger for %s: %s", notification_id, e)

    # --- firing ------------------------------------------------------------

    def fire(self, notification_id: str, job_id: Optional[str] = None) -> None:
        """Timer callback: display, then re-arm (recurring) or go unarmed.

        A callback whose job was replaced before it ran does nothing.
        """
        with self._lock:
            current = self._jobs.get(notification_id)
            if job_id is not None and current != job_id:
                logger.info("Ignoring stale timer %s for notification %s", job_id, notification_id)
                return
            if current is not None:
                self._remove_job(notification_id)
            self._states[notification_id] = NotificationState.FIRED

        try:
            record = self.store.get(notification_id)
            notification = record.to_dict() if record else None
        except NetworkError as e:
            logger.warning("Store unavailable while firing %s, using snapshot: %s", notification_id, e)
            notification = self.snapshot.get(notification_id)

        if notification is None or not notification.get("enabled"):
            self.cancel(notification_id)
            return

        self.display(notification)

        if notification.get("recurring", True):
            self.arm(notification)
        else:
            with self._lock:
                self._states[notification_id] = NotificationState.UNARMED
            self._record_next_trigger(notification_id, None)

    def display(self, notification: dict) -> bool:
        """Show a fired reminder. Failures are logged, never raised."""
        user_id = notification["userId"]
        if not self.permissions.is_supported():
            logger.info("Notifications unsupported, skipping %s", notification["id"])
            return False
        try:
            if self.permissions.get_permission_status(user_id) != GRANTED:
                logger.info("Permission not granted for user=%s, skipping %s", user_id, notification["id"])
                return False
            self.deliver(notification)
            return True
        except AuthorizationError:
            logger.warning("User %s blocked notifications, revoking permission", user_id)
            self.permissions.revoke(user_id)
        except PlatformUnsupportedError as e:
            logger.warning("Cannot display %s: %s", notification["id"], e)
        except NetworkError as e:
            logger.error("Failed to display notification %s: %s", notification["id"], e)
            try:
                self.store.queue_delivery(notification, str(e))
            except NetworkError:
                logger.exception("Failed to queue notification %s", notification["id"])
        except Exception:
            logger.exception("Unexpected error displaying notification %s", notification["id"])
        return False

    def deliver(self, notification: dict) -> None:
        """Show ``notification`` now and log the trigger; errors propagate."""
        chat_id = self.permissions.chat_for(notification["userId"])
        self.platform.show(chat_id, notification)
        self.store.log_trigger(notification)

    # --- startup -----------------------------------------------------------

    def rearm_all(self) -> int:
        """Recompute and arm every enabled notification. Safe to call repeatedly."""
        for notification in self.snapshot.load():
            try:
                self.arm(notification)
            except Exception:
                logger.exception("Failed to arm notification %s from snapshot", notification.get("id"))

        try:
            records = self.store.list_all()
        except NetworkError as e:
            logger.warning("Store unavailable, reminders armed from snapshot only: %s", e)
            return len([n for n in self.snapshot.load() if n.get("enabled")])

        known = set()
        armed = 0
        for record in records:
            known.add(record.id)
            try:
                if self.arm(record.to_dict()):
                    armed += 1
            except Exception:
                logger.exception("Failed to arm notification %s", record.id)

        for stale_id in set(self._jobs) - known:
            self.cancel(stale_id)

        try:
            self.snapshot.save(record.to_dict() for record in records)
        except OSError as e:
            logger.warning("Could not write notification snapshot: %s", e)
        logger.info("Re-armed %d scheduled notifications", armed)
        return armed
