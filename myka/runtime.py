"""
Process-wide wiring. ``build_runtime`` creates every manager once; the web
app and the bot receive the same ``Runtime`` instance.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Optional
from zoneinfo import ZoneInfo

from myka import config
from myka.database import SessionLocal, init_db
from myka.scheduler import create_scheduler, start_scheduler, stop_scheduler
from myka.services.delivery import NotificationPlatform, build_platform
from myka.services.installation import InstallationTracker, InstallStateStore
from myka.services.notification_manager import NotificationManager
from myka.services.notifications import ScheduledNotificationStore
from myka.services.permissions import PermissionGateway
from myka.services.reminders import NotificationScheduler
from myka.services.snapshot import NotificationSnapshot

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    session_factory: object
    platform: NotificationPlatform
    permissions: PermissionGateway
    store: ScheduledNotificationStore
    snapshot: NotificationSnapshot
    scheduler: NotificationScheduler
    notifications: NotificationManager
    install_store: InstallStateStore
    apscheduler: object
    base_url: str = config.APP_BASE_URL
    _trackers: Dict[str, InstallationTracker] = field(default_factory=dict, repr=False)
    _trackers_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def tracker(self, user_id: str) -> InstallationTracker:
        """The process-wide tracker for ``user_id``; subscribers live as long as the runtime."""
        with self._trackers_lock:
            tracker = self._trackers.get(user_id)
            if tracker is None:
                tracker = self._trackers[user_id] = InstallationTracker(self.install_store, user_id)
            return tracker

    def url_for(self, path: Optional[str]) -> str:
        return self.base_url.rstrip("/") + (path or "/")

    def start(self, paused: bool = False) -> int:
        """Start the timer thread and re-arm every stored reminder."""
        start_scheduler(self.apscheduler, paused=paused)
        return self.scheduler.rearm_all()

    def shutdown(self) -> None:
        stop_scheduler(self.apscheduler)


def build_runtime(
    session_factory=None,
    platform: Optional[NotificationPlatform] = None,
    snapshot_path: Optional[str] = config.SNAPSHOT_PATH,
    timezone: Optional[str] = None,
    clock: Optional[Callable[[], datetime]] = None,
    apscheduler=None,
    base_url: str = config.APP_BASE_URL,
) -> Runtime:
    init_db()
    session_factory = session_factory or SessionLocal
    tz = ZoneInfo(timezone or config.TIMEZONE)
    platform = platform or build_platform(config.TOKEN)
    apscheduler = apscheduler or create_scheduler(tz)

    store = ScheduledNotificationStore(session_factory)
    snapshot = NotificationSnapshot(snapshot_path)
    permissions = PermissionGateway(platform, session_factory)
    scheduler = NotificationScheduler(apscheduler, store, platform, permissions, snapshot, tz, clock=clock)
    notifications = NotificationManager(store, scheduler, permissions, snapshot)
    logger.info("Runtime ready (timezone=%s, notifications=%s)", tz, platform.capability.value)

    return Runtime(
        session_factory=session_factory,
        platform=platform,
        permissions=permissions,
        store=store,
        snapshot=snapshot,
        scheduler=scheduler,
        notifications=notifications,
        install_store=InstallStateStore(session_factory),
        apscheduler=apscheduler,
        base_url=base_url,
    )
