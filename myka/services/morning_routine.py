from __future__ import annotations

import logging
from typing import Dict, Optional

from myka.database import utcnow
from myka.errors import NetworkError, ValidationError
from myka.models.morning_routine import DailyProgress, MorningRoutineConfig
from myka.services.notification_manager import NotificationManager
from myka.services.records import db_session, require_bool, require_text
from myka.services.timeparse import require_date, require_time

logger = logging.getLogger(__name__)

DEFAULT_NOTIFICATION_SETTINGS = {
    "enabled": True,
    "sound": True,
    "vibration": True,
    "snoozeEnabled": True,
    "snoozeDuration": 10,
}


def _clean_config(data: dict) -> Dict:
    if not isinstance(data, dict):
        raise ValidationError("Malformed routine config")
    values = {}
    if data.get("wakeUpTime") is not None:
        values["wake_up_time"] = require_time(data["wakeUpTime"], "wakeUpTime")
    if "enabled" in data:
        values["enabled"] = require_bool(data["enabled"], "enabled")
    if "tasks" in data:
        if not isinstance(data["tasks"], list):
            raise ValidationError("tasks must be a list")
        values["tasks"] = list(data["tasks"])
    if "notificationSettings" in data:
        if not isinstance(data["notificationSettings"], dict):
            raise ValidationError("notificationSettings must be an object")
        values["notification_settings"] = dict(data["notificationSettings"])
    return values


def _find(session, user_id: str) -> Optional[MorningRoutineConfig]:
    return session.query(MorningRoutineConfig).filter(MorningRoutineConfig.user_id == user_id).first()


def get_config(user_id: str) -> Optional[Dict]:
    with db_session() as session:
        config = _find(session, user_id)
        return config.to_dict() if config else None


def create_config(manager: NotificationManager, user_id: str, data: dict) -> Dict:
    """Create the routine config and seed the user's default reminders."""
    values = _clean_config(data)
    with db_session() as session:
        if _find(session, user_id) is not None:
            raise ValidationError("Morning routine already configured")
        config = MorningRoutineConfig(
            user_id=user_id,
            tasks=values.pop("tasks", []),
            notification_settings=values.pop("notification_settings", dict(DEFAULT_NOTIFICATION_SETTINGS)),
            **values,
        )
        session.add(config)
        session.commit()
        result = config.to_dict()

    try:
        manager.seed_defaults(user_id)
    except Exception:
        logger.error("Seeding reminders failed for user=%s, rolling back morning routine", user_id)
        try:
            _remove_config(user_id)
        except NetworkError:
            logger.exception("Could not roll back morning routine for user=%s", user_id)
        raise
    logger.info("Created morning routine for user=%s", user_id)
    return result


def _remove_config(user_id: str) -> None:
    with db_session() as session:
        config = _find(session, user_id)
        if config is not None:
            session.delete(config)
            session.commit()


def save_config(manager: NotificationManager, user_id: str, data: dict) -> Dict:
    """Update the config in place, creating it on first save."""
    values = _clean_config(data)
    with db_session() as session:
        config = _find(session, user_id)
        if config is not None:
            for column, value in values.items():
                setattr(config, column, value)
            config.updated_at = utcnow()
            session.commit()
            return config.to_dict()
    return create_config(manager, user_id, data)


def delete_config(manager: NotificationManager, user_id: str) -> int:
    """Remove the config together with every scheduled reminder of the user."""
    _remove_config(user_id)
    removed = manager.delete_for_user(user_id)
    logger.info("Deleted morning routine for user=%s (%d reminders removed)", user_id, removed)
    return removed


def _progress_dict(progress: DailyProgress) -> Dict:
    return {
        "id": progress.id,
        "userId": progress.user_id,
        "date": progress.date,
        "completedTasks": list(progress.completed_tasks or []),
        "waterGoal": progress.water_goal,
        "createdAt": progress.created_at.isoformat(),
        "updatedAt": progress.updated_at.isoformat(),
    }


def complete_task(user_id: str, data: dict) -> Dict:
    task_id = require_text(data, "taskId", max_len=100)
    if not data.get("date"):
        raise ValidationError("Missing required fields")
    day = require_date(data["date"])

    with db_session() as session:
        progress = (
            session.query(DailyProgress)
            .filter(DailyProgress.user_id == user_id, DailyProgress.date == day)
            .first()
        )
        if progress is None:
            progress = DailyProgress(user_id=user_id, date=day, completed_tasks=[task_id])
            session.add(progress)
        elif task_id not in (progress.completed_tasks or []):
            progress.completed_tasks = list(progress.completed_tasks or []) + [task_id]
            progress.updated_at = utcnow()
        session.commit()
        return _progress_dict(progress)


def get_progress(user_id: str, day: str) -> Optional[Dict]:
    day = require_date(day)
    with db_session() as session:
        progress = (
            session.query(DailyProgress)
            .filter(DailyProgress.user_id == user_id, DailyProgress.date == day)
            .first()
        )
        return _progress_dict(progress) if progress else None
