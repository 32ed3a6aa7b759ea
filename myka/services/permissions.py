from __future__ import annotations

import logging
from typing import Optional

from myka.database import utcnow
from myka.models.user import User
from myka.services.delivery import DEFAULT, DENIED, Capability, NotificationPlatform
from myka.services.records import db_session
from myka.services.users import ensure_user

logger = logging.getLogger(__name__)


class PermissionGateway:
    """Per-user notification permission on top of a display platform."""

    def __init__(self, platform: NotificationPlatform, session_factory):
        self.platform = platform
        self.session_factory = session_factory

    def is_supported(self) -> bool:
        return self.platform.capability is Capability.SUPPORTED

    def get_permission_status(self, user_id: str) -> str:
        with db_session(self.session_factory) as session:
            user = session.get(User, user_id)
            return user.notification_permission if user else DEFAULT

    def chat_for(self, user_id: str) -> Optional[int]:
        with db_session(self.session_factory) as session:
            user = session.get(User, user_id)
            return user.telegram_chat_id if user else None

    def request_permission(self, user_id: str) -> str:
        """Prompt the user through the platform; never raises.

        Any failure, including an unsupported platform, resolves to ``denied``.
        """
        status = DENIED
        try:
            if self.is_supported():
                status = self.platform.request_permission(self.chat_for(user_id))
            else:
                logger.info("Notifications not supported, permission for user=%s denied", user_id)
        except Exception as e:
            logger.error("Permission request failed for user=%s: %s", user_id, e)
            status = DENIED

        try:
            self._store(user_id, status)
        except Exception as e:
            logger.error("Failed to persist permission for user=%s: %s", user_id, e)
        return status

    def revoke(self, user_id: str) -> None:
        self._store(user_id, DENIED)

    def _store(self, user_id: str, status: str) -> None:
        ensure_user(self.session_factory, user_id)
        with db_session(self.session_factory) as session:
            user = session.get(User, user_id)
            user.notification_permission = status
            user.updated_at = utcnow()
            session.commit()
        logger.info("Notification permission for user=%s is %s", user_id, status)
