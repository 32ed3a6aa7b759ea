"""
Notification display platforms.

The scheduler never talks to Telegram directly: it is handed a
``NotificationPlatform`` whose ``capability`` says whether notifications can
be shown at all on this deployment. ``TelegramPlatform`` is the supported
variant, ``UnsupportedPlatform`` the fallback when no bot token is set.
"""
from __future__ import annotations

import html
import json
import logging
from enum import Enum
from typing import Optional

import requests
from aiogram.utils.keyboard import InlineKeyboardBuilder

from myka.errors import AuthorizationError, NetworkError, PlatformUnsupportedError

logger = logging.getLogger(__name__)

GRANTED = "granted"
DENIED = "denied"
DEFAULT = "default"

CALLBACK_PREFIX = "notif"


class Capability(str, Enum):
    SUPPORTED = "supported"
    UNSUPPORTED = "unsupported"


def build_callback_data(notification_id: str, action: str) -> str:
    return f"{CALLBACK_PREFIX}:{notification_id}:{action}"


def parse_callback_data(data: str) -> Optional[tuple[str, str]]:
    """Split ``notif:<id>:<action>``; None when it is not a notification callback."""
    parts = (data or "").split(":", 2)
    if len(parts) != 3 or parts[0] != CALLBACK_PREFIX or not parts[1] or not parts[2]:
        return None
    return parts[1], parts[2]


class NotificationPlatform:
    capability = Capability.UNSUPPORTED

    def request_permission(self, chat_id: Optional[int]) -> str:
        return DENIED

    def show(self, chat_id: Optional[int], notification: dict) -> None:
        raise PlatformUnsupportedError("Notifications are not supported on this platform")


class UnsupportedPlatform(NotificationPlatform):
    pass


class TelegramPlatform(NotificationPlatform):
    capability = Capability.SUPPORTED
    API_URL = "https://api.telegram.org/bot{token}/{method}"

    def __init__(self, token: str, timeout: float = 10):
        self.token = token
        self.timeout = timeout

    def build_keyboard(self, notification: dict) -> Optional[dict]:
        actions = notification.get("actions") or []
        if not actions:
            return None
        kb = InlineKeyboardBuilder()
        for action in actions:
            label = action.get("title") or action["action"]
            if action.get("icon"):
                label = f"{action['icon']} {label}"
            kb.button(text=label, callback_data=build_callback_data(notification["id"], action["action"]))
        kb.adjust(1)

        # Telegram rejects explicit nulls inside buttons
        inline_keyboard = kb.as_markup().model_dump().get("inline_keyboard", [])
        clean_keyboard = []
        for row in inline_keyboard:
            clean_keyboard.append([{k: v for k, v in button.items() if v is not None} for button in row])
        return {"inline_keyboard": clean_keyboard}

    def _send(self, chat_id: int, text: str, reply_markup: Optional[dict] = None) -> requests.Response:
        url = self.API_URL.format(token=self.token, method="sendMessage")
        data = {"chat_id": chat_id, "text": text, "parse_mode": "HTML"}
        if reply_markup:
            data["reply_markup"] = json.dumps(reply_markup)
        try:
            return requests.post(url, data=data, timeout=self.timeout)
        except requests.RequestException as exc:
            raise NetworkError(f"Telegram unreachable: {exc}") from exc

    def request_permission(self, chat_id: Optional[int]) -> str:
        if chat_id is None:
            return DENIED
        response = self._send(chat_id, "🔔 Reminders are on. You will get your MYKA notifications here.")
        if response.status_code == 200:
            return GRANTED
        if response.status_code == 403:
            return DENIED
        raise NetworkError(f"Telegram returned {response.status_code}")

    def show(self, chat_id: Optional[int], notification: dict) -> None:
        if chat_id is None:
            raise PlatformUnsupportedError("No Telegram chat linked")
        text = f"<b>{html.escape(notification['title'])}</b>\n{html.escape(notification['body'])}"
        response = self._send(chat_id, text, self.build_keyboard(notification))
        if response.status_code == 403:
            raise AuthorizationError("Bot was blocked by the user")
        if response.status_code != 200:
            logger.error("Failed to send notification %s: %s", notification.get("id"), response.text)
            raise NetworkError(f"Telegram returned {response.status_code}")
        logger.info("Sent notification %s to chat_id=%s", notification.get("id"), chat_id)


def build_platform(token: Optional[str]) -> NotificationPlatform:
    if not token:
        logger.warning("BOT_TOKEN not set, notifications are disabled")
        return UnsupportedPlatform()
    return TelegramPlatform(token)
