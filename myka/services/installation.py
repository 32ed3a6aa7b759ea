"""
Install-prompt bookkeeping for the web app.

The browser reports what it can see (user agent, display mode, whether a
deferred install prompt is available, the ``appinstalled`` event); the
tracker turns that into an ``InstallState`` and remembers whether the user
has already been asked, so the prompt is shown at most once.
"""
from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass, replace
from datetime import datetime
from typing import Callable, List, Optional

from myka.database import utcnow
from myka.errors import ValidationError
from myka.models.install_state import InstallStateRecord
from myka.services.records import db_session

logger = logging.getLogger(__name__)

ACCEPTED = "accepted"
DISMISSED = "dismissed"
PROMPT_OUTCOMES = (ACCEPTED, DISMISSED)

_ANDROID_RE = re.compile(r"android")
_IOS_RE = re.compile(r"iphone|ipad|ipod")
_DESKTOP_RE = re.compile(r"windows|macintosh|linux")


def detect_platform(user_agent: str) -> str:
    ua = (user_agent or "").lower()
    if _ANDROID_RE.search(ua):
        return "android"
    if _IOS_RE.search(ua):
        return "ios"
    if _DESKTOP_RE.search(ua):
        return "desktop"
    return "unknown"


@dataclass
class InstallSignals:
    user_agent: str = ""
    standalone: bool = False  # (display-mode: standalone) matches
    navigator_standalone: bool = False  # iOS Safari home-screen launch
    prompt_available: bool = False  # beforeinstallprompt was captured
    app_installed: bool = False  # appinstalled fired

    @classmethod
    def from_payload(cls, data: dict) -> "InstallSignals":
        if not isinstance(data, dict):
            raise ValidationError("Malformed install signals")
        flags = {}
        for key, attr in (
            ("standalone", "standalone"),
            ("navigatorStandalone", "navigator_standalone"),
            ("promptAvailable", "prompt_available"),
            ("appInstalled", "app_installed"),
        ):
            value = data.get(key, False)
            if not isinstance(value, bool):
                raise ValidationError(f"{key} must be a boolean")
            flags[attr] = value
        user_agent = data.get("userAgent", "")
        if not isinstance(user_agent, str):
            raise ValidationError("userAgent must be a string")
        return cls(user_agent=user_agent, **flags)


@dataclass
class InstallState:
    can_install: bool = False
    is_installed: bool = False
    platform: str = "unknown"
    prompt_shown: bool = False
    installed_at: Optional[datetime] = None

    @property
    def flow(self) -> str:
        if self.platform == "ios":
            return "manual-instructions"
        if self.platform in ("android", "desktop"):
            return "native-prompt"
        return "none"

    def to_dict(self) -> dict:
        return {
            "canInstall": self.can_install,
            "isInstalled": self.is_installed,
            "platform": self.platform,
            "promptShown": self.prompt_shown,
            "installedAt": self.installed_at.isoformat() if self.installed_at else None,
            "flow": self.flow,
        }


class InstallStateStore:
    def __init__(self, session_factory):
        self.session_factory = session_factory

    def load(self, user_id: str) -> InstallState:
        with db_session(self.session_factory) as session:
            row = session.get(InstallStateRecord, user_id)
            if row is None:
                return InstallState()
            return InstallState(
                can_install=row.can_install,
                is_installed=row.is_installed,
                platform=row.platform,
                prompt_shown=row.prompt_shown,
                installed_at=row.installed_at,
            )

    def save(self, user_id: str, state: InstallState) -> None:
        with db_session(self.session_factory) as session:
            row = session.get(InstallStateRecord, user_id)
            if row is None:
                row = InstallStateRecord(user_id=user_id)
                session.add(row)
            for key, value in asdict(state).items():
                setattr(row, key, value)
            row.updated_at = utcnow()
            session.commit()


class InstallationTracker:
    """Decides whether to offer the install prompt to one user.

    Observers registered with ``subscribe`` are called with the new
    ``InstallState`` after every recomputation. Any number of observers may
    be registered; each gets every update in registration order.
    """

    def __init__(self, store: InstallStateStore, user_id: str):
        self.store = store
        self.user_id = user_id
        self._state = store.load(user_id)
        self._listeners: List[Callable[[InstallState], None]] = []

    @property
    def state(self) -> InstallState:
        return replace(self._state)

    def subscribe(self, callback: Callable[[InstallState], None]) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback(self.state)

    def _commit(self) -> None:
        self.store.save(self.user_id, self._state)
        self._notify()

    def track_installation_state(self, signals: InstallSignals) -> InstallState:
        state = self._state
        state.platform = detect_platform(signals.user_agent)
        installed = signals.standalone or signals.navigator_standalone or signals.app_installed
        if installed and not state.is_installed and state.installed_at is None:
            state.installed_at = utcnow()
        state.is_installed = installed

        if state.is_installed:
            state.can_install = False
        elif state.platform in ("android", "desktop"):
            state.can_install = signals.prompt_available
        elif state.platform == "ios":
            # Safari has no prompt event; manual instructions always apply
            state.can_install = True
        else:
            state.can_install = False

        self._commit()
        logger.debug("Install state for user=%s: %s", self.user_id, state.to_dict())
        return self.state

    def should_show_prompt(self) -> bool:
        state = self._state
        return state.can_install and not state.is_installed and not state.prompt_shown

    def show_install_prompt(self, prompt: Callable[[], str]) -> Optional[str]:
        """Show the prompt at most once; ``prompt`` returns accepted/dismissed.

        ``promptShown`` is persisted before the prompt runs, so it stays set
        whatever the outcome.
        """
        if self._state.is_installed or self._state.prompt_shown:
            return None

        self._state.prompt_shown = True
        self.store.save(self.user_id, self._state)

        outcome = None
        try:
            outcome = prompt()
        except Exception as e:
            logger.error("Error showing install prompt for user=%s: %s", self.user_id, e)

        if outcome == ACCEPTED:
            logger.info("User %s accepted the install prompt", self.user_id)
            self._state.can_install = False
            self._state.is_installed = True
            self._state.installed_at = utcnow()
        elif outcome == DISMISSED:
            logger.info("User %s dismissed the install prompt", self.user_id)
        self._commit()
        return outcome

    def handle_install_event(self) -> InstallState:
        self._state.is_installed = True
        self._state.can_install = False
        self._state.installed_at = self._state.installed_at or utcnow()
        self._commit()
        return self.state

    def reset_prompt_state(self) -> InstallState:
        self._state.prompt_shown = False
        self._commit()
        return self.state
