import os

os.environ["DB_URL"] = "sqlite://"
os.environ["TIMEZONE"] = "UTC"
os.environ["BOT_TOKEN"] = ""
os.environ["JWT_SECRET"] = "test-secret-with-at-least-32-bytes!!"

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from myka.database import Base, SessionLocal, engine
from myka.models.user import User
from myka.scheduler import create_scheduler
from myka.security.jwt_utils import create_token
from myka.services.delivery import DENIED, GRANTED, Capability, NotificationPlatform
from myka.services.users import ensure_user
from myka.runtime import build_runtime
from myka.web import create_app

UTC = ZoneInfo("UTC")
USER = "user-1"
OTHER_USER = "user-2"


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakePlatform(NotificationPlatform):
    """Records every display instead of talking to Telegram."""

    capability = Capability.SUPPORTED

    def __init__(self):
        self.shown = []
        self.fail_with = None

    def request_permission(self, chat_id):
        if self.fail_with:
            raise self.fail_with
        return GRANTED if chat_id is not None else DENIED

    def show(self, chat_id, notification):
        if self.fail_with:
            raise self.fail_with
        self.shown.append((chat_id, notification))


@pytest.fixture(autouse=True)
def db():
    import myka.models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def clock():
    return FakeClock(datetime(2030, 1, 15, 6, 30, tzinfo=UTC))


@pytest.fixture
def platform():
    return FakePlatform()


@pytest.fixture
def make_runtime(tmp_path, clock):
    runtimes = []

    def factory(platform=None):
        runtime = build_runtime(
            session_factory=SessionLocal,
            platform=platform,
            snapshot_path=str(tmp_path / "scheduled_notifications.json"),
            timezone="UTC",
            clock=clock,
            apscheduler=create_scheduler(UTC),
            base_url="https://myka.test",
        )
        # paused: jobs get their next run time but never execute
        runtime.start(paused=True)
        runtimes.append(runtime)
        return runtime

    yield factory
    for runtime in runtimes:
        runtime.shutdown()


@pytest.fixture
def runtime(make_runtime, platform):
    return make_runtime(platform)


@pytest.fixture
def manager(runtime):
    return runtime.notifications


@pytest.fixture
def linked_user():
    """USER with a Telegram chat and granted permission."""
    ensure_user(SessionLocal, USER)
    with SessionLocal() as session:
        user = session.get(User, USER)
        user.telegram_chat_id = 4242
        user.notification_permission = GRANTED
        session.commit()
    return USER


@pytest.fixture
def client(runtime):
    app = create_app(runtime)
    app.config["TESTING"] = True
    return app.test_client()


def auth(user_id: str = USER) -> dict:
    return {"Authorization": f"Bearer {create_token(user_id)}"}


def notification_fields(**overrides) -> dict:
    fields = {
        "time": "07:00",
        "title": "Weigh in",
        "body": "Log your weight before breakfast.",
        "type": "weight-tracking",
        "actions": [{"action": "log-weight", "title": "Log Weight"}, {"action": "snooze", "title": "Snooze"}],
    }
    fields.update(overrides)
    return fields
