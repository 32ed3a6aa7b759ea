from dotenv import load_dotenv
from tzlocal import get_localzone_name
import os

load_dotenv()

TOKEN = os.getenv("BOT_TOKEN")
BOT_USERNAME = os.getenv("BOT_USERNAME", "myka_reminders_bot")
DB_URL = os.getenv("DB_URL")

JWT_SECRET = os.getenv("JWT_SECRET", "change-me")
JWT_ALG = os.getenv("JWT_ALG", "HS256")

APP_BASE_URL = os.getenv("APP_BASE_URL", "http://localhost:3000")
TIMEZONE = os.getenv("TIMEZONE") or get_localzone_name()
SNAPSHOT_PATH = os.getenv("SNAPSHOT_PATH", "data/scheduled_notifications.json")
WATER_DAILY_GOAL_ML = int(os.getenv("WATER_DAILY_GOAL_ML", "2000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
