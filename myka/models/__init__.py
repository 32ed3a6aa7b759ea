# Importing the package registers every table on Base.metadata.
from . import (  # noqa: F401
    daily_entry,
    install_state,
    journal,
    meal_log,
    morning_routine,
    notification_log,
    priority,
    scheduled_notification,
    todo,
    tracking,
    user,
)
