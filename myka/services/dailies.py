"""
Dailies: a once-a-day check-in of sleep, stress, fatigue, hunger, steps and
habit flags, with per-day completeness and trends over a date range.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Dict, List, Optional

from myka.database import utcnow
from myka.errors import ValidationError
from myka.models.daily_entry import DailyEntry
from myka.services.records import db_session, require_bool, require_number, today
from myka.services.timeparse import require_date

logger = logging.getLogger(__name__)

RATINGS = {
    "sleepQuality": "sleep_quality",
    "stressLevel": "stress_level",
    "fatigueLevel": "fatigue_level",
    "hungerLevel": "hunger_level",
}
FLAGS = {
    "workoutCompleted": "workout_completed",
    "goalReviewCompleted": "goal_review_completed",
    "tomorrowPlanningCompleted": "tomorrow_planning_completed",
}
TRACKED_METRICS = 9
STEPS_GOAL = 10000
TREND_THRESHOLD = 0.5


def _clean_entry(data: dict) -> Dict:
    if not isinstance(data, dict):
        raise ValidationError("Malformed daily entry")
    if any(data.get(field) is None for field in list(RATINGS) + list(FLAGS) + ["steps"]):
        raise ValidationError("All required fields must be provided")

    values = {}
    for field, column in RATINGS.items():
        rating = data[field]
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationError("Rating values must be between 1 and 5")
        values[column] = rating
    for field, column in FLAGS.items():
        values[column] = require_bool(data[field], field)

    steps = data["steps"]
    if isinstance(steps, bool) or not isinstance(steps, int) or steps < 0:
        raise ValidationError("Steps must be a positive number")
    values["steps"] = steps

    weight = data.get("weight")
    values["weight"] = float(require_number(weight, "weight")) if weight is not None else None
    notes = data.get("notes")
    if notes is not None and not isinstance(notes, str):
        raise ValidationError("notes must be text")
    values["notes"] = notes
    return values


def _find(session, user_id: str, day: str) -> Optional[DailyEntry]:
    return session.query(DailyEntry).filter(DailyEntry.user_id == user_id, DailyEntry.date == day).first()


def save_today_entry(user_id: str, data: dict, on: Optional[date] = None) -> Dict:
    """Create today's check-in or overwrite it if one exists."""
    values = _clean_entry(data)
    day = (on or today()).isoformat()
    with db_session() as session:
        entry = _find(session, user_id, day)
        if entry is None:
            entry = DailyEntry(user_id=user_id, date=day, **values)
            session.add(entry)
        else:
            for column, value in values.items():
                setattr(entry, column, value)
            entry.updated_at = utcnow()
        session.commit()
        logger.info("Saved daily entry for user=%s on %s", user_id, day)
        return entry.to_dict()


def get_entry(user_id: str, day: Optional[str] = None) -> Optional[Dict]:
    day = require_date(day) if day else today().isoformat()
    with db_session() as session:
        entry = _find(session, user_id, day)
        return entry.to_dict() if entry else None


def recent_entries(user_id: str, limit: int = 30) -> List[Dict]:
    if limit < 1 or limit > 100:
        raise ValidationError("Limit must be a number between 1 and 100")
    with db_session() as session:
        rows = (
            session.query(DailyEntry)
            .filter(DailyEntry.user_id == user_id)
            .order_by(DailyEntry.date.desc())
            .limit(limit)
            .all()
        )
        return [r.to_dict() for r in rows]


def _between(user_id: str, start: str, end: str) -> List[Dict]:
    with db_session() as session:
        rows = (
            session.query(DailyEntry)
            .filter(DailyEntry.user_id == user_id, DailyEntry.date >= start, DailyEntry.date <= end)
            .order_by(DailyEntry.date)
            .all()
        )
        return [r.to_dict() for r in rows]


def daily_stats(user_id: str, day: str) -> Dict:
    """How many of the tracked metrics the check-in for ``day`` filled in."""
    entry = get_entry(user_id, day)
    rate = 0
    if entry:
        filled = [
            entry["sleepQuality"] > 0,
            entry["steps"] > 0,
            entry["stressLevel"] > 0,
            entry["fatigueLevel"] > 0,
            entry["hungerLevel"] > 0,
            entry["weight"] is not None,
        ] + [True] * len(FLAGS)
        rate = round(len([f for f in filled if f]) / TRACKED_METRICS * 100, 2)
    return {
        "id": f"stats-{day}",
        "userId": user_id,
        "date": day,
        "hasEntry": entry is not None,
        "completionRate": rate,
    }


def _average(values: List[float]) -> float:
    return round(sum(values) / len(values), 2) if values else 0


def _trend(values: List[float], higher_is_better: bool = True) -> str:
    """Compares the later half of a chronological series with the earlier half."""
    if len(values) < 2:
        return "stable"
    half = len(values) // 2
    difference = _average(values[half:]) - _average(values[:half])
    if abs(difference) < TREND_THRESHOLD:
        return "stable"
    better = difference > 0 if higher_is_better else difference < 0
    return "improving" if better else "declining"


def _flag_streak(by_date: Dict[str, Dict], flag: str, end: date) -> int:
    streak = 0
    while True:
        entry = by_date.get((end - timedelta(days=streak)).isoformat())
        if not entry or not entry[flag]:
            return streak
        streak += 1


def _frequency(entries: List[Dict], by_date: Dict[str, Dict], flag: str, end: date) -> Dict:
    hits = len([e for e in entries if e[flag]])
    return {"percentage": round(hits / len(entries) * 100, 2), "streak": _flag_streak(by_date, flag, end)}


def daily_trends(user_id: str, start_date: str, end_date: str) -> Dict:
    start = require_date(start_date, "startDate")
    end = require_date(end_date, "endDate")
    if start > end:
        raise ValidationError("startDate must be before or equal to endDate")

    entries = _between(user_id, start, end)
    result = {"userId": user_id, "dateRange": {"start": start, "end": end}}
    if not entries:
        result.update(
            sleepQuality={"average": 0, "trend": "stable"},
            workoutFrequency={"percentage": 0, "streak": 0},
            steps={"average": 0, "total": 0, "goalMet": False},
            stressLevel={"average": 0, "trend": "stable"},
            fatigueLevel={"average": 0, "trend": "stable"},
            hungerLevel={"average": 0, "trend": "stable"},
            goalReviewFrequency={"percentage": 0, "streak": 0},
            planningFrequency={"percentage": 0, "streak": 0},
        )
        return result

    by_date = {e["date"]: e for e in entries}
    end_day = date.fromisoformat(end)

    def series(field: str) -> List[float]:
        return [e[field] for e in entries]

    steps_avg = _average(series("steps"))
    result.update(
        sleepQuality={"average": _average(series("sleepQuality")), "trend": _trend(series("sleepQuality"))},
        workoutFrequency=_frequency(entries, by_date, "workoutCompleted", end_day),
        steps={"average": steps_avg, "total": sum(series("steps")), "goalMet": steps_avg >= STEPS_GOAL},
        # lower stress, fatigue and hunger count as improvement
        stressLevel={"average": _average(series("stressLevel")), "trend": _trend(series("stressLevel"), False)},
        fatigueLevel={"average": _average(series("fatigueLevel")), "trend": _trend(series("fatigueLevel"), False)},
        hungerLevel={"average": _average(series("hungerLevel")), "trend": _trend(series("hungerLevel"), False)},
        goalReviewFrequency=_frequency(entries, by_date, "goalReviewCompleted", end_day),
        planningFrequency=_frequency(entries, by_date, "tomorrowPlanningCompleted", end_day),
    )
    return result
