"""
Weight and water tracking: logging plus the derived statistics shown on the
dashboard (streaks, weekly/monthly change, trends, hydration progress).

All day arithmetic happens on ``YYYY-MM-DD`` strings in the configured
timezone; ``on`` arguments exist so callers can pin "today".
"""
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Dict, List, Optional

from myka.config import WATER_DAILY_GOAL_ML
from myka.errors import ValidationError
from myka.models.tracking import WaterEntry, WeightEntry
from myka.services.records import db_session, require_number, today
from myka.services.timeparse import require_date

logger = logging.getLogger(__name__)

WEIGHT_UNITS = ("kg", "lbs")
TREND_PERIODS = {"7d": 7, "14d": 14, "30d": 30, "90d": 90}
STABLE_THRESHOLD_PCT = 0.5
MAX_SUMMARY_DAYS = 366
WATER_STREAK_RATIO = 0.8  # a day counts toward the streak at 80% of the goal


def _day(on: Optional[date]) -> date:
    return on or today()


def _streak(days_with_hit: set, on: date, limit: int = 365) -> int:
    streak = 0
    for i in range(limit):
        if (on - timedelta(days=i)).isoformat() not in days_with_hit:
            break
        streak += 1
    return streak


# --- weight ------------------------------------------------------------------


def log_weight(user_id: str, data: dict) -> Dict:
    weight = require_number(data.get("weight"), "weight")
    unit = data.get("unit") or "kg"
    if unit not in WEIGHT_UNITS:
        raise ValidationError("unit must be kg or lbs")
    entry_date = require_date(data["date"]) if data.get("date") else today().isoformat()
    notes = data.get("notes")

    with db_session() as session:
        entry = WeightEntry(user_id=user_id, weight=float(weight), unit=unit, date=entry_date, notes=notes)
        session.add(entry)
        session.commit()
        logger.info("Logged weight %.1f%s for user=%s on %s", entry.weight, unit, user_id, entry_date)
        return entry.to_dict()


def weight_history(user_id: str, limit: int = 30) -> List[Dict]:
    """Most recent entries first."""
    with db_session() as session:
        rows = (
            session.query(WeightEntry)
            .filter(WeightEntry.user_id == user_id)
            .order_by(WeightEntry.date.desc(), WeightEntry.created_at.desc())
            .limit(limit)
            .all()
        )
        return [r.to_dict() for r in rows]


def weight_for_date(user_id: str, day: str) -> Optional[Dict]:
    day = require_date(day)
    with db_session() as session:
        row = (
            session.query(WeightEntry)
            .filter(WeightEntry.user_id == user_id, WeightEntry.date == day)
            .order_by(WeightEntry.created_at.desc())
            .first()
        )
        return row.to_dict() if row else None


def weight_stats(user_id: str, on: Optional[date] = None) -> Dict:
    on = _day(on)
    history = sorted(weight_history(user_id, limit=365), key=lambda e: (e["date"], e["createdAt"]))
    if not history:
        return {
            "currentWeight": 0,
            "startingWeight": 0,
            "totalChange": 0,
            "weeklyChange": 0,
            "monthlyChange": 0,
            "streakDays": 0,
            "averageWeeklyWeight": 0,
            "consistencyScore": 0,
            "todayWeight": None,
            "yesterdayWeight": None,
        }

    current = history[-1]["weight"]
    starting = history[0]["weight"]
    week_ago = (on - timedelta(days=7)).isoformat()
    month_ago = (on - timedelta(days=30)).isoformat()

    def change_since(since: str) -> float:
        first = next((e for e in history if e["date"] >= since), None)
        return round(current - first["weight"], 2) if first else 0

    last_week = [e["weight"] for e in history if e["date"] >= week_ago]
    logged_days = {e["date"] for e in history}
    recent_days = {d for d in logged_days if d >= month_ago}
    by_date = {e["date"]: e["weight"] for e in history}

    return {
        "currentWeight": current,
        "startingWeight": starting,
        "totalChange": round(current - starting, 2),
        "weeklyChange": change_since(week_ago),
        "monthlyChange": change_since(month_ago),
        "streakDays": _streak(logged_days, on),
        "averageWeeklyWeight": round(sum(last_week) / len(last_week), 2) if last_week else current,
        "consistencyScore": min(100, round(len(recent_days) / 30 * 100)),
        "todayWeight": by_date.get(on.isoformat()),
        "yesterdayWeight": by_date.get((on - timedelta(days=1)).isoformat()),
    }


def daily_weight_summary(user_id: str, start: date, end: date) -> List[Dict]:
    """One row per calendar day from ``start`` to ``end`` inclusive."""
    if start > end:
        raise ValidationError("startDate must be before endDate")
    if (end - start).days > MAX_SUMMARY_DAYS:
        raise ValidationError("Date range is too long")

    with db_session() as session:
        rows = (
            session.query(WeightEntry)
            .filter(
                WeightEntry.user_id == user_id,
                WeightEntry.date >= start.isoformat(),
                WeightEntry.date <= end.isoformat(),
            )
            .order_by(WeightEntry.date, WeightEntry.created_at)
            .all()
        )
    # later entries on the same day win
    by_date = {r.date: r for r in rows}

    data = []
    current = start
    while current <= end:
        entry = by_date.get(current.isoformat())
        data.append({
            "date": current.isoformat(),
            "weight": entry.weight if entry else None,
            "unit": entry.unit if entry else "kg",
            "hasEntry": entry is not None,
            "dayOfWeek": current.strftime("%A"),
            "weekNumber": current.isocalendar()[1],
            "month": current.month,
            "year": current.year,
        })
        current += timedelta(days=1)
    return data


def weight_trend(user_id: str, period: str, end: Optional[date] = None) -> Dict:
    """Per-day series over ``period`` ending at ``end`` plus summary statistics."""
    if period not in TREND_PERIODS:
        raise ValidationError("Invalid period parameter. Must be 7d, 14d, 30d, or 90d")
    end = _day(end)
    data = daily_weight_summary(user_id, end - timedelta(days=TREND_PERIODS[period]), end)

    weights = [d["weight"] for d in data if d["hasEntry"]]
    statistics = {
        "averageWeight": 0,
        "trendDirection": "stable",
        "trendPercentage": 0,
        "highestWeight": 0,
        "lowestWeight": 0,
        "totalEntries": len(weights),
    }
    if weights:
        statistics.update(
            averageWeight=round(sum(weights) / len(weights), 2),
            highestWeight=max(weights),
            lowestWeight=min(weights),
        )
    if len(weights) >= 2:
        pct = (weights[-1] - weights[0]) / weights[0] * 100
        statistics["trendPercentage"] = round(pct, 2)
        if abs(pct) >= STABLE_THRESHOLD_PCT:
            statistics["trendDirection"] = "increasing" if pct > 0 else "decreasing"

    return {"period": period, "data": data, "statistics": statistics}


def enhanced_weight_stats(user_id: str, on: Optional[date] = None) -> Dict:
    """``weight_stats`` with the weekly average taken from the 7-day trend."""
    on = _day(on)
    stats = weight_stats(user_id, on=on)
    weekly = weight_trend(user_id, "7d", end=on)
    stats["averageWeeklyWeight"] = weekly["statistics"]["averageWeight"]
    if stats["todayWeight"] is not None:
        stats["lastEntryDate"] = on.isoformat()
    elif stats["yesterdayWeight"] is not None:
        stats["lastEntryDate"] = (on - timedelta(days=1)).isoformat()
    else:
        stats["lastEntryDate"] = None
    return stats


# --- water -------------------------------------------------------------------


def log_water(user_id: str, data: dict) -> Dict:
    amount = require_number(data.get("amount"), "amount")
    entry_date = require_date(data["date"]) if data.get("date") else today().isoformat()
    with db_session() as session:
        entry = WaterEntry(user_id=user_id, amount=int(amount), date=entry_date)
        session.add(entry)
        session.commit()
        logger.info("Logged %dml of water for user=%s on %s", entry.amount, user_id, entry_date)
        return entry.to_dict()


def water_today(user_id: str, daily_goal: int = WATER_DAILY_GOAL_ML, on: Optional[date] = None) -> Dict:
    on = _day(on)
    since = (on - timedelta(days=365)).isoformat()
    with db_session() as session:
        rows = (
            session.query(WaterEntry)
            .filter(WaterEntry.user_id == user_id, WaterEntry.date >= since, WaterEntry.date <= on.isoformat())
            .order_by(WaterEntry.created_at)
            .all()
        )

    totals: Dict[str, int] = {}
    for row in rows:
        totals[row.date] = totals.get(row.date, 0) + row.amount

    today_entries = [r.to_dict() for r in rows if r.date == on.isoformat()]
    current = totals.get(on.isoformat(), 0)
    week_ago = (on - timedelta(days=7)).isoformat()
    week_totals = [total for day, total in totals.items() if day >= week_ago]
    hit_days = {day for day, total in totals.items() if total >= daily_goal * WATER_STREAK_RATIO}

    return {
        "todayEntries": today_entries,
        "stats": {
            "dailyGoal": daily_goal,
            "currentIntake": current,
            "remainingIntake": max(0, daily_goal - current),
            "percentageComplete": round(current / daily_goal * 100, 1) if daily_goal > 0 else 0,
            "streakDays": _streak(hit_days, on),
            "averageDailyIntake": round(sum(week_totals) / len(week_totals)) if week_totals else 0,
        },
    }
