"""
Evening journal: one entry of wins and commitments per user and day, plus
the history, calendar and streak views built on top of it.
"""
from __future__ import annotations

import calendar
import logging
from datetime import date, timedelta
from typing import Dict, Optional

from myka.database import utcnow
from myka.errors import NotFoundError, ValidationError
from myka.models.journal import JournalEntry
from myka.services.records import db_session, today
from myka.services.timeparse import require_date

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 50
MAX_TEXT = 5000


def _clean(data: dict) -> Dict[str, str]:
    if not isinstance(data, dict):
        raise ValidationError("Malformed journal entry")
    wins, commitments = data.get("wins"), data.get("commitments")
    if not isinstance(wins, str) or not wins.strip() or not isinstance(commitments, str) or not commitments.strip():
        raise ValidationError("Wins and commitments are required")
    if len(wins) > MAX_TEXT or len(commitments) > MAX_TEXT:
        raise ValidationError("Journal entry is too long")
    return {"wins": wins.strip(), "commitments": commitments.strip()}


def _preview(text: str) -> str:
    return text[:PREVIEW_LENGTH] + "..." if len(text) > PREVIEW_LENGTH else text


def _find(session, user_id: str, day: str) -> Optional[JournalEntry]:
    return (
        session.query(JournalEntry)
        .filter(JournalEntry.user_id == user_id, JournalEntry.date == day)
        .first()
    )


def save_entry(user_id: str, data: dict, day: Optional[str] = None) -> Dict:
    """Create or overwrite the entry for ``day`` (today by default)."""
    values = _clean(data)
    day = require_date(day) if day else today().isoformat()
    with db_session() as session:
        entry = _find(session, user_id, day)
        if entry is None:
            entry = JournalEntry(user_id=user_id, date=day, **values)
            session.add(entry)
        else:
            entry.wins = values["wins"]
            entry.commitments = values["commitments"]
            entry.updated_at = utcnow()
        session.commit()
        logger.info("Saved journal entry for user=%s on %s", user_id, day)
        return entry.to_dict()


def get_entry(user_id: str, day: Optional[str] = None) -> Optional[Dict]:
    day = require_date(day) if day else today().isoformat()
    with db_session() as session:
        entry = _find(session, user_id, day)
        return entry.to_dict() if entry else None


def update_entry(user_id: str, day: str, data: dict) -> Dict:
    values = _clean(data)
    day = require_date(day)
    with db_session() as session:
        entry = _find(session, user_id, day)
        if entry is None:
            raise NotFoundError("Journal entry not found")
        entry.wins = values["wins"]
        entry.commitments = values["commitments"]
        entry.updated_at = utcnow()
        session.commit()
        return entry.to_dict()


def delete_entry(user_id: str, day: str) -> bool:
    day = require_date(day)
    with db_session() as session:
        entry = _find(session, user_id, day)
        if entry is None:
            return False
        session.delete(entry)
        session.commit()
    logger.info("Deleted journal entry for user=%s on %s", user_id, day)
    return True


def journal_history(
    user_id: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> Dict:
    """Newest entries first, with 50-character previews.

    ``search`` matches wins or commitments case-insensitively.
    """
    if limit < 1 or limit > 100 or offset < 0:
        raise ValidationError("limit must be between 1 and 100 and offset not negative")
    with db_session() as session:
        query = session.query(JournalEntry).filter(JournalEntry.user_id == user_id)
        if start_date:
            query = query.filter(JournalEntry.date >= require_date(start_date, "startDate"))
        if end_date:
            query = query.filter(JournalEntry.date <= require_date(end_date, "endDate"))
        entries = [e.to_dict() for e in query.order_by(JournalEntry.date.desc()).all()]

    if search:
        needle = search.lower()
        entries = [e for e in entries if needle in e["wins"].lower() or needle in e["commitments"].lower()]

    page = entries[offset:offset + limit]
    for entry in page:
        entry["winsPreview"] = _preview(entry["wins"])
        entry["commitmentsPreview"] = _preview(entry["commitments"])
    return {"entries": page, "hasMore": len(entries) > offset + limit}


def calendar_data(user_id: str, year: int, month: int) -> Dict[str, bool]:
    if month < 1 or month > 12 or year < 1:
        raise ValidationError("Invalid year or month")
    first = date(year, month, 1)
    last = date(year, month, calendar.monthrange(year, month)[1])
    with db_session() as session:
        days = (
            session.query(JournalEntry.date)
            .filter(
                JournalEntry.user_id == user_id,
                JournalEntry.date >= first.isoformat(),
                JournalEntry.date <= last.isoformat(),
            )
            .all()
        )
    return {day: True for (day,) in days}


def journal_stats(user_id: str, on: Optional[date] = None) -> Dict:
    """Counts and streaks; weeks start on Sunday."""
    on = on or today()
    with db_session() as session:
        days = sorted(
            {d for (d,) in session.query(JournalEntry.date).filter(JournalEntry.user_id == user_id).all()},
            reverse=True,
        )

    month_prefix = on.strftime("%Y-%m")
    week_start = (on - timedelta(days=on.isoweekday() % 7)).isoformat()
    logged = set(days)

    current = 0
    while (on - timedelta(days=current)).isoformat() in logged:
        current += 1

    longest, run, previous = 0, 0, None
    for day in sorted(date.fromisoformat(d) for d in days):
        run = run + 1 if previous is not None and day - previous == timedelta(days=1) else 1
        longest = max(longest, run)
        previous = day

    return {
        "totalEntries": len(days),
        "entriesThisMonth": len([d for d in days if d.startswith(month_prefix)]),
        "entriesThisWeek": len([d for d in days if week_start <= d <= on.isoformat()]),
        "currentStreak": current,
        "longestStreak": longest,
        "lastEntryDate": days[0] if days else None,
    }
