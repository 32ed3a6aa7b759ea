from datetime import date

import pytest

from conftest import USER, auth
from myka.errors import NotFoundError, ValidationError
from myka.services import dailies, journal

TODAY = date(2030, 1, 15)


def checkin(**overrides) -> dict:
    fields = {
        "sleepQuality": 4,
        "workoutCompleted": True,
        "steps": 8000,
        "stressLevel": 2,
        "fatigueLevel": 3,
        "hungerLevel": 3,
        "goalReviewCompleted": True,
        "tomorrowPlanningCompleted": False,
    }
    fields.update(overrides)
    return fields


def test_journal_entry_is_one_per_day():
    first = journal.save_entry(USER, {"wins": "Ran 5k", "commitments": "Sleep by 11"}, day="2030-01-15")
    second = journal.save_entry(USER, {"wins": "Ran 6k", "commitments": "Sleep by 11"}, day="2030-01-15")

    assert first["id"] == second["id"]
    assert journal.get_entry(USER, "2030-01-15")["wins"] == "Ran 6k"
    assert journal.get_entry(USER, "2030-01-16") is None


def test_journal_requires_both_fields():
    with pytest.raises(ValidationError):
        journal.save_entry(USER, {"wins": "Something"})
    with pytest.raises(ValidationError):
        journal.save_entry(USER, {"wins": " ", "commitments": "x"})


def test_journal_update_and_delete():
    with pytest.raises(NotFoundError):
        journal.update_entry(USER, "2030-01-10", {"wins": "a", "commitments": "b"})

    journal.save_entry(USER, {"wins": "a", "commitments": "b"}, day="2030-01-10")
    assert journal.update_entry(USER, "2030-01-10", {"wins": "c", "commitments": "d"})["wins"] == "c"

    assert journal.delete_entry(USER, "2030-01-10") is True
    assert journal.delete_entry(USER, "2030-01-10") is False


def test_journal_history_search_and_previews():
    long_text = "Finished the quarterly report and presented it to the whole team"
    journal.save_entry(USER, {"wins": long_text, "commitments": "Rest"}, day="2030-01-13")
    journal.save_entry(USER, {"wins": "Gym", "commitments": "Read"}, day="2030-01-14")
    journal.save_entry(USER, {"wins": "Cooked", "commitments": "Call mum"}, day="2030-01-15")

    page = journal.journal_history(USER, limit=2)
    assert [e["date"] for e in page["entries"]] == ["2030-01-15", "2030-01-14"]
    assert page["hasMore"] is True

    found = journal.journal_history(USER, search="REPORT")["entries"]
    assert len(found) == 1
    assert found[0]["winsPreview"] == long_text[:50] + "..."


def test_journal_calendar_and_stats():
    for day in ("2030-01-03", "2030-01-04", "2030-01-05", "2030-01-14", "2030-01-15", "2030-02-01"):
        journal.save_entry(USER, {"wins": "w", "commitments": "c"}, day=day)

    calendar = journal.calendar_data(USER, 2030, 1)
    assert sorted(calendar) == ["2030-01-03", "2030-01-04", "2030-01-05", "2030-01-14", "2030-01-15"]
    with pytest.raises(ValidationError):
        journal.calendar_data(USER, 2030, 13)

    stats = journal.journal_stats(USER, on=TODAY)
    assert stats["totalEntries"] == 6
    assert stats["entriesThisMonth"] == 5
    # 2030-01-15 is a Tuesday; the week started on Sunday the 13th
    assert stats["entriesThisWeek"] == 2
    assert stats["currentStreak"] == 2
    assert stats["longestStreak"] == 3
    assert stats["lastEntryDate"] == "2030-02-01"


def test_journal_routes(client):
    assert client.post("/api/journal/entry", json={"wins": "x"}, headers=auth()).status_code == 400
    saved = client.post("/api/journal/entry", json={"wins": "x", "commitments": "y"}, headers=auth()).get_json()
    assert saved["success"] is True

    day = saved["entry"]["date"]
    assert client.get(f"/api/journal/entry/{day}", headers=auth()).get_json()["entry"]["id"] == saved["id"]
    assert client.get("/api/journal/entry/15-01-2030", headers=auth()).status_code == 400
    assert client.get("/api/journal/history?limit=0", headers=auth()).status_code == 400
    assert client.get("/api/journal/calendar/2030/0", headers=auth()).status_code == 400
    assert client.delete(f"/api/journal/entry/{day}", headers=auth()).status_code == 200


def test_daily_checkin_overwrites_today():
    first = dailies.save_today_entry(USER, checkin(), on=TODAY)
    second = dailies.save_today_entry(USER, checkin(steps=12000), on=TODAY)

    assert first["id"] == second["id"]
    assert dailies.get_entry(USER, "2030-01-15")["steps"] == 12000


@pytest.mark.parametrize(
    "overrides",
    [{"sleepQuality": 0}, {"stressLevel": 6}, {"steps": -1}, {"workoutCompleted": None}, {"hungerLevel": True}],
)
def test_daily_checkin_validation(overrides):
    with pytest.raises(ValidationError):
        dailies.save_today_entry(USER, checkin(**overrides), on=TODAY)


def test_daily_stats_completion_rate():
    dailies.save_today_entry(USER, checkin(), on=TODAY)

    stats = dailies.daily_stats(USER, "2030-01-15")
    assert stats["hasEntry"] is True
    assert stats["completionRate"] == round(8 / 9 * 100, 2)
    assert dailies.daily_stats(USER, "2030-01-16")["completionRate"] == 0


def test_daily_trends():
    days = [date(2030, 1, 12), date(2030, 1, 13), date(2030, 1, 14), date(2030, 1, 15)]
    for day, sleep, stress in zip(days, (2, 2, 4, 5), (4, 4, 2, 2)):
        dailies.save_today_entry(USER, checkin(sleepQuality=sleep, stressLevel=stress, steps=11000), on=day)

    trends = dailies.daily_trends(USER, "2030-01-12", "2030-01-15")

    assert trends["sleepQuality"] == {"average": 3.25, "trend": "improving"}
    assert trends["stressLevel"]["trend"] == "improving"
    assert trends["workoutFrequency"] == {"percentage": 100.0, "streak": 4}
    assert trends["planningFrequency"] == {"percentage": 0.0, "streak": 0}
    assert trends["steps"]["goalMet"] is True
    assert trends["steps"]["total"] == 44000

    with pytest.raises(ValidationError):
        dailies.daily_trends(USER, "2030-01-15", "2030-01-12")


def test_dailies_routes(client):
    assert client.post("/api/dailies/entry", json={"sleepQuality": 3}, headers=auth()).status_code == 400
    saved = client.post("/api/dailies/entry", json=checkin(), headers=auth()).get_json()["entry"]

    assert client.get("/api/dailies/today", headers=auth()).get_json()["entry"]["id"] == saved["id"]
    assert len(client.get("/api/dailies/history", headers=auth()).get_json()["entries"]) == 1
    assert client.get("/api/dailies/history?limit=500", headers=auth()).status_code == 400
    assert client.get("/api/dailies/trends?startDate=2030-01-01", headers=auth()).status_code == 400
