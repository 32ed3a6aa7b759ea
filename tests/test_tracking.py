from datetime import date

import pytest

from conftest import OTHER_USER, USER, auth
from myka.errors import AuthorizationError, NetworkError, NotFoundError, ValidationError
from myka.services import meals, morning_routine, priorities, todos, tracking

TODAY = date(2030, 1, 15)


def test_todo_lifecycle_and_stats():
    first = todos.create_todo(USER, {"title": "Stretch", "date": "2030-01-15"})
    todos.create_todo(USER, {"title": "Read", "date": "2030-01-15"})
    todos.create_todo(USER, {"title": "Tomorrow", "date": "2030-01-16"})

    assert todos.toggle_todo(USER, first["id"])["completed"] is True

    stats = todos.todo_stats(USER, "2030-01-15")
    assert stats["totalTodos"] == 2
    assert stats["completedTodos"] == 1
    assert stats["completionRate"] == 50.0


def test_todo_ownership():
    todo = todos.create_todo(USER, {"title": "Mine"})
    with pytest.raises(AuthorizationError):
        todos.delete_todo(OTHER_USER, todo["id"])
    with pytest.raises(NotFoundError):
        todos.toggle_todo(USER, "missing")


def test_priority_rank_is_unique_per_date():
    priorities.create_priority(USER, {"title": "Ship", "priority": 1, "date": "2030-01-15"})

    with pytest.raises(ValidationError):
        priorities.create_priority(USER, {"title": "Again", "priority": 1, "date": "2030-01-15"})
    priorities.create_priority(USER, {"title": "Next day", "priority": 1, "date": "2030-01-16"})


def test_priority_rank_range():
    with pytest.raises(ValidationError):
        priorities.create_priority(USER, {"title": "Too many", "priority": 4})


def test_priorities_by_range_are_ordered():
    priorities.create_priority(USER, {"title": "B", "priority": 2, "date": "2030-01-15"})
    priorities.create_priority(USER, {"title": "A", "priority": 1, "date": "2030-01-15"})
    priorities.create_priority(USER, {"title": "C", "priority": 1, "date": "2030-01-17"})

    items = priorities.list_priorities(USER, start_date="2030-01-15", end_date="2030-01-16")
    assert [p["title"] for p in items] == ["A", "B"]


def test_moving_priority_onto_taken_rank_fails():
    priorities.create_priority(USER, {"title": "A", "priority": 1, "date": "2030-01-15"})
    second = priorities.create_priority(USER, {"title": "B", "priority": 2, "date": "2030-01-15"})
    with pytest.raises(ValidationError):
        priorities.update_priority(USER, second["id"], {"priority": 1})


def test_meal_total_calories_from_foods():
    meal = meals.create_meal(USER, {
        "date": "2030-01-15",
        "mealType": "lunch",
        "foods": [
            {"name": "Chicken Breast", "calories": 165, "protein": 31},
            {"name": "Brown Rice", "calories": 111, "carbs": 23},
        ],
    })
    assert meal["totalCalories"] == 276

    updated = meals.update_meal(USER, meal["id"], {"foods": [{"name": "Salad", "calories": 50}]})
    assert updated["totalCalories"] == 50


def test_meal_validation():
    with pytest.raises(ValidationError):
        meals.create_meal(USER, {"date": "2030-01-15", "mealType": "brunch", "foods": []})
    with pytest.raises(ValidationError):
        meals.create_meal(USER, {"date": "2030-01-15", "mealType": "lunch"})


def test_meal_summary():
    meals.create_meal(USER, {"date": "2030-01-15", "mealType": "breakfast", "foods": [{"name": "Eggs", "calories": 155, "protein": 13}]})
    meals.create_meal(USER, {"date": "2030-01-15", "mealType": "dinner", "foods": [{"name": "Salmon", "calories": 208, "protein": 25}]})

    summary = meals.meal_summary(USER, "2030-01-15")
    assert summary["mealCount"] == 2
    assert summary["totalCalories"] == 363
    assert summary["totalProtein"] == 38
    assert summary["caloriesByMealType"]["dinner"] == 208


def test_weight_stats_streak_and_change():
    for day, weight in [("2030-01-01", 82.0), ("2030-01-13", 80.5), ("2030-01-14", 80.2), ("2030-01-15", 80.0)]:
        tracking.log_weight(USER, {"weight": weight, "date": day})

    stats = tracking.weight_stats(USER, on=TODAY)

    assert stats["currentWeight"] == 80.0
    assert stats["startingWeight"] == 82.0
    assert stats["totalChange"] == -2.0
    assert stats["weeklyChange"] == -0.5
    assert stats["streakDays"] == 3
    assert stats["consistencyScore"] == 13
    assert stats["todayWeight"] == 80.0
    assert stats["yesterdayWeight"] == 80.2


def test_weight_stats_empty():
    assert tracking.weight_stats(USER, on=TODAY)["currentWeight"] == 0


def test_weight_trend_direction():
    tracking.log_weight(USER, {"weight": 80.0, "date": "2030-01-10"})
    tracking.log_weight(USER, {"weight": 80.2, "date": "2030-01-15"})
    trend = tracking.weight_trend(USER, "7d", end=TODAY)

    assert len(trend["data"]) == 8
    assert trend["statistics"]["trendDirection"] == "stable"
    assert trend["statistics"]["totalEntries"] == 2

    tracking.log_weight(USER, {"weight": 78.0, "date": "2030-01-15"})
    trend = tracking.weight_trend(USER, "7d", end=TODAY)
    assert trend["statistics"]["trendDirection"] == "decreasing"


def test_weight_trend_rejects_unknown_period():
    with pytest.raises(ValidationError):
        tracking.weight_trend(USER, "1y", end=TODAY)


def test_weight_unit_validation():
    with pytest.raises(ValidationError):
        tracking.log_weight(USER, {"weight": 80, "unit": "stone"})
    with pytest.raises(ValidationError):
        tracking.log_weight(USER, {"weight": -1})


def test_water_progress_and_streak():
    tracking.log_water(USER, {"amount": 1700, "date": "2030-01-13"})
    tracking.log_water(USER, {"amount": 1000, "date": "2030-01-14"})
    tracking.log_water(USER, {"amount": 600, "date": "2030-01-14"})
    tracking.log_water(USER, {"amount": 500, "date": "2030-01-15"})
    tracking.log_water(USER, {"amount": 1200, "date": "2030-01-15"})

    result = tracking.water_today(USER, daily_goal=2000, on=TODAY)
    stats = result["stats"]

    assert len(result["todayEntries"]) == 2
    assert stats["currentIntake"] == 1700
    assert stats["remainingIntake"] == 300
    assert stats["percentageComplete"] == 85.0
    assert stats["streakDays"] == 3
    assert stats["averageDailyIntake"] == 1667


def test_routine_progress_dedupes_tasks(runtime):
    morning_routine.complete_task(USER, {"taskId": "hydrate", "date": "2030-01-15"})
    progress = morning_routine.complete_task(USER, {"taskId": "hydrate", "date": "2030-01-15"})
    assert progress["completedTasks"] == ["hydrate"]

    morning_routine.complete_task(USER, {"taskId": "weigh", "date": "2030-01-15"})
    assert morning_routine.get_progress(USER, "2030-01-15")["completedTasks"] == ["hydrate", "weigh"]
    assert morning_routine.get_progress(USER, "2030-01-16") is None


def test_routine_config_created_once(manager):
    morning_routine.create_config(manager, USER, {})
    with pytest.raises(ValidationError):
        morning_routine.create_config(manager, USER, {})
    assert len(manager.list(USER)) == 6


def test_tracking_routes_require_auth(client):
    assert client.get("/api/todos").status_code == 401
    assert client.post("/api/water/entry", json={"amount": 250}, headers=auth()).status_code == 201
    assert client.get("/api/weight/trend?period=2w", headers=auth()).status_code == 400
    assert client.get("/api/meals", headers=auth()).status_code == 400


def test_routine_config_rolled_back_when_seeding_fails(manager, monkeypatch):
    def unavailable(user_id):
        raise NetworkError("Data store unavailable")

    monkeypatch.setattr(manager, "seed_defaults", unavailable)
    with pytest.raises(NetworkError):
        morning_routine.create_config(manager, USER, {"wakeUpTime": "06:00"})
    assert morning_routine.get_config(USER) is None

    monkeypatch.undo()
    morning_routine.create_config(manager, USER, {"wakeUpTime": "06:00"})
    assert len(manager.list(USER)) == 6


def test_meal_search_is_case_insensitive():
    names = [food["name"] for food in meals.search_foods("RICE")]
    assert names == ["Brown Rice"]
    assert meals.search_foods("zzz") == []
    with pytest.raises(ValidationError):
        meals.search_foods("  ")


def test_daily_weight_summary_covers_every_day():
    tracking.log_weight(USER, {"weight": 80.4, "unit": "kg", "date": "2030-01-14"})

    summary = tracking.daily_weight_summary(USER, date(2030, 1, 13), date(2030, 1, 15))

    assert [day["date"] for day in summary] == ["2030-01-13", "2030-01-14", "2030-01-15"]
    assert [day["hasEntry"] for day in summary] == [False, True, False]
    assert summary[1]["weight"] == 80.4
    assert summary[1]["dayOfWeek"] == "Monday"
    with pytest.raises(ValidationError):
        tracking.daily_weight_summary(USER, date(2030, 1, 15), date(2030, 1, 13))


def test_enhanced_weight_stats_adds_last_entry_date():
    tracking.log_weight(USER, {"weight": 80.0, "date": "2030-01-10"})
    tracking.log_weight(USER, {"weight": 81.0, "date": "2030-01-14"})

    stats = tracking.enhanced_weight_stats(USER, on=TODAY)

    assert stats["lastEntryDate"] == "2030-01-14"
    assert stats["yesterdayWeight"] == 81.0
    assert stats["averageWeeklyWeight"] == 80.5


def test_weight_extra_routes(client):
    client.post("/api/weight/entry", json={"weight": 80, "date": "2030-01-14"}, headers=auth())

    response = client.get("/api/weight/daily-summary?startDate=2030-01-10&endDate=2030-01-14", headers=auth())
    body = response.get_json()
    assert body["data"]["period"] == "4d"
    assert len(body["data"]["summary"]) == 5

    assert client.get("/api/weight/daily-summary?startDate=2030-01-10", headers=auth()).status_code == 400
    assert client.get("/api/weight/stats/enhanced", headers=auth()).get_json()["success"] is True
    foods = client.get("/api/meals/search?q=egg", headers=auth()).get_json()["foods"]
    assert foods[0]["name"] == "Eggs"
