"""
Meals service for logging what a user ate and summarizing a day.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from myka.database import utcnow
from myka.errors import ValidationError
from myka.models.meal_log import MealLog
from myka.services.records import db_session, get_owned, require_number
from myka.services.timeparse import require_date

logger = logging.getLogger(__name__)

MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack")
NUTRIENTS = ("protein", "carbs", "fat")


def _require_meal_type(value) -> str:
    if value not in MEAL_TYPES:
        raise ValidationError(f"mealType must be one of: {', '.join(MEAL_TYPES)}")
    return value


def _clean_foods(foods) -> List[Dict]:
    """Validate food items; every item needs a name, numbers must be non-negative."""
    if not isinstance(foods, list):
        raise ValidationError("foods must be a list")
    cleaned = []
    for item in foods:
        if not isinstance(item, dict) or not isinstance(item.get("name"), str) or not item["name"].strip():
            raise ValidationError("Each food needs a name")
        food = dict(item)
        food["name"] = item["name"].strip()
        for key in ("calories", "quantity") + NUTRIENTS:
            if key in food and food[key] is not None:
                require_number(food[key], key, positive=False)
                if food[key] < 0:
                    raise ValidationError(f"{key} must not be negative")
        cleaned.append(food)
    return cleaned


def calculate_total_calories(foods: List[Dict]) -> int:
    return int(round(sum(food.get("calories") or 0 for food in foods)))


def list_meals(user_id: str, date: str, meal_type: Optional[str] = None) -> List[Dict]:
    with db_session() as session:
        query = session.query(MealLog).filter(MealLog.user_id == user_id, MealLog.date == require_date(date))
        if meal_type:
            query = query.filter(MealLog.meal_type == _require_meal_type(meal_type))
        return [m.to_dict() for m in query.order_by(MealLog.created_at.desc()).all()]


def create_meal(user_id: str, data: dict) -> Dict:
    if not data.get("date") or not data.get("mealType") or not isinstance(data.get("foods"), list):
        raise ValidationError("Missing required fields")
    date = require_date(data["date"])
    meal_type = _require_meal_type(data["mealType"])
    foods = _clean_foods(data["foods"])
    notes = data.get("notes")
    total = data.get("totalCalories")
    if not total:
        total = calculate_total_calories(foods)
    else:
        total = int(require_number(total, "totalCalories", positive=False))

    with db_session() as session:
        meal = MealLog(
            user_id=user_id, date=date, meal_type=meal_type, foods=foods, total_calories=total, notes=notes
        )
        session.add(meal)
        session.commit()
        logger.info("Logged %s for user=%s on %s (%d kcal)", meal_type, user_id, date, total)
        return meal.to_dict()


def update_meal(user_id: str, meal_id: str, data: dict) -> Dict:
    if not isinstance(data, dict) or not data:
        raise ValidationError("Nothing to update")
    with db_session() as session:
        meal = get_owned(session, MealLog, meal_id, user_id)
        if "date" in data:
            meal.date = require_date(data["date"])
        if "mealType" in data:
            meal.meal_type = _require_meal_type(data["mealType"])
        if "notes" in data:
            meal.notes = data["notes"]
        if "foods" in data:
            # JSON column: assign a new list
            meal.foods = _clean_foods(data["foods"])
            meal.total_calories = calculate_total_calories(meal.foods)
        meal.updated_at = utcnow()
        session.commit()
        return meal.to_dict()


def delete_meal(user_id: str, meal_id: str) -> None:
    with db_session() as session:
        session.delete(get_owned(session, MealLog, meal_id, user_id))
        session.commit()


def meal_summary(user_id: str, date: str) -> Dict:
    """Daily nutrition totals across all logged meals."""
    meals = list_meals(user_id, date)
    totals = {n: 0.0 for n in NUTRIENTS}
    by_type = {t: 0 for t in MEAL_TYPES}
    for meal in meals:
        by_type[meal["mealType"]] += meal["totalCalories"]
        for food in meal["foods"]:
            for nutrient in NUTRIENTS:
                totals[nutrient] += food.get(nutrient) or 0

    return {
        "date": date,
        "totalCalories": sum(m["totalCalories"] for m in meals),
        "totalProtein": round(totals["protein"], 1),
        "totalCarbs": round(totals["carbs"], 1),
        "totalFat": round(totals["fat"], 1),
        "mealCount": len(meals),
        "caloriesByMealType": by_type,
    }


# per 100 g
FOOD_DATABASE = [
    {"name": "Chicken Breast", "quantity": 100, "unit": "g", "calories": 165, "protein": 31, "carbs": 0, "fat": 3.6},
    {"name": "Brown Rice", "quantity": 100, "unit": "g", "calories": 111, "protein": 2.6, "carbs": 23, "fat": 0.9},
    {"name": "Broccoli", "quantity": 100, "unit": "g", "calories": 34, "protein": 2.8, "carbs": 7, "fat": 0.4},
    {"name": "Salmon", "quantity": 100, "unit": "g", "calories": 208, "protein": 25, "carbs": 0, "fat": 12},
    {"name": "Sweet Potato", "quantity": 100, "unit": "g", "calories": 86, "protein": 1.6, "carbs": 20, "fat": 0.1},
    {"name": "Greek Yogurt", "quantity": 100, "unit": "g", "calories": 59, "protein": 10, "carbs": 3.6, "fat": 0.4},
    {"name": "Banana", "quantity": 100, "unit": "g", "calories": 89, "protein": 1.1, "carbs": 23, "fat": 0.3},
    {"name": "Almonds", "quantity": 100, "unit": "g", "calories": 579, "protein": 21, "carbs": 22, "fat": 50},
    {"name": "Spinach", "quantity": 100, "unit": "g", "calories": 23, "protein": 2.9, "carbs": 3.6, "fat": 0.4},
    {"name": "Eggs", "quantity": 100, "unit": "g", "calories": 155, "protein": 13, "carbs": 1.1, "fat": 11},
]


def search_foods(query: str) -> List[Dict]:
    """Case-insensitive substring match against the built-in food list."""
    if not isinstance(query, str) or not query.strip():
        raise ValidationError("Query parameter is required")
    needle = query.strip().lower()
    return [dict(food) for food in FOOD_DATABASE if needle in food["name"].lower()]
