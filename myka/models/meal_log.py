"""
Meal logging models for tracking what a user ate.
"""
from sqlalchemy import JSON, Column, DateTime, Integer, String, Text

from myka.database import Base, new_id, utcnow


class MealLog(Base):
    """A logged meal with its food items."""
    __tablename__ = "meal_logs"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(64), nullable=False, index=True)
    date = Column(String(10), nullable=False, index=True)  # YYYY-MM-DD

    # Meal type
    meal_type = Column(String(20), nullable=False)  # 'breakfast', 'lunch', 'dinner', 'snack'

    # [{"name": ..., "calories": ..., "quantity": ..., "unit": ...}]
    foods = Column(JSON, default=list, nullable=False)
    total_calories = Column(Integer, default=0, nullable=False)
    notes = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "date": self.date,
            "mealType": self.meal_type,
            "foods": list(self.foods or []),
            "totalCalories": self.total_calories,
            "notes": self.notes,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }
