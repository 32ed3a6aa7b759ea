from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String, Text, UniqueConstraint

from myka.database import Base, new_id, utcnow


class DailyEntry(Base):
    __tablename__ = "daily_entries"
    __table_args__ = (UniqueConstraint("user_id", "date"),)

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(64), index=True, nullable=False)
    date = Column(String(10), index=True, nullable=False)
    # ratings are 1-5
    sleep_quality = Column(Integer, nullable=False)
    stress_level = Column(Integer, nullable=False)
    fatigue_level = Column(Integer, nullable=False)
    hunger_level = Column(Integer, nullable=False)
    steps = Column(Integer, default=0, nullable=False)
    weight = Column(Float, nullable=True)
    workout_completed = Column(Boolean, default=False, nullable=False)
    goal_review_completed = Column(Boolean, default=False, nullable=False)
    tomorrow_planning_completed = Column(Boolean, default=False, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "date": self.date,
            "sleepQuality": self.sleep_quality,
            "weight": self.weight,
            "workoutCompleted": self.workout_completed,
            "steps": self.steps,
            "stressLevel": self.stress_level,
            "fatigueLevel": self.fatigue_level,
            "hungerLevel": self.hunger_level,
            "goalReviewCompleted": self.goal_review_completed,
            "tomorrowPlanningCompleted": self.tomorrow_planning_completed,
            "notes": self.notes,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }
