from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from myka.database import Base, new_id, utcnow


class Priority(Base):
    """One of a user's top-3 priorities for a day."""

    __tablename__ = "priorities"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(64), index=True, nullable=False)
    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(Integer, nullable=False)  # 1, 2 or 3
    completed = Column(Boolean, default=False, nullable=False)
    date = Column(String(10), index=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority,
            "completed": self.completed,
            "date": self.date,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }
