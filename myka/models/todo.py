from sqlalchemy import Boolean, Column, DateTime, String

from myka.database import Base, new_id, utcnow


class Todo(Base):
    __tablename__ = "todos"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(64), index=True, nullable=False)
    title = Column(String(300), nullable=False)
    completed = Column(Boolean, default=False, nullable=False)
    date = Column(String(10), index=True, nullable=False)  # YYYY-MM-DD
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "completed": self.completed,
            "date": self.date,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }
