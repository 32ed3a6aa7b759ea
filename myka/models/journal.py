from sqlalchemy import Column, DateTime, String, Text, UniqueConstraint

from myka.database import Base, new_id, utcnow


class JournalEntry(Base):
    """Evening reflection; at most one entry per user and day."""

    __tablename__ = "journal_entries"
    __table_args__ = (UniqueConstraint("user_id", "date"),)

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(64), index=True, nullable=False)
    date = Column(String(10), index=True, nullable=False)  # YYYY-MM-DD
    wins = Column(Text, nullable=False)
    commitments = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "date": self.date,
            "wins": self.wins,
            "commitments": self.commitments,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }
