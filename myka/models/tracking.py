from sqlalchemy import Column, DateTime, Float, Integer, String, Text

from myka.database import Base, new_id, utcnow


class WeightEntry(Base):
    __tablename__ = "weight_entries"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(64), index=True, nullable=False)
    weight = Column(Float, nullable=False)
    unit = Column(String(3), default="kg", nullable=False)  # kg / lbs
    date = Column(String(10), index=True, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "weight": self.weight,
            "unit": self.unit,
            "date": self.date,
            "notes": self.notes,
            "createdAt": self.created_at.isoformat(),
        }


class WaterEntry(Base):
    __tablename__ = "water_entries"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(64), index=True, nullable=False)
    amount = Column(Integer, nullable=False)  # ml
    date = Column(String(10), index=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "amount": self.amount,
            "date": self.date,
            "createdAt": self.created_at.isoformat(),
        }
