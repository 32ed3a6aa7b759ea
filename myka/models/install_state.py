from sqlalchemy import Boolean, Column, DateTime, String

from myka.database import Base, utcnow


class InstallStateRecord(Base):
    __tablename__ = "install_states"

    user_id = Column(String(64), primary_key=True)
    can_install = Column(Boolean, default=False, nullable=False)
    is_installed = Column(Boolean, default=False, nullable=False)
    platform = Column(String(10), default="unknown", nullable=False)  # android/ios/desktop/unknown
    prompt_shown = Column(Boolean, default=False, nullable=False)
    installed_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, default=utcnow, nullable=False)
