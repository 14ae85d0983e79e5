from sqlalchemy import Column, Integer, String, DateTime
from scorg_hr.db.base import Base, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    rsi_handle = Column(String, unique=True, index=True, nullable=False)
    discord_username = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
