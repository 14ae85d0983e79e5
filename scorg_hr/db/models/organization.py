from sqlalchemy import Column, Integer, String, DateTime
from scorg_hr.db.base import Base, utcnow


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, index=True)
    rsi_org_id = Column(String, unique=True, index=True, nullable=False)  # Spectrum ID, e.g. "TEST"
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
