"""SQLAlchemy ORM models for the cycle override store"""

import uuid
from sqlalchemy import Column, Date, DateTime, Float, Integer, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class CycleOverrideRecord(Base):
    """User edit to one cycle of an obligation"""

    __tablename__ = "cycle_override"
    __table_args__ = (UniqueConstraint("obligation_id", "cycle_number", name="uq_cycle_override_cycle"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    obligation_id = Column(Text, nullable=False, index=True)
    cycle_number = Column(Integer, nullable=False)
    expected_amount = Column(Float, nullable=True)
    expected_date = Column(Date, nullable=True)
    minimum_amount = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
