"""Weekly therapist schedule model definitions."""

import uuid

from sqlalchemy import Boolean, Column, ForeignKey, String
from clinic_backend.database import Base


class TherapistSchedule(Base):
    """Recurring working hours for one therapist on one day of the week."""
    __tablename__ = "therapist_schedules"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    therapist_id = Column(String(36), ForeignKey("therapists.id"), nullable=False, index=True)
    day_of_week = Column(String(9), nullable=False)  # MONDAY..SUNDAY
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)
    break_start = Column(String(5), nullable=True)
    break_end = Column(String(5), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
