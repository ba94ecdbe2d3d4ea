"""Patient session model definitions."""

import uuid

from sqlalchemy import Column, Date, ForeignKey, Index, Integer, String, text
from clinic_backend.database import Base

OCCUPYING_STATUS_SQL = "status IN ('SCHEDULED', 'IN_PROGRESS')"


class PatientSession(Base):
    """A booked therapy session."""
    __tablename__ = "patient_sessions"
    __table_args__ = (
        # Two occupying sessions may never start at the same minute for one therapist.
        Index(
            "uq_patient_sessions_occupied_start",
            "therapist_id",
            "scheduled_date",
            "scheduled_time",
            unique=True,
            sqlite_where=text(OCCUPYING_STATUS_SQL),
            postgresql_where=text(OCCUPYING_STATUS_SQL),
        ),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    therapist_id = Column(String(36), ForeignKey("therapists.id"), nullable=False)
    patient_id = Column(String(36), nullable=True)
    patient_name = Column(String, nullable=True)
    service_name = Column(String, nullable=True)
    scheduled_date = Column(Date, nullable=False)
    scheduled_time = Column(String(5), nullable=False)  # HH:MM
    duration = Column(Integer, nullable=False, default=60)
    status = Column(String, nullable=False, default="SCHEDULED")
