"""Therapist model definitions."""

import uuid

from sqlalchemy import Boolean, Column, String
from clinic_backend.database import Base


class Therapist(Base):
    """A clinician whose calendar the scheduling engine evaluates."""
    __tablename__ = "therapists"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    first_name = Column(String, nullable=False, default="")
    last_name = Column(String, nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=True)
    can_take_consultations = Column(Boolean, nullable=False, default=True)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
