"""Read access to the schedule, session and therapist records the engine evaluates."""

import logging
from datetime import date
from typing import Collection, Protocol

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_backend.models.schedule import TherapistSchedule
from clinic_backend.models.session import PatientSession
from clinic_backend.models.therapist import Therapist
from clinic_backend.scheduling.schemas import (
    OCCUPYING_SESSION_STATUSES,
    DaySnapshot,
    ScheduledSession,
    TherapistStatus,
    WeeklySchedule,
)
from clinic_backend.scheduling.time_utils import day_of_week

logger = logging.getLogger(__name__)


class SchedulingDataError(RuntimeError):
    """The backing store could not produce a usable day snapshot."""


class ScheduleStore(Protocol):
    def load_day_snapshot(
        self,
        therapist_id: str,
        day: date,
        exclude_session_ids: Collection[str] = (),
    ) -> DaySnapshot:
        ...


class SqlAlchemyScheduleStore:
    """Loads day snapshots through a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def load_day_snapshot(
        self,
        therapist_id: str,
        day: date,
        exclude_session_ids: Collection[str] = (),
    ) -> DaySnapshot:
        try:
            therapist = self.db.query(Therapist).filter(Therapist.id == therapist_id).first()

            schedule = self.db.query(TherapistSchedule).filter(
                TherapistSchedule.therapist_id == therapist_id,
                TherapistSchedule.day_of_week == day_of_week(day),
                TherapistSchedule.is_active.is_(True),
            ).order_by(TherapistSchedule.id.asc()).first()

            session_query = self.db.query(PatientSession).filter(
                PatientSession.therapist_id == therapist_id,
                PatientSession.scheduled_date == day,
                PatientSession.status.in_(OCCUPYING_SESSION_STATUSES),
            )
            if exclude_session_ids:
                session_query = session_query.filter(PatientSession.id.not_in(list(exclude_session_ids)))
            sessions = session_query.order_by(PatientSession.scheduled_time.asc()).all()
        except SQLAlchemyError as exc:
            raise SchedulingDataError('Unable to load scheduling data.') from exc

        try:
            return DaySnapshot(
                therapist_id=therapist_id,
                date=day,
                therapist=TherapistStatus.model_validate(therapist) if therapist else None,
                schedule=WeeklySchedule.model_validate(schedule) if schedule else None,
                sessions=[ScheduledSession.model_validate(session) for session in sessions],
            )
        except ValidationError as exc:
            logger.error('Malformed scheduling record for therapist %s on %s', therapist_id, day)
            raise SchedulingDataError('Scheduling records are malformed.') from exc
