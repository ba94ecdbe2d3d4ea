"""Booking writes guarded by the availability engine.

Checking a slot and inserting a session are separate steps, so two callers
can both see a slot as free. Writes here re-check after flushing the new row
and rely on the unique index over occupying session start times; a collision
on that index is retried from a fresh check instead of double-booking.
"""

import logging
from datetime import date

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clinic_backend.core import config
from clinic_backend.models.session import PatientSession
from clinic_backend.scheduling.checker import AvailabilityChecker, unverified_check
from clinic_backend.scheduling.schemas import AvailabilityCheck, AvailabilityRequest, SessionStatus
from clinic_backend.scheduling.store import SqlAlchemyScheduleStore
from clinic_backend.scheduling.time_utils import normalize_time

logger = logging.getLogger(__name__)


class SessionNotFoundError(LookupError):
    pass


class BookingResult(BaseModel):
    booked: bool
    session_id: str | None = None
    check: AvailabilityCheck


class SessionBookingService:
    def __init__(
        self,
        db: Session,
        checker: AvailabilityChecker | None = None,
        max_attempts: int | None = None,
    ):
        self.db = db
        self.checker = checker or AvailabilityChecker(SqlAlchemyScheduleStore(db))
        self.max_attempts = max_attempts or config.BOOKING_MAX_ATTEMPTS

    def book_session(
        self,
        request: AvailabilityRequest,
        patient_name: str | None = None,
        service_name: str | None = None,
    ) -> BookingResult:
        for attempt in range(1, self.max_attempts + 1):
            check = self.checker.check_availability(request)
            if not check.available:
                return BookingResult(booked=False, check=check)

            session = PatientSession(
                therapist_id=request.therapist_id,
                patient_id=request.patient_id,
                patient_name=patient_name,
                service_name=service_name or request.service_type,
                scheduled_date=request.date,
                scheduled_time=normalize_time(request.start_time),
                duration=request.duration,
                status=SessionStatus.SCHEDULED.value,
            )

            try:
                self.db.add(session)
                self.db.flush()
            except IntegrityError:
                self.db.rollback()
                logger.warning(
                    'Booking collided for therapist %s on %s at %s (attempt %s of %s)',
                    request.therapist_id,
                    request.date,
                    request.start_time,
                    attempt,
                    self.max_attempts,
                )
                continue

            result = self._confirm(request, session)
            if result.booked:
                logger.info('Booked session %s for therapist %s', session.id, request.therapist_id)
            return result

        return self._give_up(request)

    def reschedule_session(
        self,
        session_id: str,
        new_date: date,
        new_time: str,
        duration: int | None = None,
    ) -> BookingResult:
        for attempt in range(1, self.max_attempts + 1):
            session = self.db.get(PatientSession, session_id)
            if session is None:
                raise SessionNotFoundError(session_id)

            request = AvailabilityRequest(
                therapist_id=session.therapist_id,
                date=new_date,
                start_time=new_time,
                duration=duration or session.duration,
                exclude_session_id=session.id,
            )

            check = self.checker.check_availability(request)
            if not check.available:
                return BookingResult(booked=False, session_id=session.id, check=check)

            session.scheduled_date = request.date
            session.scheduled_time = normalize_time(request.start_time)
            session.duration = request.duration

            try:
                self.db.flush()
            except IntegrityError:
                self.db.rollback()
                logger.warning(
                    'Reschedule of session %s collided (attempt %s of %s)',
                    session_id,
                    attempt,
                    self.max_attempts,
                )
                continue

            return self._confirm(request, session)

        session = self.db.get(PatientSession, session_id)
        if session is None:
            raise SessionNotFoundError(session_id)

        return self._give_up(
            AvailabilityRequest(
                therapist_id=session.therapist_id,
                date=new_date,
                start_time=new_time,
                duration=duration or session.duration,
                exclude_session_id=session.id,
            )
        )

    def _confirm(self, request: AvailabilityRequest, session: PatientSession) -> BookingResult:
        # The flushed row is ignored, so any remaining conflict came from a concurrent writer.
        confirmation = self.checker.check_availability(request, ignored_session_ids=(session.id,))
        if not confirmation.available:
            self.db.rollback()
            logger.warning(
                'Slot for therapist %s on %s at %s was taken before commit',
                request.therapist_id,
                request.date,
                request.start_time,
            )
            return BookingResult(booked=False, check=confirmation)

        self.db.commit()
        return BookingResult(booked=True, session_id=session.id, check=confirmation)

    def _give_up(self, request: AvailabilityRequest) -> BookingResult:
        final_check = self.checker.check_availability(request)
        if final_check.available:
            # The slot looks free but every write collided; report it as unverified.
            final_check = unverified_check()
        return BookingResult(booked=False, check=final_check)
