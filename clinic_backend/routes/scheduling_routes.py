from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_backend.core import config
from clinic_backend.database import SessionLocal, ensure_scheduling_schema
from clinic_backend.scheduling.booking import BookingResult, SessionBookingService, SessionNotFoundError
from clinic_backend.scheduling.checker import AvailabilityChecker
from clinic_backend.scheduling.resolver import ConflictResolver
from clinic_backend.scheduling.schemas import (
    AvailabilityCheck,
    AvailabilityRequest,
    BulkSlot,
    ResolutionPreferences,
    ResolutionResult,
    TherapistDayStatus,
)
from clinic_backend.scheduling.store import SqlAlchemyScheduleStore
from clinic_backend.scheduling.time_utils import MalformedTimeError, normalize_time

router = APIRouter(tags=['scheduling'])

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'


def _validate_time(value: str) -> str:
    try:
        return normalize_time(value)
    except MalformedTimeError as exc:
        raise ValueError('Invalid time format (HH:mm).') from exc


def _validate_optional_time(value: str | None) -> str | None:
    if value is None:
        return None
    return _validate_time(value)


def _validate_duration(value: int) -> int:
    if value < config.MIN_SESSION_DURATION_MINUTES or value > config.MAX_SESSION_DURATION_MINUTES:
        raise ValueError(
            f'Duration must be between {config.MIN_SESSION_DURATION_MINUTES} '
            f'and {config.MAX_SESSION_DURATION_MINUTES} minutes.'
        )
    return value


def _validate_therapist_id(value: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError('Therapist id is required.')
    return normalized


class AvailabilityCheckRequest(BaseModel):
    therapist_id: str
    date: date
    start_time: str
    end_time: str | None = None
    duration: int
    exclude_session_id: str | None = None
    service_type: str | None = None
    patient_id: str | None = None

    @field_validator('therapist_id')
    @classmethod
    def validate_therapist_id(cls, value: str) -> str:
        return _validate_therapist_id(value)

    @field_validator('start_time')
    @classmethod
    def validate_start_time(cls, value: str) -> str:
        return _validate_time(value)

    @field_validator('end_time')
    @classmethod
    def validate_end_time(cls, value: str | None) -> str | None:
        return _validate_optional_time(value)

    @field_validator('duration')
    @classmethod
    def validate_duration(cls, value: int) -> int:
        return _validate_duration(value)

    def to_engine_request(self) -> AvailabilityRequest:
        return AvailabilityRequest(**self.model_dump())


class BulkSlotRequest(BaseModel):
    start_time: str
    end_time: str
    duration: int

    @field_validator('start_time', 'end_time')
    @classmethod
    def validate_times(cls, value: str) -> str:
        return _validate_time(value)

    @field_validator('duration')
    @classmethod
    def validate_duration(cls, value: int) -> int:
        return _validate_duration(value)


class BulkAvailabilityCheckRequest(BaseModel):
    therapist_id: str
    date: date
    time_slots: list[BulkSlotRequest]
    exclude_session_ids: list[str] | None = None

    @field_validator('therapist_id')
    @classmethod
    def validate_therapist_id(cls, value: str) -> str:
        return _validate_therapist_id(value)

    @field_validator('time_slots')
    @classmethod
    def validate_time_slots(cls, value: list[BulkSlotRequest]) -> list[BulkSlotRequest]:
        if not value:
            raise ValueError('At least one time slot is required.')
        return value


class ResolutionPreferencesRequest(BaseModel):
    preferred_time: str | None = None
    max_time_shift: int | None = None
    allow_different_day: bool = False
    exclude_session_id: str | None = None

    @field_validator('preferred_time')
    @classmethod
    def validate_preferred_time(cls, value: str | None) -> str | None:
        return _validate_optional_time(value)

    @field_validator('max_time_shift')
    @classmethod
    def validate_max_time_shift(cls, value: int | None) -> int | None:
        if value is None:
            return None
        if value < 0 or value > config.MAX_TIME_SHIFT_LIMIT_MINUTES:
            raise ValueError(f'Max time shift must be between 0 and {config.MAX_TIME_SHIFT_LIMIT_MINUTES} minutes.')
        return value


class ConflictResolutionRequest(BaseModel):
    therapist_id: str
    date: date
    duration: int
    preferences: ResolutionPreferencesRequest | None = None

    @field_validator('therapist_id')
    @classmethod
    def validate_therapist_id(cls, value: str) -> str:
        return _validate_therapist_id(value)

    @field_validator('duration')
    @classmethod
    def validate_duration(cls, value: int) -> int:
        return _validate_duration(value)


class BookSessionRequest(AvailabilityCheckRequest):
    patient_name: str | None = None
    service_name: str | None = None

    @field_validator('patient_name', 'service_name')
    @classmethod
    def validate_names(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        return normalized or None

    def to_engine_request(self) -> AvailabilityRequest:
        return AvailabilityRequest(**self.model_dump(exclude={'patient_name', 'service_name'}))


class RescheduleSessionRequest(BaseModel):
    date: date
    start_time: str
    duration: int | None = None

    @field_validator('start_time')
    @classmethod
    def validate_start_time(cls, value: str) -> str:
        return _validate_time(value)

    @field_validator('duration')
    @classmethod
    def validate_duration(cls, value: int | None) -> int | None:
        if value is None:
            return None
        return _validate_duration(value)


class OpenSlotsResponse(BaseModel):
    therapist_id: str
    date: date
    duration: int
    available_slots: list[str]


def ensure_database_ready() -> None:
    try:
        ensure_scheduling_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _booking_conflict_response(result: BookingResult) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=result.model_dump(mode='json'),
    )


@router.post('/check', response_model=AvailabilityCheck)
def check_availability(data: AvailabilityCheckRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    checker = AvailabilityChecker(SqlAlchemyScheduleStore(db))
    return checker.check_availability(data.to_engine_request())


@router.post('/bulk-check', response_model=dict[str, AvailabilityCheck])
def check_bulk_availability(data: BulkAvailabilityCheckRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    checker = AvailabilityChecker(SqlAlchemyScheduleStore(db))
    return checker.check_bulk(
        data.therapist_id,
        data.date,
        [BulkSlot(**slot.model_dump()) for slot in data.time_slots],
        exclude_session_ids=data.exclude_session_ids,
    )


@router.post('/resolve', response_model=ResolutionResult)
def resolve_conflicts(data: ConflictResolutionRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    preferences = ResolutionPreferences(**data.preferences.model_dump()) if data.preferences else None
    resolver = ConflictResolver(SqlAlchemyScheduleStore(db))
    return resolver.resolve(data.therapist_id, data.date, data.duration, preferences)


@router.get('/resolve', response_model=ResolutionResult)
def suggest_resolution(
    therapist_id: str = Query(...),
    date: date = Query(...),
    duration: int = Query(..., ge=1),
    db: Session = Depends(get_db),
):
    try:
        normalized_therapist_id = _validate_therapist_id(therapist_id)
        normalized_duration = _validate_duration(duration)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    ensure_database_ready()

    resolver = ConflictResolver(SqlAlchemyScheduleStore(db))
    return resolver.resolve(
        normalized_therapist_id,
        date,
        normalized_duration,
        ResolutionPreferences(max_time_shift=config.RESOLVE_GET_MAX_TIME_SHIFT_MINUTES),
    )


@router.get('/open-slots', response_model=OpenSlotsResponse)
def list_open_slots(
    therapist_id: str = Query(...),
    date: date = Query(...),
    duration: int = Query(..., ge=1),
    db: Session = Depends(get_db),
):
    try:
        normalized_therapist_id = _validate_therapist_id(therapist_id)
        normalized_duration = _validate_duration(duration)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    ensure_database_ready()

    checker = AvailabilityChecker(SqlAlchemyScheduleStore(db))
    return OpenSlotsResponse(
        therapist_id=normalized_therapist_id,
        date=date,
        duration=normalized_duration,
        available_slots=checker.list_open_slots(normalized_therapist_id, date, normalized_duration),
    )


@router.get('/day-status', response_model=TherapistDayStatus)
def get_day_status(
    therapist_id: str = Query(...),
    date: date = Query(...),
    db: Session = Depends(get_db),
):
    try:
        normalized_therapist_id = _validate_therapist_id(therapist_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    ensure_database_ready()

    checker = AvailabilityChecker(SqlAlchemyScheduleStore(db))
    return checker.get_day_status(normalized_therapist_id, date)


@router.post('/sessions', response_model=BookingResult, status_code=status.HTTP_201_CREATED)
def book_session(data: BookSessionRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        result = SessionBookingService(db).book_session(
            data.to_engine_request(),
            patient_name=data.patient_name,
            service_name=data.service_name,
        )
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc

    if not result.booked:
        return _booking_conflict_response(result)

    return result


@router.patch('/sessions/{session_id}', response_model=BookingResult)
def reschedule_session(session_id: str, data: RescheduleSessionRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        result = SessionBookingService(db).reschedule_session(
            session_id,
            data.date,
            data.start_time,
            duration=data.duration,
        )
    except SessionNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Session not found.',
        ) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc

    if not result.booked:
        return _booking_conflict_response(result)

    return result
