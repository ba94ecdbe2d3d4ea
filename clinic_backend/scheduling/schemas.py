"""Value types exchanged with the scheduling engine."""

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field


class ConflictType(str, Enum):
    SCHEDULE_CONFLICT = 'SCHEDULE_CONFLICT'
    BREAK_CONFLICT = 'BREAK_CONFLICT'
    WORKING_HOURS = 'WORKING_HOURS'
    EXISTING_SESSION = 'EXISTING_SESSION'
    THERAPIST_UNAVAILABLE = 'THERAPIST_UNAVAILABLE'


class ConflictSeverity(str, Enum):
    ERROR = 'ERROR'
    WARNING = 'WARNING'
    INFO = 'INFO'


class SuggestionPriority(str, Enum):
    HIGH = 'HIGH'
    MEDIUM = 'MEDIUM'
    LOW = 'LOW'


class SessionStatus(str, Enum):
    SCHEDULED = 'SCHEDULED'
    IN_PROGRESS = 'IN_PROGRESS'
    COMPLETED = 'COMPLETED'
    CANCELLED = 'CANCELLED'
    NO_SHOW = 'NO_SHOW'
    RESCHEDULED = 'RESCHEDULED'


OCCUPYING_SESSION_STATUSES = (SessionStatus.SCHEDULED.value, SessionStatus.IN_PROGRESS.value)


class TherapistStatus(BaseModel):
    id: str
    is_active: bool
    can_take_consultations: bool
    display_name: str | None = None

    class Config:
        from_attributes = True


class WeeklySchedule(BaseModel):
    id: str
    therapist_id: str
    day_of_week: str
    start_time: str
    end_time: str
    break_start: str | None = None
    break_end: str | None = None
    is_active: bool = True

    class Config:
        from_attributes = True


class ScheduledSession(BaseModel):
    id: str
    therapist_id: str
    scheduled_date: date
    scheduled_time: str
    duration: int = 60
    status: str = SessionStatus.SCHEDULED.value
    patient_name: str | None = None
    service_name: str | None = None

    class Config:
        from_attributes = True


class DaySnapshot(BaseModel):
    """Everything one evaluation reads about a therapist's day, fetched together."""
    therapist_id: str
    date: date
    therapist: TherapistStatus | None = None
    schedule: WeeklySchedule | None = None
    sessions: list[ScheduledSession] = Field(default_factory=list)


class AvailabilityRequest(BaseModel):
    therapist_id: str
    date: date
    start_time: str
    duration: int
    end_time: str | None = None
    exclude_session_id: str | None = None
    service_type: str | None = None
    patient_id: str | None = None


class ConflictingItem(BaseModel):
    id: str
    type: str
    start_time: str
    end_time: str
    description: str | None = None


class Conflict(BaseModel):
    type: ConflictType
    severity: ConflictSeverity
    message: str
    conflicting_item: ConflictingItem | None = None


class TimeSlotSuggestion(BaseModel):
    time: str
    duration: int
    reason: str
    priority: SuggestionPriority


class AvailabilityCheck(BaseModel):
    available: bool
    reason: str | None = None
    conflicts: list[Conflict] = Field(default_factory=list)
    suggestions: list[TimeSlotSuggestion] = Field(default_factory=list)


class BulkSlot(BaseModel):
    start_time: str
    end_time: str
    duration: int


class ResolutionPreferences(BaseModel):
    preferred_time: str | None = None
    max_time_shift: int | None = None
    allow_different_day: bool = False
    exclude_session_id: str | None = None


class ResolutionResult(BaseModel):
    resolved: bool
    suggested_time: str | None = None
    suggested_date: date | None = None
    reason: str


class TherapistDayStatus(BaseModel):
    therapist_id: str
    date: date
    is_available: bool
    reason: str | None = None
    next_available_slot: str | None = None
