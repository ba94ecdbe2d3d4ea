"""Independent availability rules.

Each check looks at one dimension of a requested slot and reports what it
finds as ``Conflict`` values. None of them raise for a rule violation.
"""

from clinic_backend.scheduling.schemas import (
    AvailabilityRequest,
    Conflict,
    ConflictingItem,
    ConflictSeverity,
    ConflictType,
    DaySnapshot,
    ScheduledSession,
    TherapistStatus,
    WeeklySchedule,
)
from clinic_backend.scheduling.time_utils import (
    day_of_week,
    intervals_overlap,
    minutes_to_time,
    time_to_minutes,
)


def request_interval(request: AvailabilityRequest) -> tuple[int, int]:
    start = time_to_minutes(request.start_time)
    return start, start + request.duration


def session_interval(session: ScheduledSession) -> tuple[int, int]:
    start = time_to_minutes(session.scheduled_time)
    return start, start + session.duration


def break_interval(schedule: WeeklySchedule | None) -> tuple[int, int] | None:
    if schedule is None or not schedule.break_start or not schedule.break_end:
        return None
    return time_to_minutes(schedule.break_start), time_to_minutes(schedule.break_end)


def is_within_working_hours(start: int, duration: int, schedule: WeeklySchedule) -> bool:
    return start >= time_to_minutes(schedule.start_time) and start + duration <= time_to_minutes(schedule.end_time)


def is_slot_free(start: int, duration: int, snapshot: DaySnapshot) -> bool:
    """True when ``[start, start + duration)`` clears the break and every occupying session."""
    end = start + duration

    break_window = break_interval(snapshot.schedule)
    if break_window is not None and intervals_overlap(start, end, *break_window):
        return False

    for session in snapshot.sessions:
        if intervals_overlap(start, end, *session_interval(session)):
            return False

    return True


def is_therapist_bookable(therapist: TherapistStatus | None) -> bool:
    return therapist is not None and therapist.is_active and therapist.can_take_consultations


def check_schedule_exists(request: AvailabilityRequest, snapshot: DaySnapshot) -> Conflict | None:
    if snapshot.schedule is not None:
        return None

    return Conflict(
        type=ConflictType.THERAPIST_UNAVAILABLE,
        severity=ConflictSeverity.ERROR,
        message=f'Therapist is not scheduled to work on {day_of_week(request.date)}',
    )


def check_working_hours(request: AvailabilityRequest, snapshot: DaySnapshot) -> Conflict | None:
    schedule = snapshot.schedule
    if schedule is None:
        return None

    start, _ = request_interval(request)
    if is_within_working_hours(start, request.duration, schedule):
        return None

    return Conflict(
        type=ConflictType.WORKING_HOURS,
        severity=ConflictSeverity.ERROR,
        message=f'Time slot is outside working hours ({schedule.start_time} - {schedule.end_time})',
        conflicting_item=ConflictingItem(
            id=schedule.id,
            type='working_hours',
            start_time=schedule.start_time,
            end_time=schedule.end_time,
            description='Therapist working hours',
        ),
    )


def check_break_overlap(request: AvailabilityRequest, snapshot: DaySnapshot) -> Conflict | None:
    break_window = break_interval(snapshot.schedule)
    if break_window is None:
        return None

    if not intervals_overlap(*request_interval(request), *break_window):
        return None

    schedule = snapshot.schedule
    return Conflict(
        type=ConflictType.BREAK_CONFLICT,
        severity=ConflictSeverity.ERROR,
        message=f"Time slot conflicts with therapist's break time ({schedule.break_start} - {schedule.break_end})",
        conflicting_item=ConflictingItem(
            id=schedule.id,
            type='break',
            start_time=schedule.break_start,
            end_time=schedule.break_end,
            description='Therapist break time',
        ),
    )


def check_existing_sessions(request: AvailabilityRequest, snapshot: DaySnapshot) -> list[Conflict]:
    conflicts: list[Conflict] = []
    start, end = request_interval(request)

    for session in snapshot.sessions:
        if request.exclude_session_id and session.id == request.exclude_session_id:
            continue

        session_start, session_end = session_interval(session)
        if not intervals_overlap(start, end, session_start, session_end):
            continue

        patient_name = session.patient_name or 'another patient'
        service_name = session.service_name or 'Session'
        conflicts.append(
            Conflict(
                type=ConflictType.EXISTING_SESSION,
                severity=ConflictSeverity.ERROR,
                message=f'Time slot conflicts with existing session for {patient_name}',
                conflicting_item=ConflictingItem(
                    id=session.id,
                    type='session',
                    start_time=session.scheduled_time,
                    end_time=minutes_to_time(session_end),
                    description=f'{service_name} - {patient_name}',
                ),
            )
        )

    return conflicts


def check_therapist_status(request: AvailabilityRequest, snapshot: DaySnapshot) -> Conflict | None:
    therapist = snapshot.therapist

    if therapist is None or not therapist.is_active:
        return Conflict(
            type=ConflictType.THERAPIST_UNAVAILABLE,
            severity=ConflictSeverity.ERROR,
            message='Therapist is not active',
        )

    if not therapist.can_take_consultations:
        return Conflict(
            type=ConflictType.THERAPIST_UNAVAILABLE,
            severity=ConflictSeverity.ERROR,
            message='Therapist is not accepting new consultations',
        )

    return None
