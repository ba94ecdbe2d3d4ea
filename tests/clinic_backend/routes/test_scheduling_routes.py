import json

import pytest
from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from clinic_backend.routes.scheduling_routes import (
    AvailabilityCheckRequest,
    BookSessionRequest,
    BulkAvailabilityCheckRequest,
    ConflictResolutionRequest,
    RescheduleSessionRequest,
    book_session,
    check_availability,
    check_bulk_availability,
    ensure_database_ready,
    get_day_status,
    list_open_slots,
    reschedule_session,
    resolve_conflicts,
    suggest_resolution,
)
from tests.clinic_backend.calendar_days import MONDAY


@pytest.fixture(autouse=True)
def skip_schema_check(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('clinic_backend.routes.scheduling_routes.ensure_database_ready', lambda: None)


def test_availability_request_normalizes_times() -> None:
    request = AvailabilityCheckRequest(
        therapist_id=' therapist-1 ',
        date=MONDAY,
        start_time='9:00',
        end_time='9:30',
        duration=30,
    )

    assert request.therapist_id == 'therapist-1'
    assert request.start_time == '09:00'
    assert request.end_time == '09:30'


@pytest.mark.parametrize(
    ('field', 'value'),
    [
        ('start_time', '25:00'),
        ('start_time', '9am'),
        ('duration', 10),
        ('duration', 500),
        ('therapist_id', '   '),
    ],
)
def test_availability_request_rejects_invalid_fields(field: str, value) -> None:
    payload = {'therapist_id': 'therapist-1', 'date': MONDAY, 'start_time': '09:00', 'duration': 30}
    payload[field] = value

    with pytest.raises(ValidationError):
        AvailabilityCheckRequest(**payload)


def test_bulk_request_requires_at_least_one_slot() -> None:
    with pytest.raises(ValidationError):
        BulkAvailabilityCheckRequest(therapist_id='therapist-1', date=MONDAY, time_slots=[])


def test_resolution_request_rejects_negative_shift() -> None:
    with pytest.raises(ValidationError):
        ConflictResolutionRequest(
            therapist_id='therapist-1',
            date=MONDAY,
            duration=30,
            preferences={'preferred_time': '10:00', 'max_time_shift': -15},
        )


def test_check_availability_route_returns_conflicts(scheduling_db, add_break) -> None:
    add_break('12:00', '13:00')

    result = check_availability(
        AvailabilityCheckRequest(therapist_id='therapist-1', date=MONDAY, start_time='12:30', duration=30),
        db=scheduling_db,
    )

    assert result.available is False
    assert result.conflicts[0].type.value == 'BREAK_CONFLICT'
    assert result.model_dump(mode='json')['conflicts'][0]['severity'] == 'ERROR'


def test_bulk_check_route_keys_by_slot(scheduling_db, add_session) -> None:
    add_session('10:00', duration=60)

    result = check_bulk_availability(
        BulkAvailabilityCheckRequest(
            therapist_id='therapist-1',
            date=MONDAY,
            time_slots=[
                {'start_time': '09:00', 'end_time': '09:30', 'duration': 30},
                {'start_time': '10:30', 'end_time': '11:00', 'duration': 30},
            ],
        ),
        db=scheduling_db,
    )

    assert result['09:00-09:30'].available is True
    assert result['10:30-11:00'].available is False


def test_resolve_route_uses_preferences(scheduling_db, add_session) -> None:
    add_session('10:00', duration=30)

    result = resolve_conflicts(
        ConflictResolutionRequest(
            therapist_id='therapist-1',
            date=MONDAY,
            duration=30,
            preferences={'preferred_time': '10:00', 'max_time_shift': 60},
        ),
        db=scheduling_db,
    )

    assert result.resolved is True
    assert result.suggested_time == '09:30'


def test_resolve_get_route_scans_day(scheduling_db, add_session) -> None:
    add_session('09:00', duration=60)

    result = suggest_resolution(therapist_id='therapist-1', date=MONDAY, duration=30, db=scheduling_db)

    assert result.suggested_time == '10:00'
    assert result.reason == 'Found first available slot'


def test_resolve_get_route_rejects_out_of_range_duration(scheduling_db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        suggest_resolution(therapist_id='therapist-1', date=MONDAY, duration=5, db=scheduling_db)

    assert exception_info.value.status_code == 400


def test_open_slots_route(scheduling_db, add_session) -> None:
    add_session('09:00', duration=450)

    result = list_open_slots(therapist_id='therapist-1', date=MONDAY, duration=30, db=scheduling_db)

    assert result.available_slots == ['16:30']


def test_day_status_route(scheduling_db, therapist) -> None:
    result = get_day_status(therapist_id='therapist-1', date=MONDAY, db=scheduling_db)

    assert result.is_available is True
    assert result.next_available_slot == '09:00'


def test_day_status_route_rejects_blank_therapist_id(scheduling_db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_day_status(therapist_id='   ', date=MONDAY, db=scheduling_db)

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'Therapist id is required.'


def test_book_session_route_creates_then_conflicts(scheduling_db, therapist) -> None:
    payload = {
        'therapist_id': 'therapist-1',
        'date': MONDAY,
        'start_time': '10:00',
        'duration': 30,
        'patient_name': ' Ana Cruz ',
        'service_name': 'Physiotherapy',
    }

    created = book_session(BookSessionRequest(**payload), db=scheduling_db)
    conflict = book_session(BookSessionRequest(**payload), db=scheduling_db)

    assert created.booked is True
    assert conflict.status_code == 409
    body = json.loads(conflict.body)
    assert body['booked'] is False
    assert body['check']['conflicts'][0]['type'] == 'EXISTING_SESSION'


def test_book_session_route_maps_database_errors_to_503(scheduling_db, therapist, monkeypatch) -> None:
    def broken_booking(self, request, patient_name=None, service_name=None):
        raise OperationalError('INSERT', {}, Exception('connection lost'))

    monkeypatch.setattr('clinic_backend.scheduling.booking.SessionBookingService.book_session', broken_booking)

    with pytest.raises(HTTPException) as exception_info:
        book_session(
            BookSessionRequest(therapist_id='therapist-1', date=MONDAY, start_time='10:00', duration=30),
            db=scheduling_db,
        )

    assert exception_info.value.status_code == 503


def test_reschedule_route_moves_session(scheduling_db, add_session) -> None:
    booked = add_session('10:00', duration=60)

    result = reschedule_session(
        booked.id,
        RescheduleSessionRequest(date=MONDAY, start_time='15:00'),
        db=scheduling_db,
    )

    assert result.booked is True


def test_reschedule_route_returns_not_found(scheduling_db, therapist) -> None:
    with pytest.raises(HTTPException) as exception_info:
        reschedule_session('missing', RescheduleSessionRequest(date=MONDAY, start_time='15:00'), db=scheduling_db)

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Session not found.'


def test_ensure_database_ready_maps_schema_errors_to_503(monkeypatch) -> None:
    def broken_schema():
        raise OperationalError('SELECT', {}, Exception('no database'))

    monkeypatch.setattr('clinic_backend.routes.scheduling_routes.ensure_scheduling_schema', broken_schema)

    with pytest.raises(HTTPException) as exception_info:
        ensure_database_ready()

    assert exception_info.value.status_code == 503
