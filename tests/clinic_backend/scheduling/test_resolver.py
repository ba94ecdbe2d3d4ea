import pytest

from clinic_backend.scheduling.resolver import ConflictResolver
from clinic_backend.scheduling.schemas import ResolutionPreferences
from clinic_backend.scheduling.store import SqlAlchemyScheduleStore
from tests.clinic_backend.calendar_days import MONDAY, TUESDAY


@pytest.fixture
def resolver(scheduling_db, therapist) -> ConflictResolver:
    return ConflictResolver(SqlAlchemyScheduleStore(scheduling_db))


def test_resolve_prefers_earlier_at_smallest_shift(resolver, add_session) -> None:
    add_session('10:00', duration=30)

    result = resolver.resolve(
        'therapist-1',
        MONDAY,
        30,
        ResolutionPreferences(preferred_time='10:00', max_time_shift=60),
    )

    assert result.resolved is True
    assert result.suggested_time == '09:30'
    assert result.suggested_date == MONDAY
    assert result.reason == 'Found available slot 30 minutes earlier'


def test_resolve_returns_preferred_time_when_free(resolver) -> None:
    result = resolver.resolve('therapist-1', MONDAY, 30, ResolutionPreferences(preferred_time='11:00'))

    assert result.suggested_time == '11:00'
    assert result.reason == 'Found available slot 0 minutes earlier'


def test_resolve_moves_later_when_earlier_is_blocked(resolver, add_session) -> None:
    add_session('09:00', duration=90)

    result = resolver.resolve(
        'therapist-1',
        MONDAY,
        30,
        ResolutionPreferences(preferred_time='10:00', max_time_shift=60),
    )

    assert result.suggested_time == '10:30'
    assert result.reason == 'Found available slot 30 minutes later'


def test_resolve_keeps_candidates_inside_working_hours(resolver) -> None:
    result = resolver.resolve(
        'therapist-1',
        MONDAY,
        60,
        ResolutionPreferences(preferred_time='16:30', max_time_shift=60),
    )

    assert result.suggested_time == '16:00'
    assert result.reason == 'Found available slot 30 minutes earlier'


def test_resolve_falls_back_to_first_free_slot(resolver, add_session) -> None:
    add_session('09:00', duration=240)

    result = resolver.resolve(
        'therapist-1',
        MONDAY,
        30,
        ResolutionPreferences(preferred_time='10:00', max_time_shift=30),
    )

    assert result.resolved is True
    assert result.suggested_time == '13:00'
    assert result.reason == 'Found first available slot'


def test_resolve_without_preference_scans_from_opening(resolver, add_session, add_break) -> None:
    add_break('09:30', '10:00')
    add_session('09:00', duration=30)

    result = resolver.resolve('therapist-1', MONDAY, 45)

    assert result.suggested_time == '10:00'
    assert result.reason == 'Found first available slot'


def test_resolve_zero_shift_only_tries_preferred_time(resolver, add_session) -> None:
    add_session('10:00', duration=30)

    result = resolver.resolve(
        'therapist-1',
        MONDAY,
        30,
        ResolutionPreferences(preferred_time='10:00', max_time_shift=0),
    )

    assert result.suggested_time == '09:00'
    assert result.reason == 'Found first available slot'


def test_resolve_ignores_excluded_session(resolver, add_session) -> None:
    booked = add_session('10:00', duration=30)

    result = resolver.resolve(
        'therapist-1',
        MONDAY,
        30,
        ResolutionPreferences(preferred_time='10:00', exclude_session_id=booked.id),
    )

    assert result.suggested_time == '10:00'


def test_resolve_fails_without_schedule(resolver) -> None:
    result = resolver.resolve('therapist-1', TUESDAY, 30, ResolutionPreferences(preferred_time='10:00'))

    assert result.resolved is False
    assert result.suggested_time is None
    assert result.reason == 'Therapist not available on this day'


def test_resolve_reports_full_day(resolver, add_session) -> None:
    add_session('09:00', duration=480)

    result = resolver.resolve('therapist-1', MONDAY, 30, ResolutionPreferences(preferred_time='12:00'))

    assert result.resolved is False
    assert result.reason == 'No available slots found for this day'


def test_resolve_does_not_roll_over_to_next_day(resolver, add_session) -> None:
    add_session('09:00', duration=480)

    result = resolver.resolve(
        'therapist-1',
        MONDAY,
        30,
        ResolutionPreferences(preferred_time='12:00', allow_different_day=True),
    )

    assert result.resolved is False
    assert result.suggested_date is None


def test_resolve_fails_closed_on_store_error() -> None:
    class BrokenStore:
        def load_day_snapshot(self, therapist_id, day, exclude_session_ids=()):
            raise ConnectionError('database unreachable')

    result = ConflictResolver(BrokenStore()).resolve('therapist-1', MONDAY, 30)

    assert result.resolved is False
    assert result.reason == 'Error resolving conflicts'
