"""Enumerate bookable start times across a therapist's working day."""

from clinic_backend.core import config
from clinic_backend.scheduling.rules import is_slot_free, is_therapist_bookable
from clinic_backend.scheduling.schemas import DaySnapshot
from clinic_backend.scheduling.time_utils import minutes_to_time, time_to_minutes


def iterate_day_starts(snapshot: DaySnapshot, duration: int, step: int):
    """Yield every start minute from the opening time whose slot still ends by closing time."""
    schedule = snapshot.schedule
    if schedule is None:
        return

    current = time_to_minutes(schedule.start_time)
    work_end = time_to_minutes(schedule.end_time)
    while current + duration <= work_end:
        yield current
        current += step


def list_open_slots(snapshot: DaySnapshot, duration: int, step: int | None = None) -> list[str]:
    if not is_therapist_bookable(snapshot.therapist):
        return []

    step = step or config.OPEN_SLOT_STEP_MINUTES
    return [
        minutes_to_time(start)
        for start in iterate_day_starts(snapshot, duration, step)
        if is_slot_free(start, duration, snapshot)
    ]
