"""Nearest-fit alternatives for a slot that cannot be booked as requested."""

from clinic_backend.core import config
from clinic_backend.scheduling.rules import (
    is_slot_free,
    is_therapist_bookable,
    is_within_working_hours,
)
from clinic_backend.scheduling.schemas import (
    AvailabilityRequest,
    DaySnapshot,
    SuggestionPriority,
    TimeSlotSuggestion,
)
from clinic_backend.scheduling.time_utils import minutes_to_time, normalize_time, time_to_minutes


def _first_free_start(candidates, duration: int, snapshot: DaySnapshot) -> int | None:
    for start in candidates:
        if is_within_working_hours(start, duration, snapshot.schedule) and is_slot_free(start, duration, snapshot):
            return start
    return None


def suggest_time_slots(
    request: AvailabilityRequest,
    snapshot: DaySnapshot,
    step: int | None = None,
) -> list[TimeSlotSuggestion]:
    """Propose at most one earlier and one later slot on the same day.

    The search is greedy: each direction stops at its first free slot. When
    neither direction finds one, a single low-priority hint points at the
    start of the working day.
    """
    schedule = snapshot.schedule
    if schedule is None or not is_therapist_bookable(snapshot.therapist):
        return []

    step = step or config.SUGGESTION_STEP_MINUTES
    duration = request.duration
    requested = time_to_minutes(request.start_time)
    work_start = time_to_minutes(schedule.start_time)
    work_end = time_to_minutes(schedule.end_time)

    suggestions: list[TimeSlotSuggestion] = []

    earlier = _first_free_start(
        range(requested - duration, work_start - 1, -step),
        duration,
        snapshot,
    )
    if earlier is not None:
        suggestions.append(
            TimeSlotSuggestion(
                time=minutes_to_time(earlier),
                duration=duration,
                reason='Earlier time slot available',
                priority=SuggestionPriority.MEDIUM,
            )
        )

    later = _first_free_start(
        range(requested + duration, work_end - duration + 1, step),
        duration,
        snapshot,
    )
    if later is not None:
        suggestions.append(
            TimeSlotSuggestion(
                time=minutes_to_time(later),
                duration=duration,
                reason='Later time slot available',
                priority=SuggestionPriority.MEDIUM,
            )
        )

    if not suggestions:
        suggestions.append(
            TimeSlotSuggestion(
                time=normalize_time(schedule.start_time),
                duration=duration,
                reason='Consider scheduling on a different day',
                priority=SuggestionPriority.LOW,
            )
        )

    return suggestions
