"""Automatic replacement-slot search used when rescheduling."""

import logging
from datetime import date

from clinic_backend.core import config
from clinic_backend.scheduling.openings import iterate_day_starts
from clinic_backend.scheduling.rules import is_slot_free, is_within_working_hours
from clinic_backend.scheduling.schemas import DaySnapshot, ResolutionPreferences, ResolutionResult
from clinic_backend.scheduling.store import ScheduleStore
from clinic_backend.scheduling.time_utils import minutes_to_time, time_to_minutes

logger = logging.getLogger(__name__)


class ConflictResolver:
    def __init__(self, store: ScheduleStore, step: int | None = None):
        self.store = store
        self.step = step or config.RESOLVER_STEP_MINUTES

    def resolve(
        self,
        therapist_id: str,
        day: date,
        duration: int,
        preferences: ResolutionPreferences | None = None,
    ) -> ResolutionResult:
        """Find the first free slot of ``duration`` near the preferred time, else anywhere that day.

        Around ``preferred_time`` the search widens in steps, trying the earlier
        candidate before the later one at each shift. Past ``max_time_shift`` it
        scans the working day from opening time. It never moves to another day.
        """
        preferences = preferences or ResolutionPreferences()

        try:
            snapshot = self.store.load_day_snapshot(
                therapist_id,
                day,
                exclude_session_ids=[preferences.exclude_session_id] if preferences.exclude_session_id else (),
            )
            if snapshot.schedule is None:
                return ResolutionResult(resolved=False, reason='Therapist not available on this day')

            if preferences.preferred_time is not None:
                result = self._search_near_preference(snapshot, day, duration, preferences)
                if result is not None:
                    return result

            for start in iterate_day_starts(snapshot, duration, self.step):
                if is_slot_free(start, duration, snapshot):
                    return ResolutionResult(
                        resolved=True,
                        suggested_time=minutes_to_time(start),
                        suggested_date=day,
                        reason='Found first available slot',
                    )
        except Exception:
            logger.exception('Conflict resolution failed for therapist %s on %s', therapist_id, day)
            return ResolutionResult(resolved=False, reason='Error resolving conflicts')

        return ResolutionResult(resolved=False, reason='No available slots found for this day')

    def _search_near_preference(
        self,
        snapshot: DaySnapshot,
        day: date,
        duration: int,
        preferences: ResolutionPreferences,
    ) -> ResolutionResult | None:
        preferred = time_to_minutes(preferences.preferred_time)
        max_shift = preferences.max_time_shift
        if max_shift is None:
            max_shift = config.DEFAULT_MAX_TIME_SHIFT_MINUTES

        for shift in range(0, max_shift + 1, self.step):
            for direction, candidate in (('earlier', preferred - shift), ('later', preferred + shift)):
                if candidate < 0:
                    continue
                if not is_within_working_hours(candidate, duration, snapshot.schedule):
                    continue
                if not is_slot_free(candidate, duration, snapshot):
                    continue

                return ResolutionResult(
                    resolved=True,
                    suggested_time=minutes_to_time(candidate),
                    suggested_date=day,
                    reason=f'Found available slot {shift} minutes {direction}',
                )

        return None
