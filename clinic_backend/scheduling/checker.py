"""Single-slot and bulk availability checks for one therapist."""

import logging
from datetime import date

from clinic_backend.core import config
from clinic_backend.scheduling import rules
from clinic_backend.scheduling.openings import list_open_slots
from clinic_backend.scheduling.schemas import (
    AvailabilityCheck,
    AvailabilityRequest,
    BulkSlot,
    Conflict,
    ConflictSeverity,
    ConflictType,
    TherapistDayStatus,
)
from clinic_backend.scheduling.store import ScheduleStore
from clinic_backend.scheduling.suggestions import suggest_time_slots
from clinic_backend.scheduling.time_utils import slot_key

logger = logging.getLogger(__name__)

CONFLICTS_REASON = 'Conflicts prevent scheduling'
WARNINGS_REASON = 'Scheduling possible with warnings'
CHECK_FAILED_REASON = 'Error checking availability'


def unverified_check() -> AvailabilityCheck:
    """The result returned whenever the rules could not be fully evaluated."""
    return AvailabilityCheck(
        available=False,
        reason=CHECK_FAILED_REASON,
        conflicts=[
            Conflict(
                type=ConflictType.THERAPIST_UNAVAILABLE,
                severity=ConflictSeverity.ERROR,
                message='Unable to verify availability',
            )
        ],
        suggestions=[],
    )


class AvailabilityChecker:
    def __init__(self, store: ScheduleStore):
        self.store = store

    def check_availability(
        self,
        request: AvailabilityRequest,
        ignored_session_ids: tuple[str, ...] = (),
    ) -> AvailabilityCheck:
        excluded = [request.exclude_session_id] if request.exclude_session_id else []
        excluded.extend(ignored_session_ids)

        try:
            snapshot = self.store.load_day_snapshot(
                request.therapist_id,
                request.date,
                exclude_session_ids=excluded,
            )

            # Every rule runs so the caller sees all reasons at once.
            conflicts: list[Conflict] = []
            schedule_conflict = rules.check_schedule_exists(request, snapshot)
            if schedule_conflict:
                conflicts.append(schedule_conflict)

            conflicts.extend(rules.check_existing_sessions(request, snapshot))

            break_conflict = rules.check_break_overlap(request, snapshot)
            if break_conflict:
                conflicts.append(break_conflict)

            working_hours_conflict = rules.check_working_hours(request, snapshot)
            if working_hours_conflict:
                conflicts.append(working_hours_conflict)

            status_conflict = rules.check_therapist_status(request, snapshot)
            if status_conflict:
                conflicts.append(status_conflict)

            suggestions = suggest_time_slots(request, snapshot) if conflicts else []
        except Exception:
            logger.exception(
                'Availability check failed for therapist %s on %s at %s',
                request.therapist_id,
                request.date,
                request.start_time,
            )
            return unverified_check()

        has_errors = any(conflict.severity == ConflictSeverity.ERROR for conflict in conflicts)
        has_warnings = any(conflict.severity == ConflictSeverity.WARNING for conflict in conflicts)

        if has_errors:
            reason = CONFLICTS_REASON
        elif has_warnings:
            reason = WARNINGS_REASON
        else:
            reason = None

        return AvailabilityCheck(
            available=not has_errors,
            reason=reason,
            conflicts=conflicts,
            suggestions=suggestions,
        )

    def check_bulk(
        self,
        therapist_id: str,
        day: date,
        slots: list[BulkSlot],
        exclude_session_ids: list[str] | None = None,
    ) -> dict[str, AvailabilityCheck]:
        """Check each slot on its own; accepting one slot holds nothing against its siblings."""
        exclude_session_id = exclude_session_ids[0] if exclude_session_ids else None

        results: dict[str, AvailabilityCheck] = {}
        for slot in slots:
            results[slot_key(slot.start_time, slot.end_time)] = self.check_availability(
                AvailabilityRequest(
                    therapist_id=therapist_id,
                    date=day,
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                    duration=slot.duration,
                    exclude_session_id=exclude_session_id,
                )
            )

        return results

    def list_open_slots(self, therapist_id: str, day: date, duration: int) -> list[str]:
        try:
            snapshot = self.store.load_day_snapshot(therapist_id, day)
            return list_open_slots(snapshot, duration)
        except Exception:
            logger.exception('Listing open slots failed for therapist %s on %s', therapist_id, day)
            return []

    def get_day_status(
        self,
        therapist_id: str,
        day: date,
        duration: int | None = None,
    ) -> TherapistDayStatus:
        duration = duration or config.DAY_STATUS_SLOT_MINUTES

        try:
            snapshot = self.store.load_day_snapshot(therapist_id, day)
            if not rules.is_therapist_bookable(snapshot.therapist):
                return TherapistDayStatus(
                    therapist_id=therapist_id,
                    date=day,
                    is_available=False,
                    reason='Therapist is not available for consultations',
                )

            if snapshot.schedule is None:
                return TherapistDayStatus(
                    therapist_id=therapist_id,
                    date=day,
                    is_available=False,
                    reason='Not scheduled for this day',
                )

            open_slots = list_open_slots(snapshot, duration, step=duration)
        except Exception:
            logger.exception('Day status lookup failed for therapist %s on %s', therapist_id, day)
            return TherapistDayStatus(
                therapist_id=therapist_id,
                date=day,
                is_available=False,
                reason=CHECK_FAILED_REASON,
            )

        if not open_slots:
            return TherapistDayStatus(
                therapist_id=therapist_id,
                date=day,
                is_available=False,
                reason='No available slots',
            )

        return TherapistDayStatus(
            therapist_id=therapist_id,
            date=day,
            is_available=True,
            next_available_slot=open_slots[0],
        )
