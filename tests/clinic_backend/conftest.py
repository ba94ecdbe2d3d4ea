import os
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from clinic_backend.database import Base  # noqa: E402
from clinic_backend.models.schedule import TherapistSchedule  # noqa: E402
from clinic_backend.models.session import PatientSession  # noqa: E402
from clinic_backend.models.therapist import Therapist  # noqa: E402
from tests.clinic_backend.calendar_days import MONDAY  # noqa: E402

SCHEDULING_TABLES = [Therapist.__table__, TherapistSchedule.__table__, PatientSession.__table__]


@pytest.fixture
def scheduling_db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=SCHEDULING_TABLES)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine, tables=list(reversed(SCHEDULING_TABLES)))


@pytest.fixture
def therapist(scheduling_db):
    """An active therapist working Mondays 09:00-17:00 with no break."""
    record = Therapist(id='therapist-1', first_name='Dana', last_name='Reyes')
    scheduling_db.add(record)
    scheduling_db.add(
        TherapistSchedule(
            id='schedule-mon',
            therapist_id=record.id,
            day_of_week='MONDAY',
            start_time='09:00',
            end_time='17:00',
        )
    )
    scheduling_db.commit()
    return record


@pytest.fixture
def add_break(scheduling_db, therapist):
    def _add_break(break_start: str = '12:00', break_end: str = '13:00') -> None:
        schedule = scheduling_db.get(TherapistSchedule, 'schedule-mon')
        schedule.break_start = break_start
        schedule.break_end = break_end
        scheduling_db.commit()

    return _add_break


@pytest.fixture
def add_session(scheduling_db, therapist):
    def _add_session(
        scheduled_time: str,
        duration: int = 60,
        status: str = 'SCHEDULED',
        scheduled_date: date = MONDAY,
        session_id: str | None = None,
        patient_name: str = 'Sam Patel',
        service_name: str = 'Speech Therapy',
    ) -> PatientSession:
        session = PatientSession(
            therapist_id=therapist.id,
            scheduled_date=scheduled_date,
            scheduled_time=scheduled_time,
            duration=duration,
            status=status,
            patient_name=patient_name,
            service_name=service_name,
        )
        if session_id:
            session.id = session_id
        scheduling_db.add(session)
        scheduling_db.commit()
        scheduling_db.refresh(session)
        return session

    return _add_session
