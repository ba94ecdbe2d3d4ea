import os
from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from clinic_backend.core import config


DATABASE_URL = os.getenv("DATABASE_URL", config.DATABASE_URL)

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, echo=config.SQL_ECHO, connect_args=_connect_args)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_scheduling_schema_checked = False


def ensure_scheduling_schema(bind=None) -> None:
    """Bring older scheduling tables up to the columns and indexes the engine reads."""
    global _scheduling_schema_checked

    if _scheduling_schema_checked:
        return

    with _schema_lock:
        if _scheduling_schema_checked:
            return

        target = bind or engine
        inspector = inspect(target)
        table_names = set(inspector.get_table_names())

        migrations = {
            'therapist_schedules': [
                ('break_start', 'ALTER TABLE therapist_schedules ADD COLUMN break_start VARCHAR(5)'),
                ('break_end', 'ALTER TABLE therapist_schedules ADD COLUMN break_end VARCHAR(5)'),
                ('is_active', 'ALTER TABLE therapist_schedules ADD COLUMN is_active BOOLEAN DEFAULT TRUE'),
            ],
            'patient_sessions': [
                ('patient_name', 'ALTER TABLE patient_sessions ADD COLUMN patient_name VARCHAR'),
                ('service_name', 'ALTER TABLE patient_sessions ADD COLUMN service_name VARCHAR'),
            ],
            'therapists': [
                ('can_take_consultations', 'ALTER TABLE therapists ADD COLUMN can_take_consultations BOOLEAN DEFAULT TRUE'),
            ],
        }

        with target.begin() as connection:
            for table_name, migration_steps in migrations.items():
                if table_name not in table_names:
                    continue

                existing_columns = {column['name'] for column in inspector.get_columns(table_name)}
                for column_name, statement in migration_steps:
                    if column_name not in existing_columns:
                        connection.execute(text(statement))

            if 'patient_sessions' in table_names:
                connection.execute(
                    text(
                        'CREATE INDEX IF NOT EXISTS idx_patient_sessions_therapist_date '
                        'ON patient_sessions(therapist_id, scheduled_date)'
                    )
                )
            if 'therapist_schedules' in table_names:
                connection.execute(
                    text(
                        'CREATE INDEX IF NOT EXISTS idx_therapist_schedules_day_active '
                        'ON therapist_schedules(therapist_id, day_of_week, is_active)'
                    )
                )

        _scheduling_schema_checked = True
