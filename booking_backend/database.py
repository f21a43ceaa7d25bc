import os
from dotenv import load_dotenv
from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker


load_dotenv()
DATABASE_URL = os.getenv("DATABASE_URL")

engine = create_engine(DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_appointment_schema_checked = False
_blocked_time_schema_checked = False


def ensure_appointment_schema() -> None:
    global _appointment_schema_checked

    if _appointment_schema_checked:
        return

    with _schema_lock:
        if _appointment_schema_checked:
            return

        inspector = inspect(engine)

        if 'appointments' not in inspector.get_table_names():
            _appointment_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('appointments')}
        migration_steps = [
            ('appointment_type_id', 'ALTER TABLE appointments ADD COLUMN appointment_type_id INTEGER'),
            ('duration_minutes', 'ALTER TABLE appointments ADD COLUMN duration_minutes INTEGER'),
            ('client_phone', 'ALTER TABLE appointments ADD COLUMN client_phone VARCHAR'),
            ('notes', 'ALTER TABLE appointments ADD COLUMN notes VARCHAR'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_owner_start ON appointments(owner_id, start_time)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_owner_status ON appointments(owner_id, status)')
            )

        _appointment_schema_checked = True


def ensure_blocked_time_schema() -> None:
    global _blocked_time_schema_checked

    if _blocked_time_schema_checked:
        return

    with _schema_lock:
        if _blocked_time_schema_checked:
            return

        inspector = inspect(engine)

        if 'blocked_times' not in inspector.get_table_names():
            _blocked_time_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('blocked_times')}
        migration_steps = [
            ('reason', 'ALTER TABLE blocked_times ADD COLUMN reason VARCHAR'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_blocked_times_owner_range ON blocked_times(owner_id, start_time, end_time)')
            )

        _blocked_time_schema_checked = True
