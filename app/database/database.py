from app.core.config import get_settings
from sqlmodel import SQLModel, create_engine

import app.models  # noqa: F401  registers every table on SQLModel.metadata

DATABASE_URL = get_settings().DATABASE_URL

engine = create_engine(
    DATABASE_URL,
    pool_pre_ping=True,
    # The local gateway works on the engine from worker threads
    connect_args=(
        {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
    ),
)


def create_db_and_tables():
    """
    Create database tables defined in SQLModel metadata.

    Creates all tables in the configured database according to `SQLModel.metadata` using the module-level engine.
    """
    SQLModel.metadata.create_all(engine)
