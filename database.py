from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base
import databases

Base = declarative_base()


def make_engine(database_url: str):
    """Sync engine used only for creating tables."""
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(database_url)


def make_database(database_url: str) -> databases.Database:
    return databases.Database(database_url)


def create_tables(database_url: str):
    # models must be imported so their tables are registered on Base
    import models  # noqa: F401

    engine = make_engine(database_url)
    try:
        Base.metadata.create_all(bind=engine)
    finally:
        engine.dispose()
