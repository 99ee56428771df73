from sqlmodel import SQLModel, create_engine, Session
from quickflip.config import get_settings

_engine = None

def get_engine():
    global _engine
    if _engine is None:
        database_url = get_settings().database_url
        connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
        _engine = create_engine(database_url, echo=False, connect_args=connect_args)
    return _engine

def reset_engine():
    """Drop the cached engine so the next session picks up a new DATABASE_URL."""
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None

def create_db_and_tables():
    SQLModel.metadata.create_all(get_engine())

def get_session():
    return Session(get_engine())
