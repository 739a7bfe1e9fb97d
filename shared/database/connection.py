"""
Database connection management.
"""
from typing import Optional
from sqlalchemy import create_engine, Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from shared.configs.config import get_settings


def get_engine(database_url: Optional[str] = None) -> Engine:
    """
    Create a database engine.

    Args:
        database_url: Database URL (uses settings if None)

    Returns:
        SQLAlchemy engine
    """
    settings = get_settings()
    url = database_url or settings.database_url

    if url.startswith("sqlite"):
        # In-memory SQLite needs one shared connection to keep its tables
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=settings.debug, **kwargs)

    return create_engine(
        url,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
        echo=settings.debug
    )


def get_session(engine: Engine) -> Session:
    """
    Get database session from engine.

    Args:
        engine: SQLAlchemy engine

    Returns:
        Database session
    """
    SessionFactory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    return SessionFactory()


def init_db(engine: Optional[Engine] = None) -> Engine:
    """
    Initialize database tables.

    Args:
        engine: Engine to create tables on (a settings-based engine when None)

    Returns:
        The engine the tables were created on
    """
    from shared.database.models import Base

    engine = engine or get_engine()
    Base.metadata.create_all(bind=engine)
    return engine
