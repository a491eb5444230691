"""
Engine, session factory and declarative base.

Production runs on PostgreSQL. A sqlite:// URL is accepted for local runs and
the test suite; it is served from a single shared connection.
"""

from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from satyashodhak.config import get_settings
from satyashodhak.utils.logger import get_logger

logger = get_logger(__name__)
settings = get_settings()


def build_engine(database_url: str) -> Engine:
    """
    Create the engine for a database URL.

    Args:
        database_url: SQLAlchemy URL, postgresql:// or sqlite://

    Returns:
        Configured Engine
    """
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_recycle=300,
        pool_size=10,
        max_overflow=20,
    )


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency yielding one session per request.

    Uncommitted work is rolled back if the request fails.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db() -> None:
    """Create the profiles, results, comments and vote tables if missing."""
    from satyashodhak.models import comment, profile, verification  # noqa: F401

    logger.info("Creating database tables", tables=sorted(Base.metadata.tables))
    Base.metadata.create_all(bind=engine)


def database_available() -> bool:
    """Run a trivial query to tell whether the database answers."""
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error("Database health check failed", error=str(e))
        return False
