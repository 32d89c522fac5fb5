from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type
import logging
from fastapi import HTTPException

from .config import settings

logger = logging.getLogger(__name__)

engine: Optional[Engine] = None


@retry(
    stop=stop_after_attempt(settings.DB_CONNECT_ATTEMPTS),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception_type((Exception,)),
    reraise=True
)
def create_database_engine(url: Optional[str] = None) -> Engine:
    """Create database engine with retry logic."""
    url = url or settings.DATABASE_URL
    logger.info(f"Attempting to connect to database: {url.split('@')[1] if '@' in url else 'hidden'}")

    if url.startswith("sqlite"):
        new_engine = create_engine(
            url, echo=settings.DEBUG, connect_args={"check_same_thread": False}
        )
    else:
        new_engine = create_engine(
            url,
            echo=settings.DEBUG,
            pool_pre_ping=True,
            pool_recycle=300,  # Recycle connections every 5 minutes
            pool_size=10,
            max_overflow=20,
        )

    # Test the connection
    with new_engine.connect() as conn:
        conn.execute(text("SELECT 1"))
        logger.info("Database connection successful!")

    return new_engine


def init_engine(url: Optional[str] = None) -> Optional[Engine]:
    """Create the module-level engine, degrading to None if the database is down."""
    global engine
    try:
        engine = create_database_engine(url)
    except Exception as e:
        logger.error(f"Failed to create database engine after retries: {e}")
        engine = None
    return engine


def create_tables(target: Optional[Engine] = None) -> None:
    # Import models so they register with SQLModel metadata
    from .. import models  # noqa: F401

    SQLModel.metadata.create_all(target or engine)


def get_db():
    """Get database session."""
    if not engine:
        raise HTTPException(
            status_code=503,
            detail="Database is temporarily unavailable. Please try again later."
        )

    with Session(engine) as session:
        try:
            yield session
        finally:
            session.close()
