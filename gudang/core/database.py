"""
Gudang Database Configuration
SQLAlchemy engine, session factory and unit-of-work boundary
"""
from contextlib import contextmanager
from typing import Generator, Iterator

from sqlalchemy import MetaData, create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import settings
from .exceptions import GudangException, PersistenceError
from .logging import get_logger

logger = get_logger("database")


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": settings.DATABASE_POOL_SIZE,
        "max_overflow": settings.DATABASE_MAX_OVERFLOW,
        "pool_recycle": 3600,  # Recycle connections after 1 hour
        "pool_pre_ping": True,
    }


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_options(settings.DATABASE_URL),
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

# Metadata with naming convention for constraints
Base = declarative_base(metadata=MetaData(naming_convention={
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s"
}))


def get_db() -> Generator[Session, None, None]:
    """
    Dependency function to get database session

    Yields:
        Database session
    """
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error(f"Database session error: {e}")
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """
    Run a group of writes as one atomic unit.

    Commits when the block finishes, rolls back on any error. Business
    exceptions propagate unchanged; database errors surface as
    PersistenceError.
    """
    try:
        yield db
        db.commit()
    except GudangException:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Unit of work rolled back: {e}")
        raise PersistenceError(f"Database write failed: {e}") from e
    except Exception:
        db.rollback()
        raise


def init_db(bind=None):
    """
    Initialize database tables

    Imports every model module so all tables are registered with Base.
    """
    from gudang import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables created successfully")


def check_db_connection() -> bool:
    """
    Check if database connection is working

    Returns:
        True if connection is successful, False otherwise
    """
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {e}")
        return False
