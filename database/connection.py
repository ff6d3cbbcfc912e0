"""
Database connection and session management.

Supports multiple database backends:
- SQLite (default, file-based)
- PostgreSQL
- MySQL
- SQL Server
"""
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from config import settings

logger = logging.getLogger(__name__)


def get_database_type(url: Optional[str] = None) -> str:
    """Determine database type from URL."""
    url = (url or settings.DATABASE_URL).lower()
    if url.startswith("sqlite"):
        return "sqlite"
    elif url.startswith("postgresql") or url.startswith("postgres"):
        return "postgresql"
    elif url.startswith("mysql"):
        return "mysql"
    elif url.startswith("mssql"):
        return "mssql"
    else:
        return "unknown"


def create_db_engine(url: Optional[str] = None):
    """Create database engine with appropriate settings for the database type."""
    url = url or settings.DATABASE_URL
    db_type = get_database_type(url)

    if db_type == "sqlite":
        # SQLite - simple file-based, no connection pooling
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=settings.DEBUG
        )
    else:
        # Production databases - use connection pooling
        return create_engine(
            url,
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            pool_timeout=settings.DATABASE_POOL_TIMEOUT,
            pool_pre_ping=True,  # Verify connections before use
            echo=settings.DEBUG
        )


engine = create_db_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


@contextmanager
def session_scope(session_factory=None):
    """Session that commits on success and rolls back on error."""
    db = (session_factory or SessionLocal)()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def _ensure_sqlite_directory(bind) -> None:
    """SQLite creates the file but not its parent directory."""
    if bind.dialect.name != "sqlite":
        return
    database = bind.url.database
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)


def init_db(bind=None):
    """Initialize database tables."""
    from database.models import SnapshotRecord  # noqa: F401  registers the table

    bind = bind or engine
    _ensure_sqlite_directory(bind)
    Base.metadata.create_all(bind=bind)
    logger.info(f"Database initialized: {get_database_type(str(bind.url))}")
