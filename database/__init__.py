# Manifold v1.2.0
"""
Database package for Manifold snapshot storage.

Supports multiple SQL backends:
- SQLite (default)
- PostgreSQL
- MySQL
- SQL Server
"""
from database.connection import (
    Base, engine, SessionLocal, session_scope, init_db,
    create_db_engine, get_database_type
)
from database.models import SnapshotRecord

__all__ = [
    "Base", "engine", "SessionLocal", "session_scope", "init_db",
    "create_db_engine", "get_database_type",
    "SnapshotRecord"
]
