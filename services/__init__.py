# Manifold v1.2.0
"""
Services package for Manifold.
Contains the snapshot repositories (file and database backends).
"""
from typing import Optional

from config import settings
from core.errors import ArgumentError
from services.snapshot_store import SnapshotRepository, FileSnapshotRepository


def get_snapshot_repository(backend: Optional[str] = None, **options) -> SnapshotRepository:
    """
    Build the snapshot repository for a backend name ("file" or "database").
    Defaults to the SNAPSHOT_BACKEND setting.
    """
    backend = (backend or settings.SNAPSHOT_BACKEND).strip().lower()

    if backend == "file":
        return FileSnapshotRepository(**options)
    if backend == "database":
        # Imported here so the file backend never opens a database engine
        from services.database_store import DatabaseSnapshotRepository
        return DatabaseSnapshotRepository(**options)

    raise ArgumentError(f"Unknown snapshot backend: '{backend}'", argument="backend")


__all__ = [
    "SnapshotRepository",
    "FileSnapshotRepository",
    "get_snapshot_repository"
]
