"""
Database-backed snapshot storage for Manifold.

Each snapshot is one row in the domain_snapshots table, unique on
(name, version). The row keeps the serialized snapshot document, so a
loaded snapshot is identical to one loaded from a file.
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import sessionmaker

from core.errors import ArgumentError, NotFoundError
from core.manifest import version_key
from core.snapshot import Snapshot, deserialize_snapshot, serialize_snapshot
from database.connection import session_scope
from database.models import SnapshotRecord
from services.snapshot_store import SnapshotRepository, require_text

logger = logging.getLogger(__name__)


class DatabaseSnapshotRepository(SnapshotRepository):
    """Snapshot store backed by a SQL table."""

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.session_factory = session_factory

    def _find(self, db, name: str, version: str) -> Optional[SnapshotRecord]:
        return db.query(SnapshotRecord).filter(
            SnapshotRecord.name == name,
            SnapshotRecord.version == version
        ).first()

    def save(self, snapshot: Snapshot) -> int:
        """Insert or replace a snapshot row. Returns the row id."""
        if snapshot is None:
            raise ArgumentError("Snapshot is required", argument="snapshot")

        document = serialize_snapshot(snapshot, indented=False)

        with session_scope(self.session_factory) as db:
            record = self._find(db, snapshot.name, snapshot.version)
            if record is None:
                record = SnapshotRecord(name=snapshot.name, version=snapshot.version)
                db.add(record)
            record.hash = snapshot.hash
            record.created_at = snapshot.created_at
            record.document = document
            db.flush()
            record_id = record.id

        logger.info(f"Saved snapshot {snapshot.key} to database (id={record_id})")
        return record_id

    def load(self, name: str, version: str) -> Snapshot:
        """
        Raises:
            NotFoundError: no row for (name, version)
            FormatError: the stored document is not a valid snapshot
        """
        name = require_text(name, "name")
        version = require_text(version, "version")

        with session_scope(self.session_factory) as db:
            record = self._find(db, name, version)
            if record is None:
                raise NotFoundError(f"Snapshot not found: {name}@{version}", location=f"{name}@{version}")
            document = record.document

        return deserialize_snapshot(document, source=f"database:{name}@{version}")

    def exists(self, name: str, version: str) -> bool:
        name = require_text(name, "name")
        version = require_text(version, "version")
        with session_scope(self.session_factory) as db:
            return self._find(db, name, version) is not None

    def list_versions(self, name: str) -> List[str]:
        name = require_text(name, "name")
        with session_scope(self.session_factory) as db:
            rows = db.query(SnapshotRecord.version).filter(SnapshotRecord.name == name).all()
        return sorted((row[0] for row in rows), key=version_key)

    def delete(self, name: str, version: str) -> bool:
        name = require_text(name, "name")
        version = require_text(version, "version")
        with session_scope(self.session_factory) as db:
            record = self._find(db, name, version)
            if record is None:
                return False
            db.delete(record)

        logger.info(f"Deleted snapshot {name}@{version} from database")
        return True
