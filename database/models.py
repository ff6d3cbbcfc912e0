"""
Manifold Database Models

Snapshot documents stored one row per (domain name, version).
"""
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, Index, UniqueConstraint
from database.connection import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================
# SNAPSHOTS
# ============================================================

class SnapshotRecord(Base):
    """
    A persisted domain snapshot.
    The full snapshot JSON document is kept in `document`; the other
    columns duplicate its identity fields for lookups.
    """
    __tablename__ = "domain_snapshots"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    version = Column(String(64), nullable=False)
    hash = Column(String(64), nullable=False, index=True)  # SHA-256 of canonical content

    created_at = Column(DateTime(timezone=True), nullable=False)  # Snapshot creation time
    saved_at = Column(DateTime(timezone=True), default=_utcnow)  # When the row was written

    document = Column(Text, nullable=False)  # Serialized snapshot JSON

    __table_args__ = (
        UniqueConstraint("name", "version", name="uq_snapshot_name_version"),
        Index("idx_snapshot_name", "name"),
    )

    def __repr__(self) -> str:
        return f"<SnapshotRecord {self.name}@{self.version}>"
