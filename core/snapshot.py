"""
Domain snapshots for Manifold.

A snapshot wraps one manifest with its name, version, content hash and
creation time. Snapshots are created once and never mutated.
"""
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError

from core.canonical import compute_manifest_hash, manifest_document, stamp_hash
from core.errors import ArgumentError, FormatError
from core.manifest import Manifest, version_key

logger = logging.getLogger(__name__)


SCHEMA_URI = "https://manifold.dev/schemas/snapshot-v1.json"


@dataclass(frozen=True)
class Snapshot:
    """A named, versioned, hashed manifest at a point in time."""
    name: str
    version: str
    hash: str
    created_at: datetime
    manifest: Manifest

    @property
    def key(self) -> str:
        return f"{self.name}@{self.version}"


def create_snapshot(manifest: Manifest, version: Optional[str] = None) -> Snapshot:
    """
    Create a snapshot from a manifest.

    Args:
        manifest: The fully materialized manifest
        version: Optional version override (defaults to the manifest's version)

    Returns:
        Snapshot whose hash is the manifest's content hash
    """
    if manifest is None:
        raise ArgumentError("Manifest is required", argument="manifest")

    if version:
        manifest = manifest.with_version(version)

    manifest = stamp_hash(manifest)

    return Snapshot(
        name=manifest.name,
        version=manifest.version,
        hash=manifest.hash,
        created_at=manifest.created_at,
        manifest=manifest,
    )


def snapshot_document(snapshot: Snapshot, include_schema: bool = True) -> dict:
    """Build the persisted JSON document for a snapshot."""
    if snapshot is None:
        raise ArgumentError("Snapshot is required", argument="snapshot")

    doc = {}
    if include_schema:
        doc["$schema"] = SCHEMA_URI
    doc["name"] = snapshot.name
    doc["version"] = snapshot.version
    doc["hash"] = snapshot.hash
    doc["createdAt"] = _format_timestamp(snapshot.created_at)
    doc["manifest"] = manifest_document(snapshot.manifest)
    return doc


def serialize_snapshot(snapshot: Snapshot, indented: bool = True, include_schema: bool = True) -> str:
    """Serialize a snapshot to its JSON text form."""
    doc = snapshot_document(snapshot, include_schema=include_schema)
    return json.dumps(
        doc,
        indent=2 if indented else None,
        sort_keys=True,
        ensure_ascii=False,
    ) + "\n"


def deserialize_snapshot(content: str, source: Optional[str] = None) -> Snapshot:
    """
    Parse snapshot JSON text.

    Args:
        content: The JSON text
        source: Where the content came from, for error messages

    Raises:
        ArgumentError: content is None
        FormatError: content is blank or not a well-formed snapshot
    """
    if content is None:
        raise ArgumentError("Snapshot content is required", argument="content")
    if not content.strip():
        raise FormatError("Snapshot content is empty", source=source)

    try:
        doc = json.loads(content)
    except json.JSONDecodeError as e:
        raise FormatError(f"Invalid snapshot JSON: {e}", source=source)

    return snapshot_from_document(doc, source=source)


def snapshot_from_document(doc: dict, source: Optional[str] = None) -> Snapshot:
    """Build a Snapshot from an already-parsed document."""
    if not isinstance(doc, dict):
        raise FormatError("Snapshot document must be a JSON object", source=source)

    missing = [k for k in ("name", "version", "hash", "createdAt", "manifest") if k not in doc]
    if missing:
        raise FormatError(f"Snapshot is missing required fields: {', '.join(missing)}", source=source)

    try:
        manifest = Manifest.model_validate(doc["manifest"])
    except ValidationError as e:
        raise FormatError(f"Invalid manifest in snapshot: {e}", source=source)

    try:
        version_key(doc["version"])
    except ArgumentError as e:
        raise FormatError(f"Invalid snapshot version: {e}", source=source)

    created_at = _parse_timestamp(doc["createdAt"], source)

    stored_hash = doc["hash"]
    if not isinstance(stored_hash, str) or not stored_hash:
        raise FormatError("Snapshot hash must be a non-empty string", source=source)

    actual_hash = compute_manifest_hash(manifest)
    if actual_hash != stored_hash:
        logger.warning(
            f"Snapshot hash mismatch for {doc['name']} {doc['version']}: "
            f"stored {stored_hash}, computed {actual_hash}"
        )

    return Snapshot(
        name=str(doc["name"]),
        version=str(doc["version"]),
        hash=stored_hash,
        created_at=created_at,
        manifest=manifest,
    )


def _format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def _parse_timestamp(value, source: Optional[str]) -> datetime:
    if not isinstance(value, str):
        raise FormatError("Snapshot createdAt must be an ISO 8601 string", source=source)
    try:
        # fromisoformat only accepts a trailing "Z" from Python 3.11
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise FormatError(f"Invalid snapshot createdAt: '{value}'", source=source)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
