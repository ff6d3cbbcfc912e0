"""
Snapshot storage service for Manifold.

Snapshots are written as one JSON document per (domain name, version):

    <base_dir>/[<name>/]<file_pattern>

The file pattern accepts {name} and {version} placeholders.
"""
import logging
from pathlib import Path
from typing import List, Optional, Union

from config import settings
from core.errors import ArgumentError, FormatError, NotFoundError
from core.manifest import Manifest, version_key
from core.snapshot import Snapshot, create_snapshot, deserialize_snapshot, serialize_snapshot

logger = logging.getLogger(__name__)


class SnapshotRepository:
    """Operations shared by every snapshot store."""

    def save(self, snapshot: Snapshot):
        raise NotImplementedError

    def load(self, name: str, version: str) -> Snapshot:
        raise NotImplementedError

    def list_versions(self, name: str) -> List[str]:
        raise NotImplementedError

    def exists(self, name: str, version: str) -> bool:
        raise NotImplementedError

    def delete(self, name: str, version: str) -> bool:
        raise NotImplementedError

    def create(self, manifest: Manifest, version: Optional[str] = None) -> Snapshot:
        """Snapshot a manifest and persist it."""
        snapshot = create_snapshot(manifest, version)
        self.save(snapshot)
        return snapshot

    def get_latest(self, name: str) -> Snapshot:
        """
        Load the highest version stored for a domain.

        Raises:
            NotFoundError: no snapshot exists for the domain
        """
        versions = self.list_versions(name)
        if not versions:
            raise NotFoundError(f"No snapshots found for '{name}'", location=name)
        return self.load(name, versions[-1])


def require_text(value: str, argument: str) -> str:
    if not value or not str(value).strip():
        raise ArgumentError(f"{argument.capitalize()} cannot be empty", argument=argument)
    return str(value).strip()


class FileSnapshotRepository(SnapshotRepository):
    """Snapshot store backed by JSON files on disk."""

    def __init__(
        self,
        base_dir: Union[str, Path, None] = None,
        file_pattern: Optional[str] = None,
        organize_by_domain: Optional[bool] = None,
        indented: Optional[bool] = None,
        include_schema: Optional[bool] = None,
    ):
        self.base_dir = Path(base_dir) if base_dir is not None else Path(settings.SNAPSHOT_DIR)
        self.file_pattern = file_pattern or settings.SNAPSHOT_FILE_PATTERN
        self.organize_by_domain = settings.ORGANIZE_BY_DOMAIN if organize_by_domain is None else organize_by_domain
        self.indented = settings.INDENTED_JSON if indented is None else indented
        self.include_schema = settings.INCLUDE_SCHEMA if include_schema is None else include_schema

    @property
    def file_suffix(self) -> str:
        """Extension of the files the pattern produces, e.g. ".json"."""
        return Path(self.file_pattern).suffix

    def domain_dir(self, name: str) -> Path:
        if self.organize_by_domain:
            return self.base_dir / name
        return self.base_dir

    def get_path(self, name: str, version: str) -> Path:
        """Path of the file holding the given snapshot."""
        name = require_text(name, "name")
        version = require_text(version, "version")
        filename = self.file_pattern.format(name=name, version=version)
        return self.domain_dir(name) / filename

    def save(self, snapshot: Snapshot) -> Path:
        """Write a snapshot to disk, replacing any existing file. Returns the file path."""
        if snapshot is None:
            raise ArgumentError("Snapshot is required", argument="snapshot")

        path = self.get_path(snapshot.name, snapshot.version)
        content = serialize_snapshot(snapshot, indented=self.indented, include_schema=self.include_schema)

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

        logger.info(f"Saved snapshot {snapshot.key} to {path}")
        return path

    def load(self, name_or_path: Union[str, Path], version: Optional[str] = None) -> Snapshot:
        """
        Load a snapshot by file path, or by domain name and version.

        Raises:
            NotFoundError: the snapshot file does not exist
            FormatError: the file is not a valid snapshot
        """
        if version is None:
            if not name_or_path or not str(name_or_path).strip():
                raise ArgumentError("File path cannot be empty", argument="path")
            path = Path(name_or_path)
        else:
            path = self.get_path(str(name_or_path), version)

        if not path.is_file():
            raise NotFoundError(f"Snapshot file not found: {path}", location=str(path))

        try:
            content = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise FormatError(f"Snapshot file is not valid UTF-8: {e}", source=str(path))

        snapshot = deserialize_snapshot(content, source=str(path))
        logger.debug(f"Loaded snapshot {snapshot.key} from {path}")
        return snapshot

    def exists(self, name: str, version: str) -> bool:
        return self.get_path(name, version).is_file()

    def list_versions(self, name: str) -> List[str]:
        """
        Versions stored for a domain, lowest first.
        Files that cannot be read as snapshots are skipped.
        """
        name = require_text(name, "name")
        directory = self.domain_dir(name)
        if not directory.is_dir():
            return []

        versions = []
        for path in sorted(directory.glob(f"*{self.file_suffix}")):
            if not path.is_file():
                continue
            try:
                snapshot = self.load(path)
            except (FormatError, OSError) as e:
                logger.warning(f"Skipping unreadable snapshot file {path}: {e}")
                continue
            if snapshot.name == name:
                versions.append(snapshot.version)

        return sorted(set(versions), key=version_key)

    def delete(self, name: str, version: str) -> bool:
        """Delete a stored snapshot. Returns False when there was nothing to delete."""
        path = self.get_path(name, version)
        if not path.is_file():
            return False

        path.unlink()
        logger.info(f"Deleted snapshot {name}@{version} ({path})")
        return True
