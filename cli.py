# Manifold v1.2.0
#!/usr/bin/env python3
"""
Manifold CLI

Command-line interface for snapshotting domain manifests, diffing
snapshots and generating migration plans.

Exit codes: 0 success, 1 error, 2 breaking changes (diff --fail-on-breaking).
"""
import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from config import settings
from core.errors import ArgumentError, ManifoldError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_BREAKING = 2


def _write_or_print(content: str, output: Optional[str]):
    if output:
        path = Path(output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        print(f"Written to {path}")
    else:
        print(content, end="" if content.endswith("\n") else "\n")


def _load_snapshot_file(path: str):
    from services import FileSnapshotRepository
    return FileSnapshotRepository().load(path)


def _plan_timestamp() -> Optional[datetime]:
    if not settings.PLAN_TIMESTAMP:
        return None
    try:
        value = datetime.fromisoformat(settings.PLAN_TIMESTAMP.replace("Z", "+00:00"))
    except ValueError:
        raise ArgumentError(
            f"Invalid MANIFOLD_PLAN_TIMESTAMP: '{settings.PLAN_TIMESTAMP}'",
            argument="PLAN_TIMESTAMP",
        )
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def take_snapshot(manifest_path: str, output_dir: Optional[str], version: Optional[str], backend: Optional[str]) -> int:
    """Snapshot a manifest file and store it."""
    from core.file_parser import parse_manifest_file
    from services import get_snapshot_repository

    manifest = parse_manifest_file(manifest_path)

    options = {}
    if (backend or settings.SNAPSHOT_BACKEND) == "file" and output_dir:
        options["base_dir"] = output_dir
    repository = get_snapshot_repository(backend, **options)

    snapshot = repository.create(manifest, version)
    print(f"Snapshot created: {snapshot.name} {snapshot.version}")
    print(f"  Hash: {snapshot.hash}")
    return EXIT_OK


def diff_snapshots(before_path: str, after_path: str, fmt: str, output: Optional[str], fail_on_breaking: bool) -> int:
    """Diff two snapshot files."""
    from core.comparison import DiffEngine
    from core.formatter import format_diff

    before = _load_snapshot_file(before_path)
    after = _load_snapshot_file(after_path)

    diff = DiffEngine().compare(before, after)
    _write_or_print(format_diff(diff, fmt), output)

    if fail_on_breaking and diff.has_breaking_changes:
        print(
            f"⚠️  {len(diff.breaking_change_descriptions)} breaking change(s) detected",
            file=sys.stderr
        )
        return EXIT_BREAKING
    return EXIT_OK


def migration_plan(before_path: str, after_path: str, output: Optional[str]) -> int:
    """Generate a migration plan between two snapshot files."""
    from core.comparison import DiffEngine
    from core.migration_plan import generate_migration_plan

    before = _load_snapshot_file(before_path)
    after = _load_snapshot_file(after_path)

    diff = DiffEngine().compare(before, after)
    _write_or_print(generate_migration_plan(diff, generated_at=_plan_timestamp()), output)
    return EXIT_OK


def list_versions(name: str, directory: Optional[str], backend: Optional[str]) -> int:
    """List stored versions of a domain."""
    from services import get_snapshot_repository

    options = {}
    if (backend or settings.SNAPSHOT_BACKEND) == "file" and directory:
        options["base_dir"] = directory
    repository = get_snapshot_repository(backend, **options)

    versions = repository.list_versions(name)
    if not versions:
        print(f"No snapshots found for '{name}'")
        return EXIT_OK

    print(f"\n{'Version':<20} {'Hash':<64}")
    print("=" * 85)
    for version in versions:
        snapshot = repository.load(name, version)
        print(f"{version:<20} {snapshot.hash:<64}")
    print(f"\nTotal: {len(versions)} version(s)")
    return EXIT_OK


def init_db() -> int:
    """Initialize the database."""
    from database import init_db as db_init

    print("Initializing database...")
    db_init()
    print("Database initialized successfully!")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="manifold",
        description="Manifold - domain manifest versioning",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # snapshot
    snapshot_parser = subparsers.add_parser("snapshot", help="Snapshot a manifest file")
    snapshot_parser.add_argument("--manifest", required=True, help="Manifest JSON file")
    snapshot_parser.add_argument("--output", help="Snapshot directory (file backend)")
    snapshot_parser.add_argument("--version", dest="snapshot_version", help="Override the manifest version")
    snapshot_parser.add_argument("--backend", choices=["file", "database"], help="Snapshot store")

    # diff
    diff_parser = subparsers.add_parser("diff", help="Diff two snapshot files")
    diff_parser.add_argument("before", help="Before snapshot file")
    diff_parser.add_argument("after", help="After snapshot file")
    diff_parser.add_argument("--format", dest="fmt", default="md", choices=["md", "markdown", "json"], help="Output format")
    diff_parser.add_argument("--output", help="Write the report to a file")
    diff_parser.add_argument("--fail-on-breaking", action="store_true", help="Exit with code 2 on breaking changes")

    # migrate-plan
    plan_parser = subparsers.add_parser("migrate-plan", help="Generate a migration plan")
    plan_parser.add_argument("before", help="Before snapshot file")
    plan_parser.add_argument("after", help="After snapshot file")
    plan_parser.add_argument("--output", help="Write the plan to a file")

    # versions
    versions_parser = subparsers.add_parser("versions", help="List stored versions of a domain")
    versions_parser.add_argument("name", help="Domain name")
    versions_parser.add_argument("--dir", dest="directory", help="Snapshot directory (file backend)")
    versions_parser.add_argument("--backend", choices=["file", "database"], help="Snapshot store")

    # init-db
    subparsers.add_parser("init-db", help="Initialize the database")

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    if not args.command:
        parser.print_help()
        return EXIT_OK

    try:
        if args.command == "snapshot":
            return take_snapshot(args.manifest, args.output, args.snapshot_version, args.backend)
        elif args.command == "diff":
            return diff_snapshots(args.before, args.after, args.fmt, args.output, args.fail_on_breaking)
        elif args.command == "migrate-plan":
            return migration_plan(args.before, args.after, args.output)
        elif args.command == "versions":
            return list_versions(args.name, args.directory, args.backend)
        elif args.command == "init-db":
            return init_db()
    except ManifoldError as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.debug(f"{e.error_code}: {e.details}")
        return EXIT_ERROR
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
