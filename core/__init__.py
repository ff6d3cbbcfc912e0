# Manifold v1.2.0
"""
Core package for Manifold.
Contains the manifest model, canonical hashing, snapshots, diffing,
diff formatting and migration plan generation.
"""
from core.errors import (
    ManifoldError,
    ArgumentError,
    NotFoundError,
    FormatError
)
from core.manifest import (
    Manifest,
    Entity,
    Property,
    ValueObject,
    EnumType,
    Rule,
    RuleSet,
    RuleSeverity,
    EntityConfiguration,
    PropertyConfiguration,
    Index,
    Relationship,
    Source,
    version_key
)
from core.canonical import (
    canonical_content,
    canonical_bytes,
    compute_manifest_hash
)
from core.snapshot import (
    Snapshot,
    create_snapshot,
    serialize_snapshot,
    deserialize_snapshot
)
from core.changes import (
    ChangeType,
    ChangeAspect,
    PropertyChange,
    EntityChange,
    ValueObjectChange,
    EnumChange,
    RuleChange,
    RuleSetChange,
    ConfigurationChange,
    DomainDiff
)
from core.classifier import BreakingChangeClassifier
from core.comparison import DiffEngine, compare_snapshots
from core.formatter import format_markdown, format_json, format_diff
from core.migration_plan import generate_migration_plan
from core.file_parser import parse_manifest_file, parse_manifest_content

__all__ = [
    "ManifoldError", "ArgumentError", "NotFoundError", "FormatError",
    "Manifest", "Entity", "Property", "ValueObject", "EnumType",
    "Rule", "RuleSet", "RuleSeverity",
    "EntityConfiguration", "PropertyConfiguration", "Index", "Relationship",
    "Source", "version_key",
    "canonical_content", "canonical_bytes", "compute_manifest_hash",
    "Snapshot", "create_snapshot", "serialize_snapshot", "deserialize_snapshot",
    "ChangeType", "ChangeAspect",
    "PropertyChange", "EntityChange", "ValueObjectChange", "EnumChange",
    "RuleChange", "RuleSetChange", "ConfigurationChange", "DomainDiff",
    "BreakingChangeClassifier",
    "DiffEngine", "compare_snapshots",
    "format_markdown", "format_json", "format_diff",
    "generate_migration_plan",
    "parse_manifest_file", "parse_manifest_content"
]
