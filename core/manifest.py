"""
Manifest model for Manifold.

A manifest is the complete, versioned description of a domain: its
entities, value objects, enums, rule sets and persistence configuration.
Manifests are immutable once constructed and strictly tree-shaped; entities
refer to each other by type name only.

Field names are snake_case in Python and camelCase in JSON documents.
"""
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel, BeforeValidator, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from core.errors import ArgumentError


DEFAULT_UNDERLYING_TYPE = "int"

_VERSION_RE = re.compile(
    r"^(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:\.(\d+))?(?:-([0-9A-Za-z][0-9A-Za-z.-]*))?$"
)


def version_key(version: str) -> tuple:
    """
    Sort key for a dotted manifest version.

    Accepts 1-4 numeric components with an optional "-prerelease" suffix.
    Missing components count as zero and a prerelease sorts before its
    release, so "1.2" == "1.2.0" and "2.0.0-rc1" < "2.0.0".
    """
    if not isinstance(version, str) or not version.strip():
        raise ArgumentError("Version cannot be empty", argument="version")

    match = _VERSION_RE.match(version.strip())
    if not match:
        raise ArgumentError(f"Invalid version: '{version}'", argument="version")

    numbers = tuple(int(part) if part is not None else 0 for part in match.groups()[:4])
    prerelease = match.group(5)
    if prerelease is None:
        return numbers + (1, "")
    return numbers + (0, prerelease)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


OptionalText = Annotated[Optional[str], BeforeValidator(_blank_to_none)]


def _ensure_unique(items, key, label: str) -> None:
    seen = set()
    for item in items:
        item_key = key(item)
        if item_key in seen:
            raise ValueError(f"Duplicate {label}: {item_key}")
        seen.add(item_key)


class ManifestModel(BaseModel):
    """Base for all manifest value types."""

    class Config:
        frozen = True
        populate_by_name = True
        alias_generator = to_camel
        extra = "ignore"


class RuleSeverity(str, Enum):
    INFO = "Info"
    WARNING = "Warning"
    ERROR = "Error"
    CRITICAL = "Critical"


# ============================================================
# ENTITIES & VALUE OBJECTS
# ============================================================

class Property(ManifestModel):
    """A single property of an entity or value object."""
    name: str
    type_name: str
    is_required: bool = False
    is_collection: bool = False
    max_length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    is_concurrency_token: bool = False
    is_computed: bool = False
    metadata: Dict[str, Any] = {}


class Entity(ManifestModel):
    """An entity with identity (KeyProperties) and a set of properties."""
    name: str
    type_name: str
    namespace: OptionalText = None
    properties: Tuple[Property, ...] = ()
    key_properties: Tuple[str, ...] = ()
    table_name: OptionalText = None
    schema_name: OptionalText = None
    metadata: Dict[str, Any] = {}

    @model_validator(mode="after")
    def _unique_properties(self):
        _ensure_unique(self.properties, lambda p: p.name, f"property in entity '{self.name}'")
        return self


class ValueObject(ManifestModel):
    """A value object: compared by value, no identity."""
    name: str
    type_name: str
    namespace: OptionalText = None
    properties: Tuple[Property, ...] = ()
    metadata: Dict[str, Any] = {}

    @model_validator(mode="after")
    def _unique_properties(self):
        _ensure_unique(self.properties, lambda p: p.name, f"property in value object '{self.name}'")
        return self


class EnumType(ManifestModel):
    """An enumeration with its name -> value mapping."""
    name: str
    type_name: str
    namespace: OptionalText = None
    underlying_type: str = DEFAULT_UNDERLYING_TYPE
    values: Dict[str, Union[int, str]] = {}
    metadata: Dict[str, Any] = {}


# ============================================================
# RULES
# ============================================================

class Rule(ManifestModel):
    """
    A validation rule, tracked by identity only.

    The expression is carried as opaque text and never evaluated.
    """
    id: str
    category: str
    target_type: str
    message: OptionalText = None
    severity: RuleSeverity = RuleSeverity.ERROR
    tags: Tuple[str, ...] = ()
    expression: OptionalText = None
    metadata: Dict[str, Any] = {}


class RuleSet(ManifestModel):
    name: str
    target_type: str
    rules: Tuple[Rule, ...] = ()
    includes: Tuple[str, ...] = ()
    metadata: Dict[str, Any] = {}

    @model_validator(mode="after")
    def _unique_rules(self):
        _ensure_unique(self.rules, lambda r: r.id, f"rule in rule set '{self.name}'")
        return self


# ============================================================
# PERSISTENCE CONFIGURATION
# ============================================================

class PropertyConfiguration(ManifestModel):
    """Column-level overrides for one property."""
    property_name: str
    column_name: OptionalText = None
    column_type: OptionalText = None
    is_required: bool = False
    max_length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    is_concurrency_token: bool = False
    is_unicode: Optional[bool] = None
    value_generated: OptionalText = None
    default_value: OptionalText = None
    default_value_sql: OptionalText = None
    computed_column_sql: OptionalText = None
    metadata: Dict[str, Any] = {}


class Index(ManifestModel):
    """A database index. Property order is significant."""
    name: OptionalText = None
    properties: Tuple[str, ...] = ()
    is_unique: bool = False
    filter: OptionalText = None
    included_properties: Tuple[str, ...] = ()
    metadata: Dict[str, Any] = {}

    @property
    def key(self) -> str:
        """Natural key: the index name, or its column list when unnamed."""
        return self.name or ",".join(self.properties)


class Relationship(ManifestModel):
    principal_entity: str
    dependent_entity: str
    relationship_type: str
    principal_navigation: OptionalText = None
    dependent_navigation: OptionalText = None
    foreign_key_properties: Tuple[str, ...] = ()
    is_required: bool = False
    delete_behavior: OptionalText = None
    join_entity: OptionalText = None
    metadata: Dict[str, Any] = {}


class EntityConfiguration(ManifestModel):
    """Table mapping, keys, indexes and relationships for one entity."""
    entity_name: str
    entity_type_name: str
    table_name: OptionalText = None
    schema_name: OptionalText = None
    key_properties: Tuple[str, ...] = ()
    property_configurations: Dict[str, PropertyConfiguration] = {}
    indexes: Tuple[Index, ...] = ()
    relationships: Tuple[Relationship, ...] = ()
    metadata: Dict[str, Any] = {}

    @model_validator(mode="after")
    def _unique_indexes(self):
        _ensure_unique(self.indexes, lambda i: i.key, f"index on '{self.entity_name}'")
        return self


class Source(ManifestModel):
    """Where (part of) a manifest came from."""
    type: str
    location: str
    timestamp: Optional[datetime] = None
    metadata: Dict[str, str] = {}


# ============================================================
# MANIFEST
# ============================================================

class Manifest(ManifestModel):
    """The complete, versioned description of a domain."""
    name: str
    version: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    hash: OptionalText = None
    entities: Tuple[Entity, ...] = ()
    value_objects: Tuple[ValueObject, ...] = ()
    enums: Tuple[EnumType, ...] = ()
    rule_sets: Tuple[RuleSet, ...] = ()
    configurations: Tuple[EntityConfiguration, ...] = ()
    sources: Tuple[Source, ...] = ()
    metadata: Dict[str, Any] = {}

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Manifest name cannot be empty")
        return value

    @field_validator("version")
    @classmethod
    def _valid_version(cls, value: str) -> str:
        version_key(value)
        return value.strip()

    @field_validator("created_at")
    @classmethod
    def _aware_created_at(cls, value: datetime) -> datetime:
        # Naive timestamps are taken as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def _unique_names(self):
        _ensure_unique(self.entities, lambda e: e.name, "entity")
        _ensure_unique(self.value_objects, lambda v: v.name, "value object")
        _ensure_unique(self.enums, lambda e: e.name, "enum")
        _ensure_unique(self.rule_sets, lambda r: (r.name, r.target_type), "rule set")
        _ensure_unique(self.configurations, lambda c: c.entity_name, "configuration")
        return self

    def get_entity(self, name: str) -> Optional[Entity]:
        for entity in self.entities:
            if entity.name == name:
                return entity
        return None

    def with_version(self, version: str) -> "Manifest":
        """Return a copy of this manifest carrying another version."""
        version_key(version)
        return self.model_copy(update={"version": version.strip()})
