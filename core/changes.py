"""
Change records produced by the Manifold diff engine.

Every record carries its change type, a precomputed description and the
breaking flag the classifier gave it when it was created. Formatters and
the migration plan generator read these fields; they never re-derive
semantics from raw before/after values.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Tuple

from core.snapshot import Snapshot


class ChangeType(str, Enum):
    ADDED = "Added"
    REMOVED = "Removed"
    MODIFIED = "Modified"


class ChangeAspect(str, Enum):
    """Which part of an existing item a Modified record is about."""
    TYPE = "Type"
    REQUIRED = "Required"
    TABLE_NAME = "TableName"
    SCHEMA_NAME = "SchemaName"
    INDEX = "Index"


def _compact(result: dict) -> dict:
    """Drop None values and empty strings/collections."""
    return {
        key: value
        for key, value in result.items()
        if value is not None and value != "" and value != [] and value != ()
    }


@dataclass(frozen=True, kw_only=True)
class ChangeRecord:
    """Common fields of every change record."""
    change_type: ChangeType
    description: str
    is_breaking: bool = False

    @property
    def nested_changes(self) -> Tuple["ChangeRecord", ...]:
        return ()

    def breaking_descriptions(self) -> Iterator[str]:
        """This record's description if breaking, then its nested breaking records."""
        if self.is_breaking:
            yield self.description
        for nested in self.nested_changes:
            yield from nested.breaking_descriptions()

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "changeType": self.change_type.value,
            "description": self.description,
            "isBreaking": self.is_breaking,
        }


@dataclass(frozen=True, kw_only=True)
class PropertyChange(ChangeRecord):
    """A property added to, removed from or modified on an entity or value object."""
    entity_name: str
    property_name: str
    aspect: Optional[ChangeAspect] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    old_required: Optional[bool] = None
    new_required: Optional[bool] = None

    @property
    def qualified_name(self) -> str:
        return f"{self.entity_name}.{self.property_name}"

    @property
    def becomes_required(self) -> bool:
        """True for an optional -> required transition on an existing property."""
        return (
            self.change_type == ChangeType.MODIFIED
            and self.aspect == ChangeAspect.REQUIRED
            and self.old_required is False
            and self.new_required is True
        )

    def to_dict(self) -> dict:
        result = {
            "changeType": self.change_type.value,
            "entityName": self.entity_name,
            "propertyName": self.property_name,
            "aspect": self.aspect.value if self.aspect else None,
            "description": self.description,
            "isBreaking": self.is_breaking,
            "oldValue": self.old_value,
            "newValue": self.new_value,
        }
        return _compact(result)


@dataclass(frozen=True, kw_only=True)
class EntityChange(ChangeRecord):
    entity_name: str
    property_changes: Tuple[PropertyChange, ...] = ()
    key_changed: bool = False
    old_keys: Tuple[str, ...] = ()
    new_keys: Tuple[str, ...] = ()

    @property
    def nested_changes(self) -> Tuple[ChangeRecord, ...]:
        return self.property_changes

    def breaking_descriptions(self) -> Iterator[str]:
        # A Modified entity is breaking because of its key or its properties;
        # only the key change is described at this level.
        if self.is_breaking and (self.change_type != ChangeType.MODIFIED or self.key_changed):
            yield self.description
        for prop in self.property_changes:
            yield from prop.breaking_descriptions()

    def to_dict(self) -> dict:
        result = {
            "changeType": self.change_type.value,
            "entityName": self.entity_name,
            "description": self.description,
            "isBreaking": self.is_breaking,
            "oldKeys": list(self.old_keys) if self.key_changed else None,
            "newKeys": list(self.new_keys) if self.key_changed else None,
            "propertyChanges": [p.to_dict() for p in self.property_changes],
        }
        return _compact(result)


@dataclass(frozen=True, kw_only=True)
class ValueObjectChange(ChangeRecord):
    value_object_name: str
    property_changes: Tuple[PropertyChange, ...] = ()

    @property
    def nested_changes(self) -> Tuple[ChangeRecord, ...]:
        return self.property_changes

    def breaking_descriptions(self) -> Iterator[str]:
        if self.is_breaking and self.change_type != ChangeType.MODIFIED:
            yield self.description
        for prop in self.property_changes:
            yield from prop.breaking_descriptions()

    def to_dict(self) -> dict:
        result = {
            "changeType": self.change_type.value,
            "valueObjectName": self.value_object_name,
            "description": self.description,
            "isBreaking": self.is_breaking,
            "propertyChanges": [p.to_dict() for p in self.property_changes],
        }
        return _compact(result)


@dataclass(frozen=True, kw_only=True)
class EnumChange(ChangeRecord):
    enum_name: str
    removed_values: Tuple[str, ...] = ()
    added_values: Tuple[str, ...] = ()
    renumbered_values: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        result = {
            "changeType": self.change_type.value,
            "enumName": self.enum_name,
            "description": self.description,
            "isBreaking": self.is_breaking,
            "removedValues": list(self.removed_values),
            "addedValues": list(self.added_values),
            "renumberedValues": list(self.renumbered_values),
        }
        return _compact(result)


@dataclass(frozen=True, kw_only=True)
class RuleChange(ChangeRecord):
    rule_id: str
    rule_set_name: str
    target_type: str

    def to_dict(self) -> dict:
        result = {
            "changeType": self.change_type.value,
            "ruleId": self.rule_id,
            "ruleSetName": self.rule_set_name,
            "targetType": self.target_type,
            "description": self.description,
            "isBreaking": self.is_breaking,
        }
        return _compact(result)


@dataclass(frozen=True, kw_only=True)
class RuleSetChange(ChangeRecord):
    rule_set_name: str
    target_type: str
    rule_changes: Tuple[RuleChange, ...] = ()
    added_includes: Tuple[str, ...] = ()
    removed_includes: Tuple[str, ...] = ()

    @property
    def nested_changes(self) -> Tuple[ChangeRecord, ...]:
        return self.rule_changes

    def to_dict(self) -> dict:
        result = {
            "changeType": self.change_type.value,
            "ruleSetName": self.rule_set_name,
            "targetType": self.target_type,
            "description": self.description,
            "isBreaking": self.is_breaking,
            "addedIncludes": list(self.added_includes),
            "removedIncludes": list(self.removed_includes),
            "ruleChanges": [r.to_dict() for r in self.rule_changes],
        }
        return _compact(result)


@dataclass(frozen=True, kw_only=True)
class ConfigurationChange(ChangeRecord):
    entity_name: str
    aspect: Optional[ChangeAspect] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None

    def to_dict(self) -> dict:
        result = {
            "changeType": self.change_type.value,
            "entityName": self.entity_name,
            "aspect": self.aspect.value if self.aspect else None,
            "description": self.description,
            "isBreaking": self.is_breaking,
            "oldValue": self.old_value,
            "newValue": self.new_value,
        }
        return _compact(result)


@dataclass(frozen=True)
class DomainDiff:
    """Differences between two snapshots, one change tuple per category."""
    before: Snapshot
    after: Snapshot
    entity_changes: Tuple[EntityChange, ...] = ()
    value_object_changes: Tuple[ValueObjectChange, ...] = ()
    enum_changes: Tuple[EnumChange, ...] = ()
    rule_set_changes: Tuple[RuleSetChange, ...] = ()
    configuration_changes: Tuple[ConfigurationChange, ...] = ()
    has_breaking_changes: bool = False
    breaking_change_descriptions: Tuple[str, ...] = ()

    @property
    def total_changes(self) -> int:
        return (
            len(self.entity_changes)
            + len(self.value_object_changes)
            + len(self.enum_changes)
            + len(self.rule_set_changes)
            + len(self.configuration_changes)
        )

    @property
    def has_changes(self) -> bool:
        return self.total_changes > 0

    def all_changes(self) -> Tuple[ChangeRecord, ...]:
        """Top-level records of every category, in category order."""
        return (
            self.entity_changes
            + self.value_object_changes
            + self.enum_changes
            + self.rule_set_changes
            + self.configuration_changes
        )

    def property_changes(self) -> Iterator[PropertyChange]:
        """Every nested property change, entities first, then value objects."""
        for entity in self.entity_changes:
            yield from entity.property_changes
        for value_object in self.value_object_changes:
            yield from value_object.property_changes
