"""
Manifold Snapshot Comparison Engine

Compares two domain snapshots category by category (entities, value
objects, enums, rule sets, configurations) and produces a DomainDiff.

Every category uses the same keyed algorithm:
- keys only in the before snapshot are Removed
- keys only in the after snapshot are Added
- keys on both sides are compared recursively; any nested difference
  yields one Modified record carrying the nested changes

Records are emitted removed, added, modified, each group in key order.
"""
import logging
from typing import Callable, Dict, Iterable, List, Optional, Tuple, TypeVar

from core.changes import (
    ChangeAspect,
    ChangeType,
    ConfigurationChange,
    DomainDiff,
    EntityChange,
    EnumChange,
    PropertyChange,
    RuleChange,
    RuleSetChange,
    ValueObjectChange,
)
from core.classifier import BreakingChangeClassifier
from core.errors import ArgumentError
from core.manifest import (
    Entity,
    EntityConfiguration,
    EnumType,
    Property,
    RuleSet,
    ValueObject,
)
from core.snapshot import Snapshot

logger = logging.getLogger(__name__)

T = TypeVar("T")
K = TypeVar("K")


def _keyed(items: Iterable[T], key: Callable[[T], K]) -> Dict[K, T]:
    return {key(item): item for item in items}


def _partition(before: Dict[K, T], after: Dict[K, T]) -> Tuple[List[K], List[K], List[K]]:
    """Split the keys of both sides into (removed, added, shared), each sorted."""
    removed = sorted(k for k in before if k not in after)
    added = sorted(k for k in after if k not in before)
    shared = sorted(k for k in after if k in before)
    return removed, added, shared


def _join(values: Iterable[str]) -> str:
    return ", ".join(values)


class DiffEngine:
    """
    Structural diff between two snapshots.

    The engine holds only its classifier and may be reused across calls.
    """

    def __init__(self, classifier: Optional[BreakingChangeClassifier] = None):
        self.classifier = classifier or BreakingChangeClassifier()

    def compare(self, before: Snapshot, after: Snapshot) -> DomainDiff:
        """
        Compare two snapshots.

        Args:
            before: The earlier snapshot
            after: The later snapshot

        Returns:
            DomainDiff with one change tuple per category

        Raises:
            ArgumentError: either snapshot is missing
        """
        if before is None:
            raise ArgumentError("Before snapshot is required", argument="before")
        if after is None:
            raise ArgumentError("After snapshot is required", argument="after")

        old, new = before.manifest, after.manifest

        entity_changes = self.compare_entities(old.entities, new.entities)
        value_object_changes = self.compare_value_objects(old.value_objects, new.value_objects)
        enum_changes = self.compare_enums(old.enums, new.enums)
        rule_set_changes = self.compare_rule_sets(old.rule_sets, new.rule_sets)
        configuration_changes = self.compare_configurations(old.configurations, new.configurations)

        breaking = []
        for group in (entity_changes, value_object_changes, enum_changes,
                      rule_set_changes, configuration_changes):
            for change in group:
                breaking.extend(change.breaking_descriptions())

        diff = DomainDiff(
            before=before,
            after=after,
            entity_changes=entity_changes,
            value_object_changes=value_object_changes,
            enum_changes=enum_changes,
            rule_set_changes=rule_set_changes,
            configuration_changes=configuration_changes,
            has_breaking_changes=len(breaking) > 0,
            breaking_change_descriptions=tuple(breaking),
        )

        logger.debug(
            f"Compared {before.key} -> {after.key}: "
            f"{diff.total_changes} changes, {len(breaking)} breaking"
        )
        return diff

    # ------------------------------------------------------------------
    # Entities
    # ------------------------------------------------------------------

    def compare_entities(self, before: Iterable[Entity], after: Iterable[Entity]) -> Tuple[EntityChange, ...]:
        old = _keyed(before, lambda e: e.name)
        new = _keyed(after, lambda e: e.name)
        removed, added, shared = _partition(old, new)

        changes = []
        for name in removed:
            changes.append(EntityChange(
                change_type=ChangeType.REMOVED,
                entity_name=name,
                description=f"Entity '{name}' removed",
                is_breaking=self.classifier.is_entity_removal_breaking(),
            ))

        for name in added:
            changes.append(EntityChange(
                change_type=ChangeType.ADDED,
                entity_name=name,
                description=f"Entity '{name}' added",
                is_breaking=self.classifier.is_entity_addition_breaking(),
            ))

        for name in shared:
            change = self._compare_entity(old[name], new[name])
            if change is not None:
                changes.append(change)

        return tuple(changes)

    def _compare_entity(self, before: Entity, after: Entity) -> Optional[EntityChange]:
        property_changes = self.compare_properties(after.name, before.properties, after.properties)

        old_keys = tuple(sorted(before.key_properties))
        new_keys = tuple(sorted(after.key_properties))
        key_changed = set(old_keys) != set(new_keys)

        if not property_changes and not key_changed:
            return None

        description = f"Entity '{after.name}' modified"
        if key_changed:
            description += f" (key changed from '{_join(old_keys)}' to '{_join(new_keys)}')"

        is_breaking = any(p.is_breaking for p in property_changes)
        if key_changed:
            is_breaking = is_breaking or self.classifier.is_key_change_breaking()

        return EntityChange(
            change_type=ChangeType.MODIFIED,
            entity_name=after.name,
            description=description,
            is_breaking=is_breaking,
            property_changes=property_changes,
            key_changed=key_changed,
            old_keys=old_keys,
            new_keys=new_keys,
        )

    def compare_properties(
        self,
        owner_name: str,
        before: Iterable[Property],
        after: Iterable[Property],
    ) -> Tuple[PropertyChange, ...]:
        """Compare the properties of one entity or value object."""
        old = _keyed(before, lambda p: p.name)
        new = _keyed(after, lambda p: p.name)
        removed, added, shared = _partition(old, new)

        changes = []
        for name in removed:
            prop = old[name]
            changes.append(PropertyChange(
                change_type=ChangeType.REMOVED,
                entity_name=owner_name,
                property_name=name,
                description=f"Property '{owner_name}.{name}' removed",
                is_breaking=self.classifier.is_property_removal_breaking(),
                old_value=prop.type_name,
                old_required=prop.is_required,
            ))

        for name in added:
            prop = new[name]
            description = f"Property '{owner_name}.{name}' added"
            if prop.is_required:
                description += " (required)"
            changes.append(PropertyChange(
                change_type=ChangeType.ADDED,
                entity_name=owner_name,
                property_name=name,
                description=description,
                is_breaking=self.classifier.is_property_addition_breaking(prop.is_required),
                new_value=prop.type_name,
                new_required=prop.is_required,
            ))

        for name in shared:
            change = self._compare_property(owner_name, old[name], new[name])
            if change is not None:
                changes.append(change)

        return tuple(changes)

    def _compare_property(self, owner_name: str, before: Property, after: Property) -> Optional[PropertyChange]:
        qualified = f"{owner_name}.{after.name}"

        # A type change is reported on its own; the required flag is only
        # compared when the type is unchanged.
        if before.type_name != after.type_name:
            return PropertyChange(
                change_type=ChangeType.MODIFIED,
                entity_name=owner_name,
                property_name=after.name,
                aspect=ChangeAspect.TYPE,
                description=(
                    f"Property '{qualified}' type changed from "
                    f"'{before.type_name}' to '{after.type_name}'"
                ),
                is_breaking=self.classifier.is_property_type_change_breaking(
                    before.type_name, after.type_name
                ),
                old_value=before.type_name,
                new_value=after.type_name,
                old_required=before.is_required,
                new_required=after.is_required,
            )

        if before.is_required != after.is_required:
            old_state = "required" if before.is_required else "optional"
            new_state = "required" if after.is_required else "optional"
            return PropertyChange(
                change_type=ChangeType.MODIFIED,
                entity_name=owner_name,
                property_name=after.name,
                aspect=ChangeAspect.REQUIRED,
                description=f"Property '{qualified}' changed from {old_state} to {new_state}",
                is_breaking=self.classifier.is_required_change_breaking(
                    before.is_required, after.is_required
                ),
                old_value=old_state,
                new_value=new_state,
                old_required=before.is_required,
                new_required=after.is_required,
            )

        return None

    # ------------------------------------------------------------------
    # Value objects
    # ------------------------------------------------------------------

    def compare_value_objects(
        self,
        before: Iterable[ValueObject],
        after: Iterable[ValueObject],
    ) -> Tuple[ValueObjectChange, ...]:
        old = _keyed(before, lambda v: v.name)
        new = _keyed(after, lambda v: v.name)
        removed, added, shared = _partition(old, new)

        changes = []
        for name in removed:
            changes.append(ValueObjectChange(
                change_type=ChangeType.REMOVED,
                value_object_name=name,
                description=f"Value object '{name}' removed",
                is_breaking=self.classifier.is_value_object_removal_breaking(),
            ))

        for name in added:
            changes.append(ValueObjectChange(
                change_type=ChangeType.ADDED,
                value_object_name=name,
                description=f"Value object '{name}' added",
                is_breaking=self.classifier.is_value_object_addition_breaking(),
            ))

        for name in shared:
            property_changes = self.compare_properties(name, old[name].properties, new[name].properties)
            if property_changes:
                changes.append(ValueObjectChange(
                    change_type=ChangeType.MODIFIED,
                    value_object_name=name,
                    description=f"Value object '{name}' modified",
                    is_breaking=any(p.is_breaking for p in property_changes),
                    property_changes=property_changes,
                ))

        return tuple(changes)

    # ------------------------------------------------------------------
    # Enums
    # ------------------------------------------------------------------

    def compare_enums(self, before: Iterable[EnumType], after: Iterable[EnumType]) -> Tuple[EnumChange, ...]:
        old = _keyed(before, lambda e: e.name)
        new = _keyed(after, lambda e: e.name)
        removed, added, shared = _partition(old, new)

        changes = []
        for name in removed:
            changes.append(EnumChange(
                change_type=ChangeType.REMOVED,
                enum_name=name,
                description=f"Enum '{name}' removed",
                is_breaking=self.classifier.is_enum_removal_breaking(),
            ))

        for name in added:
            changes.append(EnumChange(
                change_type=ChangeType.ADDED,
                enum_name=name,
                description=f"Enum '{name}' added",
                is_breaking=self.classifier.is_enum_addition_breaking(),
            ))

        for name in shared:
            change = self._compare_enum(old[name], new[name])
            if change is not None:
                changes.append(change)

        return tuple(changes)

    def _compare_enum(self, before: EnumType, after: EnumType) -> Optional[EnumChange]:
        removed_values, added_values, shared_values = _partition(before.values, after.values)
        renumbered = [v for v in shared_values if before.values[v] != after.values[v]]

        if not removed_values and not added_values and not renumbered:
            return None

        details = []
        if removed_values:
            details.append(f"removed {_join(removed_values)}")
        if added_values:
            details.append(f"added {_join(added_values)}")
        if renumbered:
            details.append(f"renumbered {_join(renumbered)}")

        is_breaking = False
        if removed_values:
            is_breaking = is_breaking or self.classifier.is_enum_value_removal_breaking()
        if added_values:
            is_breaking = is_breaking or self.classifier.is_enum_value_addition_breaking()
        if renumbered:
            is_breaking = is_breaking or self.classifier.is_enum_value_renumbering_breaking()

        return EnumChange(
            change_type=ChangeType.MODIFIED,
            enum_name=after.name,
            description=f"Enum '{after.name}' modified: {'; '.join(details)}",
            is_breaking=is_breaking,
            removed_values=tuple(removed_values),
            added_values=tuple(added_values),
            renumbered_values=tuple(renumbered),
        )

    # ------------------------------------------------------------------
    # Rule sets
    # ------------------------------------------------------------------

    def compare_rule_sets(self, before: Iterable[RuleSet], after: Iterable[RuleSet]) -> Tuple[RuleSetChange, ...]:
        old = _keyed(before, lambda r: (r.name, r.target_type))
        new = _keyed(after, lambda r: (r.name, r.target_type))
        removed, added, shared = _partition(old, new)

        changes = []
        for name, target in removed:
            changes.append(RuleSetChange(
                change_type=ChangeType.REMOVED,
                rule_set_name=name,
                target_type=target,
                description=f"Rule set '{name}' for '{target}' removed",
                is_breaking=self.classifier.is_rule_change_breaking(),
            ))

        for name, target in added:
            changes.append(RuleSetChange(
                change_type=ChangeType.ADDED,
                rule_set_name=name,
                target_type=target,
                description=f"Rule set '{name}' for '{target}' added",
                is_breaking=self.classifier.is_rule_change_breaking(),
            ))

        for key in shared:
            change = self._compare_rule_set(old[key], new[key])
            if change is not None:
                changes.append(change)

        return tuple(changes)

    def _compare_rule_set(self, before: RuleSet, after: RuleSet) -> Optional[RuleSetChange]:
        old_rules = _keyed(before.rules, lambda r: r.id)
        new_rules = _keyed(after.rules, lambda r: r.id)
        removed, added, _ = _partition(old_rules, new_rules)

        rule_changes = []
        for rule_id in removed:
            rule_changes.append(RuleChange(
                change_type=ChangeType.REMOVED,
                rule_id=rule_id,
                rule_set_name=after.name,
                target_type=after.target_type,
                description=f"Rule '{rule_id}' removed from rule set '{after.name}'",
                is_breaking=self.classifier.is_rule_change_breaking(),
            ))
        for rule_id in added:
            rule_changes.append(RuleChange(
                change_type=ChangeType.ADDED,
                rule_id=rule_id,
                rule_set_name=after.name,
                target_type=after.target_type,
                description=f"Rule '{rule_id}' added to rule set '{after.name}'",
                is_breaking=self.classifier.is_rule_change_breaking(),
            ))

        added_includes = tuple(sorted(set(after.includes) - set(before.includes)))
        removed_includes = tuple(sorted(set(before.includes) - set(after.includes)))

        if not rule_changes and not added_includes and not removed_includes:
            return None

        return RuleSetChange(
            change_type=ChangeType.MODIFIED,
            rule_set_name=after.name,
            target_type=after.target_type,
            description=f"Rule set '{after.name}' for '{after.target_type}' modified",
            is_breaking=any(r.is_breaking for r in rule_changes) or self.classifier.is_rule_change_breaking(),
            rule_changes=tuple(rule_changes),
            added_includes=added_includes,
            removed_includes=removed_includes,
        )

    # ------------------------------------------------------------------
    # Configurations
    # ------------------------------------------------------------------

    def compare_configurations(
        self,
        before: Iterable[EntityConfiguration],
        after: Iterable[EntityConfiguration],
    ) -> Tuple[ConfigurationChange, ...]:
        old = _keyed(before, lambda c: c.entity_name)
        new = _keyed(after, lambda c: c.entity_name)
        removed, added, shared = _partition(old, new)

        changes = []
        for name in removed:
            changes.append(ConfigurationChange(
                change_type=ChangeType.REMOVED,
                entity_name=name,
                description=f"Configuration for '{name}' removed",
                is_breaking=self.classifier.is_configuration_change_breaking(),
            ))

        for name in added:
            changes.append(ConfigurationChange(
                change_type=ChangeType.ADDED,
                entity_name=name,
                description=f"Configuration for '{name}' added",
                is_breaking=self.classifier.is_configuration_change_breaking(),
            ))

        for name in shared:
            changes.extend(self._compare_configuration(old[name], new[name]))

        return tuple(changes)

    def _compare_configuration(
        self,
        before: EntityConfiguration,
        after: EntityConfiguration,
    ) -> List[ConfigurationChange]:
        name = after.entity_name
        changes = []

        if before.table_name != after.table_name:
            changes.append(ConfigurationChange(
                change_type=ChangeType.MODIFIED,
                entity_name=name,
                aspect=ChangeAspect.TABLE_NAME,
                description=(
                    f"Table name for '{name}' changed from "
                    f"'{before.table_name or ''}' to '{after.table_name or ''}'"
                ),
                is_breaking=self.classifier.is_configuration_change_breaking(),
                old_value=before.table_name,
                new_value=after.table_name,
            ))

        if before.schema_name != after.schema_name:
            changes.append(ConfigurationChange(
                change_type=ChangeType.MODIFIED,
                entity_name=name,
                aspect=ChangeAspect.SCHEMA_NAME,
                description=(
                    f"Schema name for '{name}' changed from "
                    f"'{before.schema_name or ''}' to '{after.schema_name or ''}'"
                ),
                is_breaking=self.classifier.is_configuration_change_breaking(),
                old_value=before.schema_name,
                new_value=after.schema_name,
            ))

        old_indexes = _keyed(before.indexes, lambda i: i.key)
        new_indexes = _keyed(after.indexes, lambda i: i.key)
        removed, added, shared = _partition(old_indexes, new_indexes)

        for key in removed:
            changes.append(ConfigurationChange(
                change_type=ChangeType.MODIFIED,
                entity_name=name,
                aspect=ChangeAspect.INDEX,
                description=f"Index '{key}' removed from '{name}'",
                is_breaking=self.classifier.is_index_removal_breaking(),
                old_value=key,
            ))

        for key in added:
            changes.append(ConfigurationChange(
                change_type=ChangeType.MODIFIED,
                entity_name=name,
                aspect=ChangeAspect.INDEX,
                description=f"Index '{key}' added to '{name}'",
                is_breaking=self.classifier.is_index_addition_breaking(),
                new_value=key,
            ))

        for key in shared:
            if old_indexes[key] != new_indexes[key]:
                changes.append(ConfigurationChange(
                    change_type=ChangeType.MODIFIED,
                    entity_name=name,
                    aspect=ChangeAspect.INDEX,
                    description=f"Index '{key}' on '{name}' changed",
                    is_breaking=self.classifier.is_configuration_change_breaking(),
                    old_value=key,
                    new_value=key,
                ))

        return changes


def compare_snapshots(before: Snapshot, after: Snapshot) -> DomainDiff:
    """Compare two snapshots with the default breaking-change policy."""
    return DiffEngine().compare(before, after)
