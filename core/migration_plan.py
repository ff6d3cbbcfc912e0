"""
Migration plan generation for Manifold.

Turns a DomainDiff into a Markdown checklist of schema, data and code
work. The output is fully determined by the diff and the generation time.
"""
from datetime import datetime, timezone
from typing import List, Optional

from core.changes import ChangeType, DomainDiff
from core.errors import ArgumentError


TESTING_CHECKLIST = (
    "Run all unit tests",
    "Run integration tests",
    "Verify domain validation rules still work correctly",
    "Test any affected API endpoints",
)


def suggested_migration_name(diff: DomainDiff) -> str:
    """e.g. Shop_V2_0_0 for Shop version 2.0.0"""
    version = diff.after.version.replace(".", "_").replace("-", "_")
    return f"{diff.before.name}_V{version}"


def _action(lines: List[str], index: int, title: str, intro: str, items: List[str]) -> None:
    lines.append(f"{index}. **{title}**")
    lines.append("")
    lines.append(f"   {intro}")
    lines.append("")
    for item in items:
        lines.append(f"   - {item}")
    lines.append("")


def _schema_items(diff: DomainDiff) -> List[str]:
    items = []
    for entity in diff.entity_changes:
        if entity.change_type == ChangeType.REMOVED:
            items.append(f"Drop table for `{entity.entity_name}`")
            continue
        for prop in entity.property_changes:
            if prop.change_type == ChangeType.REMOVED:
                items.append(f"Drop column `{prop.qualified_name}`")
        for prop in entity.property_changes:
            if prop.change_type == ChangeType.MODIFIED and prop.is_breaking:
                items.append(f"Alter column `{prop.qualified_name}`")
        for prop in entity.property_changes:
            if prop.change_type == ChangeType.ADDED and prop.is_breaking:
                items.append(f"Add column `{prop.qualified_name}`")
    return items


def _code_update_items(diff: DomainDiff) -> List[str]:
    items = []
    for entity in diff.entity_changes:
        if entity.change_type == ChangeType.REMOVED:
            items.append(f"Remove references to `{entity.entity_name}`")
    for prop in diff.property_changes():
        if prop.change_type == ChangeType.REMOVED:
            items.append(f"Remove references to `{prop.qualified_name}`")
    for prop in diff.property_changes():
        if prop.change_type == ChangeType.MODIFIED and prop.is_breaking:
            items.append(f"Update usages of `{prop.qualified_name}` ({prop.old_value} → {prop.new_value})")
    for prop in diff.property_changes():
        if prop.change_type == ChangeType.ADDED and prop.is_breaking:
            items.append(f"Set `{prop.qualified_name}` wherever `{prop.entity_name}` is created")
    for entity in diff.entity_changes:
        if entity.key_changed:
            items.append(
                f"Update key handling for `{entity.entity_name}` "
                f"({', '.join(entity.old_keys)} → {', '.join(entity.new_keys)})"
            )
    for vo in diff.value_object_changes:
        if vo.change_type == ChangeType.REMOVED:
            items.append(f"Remove references to `{vo.value_object_name}`")
    for enum in diff.enum_changes:
        if enum.change_type == ChangeType.REMOVED:
            items.append(f"Remove references to `{enum.enum_name}`")
        for value in enum.removed_values:
            items.append(f"Remove references to `{enum.enum_name}.{value}`")
        for value in enum.renumbered_values:
            items.append(f"Update stored values of `{enum.enum_name}.{value}`")
    return items


def generate_migration_plan(diff: DomainDiff, generated_at: Optional[datetime] = None) -> str:
    """
    Generate a Markdown migration plan.

    Args:
        diff: The diff to plan for
        generated_at: Generation time (defaults to now, UTC)

    Returns:
        Markdown text
    """
    if diff is None:
        raise ArgumentError("Diff is required", argument="diff")

    if generated_at is None:
        generated_at = datetime.now(timezone.utc)
    elif generated_at.tzinfo is not None:
        generated_at = generated_at.astimezone(timezone.utc)

    lines = [
        f"# Migration Plan: {diff.before.name} {diff.before.version} → {diff.after.version}",
        "",
        f"Generated: {generated_at.strftime('%Y-%m-%d %H:%M:%S')} UTC",
        "",
    ]

    if not diff.has_changes:
        lines.append("No changes detected. No migration required.")
        return "\n".join(lines) + "\n"

    lines.extend([
        "## Summary",
        "",
        f"- **Total Changes**: {diff.total_changes}",
        f"- **Breaking Changes**: {len(diff.breaking_change_descriptions)}",
        f"- **Entity Changes**: {len(diff.entity_changes)}",
        f"- **Configuration Changes**: {len(diff.configuration_changes)}",
        f"- **Rule Changes**: {len(diff.rule_set_changes)}",
        "",
    ])

    if diff.has_breaking_changes:
        lines.append("## ⚠️ Breaking Changes")
        lines.append("")
        lines.append("The following changes may require data migration or code updates:")
        lines.append("")
        for description in diff.breaking_change_descriptions:
            lines.append(f"- {description}")
        lines.append("")

    non_breaking = [c for c in diff.all_changes() if not c.is_breaking]
    if non_breaking:
        lines.append("## ✅ Non-Breaking Changes")
        lines.append("")
        for change in non_breaking:
            lines.append(f"- {change.description}")
        lines.append("")

    lines.append("## Recommended Actions")
    lines.append("")
    index = 1

    schema_needed = any(
        e.change_type == ChangeType.REMOVED or any(p.is_breaking for p in e.property_changes)
        for e in diff.entity_changes
    )
    if schema_needed:
        lines.append(f"{index}. **Database Schema Migration**")
        lines.append("")
        lines.append("   Create a database migration to update the schema:")
        lines.append("")
        lines.append(f"   Suggested migration name: `{suggested_migration_name(diff)}`")
        lines.append("")
        for item in _schema_items(diff):
            lines.append(f"   - {item}")
        lines.append("")
        index += 1

    tightened = [p for p in diff.property_changes() if p.becomes_required]
    if tightened:
        _action(
            lines, index, "Data Migration",
            "The following properties changed from optional to required. Migrate existing null values:",
            [f"`{p.qualified_name}`: Set default value for existing null records" for p in tightened],
        )
        index += 1

    new_required = [
        p for p in diff.property_changes()
        if p.change_type == ChangeType.ADDED and p.is_breaking
    ]
    if new_required:
        _action(
            lines, index, "Handle New Required Properties",
            "The following required properties were added. Provide default values:",
            [f"`{p.qualified_name}`" for p in new_required],
        )
        index += 1

    if diff.has_breaking_changes:
        _action(
            lines, index, "Code Updates",
            "Update application code to handle the breaking changes:",
            _code_update_items(diff),
        )
        index += 1

    _action(lines, index, "Testing", "After applying changes:", list(TESTING_CHECKLIST))

    lines.append("---")
    lines.append("")
    lines.append("*Generated by Manifold*")

    return "\n".join(lines) + "\n"
