"""
Diff report formatting for Manifold.

Renders a DomainDiff as a Markdown report or as a JSON summary. Both
formats read the descriptions and breaking flags stored on the change
records.
"""
import json

from core.changes import ChangeRecord, ChangeType, DomainDiff
from core.errors import ArgumentError


BREAKING_ICON = "⚠️"

CHANGE_ICONS = {
    ChangeType.ADDED: "✅",
    ChangeType.REMOVED: "❌",
    ChangeType.MODIFIED: "📝",
}

MARKDOWN_FORMATS = ("md", "markdown")
JSON_FORMATS = ("json",)


def change_icon(change: ChangeRecord) -> str:
    if change.is_breaking:
        return BREAKING_ICON
    return CHANGE_ICONS.get(change.change_type, "•")


def _section(lines: list, title: str, changes) -> None:
    if not changes:
        return
    lines.append(f"## {title}")
    lines.append("")
    for change in changes:
        lines.append(f"- {change_icon(change)} {change.description}")
        for nested in change.nested_changes:
            lines.append(f"  - {change_icon(nested)} {nested.description}")
    lines.append("")


def format_markdown(diff: DomainDiff) -> str:
    """Render a diff as a Markdown report."""
    if diff is None:
        raise ArgumentError("Diff is required", argument="diff")

    lines = [
        f"# Domain Diff: {diff.before.name}",
        "",
        f"**Version**: {diff.before.version} → {diff.after.version}",
        f"**Total Changes**: {diff.total_changes}",
        f"**Breaking Changes**: {'Yes' if diff.has_breaking_changes else 'No'}",
        "",
    ]

    if diff.has_breaking_changes:
        lines.append(f"## {BREAKING_ICON} Breaking Changes")
        lines.append("")
        for description in diff.breaking_change_descriptions:
            lines.append(f"- {description}")
        lines.append("")

    _section(lines, "Entity Changes", diff.entity_changes)
    _section(lines, "Value Object Changes", diff.value_object_changes)
    _section(lines, "Enum Changes", diff.enum_changes)
    _section(lines, "Rule Set Changes", diff.rule_set_changes)
    _section(lines, "Configuration Changes", diff.configuration_changes)

    if not diff.has_changes:
        lines.append("No changes detected.")

    return "\n".join(lines) + "\n"


def diff_document(diff: DomainDiff) -> dict:
    """The JSON summary of a diff as a plain dict."""
    if diff is None:
        raise ArgumentError("Diff is required", argument="diff")

    result = {
        "domain": diff.before.name,
        "beforeVersion": diff.before.version,
        "afterVersion": diff.after.version,
        "beforeHash": diff.before.hash,
        "afterHash": diff.after.hash,
        "totalChanges": diff.total_changes,
        "hasBreakingChanges": diff.has_breaking_changes,
        "breakingChangeDescriptions": list(diff.breaking_change_descriptions),
        "entityChanges": [c.to_dict() for c in diff.entity_changes],
        "valueObjectChanges": [c.to_dict() for c in diff.value_object_changes],
        "enumChanges": [c.to_dict() for c in diff.enum_changes],
        "ruleSetChanges": [c.to_dict() for c in diff.rule_set_changes],
        "configurationChanges": [c.to_dict() for c in diff.configuration_changes],
    }
    # Empty lists and missing hashes are left out; counts and flags are kept
    return {k: v for k, v in result.items() if v is not None and v != "" and v != []}


def format_json(diff: DomainDiff, indented: bool = True) -> str:
    """Render a diff as a JSON summary."""
    return json.dumps(diff_document(diff), indent=2 if indented else None, ensure_ascii=False)


def format_diff(diff: DomainDiff, fmt: str = "md") -> str:
    """
    Render a diff in the named format.

    Args:
        diff: The diff to render
        fmt: "md"/"markdown" or "json" (case-insensitive)

    Raises:
        ArgumentError: the format is not supported
    """
    name = (fmt or "").strip().lower()
    if name in MARKDOWN_FORMATS:
        return format_markdown(diff)
    if name in JSON_FORMATS:
        return format_json(diff)
    raise ArgumentError(
        f"Unsupported diff format: '{fmt}'. Use one of: {', '.join(MARKDOWN_FORMATS + JSON_FORMATS)}",
        argument="fmt",
    )
