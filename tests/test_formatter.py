"""
Tests for Markdown and JSON diff reports.
"""
import json

import pytest

from core.comparison import DiffEngine
from core.errors import ArgumentError
from core.formatter import diff_document, format_diff, format_json, format_markdown
from core.manifest import Property
from core.snapshot import create_snapshot
from tests.conftest import customer, legacy_order, make_manifest


@pytest.fixture
def breaking_diff():
    before = make_manifest("3.0.0")
    after = make_manifest("4.0.0", entities=[customer(Property(name="Email", type_name="string"))])
    return DiffEngine().compare(create_snapshot(before), create_snapshot(after))


@pytest.fixture
def empty_diff(shop_snapshot):
    return DiffEngine().compare(shop_snapshot, shop_snapshot)


class TestMarkdown:

    def test_header(self, breaking_diff):
        text = format_markdown(breaking_diff)

        assert text.startswith("# Domain Diff: Shop\n")
        assert "**Version**: 3.0.0 → 4.0.0" in text
        assert "**Total Changes**: 2" in text
        assert "**Breaking Changes**: Yes" in text

    def test_breaking_section_lists_removed_entity(self, breaking_diff):
        text = format_markdown(breaking_diff)

        breaking = text.split("## ⚠️ Breaking Changes")[1].split("## Entity Changes")[0]
        assert "- Entity 'LegacyOrder' removed" in breaking

    def test_entries_and_nested_entries(self, breaking_diff):
        text = format_markdown(breaking_diff)

        assert "- ⚠️ Entity 'LegacyOrder' removed" in text
        assert "- 📝 Entity 'Customer' modified" in text
        assert "  - ✅ Property 'Customer.Email' added" in text

    def test_only_non_empty_sections(self, breaking_diff):
        text = format_markdown(breaking_diff)

        assert "## Entity Changes" in text
        assert "## Enum Changes" not in text
        assert "No changes detected." not in text

    def test_no_changes(self, empty_diff):
        text = format_markdown(empty_diff)

        assert "**Breaking Changes**: No" in text
        assert "## ⚠️ Breaking Changes" not in text
        assert text.rstrip().endswith("No changes detected.")

    def test_non_breaking_only(self):
        before = make_manifest(entities=[customer()])
        after = make_manifest(entities=[customer(), legacy_order()])
        diff = DiffEngine().compare(create_snapshot(before), create_snapshot(after))

        text = format_markdown(diff)

        assert "**Breaking Changes**: No" in text
        assert "- ✅ Entity 'LegacyOrder' added" in text
        assert "Breaking Changes\n" not in text


class TestJson:

    def test_summary_fields(self, breaking_diff):
        doc = json.loads(format_json(breaking_diff))

        assert doc["domain"] == "Shop"
        assert doc["beforeVersion"] == "3.0.0"
        assert doc["afterVersion"] == "4.0.0"
        assert doc["beforeHash"] == breaking_diff.before.hash
        assert doc["totalChanges"] == 2
        assert doc["hasBreakingChanges"] is True
        assert doc["breakingChangeDescriptions"] == ["Entity 'LegacyOrder' removed"]

    def test_records(self, breaking_diff):
        doc = json.loads(format_json(breaking_diff))

        removed, modified = doc["entityChanges"]
        assert removed == {
            "changeType": "Removed",
            "entityName": "LegacyOrder",
            "description": "Entity 'LegacyOrder' removed",
            "isBreaking": True,
        }
        prop = modified["propertyChanges"][0]
        assert prop["changeType"] == "Added"
        assert prop["propertyName"] == "Email"
        assert prop["newValue"] == "string"
        assert prop["isBreaking"] is False
        assert "oldValue" not in prop

    def test_empty_categories_omitted(self, breaking_diff):
        doc = diff_document(breaking_diff)

        assert "enumChanges" not in doc
        assert "valueObjectChanges" not in doc

    def test_empty_diff(self, empty_diff):
        doc = diff_document(empty_diff)

        assert doc["totalChanges"] == 0
        assert doc["hasBreakingChanges"] is False
        assert "breakingChangeDescriptions" not in doc
        assert "entityChanges" not in doc


class TestFormatDispatch:

    @pytest.mark.parametrize("fmt", ["md", "markdown", "MD"])
    def test_markdown(self, breaking_diff, fmt):
        assert format_diff(breaking_diff, fmt) == format_markdown(breaking_diff)

    def test_json(self, breaking_diff):
        assert format_diff(breaking_diff, "json") == format_json(breaking_diff)

    def test_unknown_format(self, breaking_diff):
        with pytest.raises(ArgumentError):
            format_diff(breaking_diff, "xml")

    def test_missing_diff(self):
        with pytest.raises(ArgumentError):
            format_markdown(None)
