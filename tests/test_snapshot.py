"""
Tests for snapshot creation and the snapshot JSON format.
"""
import json
import logging

import pytest

from core.canonical import compute_manifest_hash
from core.errors import ArgumentError, FormatError
from core.manifest import Manifest, version_key
from core.snapshot import (
    SCHEMA_URI,
    create_snapshot,
    deserialize_snapshot,
    serialize_snapshot,
    snapshot_document,
)
from tests.conftest import FIXED_TIME, make_manifest


class TestVersions:

    @pytest.mark.parametrize("lower,higher", [
        ("1.0.0", "1.0.1"),
        ("1.2", "1.10"),
        ("2.0.0-rc1", "2.0.0"),
        ("1.9.9.9", "2"),
    ])
    def test_ordering(self, lower, higher):
        assert version_key(lower) < version_key(higher)

    def test_missing_components_are_zero(self):
        assert version_key("1.2") == version_key("1.2.0.0")

    @pytest.mark.parametrize("bad", ["", "v1", "1.2.3.4.5", "1..2", "abc"])
    def test_invalid(self, bad):
        with pytest.raises(ArgumentError):
            version_key(bad)

    def test_invalid_version_rejected_by_manifest(self):
        with pytest.raises(ValueError):
            Manifest(name="Shop", version="not-a-version")


class TestCreateSnapshot:

    def test_identity_fields(self, shop_manifest):
        snapshot = create_snapshot(shop_manifest)

        assert snapshot.name == "Shop"
        assert snapshot.version == "1.0.0"
        assert snapshot.created_at == FIXED_TIME
        assert snapshot.hash == compute_manifest_hash(shop_manifest)
        assert snapshot.manifest.hash == snapshot.hash
        assert snapshot.key == "Shop@1.0.0"

    def test_version_override(self, shop_manifest):
        snapshot = create_snapshot(shop_manifest, "2.1.0")

        assert snapshot.version == "2.1.0"
        assert snapshot.manifest.version == "2.1.0"
        assert snapshot.hash != compute_manifest_hash(shop_manifest)

    def test_invalid_version_override(self, shop_manifest):
        with pytest.raises(ArgumentError):
            create_snapshot(shop_manifest, "banana")

    def test_missing_manifest(self):
        with pytest.raises(ArgumentError):
            create_snapshot(None)

    def test_resnapshot_keeps_hash(self):
        first = create_snapshot(make_manifest())
        second = create_snapshot(make_manifest(created_at=FIXED_TIME.replace(year=2026)))

        assert first.hash == second.hash
        assert first.created_at != second.created_at


class TestSerialization:

    def test_document_shape(self, shop_snapshot):
        doc = snapshot_document(shop_snapshot)

        assert doc["$schema"] == SCHEMA_URI
        assert doc["name"] == "Shop"
        assert doc["version"] == "1.0.0"
        assert doc["hash"] == shop_snapshot.hash
        assert doc["createdAt"].startswith("2025-01-15T12:00:00")
        assert doc["manifest"]["name"] == "Shop"
        assert [e["name"] for e in doc["manifest"]["entities"]] == ["Customer", "LegacyOrder"]

    def test_schema_can_be_left_out(self, shop_snapshot):
        assert "$schema" not in snapshot_document(shop_snapshot, include_schema=False)

    def test_indented_output(self, shop_snapshot):
        text = serialize_snapshot(shop_snapshot)

        assert text.startswith("{\n  ")
        assert text.endswith("\n")

    def test_compact_output(self, shop_snapshot):
        text = serialize_snapshot(shop_snapshot, indented=False)

        assert text.count("\n") == 1

    def test_round_trip(self, shop_snapshot):
        restored = deserialize_snapshot(serialize_snapshot(shop_snapshot))

        assert restored.name == shop_snapshot.name
        assert restored.version == shop_snapshot.version
        assert restored.hash == shop_snapshot.hash
        assert restored.created_at == shop_snapshot.created_at
        assert compute_manifest_hash(restored.manifest) == shop_snapshot.hash

    def test_serialization_is_stable(self, shop_snapshot):
        text = serialize_snapshot(shop_snapshot)

        assert serialize_snapshot(deserialize_snapshot(text)) == text


class TestDeserializationErrors:

    def test_blank_content(self):
        with pytest.raises(FormatError):
            deserialize_snapshot("   ", source="v1.json")

    def test_missing_content(self):
        with pytest.raises(ArgumentError):
            deserialize_snapshot(None)

    def test_invalid_json(self):
        with pytest.raises(FormatError):
            deserialize_snapshot("{not json")

    def test_not_an_object(self):
        with pytest.raises(FormatError):
            deserialize_snapshot("[]")

    def test_missing_fields(self, shop_snapshot):
        doc = snapshot_document(shop_snapshot)
        del doc["hash"]

        with pytest.raises(FormatError) as exc_info:
            deserialize_snapshot(json.dumps(doc), source="broken.json")

        assert "hash" in exc_info.value.message
        assert exc_info.value.details["source"] == "broken.json"

    def test_invalid_manifest(self, shop_snapshot):
        doc = snapshot_document(shop_snapshot)
        doc["manifest"]["entities"] = [{"name": "NoTypeName"}]

        with pytest.raises(FormatError):
            deserialize_snapshot(json.dumps(doc))

    def test_invalid_created_at(self, shop_snapshot):
        doc = snapshot_document(shop_snapshot)
        doc["createdAt"] = "yesterday"

        with pytest.raises(FormatError):
            deserialize_snapshot(json.dumps(doc))

    def test_hash_mismatch_is_logged_and_kept(self, shop_snapshot, caplog):
        doc = snapshot_document(shop_snapshot)
        doc["hash"] = "0" * 64

        with caplog.at_level(logging.WARNING, logger="core.snapshot"):
            restored = deserialize_snapshot(json.dumps(doc))

        assert restored.hash == "0" * 64
        assert "hash mismatch" in caplog.text
