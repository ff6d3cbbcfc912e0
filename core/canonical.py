"""
Manifest canonicalization for Manifold.

Turns a Manifest into an order-independent JSON document and a stable
content hash. Two manifests that differ only in the in-memory order of
their collections, or in fields holding default values, produce the same
bytes and therefore the same hash.

Ordering rules:
- entities, value objects, enums: by name
- rule sets: by (name, target type); rules by id
- configurations: by entity name; indexes by name (or column list);
  relationships by (principal, dependent)
- sources: by (type, location)
- properties: by name
- key properties, includes, tags: sorted
- every mapping: by key

Index columns and foreign-key columns keep their declared order.
"""
import hashlib
import json
from typing import Any, Iterable

from core.errors import ArgumentError
from core.manifest import Manifest


HASH_ALGORITHM = "sha256"

# Identity fields that are not part of the hashed content
_VOLATILE_FIELDS = {"created_at", "hash"}


def encode_canonical(document: Any) -> str:
    """
    Encode a canonical document as compact, key-sorted, ASCII-only JSON.
    """
    try:
        return json.dumps(
            document,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=True,
            allow_nan=False,
        )
    except ValueError as e:
        raise ArgumentError(f"Manifest cannot be encoded canonically: {e}", argument="manifest")


def _sort_list(document: dict, key: str, *fields: str) -> list:
    """Sort document[key] in place by the given fields; returns the list."""
    items = document.get(key)
    if not items:
        return []
    items.sort(key=lambda item: tuple(str(item.get(f, "")) for f in fields) + (encode_canonical(item),))
    return items


def _sort_values(document: dict, key: str) -> None:
    if document.get(key):
        document[key] = sorted(document[key])


def _index_key(index: dict) -> str:
    return index.get("name") or ",".join(index.get("properties", []))


def _order_properties(owners: Iterable[dict]) -> None:
    for owner in owners:
        _sort_list(owner, "properties", "name")


def _order_document(doc: dict) -> dict:
    entities = _sort_list(doc, "entities", "name")
    _order_properties(entities)
    for entity in entities:
        _sort_values(entity, "keyProperties")

    _order_properties(_sort_list(doc, "valueObjects", "name"))
    _sort_list(doc, "enums", "name")

    for rule_set in _sort_list(doc, "ruleSets", "name", "targetType"):
        for rule in _sort_list(rule_set, "rules", "id"):
            _sort_values(rule, "tags")
        _sort_values(rule_set, "includes")

    for config in _sort_list(doc, "configurations", "entityName"):
        _sort_values(config, "keyProperties")
        if config.get("indexes"):
            config["indexes"].sort(key=lambda i: (_index_key(i), encode_canonical(i)))
        _sort_list(config, "relationships", "principalEntity", "dependentEntity")

    _sort_list(doc, "sources", "type", "location")
    return doc


def manifest_document(manifest: Manifest) -> dict:
    """
    Full canonical document of a manifest, including creation time and
    stored hash. This is what snapshot files carry under "manifest".
    """
    if manifest is None:
        raise ArgumentError("Manifest is required", argument="manifest")

    doc = manifest.model_dump(
        mode="json",
        by_alias=True,
        exclude_defaults=True,
        exclude={"created_at"},
    )
    doc["createdAt"] = manifest.model_dump(mode="json", include={"created_at"})["created_at"]
    return _order_document(doc)


def canonical_content(manifest: Manifest) -> dict:
    """
    Canonical document of the manifest's content: everything except the
    creation time and stored hash.
    """
    if manifest is None:
        raise ArgumentError("Manifest is required", argument="manifest")

    doc = manifest.model_dump(
        mode="json",
        by_alias=True,
        exclude_defaults=True,
        exclude=_VOLATILE_FIELDS,
    )
    return _order_document(doc)


def canonical_bytes(manifest: Manifest) -> bytes:
    """UTF-8 bytes of the canonical content encoding."""
    return encode_canonical(canonical_content(manifest)).encode("utf-8")


def compute_manifest_hash(manifest: Manifest) -> str:
    """
    Compute the SHA-256 content hash of a manifest.
    Manifests with the same hash have identical canonical content.
    """
    return hashlib.new(HASH_ALGORITHM, canonical_bytes(manifest)).hexdigest()


def stamp_hash(manifest: Manifest) -> Manifest:
    """Return a copy of the manifest with its content hash filled in."""
    return manifest.model_copy(update={"hash": compute_manifest_hash(manifest)})
