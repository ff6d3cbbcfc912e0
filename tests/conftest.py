"""
Shared fixtures for Manifold tests.

The "Shop" domain is used throughout: a Customer entity, a LegacyOrder
entity, an Address value object, an OrderStatus enum, one rule set and
one persistence configuration.
"""
from datetime import datetime, timezone

import pytest

from core.manifest import (
    Entity,
    EntityConfiguration,
    EnumType,
    Index,
    Manifest,
    Property,
    Rule,
    RuleSet,
    ValueObject,
)
from core.snapshot import create_snapshot


FIXED_TIME = datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


def customer(*extra_properties, name_type="string", name_required=True, keys=("Id",)):
    return Entity(
        name="Customer",
        type_name="Shop.Customer",
        namespace="Shop",
        properties=(
            Property(name="Id", type_name="int", is_required=True),
            Property(name="Name", type_name=name_type, is_required=name_required),
        ) + tuple(extra_properties),
        key_properties=keys,
    )


def legacy_order():
    return Entity(
        name="LegacyOrder",
        type_name="Shop.LegacyOrder",
        properties=(Property(name="Id", type_name="int", is_required=True),),
        key_properties=("Id",),
    )


def address(*extra_properties):
    return ValueObject(
        name="Address",
        type_name="Shop.Address",
        properties=(Property(name="Street", type_name="string", is_required=True),) + tuple(extra_properties),
    )


def order_status(**values):
    return EnumType(
        name="OrderStatus",
        type_name="Shop.OrderStatus",
        values=values or {"Pending": 0, "Shipped": 1},
    )


def customer_rules(*rule_ids):
    ids = rule_ids or ("customer-name-required",)
    return RuleSet(
        name="Default",
        target_type="Customer",
        rules=tuple(Rule(id=i, category="Invariant", target_type="Customer") for i in ids),
    )


def customer_configuration(table_name="Customers", indexes=()):
    return EntityConfiguration(
        entity_name="Customer",
        entity_type_name="Shop.Customer",
        table_name=table_name,
        key_properties=("Id",),
        indexes=tuple(indexes),
    )


def make_manifest(version="1.0.0", entities=None, value_objects=None, enums=None,
                  rule_sets=None, configurations=None, **fields):
    """Shop manifest; any category can be replaced."""
    return Manifest(
        name=fields.pop("name", "Shop"),
        version=version,
        created_at=fields.pop("created_at", FIXED_TIME),
        entities=(customer(), legacy_order()) if entities is None else tuple(entities),
        value_objects=(address(),) if value_objects is None else tuple(value_objects),
        enums=(order_status(),) if enums is None else tuple(enums),
        rule_sets=(customer_rules(),) if rule_sets is None else tuple(rule_sets),
        configurations=(customer_configuration(),) if configurations is None else tuple(configurations),
        **fields,
    )


@pytest.fixture
def shop_manifest():
    return make_manifest()


@pytest.fixture
def shop_snapshot(shop_manifest):
    return create_snapshot(shop_manifest)


@pytest.fixture
def email_index():
    return Index(name="IX_Customer_Email", properties=("Email",), is_unique=True)
