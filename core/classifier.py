"""
Breaking-change policy for Manifold.

The diff engine asks this class at every decision point whether a change
is breaking. It holds no state and only looks at the values it is given,
so the policy can change without touching the traversal code.

| Change                          | Breaking?                |
|---------------------------------|--------------------------|
| Entity removed / added          | yes / no                 |
| Property removed                | yes                      |
| Property added                  | only if required         |
| Property type changed           | yes                      |
| Property optional -> required   | yes                      |
| Property required -> optional   | no                       |
| Key-property set changed        | yes                      |
| Value object removed / added    | yes / no                 |
| Enum removed / added            | yes / no                 |
| Enum value removed / renumbered | yes                      |
| Enum value added                | no                       |
| Index added / removed           | no                       |
| Rule / rule-set change          | no                       |
| Other configuration change      | no                       |
"""


class BreakingChangeClassifier:
    """Classifies changes as breaking or non-breaking."""

    # Entities

    def is_entity_removal_breaking(self) -> bool:
        return True

    def is_entity_addition_breaking(self) -> bool:
        return False

    def is_key_change_breaking(self) -> bool:
        return True

    # Properties

    def is_property_removal_breaking(self) -> bool:
        return True

    def is_property_addition_breaking(self, is_required: bool) -> bool:
        return is_required

    def is_property_type_change_breaking(self, old_type: str, new_type: str) -> bool:
        return old_type != new_type

    def is_required_change_breaking(self, was_required: bool, is_required: bool) -> bool:
        """Only tightening optional -> required breaks existing data."""
        return not was_required and is_required

    # Value objects

    def is_value_object_removal_breaking(self) -> bool:
        return True

    def is_value_object_addition_breaking(self) -> bool:
        return False

    # Enums

    def is_enum_removal_breaking(self) -> bool:
        return True

    def is_enum_addition_breaking(self) -> bool:
        return False

    def is_enum_value_removal_breaking(self) -> bool:
        return True

    def is_enum_value_addition_breaking(self) -> bool:
        return False

    def is_enum_value_renumbering_breaking(self) -> bool:
        return True

    # Configuration

    def is_index_addition_breaking(self) -> bool:
        return False

    def is_index_removal_breaking(self) -> bool:
        return False

    def is_configuration_change_breaking(self) -> bool:
        return False

    # Rules

    def is_rule_change_breaking(self) -> bool:
        return False
