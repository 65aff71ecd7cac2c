"""Helpers for the loosely typed input values users type into blocks."""

from typing import Any


def remove_empty_strings_and_nulls(value: Any) -> Any:
    """Recursively drop ``None`` and ``""`` entries from mappings.

    List elements are never removed so indices stay stable; ``None``
    elements are replaced with ``""`` instead. Returns a new structure.
    """
    if isinstance(value, list):
        return [
            "" if item is None else remove_empty_strings_and_nulls(item)
            for item in value
        ]
    if isinstance(value, dict):
        return {
            key: remove_empty_strings_and_nulls(item)
            for key, item in value.items()
            if item is not None and item != ""
        }
    return value


def is_blank(value: Any) -> bool:
    """True for values a user would consider "not filled in"."""
    if value is None or value is False:
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value == 0:
        return True
    return str(value).strip() == ""
