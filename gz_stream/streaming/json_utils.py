"""Helpers for working with progressively parsed module data."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any


def _is_missing(value: Any) -> bool:
    return value is None or (not value and not isinstance(value, dict | list))


def merge_partial_json(previous: Any, current: Any) -> Any:
    """
    Merge a newly parsed partial value over the previous one.

    Two objects are merged shallowly with the current keys winning; in every
    other case the current value replaces the previous one. Empty containers
    count as values; None and falsy scalars count as missing.
    """
    if _is_missing(current):
        return previous
    if _is_missing(previous):
        return current

    if isinstance(previous, dict) and isinstance(current, dict):
        return {**previous, **current}

    return current


def validate_json_structure(data: Any, required_keys: Iterable[str]) -> bool:
    """Return True if data is an object containing all required keys."""
    if not isinstance(data, dict):
        return False

    return all(key in data for key in required_keys)


def extract_field(data: Any, path: str, fallback: Any = None) -> Any:
    """Read a dotted path such as "finanzplanung.kapitalbedarf.summe"."""
    current = data
    for key in path.split("."):
        if isinstance(current, dict) and key in current:
            current = current[key]
        else:
            return fallback

    return current
