"""Element identifiers.

Walls, layers, rooms and plans share one id scheme: 22-character compressed
GUIDs (the IFC GlobalId encoding). Records loaded from JSON may carry any
non-empty string id; only freshly created elements get a compressed GUID.
"""

from __future__ import annotations

import uuid

import ifcopenshell.guid


def generate_id() -> str:
    """Generate a new 22-character element id."""
    return ifcopenshell.guid.compress(uuid.uuid4().hex)


def is_generated_id(value: str) -> bool:
    """Check if a string looks like an id produced by generate_id()."""
    return isinstance(value, str) and len(value) == 22
