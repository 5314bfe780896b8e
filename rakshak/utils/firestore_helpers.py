"""
Firestore query helpers shared by the services.

NOTE: firebase_admin still accepts positional where() arguments; the
FieldFilter form only silences a deprecation warning, so positional
arguments are kept for compatibility with the mock database.
"""

from typing import Dict, Optional


def where_filter(query, field_path: str, op_string: str, value):
    """
    Apply an equality/comparison filter to a collection or query.

    Usage:
        query = where_filter(collection, "category", "==", "fire")
        query = where_filter(query, "status", "==", "pending")
    """
    return query.where(field_path, op_string, value)


def snapshot_to_dict(doc) -> Optional[Dict]:
    """Document snapshot -> plain dict with its "id", or None if it does not exist."""
    if doc is None or not doc.exists:
        return None
    data = doc.to_dict() or {}
    data["id"] = doc.id
    return data
