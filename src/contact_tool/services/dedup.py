"""Deduplication key resolution shared by the preview and the upsert endpoint"""
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from src.contact_tool.config import get_settings

DedupKey = Tuple[str, str]


def default_precedence() -> List[str]:
    return get_settings().dedup_key_order


def resolve_dedup_key(record: Mapping[str, Any], precedence: Optional[Sequence[str]] = None) -> Optional[DedupKey]:
    """Return ``(field, value)`` for the first key in precedence order that has a value.

    ``None`` means the record has no key and is always created.
    """
    for field in precedence or default_precedence():
        value = record.get(field)
        if isinstance(value, str) and value.strip():
            return field, value.strip()
    return None


def find_duplicate_rows(
    records: Sequence[Tuple[int, Mapping[str, Any]]],
    precedence: Optional[Sequence[str]] = None,
) -> Dict[int, int]:
    """Map row number -> earlier row number sharing its key within one file.

    Such rows merge into the same stored record; the later row wins.
    """
    order = precedence or default_precedence()
    first_seen: Dict[DedupKey, int] = {}
    duplicates: Dict[int, int] = {}
    for row_number, data in records:
        key = resolve_dedup_key(data, order)
        if key is None:
            continue
        if key in first_seen:
            duplicates[row_number] = first_seen[key]
        else:
            first_seen[key] = row_number
    return duplicates
