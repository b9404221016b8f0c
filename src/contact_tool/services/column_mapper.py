"""Automatic column detection and field mapping validation"""
from typing import Dict, List, Optional, Sequence

from src.contact_tool.services.contact_schema import TargetSchema
from src.contact_tool.services.csv_parser import Column
from src.contact_tool.services.errors import UnknownColumnError, UnknownFieldError
from src.contact_tool.services.value_normalizer import normalize_lookup_key

FieldMapping = Dict[str, str]


def propose_mapping(columns: Sequence[Column], schema: TargetSchema) -> FieldMapping:
    """Propose field -> column id assignments from header labels.

    Fields are visited in schema order; each takes the first unclaimed column
    whose normalized header exactly equals one of its keywords. Returns a new
    dict and never assigns a column twice.
    """
    normalized_labels = [(column, normalize_lookup_key(column.raw_label)) for column in columns]
    claimed: set = set()
    mapping: FieldMapping = {}

    for field in schema.fields:
        keywords = {normalize_lookup_key(k) for k in field.keywords}
        keywords.discard("")
        if not keywords:
            continue
        for column, label in normalized_labels:
            if column.id in claimed or not label:
                continue
            if label in keywords:
                mapping[field.key] = column.id
                claimed.add(column.id)
                break

    return mapping


def validate_mapping(mapping: FieldMapping, columns: Sequence[Column], schema: TargetSchema) -> None:
    known_columns = {column.id for column in columns}
    known_fields = set(schema.keys)
    for field_key, column_id in mapping.items():
        if field_key not in known_fields:
            raise UnknownFieldError(f"指定されたフィールドは取り込み対象ではありません: {field_key}")
        if column_id not in known_columns:
            raise UnknownColumnError(f"指定された列が存在しません: {column_id}")


def missing_required_mappings(mapping: FieldMapping, schema: TargetSchema) -> List[str]:
    return [key for key in schema.required_keys if not mapping.get(key)]


def find_column_by_label(columns: Sequence[Column], label: str) -> Optional[Column]:
    """Resolve an operator-typed header label (or a column id) to a column."""
    for column in columns:
        if column.id == label:
            return column
    wanted = normalize_lookup_key(label)
    for column in columns:
        if normalize_lookup_key(column.label) == wanted:
            return column
    return None
