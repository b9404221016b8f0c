"""Canonicalization of raw cell text into target field values"""
import re
import unicodedata
from datetime import datetime
from typing import Any, Dict, List, Optional

from src.contact_tool.services.contact_schema import EnumSpec, FieldKind, TargetSchema

WHITESPACE_RE = re.compile(r"\s+")
TAG_SEPARATOR_RE = re.compile(r"[,、]")

DATETIME_FORMATS = [
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
    "%Y%m%d",
]


def normalize_to_halfwidth(text: str) -> str:
    return unicodedata.normalize("NFKC", text)


def normalize_lookup_key(text: str) -> str:
    """Key used for alias and keyword matching: half-width, no whitespace, lowercase."""
    return WHITESPACE_RE.sub("", normalize_to_halfwidth(text)).lower()


def normalize_email(email: str) -> str:
    email = normalize_to_halfwidth(email)
    email = email.strip().lower()
    email = email.replace('＠', '@')
    email = email.replace('．', '.')
    email = email.replace('。', '.')
    return email


def parse_source_datetime(value: str) -> Optional[datetime]:
    # "2025/10/06 12:34" and "2025-10-06T12:34" are both common in exports
    text = normalize_to_halfwidth(value).strip().replace("/", "-").replace("T", " ")
    text = WHITESPACE_RE.sub(" ", text)
    for fmt in DATETIME_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def split_tags(value: str) -> List[str]:
    tags = []
    for part in TAG_SEPARATOR_RE.split(normalize_to_halfwidth(value)):
        tag = part.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def build_enum_lookup(spec: EnumSpec) -> Dict[str, str]:
    """Map every normalized code, label and alias to its code. First write wins."""
    lookup: Dict[str, str] = {}
    for code, label in spec.labels.items():
        for spelling in [code, label, *spec.aliases.get(code, [])]:
            key = normalize_lookup_key(spelling)
            if key and key not in lookup:
                lookup[key] = code
    return lookup


class ValueNormalizer:
    """Normalizes raw cells per field of a target schema.

    Enum lookup tables are built once, at construction. A value that cannot
    be recognized normalizes to ``None`` (leave unset); nothing here raises
    for bad cell content.
    """

    def __init__(self, schema: TargetSchema):
        self.schema = schema
        self._enum_tables: Dict[str, Dict[str, str]] = {
            f.key: build_enum_lookup(f.enum)
            for f in schema.fields
            if f.kind == FieldKind.ENUM and f.enum is not None
        }

    def lookup_enum(self, field_key: str, raw: str) -> Optional[str]:
        table = self._enum_tables[field_key]
        key = normalize_lookup_key(raw)
        if not key:
            return None
        return table.get(key)

    def normalize(self, field_key: str, raw: Optional[str]) -> Optional[Any]:
        spec = self.schema.get(field_key)
        if raw is None:
            return None
        value = str(raw).strip()
        if not value:
            return None

        if spec.kind == FieldKind.ENUM:
            return self.lookup_enum(field_key, value)
        if spec.kind == FieldKind.EMAIL:
            return normalize_email(value) or None
        if spec.kind == FieldKind.DATE:
            parsed = parse_source_datetime(value)
            return parsed.isoformat() if parsed else None
        if spec.kind == FieldKind.TAGS:
            return split_tags(value) or None
        return value
