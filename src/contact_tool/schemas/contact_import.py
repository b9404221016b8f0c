"""Contact import schemas: upsert wire format and preview"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from email_validator import validate_email, EmailNotValidError
from pydantic import BaseModel, ConfigDict, field_validator

from src.contact_tool.services.contact_schema import CONTACT_SCHEMA
from src.contact_tool.services.value_normalizer import (
    ValueNormalizer,
    normalize_email,
    parse_source_datetime,
    split_tags,
)

_normalizer = ValueNormalizer(CONTACT_SCHEMA)


class ContactImportRow(BaseModel):
    """One row as sent by the batch importer. Unknown keys are ignored."""
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    record_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    contact_method: Optional[str] = None
    support_priority: Optional[str] = None
    pattern: Optional[str] = None
    meeting_status: Optional[str] = None
    registration_status: Optional[str] = None
    line_registered: Optional[str] = None
    phone_number: Optional[str] = None
    acquisition_source: Optional[str] = None
    facebook_url: Optional[str] = None
    list_acquired: Optional[str] = None
    matching_list_url: Optional[str] = None
    contact_owner: Optional[str] = None
    marketing_contact_status: Optional[str] = None
    source_created_at: Optional[datetime] = None
    strength: Optional[str] = None
    notes: Optional[str] = None
    tier: Optional[str] = None
    tags: Optional[List[str]] = None

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        try:
            return validate_email(normalize_email(v), check_deliverability=False).normalized
        except EmailNotValidError as e:
            raise ValueError(f"invalid email format: {e}")

    @field_validator("strength", "contact_method", "tier")
    @classmethod
    def canonicalize_enum(cls, v: Optional[str], info) -> Optional[str]:
        if not v:
            return None
        return _normalizer.lookup_enum(info.field_name, v)

    @field_validator("source_created_at", mode="before")
    @classmethod
    def parse_created_at(cls, v: Any) -> Any:
        if isinstance(v, str):
            if not v.strip():
                return None
            # an unparseable date leaves the field unset
            return parse_source_datetime(v)
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, v: Union[str, List[Any], None]) -> Optional[List[str]]:
        if v is None:
            return None
        if isinstance(v, str):
            return split_tags(v) or None
        tags = []
        for item in v:
            for tag in split_tags(str(item)):
                if tag not in tags:
                    tags.append(tag)
        return tags or None

    @field_validator(
        "record_id", "first_name", "last_name", "support_priority", "pattern",
        "meeting_status", "registration_status", "line_registered", "phone_number",
        "acquisition_source", "facebook_url", "list_acquired", "matching_list_url",
        "contact_owner", "marketing_contact_status", "notes",
    )
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class ImportRowSkip(BaseModel):
    index: int
    reason: str


class ImportRowFailure(BaseModel):
    index: int
    error: str


class ContactImportResponse(BaseModel):
    ok: bool = True
    count: int
    created: int
    updated: int
    skipped: List[ImportRowSkip] = []
    failed: List[ImportRowFailure] = []


class ColumnInfo(BaseModel):
    id: str
    label: str
    raw_label: str
    index: int


class PreviewRow(BaseModel):
    row_number: int
    values: Dict[str, Any]
    status: str
    reason: Optional[str] = None


class ImportPreviewResponse(BaseModel):
    total_rows: int
    columns: List[ColumnInfo]
    mapping: Dict[str, str]
    missing_required: List[str]
    preview_rows: List[PreviewRow]
    usable_count: int
    invalid_row_numbers: List[int]
    empty_row_numbers: List[int]
    duplicate_row_numbers: Dict[int, int]
