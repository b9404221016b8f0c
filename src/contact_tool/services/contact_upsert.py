"""Create-or-update of imported contact rows, one savepoint per row"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from src.contact_tool.config import get_settings
from src.contact_tool.models.contact import Contact, Tier
from src.contact_tool.models.user import User
from src.contact_tool.schemas.contact_import import (
    ContactImportRow,
    ContactImportResponse,
    ImportRowFailure,
    ImportRowSkip,
)
from src.contact_tool.services.audit import log_action
from src.contact_tool.services.dedup import DedupKey, resolve_dedup_key

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("last_name", "first_name")
# never cleared by an explicit null: names are required, keys identify the row
NON_CLEARABLE_FIELDS = {"last_name", "first_name", "record_id", "email", "tier"}


@dataclass
class UpsertResult:
    created: int = 0
    updated: int = 0
    skipped: List[ImportRowSkip] = field(default_factory=list)
    failed: List[ImportRowFailure] = field(default_factory=list)

    @property
    def count(self) -> int:
        return self.created + self.updated

    def to_response(self) -> ContactImportResponse:
        return ContactImportResponse(
            ok=True,
            count=self.count,
            created=self.created,
            updated=self.updated,
            skipped=self.skipped,
            failed=self.failed,
        )


def describe_validation_error(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts)


def find_existing(db: Session, key: DedupKey) -> Optional[Contact]:
    field_name, value = key
    column = getattr(Contact, field_name)
    return db.execute(select(Contact).where(column == value)).scalar_one_or_none()


def build_create_values(row: ContactImportRow, actor: User) -> Dict[str, Any]:
    values = row.model_dump(exclude_none=True)
    values["tier"] = Tier(values["tier"]) if "tier" in values else Tier.TIER2
    if actor.owns_imported_contacts:
        values["assigned_user_id"] = actor.id
    return values


def build_update_values(row: ContactImportRow, explicit_nulls: Sequence[str]) -> Dict[str, Any]:
    """Only supplied fields are updated; ownership and primary key are never touched."""
    values = row.model_dump(exclude_none=True)
    if "tier" in values:
        values["tier"] = Tier(values["tier"])
    for name in explicit_nulls:
        if name in ContactImportRow.model_fields and name not in NON_CLEARABLE_FIELDS:
            values[name] = None
    return values


def upsert_contacts(
    db: Session,
    rows: Sequence[Any],
    actor: User,
    precedence: Optional[Sequence[str]] = None,
    allow_clear: Optional[bool] = None,
) -> UpsertResult:
    """Resolve each row's dedup key and create or update the matching contact.

    Each row runs in its own SAVEPOINT so one bad row is reported in
    ``failed`` (or ``skipped`` for missing names and unique-key conflicts)
    without discarding the rest of the batch.
    """
    settings = get_settings()
    order = list(precedence or settings.dedup_key_order)
    clear_enabled = settings.IMPORT_CLEAR_EMPTY_FIELDS if allow_clear is None else allow_clear
    result = UpsertResult()

    for index, raw in enumerate(rows):
        if not isinstance(raw, dict):
            result.failed.append(ImportRowFailure(index=index, error="row must be a JSON object"))
            continue

        try:
            row = ContactImportRow.model_validate(raw)
        except ValidationError as e:
            result.failed.append(ImportRowFailure(index=index, error=describe_validation_error(e)))
            continue

        missing = [name for name in REQUIRED_FIELDS if not getattr(row, name)]
        if missing:
            result.skipped.append(ImportRowSkip(index=index, reason=f"missing required fields: {', '.join(missing)}"))
            continue

        explicit_nulls = [k for k, v in raw.items() if v is None] if clear_enabled else []
        key = resolve_dedup_key(row.model_dump(), order)

        try:
            with db.begin_nested():
                existing = find_existing(db, key) if key else None
                if existing:
                    for name, value in build_update_values(row, explicit_nulls).items():
                        setattr(existing, name, value)
                    action = "updated"
                else:
                    db.add(Contact(**build_create_values(row, actor)))
                    action = "created"
                db.flush()
        except IntegrityError as e:
            logger.info(f"Import row {index} conflicts with an existing contact: {e.orig}")
            result.skipped.append(ImportRowSkip(index=index, reason="duplicate key conflict"))
            continue
        except SQLAlchemyError as e:
            logger.warning(f"Import row {index} failed: {e}")
            result.failed.append(ImportRowFailure(index=index, error="database error"))
            continue

        if action == "updated":
            result.updated += 1
        else:
            result.created += 1

    logger.info(
        f"Contact upsert by user_id={actor.id}: created={result.created}, updated={result.updated}, "
        f"skipped={len(result.skipped)}, failed={len(result.failed)}"
    )
    log_action(
        db=db,
        actor=actor,
        action="CONTACTS_IMPORTED",
        target_type="contact",
        meta={
            "created": result.created,
            "updated": result.updated,
            "skipped": len(result.skipped),
            "failed": len(result.failed),
            "dedup_precedence": order,
        },
        commit=False,
    )
    db.commit()
    return result
