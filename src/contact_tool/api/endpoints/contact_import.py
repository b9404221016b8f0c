"""Contact import endpoints: batch upsert and file preview"""
import logging
from typing import Any
from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from src.contact_tool.api.deps import DbSession, ImportUser
from src.contact_tool.config import settings
from src.contact_tool.schemas.contact_import import (
    ColumnInfo,
    ContactImportResponse,
    ImportPreviewResponse,
    PreviewRow,
)
from src.contact_tool.services.contact_upsert import upsert_contacts
from src.contact_tool.services.errors import CsvFileError
from src.contact_tool.services.import_session import ImportSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/contacts")


@router.post("/import", response_model=ContactImportResponse)
async def import_contacts(request: Request, db: DbSession, user: ImportUser):
    """
    Upsert one batch of rows.
    Body is a JSON array of row objects keyed by field name.
    Rows are processed individually; see ``skipped`` and ``failed`` in the response.
    """
    try:
        rows: Any = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="invalid")
    if not isinstance(rows, list):
        raise HTTPException(status_code=400, detail="invalid")

    try:
        result = upsert_contacts(db=db, rows=rows, actor=user)
    except OperationalError as e:
        db.rollback()
        logger.error(f"Contact import failed, database unavailable: {e}")
        raise HTTPException(status_code=503, detail="Database connection failed. Verify DATABASE_URL configuration.")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Contact import failed: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    return result.to_response()


@router.post("/import/preview", response_model=ImportPreviewResponse)
async def preview_contact_import(user: ImportUser, file: UploadFile = File(...)):
    """
    Parse an uploaded CSV/TSV and return detected columns, the proposed
    mapping, and the first rows as they would be imported.
    """
    content = await file.read()
    session = ImportSession(clear_empty=settings.IMPORT_CLEAR_EMPTY_FIELDS)
    try:
        session.load_file(content, max_bytes=settings.CSV_MAX_UPLOAD_MB * 1024 * 1024)
    except CsvFileError as e:
        raise HTTPException(status_code=400, detail=e.message)

    payload = session.build_payload() if session.mapping else None
    preview_rows = session.preview(limit=settings.IMPORT_PREVIEW_ROWS)

    return ImportPreviewResponse(
        total_rows=len(session.table.data_rows),
        columns=[
            ColumnInfo(id=c.id, label=c.label, raw_label=c.raw_label, index=c.index)
            for c in session.columns
        ],
        mapping=dict(session.mapping),
        missing_required=session.missing_required(),
        preview_rows=[PreviewRow(**row) for row in preview_rows],
        usable_count=len(payload.records) if payload else 0,
        invalid_row_numbers=payload.invalid_row_numbers if payload else [],
        empty_row_numbers=payload.empty_row_numbers if payload else [],
        duplicate_row_numbers=session.duplicate_rows(payload) if payload else {},
    )
