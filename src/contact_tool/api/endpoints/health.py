"""Health check: database reachability and the active import settings"""
import logging
from fastapi import APIRouter
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from src.contact_tool.config import settings
from src.contact_tool.database import SessionLocal
from src.contact_tool.models.contact import Contact

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
def health_check():
    db_status = "connected"
    contact_count = None
    try:
        with SessionLocal() as db:
            contact_count = db.execute(select(func.count(Contact.id))).scalar_one()
    except SQLAlchemyError as e:
        logger.warning(f"Health check could not reach the database: {e}")
        db_status = f"error: {e.__class__.__name__}"

    return {
        "status": "ok" if db_status == "connected" else "degraded",
        "environment": settings.APP_ENV,
        "database": db_status,
        "contacts": contact_count,
        "import": {
            "batch_size": settings.IMPORT_BATCH_SIZE,
            "dedup_precedence": settings.dedup_key_order,
            "allowed_roles": settings.import_role_list,
            "clear_empty_fields": settings.IMPORT_CLEAR_EMPTY_FIELDS,
        },
    }
