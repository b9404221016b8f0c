"""Main FastAPI application"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from src.contact_tool.api.endpoints import auth, contact_import, health
from src.contact_tool.api.errors import register_error_handlers
from src.contact_tool.config import settings

logger = logging.getLogger(__name__)

if not settings.SESSION_SECRET_KEY:
    raise RuntimeError("SESSION_SECRET_KEY environment variable is required")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting Contact Tool API in {settings.APP_ENV} environment")
    settings.validate_secrets_for_production()
    logger.info(
        f"Import settings: batch_size={settings.IMPORT_BATCH_SIZE}, "
        f"dedup_precedence={settings.dedup_key_order}, roles={settings.import_role_list}"
    )
    yield
    logger.info("Shutting down Contact Tool API")


app = FastAPI(
    title="Contact Tool - Contact Management",
    description="Internal contact management with CSV import",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SESSION_SECRET_KEY,
    session_cookie="contact_session",
    max_age=60 * 60 * 24 * 7,
    https_only=settings.is_production,
)

register_error_handlers(app)

app.include_router(health.router, tags=["Health"])
app.include_router(auth.router, tags=["Auth"])
app.include_router(contact_import.router, tags=["Import"])


@app.get("/")
def root():
    return {
        "message": "Contact Tool API",
        "environment": settings.APP_ENV,
        "docs": "/docs"
    }
