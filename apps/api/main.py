"""
Nuggets Bookmarks API - FastAPI Backend
Application entry point: logging, lifespan, middleware and routing.
"""

import logging
import logging.config
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings, validate_security_settings
from database import async_session_maker, engine, Base
import models  # noqa: F401
from routers import bookmark_folder_links, bookmark_folders, bookmarks, health
from services.bookmark_reconcile import reconcile_bookmark_folders_service

logging.config.dictConfig({
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"}
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        }
    },
    "root": {
        "level": settings.LOG_LEVEL,
        "handlers": ["console"],
    },
    "loggers": {
        "sqlalchemy.engine": {"level": "WARNING"},
        "httpx": {"level": "WARNING"},
    },
})

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting Nuggets Bookmarks API...")
    validate_security_settings()
    if settings.AUTO_CREATE_DB_SCHEMA:
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database schema verified.")
        except Exception as e:
            logger.warning("Database bootstrap skipped: %s", e)
    if settings.RECONCILE_BOOKMARKS_ON_STARTUP:
        try:
            async with async_session_maker() as db:
                summary = await reconcile_bookmark_folders_service(db)
            logger.info("Startup bookmark reconcile: %s", summary)
        except Exception:
            logger.exception("Startup bookmark reconcile skipped")
    yield
    await engine.dispose()
    logger.info("Shutting down API...")


app = FastAPI(
    title="Nuggets Bookmarks API",
    description="Bookmarks, bookmark folders and folder membership for saved nuggets",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[REQUEST_ID_HEADER],
)


@app.middleware("http")
async def attach_request_id(request: Request, call_next):
    """Reuse the caller's X-Request-Id or mint one, and echo it back."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    if response.status_code >= 500:
        logger.warning(
            "%s %s -> %s request_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            request_id,
        )
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"detail": "Validation failed", "errors": jsonable_encoder(exc.errors())},
    )


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(bookmark_folders.router, prefix="/bookmark-folders", tags=["Bookmark Folders"])
app.include_router(bookmarks.router, prefix="/bookmarks", tags=["Bookmarks"])
app.include_router(bookmark_folder_links.router, prefix="/bookmark-folder-links", tags=["Bookmark Folder Links"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Nuggets Bookmarks API",
        "version": "0.1.0",
        "status": "running"
    }
