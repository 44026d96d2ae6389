from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from careerhub.routers import auth, chat, cover_letters, jobs, resumes, users

from careerhub.utils.logging_config import configure_for_environment, get_logger
from careerhub.utils.settings import get_settings
from careerhub.middleware.error_handlers import (
    ExceptionHandlerMiddleware,
    PerformanceMiddleware,
    request_validation_exception_handler,
)
from careerhub.services.ai_client import GenerativeClient
from careerhub.services.db import MongoService
from careerhub.services.extraction import TextExtractor
from careerhub.services.mailer import Mailer
from careerhub.services.ocr import OcrEngine
from careerhub.services.reminders import ReminderScheduler

# Configure logging first
configure_for_environment()
logger = get_logger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: process-scoped services live between startup and shutdown"""
    logger.info("CareerHub API starting up...")
    settings.validate_for_production()

    mongo = MongoService(settings.mongo_uri, settings.db_name)
    mongo.connect()
    app.state.mongo = mongo

    try:
        await mongo.init_indexes()
        logger.info("Database indexes initialized successfully")
    except Exception as e:
        logger.warning(f"Database index initialization had issues: {e}")
        logger.info("Application will continue - some operations may be slower without indexes")

    app.state.mailer = Mailer.from_settings(settings)
    scheduler = None
    if settings.enable_reminders:
        if app.state.mailer.configured:
            scheduler = ReminderScheduler(mongo, app.state.mailer, settings.reminder_hour)
            scheduler.start()
        else:
            logger.warning("SMTP is not configured; job reminder emails are disabled")

    logger.info("CareerHub API startup completed")

    yield

    logger.info("CareerHub API shutting down...")
    if scheduler is not None:
        await scheduler.stop()
    mongo.close()
    logger.info("CareerHub API shutdown completed")


app = FastAPI(title="CareerHub API", version="1.0.0", lifespan=lifespan)

app.state.settings = settings
app.state.ai_client = GenerativeClient.from_settings(settings)
app.state.extractor = TextExtractor(
    OcrEngine(language=settings.ocr_language, dpi=settings.ocr_dpi, scratch_root=settings.scratch_dir)
)

# Starlette wraps in reverse order: the last middleware added runs first
app.add_middleware(PerformanceMiddleware, slow_request_threshold=2.0)
app.add_middleware(ExceptionHandlerMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.client_url],
    allow_credentials=settings.client_url != "*",
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)


@app.get("/api/health")
@app.head("/api/health")
async def health_check():
    """Health check endpoint - handles both GET and HEAD requests"""
    return {"status": "ok", "message": "Server is running"}


# Include routers
app.include_router(resumes.router, tags=["resumes"])
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(chat.router, prefix="/api/chat", tags=["chat"])
app.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])
app.include_router(cover_letters.router, prefix="/api", tags=["cover-letters"])
app.include_router(users.router, prefix="/api/user", tags=["users"])

logger.info("CareerHub API initialized successfully")
