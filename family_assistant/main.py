"""
Family Assistant - Main Application Entry Point

A group-chat family assistant for WhatsApp using FastAPI, Twilio,
SQLAlchemy and APScheduler: shared todos, calendar, shopping list,
wish lists and reminders.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from family_assistant.api.rest import router as rest_router
from family_assistant.api.whatsapp_webhook import cleanup_old_processed_messages, router as whatsapp_router
from family_assistant.config.settings import get_settings
from family_assistant.domain.errors import NotFoundError, PermissionDeniedError, ValidationError
from family_assistant.infrastructure.database import async_session_factory, dispose_database, init_database
from family_assistant.infrastructure.scheduler import ReminderScheduler
from family_assistant.infrastructure.twilio_whatsapp import deliver_reminder

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

logger = logging.getLogger(__name__)

reminder_scheduler = ReminderScheduler(async_session_factory, deliver_reminder)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info("Starting Family Assistant...")

    logger.info("Initializing database...")
    await init_database()
    removed = await cleanup_old_processed_messages()
    logger.info(f"Database initialized ({removed} stale message ids removed)")

    stop_event = asyncio.Event()
    scheduler_task = asyncio.create_task(
        reminder_scheduler.run(settings.reminder_poll_interval_seconds, stop_event)
    )

    logger.info("Application startup complete!")
    logger.info(f"Timezone: {settings.timezone}")
    logger.info(f"Twilio signature validation: {settings.validate_twilio_signature}")

    yield

    # Shutdown
    logger.info("Shutting down...")
    stop_event.set()
    await scheduler_task
    await dispose_database()
    logger.info("Application shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Family Assistant",
    description="Shared todos, calendar, shopping list, wish lists and reminders for a family chat",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware (restricted to Twilio for production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["https://api.twilio.com"],
    allow_credentials=True,
    allow_methods=["POST", "GET", "PUT", "DELETE"],
    allow_headers=["*"],
)

# Register routers
app.include_router(whatsapp_router, tags=["WhatsApp"])
app.include_router(rest_router, tags=["API"])


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(PermissionDeniedError)
async def permission_denied_handler(request: Request, exc: PermissionDeniedError):
    return JSONResponse(status_code=403, content={"detail": exc.message})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Family Assistant",
        "version": "1.0.0",
        "status": "running",
        "endpoints": {
            "webhook": "/webhook/whatsapp",
            "api": "/api",
            "health": "/health",
            "scheduler": "/scheduler/status"
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "family-assistant"}


@app.get("/scheduler/status")
async def scheduler_status():
    """Get reminder scheduler status."""
    return reminder_scheduler.status()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "family_assistant.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
