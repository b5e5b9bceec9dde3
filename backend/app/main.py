"""
FastAPI application entry point for the Scooter Support Chat.

This module initializes the FastAPI app with middleware, CORS, logging,
the chat services and the API router.
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.core.exceptions import AppException
from app.core.limiter import limiter
from app.database import SessionLocal, get_db_context, init_db
from app.routers import chat
from app.services.auto_reply_service import seed_predefined_questions
from app.services.chat_session import ChatContext
from app.services.scheduler import AsyncioScheduler
from app.services.storage_service import build_storage

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    # Startup
    logger.info("Initializing database...")
    init_db()
    with get_db_context() as db:
        seed_predefined_questions(db)
    logger.info("Database initialized successfully")

    app.state.chat_context = ChatContext.build(
        session_factory=SessionLocal,
        scheduler=AsyncioScheduler(asyncio.get_running_loop()),
        storage=build_storage(settings),
    )

    yield

    # Shutdown
    logger.info("Shutting down application...")
    app.state.chat_context.close()


# Create FastAPI app
app = FastAPI(
    title="Scooter Support Chat API",
    description="Customer support chat with predefined-question auto-replies",
    version="1.0.0",
    lifespan=lifespan,
)
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def custom_rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"detail": "Rate limit exceeded. Please try again later."},
    )


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code}: {exc.details or exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add GZip compression
app.add_middleware(GZipMiddleware, minimum_size=1000)

# Register routers
app.include_router(chat.router, prefix="/api/chat", tags=["chat"])

# Locally stored attachments are served under PUBLIC_BASE_URL
if settings.STORAGE_BACKEND == "local":
    app.mount(
        "/files",
        StaticFiles(
            directory=os.path.join(settings.UPLOAD_DIR, settings.STORAGE_BUCKET), check_dir=False
        ),
        name="files",
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"message": "Internal Server Error", "details": str(exc)},
    )


@app.get("/")
async def root():
    """Root endpoint for health check."""
    return {"message": "Scooter Support Chat API", "status": "running"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
