"""
Main FastAPI application entry point.
Configured for direct deployment with Uvicorn.
"""
import asyncio
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger

from copymode.core.config import settings
from copymode.core.database import init_db, close_db
from copymode.core.exceptions import CopyModeError
from copymode.core.logging import configure_logging
from copymode.services.storage_service import storage_service
from copymode.api.routes import (
    agents,
    auth,
    chats,
    completions,
    content_types,
    experts,
    knowledge,
    tutorials,
    users,
)

configure_logging()
storage_service.ensure_buckets()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info(f"Starting {settings.APP_NAME} {settings.APP_VERSION}")

    # Try to initialize database with retry logic
    max_retries = 30
    retry_delay = 10  # seconds
    for attempt in range(max_retries):
        try:
            await init_db()
            logger.info("Database initialized")
            break
        except Exception as e:
            if attempt < max_retries - 1:
                logger.warning(f"Database connection attempt {attempt + 1}/{max_retries} failed: {e}")
                logger.warning(f"Retrying in {retry_delay} seconds...")
                await asyncio.sleep(retry_delay)
            else:
                logger.error(f"Failed to initialize database after {max_retries} attempts: {e}")
                logger.error("Application will continue but database operations will fail")

    yield
    # Shutdown
    logger.info("Shutting down...")
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
)

# CORS middleware - must be before other middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CopyModeError)
async def copymode_error_handler(request: Request, exc: CopyModeError):
    """Map service errors to {"detail": message} responses."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Include routers
app.include_router(auth.router, prefix=settings.API_V1_PREFIX)
app.include_router(users.router, prefix=settings.API_V1_PREFIX)
app.include_router(agents.router, prefix=settings.API_V1_PREFIX)
app.include_router(experts.router, prefix=settings.API_V1_PREFIX)
app.include_router(content_types.router, prefix=settings.API_V1_PREFIX)
app.include_router(chats.router, prefix=settings.API_V1_PREFIX)
app.include_router(knowledge.router, prefix=settings.API_V1_PREFIX)
app.include_router(completions.router, prefix=settings.API_V1_PREFIX)
app.include_router(tutorials.router, prefix=settings.API_V1_PREFIX)

# Uploaded avatars and knowledge files
app.mount("/storage", StaticFiles(directory=storage_service.root), name="storage")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "copymode.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
