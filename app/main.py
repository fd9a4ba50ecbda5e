from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from app.routers import jobs, resumes

# Import logging and middleware
from app.utils.logging_config import configure_for_environment, get_logger
from app.utils.utils import PRELOAD_EMBEDDING_MODEL
from app.middleware.error_handlers import (
    ExceptionHandlerMiddleware,
    RequestLoggingMiddleware,
    PerformanceMiddleware,
    register_exception_handlers,
)

# Configure logging first
configure_for_environment()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager"""
    logger.info("Matching API starting up...")

    try:
        from app.services.db import init_indexes
        await init_indexes()
    except Exception as e:
        logger.warning(f"Database index initialization had issues: {e}")
        logger.info("Application will continue - some operations may be slower without indexes")

    if PRELOAD_EMBEDDING_MODEL:
        from app.services.embeddings import get_embedding_generator
        from app.utils.exceptions import ModelUnavailableError
        try:
            await get_embedding_generator().aload()
        except ModelUnavailableError as e:
            # the next embedding request retries the load
            logger.warning(f"Embedding model preload failed: {e.message}")

    logger.info("Matching API startup completed")

    yield

    logger.info("Matching API shutting down...")


app = FastAPI(title="Resume Matching API", version="1.0.0", lifespan=lifespan)

# Add middleware in order (LIFO - Last In, First Out)
# Exception handler should be the outermost middleware
app.add_middleware(PerformanceMiddleware, slow_request_threshold=2.0)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(ExceptionHandlerMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.get("/")
@app.head("/")
async def root():
    """Root endpoint - handles both GET and HEAD requests for health checks"""
    return {"message": "Welcome to the Resume Matching API", "version": "1.0.0", "status": "ok"}


@app.get("/health")
@app.head("/health")
async def health_check():
    from app.services.embeddings import get_embedding_generator
    return {
        "status": "healthy",
        "embeddingModelLoaded": get_embedding_generator().is_loaded,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# Include routers
app.include_router(resumes.router, prefix="/api/resumes", tags=["resumes"])
app.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])

logger.info("Matching API initialized successfully")
