"""FastAPI application entry point."""
import asyncio
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .routes import analysis
from .services import session_store
from .utils.logger import logger

# Create FastAPI app
app = FastAPI(
    title="LLM Visibility Audit API",
    description="Multi-page AI/LLM visibility analysis with progress polling",
    version="1.0.0",
    debug=settings.debug,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify actual origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(analysis.router)

_sweep_task: Optional[asyncio.Task] = None


async def sweep_sessions_periodically(interval_seconds: int, ttl_minutes: int) -> None:
    """Remove expired sessions on a fixed interval until cancelled.

    Args:
        interval_seconds: Pause between sweeps
        ttl_minutes: Session retention after completion or last update
    """
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await session_store.sweep_expired(ttl_minutes)
        except Exception as e:
            logger.error(f"Session sweep failed: {e}")


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint.

    Returns:
        Health status
    """
    return {"status": "healthy", "service": "visibility-audit", "sessions": len(session_store)}


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint.

    Returns:
        Welcome message
    """
    return {
        "message": "LLM Visibility Audit API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }


# Startup event
@app.on_event("startup")
async def startup_event():
    """Run on application startup."""
    global _sweep_task

    logger.info("Starting LLM Visibility Audit API")
    logger.info(f"Storage path: {settings.storage_path}")
    logger.info(f"Debug mode: {settings.debug}")

    _sweep_task = asyncio.create_task(
        sweep_sessions_periodically(settings.sweep_interval_seconds, settings.session_ttl_minutes)
    )


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """Run on application shutdown."""
    logger.info("Shutting down LLM Visibility Audit API")
    if _sweep_task is not None:
        _sweep_task.cancel()


def run() -> None:
    """Serve the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "visibility_audit.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="info",
    )


if __name__ == "__main__":
    run()
