# ============================================================================
# FILE: app/main.py
# ============================================================================
import asyncio
from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import FileResponse
from app.api.v1.router import api_router
from app.core.logging import setup_logging
from app.config import settings
from app.db.init_db import init_db
from app.db.session import engine, SessionLocal
from app.services.ingestion_service import ingestion_service
import logging
import os

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

# Create FastAPI app instance
app = FastAPI(
    title="Herd API",
    description="Listening-history leaderboards, artist pages and comments",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API v1 router
app.include_router(api_router, prefix="/api/v1")

# Serve the built client (if it exists)
frontend_path = os.path.join(os.path.dirname(__file__), "../frontend")
if os.path.exists(frontend_path):
    app.mount("/static", StaticFiles(directory=frontend_path), name="static")

def run_bulk_sync() -> int:
    """Load any streaming-history exports sitting in HISTORY_IMPORT_DIR"""
    db = SessionLocal()
    try:
        return ingestion_service.sync_directory(db, settings.HISTORY_IMPORT_DIR)
    finally:
        db.close()

async def bulk_sync_in_background() -> int:
    """Run bulk sync on a worker thread; failures are logged, never raised"""
    try:
        return await run_in_threadpool(run_bulk_sync)
    except Exception as e:
        logger.error(f"Bulk sync failed: {e}")
        return 0

@app.on_event("startup")
async def startup_event():
    """Initialize database and start loading history exports"""
    logger.info(f"Starting {settings.APP_NAME} API")
    init_db(engine)

    app.state.bulk_sync_task = None
    if settings.BULK_SYNC_ON_STARTUP:
        # Serve requests while exports load
        app.state.bulk_sync_task = asyncio.create_task(bulk_sync_in_background())

@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    logger.info(f"Shutting down {settings.APP_NAME} API")
    task = getattr(app.state, "bulk_sync_task", None)
    if task is not None and not task.done():
        logger.info("Waiting for bulk sync to finish")
        await task
    engine.dispose()

@app.get("/health")
async def health_check():
    return {"status": "healthy"}

@app.get("/")
async def serve_frontend():
    """Serve the frontend HTML file"""
    frontend_file = os.path.join(os.path.dirname(__file__), "../frontend/index.html")
    if os.path.exists(frontend_file):
        return FileResponse(frontend_file)
    return {"message": "Herd API", "version": "1.0.0", "docs": "/docs"}
