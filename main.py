from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI

from tracker_app.config import settings
from tracker_app.api.v1 import stats
from tracker_app.dependencies import build_pipeline, get_pipeline
from tracker_app.log_setup import diagnostic_logger
from tracker_app.pipeline.lifecycle import Pipeline


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the ingestion pipeline for as long as the app is up"""
    with diagnostic_logger(settings) as logger:
        pipeline = build_pipeline(logger)
        app.state.pipeline = pipeline
        await pipeline.start()
        try:
            yield
        finally:
            await pipeline.stop()


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Near-real-time PV/UV counters from dig tracking requests",
    debug=settings.debug,
    lifespan=lifespan,
)


@app.get("/")
def read_root():
    """Root endpoint with API information"""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/docs",
        "stats": "/api/v1/stats/",
    }


@app.get("/health")
async def health_check(pipeline: Pipeline = Depends(get_pipeline)):
    """Health check endpoint"""
    return {
        "status": "healthy" if pipeline.running else "stopped",
        "environment": settings.environment,
        "dedup_reachable": await pipeline.dedup.ping(),
    }


######## Include routers
app.include_router(stats.router, prefix="/api/v1")
