from fastapi import APIRouter, Depends

from tracker_app.dependencies import get_pipeline
from tracker_app.models.events import PipelineStats
from tracker_app.pipeline.lifecycle import Pipeline

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/", response_model=PipelineStats)
def get_stats(pipeline: Pipeline = Depends(get_pipeline)):
    """
    Running totals since the pipeline started.

    Counts are process-local; the sink holds the durable aggregates.
    """
    return pipeline.stats
