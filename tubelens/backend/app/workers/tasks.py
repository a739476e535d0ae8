"""
TubeLens Celery Worker Tasks

The two pipeline triggers:
- tubelens.extract_transcript(video_id): acquisition chain, then hand-off
- tubelens.analyze_video(analysis_id): eight sections, then job settlement
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Union

from celery import Celery
from celery.signals import worker_process_init

from app.core.config import get_settings
from app.core.errors import NotFoundError, PreconditionError, TubeLensError

settings = get_settings()
logger = logging.getLogger(__name__)

EXTRACT_TRANSCRIPT = "tubelens.extract_transcript"
ANALYZE_VIDEO = "tubelens.analyze_video"

# ── Celery App ───────────────────────────────────────────────────────────

celery_app = Celery(
    "tubelens",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_soft_time_limit=1800,   # 30 min soft limit
    task_time_limit=3600,        # 1 hour hard limit
    task_default_queue="default",
    task_routes={
        EXTRACT_TRANSCRIPT: {"queue": "transcripts"},
        ANALYZE_VIDEO: {"queue": "analysis"},
    },
)

@worker_process_init.connect
def _init_worker(**kwargs):
    from app.core.logging import configure_logging

    configure_logging(settings)
    settings.require_llm_provider()


# ── Helpers ──────────────────────────────────────────────────────────────

def run_async(coro):
    """Run an async coroutine from sync Celery task."""
    from app.core.database import engine

    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        # Pooled connections are bound to this loop
        loop.run_until_complete(engine.dispose())
        loop.close()


def dispatch_transcript_extraction(video_id: Union[str, uuid.UUID]):
    """Emit "acquire transcript for video X"."""
    return extract_transcript_task.delay(str(video_id))


def dispatch_analysis(analysis_id: Union[str, uuid.UUID]):
    """Emit "run analysis for job Y"."""
    return analyze_video_task.delay(str(analysis_id))


# ── Tasks ────────────────────────────────────────────────────────────────

@celery_app.task(
    name=EXTRACT_TRANSCRIPT,
    bind=True,
    max_retries=2,
    acks_late=True,
)
def extract_transcript_task(self, video_id: str):
    """Acquire a transcript and start the newest pending analysis."""
    from app.services.transcript.transcript_service import transcript_service

    try:
        logger.info(f"Extracting transcript for video: {video_id}")
        result = run_async(transcript_service.acquire_for_video(uuid.UUID(video_id)))
        logger.info(f"Transcript ready for {video_id} via {result.source.value}")
        return result.to_dict()
    except NotFoundError:
        logger.error(f"Video {video_id} vanished before transcript extraction")
        raise
    except Exception as exc:
        logger.error(f"Transcript extraction failed for {video_id}: {exc}")
        raise self.retry(exc=exc, countdown=30 * (2 ** self.request.retries))


@celery_app.task(name=ANALYZE_VIDEO, acks_late=True)
def analyze_video_task(analysis_id: str):
    """Generate every section for one analysis and settle its status."""
    from app.services.analysis.orchestrator import AnalysisOrchestrator

    logger.info(f"Analyzing: {analysis_id}")
    try:
        result = run_async(AnalysisOrchestrator().run(uuid.UUID(analysis_id)))
    except PreconditionError as exc:
        logger.warning(f"Analysis {analysis_id} not runnable: {exc.message}")
        return {"analysis_id": analysis_id, "status": "SKIPPED", "error": exc.message}
    except TubeLensError as exc:
        logger.error(f"Analysis {analysis_id} failed: {exc.message}")
        raise

    logger.info(f"Completed analysis {analysis_id}: {result.status.value}")
    return result.to_dict()

