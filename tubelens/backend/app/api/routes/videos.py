"""
TubeLens API: Video routes.

  - POST /videos/ingest                  ingest a YouTube URL, start the pipeline
  - GET  /videos/{video_id}/transcript   stored transcript
  - PUT  /videos/{video_id}/transcript   manual transcript upsert
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException

from app.core.errors import NotFoundError
from app.schemas.schemas import IngestRequest, IngestResponse, TranscriptSchema, TranscriptUpsert
from app.services.analysis.repository import AnalysisRepository, analysis_repository
from app.services.videos.ingest_service import VideoIngestService, video_ingest_service

router = APIRouter(prefix="/videos", tags=["Videos"])


def get_repository() -> AnalysisRepository:
    return analysis_repository


def get_ingest_service() -> VideoIngestService:
    return video_ingest_service


def _parse_uuid(value: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid video ID format")


def _transcript_schema(transcript) -> TranscriptSchema:
    return TranscriptSchema(
        video_id=str(transcript.video_id),
        text=transcript.text,
        source=transcript.source,
        created_at=transcript.created_at,
        updated_at=transcript.updated_at,
    )


@router.post("/ingest", response_model=IngestResponse)
async def ingest_video(
    req: IngestRequest,
    service: VideoIngestService = Depends(get_ingest_service),
):
    """
    Register a video and kick off its analysis.

    Re-ingesting a known video returns its latest analysis unless that one
    FAILED, in which case a fresh analysis is created.
    """
    result = await service.ingest(req.url)
    return IngestResponse(
        video_id=str(result.video.id),
        analysis_id=str(result.analysis.id),
        status=result.analysis.status,
        created=result.created,
    )


@router.get("/{video_id}/transcript", response_model=TranscriptSchema)
async def get_transcript(video_id: str, repo: AnalysisRepository = Depends(get_repository)):
    transcript = await repo.get_transcript(_parse_uuid(video_id))
    if not transcript:
        raise NotFoundError("Transcript", video_id)
    return _transcript_schema(transcript)


@router.put("/{video_id}/transcript", response_model=TranscriptSchema)
async def put_transcript(
    video_id: str,
    body: TranscriptUpsert,
    repo: AnalysisRepository = Depends(get_repository),
):
    """Store a transcript by hand (source defaults to "manual")."""
    vid_uuid = _parse_uuid(video_id)
    if not await repo.get_video(vid_uuid):
        raise NotFoundError("Video", video_id)
    transcript = await repo.upsert_transcript(vid_uuid, body.text, body.source)
    return _transcript_schema(transcript)
