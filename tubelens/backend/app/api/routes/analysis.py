"""
TubeLens API: Analysis routes.

  - GET  /analysis/{analysis_id}       status polling
  - POST /analysis/{analysis_id}/run   start or re-run an analysis
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException

from app.core.errors import NotFoundError
from app.models.models import AnalysisStatus
from app.schemas.schemas import (
    AnalysisStatusResponse, RunAnalysisResponse, SectionSchema, VideoSchema,
)
from app.services.analysis.orchestrator import AnalysisOrchestrator
from app.services.analysis.repository import AnalysisRepository, analysis_repository

router = APIRouter(prefix="/analysis", tags=["Analysis"])

_orchestrator = AnalysisOrchestrator()


def get_repository() -> AnalysisRepository:
    return analysis_repository


def get_orchestrator() -> AnalysisOrchestrator:
    return _orchestrator


def _parse_uuid(value: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid analysis ID format")


@router.get("/{analysis_id}", response_model=AnalysisStatusResponse)
async def get_analysis(analysis_id: str, repo: AnalysisRepository = Depends(get_repository)):
    """Job status plus the section types stored so far; payloads only once DONE."""
    analysis = await repo.get_analysis(_parse_uuid(analysis_id))
    if not analysis:
        raise NotFoundError("Analysis", analysis_id)

    video = analysis.video
    sections = None
    if analysis.status == AnalysisStatus.DONE:
        sections = {
            s.type.value: SectionSchema(type=s.type, json_payload=s.json, markdown=s.markdown)
            for s in analysis.sections
        }

    return AnalysisStatusResponse(
        id=str(analysis.id),
        video_id=str(analysis.video_id),
        status=analysis.status,
        error=analysis.error,
        section_types=[s.type for s in analysis.sections],
        sections=sections,
        video=VideoSchema(
            id=str(video.id),
            youtube_id=video.youtube_id,
            title=video.title,
            channel=video.channel,
            thumbnail_url=video.thumbnail_url,
            duration_seconds=video.duration_seconds or 0,
            view_count=video.view_count,
            like_count=video.like_count,
            comment_count=video.comment_count,
        ) if video else None,
        created_at=analysis.created_at,
        updated_at=analysis.updated_at,
    )


@router.post("/{analysis_id}/run", response_model=RunAnalysisResponse)
async def run_analysis(
    analysis_id: str,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Start (or re-run) an analysis. Requires a stored transcript."""
    analysis = await orchestrator.start(_parse_uuid(analysis_id))
    return RunAnalysisResponse(analysis_id=str(analysis.id), status=analysis.status)
