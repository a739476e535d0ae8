"""
TubeLens API Schemas: Pydantic v2 models for request/response validation.

Section payloads themselves are validated by app.schemas.sections; these
models only shape what the HTTP layer accepts and returns.
"""
from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.models import AnalysisStatus, SectionType, TranscriptSource


# ═══════════════════════════════════════════════════════════════════════
# Videos
# ═══════════════════════════════════════════════════════════════════════

class IngestRequest(BaseModel):
    url: str = Field(..., min_length=1, max_length=2048, description="YouTube video URL or id")


class IngestResponse(BaseModel):
    video_id: str
    analysis_id: str
    status: AnalysisStatus
    created: bool = False


class VideoSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    youtube_id: str
    title: str
    channel: str
    thumbnail_url: Optional[str] = None
    duration_seconds: int = 0
    view_count: Optional[int] = None
    like_count: Optional[int] = None
    comment_count: Optional[int] = None


# ═══════════════════════════════════════════════════════════════════════
# Transcripts
# ═══════════════════════════════════════════════════════════════════════

class TranscriptUpsert(BaseModel):
    text: str = Field(..., min_length=1)
    source: TranscriptSource = TranscriptSource.MANUAL


class TranscriptSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    video_id: str
    text: str
    source: TranscriptSource
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ═══════════════════════════════════════════════════════════════════════
# Analyses
# ═══════════════════════════════════════════════════════════════════════

class SectionSchema(BaseModel):
    type: SectionType
    json_payload: dict = Field(..., serialization_alias="json")
    markdown: Optional[str] = None


class AnalysisStatusResponse(BaseModel):
    """Polling view: section payloads appear once the job is DONE."""

    id: str
    video_id: str
    status: AnalysisStatus
    error: Optional[str] = None
    section_types: List[SectionType] = []
    sections: Optional[Dict[str, SectionSchema]] = None
    video: Optional[VideoSchema] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RunAnalysisResponse(BaseModel):
    analysis_id: str
    status: AnalysisStatus
