"""
TubeLens ORM Models: videos, transcripts, analyses and their sections.

An Analysis (job) owns at most one AnalysisSection per SectionType; the
(analysis_id, type) unique constraint is the upsert key for incremental writes.
"""
from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    JSON, DateTime, Enum, ForeignKey, Index, Integer, String, Text,
    UniqueConstraint, Uuid, func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


# ═══════════════════════════════════════════════════════════════════════
# Enums
# ═══════════════════════════════════════════════════════════════════════

class AnalysisStatus(str, enum.Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    DONE = "DONE"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (AnalysisStatus.DONE, AnalysisStatus.FAILED)


class SectionType(str, enum.Enum):
    OVERVIEW = "OVERVIEW"
    HEROS_JOURNEY = "HEROS_JOURNEY"
    EMOTION_ROLLERCOASTER = "EMOTION_ROLLERCOASTER"
    MONEY_SHOTS = "MONEY_SHOTS"
    TITLE_DECODE = "TITLE_DECODE"
    THUMBNAIL_XRAY = "THUMBNAIL_XRAY"
    CONTENT_HIGHLIGHTS = "CONTENT_HIGHLIGHTS"
    FULL_ARTICLE = "FULL_ARTICLE"


SECTION_TYPES: List[SectionType] = list(SectionType)

# A failure in any of these fails the whole analysis
CRITICAL_SECTIONS = frozenset({
    SectionType.OVERVIEW,
    SectionType.HEROS_JOURNEY,
    SectionType.EMOTION_ROLLERCOASTER,
})


class TranscriptSource(str, enum.Enum):
    SUPADATA = "supadata"
    GROQ_WHISPER = "groq-whisper"
    ASSEMBLYAI = "assemblyai"
    YOUTUBE_TRANSCRIPT = "youtube-transcript"
    OPENAI_WHISPER = "openai-whisper"
    MANUAL = "manual"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


# ═══════════════════════════════════════════════════════════════════════
# Core Content Models
# ═══════════════════════════════════════════════════════════════════════

class Video(Base):
    __tablename__ = "videos"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    youtube_id: Mapped[str] = mapped_column(String(32), unique=True, index=True)
    title: Mapped[str] = mapped_column(String(512))
    channel: Mapped[str] = mapped_column(String(256))
    thumbnail_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    duration_seconds: Mapped[int] = mapped_column(Integer, default=0)

    # Engagement
    view_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    like_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    comment_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    transcript: Mapped[Optional["Transcript"]] = relationship(
        "Transcript", back_populates="video", uselist=False, cascade="all, delete-orphan",
    )
    analyses: Mapped[List["Analysis"]] = relationship(
        "Analysis", back_populates="video", cascade="all, delete-orphan",
    )


class Transcript(Base):
    __tablename__ = "transcripts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    video_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("videos.id", ondelete="CASCADE"), unique=True)
    text: Mapped[str] = mapped_column(Text)
    source: Mapped[TranscriptSource] = mapped_column(
        Enum(TranscriptSource, values_callable=_enum_values, native_enum=False, length=32),
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    video: Mapped["Video"] = relationship("Video", back_populates="transcript")


# ═══════════════════════════════════════════════════════════════════════
# Analysis Jobs
# ═══════════════════════════════════════════════════════════════════════

class Analysis(Base):
    __tablename__ = "analyses"
    __table_args__ = (
        Index("ix_analyses_video_status_created", "video_id", "status", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    video_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("videos.id", ondelete="CASCADE"))
    status: Mapped[AnalysisStatus] = mapped_column(
        Enum(AnalysisStatus, native_enum=False, length=16), default=AnalysisStatus.PENDING,
    )
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    video: Mapped["Video"] = relationship("Video", back_populates="analyses")
    sections: Mapped[List["AnalysisSection"]] = relationship(
        "AnalysisSection", back_populates="analysis", cascade="all, delete-orphan",
        order_by="AnalysisSection.type",
    )


class AnalysisSection(Base):
    __tablename__ = "analysis_sections"
    __table_args__ = (
        UniqueConstraint("analysis_id", "type", name="uq_analysis_sections_analysis_type"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    analysis_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("analyses.id", ondelete="CASCADE"))
    type: Mapped[SectionType] = mapped_column(Enum(SectionType, native_enum=False, length=32))
    json: Mapped[dict] = mapped_column(JSON)
    markdown: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    analysis: Mapped["Analysis"] = relationship("Analysis", back_populates="sections")
