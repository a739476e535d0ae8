"""
TubeLens persistence for videos, transcripts, analyses and sections.

Every method opens its own short-lived session from the factory, so the
repository can be shared by the eight concurrent section tasks without any
two coroutines touching the same AsyncSession.

Section and transcript writes are native upserts (INSERT ... ON CONFLICT DO
UPDATE) keyed on (analysis_id, type) and video_id respectively.
"""
from __future__ import annotations

import logging
import uuid
from typing import Iterable, Optional

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from app.core.database import async_session_factory
from app.models.models import (
    Analysis, AnalysisSection, AnalysisStatus, SectionType, Transcript,
    TranscriptSource, Video,
)

logger = logging.getLogger(__name__)

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def _dialect_insert(session: AsyncSession):
    dialect = session.get_bind().dialect.name
    try:
        return _UPSERT_INSERTS[dialect]
    except KeyError:
        raise NotImplementedError(f"Upsert not supported for dialect '{dialect}'") from None


class AnalysisRepository:
    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        self.session_factory = session_factory or async_session_factory

    # ── Videos ───────────────────────────────────────────────────────────

    async def get_video(self, video_id: uuid.UUID) -> Optional[Video]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Video).options(selectinload(Video.transcript)).where(Video.id == video_id)
            )
            return result.scalar_one_or_none()

    async def get_video_by_youtube_id(self, youtube_id: str) -> Optional[Video]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Video)
                .options(selectinload(Video.transcript))
                .where(Video.youtube_id == youtube_id)
            )
            return result.scalar_one_or_none()

    async def create_video(self, **fields) -> Video:
        async with self.session_factory() as session:
            video = Video(**fields)
            session.add(video)
            await session.commit()
            await session.refresh(video)
            logger.info(f"Created video {video.youtube_id} ({video.id})")
            return video

    # ── Transcripts ──────────────────────────────────────────────────────

    async def get_transcript(self, video_id: uuid.UUID) -> Optional[Transcript]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Transcript).where(Transcript.video_id == video_id)
            )
            return result.scalar_one_or_none()

    async def upsert_transcript(
        self, video_id: uuid.UUID, text: str, source: TranscriptSource,
    ) -> Transcript:
        source = TranscriptSource(source)
        async with self.session_factory() as session:
            insert = _dialect_insert(session)
            stmt = insert(Transcript).values(
                id=uuid.uuid4(), video_id=video_id, text=text, source=source,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["video_id"],
                set_={
                    "text": stmt.excluded["text"],
                    "source": stmt.excluded["source"],
                    "updated_at": func.now(),
                },
            )
            await session.execute(stmt)
            await session.commit()

            result = await session.execute(
                select(Transcript).where(Transcript.video_id == video_id)
            )
            transcript = result.scalar_one()
        logger.info(f"Saved {source.value} transcript for video {video_id} ({len(text)} chars)")
        return transcript

    # ── Analyses ─────────────────────────────────────────────────────────

    async def create_analysis(
        self, video_id: uuid.UUID, status: AnalysisStatus = AnalysisStatus.PENDING,
    ) -> Analysis:
        async with self.session_factory() as session:
            analysis = Analysis(video_id=video_id, status=status)
            session.add(analysis)
            await session.commit()
            await session.refresh(analysis)
            return analysis

    async def get_analysis(self, analysis_id: uuid.UUID) -> Optional[Analysis]:
        """Analysis with its video, the video's transcript and all sections."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(Analysis)
                .options(
                    selectinload(Analysis.video).selectinload(Video.transcript),
                    selectinload(Analysis.sections),
                )
                .where(Analysis.id == analysis_id)
            )
            return result.scalar_one_or_none()

    async def find_latest_pending(self, video_id: uuid.UUID) -> Optional[Analysis]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Analysis)
                .where(Analysis.video_id == video_id, Analysis.status == AnalysisStatus.PENDING)
                .order_by(Analysis.created_at.desc())
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def find_latest_analysis(
        self, video_id: uuid.UUID, exclude_failed: bool = True,
    ) -> Optional[Analysis]:
        query = select(Analysis).where(Analysis.video_id == video_id)
        if exclude_failed:
            query = query.where(Analysis.status != AnalysisStatus.FAILED)
        async with self.session_factory() as session:
            result = await session.execute(
                query.order_by(Analysis.created_at.desc()).limit(1)
            )
            return result.scalar_one_or_none()

    async def update_status(
        self,
        analysis_id: uuid.UUID,
        status: AnalysisStatus,
        error: Optional[str] = None,
        expected: Optional[Iterable[AnalysisStatus]] = None,
    ) -> bool:
        """
        Set status and error. With ``expected``, only rows currently in one of
        those statuses are touched; returns False when nothing matched.
        """
        stmt = (
            update(Analysis)
            .where(Analysis.id == analysis_id)
            .values(status=status, error=error, updated_at=func.now())
        )
        if expected is not None:
            stmt = stmt.where(Analysis.status.in_(list(expected)))

        async with self.session_factory() as session:
            result = await session.execute(stmt)
            await session.commit()

        changed = result.rowcount > 0
        if changed:
            logger.info(f"Analysis {analysis_id} → {status.value}")
        return changed

    # ── Sections ─────────────────────────────────────────────────────────

    async def upsert_section(
        self,
        analysis_id: uuid.UUID,
        section_type: SectionType,
        payload: dict,
        markdown: Optional[str] = None,
    ) -> None:
        section_type = SectionType(section_type)
        async with self.session_factory() as session:
            insert = _dialect_insert(session)
            stmt = insert(AnalysisSection).values(
                id=uuid.uuid4(),
                analysis_id=analysis_id,
                type=section_type,
                json=payload,
                markdown=markdown,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["analysis_id", "type"],
                set_={
                    "json": stmt.excluded["json"],
                    "markdown": stmt.excluded["markdown"],
                    "updated_at": func.now(),
                },
            )
            await session.execute(stmt)
            await session.commit()
        logger.debug(f"Upserted {section_type.value} for analysis {analysis_id}")


analysis_repository = AnalysisRepository()
