"""
"Acquire transcript for video X": run the acquisition chain, store the
result, and hand the newest PENDING analysis of that video over to the
analyze trigger.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from app.core.errors import NotFoundError
from app.models.models import TranscriptSource
from app.services.analysis.orchestrator import AnalysisDispatcher, default_dispatcher, hand_off
from app.services.analysis.repository import AnalysisRepository, analysis_repository
from app.services.transcript.acquisition_chain import TranscriptAcquisitionChain

logger = logging.getLogger(__name__)


@dataclass
class TranscriptAcquisition:
    video_id: uuid.UUID
    source: TranscriptSource
    length: int
    analysis_id: Optional[uuid.UUID] = None

    def to_dict(self) -> dict:
        return {
            "video_id": str(self.video_id),
            "source": self.source.value,
            "length": self.length,
            "analysis_id": str(self.analysis_id) if self.analysis_id else None,
        }


class TranscriptService:
    def __init__(
        self,
        repository: Optional[AnalysisRepository] = None,
        chain: Optional[TranscriptAcquisitionChain] = None,
        dispatcher: Optional[AnalysisDispatcher] = None,
    ):
        self.repository = repository or analysis_repository
        self._chain = chain
        self.dispatcher = dispatcher or default_dispatcher

    @property
    def chain(self) -> TranscriptAcquisitionChain:
        if self._chain is None:
            self._chain = TranscriptAcquisitionChain()
        return self._chain

    async def acquire_for_video(self, video_id: uuid.UUID) -> TranscriptAcquisition:
        video = await self.repository.get_video(video_id)
        if video is None:
            raise NotFoundError("Video", str(video_id))

        result = await self.chain.acquire(video.youtube_id)
        await self.repository.upsert_transcript(video.id, result.text, result.source)

        acquisition = TranscriptAcquisition(video.id, result.source, len(result.text))
        pending = await self.repository.find_latest_pending(video.id)
        if pending is None:
            logger.info(f"No pending analysis for video {video.id}; transcript stored only")
            return acquisition

        # Only hand over if nobody else started it in the meantime
        if await hand_off(self.repository, self.dispatcher, pending.id):
            acquisition.analysis_id = pending.id
            logger.info(f"Triggered analysis {pending.id} for video {video.id}")
        return acquisition


transcript_service = TranscriptService()
