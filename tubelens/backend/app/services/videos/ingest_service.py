"""
TubeLens video ingestion: URL → Video + Analysis, then the right trigger.

  - Known video with a live (non-FAILED) analysis → returned as-is
  - Known video otherwise → new PENDING analysis; started immediately when a
    transcript is already stored, else transcript extraction is triggered
  - New video → metadata fetched, Video and PENDING analysis created,
    transcript extraction triggered

Metadata comes from the YouTube Data API when YOUTUBE_API_KEY is set and
from yt-dlp otherwise.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import httpx
from sqlalchemy.exc import IntegrityError

from app.core.config import Settings, get_settings
from app.core.errors import ExternalServiceError, NotFoundError, ValidationError
from app.models.models import Analysis, AnalysisStatus, Video
from app.services.analysis.orchestrator import AnalysisDispatcher, default_dispatcher, hand_off
from app.services.analysis.repository import AnalysisRepository, analysis_repository
from app.utils.youtube import extract_youtube_id, parse_iso_duration

logger = logging.getLogger(__name__)

# Emits the "acquire transcript for video X" trigger
TranscriptDispatcher = Callable[[uuid.UUID], Any]


def default_transcript_dispatcher(video_id: uuid.UUID) -> Any:
    from app.workers.tasks import dispatch_transcript_extraction
    return dispatch_transcript_extraction(video_id)


def _to_int(value) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


@dataclass
class IngestResult:
    video: Video
    analysis: Analysis
    created: bool = False


class VideoMetadataFetcher:
    """Video metadata as Video column values."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    async def fetch(self, youtube_id: str) -> Dict[str, Any]:
        if self.settings.youtube_api_key:
            return await self._from_data_api(youtube_id)
        return await asyncio.to_thread(self._from_yt_dlp, youtube_id)

    async def _from_data_api(self, youtube_id: str) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self.settings.metadata_timeout_seconds) as client:
                response = await client.get(
                    f"{self.settings.youtube_api_base_url}/videos",
                    params={
                        "part": "snippet,contentDetails,statistics",
                        "id": youtube_id,
                        "key": self.settings.youtube_api_key,
                    },
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ExternalServiceError("youtube-data-api", exc) from exc

        items = response.json().get("items") or []
        if not items:
            raise NotFoundError("Video", youtube_id)

        item = items[0]
        snippet = item.get("snippet") or {}
        details = item.get("contentDetails") or {}
        stats = item.get("statistics") or {}
        thumbnails = snippet.get("thumbnails") or {}
        thumbnail = thumbnails.get("high") or thumbnails.get("default") or {}

        return {
            "youtube_id": youtube_id,
            "title": snippet.get("title") or "Untitled",
            "channel": snippet.get("channelTitle") or "Unknown",
            "thumbnail_url": thumbnail.get("url"),
            "duration_seconds": parse_iso_duration(details.get("duration") or "PT0S"),
            "view_count": _to_int(stats.get("viewCount")),
            "like_count": _to_int(stats.get("likeCount")),
            "comment_count": _to_int(stats.get("commentCount")),
        }

    def _from_yt_dlp(self, youtube_id: str) -> Dict[str, Any]:
        import yt_dlp

        ydl_opts = {
            "quiet": True,
            "no_warnings": True,
            "skip_download": True,
            "geo_bypass": True,
        }
        url = f"https://www.youtube.com/watch?v={youtube_id}"
        try:
            with yt_dlp.YoutubeDL(ydl_opts) as ydl:
                info = ydl.extract_info(url, download=False)
        except yt_dlp.utils.DownloadError as exc:
            raise ExternalServiceError("yt-dlp", exc) from exc

        if not info:
            raise NotFoundError("Video", youtube_id)

        return {
            "youtube_id": youtube_id,
            "title": info.get("title") or "Untitled",
            "channel": info.get("channel") or info.get("uploader") or "Unknown",
            "thumbnail_url": info.get("thumbnail"),
            "duration_seconds": int(info.get("duration") or 0),
            "view_count": _to_int(info.get("view_count")),
            "like_count": _to_int(info.get("like_count")),
            "comment_count": _to_int(info.get("comment_count")),
        }


class VideoIngestService:
    def __init__(
        self,
        repository: Optional[AnalysisRepository] = None,
        metadata: Optional[VideoMetadataFetcher] = None,
        dispatcher: Optional[AnalysisDispatcher] = None,
        transcript_dispatcher: Optional[TranscriptDispatcher] = None,
    ):
        self.repository = repository or analysis_repository
        self.metadata = metadata or VideoMetadataFetcher()
        self.dispatcher = dispatcher or default_dispatcher
        self.transcript_dispatcher = transcript_dispatcher or default_transcript_dispatcher

    async def _request_transcript(self, video: Video) -> None:
        result = self.transcript_dispatcher(video.id)
        if inspect.isawaitable(result):
            await result
        logger.info(f"Triggered transcript extraction for video {video.id} ({video.youtube_id})")

    async def ingest(self, url: str) -> IngestResult:
        youtube_id = extract_youtube_id(url or "")
        if not youtube_id:
            raise ValidationError("Invalid YouTube URL", context={"url": url})

        video = await self.repository.get_video_by_youtube_id(youtube_id)
        if video is not None:
            return await self._ingest_existing(video)

        fields = await self.metadata.fetch(youtube_id)
        try:
            video = await self.repository.create_video(**fields)
        except IntegrityError:
            # Lost the insert race to a concurrent ingest of the same video
            video = await self.repository.get_video_by_youtube_id(youtube_id)
            if video is None:
                raise
            logger.info(f"Video {youtube_id} was created concurrently; reusing it")
            return await self._ingest_existing(video)

        analysis = await self.repository.create_analysis(video.id)
        await self._request_transcript(video)
        return IngestResult(video, analysis, created=True)

    async def _ingest_existing(self, video: Video) -> IngestResult:
        latest = await self.repository.find_latest_analysis(video.id, exclude_failed=True)
        if latest is not None:
            logger.info(f"Video {video.youtube_id} already has analysis {latest.id} ({latest.status.value})")
            return IngestResult(video, latest)

        analysis = await self.repository.create_analysis(video.id)
        if video.transcript is not None:
            if await hand_off(self.repository, self.dispatcher, analysis.id):
                analysis.status = AnalysisStatus.RUNNING
                logger.info(f"Transcript on file; started analysis {analysis.id}")
        else:
            await self._request_transcript(video)
        return IngestResult(video, analysis)


video_ingest_service = VideoIngestService()
