"""
TubeLens Transcript Providers: the five acquisition strategies.

Each provider exposes the same surface to the acquisition chain:

    name       log/metric label
    source     TranscriptSource recorded on success
    available  False when its credential is missing (the chain skips it)
    attempt()  youtube_id → transcript text, raises on any failure

Order and rationale live in build_transcript_providers().
"""
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

import httpx

from app.core.config import Settings, get_settings
from app.models.models import TranscriptSource
from app.services.transcript.audio import AudioDownloader

logger = logging.getLogger(__name__)


def watch_url(youtube_id: str) -> str:
    return f"https://www.youtube.com/watch?v={youtube_id}"


class EmptyTranscriptError(RuntimeError):
    pass


def _require_text(provider: str, text: Optional[str]) -> str:
    text = (text or "").strip()
    if not text:
        raise EmptyTranscriptError(f"{provider} returned an empty transcript")
    return text


class TranscriptProvider:
    name: str = "provider"
    source: TranscriptSource

    @property
    def available(self) -> bool:
        return True

    async def attempt(self, youtube_id: str) -> str:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} available={self.available}>"


# ── 1. Supadata (YouTube-specific API) ───────────────────────────────────

class SupadataProvider(TranscriptProvider):
    name = "supadata"
    source = TranscriptSource.SUPADATA

    def __init__(self, api_key: Optional[str], base_url: str, timeout: float = 60.0):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    async def attempt(self, youtube_id: str) -> str:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(
                f"{self.base_url}/youtube/transcript",
                params={"videoId": youtube_id, "text": "true"},
                headers={"x-api-key": self.api_key},
            )
        if response.status_code >= 400:
            raise RuntimeError(
                f"Supadata API error: {response.status_code} {response.reason_phrase}"
            )
        data = response.json()
        return _require_text(self.name, data.get("content"))


# ── 2. Groq Whisper (fast inference on downloaded audio) ─────────────────

class GroqWhisperProvider(TranscriptProvider):
    name = "groq-whisper"
    source = TranscriptSource.GROQ_WHISPER

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        downloader: AudioDownloader,
        language: Optional[str] = None,
        client=None,
    ):
        self.api_key = api_key
        self.model = model
        self.language = language
        self.downloader = downloader
        self._client = client

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    @property
    def client(self):
        if self._client is None:
            from groq import AsyncGroq
            self._client = AsyncGroq(api_key=self.api_key)
        return self._client

    async def attempt(self, youtube_id: str) -> str:
        audio = await self.downloader.download(watch_url(youtube_id))
        kwargs = {"file": audio.as_upload(), "model": self.model}
        if self.language:
            kwargs["language"] = self.language
        transcription = await self.client.audio.transcriptions.create(**kwargs)
        return _require_text(self.name, getattr(transcription, "text", None))


# ── 3. AssemblyAI (general-purpose STT on the video URL) ─────────────────

class AssemblyAIProvider(TranscriptProvider):
    name = "assemblyai"
    source = TranscriptSource.ASSEMBLYAI

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str,
        poll_interval: float = 3.0,
        timeout: float = 60.0,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.poll_interval = poll_interval
        self.timeout = timeout

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    async def attempt(self, youtube_id: str) -> str:
        headers = {"authorization": self.api_key}
        async with httpx.AsyncClient(timeout=self.timeout, headers=headers) as client:
            response = await client.post(
                f"{self.base_url}/transcript", json={"audio_url": watch_url(youtube_id)},
            )
            response.raise_for_status()
            job = response.json()
            transcript_id = job["id"]

            # Caller's overall timeout bounds this loop
            while job.get("status") not in ("completed", "error"):
                await asyncio.sleep(self.poll_interval)
                response = await client.get(f"{self.base_url}/transcript/{transcript_id}")
                response.raise_for_status()
                job = response.json()

        if job["status"] == "error":
            raise RuntimeError(job.get("error") or "AssemblyAI transcription failed")
        return _require_text(self.name, job.get("text"))


# ── 4. youtube-transcript-api (free caption scrape) ──────────────────────

class YouTubeCaptionsProvider(TranscriptProvider):
    name = "youtube-transcript"
    source = TranscriptSource.YOUTUBE_TRANSCRIPT

    def __init__(self, languages: Optional[List[str]] = None):
        self.languages = languages or ["en"]

    def _fetch(self, youtube_id: str) -> str:
        from youtube_transcript_api import YouTubeTranscriptApi

        fetched = YouTubeTranscriptApi().fetch(youtube_id, languages=self.languages)
        return " ".join(snippet.text for snippet in fetched)

    async def attempt(self, youtube_id: str) -> str:
        text = await asyncio.to_thread(self._fetch, youtube_id)
        return _require_text(self.name, text)


# ── 5. OpenAI Whisper (paid last resort) ─────────────────────────────────

class OpenAIWhisperProvider(TranscriptProvider):
    name = "openai-whisper"
    source = TranscriptSource.OPENAI_WHISPER

    def __init__(self, api_key: Optional[str], model: str, downloader: AudioDownloader, client=None):
        self.api_key = api_key
        self.model = model
        self.downloader = downloader
        self._client = client

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    @property
    def client(self):
        if self._client is None:
            from openai import AsyncOpenAI
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def attempt(self, youtube_id: str) -> str:
        audio = await self.downloader.download(watch_url(youtube_id))
        transcription = await self.client.audio.transcriptions.create(
            file=audio.as_upload(), model=self.model,
        )
        return _require_text(self.name, getattr(transcription, "text", None))


def build_transcript_providers(settings: Optional[Settings] = None) -> List[TranscriptProvider]:
    """
    Priority order, most to least preferred:
      1. Supadata: YouTube-specific, fast, cheap
      2. Groq Whisper: very fast inference, needs the audio download
      3. AssemblyAI: general-purpose STT over the watch URL
      4. youtube-transcript-api: free, but often blocked upstream
      5. OpenAI Whisper: works for everything, billed on every call
    """
    settings = settings or get_settings()
    downloader = AudioDownloader(settings)
    return [
        SupadataProvider(settings.supadata_api_key, settings.supadata_base_url),
        GroqWhisperProvider(
            settings.groq_api_key,
            settings.groq_whisper_model,
            downloader,
            language=settings.groq_whisper_language,
        ),
        AssemblyAIProvider(
            settings.assemblyai_api_key,
            settings.assemblyai_base_url,
            poll_interval=settings.assemblyai_poll_interval_seconds,
        ),
        YouTubeCaptionsProvider(settings.transcript_languages),
        OpenAIWhisperProvider(settings.openai_api_key, settings.openai_whisper_model, downloader),
    ]
