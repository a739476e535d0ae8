"""
Lowest-quality audio download, buffered in memory for speech-to-text uploads.

yt-dlp resolves the smallest audio-only format (no file is written); the
stream itself is read with httpx using the same browser-like headers so the
request looks like a regular player fetch.
"""
from __future__ import annotations

import asyncio
import io
import logging
from dataclasses import dataclass
from typing import Dict, Optional

import httpx

from app.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

_MIME_BY_EXT = {
    "m4a": "audio/mp4",
    "mp4": "audio/mp4",
    "webm": "audio/webm",
    "mp3": "audio/mpeg",
    "ogg": "audio/ogg",
    "opus": "audio/ogg",
}


class AudioTooLargeError(RuntimeError):
    pass


@dataclass
class AudioBuffer:
    data: bytes
    ext: str = "m4a"

    @property
    def filename(self) -> str:
        return f"audio.{self.ext}"

    @property
    def mime_type(self) -> str:
        return _MIME_BY_EXT.get(self.ext, "application/octet-stream")

    def as_upload(self):
        """(filename, file-like, mime) tuple accepted by the OpenAI/Groq SDKs."""
        return (self.filename, io.BytesIO(self.data), self.mime_type)

    def __len__(self) -> int:
        return len(self.data)


class AudioDownloader:
    """Resolves and buffers the lowest-bitrate audio-only stream of a video."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.transport = transport

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.settings.download_user_agent,
            "Accept-Language": self.settings.download_accept_language,
        }

    def _resolve_format(self, video_url: str) -> dict:
        import yt_dlp

        ydl_opts = {
            "quiet": True,
            "no_warnings": True,
            "skip_download": True,
            "format": "worstaudio[acodec!=none]/worstaudio/worst",
            "http_headers": self.headers,
        }
        with yt_dlp.YoutubeDL(ydl_opts) as ydl:
            info = ydl.extract_info(video_url, download=False)

        if not info:
            raise RuntimeError(f"yt-dlp returned no info for {video_url}")
        # Single-format selections are flattened onto the info dict
        fmt = (info.get("requested_formats") or [info])[0]
        if not fmt.get("url"):
            raise RuntimeError(f"No audio stream URL resolved for {video_url}")
        return fmt

    async def download(self, video_url: str) -> AudioBuffer:
        fmt = await asyncio.to_thread(self._resolve_format, video_url)
        headers = {**self.headers, **(fmt.get("http_headers") or {})}
        limit = self.settings.max_audio_bytes
        buf = bytearray()

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(60.0, read=120.0),
            follow_redirects=True,
            transport=self.transport,
        ) as client:
            async with client.stream("GET", fmt["url"], headers=headers) as response:
                response.raise_for_status()
                async for chunk in response.aiter_bytes():
                    buf.extend(chunk)
                    if limit and len(buf) > limit:
                        raise AudioTooLargeError(
                            f"Audio stream exceeds {limit} bytes for {video_url}"
                        )

        if not buf:
            raise RuntimeError(f"Empty audio stream for {video_url}")

        ext = fmt.get("ext") or "m4a"
        logger.info(f"Downloaded {len(buf) / 1024:.0f} KiB of {ext} audio for {video_url}")
        return AudioBuffer(bytes(buf), ext=ext)
