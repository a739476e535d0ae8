from __future__ import annotations

import httpx
import pytest

from app.core.config import Settings
from app.services.transcript.audio import AudioDownloader, AudioTooLargeError

WATCH_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
STREAM_URL = "https://rr1.googlevideo.com/videoplayback?itag=249"


def _extract_info_returning(info, seen):
    def extract_info(self, url, download=True):
        seen.update(url=url, download=download, params=self.params)
        return info
    return extract_info


def _stream(body: bytes, requests: list):
    def handler(request):
        requests.append(request)
        return httpx.Response(200, content=body)
    return httpx.MockTransport(handler)


@pytest.fixture
def settings():
    return Settings(
        download_user_agent="TubeLensTest/1.0",
        download_accept_language="de-DE,de;q=0.9",
        max_audio_bytes=1024,
    )


async def test_buffers_worst_audio_with_browser_headers(monkeypatch, settings):
    seen, requests = {}, []
    info = {"id": "dQw4w9WgXcQ", "url": STREAM_URL, "ext": "webm"}
    monkeypatch.setattr("yt_dlp.YoutubeDL.extract_info", _extract_info_returning(info, seen))
    downloader = AudioDownloader(settings, transport=_stream(b"opus-bytes", requests))

    audio = await downloader.download(WATCH_URL)

    assert audio.data == b"opus-bytes"
    assert audio.ext == "webm"
    assert seen["url"] == WATCH_URL
    assert seen["download"] is False
    assert seen["params"]["format"].startswith("worstaudio")
    assert seen["params"]["http_headers"]["User-Agent"] == "TubeLensTest/1.0"
    assert str(requests[0].url) == STREAM_URL
    assert requests[0].headers["user-agent"] == "TubeLensTest/1.0"
    assert requests[0].headers["accept-language"] == "de-DE,de;q=0.9"


async def test_format_headers_override_defaults(monkeypatch, settings):
    requests = []
    info = {
        "url": STREAM_URL,
        "ext": "m4a",
        "http_headers": {"User-Agent": "PlayerUA/2.0", "Referer": "https://www.youtube.com/"},
    }
    monkeypatch.setattr("yt_dlp.YoutubeDL.extract_info", _extract_info_returning(info, {}))

    await AudioDownloader(settings, transport=_stream(b"aac", requests)).download(WATCH_URL)

    assert requests[0].headers["user-agent"] == "PlayerUA/2.0"
    assert requests[0].headers["referer"] == "https://www.youtube.com/"
    assert requests[0].headers["accept-language"] == "de-DE,de;q=0.9"


async def test_uses_first_requested_format(monkeypatch, settings):
    requests = []
    info = {
        "url": "https://example.invalid/merged",
        "ext": "mp4",
        "requested_formats": [
            {"url": STREAM_URL, "ext": "opus"},
            {"url": "https://example.invalid/video-only", "ext": "mp4"},
        ],
    }
    monkeypatch.setattr("yt_dlp.YoutubeDL.extract_info", _extract_info_returning(info, {}))

    audio = await AudioDownloader(settings, transport=_stream(b"x", requests)).download(WATCH_URL)

    assert str(requests[0].url) == STREAM_URL
    assert audio.ext == "opus"
    assert audio.mime_type == "audio/ogg"


async def test_stream_over_limit_is_rejected(monkeypatch, settings):
    info = {"url": STREAM_URL, "ext": "webm"}
    monkeypatch.setattr("yt_dlp.YoutubeDL.extract_info", _extract_info_returning(info, {}))
    downloader = AudioDownloader(settings, transport=_stream(b"\x00" * 2048, []))

    with pytest.raises(AudioTooLargeError, match="exceeds 1024 bytes"):
        await downloader.download(WATCH_URL)


async def test_empty_stream_is_a_failure(monkeypatch, settings):
    info = {"url": STREAM_URL, "ext": "webm"}
    monkeypatch.setattr("yt_dlp.YoutubeDL.extract_info", _extract_info_returning(info, {}))

    with pytest.raises(RuntimeError, match="Empty audio stream"):
        await AudioDownloader(settings, transport=_stream(b"", [])).download(WATCH_URL)


async def test_no_stream_url_resolved(monkeypatch, settings):
    monkeypatch.setattr("yt_dlp.YoutubeDL.extract_info", _extract_info_returning({"ext": "webm"}, {}))

    with pytest.raises(RuntimeError, match="No audio stream URL"):
        await AudioDownloader(settings, transport=_stream(b"x", [])).download(WATCH_URL)
