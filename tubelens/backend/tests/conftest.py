"""Test configuration.

The database URL and provider credentials are pinned before any app module
is imported: app.core.database builds its engine at import time.
"""
import os

os.environ["TUBELENS_DB_URL"] = "sqlite+aiosqlite:///:memory:"
for _key in (
    "OPENAI_API_KEY", "GROQ_API_KEY", "SUPADATA_API_KEY", "ASSEMBLYAI_API_KEY", "YOUTUBE_API_KEY",
):
    os.environ.pop(_key, None)

import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from app.core.config import get_settings
from app.core.database import Base
from app.models import models  # noqa: F401  (registers mappers)
from app.models.models import TranscriptSource
from app.services.analysis.repository import AnalysisRepository

get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _block_external_network_calls(monkeypatch: pytest.MonkeyPatch) -> None:
    """Fail loudly on any real outbound call (offline-safe)."""

    def _blocked(*_args, **_kwargs):
        raise RuntimeError("Network call blocked in tests")

    async def _blocked_async(*_args, **_kwargs):
        raise RuntimeError("Network call blocked in tests")

    # httpx over the wire; ASGITransport used by the API tests stays usable
    monkeypatch.setattr(httpx.AsyncHTTPTransport, "handle_async_request", _blocked_async)
    monkeypatch.setattr(httpx.HTTPTransport, "handle_request", _blocked)
    monkeypatch.setattr("yt_dlp.YoutubeDL.extract_info", _blocked)
    monkeypatch.setattr("youtube_transcript_api.YouTubeTranscriptApi.fetch", _blocked)


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'tubelens.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield async_sessionmaker(engine, expire_on_commit=False)
    finally:
        await engine.dispose()


@pytest.fixture
def repository(session_factory) -> AnalysisRepository:
    return AnalysisRepository(session_factory)


@pytest.fixture
async def video(repository):
    return await repository.create_video(
        youtube_id="dQw4w9WgXcQ",
        title="How Stories Really Work",
        channel="Story Lab",
        thumbnail_url="https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg",
        duration_seconds=212,
        view_count=1234567,
        like_count=4321,
        comment_count=99,
    )


@pytest.fixture
async def transcript(repository, video):
    return await repository.upsert_transcript(
        video.id,
        "Welcome back. Today we break down how a great story is structured. " * 40,
        TranscriptSource.MANUAL,
    )


@pytest.fixture
async def pending_analysis(repository, video):
    return await repository.create_analysis(video.id)
