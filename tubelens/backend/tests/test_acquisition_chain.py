from __future__ import annotations

import pytest

from app.core.config import Settings
from app.core.errors import TranscriptUnavailableError
from app.models.models import TranscriptSource
from app.services.transcript.acquisition_chain import TranscriptAcquisitionChain
from app.services.transcript.providers import (
    AssemblyAIProvider, GroqWhisperProvider, OpenAIWhisperProvider, SupadataProvider,
    YouTubeCaptionsProvider, build_transcript_providers,
)

from helpers import FakeTranscriptProvider

VIDEO = "dQw4w9WgXcQ"


def _providers(**overrides):
    """The five providers in chain order, all available and failing by default."""
    specs = [
        ("supadata", TranscriptSource.SUPADATA),
        ("groq-whisper", TranscriptSource.GROQ_WHISPER),
        ("assemblyai", TranscriptSource.ASSEMBLYAI),
        ("youtube-transcript", TranscriptSource.YOUTUBE_TRANSCRIPT),
        ("openai-whisper", TranscriptSource.OPENAI_WHISPER),
    ]
    providers = []
    for name, source in specs:
        kwargs = {"error": RuntimeError(f"{name} is down")}
        kwargs.update(overrides.get(name, {}))
        providers.append(FakeTranscriptProvider(name, source, **kwargs))
    return providers


def _chain(providers, timeout=5.0):
    return TranscriptAcquisitionChain(providers, settings=Settings(), timeout=timeout)


async def test_first_success_wins():
    providers = _providers(supadata={"error": None, "text": "hello from supadata"})

    result = await _chain(providers).acquire(VIDEO)

    assert result.text == "hello from supadata"
    assert result.source is TranscriptSource.SUPADATA
    assert all(p.attempts == [] for p in providers[1:])


async def test_only_fourth_available_succeeds_and_fifth_never_runs():
    providers = _providers(**{
        "supadata": {"available": False},
        "groq-whisper": {"available": False},
        "assemblyai": {"available": False},
        "youtube-transcript": {"error": None, "text": "free captions"},
    })

    result = await _chain(providers).acquire(VIDEO)

    assert result.source is TranscriptSource.YOUTUBE_TRANSCRIPT
    assert result.text == "free captions"
    assert [len(p.attempts) for p in providers] == [0, 0, 0, 1, 0]


async def test_failures_fall_through_in_order():
    providers = _providers(assemblyai={"error": None, "text": "from assembly"})

    result = await _chain(providers).acquire(VIDEO)

    assert result.source is TranscriptSource.ASSEMBLYAI
    assert [len(p.attempts) for p in providers] == [1, 1, 1, 0, 0]


async def test_empty_text_counts_as_failure():
    providers = _providers(**{
        "supadata": {"error": None, "text": "   "},
        "groq-whisper": {"error": None, "text": "real words"},
    })

    result = await _chain(providers).acquire(VIDEO)

    assert result.source is TranscriptSource.GROQ_WHISPER


async def test_timeout_counts_as_failure():
    providers = _providers(**{
        "supadata": {"error": None, "text": "too late", "delay": 1.0},
        "groq-whisper": {"error": None, "text": "on time"},
    })

    result = await _chain(providers, timeout=0.05).acquire(VIDEO)

    assert result.text == "on time"


async def test_no_credentials_and_failing_scrape_raises_aggregate_error():
    providers = _providers(**{
        "supadata": {"available": False},
        "groq-whisper": {"available": False},
        "assemblyai": {"available": False},
        "youtube-transcript": {"error": RuntimeError("Subtitles are disabled")},
        "openai-whisper": {"available": False},
    })

    with pytest.raises(TranscriptUnavailableError) as exc_info:
        await _chain(providers).acquire(VIDEO)

    err = exc_info.value
    assert err.failures == {"youtube-transcript": "Subtitles are disabled"}
    assert err.skipped == ["supadata", "groq-whisper", "assemblyai", "openai-whisper"]
    assert VIDEO in err.message
    assert "youtube-transcript: Subtitles are disabled" in err.message


async def test_every_attempted_failure_is_reported():
    providers = _providers()

    with pytest.raises(TranscriptUnavailableError) as exc_info:
        await _chain(providers).acquire(VIDEO)

    assert list(exc_info.value.failures) == [
        "supadata", "groq-whisper", "assemblyai", "youtube-transcript", "openai-whisper",
    ]
    assert exc_info.value.skipped == []


async def test_empty_chain_reports_no_path():
    with pytest.raises(TranscriptUnavailableError, match="no extraction path available"):
        await _chain([]).acquire(VIDEO)


def test_default_providers_follow_priority_and_credentials():
    settings = Settings(supadata_api_key=None, groq_api_key="gsk_test", assemblyai_api_key=None, openai_api_key=None)

    providers = build_transcript_providers(settings)

    assert [type(p) for p in providers] == [
        SupadataProvider, GroqWhisperProvider, AssemblyAIProvider,
        YouTubeCaptionsProvider, OpenAIWhisperProvider,
    ]
    assert [p.available for p in providers] == [False, True, False, True, False]
    assert [p.source for p in providers] == [
        TranscriptSource.SUPADATA, TranscriptSource.GROQ_WHISPER, TranscriptSource.ASSEMBLYAI,
        TranscriptSource.YOUTUBE_TRANSCRIPT, TranscriptSource.OPENAI_WHISPER,
    ]


async def test_network_providers_fail_into_the_chain_when_blocked():
    # Outbound HTTP is blocked by conftest; the chain must absorb it
    settings = Settings(supadata_api_key="sd_test")
    providers = [
        SupadataProvider(settings.supadata_api_key, settings.supadata_base_url),
        FakeTranscriptProvider("youtube-transcript", TranscriptSource.YOUTUBE_TRANSCRIPT, text="fallback"),
    ]

    result = await _chain(providers).acquire(VIDEO)

    assert result.source is TranscriptSource.YOUTUBE_TRANSCRIPT
