"""
TubeLens Transcript Acquisition Chain.

Providers are tried strictly in order; each decision depends on the previous
step's failure, so nothing here runs concurrently:

    unavailable (no credential) → skip, not a failure
    attempt raises / times out  → log with provider name, try the next one
    attempt returns text        → stop; later providers are never touched

Exhausting the list raises TranscriptUnavailableError naming every attempted
provider's failure and every skipped one.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from app.core.config import Settings, get_settings
from app.core.errors import TranscriptUnavailableError
from app.core.metrics import TRANSCRIPT_ATTEMPTS
from app.models.models import TranscriptSource
from app.services.transcript.providers import TranscriptProvider, build_transcript_providers

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TranscriptResult:
    text: str
    source: TranscriptSource


class TranscriptAcquisitionChain:
    def __init__(
        self,
        providers: Optional[Sequence[TranscriptProvider]] = None,
        settings: Optional[Settings] = None,
        timeout: Optional[float] = None,
    ):
        self.settings = settings or get_settings()
        self.providers: List[TranscriptProvider] = (
            list(providers) if providers is not None else build_transcript_providers(self.settings)
        )
        self.timeout = timeout if timeout is not None else self.settings.transcript_timeout_seconds

    async def acquire(self, youtube_id: str) -> TranscriptResult:
        failures: Dict[str, str] = {}
        skipped: List[str] = []

        for provider in self.providers:
            if not provider.available:
                logger.info(f"[{provider.name}] not configured, skipping")
                TRANSCRIPT_ATTEMPTS.labels(provider.name, "skipped").inc()
                skipped.append(provider.name)
                continue

            logger.info(f"[{provider.name}] starting transcription for {youtube_id}")
            try:
                text = await asyncio.wait_for(provider.attempt(youtube_id), timeout=self.timeout)
            except asyncio.TimeoutError:
                reason = f"timed out after {self.timeout:.0f}s"
            except Exception as exc:
                reason = str(exc) or type(exc).__name__
            else:
                if text and text.strip():
                    logger.info(f"[{provider.name}] transcribed {youtube_id} ({len(text)} chars)")
                    TRANSCRIPT_ATTEMPTS.labels(provider.name, "success").inc()
                    return TranscriptResult(text=text, source=provider.source)
                reason = "empty transcript"

            logger.warning(f"[{provider.name}] failed for {youtube_id}: {reason}; trying next provider")
            TRANSCRIPT_ATTEMPTS.labels(provider.name, "failure").inc()
            failures[provider.name] = reason

        logger.error(f"All transcript extraction methods failed for {youtube_id}")
        raise TranscriptUnavailableError(youtube_id, failures, skipped)
