"""
TubeLens Section Generator: eight LLM analysis sections per job.

Per section, providers/models are walked in order:

    OpenAI gpt-4o ──fail──▶ Groq model 1 ──fail──▶ Groq model 2 ──fail──▶ raise last error

At each (provider, model) the raw completion is fence-stripped, parsed and
validated. A validation failure earns exactly one retry on the same model
with the validation error appended to the prompt; anything else (transport
error, timeout, empty or unparseable content) moves straight on.

generate_all() runs every section concurrently and settles all of them: a
section that raises is reported as failed, never cancels its siblings.
"""
from __future__ import annotations

import asyncio
import json
import logging
import re
import time
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from app.core.config import Settings, get_settings
from app.core.errors import ConfigurationError, ExternalServiceError, SectionGenerationError
from app.core.metrics import LLM_ATTEMPTS, SECTION_DURATION, SECTION_OUTCOMES
from app.models.models import SECTION_TYPES, SectionType
from app.schemas.sections import validate_section
from app.services.generation.llm_providers import LLMProvider, build_llm_providers
from app.services.prompts.section_prompts import PromptContext, build_section_prompt

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?", re.IGNORECASE)


class SectionParseError(SectionGenerationError):
    """Completion text was not a JSON document."""


class SectionValidationError(SectionGenerationError):
    """Completion parsed but did not satisfy the section schema."""

    def __init__(self, section_type: SectionType, reason: str):
        super().__init__(f"{section_type.value} failed validation: {reason}")
        self.reason = reason


@dataclass
class GeneratedSection:
    json: dict
    markdown: Optional[str] = None


@dataclass
class SectionOutcome:
    section_type: SectionType
    success: bool
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {"section_type": self.section_type.value, "success": self.success, "error": self.error}


# (analysis_id, section_type, json, markdown) → persisted
SectionSink = Callable[[uuid.UUID, SectionType, dict, Optional[str]], Awaitable[Any]]


def strip_code_fences(content: str) -> str:
    return _FENCE_RE.sub("", content).strip()


def parse_json_payload(content: str) -> Any:
    try:
        return json.loads(strip_code_fences(content))
    except json.JSONDecodeError as exc:
        raise SectionParseError(f"Failed to parse JSON: {exc}") from exc


class SectionGenerator:
    """Generates and persists analysis sections with provider/model fallback."""

    def __init__(
        self,
        providers: Optional[Sequence[LLMProvider]] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.providers: List[LLMProvider] = (
            list(providers) if providers is not None else build_llm_providers(self.settings)
        )
        if not self.providers:
            raise ConfigurationError("No LLM provider configured: set OPENAI_API_KEY or GROQ_API_KEY")

    # ── Single section ───────────────────────────────────────────────────

    async def generate_section(
        self, section_type: SectionType, video, transcript: str,
    ) -> GeneratedSection:
        section_type = SectionType(section_type)
        context = PromptContext.from_video(video, transcript)
        last_error: Optional[Exception] = None

        for provider in self.providers:
            for model in provider.models:
                try:
                    payload = await self._attempt_model(provider, model, section_type, context)
                except Exception as exc:
                    last_error = exc
                    logger.warning(
                        f"[{provider.name}:{model}] {section_type.value} failed: {exc}; "
                        "falling back to next model"
                    )
                    continue

                logger.info(f"[{provider.name}:{model}] {section_type.value} generated")
                markdown = payload.get("markdown") if section_type == SectionType.FULL_ARTICLE else None
                return GeneratedSection(json=payload, markdown=markdown)

        raise last_error or SectionGenerationError(f"Failed to generate {section_type.value}")

    async def _attempt_model(
        self,
        provider: LLMProvider,
        model: str,
        section_type: SectionType,
        context: PromptContext,
    ) -> dict:
        """One model, plus up to ``llm_validation_retries`` corrected retries."""
        correction: Optional[str] = None
        attempts = 1 + max(self.settings.llm_validation_retries, 0)

        for attempt in range(attempts):
            prompt = build_section_prompt(section_type, context, correction=correction)
            try:
                content = await asyncio.wait_for(
                    provider.complete(
                        model, prompt, json_mode=True, temperature=self.settings.llm_temperature,
                    ),
                    timeout=self.settings.llm_timeout_seconds,
                )
            except asyncio.TimeoutError as exc:
                LLM_ATTEMPTS.labels(provider.name, model, "error").inc()
                raise ExternalServiceError(
                    f"{provider.name}:{model}",
                    TimeoutError(f"no response within {self.settings.llm_timeout_seconds:.0f}s"),
                ) from exc
            except Exception:
                LLM_ATTEMPTS.labels(provider.name, model, "error").inc()
                raise

            try:
                data = parse_json_payload(content)
            except SectionParseError:
                LLM_ATTEMPTS.labels(provider.name, model, "error").inc()
                raise

            result = validate_section(section_type, data)
            if result.ok:
                LLM_ATTEMPTS.labels(provider.name, model, "success").inc()
                return result.value

            LLM_ATTEMPTS.labels(provider.name, model, "invalid").inc()
            logger.info(
                f"[{provider.name}:{model}] {section_type.value} attempt {attempt + 1} "
                f"invalid: {result.reason}"
            )
            correction = result.reason

        raise SectionValidationError(section_type, correction or "unknown validation error")

    # ── All sections ─────────────────────────────────────────────────────

    async def generate_all(
        self,
        analysis_id: uuid.UUID,
        video,
        transcript: str,
        sink: SectionSink,
        section_types: Sequence[SectionType] = SECTION_TYPES,
    ) -> List[SectionOutcome]:
        """Run every section concurrently; return once all have settled."""
        outcomes = await asyncio.gather(*(
            self._run_one(analysis_id, section_type, video, transcript, sink)
            for section_type in section_types
        ))
        ok = sum(1 for o in outcomes if o.success)
        logger.info(f"Analysis {analysis_id}: {ok}/{len(outcomes)} sections generated")
        return list(outcomes)

    async def _run_one(
        self,
        analysis_id: uuid.UUID,
        section_type: SectionType,
        video,
        transcript: str,
        sink: SectionSink,
    ) -> SectionOutcome:
        started = time.monotonic()
        try:
            section = await self.generate_section(section_type, video, transcript)
            await sink(analysis_id, section_type, section.json, section.markdown)
        except Exception as exc:
            logger.error(f"Failed to generate {section_type.value} for {analysis_id}: {exc}")
            SECTION_OUTCOMES.labels(section_type.value, "failure").inc()
            return SectionOutcome(section_type, success=False, error=str(exc))
        finally:
            SECTION_DURATION.labels(section_type.value).observe(time.monotonic() - started)

        SECTION_OUTCOMES.labels(section_type.value, "success").inc()
        return SectionOutcome(section_type, success=True)
