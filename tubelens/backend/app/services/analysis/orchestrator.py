"""
TubeLens Job Orchestrator: PENDING → RUNNING → DONE | FAILED.

  - start(): the manual "run" action; validates the job, flips it to RUNNING
    and emits the analyze trigger
  - run(): the analyze trigger handler; generates every section and settles
    the job from the per-section outcomes

A job fails only when a critical section (OVERVIEW, HEROS_JOURNEY,
EMOTION_ROLLERCOASTER) fails; the rest are best-effort and simply stay
absent when they cannot be generated.
"""
from __future__ import annotations

import inspect
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from app.core.errors import (
    CriticalSectionsFailedError, ExternalServiceError, NotFoundError, PreconditionError,
)
from app.core.metrics import ANALYSIS_RESULTS
from app.models.models import CRITICAL_SECTIONS, SECTION_TYPES, Analysis, AnalysisStatus
from app.services.analysis.repository import AnalysisRepository, analysis_repository
from app.services.generation.section_generator import SectionGenerator, SectionOutcome

logger = logging.getLogger(__name__)

# Emits the "run analysis for job Y" trigger; may be sync or async
AnalysisDispatcher = Callable[[uuid.UUID], Any]


def default_dispatcher(analysis_id: uuid.UUID) -> Any:
    from app.workers.tasks import dispatch_analysis
    return dispatch_analysis(analysis_id)


async def emit(dispatcher: AnalysisDispatcher, analysis_id: uuid.UUID) -> None:
    result = dispatcher(analysis_id)
    if inspect.isawaitable(result):
        await result


async def hand_off(
    repository: AnalysisRepository,
    dispatcher: AnalysisDispatcher,
    analysis_id: uuid.UUID,
) -> bool:
    """
    PENDING → RUNNING, then emit the analyze trigger.

    Returns False when the job was no longer PENDING. If the trigger cannot be
    emitted the job goes back to PENDING so a later hand-off can pick it up.
    """
    changed = await repository.update_status(
        analysis_id, AnalysisStatus.RUNNING, expected=[AnalysisStatus.PENDING],
    )
    if not changed:
        return False

    try:
        await emit(dispatcher, analysis_id)
    except Exception as exc:
        logger.error(f"Failed to dispatch analysis {analysis_id}: {exc}")
        await repository.update_status(
            analysis_id, AnalysisStatus.PENDING, expected=[AnalysisStatus.RUNNING],
        )
        raise ExternalServiceError("task-queue", exc) from exc
    return True


@dataclass
class AnalysisRunResult:
    analysis_id: uuid.UUID
    status: AnalysisStatus
    outcomes: List[SectionOutcome] = field(default_factory=list)

    @property
    def failed_sections(self) -> List[str]:
        return [o.section_type.value for o in self.outcomes if not o.success]

    def to_dict(self) -> dict:
        return {
            "analysis_id": str(self.analysis_id),
            "status": self.status.value,
            "sections": [o.to_dict() for o in self.outcomes],
        }


class AnalysisOrchestrator:
    def __init__(
        self,
        repository: Optional[AnalysisRepository] = None,
        generator: Optional[SectionGenerator] = None,
        dispatcher: Optional[AnalysisDispatcher] = None,
    ):
        self.repository = repository or analysis_repository
        self._generator = generator
        self.dispatcher = dispatcher or default_dispatcher

    @property
    def generator(self) -> SectionGenerator:
        # Built on first use so start() works without LLM credentials
        if self._generator is None:
            self._generator = SectionGenerator()
        return self._generator

    async def _load_runnable(self, analysis_id: uuid.UUID) -> Analysis:
        analysis = await self.repository.get_analysis(analysis_id)
        if analysis is None:
            raise NotFoundError("Analysis", str(analysis_id))
        if analysis.video is None or analysis.video.transcript is None:
            raise PreconditionError(
                "No transcript available. Please add a transcript first.",
                status_code=400,
                context={"analysis_id": str(analysis_id)},
            )
        return analysis

    # ── Manual trigger ───────────────────────────────────────────────────

    async def start(self, analysis_id: uuid.UUID) -> Analysis:
        """
        PENDING → RUNNING and emit the analyze trigger.

        A DONE or FAILED job is never reopened: re-running it creates a fresh
        PENDING job for the same video and starts that one instead.
        """
        analysis = await self._load_runnable(analysis_id)
        if analysis.status == AnalysisStatus.RUNNING:
            raise PreconditionError(
                "Analysis is already running", context={"analysis_id": str(analysis_id)},
            )

        if analysis.status.is_terminal:
            rerun = await self.repository.create_analysis(analysis.video_id)
            logger.info(f"Re-running {analysis_id} ({analysis.status.value}) as {rerun.id}")
            analysis = rerun

        if not await hand_off(self.repository, self.dispatcher, analysis.id):
            raise PreconditionError(
                "Analysis changed state concurrently", context={"analysis_id": str(analysis.id)},
            )

        logger.info(f"Analysis {analysis.id} started")
        analysis.status, analysis.error = AnalysisStatus.RUNNING, None
        return analysis

    # ── Analyze trigger handler ──────────────────────────────────────────

    async def run(self, analysis_id: uuid.UUID) -> AnalysisRunResult:
        analysis = await self._load_runnable(analysis_id)
        if analysis.status.is_terminal:
            raise PreconditionError(
                f"Analysis is already {analysis.status.value}; use the run action to re-run it",
                context={"analysis_id": str(analysis_id)},
            )
        if analysis.status == AnalysisStatus.PENDING:
            await self.repository.update_status(
                analysis_id, AnalysisStatus.RUNNING, expected=[AnalysisStatus.PENDING],
            )

        video = analysis.video
        logger.info(f"Analyzing {video.youtube_id} for analysis {analysis_id}")

        try:
            outcomes = await self.generator.generate_all(
                analysis_id, video, video.transcript.text, sink=self.repository.upsert_section,
            )
        except Exception:
            logger.exception(f"Analysis {analysis_id} aborted")
            if await self._settle(analysis_id, AnalysisStatus.FAILED, "Analysis failed unexpectedly"):
                ANALYSIS_RESULTS.labels(AnalysisStatus.FAILED.value).inc()
            raise

        failed = {o.section_type for o in outcomes if not o.success}
        critical_failed = [t.value for t in SECTION_TYPES if t in failed and t in CRITICAL_SECTIONS]

        if critical_failed:
            error = CriticalSectionsFailedError(critical_failed)
            if not await self._settle(analysis_id, AnalysisStatus.FAILED, error.message):
                return await self._already_settled(analysis_id, outcomes)
            ANALYSIS_RESULTS.labels(AnalysisStatus.FAILED.value).inc()
            logger.error(f"Analysis {analysis_id} failed: {error.message}")
            raise error

        if not await self._settle(analysis_id, AnalysisStatus.DONE):
            return await self._already_settled(analysis_id, outcomes)
        ANALYSIS_RESULTS.labels(AnalysisStatus.DONE.value).inc()
        if failed:
            logger.warning(
                f"Analysis {analysis_id} done without "
                f"{', '.join(sorted(t.value for t in failed))}"
            )
        else:
            logger.info(f"Analysis {analysis_id} done")
        return AnalysisRunResult(analysis_id, AnalysisStatus.DONE, outcomes)

    async def _settle(
        self, analysis_id: uuid.UUID, status: AnalysisStatus, error: Optional[str] = None,
    ) -> bool:
        # Only a RUNNING job may be settled; DONE and FAILED are final
        settled = await self.repository.update_status(
            analysis_id, status, error, expected=[AnalysisStatus.RUNNING],
        )
        if not settled:
            logger.warning(
                f"Analysis {analysis_id} was settled by another run; not marking it {status.value}"
            )
        return settled

    async def _already_settled(
        self, analysis_id: uuid.UUID, outcomes: List[SectionOutcome],
    ) -> AnalysisRunResult:
        current = await self.repository.get_analysis(analysis_id)
        return AnalysisRunResult(analysis_id, current.status, outcomes)
