from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select

from app.models.models import Analysis, AnalysisSection, AnalysisStatus, SectionType, Transcript, TranscriptSource


async def _count(session_factory, model, *where):
    async with session_factory() as session:
        return await session.scalar(select(func.count()).select_from(model).where(*where))


async def _add_analysis(session_factory, video_id, status, created_at):
    async with session_factory() as session:
        analysis = Analysis(video_id=video_id, status=status, created_at=created_at)
        session.add(analysis)
        await session.commit()
        return analysis.id


async def test_section_upsert_keeps_one_row_with_latest_payload(repository, session_factory, pending_analysis):
    await repository.upsert_section(pending_analysis.id, SectionType.TITLE_DECODE, {"seoScore": 10})
    await repository.upsert_section(pending_analysis.id, SectionType.TITLE_DECODE, {"seoScore": 90}, "# v2")

    assert await _count(session_factory, AnalysisSection) == 1
    sections = (await repository.get_analysis(pending_analysis.id)).sections
    assert sections[0].json == {"seoScore": 90}
    assert sections[0].markdown == "# v2"


async def test_sections_of_different_types_coexist(repository, pending_analysis):
    await repository.upsert_section(pending_analysis.id, SectionType.OVERVIEW, {"a": 1})
    await repository.upsert_section(pending_analysis.id, SectionType.FULL_ARTICLE, {"markdown": "x"}, "x")

    analysis = await repository.get_analysis(pending_analysis.id)

    assert {s.type for s in analysis.sections} == {SectionType.OVERVIEW, SectionType.FULL_ARTICLE}


async def test_transcript_upsert_replaces_text_and_source(repository, session_factory, video):
    await repository.upsert_transcript(video.id, "first pass", TranscriptSource.YOUTUBE_TRANSCRIPT)
    saved = await repository.upsert_transcript(video.id, "hand edited", TranscriptSource.MANUAL)

    assert await _count(session_factory, Transcript) == 1
    assert saved.text == "hand edited"
    assert saved.source is TranscriptSource.MANUAL


async def test_get_analysis_loads_video_transcript_and_sections(repository, transcript, pending_analysis):
    analysis = await repository.get_analysis(pending_analysis.id)

    assert analysis.status is AnalysisStatus.PENDING
    assert analysis.video.youtube_id == "dQw4w9WgXcQ"
    assert analysis.video.transcript.text == transcript.text
    assert analysis.sections == []


async def test_get_video_by_youtube_id(repository, video):
    found = await repository.get_video_by_youtube_id("dQw4w9WgXcQ")
    assert found.id == video.id
    assert found.transcript is None
    assert await repository.get_video_by_youtube_id("xxxxxxxxxxx") is None


async def test_find_latest_pending_prefers_newest(repository, session_factory, video):
    now = datetime.now(timezone.utc)
    await _add_analysis(session_factory, video.id, AnalysisStatus.PENDING, now - timedelta(hours=2))
    newest = await _add_analysis(session_factory, video.id, AnalysisStatus.PENDING, now - timedelta(hours=1))
    await _add_analysis(session_factory, video.id, AnalysisStatus.DONE, now)

    found = await repository.find_latest_pending(video.id)

    assert found.id == newest


async def test_find_latest_analysis_skips_failed(repository, session_factory, video):
    now = datetime.now(timezone.utc)
    done = await _add_analysis(session_factory, video.id, AnalysisStatus.DONE, now - timedelta(hours=1))
    failed = await _add_analysis(session_factory, video.id, AnalysisStatus.FAILED, now)

    assert (await repository.find_latest_analysis(video.id)).id == done
    assert (await repository.find_latest_analysis(video.id, exclude_failed=False)).id == failed


async def test_update_status_with_expected_guard(repository, pending_analysis):
    assert not await repository.update_status(
        pending_analysis.id, AnalysisStatus.DONE, expected=[AnalysisStatus.RUNNING],
    )
    assert (await repository.get_analysis(pending_analysis.id)).status is AnalysisStatus.PENDING

    assert await repository.update_status(
        pending_analysis.id, AnalysisStatus.FAILED, "boom", expected=[AnalysisStatus.PENDING],
    )
    analysis = await repository.get_analysis(pending_analysis.id)
    assert analysis.status is AnalysisStatus.FAILED
    assert analysis.error == "boom"
