from __future__ import annotations

import pytest

from app.models.models import SECTION_TYPES, SectionType
from app.services.prompts.section_prompts import (
    SYSTEM_INSTRUCTION, TRANSCRIPT_BUDGETS, PromptContext, build_section_prompt,
)

from helpers import make_video, section_for_prompt

HEAD = "HEAD_OF_TRANSCRIPT "


@pytest.fixture
def context():
    transcript = HEAD + "x" * 20000 + " TAIL_OF_TRANSCRIPT"
    return PromptContext.from_video(make_video(), transcript)


@pytest.mark.parametrize("section_type", SECTION_TYPES, ids=lambda t: t.value)
def test_each_prompt_is_distinct_and_carries_instruction(context, section_type):
    prompt = build_section_prompt(section_type, context)
    assert prompt.startswith(SYSTEM_INSTRUCTION)
    assert section_for_prompt(prompt) is section_type
    assert "TAIL_OF_TRANSCRIPT" not in prompt


@pytest.mark.parametrize(
    "section_type,budget",
    [
        (SectionType.OVERVIEW, 6000),
        (SectionType.HEROS_JOURNEY, 8000),
        (SectionType.EMOTION_ROLLERCOASTER, 8000),
        (SectionType.MONEY_SHOTS, 6000),
        (SectionType.CONTENT_HIGHLIGHTS, 8000),
        (SectionType.FULL_ARTICLE, 10000),
    ],
)
def test_transcript_is_truncated_to_budget(context, section_type, budget):
    assert TRANSCRIPT_BUDGETS[section_type] == budget
    excerpt = context.excerpt(section_type)
    assert len(excerpt) == budget
    assert excerpt in build_section_prompt(section_type, context)


@pytest.mark.parametrize("section_type", [SectionType.TITLE_DECODE, SectionType.THUMBNAIL_XRAY])
def test_title_and_thumbnail_prompts_skip_transcript(context, section_type):
    assert HEAD not in build_section_prompt(section_type, context)


def test_prompt_includes_video_metadata(context):
    prompt = build_section_prompt(SectionType.HEROS_JOURNEY, context)
    assert "How Stories Really Work" in prompt
    assert "Story Lab" in prompt
    assert "3:32" in prompt


def test_correction_is_appended(context):
    plain = build_section_prompt(SectionType.TITLE_DECODE, context)
    corrected = build_section_prompt(
        SectionType.TITLE_DECODE, context, correction="seoScore: Input should be less than or equal to 100",
    )
    assert corrected.startswith(plain)
    assert corrected.endswith(
        "Previous attempt failed validation: seoScore: Input should be less than or equal "
        "to 100. Please fix the JSON to match the schema exactly."
    )
