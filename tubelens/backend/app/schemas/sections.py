"""
TubeLens Section Schemas: one pydantic model per analysis section type.

The registry never raises on bad input: validate_section() returns a
SectionValidation carrying either the normalized payload or a readable
reason ("beats: List should have at least 6 items ..."), so the generator
can quote the reason back to the model on retry.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from app.models.models import SectionType


class _Section(BaseModel):
    # LLMs add commentary fields freely; keep only what the schema knows
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TimeRange(_Section):
    start: str  # "00:00"
    end: str    # "00:40"


class NumericRange(_Section):
    min: float
    max: float


# ── Hero's Journey (structural beats) ────────────────────────────────────

class HeroJourneyBeat(_Section):
    number: int = Field(ge=1, le=6)
    title: str
    subtitle: Optional[str] = None
    description: str
    time_range: TimeRange = Field(alias="timeRange")
    bullets: Optional[List[str]] = None
    icon: Optional[str] = None


class HeroJourney(_Section):
    beats: List[HeroJourneyBeat] = Field(min_length=6, max_length=6)
    summary: Optional[str] = None


# ── Emotion Rollercoaster ────────────────────────────────────────────────

class CoreShift(_Section):
    from_: str = Field(alias="from")
    to: str


class EmotionPillar(_Section):
    title: str
    description: str
    time_range: Optional[TimeRange] = Field(None, alias="timeRange")
    icon: Optional[str] = None


class EmotionDecoder(_Section):
    core_shift: CoreShift = Field(alias="coreShift")
    description: Optional[str] = None
    pillars: List[EmotionPillar] = Field(min_length=1)


# ── Title Decode ─────────────────────────────────────────────────────────

class TitleDecode(_Section):
    core_pattern: str = Field(alias="corePattern")
    formula: str
    explanation: str
    keywords: Optional[List[str]] = None
    remixes: Optional[List[str]] = None
    seo_score: int = Field(alias="seoScore", ge=0, le=100)
    seo_analysis: Optional[str] = Field(None, alias="seoAnalysis")
    badge: Optional[str] = None


# ── Thumbnail X-Ray ──────────────────────────────────────────────────────

class ThumbnailXRay(_Section):
    composition: str
    description: str
    elements: List[str]
    promise: str
    emotional_impact: Optional[str] = Field(None, alias="emotionalImpact")
    improvements: Optional[List[str]] = None
    badge: Optional[str] = None
    layout: Optional[str] = None
    has_text: Optional[bool] = Field(None, alias="hasText")


# ── Money Shots (monetization) ───────────────────────────────────────────

class EstimatedRevenue(_Section):
    amount: float
    currency: str = "USD"
    description: Optional[str] = None


class Cpm(_Section):
    range: NumericRange
    category: str
    description: Optional[str] = None


class Breakpoint(_Section):
    timestamp: str
    type: str
    quote: Optional[str] = None
    description: Optional[str] = None


class Placement(_Section):
    timestamp: str
    content: str
    description: str
    insight: Optional[str] = None
    tag: Optional[str] = None


class SponsorMagnetism(_Section):
    audience_signals: Optional[List[str]] = Field(None, alias="audienceSignals")
    authority_credentials: Optional[List[str]] = Field(None, alias="authorityCredentials")
    vertical_depth: Optional[List[str]] = Field(None, alias="verticalDepth")


class LongTermValue(_Section):
    evergreen_leverage: Optional[str] = Field(None, alias="evergreenLeverage")
    series_potential: Optional[str] = Field(None, alias="seriesPotential")
    quotable_insight: Optional[str] = Field(None, alias="quotableInsight")


class RevenueProjection(_Section):
    type: str
    range: NumericRange
    description: Optional[str] = None


class MoneyShots(_Section):
    estimated_revenue: EstimatedRevenue = Field(alias="estimatedRevenue")
    cpm: Cpm
    breakpoints: List[Breakpoint]
    placements: Optional[List[Placement]] = None
    sponsor_magnetism: Optional[SponsorMagnetism] = Field(None, alias="sponsorMagnetism")
    long_term_value: Optional[LongTermValue] = Field(None, alias="longTermValue")
    revenue_projections: Optional[List[RevenueProjection]] = Field(None, alias="revenueProjections")


# ── Content Highlights ───────────────────────────────────────────────────

class ContentHighlight(_Section):
    timestamp: str
    title: str
    description: str
    type: Optional[str] = None


class ContentHighlights(_Section):
    highlights: List[ContentHighlight]


# ── Full Article ─────────────────────────────────────────────────────────

class ArticleSection(_Section):
    title: str
    content: str


class FullArticle(_Section):
    markdown: str
    sections: Optional[List[ArticleSection]] = None


# ── Overview (title decode + thumbnail x-ray + journey summary) ──────────

class HerosJourneySummary(_Section):
    key_phrase: Optional[str] = Field(None, alias="keyPhrase")
    time_marker: Optional[str] = Field(None, alias="timeMarker")
    beats: Optional[List[str]] = Field(None, min_length=6, max_length=6)


class Overview(_Section):
    title_decode: TitleDecode = Field(alias="titleDecode")
    thumbnail_xray: ThumbnailXRay = Field(alias="thumbnailXRay")
    heros_journey_summary: Optional[HerosJourneySummary] = Field(None, alias="herosJourneySummary")


SECTION_SCHEMAS: Dict[SectionType, Type[_Section]] = {
    SectionType.OVERVIEW: Overview,
    SectionType.HEROS_JOURNEY: HeroJourney,
    SectionType.EMOTION_ROLLERCOASTER: EmotionDecoder,
    SectionType.MONEY_SHOTS: MoneyShots,
    SectionType.TITLE_DECODE: TitleDecode,
    SectionType.THUMBNAIL_XRAY: ThumbnailXRay,
    SectionType.CONTENT_HIGHLIGHTS: ContentHighlights,
    SectionType.FULL_ARTICLE: FullArticle,
}


# ═══════════════════════════════════════════════════════════════════════
# Validation entry point
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SectionValidation:
    section_type: SectionType
    ok: bool
    value: Optional[Dict[str, Any]] = None
    model: Optional[_Section] = None
    reason: Optional[str] = None


def _format_errors(exc: ValidationError) -> str:
    messages = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "<root>"
        messages.append(f"{loc}: {err['msg']}")
    return "; ".join(messages)


def validate_section(section_type: SectionType, data: Any) -> SectionValidation:
    """Validate parsed JSON against the schema of ``section_type``."""
    section_type = SectionType(section_type)
    schema = SECTION_SCHEMAS[section_type]

    if not isinstance(data, dict):
        return SectionValidation(
            section_type, ok=False,
            reason=f"<root>: expected a JSON object, got {type(data).__name__}",
        )

    try:
        model = schema.model_validate(data)
    except ValidationError as exc:
        return SectionValidation(section_type, ok=False, reason=_format_errors(exc))

    return SectionValidation(
        section_type,
        ok=True,
        value=model.model_dump(by_alias=True, exclude_none=True),
        model=model,
    )
