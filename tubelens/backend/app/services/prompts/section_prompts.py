"""
TubeLens Section Prompts: instruction text for each analysis section.

Pure functions: the same context always yields the same prompt string.
Each prompt opens with SYSTEM_INSTRUCTION, shows a JSON template of the
target schema, and ends with task-specific emphasis.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional

from app.models.models import SectionType
from app.utils.youtube import format_count, format_duration

SYSTEM_INSTRUCTION = (
    "You are an expert video content analyst. Analyze the provided video content "
    "and return ONLY valid JSON matching the specified schema. Do not include any "
    "markdown formatting, code blocks, or explanatory text. Return pure JSON only."
)

# Characters of transcript sent per section; None = transcript not used
TRANSCRIPT_BUDGETS: Dict[SectionType, Optional[int]] = {
    SectionType.OVERVIEW: 6000,
    SectionType.HEROS_JOURNEY: 8000,
    SectionType.EMOTION_ROLLERCOASTER: 8000,
    SectionType.MONEY_SHOTS: 6000,
    SectionType.TITLE_DECODE: None,
    SectionType.THUMBNAIL_XRAY: None,
    SectionType.CONTENT_HIGHLIGHTS: 8000,
    SectionType.FULL_ARTICLE: 10000,
}


@dataclass(frozen=True)
class PromptContext:
    title: str
    channel: str
    duration_seconds: int
    transcript: str
    thumbnail_url: Optional[str] = None
    view_count: Optional[int] = None
    like_count: Optional[int] = None
    comment_count: Optional[int] = None

    @classmethod
    def from_video(cls, video, transcript: str) -> "PromptContext":
        return cls(
            title=video.title,
            channel=video.channel,
            duration_seconds=video.duration_seconds or 0,
            transcript=transcript,
            thumbnail_url=video.thumbnail_url,
            view_count=video.view_count,
            like_count=video.like_count,
            comment_count=video.comment_count,
        )

    def excerpt(self, section_type: SectionType) -> str:
        budget = TRANSCRIPT_BUDGETS[section_type]
        return self.transcript[:budget] if budget else ""


# ── Per-section builders ─────────────────────────────────────────────────

def _heros_journey(ctx: PromptContext) -> str:
    return f"""{SYSTEM_INSTRUCTION}

Analyze the video's narrative structure using the Hero's Journey framework. Identify exactly 6 distinct beats that map to the story arc.

Video Metadata:
- Title: {ctx.title}
- Channel: {ctx.channel}
- Duration: {format_duration(ctx.duration_seconds)}
- Views: {format_count(ctx.view_count)}

Transcript:
{ctx.excerpt(SectionType.HEROS_JOURNEY)}

Return JSON matching this schema:
{{
  "beats": [
    {{
      "number": 1,
      "title": "The Setup",
      "subtitle": "optional subtitle",
      "description": "Brief description of this beat",
      "timeRange": {{ "start": "00:00", "end": "00:40" }},
      "bullets": ["key point 1", "key point 2"],
      "icon": "emoji or icon identifier"
    }}
    // ... 5 more beats
  ],
  "summary": "optional overall summary"
}}

Ensure:
- Exactly 6 beats
- Time ranges are in MM:SS format
- Beats follow a narrative arc (Setup → Conflict → Resolution)
- Each beat has a clear purpose in the story"""


def _emotion_rollercoaster(ctx: PromptContext) -> str:
    return f"""{SYSTEM_INSTRUCTION}

Analyze the emotional journey of the video. Identify the core emotional shift and key emotional pillars/moments.

Video Metadata:
- Title: {ctx.title}
- Channel: {ctx.channel}
- Duration: {format_duration(ctx.duration_seconds)}

Transcript:
{ctx.excerpt(SectionType.EMOTION_ROLLERCOASTER)}

Return JSON matching this schema:
{{
  "coreShift": {{
    "from": "Starting emotion (e.g., Cynical Detachment)",
    "to": "Ending emotion (e.g., Empowered Warmth)"
  }},
  "description": "Brief description of the emotional arc",
  "pillars": [
    {{
      "title": "Emotion name (e.g., CYNICISM, SHOCK, HOPE)",
      "description": "Description of this emotional moment",
      "timeRange": {{ "start": "00:00", "end": "00:30" }},
      "icon": "emoji"
    }}
    // ... more pillars
  ]
}}

Focus on:
- Clear emotional progression
- Key moments that shift emotion
- How emotions serve the narrative"""


def _title_decode(ctx: PromptContext) -> str:
    return f"""{SYSTEM_INSTRUCTION}

Analyze the video title's structure, pattern, and SEO potential.

Video Title: "{ctx.title}"
Channel: {ctx.channel}
Views: {format_count(ctx.view_count)}

Return JSON matching this schema:
{{
  "corePattern": "Pattern description (e.g., Subject + Metaphorical Solution)",
  "formula": "Template formula (e.g., {{Complex_Subject}} is the {{Shortcut_Metaphor}} to {{Universal_Problem}})",
  "explanation": "Why this title works",
  "keywords": ["keyword1", "keyword2"],
  "remixes": ["Example variation 1", "Example variation 2"],
  "seoScore": 90,
  "seoAnalysis": "Detailed SEO analysis",
  "badge": "High Impact" or "Information-complementary" or null
}}

Analyze:
- Title structure and pattern
- SEO keyword usage
- Clickability factors
- Remix potential

seoScore must be a whole number between 0 and 100."""


def _thumbnail_xray(ctx: PromptContext) -> str:
    return f"""{SYSTEM_INSTRUCTION}

Analyze the video thumbnail's composition, elements, and promise.

Video: {ctx.title}
Channel: {ctx.channel}
Thumbnail URL: {ctx.thumbnail_url or 'Not provided'}

Return JSON matching this schema:
{{
  "composition": "Composition style (e.g., Surreal Avatar + Complexity Background)",
  "description": "What the thumbnail shows and promises",
  "elements": ["element1", "element2", "element3"],
  "promise": "What the thumbnail promises to deliver",
  "emotionalImpact": "Emotional response it triggers",
  "improvements": ["suggestion1", "suggestion2"],
  "badge": "Information-complementary" or null,
  "layout": "Centered" or other,
  "hasText": false
}}

Focus on:
- Visual composition
- Information hierarchy
- Emotional appeal
- Click-through potential"""


def _money_shots(ctx: PromptContext) -> str:
    return f"""{SYSTEM_INSTRUCTION}

Analyze monetization potential, ad breakpoints, and sponsor appeal.

Video Metadata:
- Title: {ctx.title}
- Channel: {ctx.channel}
- Duration: {format_duration(ctx.duration_seconds)}
- Views: {format_count(ctx.view_count)}
- Likes: {format_count(ctx.like_count)}
- Comments: {format_count(ctx.comment_count)}

Transcript:
{ctx.excerpt(SectionType.MONEY_SHOTS)}

Return JSON matching this schema:
{{
  "estimatedRevenue": {{
    "amount": 6378,
    "currency": "USD",
    "description": "Based on Education CPM"
  }},
  "cpm": {{
    "range": {{ "min": 4, "max": 12 }},
    "category": "Education",
    "description": "CPM analysis"
  }},
  "breakpoints": [
    {{
      "timestamp": "03:55",
      "type": "Case Study Shift",
      "quote": "Optional quote from transcript",
      "description": "Natural breakpoint description"
    }}
  ],
  "placements": [
    {{
      "timestamp": "12:58",
      "content": "Product/Book mention",
      "description": "Natural integration point",
      "insight": "Why this works",
      "tag": "RECOMMENDATION SCENE" or "SOLUTION SCENE"
    }}
  ],
  "sponsorMagnetism": {{
    "audienceSignals": ["signal1", "signal2"],
    "authorityCredentials": ["credential1"],
    "verticalDepth": ["depth indicator"]
  }},
  "longTermValue": {{
    "evergreenLeverage": "Topic longevity",
    "seriesPotential": "Series expansion potential",
    "quotableInsight": "Shareable quote"
  }},
  "revenueProjections": [
    {{
      "type": "60-SECOND MENTION",
      "range": {{ "min": 11725, "max": 35176 }},
      "description": "Based on $0.01 - $0.03 per view"
    }}
  ]
}}

Calculate:
- Estimated ad revenue from the view count × category CPM
- Natural breakpoints for mid-roll ads
- Product placement opportunities
- Sponsor appeal factors"""


def _content_highlights(ctx: PromptContext) -> str:
    return f"""{SYSTEM_INSTRUCTION}

Identify key moments, quotes, and highlights from the video.

Video: {ctx.title}
Channel: {ctx.channel}

Transcript:
{ctx.excerpt(SectionType.CONTENT_HIGHLIGHTS)}

Return JSON matching this schema:
{{
  "highlights": [
    {{
      "timestamp": "05:30",
      "title": "Key moment title",
      "description": "What happens here",
      "type": "Key Moment" or "Quote" or other
    }}
    // ... more highlights
  ]
}}

Focus on:
- Memorable quotes
- Key insights
- Pivotal moments
- Shareable content"""


def _full_article(ctx: PromptContext) -> str:
    return f"""{SYSTEM_INSTRUCTION}

Generate a comprehensive article-style breakdown of the video in markdown format.

Video: {ctx.title}
Channel: {ctx.channel}

Transcript:
{ctx.excerpt(SectionType.FULL_ARTICLE)}

Return JSON matching this schema:
{{
  "markdown": "# Full Article\\n\\nComplete markdown article...",
  "sections": [
    {{
      "title": "Section Title",
      "content": "Section content in markdown"
    }}
  ]
}}

Create:
- Comprehensive analysis
- Well-structured markdown
- Multiple sections
- Actionable insights"""


def _overview(ctx: PromptContext) -> str:
    return f"""{SYSTEM_INSTRUCTION}

Generate an overview combining Title Decode, Thumbnail X-Ray, and Hero's Journey summary.

Video: {ctx.title}
Channel: {ctx.channel}
Thumbnail URL: {ctx.thumbnail_url or 'N/A'}

Transcript:
{ctx.excerpt(SectionType.OVERVIEW)}

Return JSON matching this EXACT schema:
{{
  "titleDecode": {{
    "corePattern": "Pattern description (e.g., Subject + Metaphorical Solution)",
    "formula": "Template formula (e.g., {{Complex_Subject}} is the {{Shortcut_Metaphor}})",
    "explanation": "Why this title works",
    "keywords": ["keyword1", "keyword2"],
    "remixes": ["Example variation 1", "Example variation 2"],
    "seoScore": 85,
    "seoAnalysis": "Detailed SEO analysis",
    "badge": "High Impact"
  }},
  "thumbnailXRay": {{
    "composition": "Composition description (e.g., Centered Subject + Bold Text)",
    "description": "Detailed description of thumbnail",
    "elements": ["element1", "element2", "element3"],
    "promise": "What the thumbnail promises to viewers",
    "emotionalImpact": "Emotional response triggered",
    "improvements": ["improvement1", "improvement2"],
    "badge": "Information-complementary",
    "layout": "Centered",
    "hasText": true
  }},
  "herosJourneySummary": {{
    "keyPhrase": "Key phrase from the narrative journey",
    "timeMarker": "00:00 - {format_duration(ctx.duration_seconds)}",
    "beats": ["Beat 1 title", "Beat 2 title", "Beat 3 title", "Beat 4 title", "Beat 5 title", "Beat 6 title"]
  }}
}}

IMPORTANT:
- Provide ALL fields with real values (no placeholders or comments)
- seoScore must be a number between 0-100
- beats array must have exactly 6 strings
- All optional fields should be included with real content
- If thumbnail URL is not available, make educated guesses based on the video title and content"""


PROMPT_BUILDERS: Dict[SectionType, Callable[[PromptContext], str]] = {
    SectionType.OVERVIEW: _overview,
    SectionType.HEROS_JOURNEY: _heros_journey,
    SectionType.EMOTION_ROLLERCOASTER: _emotion_rollercoaster,
    SectionType.MONEY_SHOTS: _money_shots,
    SectionType.TITLE_DECODE: _title_decode,
    SectionType.THUMBNAIL_XRAY: _thumbnail_xray,
    SectionType.CONTENT_HIGHLIGHTS: _content_highlights,
    SectionType.FULL_ARTICLE: _full_article,
}


def correction_block(reason: str) -> str:
    return (
        "\n\nPrevious attempt failed validation: "
        f"{reason}. Please fix the JSON to match the schema exactly."
    )


def build_section_prompt(
    section_type: SectionType,
    context: PromptContext,
    correction: Optional[str] = None,
) -> str:
    """Prompt for one section; ``correction`` is the prior validation error."""
    prompt = PROMPT_BUILDERS[SectionType(section_type)](context)
    if correction:
        prompt += correction_block(correction)
    return prompt
