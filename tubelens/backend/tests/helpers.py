"""Shared fakes and payloads for the test suite."""
from __future__ import annotations

import asyncio
import copy
import json
from types import SimpleNamespace
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from app.models.models import SectionType, TranscriptSource
from app.services.transcript.providers import TranscriptProvider

_BEATS = [
    {
        "number": i,
        "title": f"Beat {i}",
        "subtitle": "Act",
        "description": f"What happens in beat {i}",
        "timeRange": {"start": f"0{i - 1}:00", "end": f"0{i}:00"},
        "bullets": ["point"],
        "icon": "star",
    }
    for i in range(1, 7)
]

_TITLE_DECODE = {
    "corePattern": "Subject + Metaphorical Solution",
    "formula": "{Complex_Subject} is the {Shortcut_Metaphor}",
    "explanation": "Promises a shortcut through something hard",
    "keywords": ["story", "structure"],
    "remixes": ["Editing is the cheat code"],
    "seoScore": 85,
    "seoAnalysis": "Strong head term",
    "badge": "High Impact",
}

_THUMBNAIL_XRAY = {
    "composition": "Centered Subject + Bold Text",
    "description": "Face on the left, big yellow text on the right",
    "elements": ["face", "text", "arrow"],
    "promise": "You will learn the trick",
    "emotionalImpact": "Curiosity",
    "improvements": ["Fewer words"],
    "badge": "Information-complementary",
    "layout": "Centered",
    "hasText": True,
}

VALID_PAYLOADS: Dict[SectionType, dict] = {
    SectionType.OVERVIEW: {
        "titleDecode": _TITLE_DECODE,
        "thumbnailXRay": _THUMBNAIL_XRAY,
        "herosJourneySummary": {
            "keyPhrase": "From confusion to clarity",
            "timeMarker": "00:00 - 3:32",
            "beats": [f"Beat {i}" for i in range(1, 7)],
        },
    },
    SectionType.HEROS_JOURNEY: {"beats": _BEATS, "summary": "A classic arc"},
    SectionType.EMOTION_ROLLERCOASTER: {
        "coreShift": {"from": "Doubt", "to": "Confidence"},
        "description": "The viewer is carried from doubt to confidence",
        "pillars": [
            {
                "title": "The hook",
                "description": "Opens on a failure",
                "timeRange": {"start": "00:00", "end": "00:30"},
                "icon": "bolt",
            }
        ],
    },
    SectionType.MONEY_SHOTS: {
        "estimatedRevenue": {"amount": 1200, "currency": "USD", "description": "Per month"},
        "cpm": {"range": {"min": 4, "max": 12}, "category": "Education"},
        "breakpoints": [{"timestamp": "02:10", "type": "Natural pause", "quote": "But then..."}],
        "placements": [
            {"timestamp": "01:00", "content": "Tool plug", "description": "Fits the workflow"}
        ],
        "sponsorMagnetism": {"audienceSignals": ["creators"]},
        "longTermValue": {"evergreenLeverage": "High"},
        "revenueProjections": [
            {"type": "AdSense", "range": {"min": 100, "max": 300}, "description": "Monthly"}
        ],
    },
    SectionType.TITLE_DECODE: _TITLE_DECODE,
    SectionType.THUMBNAIL_XRAY: _THUMBNAIL_XRAY,
    SectionType.CONTENT_HIGHLIGHTS: {
        "highlights": [
            {"timestamp": "00:45", "title": "The reveal", "description": "Shows the result", "type": "moment"}
        ]
    },
    SectionType.FULL_ARTICLE: {
        "markdown": "# Breakdown\n\nA long-form article about the video.",
        "sections": [{"title": "Intro", "content": "Why it matters"}],
    },
}

PROMPT_MARKERS: Dict[str, SectionType] = {
    "Generate an overview combining": SectionType.OVERVIEW,
    "Hero's Journey framework": SectionType.HEROS_JOURNEY,
    "Analyze the emotional journey": SectionType.EMOTION_ROLLERCOASTER,
    "Analyze monetization potential": SectionType.MONEY_SHOTS,
    "Analyze the video title's structure": SectionType.TITLE_DECODE,
    "Analyze the video thumbnail's composition": SectionType.THUMBNAIL_XRAY,
    "Identify key moments": SectionType.CONTENT_HIGHLIGHTS,
    "article-style breakdown": SectionType.FULL_ARTICLE,
}


def valid_payload(section_type: SectionType) -> dict:
    return copy.deepcopy(VALID_PAYLOADS[section_type])


def section_for_prompt(prompt: str) -> SectionType:
    for marker, section_type in PROMPT_MARKERS.items():
        if marker in prompt:
            return section_type
    raise AssertionError("prompt does not match any section builder")


def make_video(**overrides) -> SimpleNamespace:
    fields = dict(
        youtube_id="dQw4w9WgXcQ",
        title="How Stories Really Work",
        channel="Story Lab",
        thumbnail_url="https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg",
        duration_seconds=212,
        view_count=1234567,
        like_count=4321,
        comment_count=99,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


# (model, section_type, prompt) → raw completion text
Responder = Callable[[str, SectionType, str], Awaitable[str]]


async def valid_responder(model: str, section_type: SectionType, prompt: str) -> str:
    return json.dumps(valid_payload(section_type))


class FakeLLMProvider:
    def __init__(
        self,
        name: str = "fake",
        models: Sequence[str] = ("fake-model",),
        responder: Optional[Responder] = None,
    ):
        self.name = name
        self.models = list(models)
        self.responder = responder or valid_responder
        self.calls: List[Tuple[str, SectionType, str]] = []

    def calls_for(self, section_type: SectionType) -> List[Tuple[str, SectionType, str]]:
        return [call for call in self.calls if call[1] == section_type]

    async def complete(self, model, prompt, *, json_mode=True, temperature=0.7):
        section_type = section_for_prompt(prompt)
        self.calls.append((model, section_type, prompt))
        return await self.responder(model, section_type, prompt)


def failing_for(*section_types: SectionType, exc: Exception = None) -> Responder:
    """Responder that raises for the given sections and answers the rest."""
    async def responder(model, section_type, prompt):
        if section_type in section_types:
            raise exc or RuntimeError(f"{section_type.value} exploded")
        return json.dumps(valid_payload(section_type))
    return responder


class FakeTranscriptProvider(TranscriptProvider):
    def __init__(
        self,
        name: str,
        source: TranscriptSource,
        text: Optional[str] = None,
        error: Optional[Exception] = None,
        available: bool = True,
        delay: float = 0.0,
    ):
        self.name = name
        self.source = source
        self.text = text
        self.error = error
        self._available = available
        self.delay = delay
        self.attempts: List[str] = []

    @property
    def available(self) -> bool:
        return self._available

    async def attempt(self, youtube_id: str) -> str:
        self.attempts.append(youtube_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.text


class RecordingDispatcher:
    def __init__(self, error: Optional[Exception] = None):
        self.calls: list = []
        self.error = error

    def __call__(self, target_id):
        if self.error is not None:
            raise self.error
        self.calls.append(target_id)
