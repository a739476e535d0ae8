"""
TubeLens Prometheus metrics: exposed on /metrics by app.main.
"""
from __future__ import annotations

from prometheus_client import Counter, Histogram

TRANSCRIPT_ATTEMPTS = Counter(
    "tubelens_transcript_attempts_total",
    "Transcript provider attempts",
    ["provider", "outcome"],  # outcome: success | failure | skipped
)

LLM_ATTEMPTS = Counter(
    "tubelens_llm_attempts_total",
    "LLM completions per provider/model",
    ["provider", "model", "outcome"],  # success | invalid | error
)

SECTION_OUTCOMES = Counter(
    "tubelens_section_outcomes_total",
    "Generated analysis sections",
    ["section_type", "outcome"],
)

ANALYSIS_RESULTS = Counter(
    "tubelens_analysis_results_total",
    "Analyses reaching a terminal state",
    ["status"],
)

SECTION_DURATION = Histogram(
    "tubelens_section_duration_seconds",
    "Wall time to generate and persist one section",
    ["section_type"],
    buckets=(1, 5, 10, 20, 30, 60, 120, 300),
)
