from __future__ import annotations

import asyncio
import math
import time
from typing import Mapping, Optional, Sequence

from agents.aspect_judge import AspectJudge, LLMAspectJudge, fallback_check
from agents.base_agent import BaseAgent
from config.settings import settings
from prompts.aspect_prompts import build_template_context
from schemas.completeness import (
    ASPECT_ORDER,
    AspectCategory,
    AspectCheck,
    AspectQuality,
    CompletenessAnalysis,
)
from schemas.issue import IssueData
from schemas.template import Template
from schemas.workflow_state import PipelinePhase, PipelineState

# Reproduction steps carry the most weight: they are what a maintainer acts on first.
ASPECT_WEIGHTS: dict[AspectCategory, float] = {
    AspectCategory.REPRODUCTION_STEPS: 0.25,
    AspectCategory.EXPECTED_BEHAVIOR: 0.20,
    AspectCategory.VERSION_INFO: 0.15,
    AspectCategory.ENVIRONMENT_DETAILS: 0.15,
    AspectCategory.ERROR_LOGS: 0.15,
    AspectCategory.SCREENSHOTS: 0.10,
}

QUALITY_SCORES: dict[AspectQuality, int] = {
    AspectQuality.EXCELLENT: 100,
    AspectQuality.GOOD: 80,
    AspectQuality.FAIR: 60,
    AspectQuality.POOR: 40,
    AspectQuality.MISSING: 0,
}

MISSING_ELEMENT_SUGGESTIONS: dict[AspectCategory, str] = {
    AspectCategory.REPRODUCTION_STEPS: "Add step-by-step instructions to reproduce the issue",
    AspectCategory.EXPECTED_BEHAVIOR: "Describe what you expected to happen vs what actually happened",
    AspectCategory.VERSION_INFO: "Include version numbers (software, browser, OS)",
    AspectCategory.ENVIRONMENT_DETAILS: "Add environment details (OS, browser, device)",
    AspectCategory.ERROR_LOGS: "Include error messages, stack traces, or console output",
    AspectCategory.SCREENSHOTS: "Add screenshots or visual evidence of the issue",
}


# ── Aggregation (pure, deterministic) ──────────────────────────────────────────

def calculate_overall_score(
    checks: Mapping[AspectCategory, AspectCheck],
    weights: Mapping[AspectCategory, float] = ASPECT_WEIGHTS,
    quality_scores: Mapping[AspectQuality, int] = QUALITY_SCORES,
) -> int:
    """
    Confidence-weighted quality score in [0, 100].

    Only present aspects contribute, and the weighted sum is renormalised over
    their weights. Nothing present means a score of 0.
    """
    total_score = 0.0
    total_weight = 0.0
    for category in ASPECT_ORDER:
        check = checks[category]
        if not check.present:
            continue
        weight = weights[category]
        total_score += quality_scores[check.quality] * check.confidence * weight
        total_weight += weight

    if total_weight <= 0:
        return 0
    # Round half up, not to even
    score = math.floor(total_score / total_weight + 0.5)
    return max(0, min(100, int(score)))


def identify_missing_elements(checks: Mapping[AspectCategory, AspectCheck]) -> list[str]:
    return [category.element_name for category in ASPECT_ORDER if not checks[category].present]


def generate_suggestions(missing_elements: list[str]) -> list[str]:
    """Fixed remediation hints keyed by missing element, independent of model wording."""
    missing = set(missing_elements)
    return [
        MISSING_ELEMENT_SUGGESTIONS[category]
        for category in ASPECT_ORDER
        if category.element_name in missing
    ]


def calculate_confidence(checks: Mapping[AspectCategory, AspectCheck]) -> float:
    values = [checks[category].confidence for category in ASPECT_ORDER]
    return max(0.0, min(1.0, sum(values) / len(values)))


# ── Scorer ─────────────────────────────────────────────────────────────────────

class CompletenessScorer(BaseAgent):
    """Runs the six aspect judges concurrently and aggregates their checks."""

    def __init__(
        self,
        judge: Optional[AspectJudge] = None,
        weights: Optional[Mapping[AspectCategory, float]] = None,
        quality_scores: Optional[Mapping[AspectQuality, int]] = None,
        text_limit: Optional[int] = None,
    ) -> None:
        super().__init__()
        self._judge = judge
        self.weights = dict(weights or ASPECT_WEIGHTS)
        self.quality_scores = dict(quality_scores or QUALITY_SCORES)
        self.text_limit = text_limit if text_limit is not None else settings.aspect_text_limit

        missing_weights = set(ASPECT_ORDER) - set(self.weights)
        if missing_weights:
            raise ValueError(f"No weight configured for {sorted(c.value for c in missing_weights)}")

    @property
    def judge(self) -> AspectJudge:
        if self._judge is None:
            self._judge = LLMAspectJudge()
        return self._judge

    def analyze(
        self,
        issue: IssueData,
        run_id: Optional[str] = None,
        templates: Optional[Sequence[Template]] = None,
    ) -> CompletenessAnalysis:
        return self.run_async(self.aanalyze(issue, run_id=run_id, templates=templates))

    async def aanalyze(
        self,
        issue: IssueData,
        run_id: Optional[str] = None,
        templates: Optional[Sequence[Template]] = None,
    ) -> CompletenessAnalysis:
        """
        Score one issue. ``templates`` are the repository's comment templates;
        LLM judges receive them as extra system-prompt context.
        """
        start = time.monotonic()
        text = issue.text[: self.text_limit]

        judge = self.judge
        if isinstance(judge, LLMAspectJudge):
            judge = judge.bind(
                template_context=build_template_context(templates or []),
                repository=issue.repository,
                issue_number=issue.number,
                run_id=run_id,
            )

        results = await asyncio.gather(
            *(asyncio.to_thread(judge.judge, category, text) for category in ASPECT_ORDER),
            return_exceptions=True,
        )

        checks: dict[AspectCategory, AspectCheck] = {}
        for category, result in zip(ASPECT_ORDER, results):
            if isinstance(result, AspectCheck):
                checks[category] = result
                continue
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result
            self.logger.warning(
                "aspect_judge_failed",
                repository=issue.repository,
                issue_number=issue.number,
                run_id=run_id,
                aspect=category.value,
                error_type=type(result).__name__,
                error_message=str(result),
            )
            checks[category] = fallback_check(category)

        missing_elements = identify_missing_elements(checks)
        analysis = CompletenessAnalysis(
            **{category.value: checks[category] for category in ASPECT_ORDER},
            overall_score=calculate_overall_score(checks, self.weights, self.quality_scores),
            missing_elements=missing_elements,
            suggestions=generate_suggestions(missing_elements),
            confidence=calculate_confidence(checks),
            processing_time_ms=int((time.monotonic() - start) * 1000),
            analysis_version=settings.analysis_version,
            repository=issue.repository,
            issue_number=issue.number,
        )

        self.logger.info(
            "analysis_completed",
            repository=issue.repository,
            issue_number=issue.number,
            run_id=run_id,
            score=analysis.overall_score,
            confidence=round(analysis.confidence, 3),
            missing_elements=analysis.missing_elements,
            processing_time_ms=analysis.processing_time_ms,
        )
        return analysis

    # ── LangGraph node ────────────────────────────────────────────────────────

    def run(self, state: PipelineState) -> dict:
        issue = state["issue"]
        run_id = state["run_id"]

        self.logger.info(
            "agent_node_entered",
            repository=issue.repository,
            issue_number=issue.number,
            run_id=run_id,
            phase=PipelinePhase.ANALYZING,
        )

        analysis = self.analyze(issue, run_id=run_id, templates=state.get("templates"))
        is_complete = analysis.is_complete(settings.completeness_threshold)

        return {
            "analysis": analysis,
            "is_complete_issue": is_complete,
            "current_phase": PipelinePhase.ANALYZING,
        }
