"""Unit tests for the completeness scorer (judges stubbed)."""

from __future__ import annotations

import pytest

from agents.aspect_judge import StaticAspectJudge
from agents.completeness_agent import (
    ASPECT_WEIGHTS,
    CompletenessScorer,
    calculate_confidence,
    calculate_overall_score,
    generate_suggestions,
    identify_missing_elements,
)
from schemas.completeness import ASPECT_ORDER, AspectCategory, AspectCheck, AspectQuality
from schemas.issue import IssueData
from schemas.workflow_state import PipelinePhase


def _check(present=True, quality=AspectQuality.GOOD, confidence=0.9) -> AspectCheck:
    return AspectCheck(present=present, confidence=confidence, quality=quality, details="stub")


MISSING = AspectCheck(present=False, confidence=0.9, quality=AspectQuality.MISSING, details="not found")


def _issue(body: str = "It crashes when I open the app.") -> IssueData:
    return IssueData(title="Crash on load", body=body, number=42, repository="octo/widgets")


class _ExplodingJudge:
    """Fails for the listed categories, returns a good check otherwise."""

    def __init__(self, failing):
        self.failing = set(failing)

    def judge(self, category, text):
        if category in self.failing:
            raise RuntimeError(f"model timeout for {category.value}")
        return _check()


def test_missing_reproduction_and_version_scores_72():
    checks = {category: _check() for category in ASPECT_ORDER}
    checks[AspectCategory.REPRODUCTION_STEPS] = MISSING
    checks[AspectCategory.VERSION_INFO] = MISSING

    analysis = CompletenessScorer(judge=StaticAspectJudge(checks)).analyze(_issue())

    assert analysis.missing_elements == ["reproduction steps", "version information"]
    assert analysis.overall_score == 72
    assert analysis.suggestions == [
        "Add step-by-step instructions to reproduce the issue",
        "Include version numbers (software, browser, OS)",
    ]


def test_all_excellent_scores_confidence_weighted_100():
    checks = {category: _check(quality=AspectQuality.EXCELLENT, confidence=1.0) for category in ASPECT_ORDER}
    analysis = CompletenessScorer(judge=StaticAspectJudge(checks)).analyze(_issue())

    assert analysis.overall_score == 100
    assert analysis.missing_elements == []
    assert analysis.suggestions == []
    assert analysis.confidence == pytest.approx(1.0)


def test_all_judges_fail_gives_zero_score_and_confidence():
    analysis = CompletenessScorer(judge=_ExplodingJudge(ASPECT_ORDER)).analyze(_issue())

    assert analysis.overall_score == 0
    assert analysis.confidence == 0.0
    assert analysis.missing_elements == [category.element_name for category in ASPECT_ORDER]
    for category, check in analysis.checks():
        assert check.present is False
        assert check.quality == AspectQuality.MISSING
        assert check.details == f"{category.element_name} analysis failed"
        assert check.suggestions == ["manual review needed"]


def test_single_failing_judge_does_not_affect_others():
    analysis = CompletenessScorer(judge=_ExplodingJudge([AspectCategory.SCREENSHOTS])).analyze(_issue())

    assert analysis.missing_elements == ["screenshots"]
    assert analysis.screenshots.confidence == 0.0
    assert analysis.error_logs.present is True
    # Five present checks at good/0.9 -> 72 regardless of which weights they carry
    assert analysis.overall_score == 72
    assert analysis.confidence == pytest.approx(0.9 * 5 / 6)


def test_missing_static_judgment_falls_back():
    judge = StaticAspectJudge({AspectCategory.REPRODUCTION_STEPS: _check()})
    analysis = CompletenessScorer(judge=judge).analyze(_issue())

    assert analysis.reproduction_steps.present is True
    assert analysis.expected_behavior.details == "expected vs actual behavior analysis failed"


def test_text_truncated_before_judging():
    judge = StaticAspectJudge({}, default=_check())
    issue = _issue(body="x" * 5000)

    CompletenessScorer(judge=judge).analyze(issue)

    assert len(judge.calls) == 6
    assert {category for category, _ in judge.calls} == set(ASPECT_ORDER)
    for _, text in judge.calls:
        assert len(text) == 3000
        assert text.startswith("Crash on load\n\n")


def test_custom_text_limit():
    judge = StaticAspectJudge({}, default=_check())
    CompletenessScorer(judge=judge, text_limit=20).analyze(_issue(body="y" * 100))
    assert all(len(text) == 20 for _, text in judge.calls)


def test_analysis_is_deterministic():
    checks = {category: _check(quality=AspectQuality.FAIR, confidence=0.7) for category in ASPECT_ORDER}
    checks[AspectCategory.ERROR_LOGS] = MISSING
    scorer = CompletenessScorer(judge=StaticAspectJudge(checks))

    first = scorer.analyze(_issue())
    second = scorer.analyze(_issue())

    assert first.overall_score == second.overall_score
    assert first.missing_elements == second.missing_elements
    assert first.confidence == second.confidence


def test_analysis_carries_issue_identity():
    analysis = CompletenessScorer(judge=StaticAspectJudge({}, default=_check())).analyze(_issue())
    assert analysis.repository == "octo/widgets"
    assert analysis.issue_number == 42
    assert analysis.analysis_version == "v1.0"
    assert analysis.processing_time_ms >= 0


def test_unknown_weight_table_rejected():
    with pytest.raises(ValueError):
        CompletenessScorer(judge=StaticAspectJudge({}), weights={AspectCategory.SCREENSHOTS: 1.0})


def test_custom_weights_change_score():
    checks = {category: MISSING for category in ASPECT_ORDER}
    checks[AspectCategory.SCREENSHOTS] = _check(quality=AspectQuality.POOR, confidence=1.0)
    checks[AspectCategory.ERROR_LOGS] = _check(quality=AspectQuality.EXCELLENT, confidence=1.0)

    default_score = CompletenessScorer(judge=StaticAspectJudge(checks)).analyze(_issue()).overall_score
    weights = dict(ASPECT_WEIGHTS)
    weights[AspectCategory.SCREENSHOTS] = 0.9
    custom_score = CompletenessScorer(judge=StaticAspectJudge(checks), weights=weights).analyze(_issue()).overall_score

    # (100*0.15 + 40*0.10) / 0.25 = 76 ; (100*0.15 + 40*0.9) / 1.05 = 48.57
    assert default_score == 76
    assert custom_score == 49


# ── Pure aggregation helpers ──────────────────────────────────────────────────

@pytest.mark.parametrize(
    "quality,confidence",
    [
        (AspectQuality.EXCELLENT, 1.0),
        (AspectQuality.EXCELLENT, 0.0),
        (AspectQuality.POOR, 0.33),
        (AspectQuality.FAIR, 0.5),
    ],
)
def test_score_and_confidence_bounds(quality, confidence):
    checks = {category: _check(quality=quality, confidence=confidence) for category in ASPECT_ORDER}
    score = calculate_overall_score(checks)
    assert 0 <= score <= 100
    assert 0.0 <= calculate_confidence(checks) <= 1.0


def test_score_rounds_half_up():
    checks = {category: MISSING for category in ASPECT_ORDER}
    # 100 * 0.125 = 12.5, exact in binary floating point
    checks[AspectCategory.REPRODUCTION_STEPS] = _check(quality=AspectQuality.EXCELLENT, confidence=0.125)
    assert calculate_overall_score(checks) == 13


def test_nothing_present_scores_zero():
    checks = {category: MISSING for category in ASPECT_ORDER}
    assert calculate_overall_score(checks) == 0


def test_missing_elements_follow_category_order():
    checks = {category: _check() for category in ASPECT_ORDER}
    checks[AspectCategory.SCREENSHOTS] = MISSING
    checks[AspectCategory.REPRODUCTION_STEPS] = MISSING
    assert identify_missing_elements(checks) == ["reproduction steps", "screenshots"]


def test_generate_suggestions_ignores_unknown_names():
    assert generate_suggestions(["screenshots", "not an element"]) == [
        "Add screenshots or visual evidence of the issue"
    ]


# ── LangGraph node ────────────────────────────────────────────────────────────

def test_run_node_marks_complete_issue():
    checks = {category: _check(quality=AspectQuality.EXCELLENT, confidence=1.0) for category in ASPECT_ORDER}
    scorer = CompletenessScorer(judge=StaticAspectJudge(checks))

    result = scorer.run({"run_id": "test-run-id", "issue": _issue()})

    assert result["is_complete_issue"] is True
    assert result["analysis"].overall_score == 100
    assert result["current_phase"] == PipelinePhase.ANALYZING


def test_run_node_marks_incomplete_issue():
    scorer = CompletenessScorer(judge=StaticAspectJudge({}, default=MISSING))
    result = scorer.run({"run_id": "test-run-id", "issue": _issue()})
    assert result["is_complete_issue"] is False
