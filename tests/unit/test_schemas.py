"""Unit tests for Pydantic schemas."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from schemas.completeness import ASPECT_ORDER, AspectCategory, AspectCheck, AspectQuality, CompletenessAnalysis
from schemas.issue import IssueData
from schemas.template import DecorationStyle, FontSize, Spacing, Template, TemplateCategory
from templating.errors import MalformedTemplateError


def _check(present=True, quality=AspectQuality.GOOD, confidence=0.9) -> AspectCheck:
    return AspectCheck(present=present, confidence=confidence, quality=quality, details="ok")


def test_issue_data_minimal():
    issue = IssueData(title="Crash", number=1, repository="octo/widgets")
    assert issue.body == ""
    assert issue.author == "unknown"
    assert issue.labels == ()
    assert issue.text == "Crash\n\n"


def test_issue_data_accepts_camel_case_created_at():
    issue = IssueData.model_validate(
        {"title": "Crash", "number": 3, "repository": "octo/widgets", "createdAt": "2026-01-02T03:04:05Z"}
    )
    assert issue.created_at.year == 2026


def test_issue_number_must_be_positive():
    with pytest.raises(ValidationError):
        IssueData(title="Crash", number=0, repository="octo/widgets")


def test_aspect_check_missing_quality_forces_not_present():
    check = AspectCheck(present=True, confidence=0.8, quality=AspectQuality.MISSING)
    assert check.present is False


def test_aspect_check_confidence_bounds():
    with pytest.raises(ValidationError):
        AspectCheck(present=True, confidence=1.2, quality=AspectQuality.GOOD)
    with pytest.raises(ValidationError):
        AspectCheck(present=True, confidence=-0.1, quality=AspectQuality.GOOD)


def test_aspect_check_is_frozen():
    check = _check()
    with pytest.raises(ValidationError):
        check.present = False


def test_element_names():
    assert AspectCategory.REPRODUCTION_STEPS.element_name == "reproduction steps"
    assert AspectCategory.EXPECTED_BEHAVIOR.element_name == "expected vs actual behavior"
    assert AspectCategory.VERSION_INFO.element_name == "version information"
    assert [c.value for c in ASPECT_ORDER] == [
        "reproduction_steps",
        "expected_behavior",
        "version_info",
        "environment_details",
        "error_logs",
        "screenshots",
    ]


def test_completeness_analysis_helpers():
    analysis = CompletenessAnalysis(
        **{category.value: _check() for category in ASPECT_ORDER},
        overall_score=80,
        missing_elements=[],
        suggestions=[],
        confidence=0.9,
        processing_time_ms=5,
    )
    assert [category for category, _ in analysis.checks()] == list(ASPECT_ORDER)
    assert analysis.check_for(AspectCategory.SCREENSHOTS).quality == AspectQuality.GOOD
    assert analysis.is_complete(80) is True
    assert analysis.is_complete(81) is False


def test_completeness_analysis_score_bounds():
    with pytest.raises(ValidationError):
        CompletenessAnalysis(
            **{category.value: _check() for category in ASPECT_ORDER},
            overall_score=101,
            missing_elements=[],
            suggestions=[],
            confidence=0.9,
            processing_time_ms=5,
        )


def test_template_from_camel_case_json():
    template = Template.model_validate(
        {
            "id": "t1",
            "name": "Bug",
            "category": "BUG_REPORT",
            "template": {"header": "## Hi", "body": "", "footer": ""},
            "styling": {"fontSize": "lg", "spacing": "compact", "headerStyle": "minimal"},
            "conditions": {
                "minQualityScore": 0,
                "maxQualityScore": 80,
                "requiredMissingElements": ["reproduction steps"],
            },
            "isActive": False,
            "requiresApproval": False,
        }
    )
    assert template.category == TemplateCategory.BUG_REPORT
    assert template.content.header == "## Hi"
    assert template.styling.font_size == FontSize.LG
    assert template.styling.spacing == Spacing.COMPACT
    assert template.styling.header_style == DecorationStyle.MINIMAL
    assert template.conditions.min_score == 0
    assert template.conditions.max_score == 80
    assert template.conditions.required_missing_elements == ["reproduction steps"]
    assert template.is_active is False
    assert template.requires_approval is False


def test_template_defaults():
    template = Template(id="t1", name="Bug", content={"body": "Hello"})
    assert template.category == TemplateCategory.CUSTOM
    assert template.is_active is True
    assert template.requires_approval is True
    assert template.auto_apply is False
    assert template.styling.font_size == FontSize.BASE
    assert template.styling.spacing == Spacing.NORMAL
    assert template.styling.header_style == DecorationStyle.PROFESSIONAL


def test_template_unknown_category_rejected():
    with pytest.raises(ValidationError):
        Template(id="t1", name="Bug", category="NOT_A_CATEGORY", content={"body": "Hello"})


def test_template_blank_content_is_malformed():
    with pytest.raises(MalformedTemplateError) as exc_info:
        Template(id="empty", name="Empty", content={"header": "  ", "body": "", "footer": "\n"})
    assert exc_info.value.template_id == "empty"
