"""Unit tests for the SQLite repository."""

from __future__ import annotations

import pytest

from persistence.models import CommentStatus
from persistence.repository import AnalysisRepository
from schemas.comment import RenderedComment
from schemas.completeness import ASPECT_ORDER, AspectCategory, AspectCheck, AspectQuality, CompletenessAnalysis
from schemas.issue import IssueData


@pytest.fixture(autouse=True)
def _db(fresh_db):
    yield


def _analysis(score: int, issue_number: int = 42, repository: str | None = "octo/widgets") -> CompletenessAnalysis:
    check = AspectCheck(present=True, confidence=0.9, quality=AspectQuality.GOOD, details="ok")
    missing = AspectCheck(present=False, confidence=0.8, quality=AspectQuality.MISSING, details="none")
    checks = {category.value: check for category in ASPECT_ORDER}
    checks[AspectCategory.SCREENSHOTS.value] = missing
    return CompletenessAnalysis(
        **checks,
        overall_score=score,
        missing_elements=["screenshots"],
        suggestions=["Add screenshots or visual evidence of the issue"],
        confidence=0.88,
        processing_time_ms=12,
        repository=repository,
        issue_number=issue_number,
    )


ISSUE = IssueData(title="Crash on load", number=42, repository="octo/widgets", author="mona")


def _comment() -> RenderedComment:
    return RenderedComment(content="Please add screenshots", template_id="default-bug-report", template_name="Bug")


def test_save_and_get_analysis():
    repo = AnalysisRepository()
    repo.save_analysis(_analysis(55))

    stored = repo.get_analysis("octo/widgets", 42)

    assert stored is not None
    assert stored.overall_score == 55
    assert stored.missing_elements == ["screenshots"]
    assert stored.screenshots.present is False
    assert stored.reproduction_steps.quality == AspectQuality.GOOD
    assert stored.confidence == pytest.approx(0.88)


def test_reanalysis_overwrites_previous():
    repo = AnalysisRepository()
    repo.save_analysis(_analysis(40))
    repo.save_analysis(_analysis(90))

    assert repo.get_analysis("octo/widgets", 42).overall_score == 90


def test_get_unknown_analysis_returns_none():
    assert AnalysisRepository().get_analysis("octo/widgets", 999) is None


def test_save_analysis_requires_issue_identity():
    with pytest.raises(ValueError):
        AnalysisRepository().save_analysis(_analysis(50, repository=None))


def test_pending_comment_lifecycle():
    repo = AnalysisRepository()
    comment_id = repo.create_pending_comment(ISSUE, _analysis(55), _comment())

    assert repo.has_pending_comment("octo/widgets", 42) is True
    pending = repo.list_pending_comments("octo/widgets")
    assert [c["id"] for c in pending] == [comment_id]
    assert pending[0]["quality_score"] == 55
    assert pending[0]["status"] == "pending"

    assert repo.set_comment_status(comment_id, CommentStatus.APPROVED, reviewed_by="maintainer") is True
    assert repo.has_pending_comment("octo/widgets", 42) is False
    assert repo.list_pending_comments() == []


def test_set_status_of_unknown_comment():
    assert AnalysisRepository().set_comment_status("nope", CommentStatus.REJECTED) is False


def test_list_pending_comments_filters_repository():
    repo = AnalysisRepository()
    repo.create_pending_comment(ISSUE, _analysis(55), _comment())
    other = IssueData(title="Other", number=1, repository="someone/else")
    repo.create_pending_comment(other, _analysis(20, issue_number=1, repository="someone/else"), _comment())

    assert len(repo.list_pending_comments()) == 2
    assert [c["repository"] for c in repo.list_pending_comments("someone/else")] == ["someone/else"]


def test_template_usage_counter():
    repo = AnalysisRepository()
    repo.record_template_use("default-bug-report")
    repo.record_template_use("default-bug-report")
    repo.record_template_use("perf")

    assert repo.get_template_usage() == {"default-bug-report": 2, "perf": 1}
