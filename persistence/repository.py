from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import select

from persistence.database import get_db_session
from persistence.models import (
    CommentStatus,
    CompletenessAnalysisRecord,
    LLMCallLog,
    PendingComment,
    TemplateUsage,
)
from schemas.comment import RenderedComment
from schemas.completeness import ASPECT_ORDER, AspectCheck, CompletenessAnalysis
from schemas.issue import IssueData


class AnalysisRepository:
    """CRUD operations for analyses, pending comments and audit records."""

    # ── Analyses ──────────────────────────────────────────────────────────────

    def save_analysis(self, analysis: CompletenessAnalysis) -> None:
        """Upsert keyed by (repository, issue_number); a later analysis replaces an earlier one."""
        if analysis.repository is None or analysis.issue_number is None:
            raise ValueError("analysis is not tied to a repository issue")

        values = dict(
            overall_score=analysis.overall_score,
            confidence=analysis.confidence,
            processing_time_ms=analysis.processing_time_ms,
            analysis_version=analysis.analysis_version,
            missing_elements=list(analysis.missing_elements),
            suggestions=list(analysis.suggestions),
            analyzed_at=datetime.utcnow(),
            **{
                category.value: analysis.check_for(category).model_dump(mode="json")
                for category in ASPECT_ORDER
            },
        )

        with get_db_session() as session:
            existing = session.execute(
                select(CompletenessAnalysisRecord).where(
                    CompletenessAnalysisRecord.repository == analysis.repository,
                    CompletenessAnalysisRecord.issue_number == analysis.issue_number,
                )
            ).scalar_one_or_none()
            if existing:
                for k, v in values.items():
                    setattr(existing, k, v)
            else:
                session.add(
                    CompletenessAnalysisRecord(
                        repository=analysis.repository,
                        issue_number=analysis.issue_number,
                        **values,
                    )
                )

    def get_analysis(self, repository: str, issue_number: int) -> Optional[CompletenessAnalysis]:
        with get_db_session() as session:
            row = session.execute(
                select(CompletenessAnalysisRecord).where(
                    CompletenessAnalysisRecord.repository == repository,
                    CompletenessAnalysisRecord.issue_number == issue_number,
                )
            ).scalar_one_or_none()
            if row is None:
                return None
            return CompletenessAnalysis(
                **{
                    category.value: AspectCheck.model_validate(getattr(row, category.value))
                    for category in ASPECT_ORDER
                },
                overall_score=row.overall_score,
                missing_elements=list(row.missing_elements or []),
                suggestions=list(row.suggestions or []),
                confidence=row.confidence,
                processing_time_ms=row.processing_time_ms,
                analysis_version=row.analysis_version,
                repository=row.repository,
                issue_number=row.issue_number,
            )

    # ── Pending comments ──────────────────────────────────────────────────────

    def create_pending_comment(
        self,
        issue: IssueData,
        analysis: CompletenessAnalysis,
        comment: RenderedComment,
    ) -> str:
        with get_db_session() as session:
            row = PendingComment(
                repository=issue.repository,
                issue_number=issue.number,
                issue_title=issue.title,
                issue_url=issue.url,
                issue_author=issue.author,
                template_id=comment.template_id,
                template_name=comment.template_name,
                generated_comment=comment.content,
                quality_score=analysis.overall_score,
                missing_elements=list(analysis.missing_elements),
                analysis_confidence=analysis.confidence,
                status=CommentStatus.PENDING,
            )
            session.add(row)
            session.flush()
            return row.id

    def has_pending_comment(self, repository: str, issue_number: int) -> bool:
        with get_db_session() as session:
            row = session.execute(
                select(PendingComment.id).where(
                    PendingComment.repository == repository,
                    PendingComment.issue_number == issue_number,
                    PendingComment.status == CommentStatus.PENDING,
                )
            ).first()
            return row is not None

    def set_comment_status(
        self,
        comment_id: str,
        status: CommentStatus,
        reviewed_by: Optional[str] = None,
    ) -> bool:
        """Returns False when the comment does not exist."""
        with get_db_session() as session:
            row = session.get(PendingComment, comment_id)
            if row is None:
                return False
            row.status = status
            row.reviewed_at = datetime.utcnow()
            row.reviewed_by = reviewed_by
            return True

    def list_pending_comments(self, repository: Optional[str] = None) -> list[dict]:
        with get_db_session() as session:
            query = select(PendingComment).where(PendingComment.status == CommentStatus.PENDING)
            if repository:
                query = query.where(PendingComment.repository == repository)
            rows = session.execute(query.order_by(PendingComment.created_at.asc())).scalars().all()
            return [_comment_to_dict(row) for row in rows]

    # ── Template usage ────────────────────────────────────────────────────────

    def record_template_use(self, template_id: str) -> None:
        with get_db_session() as session:
            row = session.get(TemplateUsage, template_id)
            if row is None:
                session.add(TemplateUsage(template_id=template_id, usage_count=1, last_used=datetime.utcnow()))
            else:
                row.usage_count += 1
                row.last_used = datetime.utcnow()

    def get_template_usage(self) -> dict[str, int]:
        with get_db_session() as session:
            rows = session.execute(select(TemplateUsage.template_id, TemplateUsage.usage_count)).all()
            return {row.template_id: row.usage_count for row in rows}

    # ── LLM audit ─────────────────────────────────────────────────────────────

    def save_llm_call(self, record) -> None:
        """Persist an LLMCallRecord to the DB."""
        with get_db_session() as session:
            session.add(
                LLMCallLog(
                    id=record.call_id,
                    run_id=record.run_id,
                    repository=record.repository,
                    issue_number=record.issue_number,
                    component=record.component,
                    aspect=record.aspect,
                    model_id=record.model_id,
                    prompt_template_name=record.prompt_template_name,
                    prompt_token_count=record.prompt_token_count,
                    parsed_successfully=record.parsed_successfully,
                    completion_token_count=record.completion_token_count,
                    total_token_count=record.total_token_count,
                    latency_ms=record.latency_ms,
                    invoked_at=datetime.fromisoformat(record.invoked_at),
                    error_occurred=record.error_occurred,
                    error_type=record.error_type,
                    error_message=record.error_message,
                )
            )


def _comment_to_dict(row: PendingComment) -> dict:
    return {
        "id": row.id,
        "repository": row.repository,
        "issue_number": row.issue_number,
        "issue_title": row.issue_title,
        "template_id": row.template_id,
        "template_name": row.template_name,
        "generated_comment": row.generated_comment,
        "quality_score": row.quality_score,
        "missing_elements": list(row.missing_elements or []),
        "status": row.status.value,
        "created_at": row.created_at.isoformat() if row.created_at else None,
    }
