from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select

from config.settings import settings
from persistence.database import get_db_session
from persistence.models import CommentStatus, CompletenessAnalysisRecord, PendingComment
from schemas.completeness import ASPECT_ORDER


@dataclass
class CompletenessMetrics:
    """
    Aggregate view over every stored analysis and pending comment.
    """

    # ── Analyses ─────────────────────────────────────────────────────────────
    total_analyses: int = 0
    average_score: Optional[float] = None
    average_confidence: Optional[float] = None
    average_processing_time_ms: Optional[float] = None

    # ── Incomplete issues (score below the threshold) ────────────────────────
    completeness_threshold: int = 80
    incomplete_count: int = 0
    incomplete_rate: float = 0.0
    missing_element_counts: dict[str, int] = field(default_factory=dict)

    # ── Comments ─────────────────────────────────────────────────────────────
    comments_pending: int = 0
    comments_approved: int = 0
    comments_rejected: int = 0
    comments_posted: int = 0
    computed_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class CompletenessMetricsCollector:
    """
    Reads CompletenessAnalysisRecord and PendingComment rows to compute
    CompletenessMetrics.

    Incomplete: overall_score below ``threshold`` (settings.completeness_threshold
    unless given).
    Missing element counts: how many stored analyses list each element as
    missing; every element name appears, zero included.
    """

    def __init__(self, threshold: Optional[int] = None) -> None:
        self.threshold = threshold if threshold is not None else settings.completeness_threshold

    def compute(self) -> CompletenessMetrics:
        m = CompletenessMetrics(completeness_threshold=self.threshold)
        with get_db_session() as session:
            self._compute_analyses(session, m)
            self._compute_missing_elements(session, m)
            self._compute_comments(session, m)
        return m

    def _compute_analyses(self, session, m: CompletenessMetrics) -> None:
        row = session.execute(
            select(
                func.count(CompletenessAnalysisRecord.id),
                func.avg(CompletenessAnalysisRecord.overall_score),
                func.avg(CompletenessAnalysisRecord.confidence),
                func.avg(CompletenessAnalysisRecord.processing_time_ms),
            )
        ).one()
        total, avg_score, avg_conf, avg_time = row

        m.total_analyses = total or 0
        m.average_score = round(float(avg_score), 1) if avg_score is not None else None
        m.average_confidence = round(float(avg_conf), 3) if avg_conf is not None else None
        m.average_processing_time_ms = round(float(avg_time), 1) if avg_time is not None else None

        m.incomplete_count = session.execute(
            select(func.count(CompletenessAnalysisRecord.id)).where(
                CompletenessAnalysisRecord.overall_score < self.threshold
            )
        ).scalar() or 0
        m.incomplete_rate = m.incomplete_count / m.total_analyses if m.total_analyses else 0.0

    def _compute_missing_elements(self, session, m: CompletenessMetrics) -> None:
        counts = {category.element_name: 0 for category in ASPECT_ORDER}
        # missing_elements is a JSON list column
        for (missing,) in session.execute(select(CompletenessAnalysisRecord.missing_elements)):
            for name in missing or []:
                counts[name] = counts.get(name, 0) + 1
        m.missing_element_counts = counts

    def _compute_comments(self, session, m: CompletenessMetrics) -> None:
        rows = session.execute(
            select(PendingComment.status, func.count(PendingComment.id)).group_by(PendingComment.status)
        ).all()
        by_status = {status: count for status, count in rows}

        m.comments_pending = by_status.get(CommentStatus.PENDING, 0)
        m.comments_approved = by_status.get(CommentStatus.APPROVED, 0)
        m.comments_rejected = by_status.get(CommentStatus.REJECTED, 0)
        m.comments_posted = by_status.get(CommentStatus.POSTED, 0)
