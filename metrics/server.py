from __future__ import annotations

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from config.settings import settings
from metrics.completeness_metrics import CompletenessMetrics, CompletenessMetricsCollector
from persistence.database import init_db
from persistence.models import CommentStatus
from persistence.repository import AnalysisRepository

app = FastAPI(title="Issue Completeness Checker — Metrics", version="1.0.0")
_collector = CompletenessMetricsCollector()
_repo = AnalysisRepository()


@app.on_event("startup")
def startup():
    init_db()


@app.get("/metrics", response_model=None)
def get_metrics():
    """Return current completeness metrics as JSON."""
    m: CompletenessMetrics = _collector.compute()
    return JSONResponse(
        content={
            "computed_at": m.computed_at,
            "analyses": {
                "total": m.total_analyses,
                "average_score": m.average_score,
                "average_confidence": m.average_confidence,
                "average_processing_time_ms": m.average_processing_time_ms,
            },
            "incomplete": {
                "threshold": m.completeness_threshold,
                "count": m.incomplete_count,
                "rate": f"{m.incomplete_rate:.1%}",
                "missing_element_counts": m.missing_element_counts,
            },
            "comments": {
                "pending": m.comments_pending,
                "approved": m.comments_approved,
                "rejected": m.comments_rejected,
                "posted": m.comments_posted,
            },
        }
    )


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/analyses/{owner}/{repo}/{issue_number}")
def get_analysis(owner: str, repo: str, issue_number: int):
    """Latest stored analysis for one issue."""
    analysis = _repo.get_analysis(f"{owner}/{repo}", issue_number)
    if analysis is None:
        raise HTTPException(status_code=404, detail="analysis not found")
    return JSONResponse(content=analysis.model_dump(mode="json"))


@app.get("/comments/pending")
def list_pending(repository: str | None = None):
    return {"comments": _repo.list_pending_comments(repository)}


@app.post("/comments/{comment_id}/approve")
def approve_comment(comment_id: str, reviewed_by: str | None = None):
    """Mark a pending comment as approved for posting."""
    if not _repo.set_comment_status(comment_id, CommentStatus.APPROVED, reviewed_by=reviewed_by):
        raise HTTPException(status_code=404, detail="comment not found")
    return {"comment_id": comment_id, "status": CommentStatus.APPROVED.value}


@app.post("/comments/{comment_id}/reject")
def reject_comment(comment_id: str, reviewed_by: str | None = None):
    """Mark a pending comment as rejected."""
    if not _repo.set_comment_status(comment_id, CommentStatus.REJECTED, reviewed_by=reviewed_by):
        raise HTTPException(status_code=404, detail="comment not found")
    return {"comment_id": comment_id, "status": CommentStatus.REJECTED.value}


if __name__ == "__main__":
    uvicorn.run(
        "metrics.server:app",
        host="0.0.0.0",
        port=settings.metrics_port,
        reload=False,
    )
