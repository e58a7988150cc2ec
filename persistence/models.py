from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum as SAEnum,
    Float,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class CommentStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    POSTED = "posted"


class CompletenessAnalysisRecord(Base):
    """Latest analysis per issue. A re-analysis overwrites the row (last write wins)."""

    __tablename__ = "completeness_analyses"
    __table_args__ = (
        UniqueConstraint("repository", "issue_number", name="uq_analysis_repository_issue"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    repository = Column(String(200), nullable=False, index=True)
    issue_number = Column(Integer, nullable=False)

    overall_score = Column(Integer, nullable=False)
    confidence = Column(Float, nullable=False)
    processing_time_ms = Column(Integer, nullable=False, default=0)
    analysis_version = Column(String(20), nullable=False)

    # One JSON document per aspect check
    reproduction_steps = Column(JSON, nullable=False)
    expected_behavior = Column(JSON, nullable=False)
    version_info = Column(JSON, nullable=False)
    environment_details = Column(JSON, nullable=False)
    error_logs = Column(JSON, nullable=False)
    screenshots = Column(JSON, nullable=False)

    missing_elements = Column(JSON, nullable=False, default=list)
    suggestions = Column(JSON, nullable=False, default=list)

    analyzed_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class PendingComment(Base):
    """A rendered comment waiting for (or past) maintainer review."""

    __tablename__ = "pending_comments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    repository = Column(String(200), nullable=False, index=True)
    issue_number = Column(Integer, nullable=False)
    issue_title = Column(String(500), nullable=False)
    issue_url = Column(String(500), nullable=True)
    issue_author = Column(String(100), nullable=True)

    template_id = Column(String(100), nullable=False)
    template_name = Column(String(200), nullable=False)
    generated_comment = Column(Text, nullable=False)
    quality_score = Column(Integer, nullable=False)
    missing_elements = Column(JSON, nullable=False, default=list)
    analysis_confidence = Column(Float, nullable=False)

    status = Column(SAEnum(CommentStatus), nullable=False, default=CommentStatus.PENDING)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    reviewed_at = Column(DateTime, nullable=True)
    reviewed_by = Column(String(100), nullable=True)


class TemplateUsage(Base):
    """Per-template use counter feeding catalog ordering."""

    __tablename__ = "template_usage"

    template_id = Column(String(100), primary_key=True)
    usage_count = Column(Integer, nullable=False, default=0)
    last_used = Column(DateTime, nullable=True)


class LLMCallLog(Base):
    """One record per aspect-judge LLM invocation."""

    __tablename__ = "llm_call_logs"

    id = Column(String(36), primary_key=True)       # call_id (UUID)
    run_id = Column(String(36), nullable=True, index=True)
    repository = Column(String(200), nullable=True)
    issue_number = Column(Integer, nullable=True)
    component = Column(String(100), nullable=False)
    aspect = Column(String(50), nullable=False)

    # Request
    model_id = Column(String(100), nullable=False)
    prompt_template_name = Column(String(200), nullable=False)
    prompt_token_count = Column(Integer, nullable=True)

    # Response
    parsed_successfully = Column(Boolean, nullable=False)
    completion_token_count = Column(Integer, nullable=True)
    total_token_count = Column(Integer, nullable=True)

    # Performance
    latency_ms = Column(Float, nullable=False)
    invoked_at = Column(DateTime, nullable=False)

    # Error
    error_occurred = Column(Boolean, default=False)
    error_type = Column(String(100), nullable=True)
    error_message = Column(Text, nullable=True)
