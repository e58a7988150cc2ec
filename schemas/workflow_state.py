from __future__ import annotations

import operator
from enum import Enum
from typing import Annotated, Any, Optional

from typing_extensions import TypedDict

from schemas.comment import RenderedComment
from schemas.completeness import CompletenessAnalysis
from schemas.issue import IssueData
from schemas.template import Template


class PipelinePhase(str, Enum):
    ANALYZING = "analyzing"
    SELECTING_TEMPLATE = "selecting_template"
    RENDERING = "rendering"
    PERSISTING = "persisting"
    COMPLETED = "completed"
    SKIPPED_COMPLETE = "skipped_complete"


class PipelineState(TypedDict, total=False):
    # ── Identity ─────────────────────────────────────────────────────────────
    run_id: str           # UUID for this pipeline run
    started_at: str       # ISO-8601 UTC timestamp

    # ── Inputs ───────────────────────────────────────────────────────────────
    issue: IssueData
    templates: list[Template]               # pre-ordered candidates
    explicit_template_id: Optional[str]
    custom_variables: dict[str, Any]
    force_comment: bool                     # render even when the issue is complete
    persist: bool

    # ── Outputs (populated progressively) ────────────────────────────────────
    analysis: Optional[CompletenessAnalysis]
    selected_template: Optional[Template]
    rendered_comment: Optional[RenderedComment]
    pending_comment_id: Optional[str]

    # ── Routing ──────────────────────────────────────────────────────────────
    current_phase: PipelinePhase
    is_complete_issue: Optional[bool]

    # ── Append-only audit list (LangGraph reducer) ───────────────────────────
    warnings: Annotated[list[str], operator.add]

    completed_at: Optional[str]
