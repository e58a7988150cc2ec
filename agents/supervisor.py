from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Literal, Optional, Sequence

from langgraph.graph import END, START, StateGraph

from agents.aspect_judge import AspectJudge
from agents.completeness_agent import CompletenessScorer
from app_logging.activity_logger import ActivityLogger
from config.settings import settings
from persistence.repository import AnalysisRepository
from schemas.completeness import CompletenessAnalysis
from schemas.issue import IssueData
from schemas.template import Template
from schemas.workflow_state import PipelinePhase, PipelineState
from templating import selector
from templating.catalog import candidates_for, resolve_templates
from templating.renderer import render_comment

logger = ActivityLogger("supervisor")
_repo = AnalysisRepository()


# ── Nodes ──────────────────────────────────────────────────────────────────────

def select_template_node(state: PipelineState) -> dict:
    issue = state["issue"]
    template = selector.select(
        state.get("templates") or [],
        issue,
        state["analysis"],
        explicit_id=state.get("explicit_template_id"),
    )
    return {
        "selected_template": template,
        "current_phase": PipelinePhase.SELECTING_TEMPLATE,
    }


def render_comment_node(state: PipelineState) -> dict:
    comment = render_comment(
        state["selected_template"],
        state["issue"],
        state["analysis"],
        overrides=state.get("custom_variables") or {},
    )
    return {
        "rendered_comment": comment,
        "current_phase": PipelinePhase.RENDERING,
    }


def persist_result_node(state: PipelineState) -> dict:
    """Store the analysis, and the comment when it needs review. Best-effort."""
    if not state.get("persist", True):
        return {"current_phase": PipelinePhase.PERSISTING}

    issue = state["issue"]
    analysis = state["analysis"]
    comment = state.get("rendered_comment")
    warnings: list[str] = []
    updates: dict[str, Any] = {"current_phase": PipelinePhase.PERSISTING}

    try:
        _repo.save_analysis(analysis)
    except Exception as exc:
        logger.warning(
            "analysis_persist_failed",
            repository=issue.repository,
            issue_number=issue.number,
            run_id=state["run_id"],
            error_message=str(exc),
        )
        warnings.append(f"persist_analysis: {exc}")

    if comment is not None:
        try:
            _repo.record_template_use(comment.template_id)
            if comment.requires_approval:
                # One pending comment per issue until a maintainer reviews it
                already_pending = _repo.has_pending_comment(issue.repository, issue.number)
                if already_pending and not state.get("force_comment"):
                    logger.warning(
                        "pending_comment_exists",
                        repository=issue.repository,
                        issue_number=issue.number,
                        run_id=state["run_id"],
                    )
                    warnings.append("pending_comment_exists")
                else:
                    updates["pending_comment_id"] = _repo.create_pending_comment(issue, analysis, comment)
        except Exception as exc:
            logger.warning(
                "comment_persist_failed",
                repository=issue.repository,
                issue_number=issue.number,
                run_id=state["run_id"],
                error_message=str(exc),
            )
            warnings.append(f"persist_comment: {exc}")

    if warnings:
        updates["warnings"] = warnings
    return updates


def end_pipeline_node(state: PipelineState) -> dict:
    """Final node: record completion timestamp."""
    phase = (
        PipelinePhase.SKIPPED_COMPLETE
        if state.get("rendered_comment") is None
        else PipelinePhase.COMPLETED
    )
    return {
        "current_phase": phase,
        "completed_at": datetime.now(timezone.utc).isoformat(),
    }


# ── Routing ────────────────────────────────────────────────────────────────────

def route_after_analysis(state: PipelineState) -> Literal["select_template", "persist_result"]:
    """
    Conditional edge after the completeness analysis:
    - complete issue (score >= threshold) → no comment, just persist
    - incomplete issue, or force_comment → select a template
    """
    if state.get("is_complete_issue") and not state.get("force_comment"):
        return "persist_result"
    return "select_template"


# ── Graph construction ─────────────────────────────────────────────────────────

def build_graph(scorer: CompletenessScorer):
    """
    Construct and compile the LangGraph StateGraph.

    Topology:
        START → analyze_issue
          ├─ (complete)   → persist_result → end_pipeline
          └─ (incomplete) → select_template → render_comment → persist_result
                            → end_pipeline
    """
    graph = StateGraph(PipelineState)

    graph.add_node("analyze_issue", scorer.run)
    graph.add_node("select_template", select_template_node)
    graph.add_node("render_comment", render_comment_node)
    graph.add_node("persist_result", persist_result_node)
    graph.add_node("end_pipeline", end_pipeline_node)

    graph.add_edge(START, "analyze_issue")
    graph.add_conditional_edges(
        "analyze_issue",
        route_after_analysis,
        {
            "select_template": "select_template",
            "persist_result": "persist_result",
        },
    )
    graph.add_edge("select_template", "render_comment")
    graph.add_edge("render_comment", "persist_result")
    graph.add_edge("persist_result", "end_pipeline")
    graph.add_edge("end_pipeline", END)

    return graph.compile()


# Compiled graph for the default (LLM-backed) scorer
_graph = None


def _get_graph():
    global _graph
    if _graph is None:
        _graph = build_graph(CompletenessScorer())
    return _graph


def _template_candidates(issue: IssueData, persist: bool) -> list[Template]:
    usage_counts: dict[str, int] = {}
    if persist:
        try:
            usage_counts = _repo.get_template_usage()
        except Exception as exc:
            logger.warning("template_usage_read_failed", error_message=str(exc))
    return candidates_for(resolve_templates(settings.templates_path), issue.repository, usage_counts)


# ── Public entry points ────────────────────────────────────────────────────────

def run_pipeline(
    issue: IssueData,
    templates: Optional[Sequence[Template]] = None,
    explicit_template_id: Optional[str] = None,
    custom_variables: Optional[dict[str, Any]] = None,
    judge: Optional[AspectJudge] = None,
    scorer: Optional[CompletenessScorer] = None,
    force_comment: bool = False,
    persist: bool = True,
) -> PipelineState:
    """
    Analyze an issue and, when it is incomplete, render a follow-up comment.

    ``templates`` must already be in priority order; when omitted the catalog
    at ``settings.templates_path`` (or the built-in defaults) is used.
    TemplateNotFoundError and NoSuitableTemplateError propagate to the caller.
    """
    run_id = str(uuid.uuid4())
    if templates is None:
        templates = _template_candidates(issue, persist)

    initial_state: PipelineState = {
        "run_id": run_id,
        "started_at": datetime.now(timezone.utc).isoformat(),
        "issue": issue,
        "templates": list(templates),
        "explicit_template_id": explicit_template_id,
        "custom_variables": dict(custom_variables or {}),
        "force_comment": force_comment,
        "persist": persist and not settings.dry_run,
        "current_phase": PipelinePhase.ANALYZING,
        "is_complete_issue": None,
        "rendered_comment": None,
        "warnings": [],
    }

    logger.info(
        "pipeline_started",
        repository=issue.repository,
        issue_number=issue.number,
        run_id=run_id,
        candidate_templates=len(initial_state["templates"]),
    )

    if scorer is None and judge is not None:
        scorer = CompletenessScorer(judge=judge)
    graph = build_graph(scorer) if scorer is not None else _get_graph()
    final_state = graph.invoke(initial_state)

    comment = final_state.get("rendered_comment")
    logger.info(
        "pipeline_completed",
        repository=issue.repository,
        issue_number=issue.number,
        run_id=run_id,
        phase=str(final_state.get("current_phase")),
        score=final_state["analysis"].overall_score,
        template_id=comment.template_id if comment else None,
        warnings=final_state.get("warnings", []),
    )
    return final_state


def analyze_batch(
    issues: Sequence[IssueData],
    scorer: Optional[CompletenessScorer] = None,
    on_progress: Optional[Callable[[int, int], None]] = None,
    batch_size: Optional[int] = None,
    delay_seconds: Optional[float] = None,
    persist: bool = True,
) -> list[CompletenessAnalysis]:
    """
    Analyze many issues in rate-limit friendly batches.

    Issues within a batch run concurrently; a pause separates batches. Issues
    whose analysis raised are logged and left out of the result.
    """
    scorer = scorer or CompletenessScorer()
    batch_size = max(1, batch_size or settings.batch_size)
    delay = settings.batch_delay_seconds if delay_seconds is None else delay_seconds
    persist = persist and not settings.dry_run

    async def _run() -> list[CompletenessAnalysis]:
        results: list[CompletenessAnalysis] = []
        total = len(issues)
        for start in range(0, total, batch_size):
            batch = issues[start:start + batch_size]
            outcomes = await asyncio.gather(
                *(scorer.aanalyze(issue) for issue in batch),
                return_exceptions=True,
            )
            for issue, outcome in zip(batch, outcomes):
                if isinstance(outcome, Exception):
                    logger.error(
                        "batch_analysis_failed",
                        exc=outcome,
                        repository=issue.repository,
                        issue_number=issue.number,
                    )
                    continue
                results.append(outcome)

            if on_progress:
                on_progress(min(start + batch_size, total), total)
            if start + batch_size < total and delay > 0:
                await asyncio.sleep(delay)
        return results

    analyses = scorer.run_async(_run())

    if persist:
        for analysis in analyses:
            try:
                _repo.save_analysis(analysis)
            except Exception as exc:
                logger.warning(
                    "analysis_persist_failed",
                    repository=analysis.repository,
                    issue_number=analysis.issue_number,
                    error_message=str(exc),
                )
    return analyses
