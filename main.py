"""
Issue Completeness Checker — Entry Point

Usage:
    # Score a single issue (JSON object)
    python main.py --mode analyze --issue issue.json

    # Score an issue and render a follow-up comment when it is incomplete
    python main.py --mode comment --issue issue.json --templates templates.json
    python main.py --mode comment --issue issue.json --template-id default-bug-report

    # Score a JSON array of issues in rate-limited batches
    python main.py --mode batch --issue issues.json

    # Use preset judgments instead of the LLM, and skip the database
    python main.py --mode comment --issue issue.json --judgments judgments.json --dry-run

    # Show current metrics
    python main.py --mode metrics

    # Start the metrics HTTP server
    python main.py --mode metrics-server
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path


def _configure(persist: bool = True) -> None:
    from config.logging_config import configure_logging
    configure_logging()
    if persist:
        from persistence.database import init_db
        init_db()


def _load_issues(path: str):
    from pydantic import TypeAdapter
    from schemas.issue import IssueData

    raw = Path(path).read_text(encoding="utf-8")
    if raw.lstrip().startswith("["):
        return TypeAdapter(list[IssueData]).validate_json(raw)
    return [IssueData.model_validate_json(raw)]


def _build_scorer(judgments_path: str | None):
    from agents.aspect_judge import StaticAspectJudge
    from agents.completeness_agent import CompletenessScorer

    if judgments_path:
        return CompletenessScorer(judge=StaticAspectJudge.from_file(judgments_path))
    return CompletenessScorer()


def _print_analysis(analysis) -> None:
    print(f"  Score:      {analysis.overall_score}/100")
    print(f"  Confidence: {analysis.confidence:.0%}")
    for category, check in analysis.checks():
        icon = "✅" if check.present else "❌"
        print(f"    {icon} {category.element_name:<28} {check.quality.value:<9} {check.confidence:.0%}")
    if analysis.suggestions:
        print("  Suggestions:")
        for suggestion in analysis.suggestions:
            print(f"    - {suggestion}")


def run_analyze(issue_path: str, judgments_path: str | None, dry_run: bool) -> None:
    if dry_run:
        os.environ["DRY_RUN"] = "true"
    _configure(persist=not dry_run)

    from app_logging.activity_logger import ActivityLogger
    from persistence.repository import AnalysisRepository

    logger = ActivityLogger("main")
    scorer = _build_scorer(judgments_path)

    for issue in _load_issues(issue_path):
        logger.info("analyze_started", repository=issue.repository, issue_number=issue.number, dry_run=dry_run)
        analysis = scorer.analyze(issue)
        if not dry_run:
            AnalysisRepository().save_analysis(analysis)

        print("\n" + "=" * 60)
        print(f"  Issue: {issue.repository}#{issue.number} {issue.title}")
        _print_analysis(analysis)
        print("=" * 60 + "\n")


def run_comment(
    issue_path: str,
    templates_path: str | None,
    template_id: str | None,
    judgments_path: str | None,
    force_comment: bool,
    dry_run: bool,
) -> None:
    if dry_run:
        os.environ["DRY_RUN"] = "true"
    if templates_path:
        os.environ["TEMPLATES_PATH"] = templates_path
    _configure(persist=not dry_run)

    from agents.supervisor import run_pipeline
    from templating.errors import TemplateError

    scorer = _build_scorer(judgments_path)

    for issue in _load_issues(issue_path):
        try:
            final_state = run_pipeline(
                issue,
                explicit_template_id=template_id,
                scorer=scorer,
                force_comment=force_comment,
                persist=not dry_run,
            )
        except TemplateError as exc:
            print(f"ERROR: {issue.repository}#{issue.number}: {exc}", file=sys.stderr)
            sys.exit(1)

        print("\n" + "=" * 60)
        print(f"  Issue: {issue.repository}#{issue.number} {issue.title}")
        print(f"  Phase: {final_state.get('current_phase')}")
        _print_analysis(final_state["analysis"])
        comment = final_state.get("rendered_comment")
        if comment is not None:
            print(f"  Template: {comment.template_name} ({comment.template_id})")
            if final_state.get("pending_comment_id"):
                print(f"  Pending review: {final_state['pending_comment_id']}")
            print("-" * 60)
            print(comment.content)
        warnings = final_state.get("warnings", [])
        if warnings:
            print(f"  Warnings: {'; '.join(warnings)}")
        print("=" * 60 + "\n")


def run_batch(issue_path: str, judgments_path: str | None, dry_run: bool) -> None:
    if dry_run:
        os.environ["DRY_RUN"] = "true"
    _configure(persist=not dry_run)

    from agents.supervisor import analyze_batch

    issues = _load_issues(issue_path)

    def _progress(done: int, total: int) -> None:
        print(f"  analyzed {done}/{total}", file=sys.stderr)

    analyses = analyze_batch(
        issues,
        scorer=_build_scorer(judgments_path),
        on_progress=_progress,
        persist=not dry_run,
    )

    print("\n" + "=" * 60)
    print(f"  Analyzed {len(analyses)} of {len(issues)} issues")
    for analysis in analyses:
        missing = ", ".join(analysis.missing_elements) or "-"
        print(f"  {analysis.repository}#{analysis.issue_number:<6} {analysis.overall_score:>3}/100  missing: {missing}")
    print("=" * 60 + "\n")


def show_metrics() -> None:
    _configure()
    from metrics.completeness_metrics import CompletenessMetricsCollector

    m = CompletenessMetricsCollector().compute()

    print("\n" + "=" * 60)
    print("  ISSUE COMPLETENESS")
    print("=" * 60)
    print(f"  Analyses:            {m.total_analyses}")
    if m.average_score is not None:
        print(f"  Average score:       {m.average_score:.1f}")
    if m.average_confidence is not None:
        print(f"  Average confidence:  {m.average_confidence:.0%}")
    print(f"  Incomplete (<{m.completeness_threshold}):     {m.incomplete_count}  ({m.incomplete_rate:.1%})")
    print()
    print("  Most often missing:")
    for name, count in sorted(m.missing_element_counts.items(), key=lambda kv: -kv[1]):
        print(f"    {name:<28} {count}")
    print()
    print(f"  Comments pending:    {m.comments_pending}")
    print(f"  Comments approved:   {m.comments_approved}")
    print(f"  Comments rejected:   {m.comments_rejected}")
    print("=" * 60 + "\n")


def start_metrics_server() -> None:
    import uvicorn
    from config.settings import settings
    _configure()
    uvicorn.run("metrics.server:app", host="0.0.0.0", port=settings.metrics_port, reload=False)


def main() -> None:
    parser = argparse.ArgumentParser(description="Issue Completeness Checker")
    parser.add_argument(
        "--mode",
        choices=["analyze", "comment", "batch", "metrics", "metrics-server"],
        default="analyze",
        help="Run mode",
    )
    parser.add_argument("--issue", help="Issue JSON file (object, or array for --mode batch)")
    parser.add_argument("--templates", help="Template catalog JSON file (defaults to the built-in templates)")
    parser.add_argument("--template-id", help="Use this template instead of condition matching")
    parser.add_argument("--judgments", help="Preset aspect judgments JSON file (skips the LLM)")
    parser.add_argument("--force-comment", action="store_true", help="Render a comment even for complete issues")
    parser.add_argument("--dry-run", action="store_true", help="Skip all database writes")

    args = parser.parse_args()

    if args.mode in ("analyze", "comment", "batch") and not args.issue:
        print(f"ERROR: --issue is required with --mode {args.mode}", file=sys.stderr)
        sys.exit(1)

    if args.mode == "analyze":
        run_analyze(args.issue, args.judgments, args.dry_run)
    elif args.mode == "comment":
        run_comment(
            args.issue,
            args.templates,
            args.template_id,
            args.judgments,
            args.force_comment,
            args.dry_run,
        )
    elif args.mode == "batch":
        run_batch(args.issue, args.judgments, args.dry_run)
    elif args.mode == "metrics":
        show_metrics()
    elif args.mode == "metrics-server":
        start_metrics_server()


if __name__ == "__main__":
    main()
