from __future__ import annotations

from typing import Optional, Sequence

from app_logging.activity_logger import ActivityLogger
from schemas.completeness import CompletenessAnalysis
from schemas.issue import IssueData
from schemas.template import Template
from templating.conditions import explain
from templating.errors import NoSuitableTemplateError, TemplateNotFoundError

logger = ActivityLogger("template_selector")


def select(
    candidates: Sequence[Template],
    issue: IssueData,
    analysis: CompletenessAnalysis,
    explicit_id: Optional[str] = None,
) -> Template:
    """
    Pick the template for an issue.

    Resolution order:
      1. ``explicit_id``: that exact candidate, else TemplateNotFoundError
      2. first active candidate whose conditions match
      3. first active candidate
      4. NoSuitableTemplateError

    Candidates are expected in priority order already (default flag, usage
    count, recency); the order is never changed here.
    """
    if explicit_id is not None:
        template = next((t for t in candidates if t.id == explicit_id), None)
        if template is None:
            raise TemplateNotFoundError(explicit_id)
        logger.info(
            "template_selected",
            repository=issue.repository,
            issue_number=issue.number,
            template_id=template.id,
            reason="explicit",
        )
        return template

    active = [t for t in candidates if t.is_active]

    for template in active:
        failed = explain(template, issue, analysis)
        if not failed:
            logger.info(
                "template_selected",
                repository=issue.repository,
                issue_number=issue.number,
                template_id=template.id,
                reason="conditions",
            )
            return template
        logger.debug(
            "template_conditions_failed",
            repository=issue.repository,
            issue_number=issue.number,
            template_id=template.id,
            failed_conditions=failed,
        )

    if active:
        template = active[0]
        logger.info(
            "template_selected",
            repository=issue.repository,
            issue_number=issue.number,
            template_id=template.id,
            reason="fallback",
        )
        return template

    raise NoSuitableTemplateError(issue.repository)
