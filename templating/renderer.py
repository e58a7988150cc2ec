"""Variable substitution and styling for comment templates."""

from __future__ import annotations

import re
from datetime import date
from typing import Any, Mapping, Optional

from app_logging.activity_logger import ActivityLogger
from config.settings import settings
from schemas.comment import RenderedComment
from schemas.completeness import CompletenessAnalysis
from schemas.issue import IssueData
from schemas.template import DecorationStyle, FontSize, Spacing, StyleSpec, Template

logger = ActivityLogger("template_renderer")

PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_.-]*)\s*\}\}")
MISSING_MARKER = "❌"
PROFESSIONAL_MARKER = "🎯"

SECTION_SEPARATOR = "\n\n"


def format_long_date(day: date) -> str:
    """``October 18, 2026`` regardless of platform strftime quirks."""
    return f"{day:%B} {day.day}, {day.year}"


def format_missing_elements(missing_elements: list[str]) -> str:
    return "\n".join(f"- {MISSING_MARKER} {element}" for element in missing_elements)


def build_variables(
    template: Template,
    issue: IssueData,
    analysis: CompletenessAnalysis,
    overrides: Optional[Mapping[str, Any]] = None,
    today: Optional[date] = None,
) -> dict[str, Any]:
    """System variables, then template defaults for anything unset, then caller overrides."""
    variables: dict[str, Any] = {
        "issue_title": issue.title,
        "issue_number": issue.number,
        "issue_author": issue.author,
        "issue_url": issue.url,
        "repository_name": issue.repository,
        "missing_elements": format_missing_elements(analysis.missing_elements),
        "quality_score": analysis.overall_score,
        "completeness_percentage": analysis.overall_score,
        "current_date": format_long_date(today or date.today()),
        "maintainer_name": settings.default_maintainer_name,
    }
    for spec in template.variables:
        if spec.name not in variables and spec.default_value is not None:
            variables[spec.name] = spec.default_value
    variables.update(overrides or {})
    return variables


def substitute(text: str, variables: Mapping[str, Any]) -> str:
    """Replace ``{{ name }}`` placeholders in one pass; unknown names stay verbatim."""

    def _replace(match: re.Match) -> str:
        name = match.group(1)
        if name not in variables:
            return match.group(0)
        return str(variables[name])

    return PLACEHOLDER_RE.sub(_replace, text)


def apply_styling(content: str, styling: StyleSpec) -> str:
    styled = content

    # Heading depth
    if styling.font_size == FontSize.LG:
        styled = re.sub(r"^### ", "#### ", styled, flags=re.MULTILINE)
    elif styling.font_size == FontSize.XL:
        styled = re.sub(r"^### ", "##### ", styled, flags=re.MULTILINE)

    # Spacing
    if styling.spacing == Spacing.SPACIOUS:
        styled = styled.replace("\n\n", "\n\n\n")
    elif styling.spacing == Spacing.COMPACT:
        styled = re.sub(r"\n{3,}", "\n\n", styled)

    # Decoration
    if styling.header_style == DecorationStyle.PROFESSIONAL:
        styled = re.sub(r"^## ", f"## {PROFESSIONAL_MARKER} ", styled, flags=re.MULTILINE)

    return styled.strip()


def render(template: Template, variables: Mapping[str, Any]) -> str:
    sections = [
        substitute(section, variables)
        for section in template.content.sections()
        if section
    ]
    return apply_styling(SECTION_SEPARATOR.join(sections), template.styling)


def render_comment(
    template: Template,
    issue: IssueData,
    analysis: CompletenessAnalysis,
    overrides: Optional[Mapping[str, Any]] = None,
    today: Optional[date] = None,
) -> RenderedComment:
    variables = build_variables(template, issue, analysis, overrides, today=today)
    content = render(template, variables)

    unresolved = sorted(set(PLACEHOLDER_RE.findall(content)))
    if unresolved:
        logger.warning(
            "template_placeholders_unresolved",
            repository=issue.repository,
            issue_number=issue.number,
            template_id=template.id,
            placeholders=unresolved,
        )

    return RenderedComment(
        content=content,
        template_id=template.id,
        template_name=template.name,
        resolved_variables={name: str(value) for name, value in variables.items()},
        styling=template.styling,
        requires_approval=template.requires_approval,
        auto_apply=template.auto_apply,
    )
