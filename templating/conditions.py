"""Declarative template conditions.

Every condition is optional and the conditions are ANDed. Within
``required_missing_elements`` and ``issue_types`` a single hit is enough.
``repositories`` scopes a template to repositories in the catalog and is not
evaluated here.
"""

from __future__ import annotations

from schemas.completeness import CompletenessAnalysis
from schemas.issue import IssueData
from schemas.template import Template, TemplateConditions


def explain(template: Template, issue: IssueData, analysis: CompletenessAnalysis) -> list[str]:
    """Return the names of the conditions ``template`` fails; empty means it matches."""
    conditions: TemplateConditions = template.conditions
    failed: list[str] = []

    if conditions.min_score is not None and analysis.overall_score < conditions.min_score:
        failed.append("min_score")
    if conditions.max_score is not None and analysis.overall_score > conditions.max_score:
        failed.append("max_score")

    if conditions.required_missing_elements:
        missing = set(analysis.missing_elements)
        if not any(element in missing for element in conditions.required_missing_elements):
            failed.append("required_missing_elements")

    if conditions.issue_types:
        labels = set(issue.labels)
        if not any(issue_type in labels for issue_type in conditions.issue_types):
            failed.append("issue_types")

    return failed


def matches(template: Template, issue: IssueData, analysis: CompletenessAnalysis) -> bool:
    return not explain(template, issue, analysis)
