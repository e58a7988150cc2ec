"""Unit tests for template catalog loading and ordering."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from schemas.template import Template, TemplateCategory
from templating.catalog import candidates_for, load_catalog, order_candidates, resolve_templates
from templating.defaults import default_templates
from templating.errors import MalformedTemplateError


def _template(template_id: str, **fields) -> Template:
    return Template.model_validate({"id": template_id, "name": template_id, "content": {"body": "x"}, **fields})


def test_default_templates():
    templates = default_templates()
    assert [t.id for t in templates] == ["default-bug-report", "default-feature-request"]

    bug, feature = templates
    assert bug.is_default is True
    assert bug.category == TemplateCategory.BUG_REPORT
    assert bug.conditions.min_score == 0
    assert bug.conditions.max_score == 80
    assert bug.conditions.required_missing_elements == ["reproduction steps"]
    assert feature.conditions.max_score == 70
    assert feature.conditions.required_missing_elements == []


def test_order_default_then_usage_then_recency():
    templates = [
        _template("old-popular", usageCount=10, createdAt="2024-01-01T00:00:00Z"),
        _template("new-unused", createdAt="2026-01-01T00:00:00Z"),
        _template("default", isDefault=True),
        _template("new-popular", usageCount=10, createdAt="2025-06-01T00:00:00Z"),
        _template("undated"),
    ]
    assert [t.id for t in order_candidates(templates)] == [
        "default",
        "new-popular",
        "old-popular",
        "new-unused",
        "undated",
    ]


def test_order_is_stable_for_ties():
    templates = [_template("b"), _template("a"), _template("c")]
    assert [t.id for t in order_candidates(templates)] == ["b", "a", "c"]


def test_candidates_scoped_to_repository():
    templates = [
        _template("global"),
        _template("ours", conditions={"repositories": ["octo/widgets"]}),
        _template("theirs", conditions={"repositories": ["someone/else"]}),
    ]
    assert {t.id for t in candidates_for(templates, "octo/widgets")} == {"global", "ours"}


def test_candidates_use_live_usage_counts():
    templates = [_template("a", usageCount=5), _template("b", usageCount=1)]
    ordered = candidates_for(templates, "octo/widgets", usage_counts={"b": 9})
    assert [t.id for t in ordered] == ["b", "a"]
    assert ordered[0].usage_count == 9


def test_load_catalog_from_camel_case_json(tmp_path):
    path = tmp_path / "templates.json"
    path.write_text(
        json.dumps(
            [
                {
                    "id": "perf",
                    "name": "Performance",
                    "category": "PERFORMANCE_ISSUE",
                    "template": {"header": "## Perf", "body": "Please add a profile.", "footer": ""},
                    "conditions": {"maxQualityScore": 60, "issueTypes": ["performance"]},
                    "requiresApproval": False,
                    "autoApply": True,
                }
            ]
        ),
        encoding="utf-8",
    )

    (template,) = load_catalog(path)

    assert template.category == TemplateCategory.PERFORMANCE_ISSUE
    assert template.conditions.max_score == 60
    assert template.conditions.issue_types == ["performance"]
    assert template.requires_approval is False
    assert template.auto_apply is True


def test_load_catalog_blank_template_fails_loudly(tmp_path):
    path = tmp_path / "templates.json"
    path.write_text(json.dumps([{"id": "blank", "name": "Blank", "content": {}}]), encoding="utf-8")
    with pytest.raises(MalformedTemplateError):
        load_catalog(path)


def test_load_catalog_unknown_category_rejected(tmp_path):
    path = tmp_path / "templates.json"
    path.write_text(
        json.dumps([{"id": "x", "name": "X", "category": "RANT", "content": {"body": "x"}}]),
        encoding="utf-8",
    )
    with pytest.raises(ValidationError):
        load_catalog(path)


def test_resolve_templates_falls_back_to_defaults():
    assert [t.id for t in resolve_templates("")] == ["default-bug-report", "default-feature-request"]
    assert [t.id for t in resolve_templates(None)] == ["default-bug-report", "default-feature-request"]
