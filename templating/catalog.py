from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from pydantic import TypeAdapter

from app_logging.activity_logger import ActivityLogger
from schemas.template import Template
from templating.defaults import default_templates

logger = ActivityLogger("template_catalog")

_TEMPLATE_LIST = TypeAdapter(list[Template])
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def load_catalog(path: str | Path) -> list[Template]:
    """Load a JSON array of templates. Invalid or blank templates fail loudly."""
    raw = Path(path).read_text(encoding="utf-8")
    templates = _TEMPLATE_LIST.validate_json(raw)
    logger.info("template_catalog_loaded", path=str(path), template_count=len(templates))
    return templates


def _recency(template: Template) -> datetime:
    created = template.created_at
    if created is None:
        return _EPOCH
    if created.tzinfo is None:
        return created.replace(tzinfo=timezone.utc)
    return created


def order_candidates(templates: Iterable[Template]) -> list[Template]:
    """Default templates first, then most used, then most recent."""
    return sorted(
        templates,
        key=lambda t: (not t.is_default, -t.usage_count, -_recency(t).timestamp()),
    )


def candidates_for(
    templates: Iterable[Template],
    repository: str,
    usage_counts: Optional[dict[str, int]] = None,
) -> list[Template]:
    """
    Templates applicable to ``repository`` (scoped ones plus global ones), in
    selection priority order. ``usage_counts`` overrides the counters stored on
    the templates, e.g. with the live counts from the database.
    """
    usage_counts = usage_counts or {}
    scoped = []
    for template in templates:
        repositories = template.conditions.repositories
        if repositories and repository not in repositories:
            continue
        if template.id in usage_counts:
            template = template.model_copy(update={"usage_count": usage_counts[template.id]})
        scoped.append(template)
    return order_candidates(scoped)


def resolve_templates(path: Optional[str]) -> list[Template]:
    """Templates from ``path`` when given, else the built-in defaults."""
    if path:
        return load_catalog(path)
    return default_templates()
