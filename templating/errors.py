"""Typed errors raised by template loading and selection.

None of them derive from ``ValueError``; pydantic re-raises them unchanged out
of model validators instead of wrapping them in a ValidationError.
"""

from __future__ import annotations

from typing import Optional


class TemplateError(Exception):
    """Base class for comment template errors."""


class TemplateNotFoundError(TemplateError):
    """An explicitly requested template id is not among the candidates."""

    def __init__(self, template_id: str) -> None:
        super().__init__(f"Template {template_id!r} not found")
        self.template_id = template_id


class NoSuitableTemplateError(TemplateError):
    """No active template exists to fall back on."""

    def __init__(self, repository: Optional[str] = None) -> None:
        where = f" for {repository}" if repository else ""
        super().__init__(f"No suitable template found{where}; create a template first")
        self.repository = repository


class MalformedTemplateError(TemplateError):
    """Template content is structurally empty (header, body and footer all blank)."""

    def __init__(self, template_id: str) -> None:
        super().__init__(f"Template {template_id!r} has no header, body or footer")
        self.template_id = template_id
