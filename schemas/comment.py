from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from schemas.template import StyleSpec


class RenderedComment(BaseModel):
    """A comment ready for posting or for maintainer review."""

    model_config = ConfigDict(frozen=True)

    content: str
    template_id: str
    template_name: str
    resolved_variables: dict[str, str] = Field(default_factory=dict)
    styling: StyleSpec = Field(default_factory=StyleSpec)
    requires_approval: bool = True
    auto_apply: bool = False
