from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class IssueData(BaseModel):
    """An issue report as handed over by the issue tracker client."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str
    body: str = ""
    number: int = Field(..., ge=1)
    url: str = ""
    author: str = "unknown"
    repository: str = Field(..., description="Full repository name, e.g. octo/widgets")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    labels: tuple[str, ...] = ()

    @property
    def text(self) -> str:
        """Title and body as a single blob, the unit every aspect judge sees."""
        return f"{self.title}\n\n{self.body or ''}"
