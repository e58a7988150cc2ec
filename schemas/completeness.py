from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class AspectCategory(str, Enum):
    REPRODUCTION_STEPS = "reproduction_steps"
    EXPECTED_BEHAVIOR = "expected_behavior"
    VERSION_INFO = "version_info"
    ENVIRONMENT_DETAILS = "environment_details"
    ERROR_LOGS = "error_logs"
    SCREENSHOTS = "screenshots"

    @property
    def element_name(self) -> str:
        """Human-readable name used in missing-element lists and comments."""
        return ELEMENT_NAMES[self]


# Fixed order used for weighting, missing elements and suggestions.
ASPECT_ORDER: tuple[AspectCategory, ...] = (
    AspectCategory.REPRODUCTION_STEPS,
    AspectCategory.EXPECTED_BEHAVIOR,
    AspectCategory.VERSION_INFO,
    AspectCategory.ENVIRONMENT_DETAILS,
    AspectCategory.ERROR_LOGS,
    AspectCategory.SCREENSHOTS,
)

ELEMENT_NAMES: dict[AspectCategory, str] = {
    AspectCategory.REPRODUCTION_STEPS: "reproduction steps",
    AspectCategory.EXPECTED_BEHAVIOR: "expected vs actual behavior",
    AspectCategory.VERSION_INFO: "version information",
    AspectCategory.ENVIRONMENT_DETAILS: "environment details",
    AspectCategory.ERROR_LOGS: "error logs",
    AspectCategory.SCREENSHOTS: "screenshots",
}


class AspectQuality(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    MISSING = "missing"


class AspectCheck(BaseModel):
    """One aspect's judgment. A ``missing`` quality always means not present."""

    model_config = ConfigDict(frozen=True)

    present: bool
    confidence: float = Field(..., ge=0.0, le=1.0)
    quality: AspectQuality
    details: str = ""
    suggestions: list[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _missing_is_absent(cls, data):
        if isinstance(data, dict) and data.get("quality") in (AspectQuality.MISSING, "missing"):
            data = {**data, "present": False}
        return data


class AspectJudgment(BaseModel):
    """Raw structured output requested from the language model for one aspect."""

    present: bool = Field(..., description="Whether the aspect is present in the issue")
    confidence: float = Field(..., description="Confidence of the assessment, 0.0-1.0")
    quality: str = Field(..., description="excellent | good | fair | poor | missing")
    details: str = Field(default="", description="Explanation of the assessment")
    suggestions: list[str] = Field(default_factory=list, description="Specific, actionable suggestions")


class CompletenessAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    reproduction_steps: AspectCheck
    expected_behavior: AspectCheck
    version_info: AspectCheck
    environment_details: AspectCheck
    error_logs: AspectCheck
    screenshots: AspectCheck

    overall_score: int = Field(..., ge=0, le=100)
    missing_elements: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    confidence: float = Field(..., ge=0.0, le=1.0)
    processing_time_ms: int = Field(default=0, ge=0)

    analysis_version: str = "v1.0"
    repository: Optional[str] = None
    issue_number: Optional[int] = None

    def check_for(self, category: AspectCategory) -> AspectCheck:
        return getattr(self, category.value)

    def checks(self) -> list[tuple[AspectCategory, AspectCheck]]:
        return [(category, self.check_for(category)) for category in ASPECT_ORDER]

    def is_complete(self, threshold: int) -> bool:
        return self.overall_score >= threshold
