from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from templating.errors import MalformedTemplateError

# Templates are authored as camelCase JSON by maintainers; snake_case works too.
_TEMPLATE_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
    extra="ignore",
)


class TemplateCategory(str, Enum):
    BUG_REPORT = "BUG_REPORT"
    FEATURE_REQUEST = "FEATURE_REQUEST"
    QUESTION = "QUESTION"
    DOCUMENTATION = "DOCUMENTATION"
    PERFORMANCE_ISSUE = "PERFORMANCE_ISSUE"
    SECURITY_ISSUE = "SECURITY_ISSUE"
    CUSTOM = "CUSTOM"


class VariableType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    LIST = "list"
    URL = "url"
    BOOLEAN = "boolean"


class FontSize(str, Enum):
    SM = "sm"
    BASE = "base"
    LG = "lg"
    XL = "xl"


class Spacing(str, Enum):
    COMPACT = "compact"
    NORMAL = "normal"
    SPACIOUS = "spacious"


class DecorationStyle(str, Enum):
    MINIMAL = "minimal"
    DETAILED = "detailed"
    PROFESSIONAL = "professional"


class VariableSpec(BaseModel):
    model_config = _TEMPLATE_CONFIG

    name: str
    description: str = ""
    type: VariableType = VariableType.TEXT
    required: bool = False
    default_value: Optional[str] = None
    options: list[str] = Field(default_factory=list)


class StyleSpec(BaseModel):
    model_config = _TEMPLATE_CONFIG

    # Colours and font family are carried for UI previews; rendering ignores them.
    primary_color: str = "#8B5CF6"
    secondary_color: str = "#6B7280"
    accent_color: str = "#10B981"
    font_family: str = "Inter, system-ui, sans-serif"
    font_size: FontSize = FontSize.BASE
    spacing: Spacing = Spacing.NORMAL
    include_logo: bool = False
    include_footer: bool = True
    header_style: DecorationStyle = DecorationStyle.PROFESSIONAL
    footer_style: DecorationStyle = DecorationStyle.MINIMAL


class TemplateContent(BaseModel):
    model_config = _TEMPLATE_CONFIG

    header: str = ""
    body: str = ""
    footer: str = ""

    def sections(self) -> list[str]:
        return [self.header, self.body, self.footer]

    def is_blank(self) -> bool:
        return not any(section.strip() for section in self.sections())


class TemplateConditions(BaseModel):
    model_config = _TEMPLATE_CONFIG

    min_score: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("min_score", "minScore", "minQualityScore", "min_quality_score"),
    )
    max_score: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("max_score", "maxScore", "maxQualityScore", "max_quality_score"),
    )
    required_missing_elements: list[str] = Field(default_factory=list)
    issue_types: list[str] = Field(default_factory=list)
    repositories: list[str] = Field(default_factory=list)


class Template(BaseModel):
    model_config = _TEMPLATE_CONFIG

    id: str
    name: str
    description: Optional[str] = None
    category: TemplateCategory = TemplateCategory.CUSTOM
    content: TemplateContent = Field(validation_alias=AliasChoices("content", "template"))
    variables: list[VariableSpec] = Field(default_factory=list)
    styling: StyleSpec = Field(default_factory=StyleSpec)
    conditions: TemplateConditions = Field(default_factory=TemplateConditions)
    is_active: bool = True
    requires_approval: bool = True
    auto_apply: bool = False

    # Catalog ordering, maintained by the template store.
    is_default: bool = False
    usage_count: int = 0
    created_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _reject_blank_content(self) -> "Template":
        if self.content.is_blank():
            raise MalformedTemplateError(self.id)
        return self
