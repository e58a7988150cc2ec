from __future__ import annotations

from schemas.template import (
    StyleSpec,
    Template,
    TemplateCategory,
    TemplateConditions,
    TemplateContent,
    VariableSpec,
    VariableType,
)

SYSTEM_VARIABLES: list[VariableSpec] = [
    VariableSpec(name="issue_title", description="The title of the issue", type=VariableType.TEXT, required=True),
    VariableSpec(name="issue_number", description="The issue number", type=VariableType.NUMBER, required=True),
    VariableSpec(name="issue_author", description="The username of the issue author", type=VariableType.TEXT, required=True),
    VariableSpec(name="issue_url", description="The URL to the issue", type=VariableType.URL, required=True),
    VariableSpec(name="repository_name", description="The repository name (owner/repo)", type=VariableType.TEXT, required=True),
    VariableSpec(name="missing_elements", description="List of missing elements", type=VariableType.LIST, default_value=""),
    VariableSpec(name="quality_score", description="The quality score of the issue", type=VariableType.NUMBER, default_value="0"),
    VariableSpec(name="current_date", description="Current date", type=VariableType.DATE),
    VariableSpec(name="maintainer_name", description="Name of the maintainer team", type=VariableType.TEXT, default_value="Maintainer Team"),
    VariableSpec(name="completeness_percentage", description="Percentage of completeness", type=VariableType.NUMBER, default_value="0"),
]

_BUG_REPORT_BODY = """Thanks for reporting this issue! To help maintainers understand and resolve it more effectively, could you please add the following information:

**Current Quality Score: {{quality_score}}/100**

### Missing Information:
{{missing_elements}}

### Suggested Improvements:
- 💡 Add step-by-step reproduction instructions
- 💡 Describe expected vs actual behavior
- 💡 Include version information and environment details
- 💡 Add error logs or screenshots if applicable

### Template for This Issue:
```markdown
## Bug Report: {{issue_title}}

### Steps to Reproduce
1.
2.
3.

### Expected Behavior
<!-- What did you expect to happen? -->

### Actual Behavior
<!-- What actually happened? -->

### Environment
- **Version:**
- **Browser:**
- **OS:**

### Additional Information
<!-- Error logs, screenshots, etc. -->
```"""

_FEATURE_REQUEST_BODY = """Thanks for suggesting this feature! To help maintainers evaluate and implement it effectively, could you please provide more details:

**Current Quality Score: {{quality_score}}/100**

### Missing Information:
{{missing_elements}}

### Suggested Improvements:
- 💡 Describe the problem this feature would solve
- 💡 Provide use cases and examples
- 💡 Explain the expected behavior
- 💡 Consider alternative solutions"""


def default_templates() -> list[Template]:
    """Built-in templates offered to repositories that have not authored their own."""
    return [
        Template(
            id="default-bug-report",
            name="Bug Report Template",
            description="Standard template for incomplete bug reports",
            category=TemplateCategory.BUG_REPORT,
            content=TemplateContent(
                header="## 📋 Issue Completeness Check",
                body=_BUG_REPORT_BODY,
                footer=(
                    "*This analysis was performed by the Issue Completeness Checker. "
                    "Once you add the missing information, we can re-analyze the issue.*"
                ),
            ),
            variables=SYSTEM_VARIABLES,
            styling=StyleSpec(),
            conditions=TemplateConditions(
                min_score=0,
                max_score=80,
                required_missing_elements=["reproduction steps"],
            ),
            requires_approval=True,
            auto_apply=False,
            is_default=True,
        ),
        Template(
            id="default-feature-request",
            name="Feature Request Template",
            description="Standard template for incomplete feature requests",
            category=TemplateCategory.FEATURE_REQUEST,
            content=TemplateContent(
                header="## 🚀 Feature Request Completeness Check",
                body=_FEATURE_REQUEST_BODY,
                footer="*This analysis was performed by the Issue Completeness Checker.*",
            ),
            variables=SYSTEM_VARIABLES,
            styling=StyleSpec(),
            conditions=TemplateConditions(min_score=0, max_score=70),
            requires_approval=True,
            auto_apply=False,
        ),
    ]
