import json
from typing import Sequence

from schemas.completeness import AspectCategory
from schemas.template import Template

ASPECT_SYSTEM_TEMPLATE = """
You are an expert at analyzing GitHub issue completeness. You specialize in
{element_name} assessment.

Be thorough and provide specific, actionable feedback. Rate quality as one of:
excellent, good, fair, poor, missing. Use "missing" (and present = false) only
when the issue contains no trace of {element_name}.

Return a structured assessment.
""".strip()

ASPECT_HUMAN_TEMPLATE = """
{question}

Look for:
{look_for}

## Issue content
{content}

Assess whether the issue contains {element_name}, how confident you are
(0.0-1.0), the quality of what is there, and concrete suggestions for the author.
"""

ASPECT_QUESTIONS: dict[AspectCategory, str] = {
    AspectCategory.REPRODUCTION_STEPS: (
        "Analyze if this GitHub issue contains clear, step-by-step reproduction instructions."
    ),
    AspectCategory.EXPECTED_BEHAVIOR: (
        "Analyze if this GitHub issue clearly describes expected vs actual behavior."
    ),
    AspectCategory.VERSION_INFO: "Analyze if this GitHub issue contains version information.",
    AspectCategory.ENVIRONMENT_DETAILS: "Analyze if this GitHub issue contains environment details.",
    AspectCategory.ERROR_LOGS: "Analyze if this GitHub issue contains error logs or technical details.",
    AspectCategory.SCREENSHOTS: "Analyze if this GitHub issue contains visual evidence.",
}

ASPECT_LOOK_FOR: dict[AspectCategory, list[str]] = {
    AspectCategory.REPRODUCTION_STEPS: [
        "Numbered or bulleted steps (1, 2, 3... or -, *)",
        "Sequential actions that lead to the issue",
        "Clear, actionable instructions",
        "Specific commands or actions",
        "Expected outcome at each step",
    ],
    AspectCategory.EXPECTED_BEHAVIOR: [
        '"Expected:" or "Should:" statements',
        '"Actual:" or "Instead:" statements',
        "Clear comparison between expected and actual behavior",
        '"What I expected to happen" vs "What actually happened"',
        "Before/after descriptions",
    ],
    AspectCategory.VERSION_INFO: [
        "Version numbers (v1.2.3, 2.0.1, etc.)",
        "Browser versions (Chrome 95, Firefox 91, etc.)",
        "Operating system versions (Windows 11, macOS 12, etc.)",
        "Software versions (Node.js 16, Python 3.9, etc.)",
        "Release information",
    ],
    AspectCategory.ENVIRONMENT_DETAILS: [
        "Operating system (Windows, macOS, Linux, Ubuntu, etc.)",
        "Browser type and version",
        "Device information (iPhone, Android, Desktop)",
        "Hardware specifications (RAM, CPU, etc.)",
        "Environment variables or configuration",
        "Runtime environment (Docker, Kubernetes, etc.)",
    ],
    AspectCategory.ERROR_LOGS: [
        "Stack traces or error messages",
        "Console output or logs",
        "Error codes or status codes",
        "Code snippets showing errors",
        "Exception details",
        "Network request/response details",
    ],
    AspectCategory.SCREENSHOTS: [
        "Image attachments or links",
        "Screenshots of the issue",
        "GIFs or videos",
        "Markdown image syntax (![...](url))",
        "References to screenshots or images",
    ],
}


def build_template_context(templates: Sequence[Template]) -> str:
    """Describe the repository's comment templates for the system prompt.

    Returns an empty string when there are no templates.
    """
    if not templates:
        return ""

    blocks = []
    for template in templates:
        variables = [spec.model_dump(mode="json", by_alias=True) for spec in template.variables]
        conditions = template.conditions.model_dump(mode="json", by_alias=True, exclude_defaults=True)
        blocks.append(
            f"Template: {template.name} ({template.category.value})\n"
            f"Description: {template.description or 'No description'}\n"
            f"Variables: {json.dumps(variables)}\n"
            f"Conditions: {json.dumps(conditions)}"
        )
    return "Available Templates Context:\n" + "\n\n".join(blocks)


def build_aspect_prompts(
    category: AspectCategory,
    content: str,
    template_context: str = "",
) -> tuple[str, str]:
    """Return (system_prompt, human_prompt) for one aspect judgment."""
    element_name = category.element_name
    system_prompt = ASPECT_SYSTEM_TEMPLATE.format(element_name=element_name)
    if template_context:
        system_prompt = f"{system_prompt}\n\n{template_context}"
    human_prompt = ASPECT_HUMAN_TEMPLATE.format(
        question=ASPECT_QUESTIONS[category],
        look_for="\n".join(f"- {item}" for item in ASPECT_LOOK_FOR[category]),
        content=content or "(empty)",
        element_name=element_name,
    )
    return system_prompt, human_prompt
