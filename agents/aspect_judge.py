from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol, runtime_checkable

from langchain_core.language_models import BaseChatModel

from agents.base_agent import BaseAgent
from prompts.aspect_prompts import build_aspect_prompts
from schemas.completeness import AspectCategory, AspectCheck, AspectJudgment, AspectQuality


@runtime_checkable
class AspectJudge(Protocol):
    """Judges whether one aspect is present in (already truncated) issue text.

    Implementations may raise; the scorer replaces any failure with
    ``fallback_check``.
    """

    def judge(self, category: AspectCategory, text: str) -> AspectCheck:
        ...


def fallback_check(category: AspectCategory) -> AspectCheck:
    """Deterministic zero-confidence check used when a judge fails."""
    return AspectCheck(
        present=False,
        confidence=0.0,
        quality=AspectQuality.MISSING,
        details=f"{category.element_name} analysis failed",
        suggestions=["manual review needed"],
    )


def sanitize_judgment(judgment: AspectJudgment | Mapping[str, Any]) -> AspectCheck:
    """Clamp and normalise raw model output into a valid AspectCheck."""
    data = judgment.model_dump() if isinstance(judgment, AspectJudgment) else dict(judgment)

    try:
        confidence = float(data.get("confidence") or 0.0)
    except (TypeError, ValueError):
        confidence = 0.0
    confidence = max(0.0, min(1.0, confidence))

    raw_quality = str(data.get("quality") or "").strip().lower()
    try:
        quality = AspectQuality(raw_quality)
    except ValueError:
        quality = AspectQuality.MISSING

    suggestions = data.get("suggestions")
    return AspectCheck(
        present=bool(data.get("present")),
        confidence=confidence,
        quality=quality,
        details=str(data.get("details") or "No details provided"),
        suggestions=[str(s) for s in suggestions] if isinstance(suggestions, list) else [],
    )


class LLMAspectJudge(BaseAgent):
    """Asks the chat model for a structured judgment of a single aspect.

    ``template_context`` (see ``build_template_context``) is appended to the
    system prompt so the model knows which follow-up templates the
    repository uses.
    """

    def __init__(
        self,
        llm: Optional[BaseChatModel] = None,
        run_id: Optional[str] = None,
        repository: Optional[str] = None,
        issue_number: Optional[int] = None,
        template_context: str = "",
    ) -> None:
        super().__init__(llm)
        self.template_context = template_context
        self._context = {
            key: value
            for key, value in (
                ("run_id", run_id),
                ("repository", repository),
                ("issue_number", issue_number),
            )
            if value is not None
        }

    def bind(self, template_context: Optional[str] = None, **context: Any) -> "LLMAspectJudge":
        """Return a judge sharing this model whose log records carry ``context``.

        The model must be built before the bound judge reaches worker threads,
        so it is resolved here.
        """
        return LLMAspectJudge(
            llm=self.llm,
            template_context=self.template_context if template_context is None else template_context,
            **{**self._context, **context},
        )

    def judge(self, category: AspectCategory, text: str) -> AspectCheck:
        system_prompt, human_prompt = build_aspect_prompts(category, text, self.template_context)
        result, _ = self.invoke_llm_structured(
            system_prompt=system_prompt,
            human_prompt=human_prompt,
            output_schema=AspectJudgment,
            aspect=category.value,
            prompt_template_name=f"aspect_{category.value}",
            **self._context,
        )
        if result is None:
            raise ValueError(f"LLM returned no judgment for {category.element_name}")
        return sanitize_judgment(result)


class StaticAspectJudge:
    """Returns preset checks; used for dry runs and tests.

    Categories without a preset check raise ``KeyError`` unless ``default`` is
    given, which exercises the scorer's fallback path.
    """

    def __init__(
        self,
        checks: Mapping[AspectCategory, AspectCheck],
        default: Optional[AspectCheck] = None,
    ) -> None:
        self._checks = dict(checks)
        self._default = default
        self.calls: list[tuple[AspectCategory, str]] = []

    def judge(self, category: AspectCategory, text: str) -> AspectCheck:
        self.calls.append((category, text))
        if category in self._checks:
            return self._checks[category]
        if self._default is not None:
            return self._default
        raise KeyError(category.value)

    @classmethod
    def from_file(cls, path: str | Path) -> "StaticAspectJudge":
        """Load preset judgments from a JSON object keyed by aspect category value."""
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise ValueError(f"{path}: expected a JSON object keyed by aspect category")
        return cls({AspectCategory(key): sanitize_judgment(value) for key, value in raw.items()})
