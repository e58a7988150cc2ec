from __future__ import annotations

import threading
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

from app_logging.activity_logger import ActivityLogger
from config.settings import settings

_activity = ActivityLogger("llm_logger")


class LLMCallRecord(BaseModel):
    """Pydantic schema for a single aspect-judge LLM invocation log entry."""

    call_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    run_id: Optional[str] = None
    repository: Optional[str] = None
    issue_number: Optional[int] = None
    component: str
    aspect: str

    # Request
    model_id: str
    prompt_template_name: str
    system_prompt: Optional[str] = None
    human_prompt: str
    prompt_token_count: Optional[int] = None

    # Response
    raw_response: str = ""
    parsed_successfully: bool = False
    completion_token_count: Optional[int] = None
    total_token_count: Optional[int] = None

    # Performance
    latency_ms: float = 0.0
    invoked_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    # LLM metadata
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None

    # Structured output
    output_schema_name: Optional[str] = None
    structured_output: Optional[dict] = None

    # Error
    error_occurred: bool = False
    error_type: Optional[str] = None
    error_message: Optional[str] = None


class LLMLogger:
    """
    Logs every LLM invocation to a JSONL file and SQLite.
    Usage:
        result, record = llm_logger.invoke_and_log(llm, messages, ...)

    Six judges share one logger and call it from worker threads, so file
    appends are serialised.
    """

    _lock = threading.Lock()

    def __init__(self) -> None:
        self._log_path = Path(settings.llm_log_path)
        self._log_path.parent.mkdir(parents=True, exist_ok=True)

    # ── Core log method ───────────────────────────────────────────────────────

    def log_call(self, record: LLMCallRecord) -> str:
        """Write record to JSONL file and SQLite. Returns call_id."""
        with self._lock:
            with open(self._log_path, "a", encoding="utf-8") as f:
                f.write(record.model_dump_json() + "\n")

        # SQLite, best-effort: an audit write never fails an analysis
        try:
            from persistence.repository import AnalysisRepository
            AnalysisRepository().save_llm_call(record)
        except Exception as exc:
            _activity.warning(
                "llm_log_db_write_failed",
                call_id=record.call_id,
                error_message=str(exc),
            )

        return record.call_id

    # ── Convenience wrapper used by the aspect judge ──────────────────────────

    def invoke_and_log(
        self,
        llm: Any,
        messages: list,
        component: str,
        aspect: str,
        prompt_template_name: str,
        output_schema_name: Optional[str] = None,
        run_id: Optional[str] = None,
        repository: Optional[str] = None,
        issue_number: Optional[int] = None,
    ) -> tuple[Any, LLMCallRecord]:
        """
        Invoke the LLM, capture all metadata, log the result.
        Returns (parsed_output_or_None, record). Invocation errors are recorded
        on the record rather than raised; callers inspect ``error_occurred``.
        """
        start = time.monotonic()
        error_occurred = False
        error_type: Optional[str] = None
        error_message: Optional[str] = None
        raw_response = ""
        parsed_output: Any = None
        prompt_tokens: Optional[int] = None
        completion_tokens: Optional[int] = None
        total_tokens: Optional[int] = None

        try:
            response = llm.invoke(messages)
            raw_response = (
                str(response.content)
                if hasattr(response, "content")
                else str(response)
            )

            usage = getattr(response, "usage_metadata", None)
            if usage:
                prompt_tokens = usage.get("input_tokens")
                completion_tokens = usage.get("output_tokens")
                total_tokens = usage.get("total_tokens")

            parsed_output = response
        except Exception as exc:
            error_occurred = True
            error_type = type(exc).__name__
            error_message = str(exc)
        latency_ms = (time.monotonic() - start) * 1000

        human_prompt_text = ""
        system_prompt_text = None
        from langchain_core.messages import HumanMessage, SystemMessage
        for m in messages:
            if isinstance(m, HumanMessage):
                human_prompt_text = str(m.content)
            elif isinstance(m, SystemMessage):
                system_prompt_text = str(m.content)

        record = LLMCallRecord(
            run_id=run_id,
            repository=repository,
            issue_number=issue_number,
            component=component,
            aspect=aspect,
            model_id=settings.llm_model_id,
            prompt_template_name=prompt_template_name,
            system_prompt=system_prompt_text,
            human_prompt=human_prompt_text,
            raw_response=raw_response,
            parsed_successfully=parsed_output is not None,
            prompt_token_count=prompt_tokens,
            completion_token_count=completion_tokens,
            total_token_count=total_tokens,
            latency_ms=latency_ms,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            output_schema_name=output_schema_name,
            structured_output=(
                parsed_output.model_dump(mode="json")
                if parsed_output is not None and hasattr(parsed_output, "model_dump")
                else None
            ),
            error_occurred=error_occurred,
            error_type=error_type,
            error_message=error_message,
        )

        self.log_call(record)
        return parsed_output, record


# Module-level singleton
llm_logger = LLMLogger()
