from __future__ import annotations

import asyncio
import concurrent.futures
from typing import Any, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from app_logging.activity_logger import ActivityLogger
from llm.llm_client import get_llm
from llm.llm_logger import llm_logger


class BaseAgent:
    """
    Base class for the completeness pipeline components.

    Provides:
    - Lazy access to the shared chat model
    - Standardised structured LLM invocation via invoke_llm_structured()
    - Full LLM call logging (every call captured via llm_logger)
    - Activity event logging
    - Async-to-sync bridge so sync callers (CLI, LangGraph nodes) can drive
      the concurrent scorer
    """

    def __init__(self, llm: Optional[BaseChatModel] = None) -> None:
        self.agent_name = self.__class__.__name__
        self.logger = ActivityLogger(self.agent_name)
        self._llm = llm

    # ── LLM ──────────────────────────────────────────────────────────────────

    @property
    def llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = get_llm()
        return self._llm

    def invoke_llm_structured(
        self,
        system_prompt: str,
        human_prompt: str,
        output_schema: type,
        aspect: str,
        prompt_template_name: str,
        **context: Any,
    ) -> tuple[Any, str]:
        """
        Invoke the LLM with structured output (Pydantic schema via
        with_structured_output). Returns (parsed_result, call_id).

        Raises RuntimeError when the model call itself failed; the failure is
        logged to logs/llm_calls.jsonl and SQLite before raising.
        """
        llm_structured = self.llm.with_structured_output(output_schema, include_raw=False)

        messages = [
            SystemMessage(content=system_prompt),
            HumanMessage(content=human_prompt),
        ]

        parsed_output, record = llm_logger.invoke_and_log(
            llm=llm_structured,
            messages=messages,
            component=self.agent_name,
            aspect=aspect,
            prompt_template_name=prompt_template_name,
            output_schema_name=output_schema.__name__,
            **context,
        )

        self.logger.info(
            "llm_call_completed",
            call_id=record.call_id,
            aspect=aspect,
            latency_ms=round(record.latency_ms, 1),
            tokens=record.total_token_count,
            parsed_ok=record.parsed_successfully,
            **context,
        )

        if record.error_occurred:
            raise RuntimeError(f"{record.error_type}: {record.error_message}")

        return parsed_output, record.call_id

    # ── Async bridge ──────────────────────────────────────────────────────────

    def run_async(self, coro) -> Any:
        """
        Run a coroutine from synchronous code.
        Handles an already running event loop (e.g. Jupyter, FastAPI sync
        handlers under some servers) by delegating to a worker thread.
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(coro)

        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()
