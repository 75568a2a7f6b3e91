"""Chat completion calls with retry, error mapping and streaming."""
import re
from typing import Any, AsyncIterator

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type, RetryCallState

from portfolio_ask.exceptions import CompletionError, LLMRateLimitError, LLMTimeoutError
from portfolio_ask.logging_config import get_logger
from portfolio_ask.observability import Phase, get_llm_callbacks, track

log = get_logger(__name__)

MAX_RATE_LIMIT_WAIT_SECONDS = 5.0


def parse_llm_content(content: Any) -> str:
    """
    Parse LLM content, handling provider-specific quirks (e.g. Gemini content blocks).
    """
    if isinstance(content, list):
        # Gemini may return [{'type': 'text', 'text': ...}, {'extras': ...}]
        return "".join(
            block.get("text", "") if isinstance(block, dict) else str(block)
            for block in content
            if isinstance(block, str) or (isinstance(block, dict) and block.get("type") == "text")
        )
    if content is None:
        return ""
    return str(content)


def map_provider_error(e: Exception) -> CompletionError:
    """Convert provider-specific errors to our exceptions."""
    if isinstance(e, CompletionError):
        return e
    error_str = str(e).lower()
    if "rate limit" in error_str or "429" in error_str:
        # Parse retry duration from "retry in 55.3s" / "retry after 2s"
        retry_after = None
        match = re.search(r"retry (?:in|after) (\d+\.?\d*)\s*s", error_str)
        if match:
            retry_after = float(match.group(1))
            if retry_after > MAX_RATE_LIMIT_WAIT_SECONDS:
                # Fail fast above the max wait
                log.warning(
                    "rate_limit_exceeded_max_wait",
                    wait_required=retry_after,
                    max_allowed=MAX_RATE_LIMIT_WAIT_SECONDS,
                )
                return CompletionError(
                    f"Rate limit wait too long ({retry_after}s > {MAX_RATE_LIMIT_WAIT_SECONDS}s)"
                )
        return LLMRateLimitError(str(e), retry_after=retry_after)
    if "timeout" in error_str or "timed out" in error_str or isinstance(e, TimeoutError):
        return LLMTimeoutError(str(e))
    return CompletionError(str(e))


def wait_smart_backoff(retry_state: RetryCallState) -> float:
    """
    Custom wait strategy that respects 'retry_after' from LLMRateLimitError.
    Otherwise falls back to exponential backoff.
    """
    exp_wait = wait_exponential(multiplier=1, min=1, max=5)(retry_state)

    last_exception = retry_state.outcome.exception()
    if isinstance(last_exception, LLMRateLimitError) and last_exception.retry_after:
        log.info("rate_limit_smart_wait_check", retry_after=last_exception.retry_after)
        return max(exp_wait, last_exception.retry_after + 1.0)

    return exp_wait


class CompletionService:
    """Thin async wrapper around a LangChain chat model."""

    def __init__(self, llm: BaseChatModel):
        self.llm = llm

    def _bound(self, temperature: float, max_tokens: int):
        return self.llm.bind(temperature=temperature, max_tokens=max_tokens)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_smart_backoff,
        retry=retry_if_exception_type((LLMRateLimitError, LLMTimeoutError)),
        reraise=True
    )
    async def _invoke_with_retry(self, messages: list[BaseMessage], temperature: float, max_tokens: int):
        """Invoke LLM with automatic retry on transient failures."""
        try:
            return await self._bound(temperature, max_tokens).ainvoke(
                messages,
                config={"callbacks": get_llm_callbacks(phase=Phase.GENERATION)},
            )
        except Exception as e:
            raise map_provider_error(e) from e

    @track(name="complete", phase=Phase.GENERATION)
    async def complete(
        self,
        messages: list[BaseMessage],
        temperature: float,
        max_tokens: int,
    ) -> str:
        """
        Raises:
            CompletionError: provider failure (after retries) or empty content
        """
        ai_message = await self._invoke_with_retry(messages, temperature, max_tokens)
        answer = parse_llm_content(ai_message.content).strip()
        if not answer:
            raise CompletionError("LLM returned empty content")
        log.info("completion_finished", answer_len=len(answer))
        return answer

    async def stream(
        self,
        messages: list[BaseMessage],
        temperature: float,
        max_tokens: int,
    ) -> AsyncIterator[str]:
        """
        Non-empty text deltas as they arrive.

        Closing this generator closes the provider stream. No retries: a
        partially consumed stream cannot be replayed.
        """
        upstream = self._bound(temperature, max_tokens).astream(
            messages,
            config={"callbacks": get_llm_callbacks(phase=Phase.GENERATION)},
        )
        try:
            async for chunk in upstream:
                text = parse_llm_content(chunk.content)
                if text:
                    yield text
        except Exception as e:
            log.warning("completion_stream_failed", error=str(e), error_type=type(e).__name__)
            raise map_provider_error(e) from e
        finally:
            await upstream.aclose()
