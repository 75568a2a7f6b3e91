"""
Tracing hooks for the ask pipeline (Opik).

Every hook is a no-op when ``OPIK__ENABLED`` is false: ``track`` returns the
function unwrapped and ``get_llm_callbacks`` returns no handlers.
"""
from enum import Enum
from typing import Optional, List, Any
import functools
import os
import contextvars
import inspect

from portfolio_ask.logging_config import get_logger
import opik

log = get_logger(__name__)

# Entry point of the current request: 'rest', 'stream' or 'mcp'
_source_context = contextvars.ContextVar("source_context", default=None)


class Phase(Enum):
    """Pipeline phase, attached to spans as a ``phase:<value>`` tag."""
    INGESTION = "ingestion"
    RANKING = "ranking"       # Lexical scoring over the corpus
    RETRIEVAL = "retrieval"   # Query embedding + pgvector search
    QUERY = "query"           # Tier cascade
    GENERATION = "generation"


def _tracing_enabled() -> bool:
    from portfolio_ask.config import get_settings
    return get_settings().opik.enabled


def _build_tags(phase: Optional[Phase], tags: Optional[List[str]], with_source: bool = False) -> List[str]:
    result = list(tags or [])
    if phase:
        result.append(f"phase:{phase.value}")
    source = _source_context.get()
    if with_source and source:
        result.append(f"source:{source}")
    return result


def configure_observability():
    """Export Opik settings to the SDK environment and connect to the hosted backend."""
    from portfolio_ask.config import get_settings
    opik_settings = get_settings().opik
    if not opik_settings.enabled:
        log.info("observability_disabled")
        return

    os.environ["OPIK_PROJECT_NAME"] = opik_settings.project_name
    if opik_settings.api_key:
        os.environ["OPIK_API_KEY"] = opik_settings.api_key
    if opik_settings.workspace:
        os.environ["OPIK_WORKSPACE"] = opik_settings.workspace
    opik.configure(use_local=False)
    log.info("observability_configured", provider="opik", project=opik_settings.project_name)


def set_evaluation_source(source: str) -> None:
    """Remember which surface answered this request and tag the open trace with it."""
    _source_context.set(source)
    if not _tracing_enabled():
        return
    try:
        opik.opik_context.update_current_trace(tags=[f"source:{source}"])
    except Exception as e:
        log.debug("trace_tag_skipped", source=source, error=str(e))


def track(name: Optional[str] = None, phase: Optional[Phase] = None, tags: Optional[List[str]] = None):
    """
    Trace a sync or async function as an Opik span.

    Args:
        name: Span name (defaults to the function name)
        phase: Pipeline phase tag
        tags: Extra static tags
    """
    def decorator(func):
        if not _tracing_enabled():
            return func

        static_tags = _build_tags(phase, tags)

        def tag_span():
            source = _source_context.get()
            if not source:
                return
            try:
                opik.opik_context.update_current_span(tags=[f"source:{source}"])
            except Exception as e:
                log.debug("span_tag_skipped", span=name or func.__name__, error=str(e))

        if inspect.iscoroutinefunction(func):
            @opik.track(name=name, tags=static_tags)
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                tag_span()
                return await func(*args, **kwargs)
            return async_wrapper

        @opik.track(name=name, tags=static_tags)
        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            tag_span()
            return func(*args, **kwargs)
        return sync_wrapper
    return decorator


def set_trace_metadata(metadata: dict[str, Any]) -> None:
    if not _tracing_enabled():
        return
    opik.opik_context.update_current_trace(metadata=metadata)


def get_llm_callbacks(phase: Optional[Phase] = None, tags: Optional[List[str]] = None) -> List[Any]:
    """LangChain callback handlers for the current request (empty when tracing is off)."""
    if not _tracing_enabled():
        return []
    from opik.integrations.langchain import OpikTracer

    return [OpikTracer(tags=_build_tags(phase, tags, with_source=True))]
