"""
Streaming coordinator: NDJSON events for interactive clients.

Protocol: one ``meta`` event, zero or more ``delta`` events, then exactly one
terminal ``done`` or ``error`` event. Tier fallback happens silently before
``meta``; once ``meta`` is out, its citations are final.
"""
import asyncio
import contextlib
from typing import AsyncIterator, Optional, Sequence

from portfolio_ask.ask.tiers import AnswerTier, PreparedAnswer
from portfolio_ask.exceptions import TierFailure
from portfolio_ask.logging_config import get_logger
from portfolio_ask.schemas.ask import DeltaEvent, DoneEvent, ErrorEvent, MetaEvent, StreamEvent, to_ndjson
from portfolio_ask.schemas.chunks import Language

log = get_logger(__name__)

PROVIDER_ERROR = "provider_error"
DEFAULT_CHUNK_SIZE = 48


async def slice_text(text: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[str]:
    """Fixed-size slices of ``text``, yielding to the event loop between slices."""
    for start in range(0, len(text), chunk_size):
        yield text[start:start + chunk_size]
        await asyncio.sleep(0)


async def _prepare_first(
    tiers: Sequence[AnswerTier],
    query: str,
    lang: Language,
) -> tuple[Optional[AnswerTier], Optional[PreparedAnswer]]:
    for tier in tiers:
        try:
            return tier, await tier.prepare(query, lang)
        except TierFailure as e:
            log.warning("stream_tier_failed", tier=e.tier, reason=e.reason, query_length=len(query))
        except Exception as e:
            log.error("stream_tier_crashed", tier=tier.name, error=str(e), error_type=type(e).__name__, query_length=len(query))
    return None, None


async def stream_answer(
    tiers: Sequence[AnswerTier],
    query: str,
    lang: Language,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> AsyncIterator[StreamEvent]:
    tier, prepared = await _prepare_first(tiers, query, lang)
    if prepared is None:
        log.error("stream_all_tiers_failed", tiers=[t.name for t in tiers], query_length=len(query))
        yield ErrorEvent(error=PROVIDER_ERROR)
        return

    log.info("stream_started", tier=prepared.tier, citations=len(prepared.citations), query_length=len(query))
    yield MetaEvent(citations=prepared.citations, suggested_links=prepared.suggested_links)

    if prepared.answer is not None:
        async for text in slice_text(prepared.answer, chunk_size):
            yield DeltaEvent(text=text)
        yield DoneEvent()
        return

    # Only the grounded tiers leave ``answer`` unset, and they implement ``stream``
    sent = 0
    try:
        async with contextlib.aclosing(tier.stream(prepared)) as deltas:
            async for text in deltas:
                sent += 1
                yield DeltaEvent(text=text)
    except Exception as e:
        if sent:
            log.error("stream_failed_mid_answer", tier=prepared.tier, deltas_sent=sent, error=str(e))
            yield ErrorEvent(error=PROVIDER_ERROR)
            return
        log.warning("stream_degraded_to_template", tier=prepared.tier, error=str(e))

    if not sent:
        async for text in slice_text(prepared.fallback, chunk_size):
            yield DeltaEvent(text=text)

    log.info("stream_finished", tier=prepared.tier, deltas_sent=sent)
    yield DoneEvent()


async def stream_ndjson(events: AsyncIterator[StreamEvent]) -> AsyncIterator[str]:
    """Encode events as NDJSON lines, closing the event source when done."""
    async with contextlib.aclosing(events) as source:
        async for event in source:
            yield to_ndjson(event)
