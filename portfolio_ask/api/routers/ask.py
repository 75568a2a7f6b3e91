"""
Ask endpoints: one-shot JSON answer and the NDJSON stream.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from portfolio_ask.api.dependencies import get_ask_service, get_tier_config
from portfolio_ask.ask.service import AskService
from portfolio_ask.ask.streaming import stream_ndjson
from portfolio_ask.logging_config import get_logger
from portfolio_ask.observability import set_evaluation_source, track
from portfolio_ask.schemas.ask import AskRequest, AskResponse, TierConfig

log = get_logger(__name__)

router = APIRouter(prefix="/ask", tags=["Ask"])

NDJSON_HEADERS = {
    "cache-control": "no-store, max-age=0",
    "x-accel-buffering": "no",
}


@router.post("", response_model=AskResponse)
@track(name="rest_ask")
async def ask(
    request: AskRequest,
    service: AskService = Depends(get_ask_service),
    tiers: TierConfig = Depends(get_tier_config),
) -> AskResponse:
    """
    Ask a question about the portfolio.

    - **query**: The visitor's question (1-1000 characters)
    - **lang**: Answer language, `de` or `en` (default: `en`)
    """
    set_evaluation_source("rest")
    log.info("ask_endpoint_called", query_length=len(request.query), lang=request.lang.value)
    return await service.answer(request.query, request.lang, tiers)


@router.post("/stream")
async def ask_stream(
    request: AskRequest,
    service: AskService = Depends(get_ask_service),
    tiers: TierConfig = Depends(get_tier_config),
) -> StreamingResponse:
    """
    Same question, answered as newline-delimited JSON events:
    one `meta`, then `delta`s, then exactly one `done` or `error`.
    """
    set_evaluation_source("stream")
    log.info("ask_stream_endpoint_called", query_length=len(request.query), lang=request.lang.value)
    events = service.stream_answer(request.query, request.lang, tiers)
    return StreamingResponse(
        stream_ndjson(events),
        media_type="application/x-ndjson; charset=utf-8",
        headers=NDJSON_HEADERS,
    )
