"""The ask core: the single entry point used by the HTTP and MCP surfaces."""
from typing import AsyncIterator, List, Optional, Sequence

from portfolio_ask.ask.streaming import stream_answer
from portfolio_ask.ask.tiers import (
    AnswerTier,
    LlmCorpusTier,
    LocalCorpusTier,
    VectorTier,
    tiers_for,
)
from portfolio_ask.config import AskSettings
from portfolio_ask.content.provider import ContentProvider
from portfolio_ask.exceptions import AllTiersFailedError, TierFailure
from portfolio_ask.generation.completion import CompletionService
from portfolio_ask.logging_config import get_logger
from portfolio_ask.observability import Phase, set_trace_metadata, track
from portfolio_ask.retrieval.corpus import CorpusLoader
from portfolio_ask.retrieval.vector_retriever import GROUNDED_VISIBILITIES, PUBLIC_ONLY, VectorRetriever
from portfolio_ask.schemas.ask import AskResponse, StreamEvent, TierConfig
from portfolio_ask.schemas.chunks import Language, Visibility

log = get_logger(__name__)


class AskService:
    """
    Answers visitor questions from the portfolio content.

    The service never reads feature flags or environment state: callers pass
    a resolved ``TierConfig`` per request, and the optional ``retriever`` and
    ``completion`` collaborators are injected (``None`` means the matching
    tiers are unavailable).
    """

    def __init__(
        self,
        content: ContentProvider,
        settings: AskSettings,
        retriever: Optional[VectorRetriever] = None,
        completion: Optional[CompletionService] = None,
    ):
        self.settings = settings
        self.retriever = retriever
        self.completion = completion

        corpus = CorpusLoader(content)
        self.local_tier = LocalCorpusTier(corpus, settings)
        self.llm_tier = LlmCorpusTier(corpus, completion, settings) if completion else None
        self.vector_tier = (
            VectorTier(retriever, completion, settings, GROUNDED_VISIBILITIES)
            if retriever and completion
            else None
        )

    def tiers_for(self, config: TierConfig) -> List[AnswerTier]:
        return tiers_for(config, self.local_tier, self.llm_tier, self.vector_tier)

    async def answer_local(self, query: str, lang: Language) -> AskResponse:
        """Lexical ranking and the templated answer (or the out-of-scope message)."""
        return await self.local_tier.attempt(query, lang)

    async def answer_with_llm(self, query: str, lang: Language) -> AskResponse:
        """Lexical ranking and a grounded answer; degrades to the template without an LLM."""
        if self.llm_tier is None:
            return await self.answer_local(query, lang)
        return await self.llm_tier.attempt(query, lang)

    async def answer_vector(
        self,
        query: str,
        lang: Language,
        visibilities: Sequence[Visibility] = PUBLIC_ONLY,
    ) -> AskResponse:
        """
        Vector retrieval and a grounded answer.

        Raises:
            TierFailure: no retriever/LLM, infrastructure failure, empty
                selection, temporal mismatch or completion failure
        """
        if self.retriever is None or self.completion is None:
            raise TierFailure("vector", "not_configured")
        tier = VectorTier(self.retriever, self.completion, self.settings, visibilities)
        return await tier.attempt(query, lang)

    @track(name="ask", phase=Phase.QUERY)
    async def answer(self, query: str, lang: Language, tiers: TierConfig) -> AskResponse:
        """
        Try each configured tier in order and return the first response.

        Raises:
            AllTiersFailedError: every tier failed
        """
        failures: List[TierFailure] = []
        for tier in self.tiers_for(tiers):
            try:
                response = await tier.attempt(query, lang)
            except TierFailure as e:
                log.warning("ask_tier_failed", tier=e.tier, reason=e.reason, query_length=len(query))
                failures.append(e)
                continue
            except Exception as e:
                log.error("ask_tier_crashed", tier=tier.name, error=str(e), error_type=type(e).__name__, query_length=len(query))
                failures.append(TierFailure(tier.name, "unexpected_error"))
                continue

            log.info(
                "ask_answered",
                tier=tier.name,
                lang=lang.value,
                citations=len(response.citations),
                fallbacks=len(failures),
                query_length=len(query),
            )
            set_trace_metadata({"tier": tier.name, "fallbacks": [f.tier for f in failures]})
            return response

        log.error("ask_all_tiers_failed", failures=[f"{f.tier}:{f.reason}" for f in failures], query_length=len(query))
        raise AllTiersFailedError(failures)

    def stream_answer(self, query: str, lang: Language, tiers: TierConfig) -> AsyncIterator[StreamEvent]:
        """NDJSON-ready event stream; see ``portfolio_ask.ask.streaming``."""
        return stream_answer(self.tiers_for(tiers), query, lang, self.settings.stream_chunk_size)
