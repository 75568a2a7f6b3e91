"""
Answer tiers, tried in descending order of capability.

Each tier can ``prepare`` (retrieve and decide what will be said, without
generating) and ``attempt`` (prepare, then produce the full response). Both
raise ``TierFailure`` when the tier cannot serve the request; callers move on
to the next tier.
"""
from dataclasses import dataclass, field
from typing import AsyncIterator, List, Optional, Protocol, Sequence

from langchain_core.messages import BaseMessage

from portfolio_ask.config import AskSettings
from portfolio_ask.exceptions import (
    CompletionError,
    ContentError,
    EmbeddingError,
    StorageException,
    TierFailure,
)
from portfolio_ask.generation.answer import (
    build_citations,
    build_suggested_links,
    empty_response,
    format_sources,
    render_local_answer,
)
from portfolio_ask.generation.completion import CompletionService
from portfolio_ask.generation.prompts import build_ask_messages
from portfolio_ask.logging_config import get_logger
from portfolio_ask.retrieval.corpus import CorpusLoader
from portfolio_ask.retrieval.lexical_ranker import rank_local
from portfolio_ask.retrieval.vector_retriever import PUBLIC_ONLY, VectorRetriever
from portfolio_ask.schemas.ask import AskResponse, Citation, SuggestedLink, TierConfig
from portfolio_ask.schemas.chunks import Language, RankedChunk, Visibility

log = get_logger(__name__)

VECTOR = "vector"
LLM_CORPUS = "llm_corpus"
LOCAL = "local"


@dataclass
class PreparedAnswer:
    """
    Everything decided before generation starts.

    Exactly one of ``answer`` (already final text) and ``messages`` (a prompt
    still to be completed) is set. ``fallback`` is the templated answer over
    the same chunks, used when generation fails.
    """
    tier: str
    lang: Language
    ranked: List[RankedChunk]
    citations: List[Citation]
    suggested_links: List[SuggestedLink]
    fallback: str
    answer: Optional[str] = None
    messages: Optional[List[BaseMessage]] = field(default=None, repr=False)

    def response(self, answer: str) -> AskResponse:
        return AskResponse(answer=answer, citations=self.citations, suggested_links=self.suggested_links)


def prepare_local(tier: str, ranked: List[RankedChunk], lang: Language) -> PreparedAnswer:
    if not ranked:
        empty = empty_response(lang)
        return PreparedAnswer(
            tier=tier,
            lang=lang,
            ranked=[],
            citations=empty.citations,
            suggested_links=empty.suggested_links,
            fallback=empty.answer,
            answer=empty.answer,
        )
    answer = render_local_answer(ranked, lang)
    return PreparedAnswer(
        tier=tier,
        lang=lang,
        ranked=ranked,
        citations=build_citations(ranked),
        suggested_links=build_suggested_links(ranked),
        fallback=answer,
        answer=answer,
    )


def prepare_grounded(tier: str, query: str, ranked: List[RankedChunk], lang: Language) -> PreparedAnswer:
    return PreparedAnswer(
        tier=tier,
        lang=lang,
        ranked=ranked,
        citations=build_citations(ranked),
        suggested_links=build_suggested_links(ranked),
        fallback=render_local_answer(ranked, lang),
        messages=build_ask_messages(lang, query, format_sources(ranked)),
    )


class AnswerTier(Protocol):
    name: str

    async def prepare(self, query: str, lang: Language) -> PreparedAnswer: ...

    async def attempt(self, query: str, lang: Language) -> AskResponse: ...


class _LexicalTier:
    name = LOCAL

    def __init__(self, corpus: CorpusLoader, settings: AskSettings):
        self.corpus = corpus
        self.website_doc_id = settings.website_doc_id

    async def rank(self, query: str, lang: Language) -> List[RankedChunk]:
        try:
            chunks = await self.corpus.load(lang)
        except ContentError as e:
            raise TierFailure(self.name, "content_unavailable") from e
        return rank_local(query, chunks, self.website_doc_id)


class LocalCorpusTier(_LexicalTier):
    """Lexical ranking and a templated answer. Needs nothing but the content."""
    name = LOCAL

    async def prepare(self, query: str, lang: Language) -> PreparedAnswer:
        return prepare_local(self.name, await self.rank(query, lang), lang)

    async def attempt(self, query: str, lang: Language) -> AskResponse:
        prepared = await self.prepare(query, lang)
        return prepared.response(prepared.answer)


class _GroundedTier:
    """
    Shared completion handling for the tiers that ask the LLM.

    Only these tiers produce ``PreparedAnswer.messages``, so only they are
    asked to ``stream``.
    """
    name: str

    def __init__(self, completion: CompletionService, settings: AskSettings):
        self.completion = completion
        self.temperature = settings.temperature
        self.max_tokens = settings.max_tokens

    async def complete(self, prepared: PreparedAnswer) -> str:
        return await self.completion.complete(prepared.messages, self.temperature, self.max_tokens)

    def stream(self, prepared: PreparedAnswer) -> AsyncIterator[str]:
        return self.completion.stream(prepared.messages, self.temperature, self.max_tokens)


class LlmCorpusTier(_GroundedTier):
    """
    Lexical ranking and a grounded LLM answer over the top chunks.

    A failed completion degrades to the templated answer over the same
    chunks instead of failing the tier.
    """
    name = LLM_CORPUS

    def __init__(self, corpus: CorpusLoader, completion: CompletionService, settings: AskSettings):
        super().__init__(completion, settings)
        self.lexical = _LexicalTier(corpus, settings)

    async def prepare(self, query: str, lang: Language) -> PreparedAnswer:
        try:
            ranked = await self.lexical.rank(query, lang)
        except TierFailure as e:
            raise TierFailure(self.name, e.reason) from e
        if not ranked:
            return prepare_local(self.name, ranked, lang)
        return prepare_grounded(self.name, query, ranked, lang)

    async def attempt(self, query: str, lang: Language) -> AskResponse:
        prepared = await self.prepare(query, lang)
        if prepared.answer is not None:
            return prepared.response(prepared.answer)
        try:
            return prepared.response(await self.complete(prepared))
        except CompletionError as e:
            log.warning("llm_corpus_degraded_to_template", error=str(e), ranked=len(prepared.ranked))
            return prepared.response(prepared.fallback)


class VectorTier(_GroundedTier):
    """pgvector retrieval and a grounded LLM answer. Any failure fails the tier."""
    name = VECTOR

    def __init__(
        self,
        retriever: VectorRetriever,
        completion: CompletionService,
        settings: AskSettings,
        visibilities: Sequence[Visibility] = PUBLIC_ONLY,
    ):
        super().__init__(completion, settings)
        self.retriever = retriever
        self.visibilities = tuple(visibilities)

    async def prepare(self, query: str, lang: Language) -> PreparedAnswer:
        try:
            ranked = await self.retriever.retrieve(query, lang, self.visibilities)
        except EmbeddingError as e:
            raise TierFailure(self.name, "embedding_failed") from e
        except StorageException as e:
            raise TierFailure(self.name, "vector_store_failed") from e
        return prepare_grounded(self.name, query, ranked, lang)

    async def attempt(self, query: str, lang: Language) -> AskResponse:
        prepared = await self.prepare(query, lang)
        try:
            return prepared.response(await self.complete(prepared))
        except CompletionError as e:
            raise TierFailure(self.name, "completion_failed") from e


def tiers_for(
    config: TierConfig,
    local: LocalCorpusTier,
    llm_corpus: Optional[LlmCorpusTier] = None,
    vector: Optional[VectorTier] = None,
) -> List[AnswerTier]:
    """
    Ordered tiers for the resolved switches. The vector tier is only used
    together with the LLM, and tiers without a backing client are skipped.
    """
    tiers: List[AnswerTier] = []
    if config.llm_enabled and config.vector_enabled and vector is not None:
        tiers.append(vector)
    if config.llm_enabled and llm_corpus is not None:
        tiers.append(llm_corpus)
    tiers.append(local)
    return tiers
