"""Vector retrieval: embed, search, blend with lexical evidence, cap per document."""
from typing import Protocol, Sequence

from portfolio_ask.config import AskSettings
from portfolio_ask.exceptions import TemporalMismatchError, VectorRetrievalError
from portfolio_ask.logging_config import get_logger
from portfolio_ask.observability import Phase, track
from portfolio_ask.retrieval.diversify import select_per_doc
from portfolio_ask.retrieval.similarity_search import VectorHit, cosine_similarity
from portfolio_ask.retrieval.tokenizer import extract_years, lexical_hit_rate, query_tokens
from portfolio_ask.schemas.chunks import Language, RankedChunk, Visibility

log = get_logger(__name__)

COSINE_WEIGHT = 0.72
LEXICAL_WEIGHT = 0.28
HREF_BONUS = 0.02
LEXICAL_RESCUE = 0.2

PUBLIC_ONLY = (Visibility.PUBLIC,)
# Grounded answers may cite the private profile; snippets are redacted downstream
GROUNDED_VISIBILITIES = (Visibility.PUBLIC, Visibility.PRIVATE)


class Embedder(Protocol):
    async def embed(self, text: str) -> list[float]: ...


class SimilaritySearch(Protocol):
    async def search(
        self,
        embedding: list[float],
        lang: Language,
        top_k: int,
        visibilities: Sequence[Visibility] = ...,
    ) -> list[VectorHit]: ...


class VectorRetriever:
    def __init__(self, embedder: Embedder, store: SimilaritySearch, settings: AskSettings):
        self.embedder = embedder
        self.store = store
        self.final_k = settings.top_k
        self.candidates_k = settings.effective_candidates_k
        self.max_per_doc = settings.max_per_doc
        self.min_cosine = settings.min_cosine_similarity

    @track(name="vector_retrieve", phase=Phase.RETRIEVAL)
    async def retrieve(
        self,
        query: str,
        lang: Language,
        visibilities: Sequence[Visibility] = PUBLIC_ONLY,
    ) -> list[RankedChunk]:
        """
        Embed → search ``candidates_k`` → blend → floor → per-doc cap → year guard.

        Raises:
            EmbeddingError / VectorStoreError: from the collaborators
            TemporalMismatchError: the query names years no selected chunk mentions
            VectorRetrievalError: nothing survived selection
        """
        embedding = await self.embedder.embed(query)
        hits = await self.store.search(embedding, lang, self.candidates_k, visibilities)

        tokens = query_tokens(query)
        candidates = []
        for hit in hits:
            cosine = cosine_similarity(hit.cosine_distance)
            lexical = lexical_hit_rate(tokens, hit.searchable_text)
            if self.min_cosine is not None and cosine < self.min_cosine and lexical < LEXICAL_RESCUE:
                continue
            score = cosine * COSINE_WEIGHT + lexical * LEXICAL_WEIGHT
            if hit.href:
                score += HREF_BONUS
            candidates.append(RankedChunk.from_chunk(
                hit,
                score=score,
                cosine_similarity=cosine,
                lexical_hit_rate=lexical,
            ))

        ranked = sorted(candidates, key=lambda c: c.score, reverse=True)
        selected = select_per_doc(ranked, self.final_k, self.max_per_doc)

        if not selected:
            log.warning("vector_retrieval_empty", candidates=len(hits))
            raise VectorRetrievalError("no_results")

        years = extract_years(query)
        # Substring match: "FY2021" and "2021er" cover 2021
        if years and not any(
            year in chunk.searchable_text for chunk in selected for year in years
        ):
            log.info("vector_retrieval_temporal_mismatch", years=years, selected=len(selected))
            raise TemporalMismatchError(years)

        log.info(
            "vector_retrieval_completed",
            candidates=len(hits),
            kept=len(candidates),
            selected=len(selected),
            top_score=round(selected[0].score, 3),
        )
        return selected
