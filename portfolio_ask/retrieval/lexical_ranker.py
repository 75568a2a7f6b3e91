"""
Lexical ranker: term overlap plus intent routing over the in-memory corpus.

Works without any external service, which makes it the retrieval step of
both fallback tiers.
"""
from typing import List, Sequence

from portfolio_ask.logging_config import get_logger
from portfolio_ask.observability import Phase, track
from portfolio_ask.retrieval.diversify import caps_for_intent, select_diverse
from portfolio_ask.retrieval.intent import QueryIntent, classify_intent, intent_boost
from portfolio_ask.retrieval.tokenizer import has_prefix_match, query_tokens, tokenize
from portfolio_ask.schemas.chunks import Chunk, RankedChunk

log = get_logger(__name__)

EXACT_WEIGHT = 2.0
PARTIAL_WEIGHT = 0.75
EXACT_RATIO_WEIGHT = 1.1
PARTIAL_RATIO_WEIGHT = 0.45
HREF_BONUS = 0.1
LONG_CONTENT_CHARS = 1600
LONG_CONTENT_PENALTY = 0.2
MIN_SCORE = 0.35
LOCAL_TARGET = 10


def score_chunk(
    tokens: Sequence[str],
    chunk: Chunk,
    intent: QueryIntent,
    website_doc_id: str,
) -> float:
    vocabulary = set(tokenize(chunk.searchable_text))

    exact = [t for t in tokens if t in vocabulary]
    partial = [t for t in tokens if t not in vocabulary and has_prefix_match(t, vocabulary)]

    score = len(exact) * EXACT_WEIGHT + len(partial) * PARTIAL_WEIGHT
    if tokens:
        score += len(exact) / len(tokens) * EXACT_RATIO_WEIGHT
        score += len(partial) / len(tokens) * PARTIAL_RATIO_WEIGHT
    if chunk.href:
        score += HREF_BONUS
    score += intent_boost(intent, chunk, website_doc_id)
    if len(chunk.content) > LONG_CONTENT_CHARS:
        score -= LONG_CONTENT_PENALTY
    return score


def rank_corpus(
    query: str,
    chunks: Sequence[Chunk],
    website_doc_id: str,
) -> tuple[List[RankedChunk], QueryIntent]:
    """
    Score every chunk, drop those at or below the floor and sort descending.

    ``sorted`` is stable, so equal scores keep corpus order.
    """
    tokens = query_tokens(query)
    intent = classify_intent(query, tokens)

    scored = []
    for chunk in chunks:
        score = score_chunk(tokens, chunk, intent, website_doc_id)
        if score > MIN_SCORE:
            scored.append(RankedChunk.from_chunk(chunk, score=score))

    ranked = sorted(scored, key=lambda c: c.score, reverse=True)
    return ranked, intent


@track(name="rank_local", phase=Phase.RANKING)
def rank_local(
    query: str,
    chunks: Sequence[Chunk],
    website_doc_id: str,
    target: int = LOCAL_TARGET,
) -> List[RankedChunk]:
    ranked, intent = rank_corpus(query, chunks, website_doc_id)
    max_per_doc, max_per_group = caps_for_intent(intent)
    selected = select_diverse(ranked, target, max_per_doc, max_per_group)

    log.debug(
        "lexical_ranking_complete",
        corpus_size=len(chunks),
        scored=len(ranked),
        selected=len(selected),
        website_intent=intent.website,
        top_score=round(selected[0].score, 3) if selected else None,
    )
    return selected
