"""Capped selection so one document (or topic group) cannot crowd out the rest."""
from collections import Counter
from typing import List, Sequence

from portfolio_ask.retrieval.intent import QueryIntent, doc_group
from portfolio_ask.schemas.chunks import RankedChunk

WEBSITE_CAPS = (3, 5)
DEFAULT_CAPS = (2, 4)


def caps_for_intent(intent: QueryIntent) -> tuple[int, int]:
    """(max_per_doc, max_per_group); deep dives are fine for the website case study."""
    return WEBSITE_CAPS if intent.website else DEFAULT_CAPS


def select_diverse(
    ranked: Sequence[RankedChunk],
    k: int,
    max_per_doc: int,
    max_per_group: int,
) -> List[RankedChunk]:
    """Walk ``ranked`` in order and keep candidates under both caps, up to ``k``."""
    per_doc: Counter = Counter()
    per_group: Counter = Counter()
    selected: List[RankedChunk] = []

    for chunk in ranked:
        if len(selected) >= k:
            break
        group = doc_group(chunk.doc_id)
        if per_doc[chunk.doc_id] >= max_per_doc or per_group[group] >= max_per_group:
            continue
        per_doc[chunk.doc_id] += 1
        per_group[group] += 1
        selected.append(chunk)

    return selected


def select_per_doc(ranked: Sequence[RankedChunk], k: int, max_per_doc: int) -> List[RankedChunk]:
    per_doc: Counter = Counter()
    selected: List[RankedChunk] = []

    for chunk in ranked:
        if len(selected) >= k:
            break
        if per_doc[chunk.doc_id] >= max_per_doc:
            continue
        per_doc[chunk.doc_id] += 1
        selected.append(chunk)

    return selected
