"""Similarity search using pgvector."""
import asyncio
import math
import time
from typing import Sequence
from sqlalchemy import text
from portfolio_ask.db.db_manager import DatabaseManager
from portfolio_ask.exceptions import VectorStoreError
from portfolio_ask.logging_config import get_logger
from portfolio_ask.schemas.chunks import Chunk, Language, Visibility

log = get_logger(__name__)

SEARCH_SQL = text("""
    SELECT
        doc_id,
        title,
        href,
        section_id,
        lang,
        visibility,
        content,
        embedding <=> CAST(:query_embedding AS vector) AS distance
    FROM rag_chunks
    WHERE lang = :lang
      AND visibility = ANY(:visibilities)
    ORDER BY embedding <=> CAST(:query_embedding AS vector)
    LIMIT :top_k
""")


class VectorHit(Chunk):
    """A stored chunk with its cosine distance to the query."""
    cosine_distance: float


def cosine_similarity(distance: float) -> float:
    """1 - cosine distance; a non-finite distance counts as maximally dissimilar."""
    if distance is None or not math.isfinite(distance):
        return -1.0
    return 1.0 - distance


class VectorStore:
    """Read-only view of the ``rag_chunks`` table."""

    def __init__(self, db_manager: DatabaseManager, timeout_seconds: float):
        self.db_manager = db_manager
        self.timeout_seconds = timeout_seconds

    async def search(
        self,
        embedding: list[float],
        lang: Language,
        top_k: int,
        visibilities: Sequence[Visibility] = (Visibility.PUBLIC,),
    ) -> list[VectorHit]:
        """
        Nearest chunks by cosine distance, filtered by language and visibility.

        Raises:
            VectorStoreError: query failure or timeout
        """
        start_time = time.perf_counter()
        params = {
            "query_embedding": str(embedding),
            "lang": lang.value,
            "visibilities": [v.value for v in visibilities],
            "top_k": top_k,
        }

        try:
            rows = await asyncio.wait_for(self._fetch(params), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            log.error("similarity_search_timeout", timeout_seconds=self.timeout_seconds)
            raise VectorStoreError(f"Similarity search timed out after {self.timeout_seconds}s") from e
        except Exception as e:
            log.error("similarity_search_failed", error=str(e))
            raise VectorStoreError(f"Similarity search failed: {e}") from e

        hits = [
            VectorHit(
                doc_id=row.doc_id,
                title=row.title,
                href=row.href,
                section_id=row.section_id,
                lang=row.lang,
                visibility=row.visibility,
                content=row.content,
                cosine_distance=float(row.distance) if row.distance is not None else math.nan,
            )
            for row in rows
        ]

        latency_ms = (time.perf_counter() - start_time) * 1000
        log.info(
            "similarity_search_completed",
            top_k=top_k,
            results_returned=len(hits),
            latency_ms=round(latency_ms, 2)
        )
        return hits

    async def _fetch(self, params: dict):
        async with self.db_manager.get_session() as session:
            result = await session.execute(SEARCH_SQL, params)
            return result.fetchall()
