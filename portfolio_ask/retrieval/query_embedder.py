"""Query embedding for retrieval."""
import time
from langchain_core.embeddings import Embeddings
from portfolio_ask.exceptions import EmbeddingError
from portfolio_ask.logging_config import get_logger
from portfolio_ask.observability import track, Phase

log = get_logger(__name__)


class QueryEmbedder:
    """
    Convert query text to an embedding vector.

    Wraps the same LangChain embedder the re-index uses, so queries and
    stored chunks live in the same vector space.
    """

    def __init__(self, embeddings: Embeddings, dimension: int):
        self.embeddings = embeddings
        self.dimension = dimension

    @track(name="embed_query", phase=Phase.RETRIEVAL)
    async def embed(self, text: str) -> list[float]:
        """
        Raises:
            EmbeddingError: empty input, provider failure or wrong dimension
        """
        if not text or not text.strip():
            raise EmbeddingError("Cannot embed empty query")

        start_time = time.perf_counter()

        try:
            # aembed_query is the async LangChain method for single text
            embedding = await self.embeddings.aembed_query(text)
        except Exception as e:
            log.error("query_embedding_failed", error=str(e), error_type=type(e).__name__)
            raise EmbeddingError(f"Failed to embed query: {e}") from e

        if not isinstance(embedding, (list, tuple)) or len(embedding) != self.dimension:
            got = len(embedding) if isinstance(embedding, (list, tuple)) else type(embedding).__name__
            raise EmbeddingError(f"Dimension mismatch: got {got}, expected {self.dimension}")

        latency_ms = (time.perf_counter() - start_time) * 1000
        log.info("query_embedded", dimension=len(embedding), latency_ms=round(latency_ms, 2))

        return [float(x) for x in embedding]
