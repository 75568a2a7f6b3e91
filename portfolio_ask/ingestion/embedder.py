from typing import List
from langchain_core.embeddings import Embeddings
from portfolio_ask.config import Settings, EmbeddingProvider
from portfolio_ask.exceptions import EmbeddingError
from portfolio_ask.logging_config import get_logger
from portfolio_ask.observability import track, Phase

log = get_logger(__name__)


def get_embedder(settings: Settings) -> Embeddings:
    """
    Factory to return the configured embedding model.

    Built once per process by the caller (API lifespan, scripts, workflow)
    and reused for queries and re-indexing.
    """
    embedding = settings.embedding
    timeout = settings.timeout.embedding_seconds

    try:
        if embedding.provider == EmbeddingProvider.HUGGINGFACE:
            # Lazy import to avoid hard dependency if using OpenAI
            from langchain_huggingface import HuggingFaceEmbeddings
            log.info("embedder_initialized", provider=embedding.provider.value, model=embedding.model)
            return HuggingFaceEmbeddings(model_name=embedding.model)

        elif embedding.provider == EmbeddingProvider.OPENAI:
            from langchain_openai import OpenAIEmbeddings
            if not settings.embedding_api_key:
                raise EmbeddingError("No API key configured for OpenAI embeddings")
            log.info("embedder_initialized", provider=embedding.provider.value, model=embedding.model)
            return OpenAIEmbeddings(
                model=embedding.model,
                api_key=settings.embedding_api_key,
                dimensions=embedding.dimension,
                request_timeout=timeout
            )

        else:
            raise EmbeddingError(f"Unsupported embedding provider: {embedding.provider.value}")

    except EmbeddingError:
        raise
    except ImportError as e:
        log.error("embedder_import_failed", provider=embedding.provider.value, error=str(e))
        raise EmbeddingError(f"Missing dependency for {embedding.provider.value}: {e}") from e
    except Exception as e:
        log.error("embedder_init_failed", provider=embedding.provider.value, error=str(e))
        raise EmbeddingError(f"Failed to initialize embedder: {e}") from e


@track(name="embed_documents", phase=Phase.INGESTION)
async def embed_documents(embedder: Embeddings, texts: List[str]) -> List[List[float]]:
    """
    Wrapper to embed documents with observability tracking.
    """
    try:
        return await embedder.aembed_documents(texts)
    except Exception as e:
        log.error("document_embedding_failed", texts=len(texts), error=str(e))
        raise EmbeddingError(f"Failed to embed documents: {e}") from e
