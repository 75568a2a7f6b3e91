"""
Wires the ask service from settings.

Used by the REST API lifespan, the MCP server and the scripts so every entry
point builds the same collaborators the same way.
"""
from dataclasses import dataclass
from typing import Optional

from portfolio_ask.ask.service import AskService
from portfolio_ask.config import Settings
from portfolio_ask.content.provider import JsonContentProvider
from portfolio_ask.db.db_manager import DatabaseManager
from portfolio_ask.exceptions import EmbeddingError, LLMError
from portfolio_ask.generation.completion import CompletionService
from portfolio_ask.generation.llm_factory import get_llm
from portfolio_ask.ingestion.embedder import get_embedder
from portfolio_ask.logging_config import get_logger
from portfolio_ask.retrieval.query_embedder import QueryEmbedder
from portfolio_ask.retrieval.similarity_search import VectorStore
from portfolio_ask.retrieval.vector_retriever import VectorRetriever
from portfolio_ask.schemas.ask import TierConfig

log = get_logger(__name__)


@dataclass
class AppComponents:
    settings: Settings
    service: AskService
    db: Optional[DatabaseManager] = None

    def tier_config(self) -> TierConfig:
        return self.settings.tier_config()

    async def close(self) -> None:
        if self.db is not None:
            await self.db.dispose()


def build_components(settings: Settings) -> AppComponents:
    """
    Build the service and whatever optional clients the configuration allows.

    A client that cannot be initialized (bad key, missing provider package)
    is logged and left out; the tiers that need it are skipped at request time.
    """
    log.info("bootstrap_started")
    config = settings.tier_config()
    content = JsonContentProvider(settings.ask.content_path, settings.ask.private_profile_paths)

    db = DatabaseManager(settings.database_url) if settings.database_url else None

    completion = None
    if config.llm_enabled:
        try:
            completion = CompletionService(get_llm(settings))
        except LLMError as e:
            log.error("bootstrap_llm_unavailable", error=str(e))

    retriever = None
    if config.vector_enabled and completion is not None and db is not None:
        try:
            embedder = QueryEmbedder(get_embedder(settings), settings.embedding.dimension)
        except EmbeddingError as e:
            log.error("bootstrap_embedder_unavailable", error=str(e))
        else:
            store = VectorStore(db, settings.timeout.db_seconds)
            retriever = VectorRetriever(embedder, store, settings.ask)

    log.info(
        "bootstrap_completed",
        llm=completion is not None,
        vector=retriever is not None,
        database=db is not None,
    )
    return AppComponents(
        settings=settings,
        service=AskService(content, settings.ask, retriever=retriever, completion=completion),
        db=db,
    )
