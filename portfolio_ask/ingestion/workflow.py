"""
DBOS workflow for re-indexing the vector store.

Build every chunk from the published snapshot, diff content hashes against
what is stored, optionally prune rows that no longer exist, then embed and
upsert only the changed chunks in batches. Each step is checkpointed, so a
crash after some batches resumes with the next batch instead of re-embedding
everything.
"""
from pathlib import Path
from typing import List, Optional

from dbos import DBOS, DBOSConfig
from langchain_core.embeddings import Embeddings

from portfolio_ask.config import get_settings
from portfolio_ask.content.provider import JsonContentProvider
from portfolio_ask.content.schemas import ContentSnapshot
from portfolio_ask.db.db_manager import DatabaseManager
from portfolio_ask.exceptions import DocumentLoadError, StorageException
from portfolio_ask.ingestion.embedder import embed_documents, get_embedder
from portfolio_ask.ingestion.indexer import build_index_chunks, chunk_row_id, select_changed
from portfolio_ask.ingestion.pdf_loader import load_pdf_text, resolve_asset_path
from portfolio_ask.ingestion.storage import get_existing_hashes, prune_missing, upsert_chunks
from portfolio_ask.logging_config import get_logger
from portfolio_ask.schemas.chunks import Chunk

log = get_logger(__name__)

# --- DBOS Configuration ---
_dbos_settings = get_settings().dbos
config: DBOSConfig = {
    "name": "portfolio-ask",
    "system_database_url": _dbos_settings.system_database_url or None,
    "conductor_key": _dbos_settings.conductor_key or None,
    "conductor_url": _dbos_settings.conductor_url or None,
}
DBOS(config=config)

_db: Optional[DatabaseManager] = None
_embedder: Optional[Embeddings] = None


def configure_reindex(db: DatabaseManager, embedder: Optional[Embeddings] = None) -> None:
    """Hand the workflow its database (and optionally a prebuilt embedder)."""
    global _db, _embedder
    _db = db
    _embedder = embedder


def _database() -> DatabaseManager:
    if _db is None:
        raise StorageException("Re-index database is not configured; call configure_reindex() first")
    return _db


def _get_embedder() -> Embeddings:
    global _embedder
    if _embedder is None:
        _embedder = get_embedder(get_settings())
    return _embedder


# --- Steps ---
@DBOS.step()
async def load_snapshot_step() -> dict:
    """Read and validate the published snapshot. Returns a serializable dict."""
    ask = get_settings().ask
    provider = JsonContentProvider(ask.content_path, ask.private_profile_paths)
    snapshot = await provider.load_snapshot()
    return snapshot.model_dump(mode="json")


@DBOS.step()
def load_thesis_pdf_step(pdf_path: Optional[str], content_path: str) -> Optional[str]:
    """Thesis PDF text, or None when there is no readable local PDF."""
    if not pdf_path:
        return None
    file_path = resolve_asset_path(pdf_path, Path(content_path).parent)
    if file_path is None:
        return None
    try:
        return load_pdf_text(file_path)
    except DocumentLoadError as e:
        log.warning("thesis_pdf_skipped", path=str(file_path), error=str(e))
        return None


@DBOS.step()
def build_chunks_step(snapshot_dict: dict, pdf_text: Optional[str]) -> List[dict]:
    ingest = get_settings().ingest
    snapshot = ContentSnapshot.model_validate(snapshot_dict)
    chunks = build_index_chunks(snapshot, pdf_text, ingest.chunk_size, ingest.chunk_overlap)
    return [c.model_dump(mode="json") for c in chunks]


@DBOS.step()
async def existing_hashes_step() -> dict:
    return await get_existing_hashes(_database())


@DBOS.step()
async def prune_step(keep_ids: List[str]) -> int:
    return await prune_missing(_database(), keep_ids)


@DBOS.step(retries_allowed=True, max_attempts=3, backoff_rate=2.0)
async def embed_step(texts: List[str]) -> List[List[float]]:
    """Embed texts with retry for transient API failures."""
    return await embed_documents(_get_embedder(), texts)


@DBOS.step()
async def upsert_step(rows: List[dict]) -> int:
    return await upsert_chunks(_database(), rows)


# --- Workflow ---
@DBOS.workflow()
async def reindex_workflow(run_id: str) -> dict:
    """
    Durable re-index of the whole corpus.

    Returns:
        ``{run_id, total, skipped, upserted, deleted}``
    """
    settings = get_settings()

    snapshot_dict = await load_snapshot_step()
    pdf_text = load_thesis_pdf_step(
        snapshot_dict.get("thesis", {}).get("pdf_path"),
        settings.ask.content_path,
    )
    chunk_dicts = build_chunks_step(snapshot_dict, pdf_text)
    chunks = [Chunk.model_validate(c) for c in chunk_dicts]
    DBOS.set_event("chunks_built", len(chunks))

    existing = await existing_hashes_step()
    changed, skipped = select_changed(chunks, existing)

    deleted = 0
    if settings.ingest.prune_missing:
        deleted = await prune_step([chunk_row_id(c) for c in chunks])

    upserted = 0
    batch_size = max(1, settings.ingest.embed_batch_size)
    for start in range(0, len(changed), batch_size):
        batch = changed[start:start + batch_size]
        embeddings = await embed_step([chunk.content for chunk, _ in batch])
        rows = [
            {
                "id": chunk_row_id(chunk),
                "doc_id": chunk.doc_id,
                "title": chunk.title,
                "href": chunk.href,
                "section_id": chunk.section_id,
                "lang": chunk.lang.value,
                "visibility": chunk.visibility.value,
                "content": chunk.content,
                "content_hash": digest,
                "embedding": embedding,
            }
            for (chunk, digest), embedding in zip(batch, embeddings)
        ]
        upserted += await upsert_step(rows)
        DBOS.set_event("chunks_upserted", upserted)

    result = {
        "run_id": run_id,
        "total": len(chunks),
        "skipped": skipped,
        "upserted": upserted,
        "deleted": deleted,
    }
    log.info("reindex_completed", **result)
    return result
