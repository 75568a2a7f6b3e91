from typing import Dict, List, Sequence
from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert

from portfolio_ask.db.db_manager import DatabaseManager
from portfolio_ask.models.rag_chunk import RagChunk
from portfolio_ask.exceptions import StorageException
from portfolio_ask.logging_config import get_logger
from portfolio_ask.observability import track, Phase

log = get_logger(__name__)

UPDATABLE_COLUMNS = ("doc_id", "title", "href", "section_id", "lang", "visibility", "content", "content_hash", "embedding")


async def get_existing_hashes(db: DatabaseManager) -> Dict[str, str]:
    """Row id -> content hash for everything currently stored."""
    try:
        async with db.get_session() as session:
            result = await session.execute(select(RagChunk.id, RagChunk.content_hash))
            return {row.id: row.content_hash for row in result}
    except Exception as e:
        log.error("existing_hashes_failed", error=str(e))
        raise StorageException(f"Database error: {e}") from e


@track(name="upsert_chunks", phase=Phase.INGESTION)
async def upsert_chunks(db: DatabaseManager, rows: List[dict]) -> int:
    """
    Idempotent save: insert new rows, overwrite rows whose id already exists.

    Each row holds the ``RagChunk`` columns (id, doc_id, ..., content_hash, embedding).
    """
    if not rows:
        return 0
    stmt = insert(RagChunk).values(rows)
    stmt = stmt.on_conflict_do_update(
        index_elements=[RagChunk.id],
        set_={col: stmt.excluded[col] for col in UPDATABLE_COLUMNS} | {"updated_at": func.now()},
    )
    try:
        async with db.get_session() as session:
            await session.execute(stmt)
    except Exception as e:
        log.error("upsert_failed", rows=len(rows), error=str(e))
        raise StorageException(f"Database error: {e}") from e

    log.info("chunks_upserted", rows=len(rows))
    return len(rows)


async def prune_missing(db: DatabaseManager, keep_ids: Sequence[str]) -> int:
    """Delete stored rows whose id is not in ``keep_ids``."""
    try:
        async with db.get_session() as session:
            result = await session.execute(
                delete(RagChunk).where(RagChunk.id.not_in(list(keep_ids)))
            )
            deleted = result.rowcount or 0
    except Exception as e:
        log.error("prune_failed", error=str(e))
        raise StorageException(f"Database error: {e}") from e

    log.info("chunks_pruned", deleted=deleted, kept=len(keep_ids))
    return deleted
