from datetime import datetime, timezone
from sqlalchemy import Column, DateTime, Index, String, Text
from pgvector.sqlalchemy import Vector
from portfolio_ask.models.base import Base
from portfolio_ask.config import get_settings

# Get dimension from config at module level.
# The table schema depends on the env vars loaded when tables are created.
EMBEDDING_DIM = get_settings().embedding.dimension


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RagChunk(Base):
    """
    One embedded chunk of the published corpus (plus private-only content).

    ``id`` is ``doc_id:section_id:lang:visibility``; ``content_hash`` lets a
    re-index skip chunks whose text did not change.
    """
    __tablename__ = "rag_chunks"

    id = Column(Text, primary_key=True)
    doc_id = Column(Text, nullable=False, index=True)
    title = Column(Text, nullable=False)
    href = Column(Text, nullable=True)
    section_id = Column(Text, nullable=False)
    lang = Column(String(2), nullable=False)
    visibility = Column(String(16), nullable=False, server_default="public")
    content = Column(Text, nullable=False)
    content_hash = Column(String(64), nullable=False)

    embedding = Column(Vector(EMBEDDING_DIM), nullable=False)

    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("ix_rag_chunks_lang_visibility", "lang", "visibility"),
    )
