"""
Builds the rows the vector store should hold, and decides which ones changed.

Pure functions: the re-index workflow does the I/O around them.
"""
import hashlib
from typing import Dict, List, Optional, Sequence, Tuple

from portfolio_ask.content.schemas import ContentSnapshot
from portfolio_ask.ingestion.splitter import split_section, split_text
from portfolio_ask.retrieval.corpus import build_corpus
from portfolio_ask.schemas.chunks import Chunk, Language, Visibility

PDF_CHUNK_CHARS = 1400
PRIVATE_PROFILE_DOC_ID = "private_profile"
PRIVATE_PROFILE_TITLES = {Language.DE: "Privates Profil", Language.EN: "Private profile"}
THESIS_PDF_DOC_ID = "thesis:pdf"


def chunk_row_id(chunk: Chunk) -> str:
    """``doc_id:section_id:lang:visibility``"""
    return ":".join(chunk.key)


def content_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def _pdf_chunks(snapshot: ContentSnapshot, pdf_text: str, lang: Language, chunk_overlap: int) -> List[Chunk]:
    return [
        Chunk(
            doc_id=THESIS_PDF_DOC_ID,
            title=snapshot.thesis.title.get(lang),
            href=f"/{lang.value}/thesis",
            section_id=f"pdf:{i}",
            lang=lang,
            visibility=Visibility.PUBLIC,
            content=block,
        )
        for i, block in enumerate(split_text(pdf_text, PDF_CHUNK_CHARS, chunk_overlap))
    ]


def _private_profile_chunks(snapshot: ContentSnapshot, lang: Language, chunk_overlap: int) -> List[Chunk]:
    if snapshot.private_profile is None:
        return []
    return [
        Chunk(
            doc_id=PRIVATE_PROFILE_DOC_ID,
            title=PRIVATE_PROFILE_TITLES[lang],
            href=None,
            section_id=f"chunk:{i}",
            lang=lang,
            visibility=Visibility.PRIVATE,
            content=block,
        )
        for i, block in enumerate(split_text(snapshot.private_profile.get(lang), PDF_CHUNK_CHARS, chunk_overlap))
    ]


def build_index_chunks(
    snapshot: ContentSnapshot,
    pdf_text: Optional[str] = None,
    chunk_size: int = 1200,
    chunk_overlap: int = 150,
) -> List[Chunk]:
    """
    Every chunk to embed, for both languages.

    The public corpus (split to ``chunk_size``), then the thesis PDF text if
    it was loaded, then the private profile (``private``, no link).
    """
    chunks: List[Chunk] = []
    for lang in (Language.DE, Language.EN):
        for chunk in build_corpus(snapshot, lang):
            chunks.extend(split_section(chunk, chunk_size, chunk_overlap))
        if pdf_text:
            chunks.extend(_pdf_chunks(snapshot, pdf_text, lang, chunk_overlap))
        chunks.extend(_private_profile_chunks(snapshot, lang, chunk_overlap))
    return chunks


def select_changed(
    chunks: Sequence[Chunk],
    existing_hashes: Dict[str, str],
) -> Tuple[List[Tuple[Chunk, str]], int]:
    """
    Chunks whose content hash differs from the stored one (or that are new).

    Returns:
        ``(changed, skipped)`` where ``changed`` pairs each chunk with its hash
    """
    changed = []
    for chunk in chunks:
        digest = content_hash(chunk.content)
        if existing_hashes.get(chunk_row_id(chunk)) != digest:
            changed.append((chunk, digest))
    return changed, len(chunks) - len(changed)
