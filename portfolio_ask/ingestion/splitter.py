from typing import List
from langchain_text_splitters import RecursiveCharacterTextSplitter
from portfolio_ask.exceptions import ChunkingError
from portfolio_ask.logging_config import get_logger
from portfolio_ask.schemas.chunks import Chunk

log = get_logger(__name__)

# Hierarchy of splits: paragraphs, lines, sentences, words
SEPARATORS = ["\n\n", "\n", ". ", " ", ""]


def split_text(text: str, chunk_size: int = 1200, chunk_overlap: int = 150) -> List[str]:
    """
    Split text into overlapping blocks of at most ``chunk_size`` characters.

    Args:
        text: Raw section or document text
        chunk_size: Target size of each block in characters
        chunk_overlap: Characters shared between neighbouring blocks

    Returns:
        Non-empty, stripped blocks (empty input gives an empty list)
    """
    if not text or not text.strip():
        return []
    try:
        splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            length_function=len,
            separators=SEPARATORS,
        )
        blocks = splitter.split_text(text.strip())
    except Exception as e:
        raise ChunkingError(f"Failed to split text: {e}") from e
    return [b.strip() for b in blocks if b.strip()]


def split_section(chunk: Chunk, chunk_size: int = 1200, chunk_overlap: int = 150) -> List[Chunk]:
    """
    Split one section chunk for embedding.

    A section that fits keeps its ``section_id``; longer sections become
    ``<section_id>:0``, ``<section_id>:1``, ... so row ids stay unique.
    """
    blocks = split_text(chunk.content, chunk_size, chunk_overlap)
    if len(blocks) <= 1:
        return [chunk] if blocks else []
    return [
        chunk.model_copy(update={"section_id": f"{chunk.section_id}:{i}", "content": block})
        for i, block in enumerate(blocks)
    ]
