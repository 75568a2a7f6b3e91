"""
Custom exception classes for content loading and re-indexing.
"""
from typing import Optional


class ContentError(Exception):
    """Raised when the published content snapshot cannot be loaded or validated."""
    pass

class IngestionException(Exception):
    """Base exception for all ingestion-related errors."""
    pass

class StorageException(Exception):
    """Base exception for all storage-related errors."""
    pass

class DocumentLoadError(IngestionException):
    """Raised when a content asset (e.g. the thesis PDF) cannot be loaded."""
    pass

class ChunkingError(IngestionException):
    """Raised when text chunking fails."""
    pass

class EmbeddingError(IngestionException):
    """Raised when embedding generation fails (network, HTTP, parse)."""
    pass

class DatabaseConnectionError(StorageException):
    """Raised when database connection fails."""
    pass

class VectorStoreError(StorageException):
    """Raised when a similarity search against the vector store fails."""
    pass


"""
Custom exception classes for LLM usage.
"""
class LLMError(Exception):
    """Base exception for LLM-related errors."""
    pass

class CompletionError(LLMError):
    """A completion (or completion stream) failed or came back empty."""
    pass

class LLMRateLimitError(CompletionError):
    """LLM API rate limit exceeded."""
    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after

class LLMTimeoutError(CompletionError):
    """LLM API call timed out."""
    pass


"""
Tier failures: recovered by falling back to the next answer tier.
"""
class TierFailure(Exception):
    """An answer tier could not produce a result."""
    def __init__(self, tier: str, reason: str):
        super().__init__(f"{tier}: {reason}")
        self.tier = tier
        self.reason = reason

class VectorRetrievalError(TierFailure):
    """Vector retrieval failed or selected nothing."""
    def __init__(self, reason: str):
        super().__init__("vector", reason)

class TemporalMismatchError(VectorRetrievalError):
    """The query names years that none of the retrieved chunks mention."""
    def __init__(self, years: list[str]):
        super().__init__("temporal_mismatch")
        self.years = years

class AllTiersFailedError(Exception):
    """Every configured tier failed; the caller cannot answer right now."""
    def __init__(self, failures: list[TierFailure]):
        super().__init__("all answer tiers failed")
        self.failures = failures
