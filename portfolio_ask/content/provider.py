"""Content providers: the corpus builder's only input."""
import asyncio
from pathlib import Path
from typing import Protocol, Sequence

from pydantic import ValidationError

from portfolio_ask.content.schemas import ContentSnapshot, LocalizedText
from portfolio_ask.exceptions import ContentError
from portfolio_ask.logging_config import get_logger

log = get_logger(__name__)

PRIVATE_PROFILE_SEPARATOR = "\n\n---\n\n"


class ContentProvider(Protocol):
    async def load_snapshot(self) -> ContentSnapshot: ...


class StaticContentProvider:
    """Serves an already validated snapshot."""

    def __init__(self, snapshot: ContentSnapshot):
        self.snapshot = snapshot

    async def load_snapshot(self) -> ContentSnapshot:
        return self.snapshot


class JsonContentProvider:
    """
    Reads the published snapshot from a JSON export on every call, so edits
    are picked up without a restart.

    Optional private profile markdown files are merged into
    ``private_profile`` (the same text serves both languages). Missing
    profile files are skipped; a missing or invalid snapshot is an error.
    """

    def __init__(self, path: str | Path, private_profile_paths: Sequence[str | Path] = ()):
        self.path = Path(path)
        # Preserve order, drop duplicates
        self.private_profile_paths = list(dict.fromkeys(Path(p) for p in private_profile_paths))

    async def load_snapshot(self) -> ContentSnapshot:
        return await asyncio.to_thread(self._load)

    def _load(self) -> ContentSnapshot:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            log.error("content_read_failed", path=str(self.path), error=str(e))
            raise ContentError(f"Cannot read content snapshot {self.path}: {e}") from e

        try:
            snapshot = ContentSnapshot.model_validate_json(raw)
        except ValidationError as e:
            log.error("content_invalid", path=str(self.path), errors=e.error_count())
            raise ContentError(f"Invalid content snapshot {self.path}: {e}") from e

        profile = self._read_private_profile()
        if profile is not None:
            snapshot = snapshot.model_copy(update={"private_profile": profile})

        log.debug(
            "content_loaded",
            case_studies=len(snapshot.case_studies),
            experience=len(snapshot.experience),
            private_profile=snapshot.private_profile is not None,
        )
        return snapshot

    def _read_private_profile(self) -> LocalizedText | None:
        parts = []
        for path in self.private_profile_paths:
            try:
                text = path.read_text(encoding="utf-8").strip()
            except OSError:
                log.debug("private_profile_missing", path=str(path))
                continue
            if text:
                parts.append(text)
        if not parts:
            return None
        merged = PRIVATE_PROFILE_SEPARATOR.join(parts)
        return LocalizedText(de=merged, en=merged)
