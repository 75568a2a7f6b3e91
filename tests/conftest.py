from pathlib import Path
from typing import AsyncIterator, List, Optional

import pytest

from portfolio_ask.config import AskSettings
from portfolio_ask.content.provider import StaticContentProvider
from portfolio_ask.content.schemas import ContentSnapshot, LocalizedText
from portfolio_ask.exceptions import CompletionError
from portfolio_ask.retrieval.similarity_search import VectorHit
from portfolio_ask.schemas.chunks import Chunk, Language, RankedChunk, Visibility

SNAPSHOT_PATH = Path(__file__).resolve().parent.parent / "data" / "portfolio.json"


@pytest.fixture
def snapshot() -> ContentSnapshot:
    """The sample portfolio shipped in data/portfolio.json."""
    return ContentSnapshot.model_validate_json(SNAPSHOT_PATH.read_text(encoding="utf-8"))


@pytest.fixture
def snapshot_with_profile(snapshot) -> ContentSnapshot:
    profile = "Reach me at jane.doe@example.com or +43 660 1234567. I moved to Vienna in 2019."
    return snapshot.model_copy(update={"private_profile": LocalizedText(de=profile, en=profile)})


@pytest.fixture
def content(snapshot) -> StaticContentProvider:
    return StaticContentProvider(snapshot)


@pytest.fixture
def ask_settings() -> AskSettings:
    return AskSettings()


def make_chunk(
    doc_id: str,
    section_id: str = "summary",
    content: str = "Some content",
    title: str = "Title",
    href: Optional[str] = "/en/projects/x",
    visibility: Visibility = Visibility.PUBLIC,
    lang: Language = Language.EN,
) -> Chunk:
    return Chunk(
        doc_id=doc_id,
        title=title,
        href=href,
        section_id=section_id,
        lang=lang,
        visibility=visibility,
        content=content,
    )


def make_ranked(doc_id: str, score: float, section_id: str = "summary", **kwargs) -> RankedChunk:
    return RankedChunk.from_chunk(make_chunk(doc_id, section_id=section_id, **kwargs), score=score)


def make_hit(doc_id: str, distance: float, section_id: str = "summary", **kwargs) -> VectorHit:
    return VectorHit(**make_chunk(doc_id, section_id=section_id, **kwargs).model_dump(), cosine_distance=distance)


class FakeEmbedder:
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.calls: List[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.error:
            raise self.error
        return [0.1, 0.2, 0.3]


class FakeStore:
    def __init__(self, hits: List[VectorHit], error: Optional[Exception] = None):
        self.hits = hits
        self.error = error
        self.calls: List[dict] = []

    async def search(self, embedding, lang, top_k, visibilities=(Visibility.PUBLIC,)):
        self.calls.append({"lang": lang, "top_k": top_k, "visibilities": tuple(visibilities)})
        if self.error:
            raise self.error
        return list(self.hits)


class FakeCompletion:
    """Stands in for CompletionService; records the prompts it was given."""

    def __init__(
        self,
        answer: str = "**Short answer:** grounded.",
        deltas: Optional[List[str]] = None,
        fail: bool = False,
        fail_after: Optional[int] = None,
    ):
        self.answer = answer
        self.deltas = deltas if deltas is not None else ["**Short ", "answer:** ", "grounded."]
        self.fail = fail
        self.fail_after = fail_after
        self.calls: List[list] = []
        self.stream_closed = False

    async def complete(self, messages, temperature, max_tokens) -> str:
        self.calls.append(messages)
        if self.fail:
            raise CompletionError("provider down")
        return self.answer

    async def stream(self, messages, temperature, max_tokens) -> AsyncIterator[str]:
        self.calls.append(messages)
        try:
            if self.fail:
                raise CompletionError("provider down")
            for i, delta in enumerate(self.deltas):
                if self.fail_after is not None and i == self.fail_after:
                    raise CompletionError("connection reset")
                yield delta
        finally:
            self.stream_closed = True
