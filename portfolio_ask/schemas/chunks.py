from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Language(str, Enum):
    DE = "de"
    EN = "en"


class Visibility(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class Chunk(BaseModel):
    """One section of one document in one language."""
    model_config = ConfigDict(frozen=True)

    doc_id: str        # e.g. "case_study:<slug>", "experience:<i>", "thesis:pdf"
    title: str
    href: Optional[str] = None  # None for private-only content
    section_id: str    # "summary", "solution", "pdf:3", ...
    lang: Language
    visibility: Visibility = Visibility.PUBLIC
    content: str

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        return v.strip()

    @property
    def key(self) -> tuple[str, str, str, str]:
        return (self.doc_id, self.section_id, self.lang.value, self.visibility.value)

    @property
    def searchable_text(self) -> str:
        """Text used for lexical matching and the year guard."""
        return f"{self.title}\n{self.section_id}\n{self.content}"


class RankedChunk(Chunk):
    """A chunk scored against one query."""
    score: float
    cosine_similarity: Optional[float] = Field(default=None, description="Vector path only (1 - cosine distance)")
    lexical_hit_rate: Optional[float] = Field(default=None, ge=0, le=1, description="Vector path only")

    @classmethod
    def from_chunk(cls, chunk: Chunk, score: float, **extra) -> "RankedChunk":
        return cls(**chunk.model_dump(), score=score, **extra)
