"""Schemas for ask requests, responses and the NDJSON stream protocol."""
from typing import List, Literal, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

from portfolio_ask.schemas.chunks import Language


class Citation(BaseModel):
    doc_id: str
    title: str
    section_id: str
    snippet: str


class SuggestedLink(BaseModel):
    label: str
    href: str


class AskResponse(BaseModel):
    """What the visitor gets back: an answer plus where it came from."""
    answer: str = Field(..., min_length=1)
    citations: List[Citation] = Field(default_factory=list, max_length=6)
    suggested_links: List[SuggestedLink] = Field(default_factory=list, max_length=4)


class TierConfig(BaseModel):
    """Resolved infrastructure switches. Vector retrieval requires the LLM."""
    model_config = ConfigDict(frozen=True)

    vector_enabled: bool = False
    llm_enabled: bool = False


class AskRequest(BaseModel):
    """
    Request payload for the ask endpoints.
    """
    query: str = Field(..., min_length=1, max_length=1000, description="The visitor's question.")
    lang: Language = Field(default=Language.EN, description="Answer language.")

    @field_validator("query", mode="before")
    @classmethod
    def strip_query(cls, v):
        return v.strip() if isinstance(v, str) else v


# --- Stream protocol ---

class MetaEvent(BaseModel):
    type: Literal["meta"] = "meta"
    citations: List[Citation]
    suggested_links: List[SuggestedLink]


class DeltaEvent(BaseModel):
    type: Literal["delta"] = "delta"
    text: str


class DoneEvent(BaseModel):
    type: Literal["done"] = "done"


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    error: str


StreamEvent = Union[MetaEvent, DeltaEvent, DoneEvent, ErrorEvent]


def to_ndjson(event: StreamEvent) -> str:
    """Serialize one event as a single NDJSON line."""
    return event.model_dump_json() + "\n"
