"""
Validated records for the published content snapshot.

The JSON snapshot uses camelCase keys (as exported by the CMS); unknown keys
are rejected so schema drift fails loudly at the boundary instead of
silently producing empty chunks.
"""
import re
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from portfolio_ask.schemas.chunks import Language


class ContentModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )


class LocalizedText(ContentModel):
    de: str
    en: str

    def get(self, lang: Language) -> str:
        return getattr(self, lang.value)


class LocalizedList(ContentModel):
    de: List[str] = Field(default_factory=list)
    en: List[str] = Field(default_factory=list)

    def get(self, lang: Language) -> List[str]:
        return getattr(self, lang.value)


class ImpactItem(ContentModel):
    text: str = Field(..., min_length=1)
    qualitative: bool = False

    @model_validator(mode="after")
    def require_numbers_or_qualitative(self) -> "ImpactItem":
        if not re.search(r"\d", self.text) and not self.qualitative:
            raise ValueError("Impact item without a numeric signal must be marked qualitative.")
        return self


class LocalizedImpact(ContentModel):
    de: List[ImpactItem]
    en: List[ImpactItem]

    def get(self, lang: Language) -> List[ImpactItem]:
        return getattr(self, lang.value)


class Architecture(ContentModel):
    type: Literal["text", "mermaid", "image"]
    payload: Union[LocalizedText, str]

    @model_validator(mode="after")
    def check_payload(self) -> "Architecture":
        if self.type == "image" and not isinstance(self.payload, str):
            raise ValueError("Image architecture payload must be a URL or path.")
        if self.type != "image" and not isinstance(self.payload, LocalizedText):
            raise ValueError(f"{self.type} architecture payload must be localized text.")
        return self


class CaseStudy(ContentModel):
    slug: str = Field(..., min_length=1)
    title: LocalizedText
    subtitle: Optional[LocalizedText] = None
    summary: LocalizedText
    context: Optional[LocalizedText] = None
    problem: LocalizedText
    solution: LocalizedList
    constraints: LocalizedList = Field(default_factory=LocalizedList)
    your_role: LocalizedList = Field(default_factory=LocalizedList)
    impact: LocalizedImpact
    architecture: Optional[Architecture] = None
    learnings: Optional[LocalizedList] = None
    tags: List[str] = Field(default_factory=list)
    domains: List[str] = Field(default_factory=list)
    stack: List[str] = Field(default_factory=list)
    published: bool = True
    order: Optional[int] = None


class Thesis(ContentModel):
    title: LocalizedText
    summary: LocalizedText
    pdf_path: Optional[str] = None
    notebook_path: Optional[str] = None


class ExperienceItem(ContentModel):
    role: LocalizedText
    org: Optional[str] = None
    period: str
    outcomes: LocalizedList
    domains: List[str] = Field(default_factory=list)
    tech: List[str] = Field(default_factory=list)

    @field_validator("outcomes")
    @classmethod
    def check_outcome_count(cls, v: LocalizedList) -> LocalizedList:
        for lang in Language:
            if not 2 <= len(v.get(lang)) <= 5:
                raise ValueError(f"Experience needs 2-5 outcomes per language ({lang.value}).")
        return v


class SkillItem(ContentModel):
    name: str = Field(..., min_length=1)
    note: Optional[LocalizedText] = None


class SkillCategory(ContentModel):
    title: LocalizedText
    items: List[SkillItem] = Field(default_factory=list)


class WorkPrinciple(ContentModel):
    title: LocalizedText
    body: LocalizedText


class LandingCopy(ContentModel):
    about: LocalizedText
    ask: LocalizedText


class ContentSnapshot(ContentModel):
    """Everything the assistant may answer from, as currently published."""
    case_studies: List[CaseStudy] = Field(default_factory=list)
    thesis: Thesis
    experience: List[ExperienceItem] = Field(default_factory=list)
    skill_categories: List[SkillCategory] = Field(default_factory=list)
    principles: List[WorkPrinciple] = Field(default_factory=list)
    landing: LandingCopy
    private_profile: Optional[LocalizedText] = None
