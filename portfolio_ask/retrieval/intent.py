"""
Query intent classification and intent-driven score boosts.

The corpus is small and a few documents (skills, thesis, the case study about
the website itself) are easily confused by plain term overlap, so queries are
routed toward the right document group with hand-tuned bonuses.
"""
import re
from dataclasses import dataclass, field
from typing import Sequence

from portfolio_ask.retrieval.tokenizer import extract_years, normalize, query_tokens
from portfolio_ask.schemas.chunks import Chunk

SKILLS_TOKENS = frozenset({
    "skill", "skills", "zertifikat", "zertifikate", "certificate", "certificates",
    "certification", "certifications", "certified", "zertifiziert", "msc", "bsc",
    "degree", "abschluss", "prüfung", "exam", "cfa", "wko",
})
SKILLS_PHRASES = ("commercial asset advisor", "vermögensberater", "google advanced data analytics")

THESIS_TOKENS = frozenset({
    "thesis", "masterarbeit", "arima", "garch", "var", "backtest", "backtesting",
    "rolling", "method", "methode", "econometrics", "ökonometrie", "volatility", "volatilität",
})
THESIS_PHRASES = ("step by step", "schritt für schritt")

WEBSITE_TOKENS = frozenset({
    "website", "webseite", "portfolio", "nextjs", "deploy", "deployment", "vercel",
    "playwright", "ask", "assistant", "rag", "citations", "citation",
})
WEBSITE_PHRASES = ("ask me anything", "this site", "diese seite", "this website", "diese website")

PROFILE_TOKENS = frozenset({
    "profil", "profile", "experience", "erfahrung", "werdegang", "career", "karriere",
    "background", "hintergrund", "profession", "job", "work", "worked", "role",
    "position", "beruf", "rolle", "station",
})
PROFILE_PHRASES = ("who are you", "tell me about yourself", "wer bist du", "what was your profession")

STEP_TOKENS = frozenset({"step", "steps", "methode", "method", "ablauf", "setup", "procedure", "vorgehen"})
STEP_PHRASES = ("step by step", "schritt für schritt", "how did you", "wie hast du")

CERTIFICATE_VOCABULARY = re.compile(
    r"(zertifikat|certificat|certified|zertifiziert|prüfung|exam|abschluss|degree|diploma|\bmsc\b|\bbsc\b|\bcfa\b)",
    re.IGNORECASE,
)

THESIS_SECTIONS = ("summary", "solution", "architecture", "impact", "pdf")
METHOD_SECTIONS = ("solution", "architecture")

# Boost constants: starting values, re-tune against a test corpus.
SKILLS_GROUP_BOOST = 3.2
SKILLS_EXPERIENCE_BOOST = 1.1
SKILLS_CERTIFICATE_BOOST = 2.0
THESIS_GROUP_BOOST = 3.0
THESIS_SECTION_BOOST = 1.0
STEP_SECTION_BOOST = 1.2
PROFILE_EXPERIENCE_BOOST = 1.5
PROFILE_TIMELINE_BOOST = 0.6
PROFILE_ABOUT_BOOST = 0.8
WEBSITE_BOOST = 2.2
WEBSITE_PENALTY = -1.3


@dataclass(frozen=True)
class QueryIntent:
    skills: bool = False
    thesis: bool = False
    website: bool = False
    profile: bool = False
    step_by_step: bool = False
    years: tuple[str, ...] = field(default_factory=tuple)


def classify_intent(query: str, tokens: Sequence[str] | None = None) -> QueryIntent:
    """Independent boolean intents from bilingual keywords and phrases."""
    normalized = normalize(query)
    token_set = set(query_tokens(query) if tokens is None else tokens)

    def has_token(vocabulary: frozenset[str]) -> bool:
        return not token_set.isdisjoint(vocabulary)

    def has_phrase(phrases: Sequence[str]) -> bool:
        return any(phrase in normalized for phrase in phrases)

    step_by_step = has_token(STEP_TOKENS) or has_phrase(STEP_PHRASES)
    return QueryIntent(
        skills=has_token(SKILLS_TOKENS) or has_phrase(SKILLS_PHRASES),
        thesis=has_token(THESIS_TOKENS) or has_phrase(THESIS_PHRASES),
        website=has_token(WEBSITE_TOKENS) or has_phrase(WEBSITE_PHRASES),
        profile=has_token(PROFILE_TOKENS) or has_phrase(PROFILE_PHRASES),
        step_by_step=step_by_step,
        years=tuple(extract_years(normalized)),
    )


def doc_group(doc_id: str) -> str:
    """Coarse topic group of a document, used for boosts and group caps."""
    if doc_id.startswith("skills:"):
        return "skills"
    if doc_id.startswith("thesis") or doc_id == "case_study:thesis":
        return "thesis"
    if doc_id.startswith("case_study:"):
        return "case_study"
    if doc_id.startswith("experience:"):
        return "experience"
    if doc_id.startswith("landing:"):
        return "landing"
    if doc_id.startswith("how_i_work:"):
        return "principles"
    return "other"


def intent_boost(intent: QueryIntent, chunk: Chunk, website_doc_id: str) -> float:
    group = doc_group(chunk.doc_id)
    section = chunk.section_id
    boost = 0.0

    if intent.skills:
        if group == "skills":
            boost += SKILLS_GROUP_BOOST
        elif group == "experience":
            boost += SKILLS_EXPERIENCE_BOOST
        if CERTIFICATE_VOCABULARY.search(chunk.content):
            boost += SKILLS_CERTIFICATE_BOOST

    if intent.thesis and group == "thesis":
        boost += THESIS_GROUP_BOOST
        if section.startswith(THESIS_SECTIONS):
            boost += THESIS_SECTION_BOOST

    if intent.step_by_step and section.startswith(METHOD_SECTIONS):
        boost += STEP_SECTION_BOOST

    if intent.profile:
        if group == "experience":
            boost += PROFILE_EXPERIENCE_BOOST
            if section == "timeline":
                boost += PROFILE_TIMELINE_BOOST
        elif chunk.doc_id == "landing:about":
            boost += PROFILE_ABOUT_BOOST

    if chunk.doc_id == website_doc_id:
        boost += WEBSITE_BOOST if intent.website else WEBSITE_PENALTY

    return boost
