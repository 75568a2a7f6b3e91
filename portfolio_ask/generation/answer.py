"""
Answer assembly: citations, suggested links, the templated local answer and
the SOURCES block handed to the LLM.
"""
import re
from typing import List, Sequence

from portfolio_ask.schemas.ask import AskResponse, Citation, SuggestedLink
from portfolio_ask.schemas.chunks import Chunk, Language, Visibility

MAX_CITATIONS = 6
MAX_LINKS = 4
MAX_SOURCES = 8
LOCAL_ANSWER_CHUNKS = 4
SOURCE_TEXT_CHARS = 1200
PUBLIC_SNIPPET_CHARS = 180
PRIVATE_SNIPPET_CHARS = 140

_WHITESPACE = re.compile(r"\s+")
_EMAIL = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.IGNORECASE)
_PHONE = re.compile(r"(\+?\d[\d\s().-]{7,}\d)")

SECTION_LABELS = {
    Language.EN: {
        "summary": "Summary",
        "context": "Context",
        "problem": "Problem",
        "solution": "Solution",
        "impact": "Impact",
        "constraints": "Constraints",
        "role": "Role",
        "architecture": "Architecture",
        "learnings": "Learnings",
        "outcomes": "Outcomes",
        "timeline": "Timeline",
        "items": "Skills",
        "principle": "How I work",
        "about": "About",
        "ask": "Ask",
        "pdf": "Thesis PDF",
        "chunk": "Profile",
    },
    Language.DE: {
        "summary": "Zusammenfassung",
        "context": "Kontext",
        "problem": "Problem",
        "solution": "Lösung",
        "impact": "Wirkung",
        "constraints": "Rahmenbedingungen",
        "role": "Rolle",
        "architecture": "Architektur",
        "learnings": "Learnings",
        "outcomes": "Ergebnisse",
        "timeline": "Zeitraum",
        "items": "Skills",
        "principle": "Arbeitsweise",
        "about": "Über mich",
        "ask": "Fragen",
        "pdf": "Thesis-PDF",
        "chunk": "Profil",
    },
}

LOCAL_INTRO = {
    Language.EN: "Here is what my portfolio says about that:",
    Language.DE: "Das sagt mein Portfolio dazu:",
}
LOCAL_OUTRO = {
    Language.EN: "The citations below link to the full sections.",
    Language.DE: "Die Quellen unten verlinken auf die vollständigen Abschnitte.",
}

EMPTY_ANSWER = {
    Language.EN: (
        "I can only answer from this portfolio. Try asking about the thesis, "
        "degree content, certificates, or projects."
    ),
    Language.DE: (
        "Ich kann nur aus diesem Portfolio beantworten. Frag z. B. zu "
        "Masterarbeit, Studieninhalten, Zertifikaten oder Projekten."
    ),
}

EMPTY_LINKS = {
    Language.EN: (("Projects", "projects"), ("Thesis", "thesis"), ("Skills", "skills"), ("Contact", "contact")),
    Language.DE: (("Projekte", "projects"), ("Thesis", "thesis"), ("Skills", "skills"), ("Kontakt", "contact")),
}


def redact_private(text: str) -> str:
    text = _EMAIL.sub("[redacted-email]", text)
    return _PHONE.sub("[redacted-phone]", text)


def clamp(text: str, max_chars: int) -> str:
    """Trim, then cut to ``max_chars`` including a trailing ellipsis."""
    clean = text.strip()
    if len(clean) <= max_chars:
        return clean
    return clean[: max(0, max_chars - 1)] + "…"


def make_snippet(text: str, visibility: Visibility) -> str:
    """Single-line excerpt; private text is redacted and kept shorter."""
    clean = _WHITESPACE.sub(" ", text).strip()
    if visibility == Visibility.PRIVATE:
        return clamp(redact_private(clean), PRIVATE_SNIPPET_CHARS)
    return clamp(clean, PUBLIC_SNIPPET_CHARS)


def section_label(section_id: str, lang: Language) -> str:
    """Human label for a section id; ``pdf:3`` and ``solution:2`` use their base."""
    base = section_id.split(":", 1)[0]
    return SECTION_LABELS[lang].get(base, base.replace("_", " ").capitalize())


def build_citations(ranked: Sequence[Chunk]) -> List[Citation]:
    return [
        Citation(
            doc_id=chunk.doc_id,
            title=chunk.title,
            section_id=chunk.section_id,
            snippet=make_snippet(chunk.content, chunk.visibility),
        )
        for chunk in ranked[:MAX_CITATIONS]
    ]


def build_suggested_links(ranked: Sequence[Chunk]) -> List[SuggestedLink]:
    links: dict[str, SuggestedLink] = {}
    for chunk in ranked:
        if chunk.href and chunk.href not in links:
            links[chunk.href] = SuggestedLink(label=chunk.title, href=chunk.href)
        if len(links) == MAX_LINKS:
            break
    return list(links.values())


def render_local_answer(ranked: Sequence[Chunk], lang: Language) -> str:
    """Deterministic Markdown answer from the top chunks; no generation involved."""
    bullets = [
        f"- **{chunk.title} · {section_label(chunk.section_id, lang)}:** "
        f"{make_snippet(chunk.content, chunk.visibility)}"
        for chunk in ranked[:LOCAL_ANSWER_CHUNKS]
    ]
    return "\n\n".join([LOCAL_INTRO[lang], "\n".join(bullets), LOCAL_OUTRO[lang]])


def local_response(ranked: Sequence[Chunk], lang: Language) -> AskResponse:
    if not ranked:
        return empty_response(lang)
    return AskResponse(
        answer=render_local_answer(ranked, lang),
        citations=build_citations(ranked),
        suggested_links=build_suggested_links(ranked),
    )


def empty_response(lang: Language) -> AskResponse:
    """Fixed out-of-scope answer with static navigation links."""
    return AskResponse(
        answer=EMPTY_ANSWER[lang],
        citations=[],
        suggested_links=[
            SuggestedLink(label=label, href=f"/{lang.value}/{path}")
            for label, path in EMPTY_LINKS[lang]
        ],
    )


def format_sources(ranked: Sequence[Chunk]) -> str:
    blocks = []
    for i, chunk in enumerate(ranked[:MAX_SOURCES], start=1):
        blocks.append("\n".join([
            f"SOURCE {i}",
            f"doc_id: {chunk.doc_id}",
            f"title: {chunk.title}",
            f"section_id: {chunk.section_id}",
            f"href: {chunk.href or ''}",
            f"visibility: {chunk.visibility.value}",
            f"text: {clamp(chunk.content, SOURCE_TEXT_CHARS)}",
        ]))
    return "\n\n".join(blocks)
