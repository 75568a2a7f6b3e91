"""
Corpus builder: flattens the published content snapshot into chunks.

Pure and deterministic. Emission order is the tie-break order for every
ranker downstream, so it must not depend on dict or set iteration.
"""
import re
from typing import Iterable, Iterator, List, Optional

from portfolio_ask.content.provider import ContentProvider
from portfolio_ask.content.schemas import CaseStudy, ContentSnapshot, LocalizedText
from portfolio_ask.schemas.chunks import Chunk, Language, Visibility

LANDING_TITLES = {
    "about": LocalizedText(de="Über mich", en="About"),
    "ask": LocalizedText(de="Frag mein Portfolio", en="Ask my portfolio"),
}


def slugify(title: str) -> str:
    return re.sub(r"\s+", "-", title.strip().lower())


def case_study_href(slug: str, lang: Language) -> str:
    if slug == "thesis":
        return f"/{lang.value}/thesis"
    return f"/{lang.value}/projects/{slug}"


def _join(lines: Iterable[str]) -> str:
    return "\n".join(line.strip() for line in lines if line and line.strip())


def _sorted_case_studies(case_studies: Iterable[CaseStudy]) -> List[CaseStudy]:
    published = [cs for cs in case_studies if cs.published]
    return sorted(published, key=lambda cs: (cs.order is None, cs.order or 0, cs.slug))


def _case_study_sections(cs: CaseStudy, lang: Language) -> Iterator[tuple[str, str]]:
    yield "summary", cs.summary.get(lang)
    if cs.context is not None:
        yield "context", cs.context.get(lang)
    yield "problem", cs.problem.get(lang)
    yield "solution", _join(cs.solution.get(lang))
    yield "impact", _join(item.text for item in cs.impact.get(lang))
    yield "constraints", _join(cs.constraints.get(lang))
    yield "role", _join(cs.your_role.get(lang))
    if cs.architecture is not None and cs.architecture.type in ("text", "mermaid"):
        yield "architecture", cs.architecture.payload.get(lang)
    if cs.learnings is not None:
        yield "learnings", _join(cs.learnings.get(lang))


class _UniqueSlugs:
    """Hands out slugs, suffixing repeats with -2, -3, ..."""

    def __init__(self):
        self._seen: dict[str, int] = {}

    def __call__(self, slug: str) -> str:
        count = self._seen.get(slug, 0) + 1
        self._seen[slug] = count
        return slug if count == 1 else f"{slug}-{count}"


def build_corpus(
    snapshot: ContentSnapshot,
    lang: Language,
) -> List[Chunk]:
    """Build the public chunk corpus for one language. Empty sections are skipped."""
    chunks: List[Chunk] = []
    lang_prefix = f"/{lang.value}"

    def emit(doc_id: str, title: str, href: Optional[str], section_id: str, content: str) -> None:
        if not content or not content.strip():
            return
        chunks.append(Chunk(
            doc_id=doc_id,
            title=title,
            href=href,
            section_id=section_id,
            lang=lang,
            visibility=Visibility.PUBLIC,
            content=content,
        ))

    case_slug = _UniqueSlugs()
    for cs in _sorted_case_studies(snapshot.case_studies):
        doc_id = f"case_study:{case_slug(cs.slug)}"
        href = case_study_href(cs.slug, lang)
        title = cs.title.get(lang)
        for section_id, content in _case_study_sections(cs, lang):
            emit(doc_id, title, href, section_id, content)

    thesis = snapshot.thesis
    emit("thesis:overview", thesis.title.get(lang), f"{lang_prefix}/thesis", "summary", thesis.summary.get(lang))

    for i, item in enumerate(snapshot.experience):
        role = item.role.get(lang)
        title = f"{role} @ {item.org}" if item.org else role
        doc_id = f"experience:{i}"
        href = f"{lang_prefix}/experience"
        emit(doc_id, title, href, "outcomes", _join(item.outcomes.get(lang)))
        timeline = [item.period]
        if item.org:
            timeline.append(item.org)
        if item.domains:
            timeline.append(", ".join(item.domains))
        if item.tech:
            timeline.append(", ".join(item.tech))
        emit(doc_id, title, href, "timeline", _join(timeline))

    skill_slug = _UniqueSlugs()
    for category in snapshot.skill_categories:
        lines = []
        for skill in category.items:
            note = skill.note.get(lang).strip() if skill.note is not None else ""
            lines.append(f"{skill.name} — {note}" if note else skill.name)
        emit(
            f"skills:{skill_slug(slugify(category.title.en))}",
            category.title.get(lang),
            f"{lang_prefix}/skills",
            "items",
            _join(lines),
        )

    principle_slug = _UniqueSlugs()
    for principle in snapshot.principles:
        emit(
            f"how_i_work:{principle_slug(slugify(principle.title.en))}",
            principle.title.get(lang),
            f"{lang_prefix}/skills",
            "principle",
            principle.body.get(lang),
        )

    landing = snapshot.landing
    emit("landing:about", LANDING_TITLES["about"].get(lang), lang_prefix, "about", landing.about.get(lang))
    emit("landing:ask", LANDING_TITLES["ask"].get(lang), f"{lang_prefix}/ask", "ask", landing.ask.get(lang))

    return chunks


class CorpusLoader:
    """Builds the corpus from a freshly loaded snapshot on every call."""

    def __init__(self, provider: ContentProvider):
        self.provider = provider

    async def load(self, lang: Language) -> List[Chunk]:
        snapshot = await self.provider.load_snapshot()
        return build_corpus(snapshot, lang)
