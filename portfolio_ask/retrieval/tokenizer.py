"""Bilingual (de/en) tokenization shared by the lexical and vector paths."""
import re
from typing import Iterable, Sequence

# Anything that is not a letter or digit (str patterns are Unicode-aware)
_NON_ALNUM = re.compile(r"[\W_]+")
_YEAR = re.compile(r"\b(?:19|20)\d{2}\b")

STOPWORDS = frozenset({
    # en
    "a", "an", "and", "are", "as", "at", "be", "by", "can", "do", "does",
    "for", "from", "has", "have", "how", "i", "in", "is", "it", "me", "my",
    "of", "on", "or", "that", "the", "this", "to", "was", "were", "what",
    "which", "who", "with", "you", "your", "about",
    # de
    "zu", "der", "die", "das", "den", "dem", "des", "ein", "eine", "einen",
    "und", "oder", "mit", "von", "im", "in", "auf", "für", "wie", "was",
    "ist", "sind", "hast", "hat", "dein", "deine", "deinen", "deiner",
    "du", "ich", "es", "welche", "welcher", "welches",
})


def normalize(text: str) -> str:
    """Lowercase and collapse every non letter/digit run into one space."""
    return _NON_ALNUM.sub(" ", text.lower()).strip()


def tokenize(text: str) -> list[str]:
    """Tokens of at least two characters, stopwords removed, order kept."""
    return [
        token for token in normalize(text).split()
        if len(token) >= 2 and token not in STOPWORDS
    ]


def query_tokens(query: str) -> list[str]:
    """Tokenized query with duplicates removed (first occurrence wins)."""
    return list(dict.fromkeys(tokenize(query)))


def extract_years(text: str) -> list[str]:
    """Distinct four-digit years (19xx/20xx) in order of appearance."""
    return list(dict.fromkeys(_YEAR.findall(text)))


def lexical_hit_rate(tokens: Sequence[str], text: str) -> float:
    """Fraction of ``tokens`` literally present among the tokens of ``text``."""
    if not tokens:
        return 0.0
    vocabulary = set(tokenize(text))
    if not vocabulary:
        return 0.0
    return sum(1 for token in tokens if token in vocabulary) / len(tokens)


def has_prefix_match(token: str, vocabulary: Iterable[str]) -> bool:
    return any(
        candidate.startswith(token) or token.startswith(candidate)
        for candidate in vocabulary
    )
