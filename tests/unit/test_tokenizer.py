"""Unit tests for bilingual tokenization."""
from portfolio_ask.retrieval.tokenizer import (
    extract_years,
    has_prefix_match,
    lexical_hit_rate,
    normalize,
    query_tokens,
    tokenize,
)


class TestNormalize:
    def test_lowercases_and_collapses_punctuation(self):
        """Should turn punctuation runs into single spaces."""
        assert normalize("Fraud/Risk -- Scoring!") == "fraud risk scoring"

    def test_keeps_umlauts(self):
        """Should treat German letters as letters."""
        assert normalize("Prüfung für Vermögensberater") == "prüfung für vermögensberater"

    def test_underscores_are_separators(self):
        assert normalize("case_study") == "case study"

    def test_empty(self):
        assert normalize("  ...  ") == ""


class TestTokenize:
    def test_drops_stopwords_and_short_tokens(self):
        """Should drop English and German stopwords and one-char tokens."""
        assert tokenize("What is the x of a thesis?") == ["thesis"]
        assert tokenize("Welche Zertifikate hast du?") == ["zertifikate"]

    def test_keeps_order_and_duplicates(self):
        assert tokenize("risk fraud risk") == ["risk", "fraud", "risk"]

    def test_query_tokens_deduplicates_first_seen(self):
        """Should keep the first occurrence of each token."""
        assert query_tokens("risk fraud risk Fraud") == ["risk", "fraud"]


class TestExtractYears:
    def test_distinct_years_in_order(self):
        assert extract_years("From 2019 to 2023, then 2019 again") == ["2019", "2023"]

    def test_ignores_embedded_digits_and_other_centuries(self):
        """Should only match standalone 19xx/20xx tokens."""
        assert extract_years("id 120215, year 1850, p95 100 ms") == []

    def test_matches_year_ranges(self):
        assert extract_years("2021 – 2024") == ["2021", "2024"]


class TestLexicalHitRate:
    def test_fraction_of_tokens_present(self):
        assert lexical_hit_rate(["fraud", "kyc"], "Real-time fraud scoring") == 0.5

    def test_zero_without_tokens(self):
        assert lexical_hit_rate([], "anything") == 0.0

    def test_zero_for_empty_text(self):
        assert lexical_hit_rate(["fraud"], "") == 0.0


class TestPrefixMatch:
    def test_matches_in_both_directions(self):
        """Should match when either token is a prefix of the other."""
        assert has_prefix_match("certificate", {"certificates"})
        assert has_prefix_match("projects", {"project"})

    def test_no_match(self):
        assert not has_prefix_match("garch", {"fraud", "risk"})
