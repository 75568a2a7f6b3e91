"""Unit tests for intent classification and boosts."""
import pytest

from portfolio_ask.retrieval.intent import (
    QueryIntent,
    SKILLS_CERTIFICATE_BOOST,
    SKILLS_GROUP_BOOST,
    WEBSITE_BOOST,
    WEBSITE_PENALTY,
    classify_intent,
    doc_group,
    intent_boost,
)
from conftest import make_chunk

WEBSITE_DOC_ID = "case_study:portfolio-website"


class TestClassifyIntent:
    def test_skills_by_token(self):
        assert classify_intent("Which certificates do you have?").skills

    def test_skills_by_german_token(self):
        assert classify_intent("Welche Zertifikate hast du?").skills

    def test_thesis(self):
        intent = classify_intent("What method did the thesis use for GARCH?")
        assert intent.thesis
        assert intent.step_by_step

    def test_website_by_phrase(self):
        assert classify_intent("How was this site built?").website

    def test_profile_by_phrase(self):
        assert classify_intent("Wer bist du?").profile

    def test_step_by_step_phrase(self):
        assert classify_intent("Explain it step by step").step_by_step

    def test_years_are_extracted(self):
        assert classify_intent("What happened in 2021 and 2022?").years == ("2021", "2022")

    def test_unrelated_query_has_no_intent(self):
        """Should leave every flag unset for an off-topic query."""
        assert classify_intent("zzqx vvbk") == QueryIntent()


class TestDocGroup:
    @pytest.mark.parametrize("doc_id,group", [
        ("skills:certificates", "skills"),
        ("thesis:overview", "thesis"),
        ("thesis:pdf", "thesis"),
        ("case_study:thesis", "thesis"),
        ("case_study:realtime-fraud-scoring", "case_study"),
        ("experience:0", "experience"),
        ("landing:about", "landing"),
        ("how_i_work:measure-first", "principles"),
        ("private_profile", "other"),
    ])
    def test_groups(self, doc_id, group):
        assert doc_group(doc_id) == group


class TestIntentBoost:
    def test_skills_group_and_certificate_vocabulary(self):
        """Should stack the group boost and the certificate boost."""
        chunk = make_chunk("skills:certificates", "items", content="Google Advanced Data Analytics — Certificate, 2023")
        boost = intent_boost(QueryIntent(skills=True), chunk, WEBSITE_DOC_ID)
        assert boost == pytest.approx(SKILLS_GROUP_BOOST + SKILLS_CERTIFICATE_BOOST)

    def test_thesis_section_boost(self):
        chunk = make_chunk("thesis:overview", "summary")
        assert intent_boost(QueryIntent(thesis=True), chunk, WEBSITE_DOC_ID) == pytest.approx(4.0)

    def test_profile_timeline(self):
        chunk = make_chunk("experience:0", "timeline")
        assert intent_boost(QueryIntent(profile=True), chunk, WEBSITE_DOC_ID) == pytest.approx(2.1)

    def test_website_chunk_boosted_only_for_website_intent(self):
        """Should promote the website case study for website questions and demote it otherwise."""
        chunk = make_chunk(WEBSITE_DOC_ID, "problem")
        assert intent_boost(QueryIntent(website=True), chunk, WEBSITE_DOC_ID) == WEBSITE_BOOST
        assert intent_boost(QueryIntent(), chunk, WEBSITE_DOC_ID) == WEBSITE_PENALTY

    def test_no_intent_no_boost(self):
        chunk = make_chunk("case_study:kyc-onboarding", "solution")
        assert intent_boost(QueryIntent(), chunk, WEBSITE_DOC_ID) == 0.0
