"""Unit tests for re-index chunk building and change detection."""
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from portfolio_ask.config import EmbeddingProvider, EmbeddingSettings, LLMSettings, Settings
from portfolio_ask.exceptions import DocumentLoadError, EmbeddingError
from portfolio_ask.ingestion.embedder import embed_documents, get_embedder
from portfolio_ask.ingestion.indexer import (
    PRIVATE_PROFILE_DOC_ID,
    THESIS_PDF_DOC_ID,
    build_index_chunks,
    chunk_row_id,
    content_hash,
    select_changed,
)
from portfolio_ask.ingestion.pdf_loader import load_pdf_text, resolve_asset_path
from portfolio_ask.ingestion.splitter import split_section, split_text
from portfolio_ask.retrieval.corpus import build_corpus
from portfolio_ask.schemas.chunks import Language, Visibility
from conftest import make_chunk


class TestSplitter:
    def test_short_text_is_one_block(self):
        assert split_text("  Short section.  ") == ["Short section."]

    def test_empty_text(self):
        assert split_text("   ") == []

    def test_long_text_respects_size(self):
        text = "\n\n".join(f"Paragraph {i} " + "word " * 40 for i in range(10))
        blocks = split_text(text, chunk_size=300, chunk_overlap=30)
        assert len(blocks) > 1
        assert all(len(b) <= 300 for b in blocks)

    def test_section_that_fits_keeps_its_id(self):
        chunk = make_chunk("case_study:a", "solution", content="One line")
        assert split_section(chunk) == [chunk]

    def test_long_section_gets_numbered_ids(self):
        """Should suffix section ids so row ids stay unique."""
        chunk = make_chunk("case_study:a", "solution", content="\n".join("line " * 30 for _ in range(6)))
        parts = split_section(chunk, chunk_size=200, chunk_overlap=0)
        assert [p.section_id for p in parts] == [f"solution:{i}" for i in range(len(parts))]
        assert len(parts) > 1
        assert all(p.doc_id == "case_study:a" and p.href == chunk.href for p in parts)


class TestBuildIndexChunks:
    def test_both_languages_public_corpus(self, snapshot):
        chunks = build_index_chunks(snapshot)
        assert {c.lang for c in chunks} == {Language.DE, Language.EN}
        assert [c for c in chunks if c.lang == Language.EN] == build_corpus(snapshot, Language.EN)

    def test_row_ids_unique(self, snapshot_with_profile):
        chunks = build_index_chunks(snapshot_with_profile, pdf_text="Chapter 1. GARCH models.")
        ids = [chunk_row_id(c) for c in chunks]
        assert len(set(ids)) == len(ids)

    def test_thesis_pdf_chunks(self, snapshot):
        chunks = build_index_chunks(snapshot, pdf_text="Chapter 1. Rolling window backtests of VaR.")
        pdf = [c for c in chunks if c.doc_id == THESIS_PDF_DOC_ID]
        assert [(c.lang, c.section_id, c.href) for c in pdf] == [
            (Language.DE, "pdf:0", "/de/thesis"),
            (Language.EN, "pdf:0", "/en/thesis"),
        ]

    def test_private_profile_is_private_and_unlinked(self, snapshot_with_profile):
        """Should index the private profile without a link and marked private."""
        chunks = build_index_chunks(snapshot_with_profile)
        private = [c for c in chunks if c.doc_id == PRIVATE_PROFILE_DOC_ID]
        assert len(private) == 2
        assert all(c.visibility == Visibility.PRIVATE and c.href is None for c in private)
        assert all(c.section_id == "chunk:0" for c in private)
        assert all(
            c.visibility == Visibility.PUBLIC for c in chunks if c.doc_id != PRIVATE_PROFILE_DOC_ID
        )

    def test_row_id_format(self):
        chunk = make_chunk("experience:0", "timeline", lang=Language.DE)
        assert chunk_row_id(chunk) == "experience:0:timeline:de:public"


class TestSelectChanged:
    def test_skips_unchanged(self, snapshot):
        chunks = build_index_chunks(snapshot)
        existing = {chunk_row_id(c): content_hash(c.content) for c in chunks[1:]}
        existing[chunk_row_id(chunks[2])] = "stale"

        changed, skipped = select_changed(chunks, existing)

        assert [chunk_row_id(c) for c, _ in changed] == [chunk_row_id(chunks[0]), chunk_row_id(chunks[2])]
        assert changed[0][1] == content_hash(chunks[0].content)
        assert skipped == len(chunks) - 2

    def test_second_run_is_a_no_op(self, snapshot):
        """Should skip everything when nothing changed since the last run."""
        chunks = build_index_chunks(snapshot)
        changed, _ = select_changed(chunks, {})
        stored = {chunk_row_id(c): digest for c, digest in changed}
        assert select_changed(chunks, stored) == ([], len(chunks))


class TestPdfLoader:
    def test_remote_url_is_not_fetched(self, tmp_path):
        assert resolve_asset_path("https://example.com/thesis.pdf", tmp_path) is None

    def test_site_relative_path_resolves_under_base(self, tmp_path):
        assert resolve_asset_path("/thesis.pdf", tmp_path) == tmp_path / "thesis.pdf"

    def test_missing_pdf(self, tmp_path):
        with pytest.raises(DocumentLoadError):
            load_pdf_text(tmp_path / "missing.pdf")

    @patch("portfolio_ask.ingestion.pdf_loader.PyMuPDFLoader")
    def test_pages_joined(self, mock_loader, tmp_path):
        path = tmp_path / "thesis.pdf"
        path.write_bytes(b"%PDF-1.4")
        mock_loader.return_value.load.return_value = [
            MagicMock(page_content=" Page one "),
            MagicMock(page_content="   "),
            MagicMock(page_content="Page two"),
        ]
        assert load_pdf_text(Path(path)) == "Page one\n\nPage two"


class TestEmbedder:
    def test_openai_without_key(self):
        settings = Settings(
            embedding=EmbeddingSettings(provider=EmbeddingProvider.OPENAI, api_key=""),
            llm=LLMSettings(api_key=""),
        )
        with pytest.raises(EmbeddingError):
            get_embedder(settings)

    @patch("langchain_openai.OpenAIEmbeddings")
    def test_openai_falls_back_to_llm_key(self, mock_embeddings):
        settings = Settings(
            embedding=EmbeddingSettings(provider=EmbeddingProvider.OPENAI, api_key="", dimension=1536),
            llm=LLMSettings(api_key="sk-llm"),
        )
        get_embedder(settings)
        kwargs = mock_embeddings.call_args.kwargs
        assert kwargs["api_key"] == "sk-llm"
        assert kwargs["dimensions"] == 1536

    @pytest.mark.asyncio
    async def test_embed_documents_wraps_errors(self):
        embedder = MagicMock()
        embedder.aembed_documents = AsyncMock(side_effect=RuntimeError("quota"))
        with pytest.raises(EmbeddingError):
            await embed_documents(embedder, ["a"])
