"""Unit tests for settings resolution and log redaction."""
import logging

import pytest
import structlog

from portfolio_ask.config import AskSettings, LLMSettings, Settings
from portfolio_ask.logging_config import QUIET_LOGGERS, configure_logging, redact_query_text


class TestTierConfig:
    @pytest.mark.parametrize("enable_llm,api_key,enable_vector,database_url,expected", [
        (True, "sk-test", True, "postgresql://db", (True, True)),
        (True, "sk-test", False, "postgresql://db", (False, True)),
        (True, "sk-test", True, "", (False, True)),
        (True, "", True, "postgresql://db", (False, False)),
        (False, "sk-test", True, "postgresql://db", (False, False)),
    ])
    def test_resolution(self, enable_llm, api_key, enable_vector, database_url, expected):
        """Should only enable vector retrieval together with a usable LLM and a database."""
        settings = Settings(
            database_url=database_url,
            llm=LLMSettings(api_key=api_key),
            ask=AskSettings(enable_llm=enable_llm, enable_vector_rag=enable_vector),
        )
        config = settings.tier_config()
        assert (config.vector_enabled, config.llm_enabled) == expected

    def test_embedding_key_falls_back_to_llm_key(self):
        assert Settings(llm=LLMSettings(api_key="sk-llm")).embedding_api_key == "sk-llm"

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("ASK__TOP_K", "5")
        monkeypatch.setenv("ASK__WEBSITE_CASE_STUDY_SLUG", "site")
        settings = AskSettings()
        assert settings.top_k == 5
        assert settings.website_doc_id == "case_study:site"

    def test_stream_chunk_size_must_be_positive(self):
        with pytest.raises(ValueError):
            AskSettings(stream_chunk_size=0)


class TestQueryRedaction:
    def test_query_replaced_by_length(self):
        """Should never pass the visitor's question to the log output."""
        event = redact_query_text(None, "info", {"event": "ask_answered", "query": "Where do you live?"})
        assert "query" not in event
        assert event["query_length"] == 18

    def test_other_fields_untouched(self):
        event = redact_query_text(None, "info", {"event": "x", "tier": "local"})
        assert event == {"event": "x", "tier": "local"}


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET)


class TestConfigureLogging:
    def test_client_loggers_muted_at_info(self, restore_root_logger):
        """Should keep per-request HTTP client logs out of INFO output."""
        configure_logging(log_level="INFO", json_format=False)
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger().level == logging.INFO

    def test_client_loggers_follow_debug(self, restore_root_logger):
        configure_logging(log_level="DEBUG", json_format=True, use_stderr=True)
        assert logging.getLogger("httpx").level == logging.DEBUG
        assert len(logging.getLogger().handlers) == 1
