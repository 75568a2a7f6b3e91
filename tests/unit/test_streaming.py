"""Tests for the NDJSON streaming coordinator."""
import json
from typing import AsyncIterator, List

import pytest

from portfolio_ask.ask.service import AskService
from portfolio_ask.ask.streaming import PROVIDER_ERROR, slice_text, stream_answer, stream_ndjson
from portfolio_ask.ask.tiers import LlmCorpusTier, LocalCorpusTier, PreparedAnswer
from portfolio_ask.exceptions import TierFailure
from portfolio_ask.generation.answer import EMPTY_ANSWER
from portfolio_ask.retrieval.corpus import CorpusLoader
from portfolio_ask.schemas.ask import Citation, SuggestedLink, TierConfig
from portfolio_ask.schemas.chunks import Language
from conftest import FakeCompletion

FRAUD_QUERY = "Which projects relate to fraud/risk?"


class FailingTier:
    name = "vector"

    def __init__(self, error: Exception):
        self.error = error
        self.prepared = 0

    async def prepare(self, query, lang):
        self.prepared += 1
        raise self.error

    async def attempt(self, query, lang):
        raise self.error

    def stream(self, prepared):
        raise AssertionError("never streamed")


class ScriptedTier:
    """Prepares a fixed prompt and streams scripted deltas."""
    name = "llm_corpus"

    def __init__(self, deltas: List[str], fail_after: int | None = None):
        self.deltas = deltas
        self.fail_after = fail_after
        self.closed = False

    async def prepare(self, query, lang) -> PreparedAnswer:
        return PreparedAnswer(
            tier=self.name,
            lang=lang,
            ranked=[],
            citations=[Citation(doc_id="case_study:a", title="A", section_id="summary", snippet="a")],
            suggested_links=[SuggestedLink(label="A", href="/en/projects/a")],
            fallback="template answer",
            messages=[],
        )

    async def attempt(self, query, lang):
        raise AssertionError("not used")

    async def stream(self, prepared) -> AsyncIterator[str]:
        try:
            for i, delta in enumerate(self.deltas):
                if i == self.fail_after:
                    raise RuntimeError("connection reset")
                yield delta
            if self.fail_after == len(self.deltas):
                raise RuntimeError("connection reset")
        finally:
            self.closed = True


async def _collect(events) -> list:
    return [event async for event in events]


def _assert_protocol(events):
    types = [e.type for e in events]
    assert types.count("meta") <= 1
    if "meta" in types:
        assert types[0] == "meta"
    assert types[-1] in ("done", "error")
    assert types.count("done") + types.count("error") == 1


def _text(events) -> str:
    return "".join(e.text for e in events if e.type == "delta")


class TestSliceText:
    @pytest.mark.asyncio
    async def test_fixed_size_slices(self):
        assert [s async for s in slice_text("abcdefg", 3)] == ["abc", "def", "g"]

    @pytest.mark.asyncio
    async def test_empty(self):
        assert [s async for s in slice_text("", 3)] == []


class TestStreamAnswer:
    @pytest.mark.asyncio
    async def test_local_answer_is_sliced(self, content, ask_settings):
        """Should emit meta, the precomputed answer in slices, then done."""
        tier = LocalCorpusTier(CorpusLoader(content), ask_settings)
        prepared = await tier.prepare(FRAUD_QUERY, Language.EN)

        events = await _collect(stream_answer([tier], FRAUD_QUERY, Language.EN, chunk_size=48))

        _assert_protocol(events)
        assert events[0].citations == prepared.citations
        assert events[0].suggested_links == prepared.suggested_links
        assert _text(events) == prepared.answer
        assert all(len(e.text) <= 48 for e in events if e.type == "delta")
        assert events[-1].type == "done"
        assert not hasattr(tier, "stream")

    @pytest.mark.asyncio
    async def test_forwards_completion_deltas(self):
        tier = ScriptedTier(["Hello ", "world"])
        events = await _collect(stream_answer([tier], "q", Language.EN))
        _assert_protocol(events)
        assert [e.type for e in events] == ["meta", "delta", "delta", "done"]
        assert _text(events) == "Hello world"

    @pytest.mark.asyncio
    async def test_failure_before_first_delta_streams_template(self):
        """Should keep the citations and stream the templated answer instead."""
        tier = ScriptedTier(["never sent"], fail_after=0)
        events = await _collect(stream_answer([tier], "q", Language.EN))
        _assert_protocol(events)
        assert events[0].citations[0].doc_id == "case_study:a"
        assert _text(events) == "template answer"
        assert events[-1].type == "done"

    @pytest.mark.asyncio
    async def test_empty_completion_streams_template(self):
        events = await _collect(stream_answer([ScriptedTier([])], "q", Language.EN))
        assert _text(events) == "template answer"
        assert events[-1].type == "done"

    @pytest.mark.asyncio
    async def test_failure_after_deltas_ends_with_error(self):
        tier = ScriptedTier(["Hello ", "world"], fail_after=1)
        events = await _collect(stream_answer([tier], "q", Language.EN))
        _assert_protocol(events)
        assert [e.type for e in events] == ["meta", "delta", "error"]
        assert events[-1].error == PROVIDER_ERROR

    @pytest.mark.asyncio
    async def test_falls_through_failed_tiers_before_meta(self):
        failing = FailingTier(TierFailure("vector", "temporal_mismatch"))
        crashing = FailingTier(RuntimeError("boom"))
        events = await _collect(stream_answer([failing, crashing, ScriptedTier(["ok"])], "q", Language.EN))
        _assert_protocol(events)
        assert failing.prepared == 1
        assert crashing.prepared == 1
        assert _text(events) == "ok"

    @pytest.mark.asyncio
    async def test_all_tiers_failed_is_single_error(self):
        """Should emit exactly one error event and nothing else."""
        events = await _collect(stream_answer([FailingTier(TierFailure("local", "content_unavailable"))], "q", Language.EN))
        assert len(events) == 1
        assert events[0].type == "error"
        assert events[0].error == PROVIDER_ERROR

    @pytest.mark.asyncio
    async def test_closing_stops_upstream(self):
        tier = ScriptedTier(["a", "b", "c"])
        events = stream_answer([tier], "q", Language.EN)

        assert (await events.__anext__()).type == "meta"
        assert (await events.__anext__()).text == "a"
        await events.aclose()

        assert tier.closed


class TestServiceStream:
    @pytest.mark.asyncio
    async def test_unrelated_query_streams_fixed_message(self, content, ask_settings):
        service = AskService(content, ask_settings)
        events = await _collect(service.stream_answer("zzqx vvbk", Language.EN, TierConfig()))
        _assert_protocol(events)
        assert events[0].citations == []
        assert len(events[0].suggested_links) == 4
        assert _text(events) == EMPTY_ANSWER[Language.EN]

    @pytest.mark.asyncio
    async def test_llm_stream_failure_keeps_citations(self, content, ask_settings):
        """Should fall back to the template over the same chunks when the LLM stream fails."""
        completion = FakeCompletion(fail=True)
        service = AskService(content, ask_settings, completion=completion)
        tier = LlmCorpusTier(CorpusLoader(content), completion, ask_settings)
        prepared = await tier.prepare(FRAUD_QUERY, Language.EN)

        events = await _collect(service.stream_answer(FRAUD_QUERY, Language.EN, TierConfig(llm_enabled=True)))

        _assert_protocol(events)
        assert events[0].citations == prepared.citations
        assert _text(events) == prepared.fallback
        assert completion.stream_closed

    @pytest.mark.asyncio
    async def test_llm_stream_deltas(self, content, ask_settings):
        service = AskService(content, ask_settings, completion=FakeCompletion(deltas=["Fraud ", "scoring."]))
        events = await _collect(service.stream_answer(FRAUD_QUERY, Language.EN, TierConfig(llm_enabled=True)))
        assert [e.type for e in events] == ["meta", "delta", "delta", "done"]
        assert _text(events) == "Fraud scoring."


@pytest.mark.asyncio
async def test_ndjson_lines():
    tier = ScriptedTier(["Hi"])
    lines = [line async for line in stream_ndjson(stream_answer([tier], "q", Language.EN))]

    assert all(line.endswith("\n") and line.count("\n") == 1 for line in lines)
    decoded = [json.loads(line) for line in lines]
    assert decoded[0]["type"] == "meta"
    assert decoded[0]["citations"][0]["doc_id"] == "case_study:a"
    assert decoded[1] == {"type": "delta", "text": "Hi"}
    assert decoded[2] == {"type": "done"}
