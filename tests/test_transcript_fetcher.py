"""Tests for the transcript fallback chain."""

import asyncio

import pytest

from chapterwise.errors import AllSourcesExhausted, SourceUnavailable
from chapterwise.remote import RemoteResult
from chapterwise.transcript_fetcher import (
    TranscriptFetcher,
    TranscriptStrategy,
    build_default_strategies,
    make_captions_strategy,
    make_remote_strategy,
    make_transcript_api_strategy,
)
from conftest import FakeClient, make_segments


class RecordingStrategy:
    def __init__(self, name, result=None, error=None):
        self.name = name
        self.result = result
        self.error = error
        self.calls = 0

    async def __call__(self, video_id):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result

    def strategy(self):
        return TranscriptStrategy(self.name, self)


def test_first_success_wins_and_is_cached(cache):
    failing = RecordingStrategy("captions", error=SourceUnavailable("no captions"))
    empty = RecordingStrategy("transcript_api", result=[])
    working = RecordingStrategy("remote", result=make_segments(60))
    unused = RecordingStrategy("spare", result=make_segments(30))
    fetcher = TranscriptFetcher(
        cache, [s.strategy() for s in (failing, empty, working, unused)]
    )

    first = asyncio.run(fetcher.fetch("vid"))
    second = asyncio.run(fetcher.fetch("vid"))

    assert first.data == make_segments(60)
    assert first.is_from_cache is False
    assert second.is_from_cache is True
    assert second.data == first.data
    # A warm slot short-circuits the chain, so nothing runs on the second call
    assert (failing.calls, empty.calls, working.calls, unused.calls) == (1, 1, 1, 0)


def test_all_strategies_failing_raises(cache):
    strategies = [
        RecordingStrategy("captions", error=SourceUnavailable("a")).strategy(),
        RecordingStrategy("transcript_api", error=RuntimeError("b")).strategy(),
    ]
    fetcher = TranscriptFetcher(cache, strategies)

    with pytest.raises(AllSourcesExhausted) as exc_info:
        asyncio.run(fetcher.fetch("vid"))

    assert exc_info.value.attempted == ["captions", "transcript_api"]
    assert "vid" in str(exc_info.value)
    assert exc_info.value.errors == ["captions: a", "transcript_api: b"]
    assert exc_info.value.rate_limited is False


def test_captions_strategy_decodes_document():
    client = FakeClient(caption_document='<transcript><text start="1" dur="2">hi</text></transcript>')

    segments = asyncio.run(make_captions_strategy(client).fetch("vid"))

    assert [(s.start_seconds, s.text) for s in segments] == [(1.0, "hi")]


def test_transcript_api_strategy_decodes_snippets():
    client = FakeClient(snippets=[{"text": "hello", "start": 0.0, "duration": 1.0}])

    segments = asyncio.run(make_transcript_api_strategy(client).fetch("vid"))

    assert [s.text for s in segments] == ["hello"]


class FakeExecutor:
    def __init__(self, data):
        self.data = data
        self.calls = []

    async def call_remote(self, handler_module_path, args):
        self.calls.append((handler_module_path, args))
        return RemoteResult(data=self.data, duration_ms=12.0)


def test_remote_strategy_decodes_payload():
    payload = {"segments": [s.to_dict() for s in make_segments(20)]}
    executor = FakeExecutor(payload)

    segments = asyncio.run(make_remote_strategy(executor).fetch("vid"))

    assert segments == make_segments(20)
    assert executor.calls == [
        ("chapterwise.transcript_fetcher:fetch_transcript_isolated", {"video_id": "vid"})
    ]


def test_remote_strategy_rejects_missing_payload():
    with pytest.raises(SourceUnavailable):
        asyncio.run(make_remote_strategy(FakeExecutor(None)).fetch("vid"))


def test_build_default_strategies_order():
    strategies = build_default_strategies(["transcript_api", "captions"], client=FakeClient())

    assert [s.name for s in strategies] == ["transcript_api", "captions"]

    with pytest.raises(ValueError):
        build_default_strategies(["carrier_pigeon"], client=FakeClient())


class FlakyStrategy(RecordingStrategy):
    """Fails on the first call only."""

    async def __call__(self, video_id):
        self.calls += 1
        if self.calls == 1:
            raise SourceUnavailable("temporarily unavailable")
        return self.result


def test_warm_cache_returns_same_transcript_when_earlier_strategy_recovers(cache):
    flaky = FlakyStrategy("captions", result=make_segments(600))
    fallback = RecordingStrategy("transcript_api", result=make_segments(900))
    fetcher = TranscriptFetcher(cache, [flaky.strategy(), fallback.strategy()])

    first = asyncio.run(fetcher.fetch("vid"))
    second = asyncio.run(fetcher.fetch("vid"))

    assert len(first.data) == 90
    assert second.is_from_cache is True
    assert second.data == first.data
    assert flaky.calls == 1
    assert fallback.calls == 1


def test_rate_limited_strategies_are_reported(cache):
    strategies = [
        RecordingStrategy(name, error=SourceUnavailable("HTTP Error 429: Too Many Requests")).strategy()
        for name in ("captions", "transcript_api")
    ]

    with pytest.raises(AllSourcesExhausted) as exc_info:
        asyncio.run(TranscriptFetcher(cache, strategies).fetch("vid"))

    assert exc_info.value.rate_limited is True
    assert "429" in str(exc_info.value)
