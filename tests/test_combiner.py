"""Tests for the transcript + chapters combiner."""

import asyncio

from chapterwise.chapter_source import ChapterSource
from chapterwise.combiner import TranscriptChapterCombiner
from chapterwise.errors import AllSourcesExhausted, SourceUnavailable
from chapterwise.models import CacheResult, Chapter, OPEN_ENDED
from chapterwise.transcript_fetcher import TranscriptFetcher, TranscriptStrategy
from conftest import FakeClient, make_segments


class StubFetcher:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error

    async def fetch(self, video_id):
        if self.error is not None:
            raise self.error
        return self.result


class StubChapterSource(StubFetcher):
    pass


def test_cache_flag_requires_both_hits(options):
    chapters = [Chapter("A", 0, 100), Chapter("B", 100, 200), Chapter("C", 200, OPEN_ENDED)]
    combiner = TranscriptChapterCombiner(
        StubFetcher(CacheResult(make_segments(300), is_from_cache=True)),
        StubChapterSource(CacheResult(chapters, is_from_cache=False)),
    )

    result = asyncio.run(combiner.get("vid", options))

    assert result.is_from_cache is False
    assert [c.title for c in result.data.chapters] == ["A", "B", "C"]

    combiner.chapter_source = StubChapterSource(CacheResult(chapters, is_from_cache=True))
    assert asyncio.run(combiner.get("vid", options)).is_from_cache is True


def test_chapter_source_failure_uses_synthetic_chapters(options):
    combiner = TranscriptChapterCombiner(
        StubFetcher(CacheResult(make_segments(1200), is_from_cache=True)),
        StubChapterSource(error=SourceUnavailable("description unavailable")),
    )

    result = asyncio.run(combiner.get("vid", options))

    assert result.data.error is None
    assert [c.title for c in result.data.chapters] == ["Chapter 1 (0:00)", "Chapter 2 (10:00)"]
    assert result.is_from_cache is False


def test_exhausted_sources_become_error_value(options):
    combiner = TranscriptChapterCombiner(
        StubFetcher(error=AllSourcesExhausted("vid", ["captions", "transcript_api"])),
        StubChapterSource(CacheResult([], is_from_cache=False)),
    )

    result = asyncio.run(combiner.get("vid", options))

    assert result.is_from_cache is False
    assert "No transcript available" in result.data.error
    assert result.data.chapters == []
    assert result.data.metadata.total_duration == 0
    assert result.data.metadata.overlap_offset_seconds == 5


def test_repeated_calls_are_served_from_cache(cache, options):
    calls = []

    async def fetch(video_id):
        calls.append(video_id)
        return make_segments(900)

    combiner = TranscriptChapterCombiner(
        TranscriptFetcher(cache, [TranscriptStrategy("captions", fetch)]),
        ChapterSource(cache, client=FakeClient(description="0:00 Intro\n5:00 Middle\n10:00 End")),
    )

    first = asyncio.run(combiner.get("vid", options))
    second = asyncio.run(combiner.get("vid", options))

    assert first.is_from_cache is False
    assert second.is_from_cache is True
    assert second.data.to_dict() == first.data.to_dict()
    assert calls == ["vid"]
    assert [c.title for c in second.data.chapters] == ["Intro", "Middle", "End"]
