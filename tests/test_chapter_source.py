"""Tests for official chapter parsing and fetching."""

import asyncio
import math

from chapterwise.chapter_source import ChapterSource, parse_description_chapters
from conftest import FakeClient

DESCRIPTION = """Thanks for watching!

0:00 Intro
- 1:30 – Setup
(12:30) Q&A
[1:02:03] | Wrap-up

Follow me elsewhere."""


def test_parse_description_chapters():
    chapters = parse_description_chapters(DESCRIPTION)

    assert [c.title for c in chapters] == ["Intro", "Setup", "Q&A", "Wrap-up"]
    assert [c.start_time for c in chapters] == [0, 90, 750, 3723]
    assert [c.end_time for c in chapters[:-1]] == [90, 750, 3723]
    assert chapters[-1].is_open_ended


def test_chapters_must_start_at_zero():
    assert parse_description_chapters("0:30 Intro\n1:00 Middle\n2:00 End") == []


def test_minimum_chapter_count():
    description = "0:00 Intro\n1:00 End"
    assert parse_description_chapters(description) == []
    assert len(parse_description_chapters(description, min_chapters=2)) == 2


def test_out_of_order_timestamps_are_skipped():
    chapters = parse_description_chapters("0:00 A\n2:00 B\n1:00 Back in time\n3:00 C")
    assert [c.title for c in chapters] == ["A", "B", "C"]


def test_fetch_caches_open_ended_chapters(cache):
    client = FakeClient(description=DESCRIPTION)
    source = ChapterSource(cache, client=client)

    first = asyncio.run(source.fetch("vid1"))
    second = asyncio.run(source.fetch("vid1"))

    assert first.is_from_cache is False
    assert second.is_from_cache is True
    assert client.description_calls == 1
    assert second.data == first.data
    assert math.isinf(second.data[-1].end_time)


def test_fetch_without_chapters_returns_empty_list(cache):
    source = ChapterSource(cache, client=FakeClient(description="No chapters here."))

    result = asyncio.run(source.fetch("vid2"))

    assert result.data == []
