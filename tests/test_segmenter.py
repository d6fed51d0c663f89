"""Tests for chapter segmentation."""

import math

from chapterwise.config import SegmentationOptions
from chapterwise.models import Chapter, OPEN_ENDED
from chapterwise.segmenter import (
    ChapterSegmenter,
    apply_chapter_overlap,
    build_synthetic_chapters,
    resolve_open_end,
)
from conftest import make_segment, make_segments


def test_synthetic_chapters_every_ten_minutes(options):
    result = ChapterSegmenter().segment("vid", make_segments(3600), [], options)

    assert result.error is None
    assert [c.title for c in result.chapters] == [
        "Chapter 1 (0:00)",
        "Chapter 2 (10:00)",
        "Chapter 3 (20:00)",
        "Chapter 4 (30:00)",
        "Chapter 5 (40:00)",
        "Chapter 6 (50:00)",
    ]
    assert result.metadata.total_duration == 3600
    assert result.metadata.chapter_count == 6
    assert result.metadata.transcript_item_count == 360
    assert result.metadata.overlap_offset_seconds == 5


def test_overlap_widens_windows(options):
    result = ChapterSegmenter().segment("vid", make_segments(3600), [], options)
    first, second, third = result.chapters[:3]

    assert (first.start_time, first.end_time) == (0, 605)
    assert (second.start_time, second.end_time) == (595, 1205)

    # Every segment starting inside the original window is a member
    second_starts = {s.start_seconds for s in second.segments}
    assert set(range(600, 1200, 10)) <= second_starts
    # A segment just past a boundary shows up in both neighbours
    assert 1200 in second_starts
    assert 1200 in {s.start_seconds for s in third.segments}


def test_every_segment_lands_in_a_chapter(options):
    result = ChapterSegmenter().segment("vid", make_segments(1900, step=7), [], options)

    members = {s for c in result.chapters for s in c.segments}
    assert set(result.transcript) <= members


def test_zero_overlap_partitions_transcript():
    options = SegmentationOptions(overlap_offset_seconds=0, chapter_duration_seconds=600)
    result = ChapterSegmenter().segment("vid", make_segments(3600), [], options)

    assert sum(len(c.segments) for c in result.chapters) == len(result.transcript)


def test_sponsor_chapter_and_its_segments_are_dropped(options):
    segments = make_segments(300)
    segments[20] = make_segment(200, 10, "This video is sponsored by Acme")
    chapters = [
        Chapter("Intro", 0, 60),
        Chapter("Sponsor: Acme", 60, 120),
        Chapter("Main", 120, OPEN_ENDED),
    ]

    result = ChapterSegmenter().segment("vid", segments, chapters, options)

    assert [c.title for c in result.chapters] == ["Intro", "Main"]
    assert not any(60 <= s.start_seconds < 120 for s in result.transcript)
    assert not any("sponsored" in s.text for s in result.transcript)
    assert result.metadata.chapter_count == 2
    assert result.metadata.transcript_item_count == len(result.transcript) == 23
    # Open end resolves to the transcript's duration plus overlap
    assert result.chapters[-1].end_time == 305


def test_all_promotional_chapters_fall_back_to_full_video(options):
    chapters = [Chapter("Sponsor", 0, 100), Chapter("Advertisement", 100, OPEN_ENDED)]

    result = ChapterSegmenter().segment("vid", make_segments(300), chapters, options)

    assert [c.title for c in result.chapters] == ["Full Video"]
    assert result.chapters[0].start_time == 0


def test_empty_transcript_is_an_error_value(options):
    result = ChapterSegmenter().segment("vid", [], [], options)

    assert result.error
    assert result.chapters == [] and result.transcript == []
    assert result.metadata.total_duration == 0
    assert result.metadata.chapter_count == 0
    assert result.metadata.overlap_offset_seconds == 5


def test_unsorted_segments_are_ordered(options):
    segments = list(reversed(make_segments(120)))

    result = ChapterSegmenter().segment("vid", segments, [], options)

    starts = [s.start_seconds for s in result.transcript]
    assert starts == sorted(starts)
    assert result.metadata.total_duration == 120


def test_synthetic_sizing_priority():
    segments = make_segments(3600)

    by_count = build_synthetic_chapters(segments, SegmentationOptions(total_chapters=4))
    by_segments = build_synthetic_chapters(segments, SegmentationOptions(segments_per_chapter=100))
    both = build_synthetic_chapters(
        segments, SegmentationOptions(total_chapters=3, segments_per_chapter=100)
    )

    assert [(c.start_time, c.end_time) for c in by_count] == [
        (0, 900), (900, 1800), (1800, 2700), (2700, 3600)
    ]
    assert [c.start_time for c in by_segments] == [0, 1000, 2000, 3000]
    assert by_segments[-1].end_time == 3600
    assert len(both) == 3


def test_apply_chapter_overlap_keeps_first_start():
    chapters = [Chapter("a", 0, 3), Chapter("b", 3, 60)]

    adjusted = apply_chapter_overlap(chapters, 5)

    assert (adjusted[0].start_time, adjusted[0].end_time) == (0, 8)
    assert (adjusted[1].start_time, adjusted[1].end_time) == (0, 65)


def test_resolve_open_end_when_transcript_ends_early():
    chapters = [Chapter("a", 0, 400), Chapter("b", 400, OPEN_ENDED)]

    resolved = resolve_open_end(chapters, 350)

    assert resolved[0].end_time == 400
    assert resolved[1].end_time == 700
    assert not any(math.isinf(c.end_time) for c in resolved)
