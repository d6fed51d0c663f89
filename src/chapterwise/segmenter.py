"""
Chapter segmentation.

Assigns transcript segments to chapter windows widened by an overlap offset,
after dropping promotional chapters and promotional transcript lines. When a
video has no official chapters, fixed-size synthetic chapters are used.

Membership is a plain interval test per (segment, chapter) pair. Widened
windows of neighbouring chapters intersect, so a segment near a boundary can
land in two chapters.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

from .config import ChapterFilterConfig, SegmentationOptions
from .models import (
    Chapter,
    ChapterWithContent,
    CombinedTranscriptChapters,
    TranscriptMetadata,
    TranscriptSegment,
)
from .timestamps import format_marker

logger = logging.getLogger(__name__)

FULL_VIDEO_TITLE = "Full Video"
# Duration assumed for an open-ended final chapter that starts after the transcript ends
OPEN_CHAPTER_FALLBACK_SECONDS = 300.0


# ----------------------------
# Utilities
# ----------------------------

def sort_segments(segments: Sequence[TranscriptSegment]) -> List[TranscriptSegment]:
    return sorted(segments, key=lambda s: (s.start_seconds, s.end_seconds))


def transcript_duration(segments: Sequence[TranscriptSegment]) -> float:
    """Total duration: end of the last segment in time order."""
    if not segments:
        return 0.0
    return sort_segments(segments)[-1].end_seconds


def apply_chapter_overlap(chapters: Sequence[Chapter], overlap_offset_seconds: float) -> List[Chapter]:
    """
    Widen every chapter window by the overlap offset.

    The first chapter keeps its start; other starts move back (floored at 0)
    and every end moves forward.
    """
    adjusted = []
    for index, chapter in enumerate(chapters):
        if index == 0:
            start = chapter.start_time
        else:
            start = max(0.0, chapter.start_time - overlap_offset_seconds)
        adjusted.append(
            Chapter(
                title=chapter.title,
                start_time=start,
                end_time=chapter.end_time + overlap_offset_seconds,
            )
        )
    return adjusted


def resolve_open_end(chapters: Sequence[Chapter], total_duration: float) -> List[Chapter]:
    """Replace an open-ended final chapter end with the transcript's duration."""
    resolved = []
    for chapter in chapters:
        if chapter.is_open_ended:
            end = total_duration
            if end <= chapter.start_time:
                end = chapter.start_time + OPEN_CHAPTER_FALLBACK_SECONDS
            chapter = Chapter(chapter.title, chapter.start_time, end)
        resolved.append(chapter)
    return resolved


def synthetic_chapter_title(index: int, start_time: float) -> str:
    return f"Chapter {index + 1} ({format_marker(start_time)})"


def build_synthetic_chapters(
    segments: Sequence[TranscriptSegment], options: SegmentationOptions
) -> List[Chapter]:
    """
    Fixed-size chapters spanning the whole transcript.

    `total_chapters` (equal time slices) wins over `segments_per_chapter`
    (every N segments), which wins over `chapter_duration_seconds`.
    """
    ordered = sort_segments(segments)
    total = transcript_duration(ordered)
    if not ordered or total <= 0:
        return []

    if options.total_chapters <= 0 and options.segments_per_chapter > 0:
        chapters = []
        step = options.segments_per_chapter
        groups = [ordered[i:i + step] for i in range(0, len(ordered), step)]
        for i, group in enumerate(groups):
            start = 0.0 if i == 0 else group[0].start_seconds
            end = groups[i + 1][0].start_seconds if i + 1 < len(groups) else total
            chapters.append(Chapter(synthetic_chapter_title(i, start), start, end))
        return chapters

    if options.total_chapters > 0:
        duration = total / options.total_chapters
        count = options.total_chapters
    else:
        duration = options.chapter_duration_seconds or 600.0
        count = math.ceil(total / duration)

    chapters = []
    for i in range(count):
        start = i * duration
        end = min((i + 1) * duration, total)
        chapters.append(Chapter(synthetic_chapter_title(i, start), start, end))
    return chapters


# ----------------------------
# Segmenter
# ----------------------------

class ChapterSegmenter:
    """Builds CombinedTranscriptChapters from segments and chapter boundaries."""

    def __init__(self, filter_config: Optional[ChapterFilterConfig] = None):
        self.filter_config = filter_config or ChapterFilterConfig()

    def segment(
        self,
        video_id: str,
        segments: Sequence[TranscriptSegment],
        official_chapters: Sequence[Chapter],
        options: Optional[SegmentationOptions] = None,
    ) -> CombinedTranscriptChapters:
        """
        Assign segments to chapters.

        Args:
            video_id: Video the segments belong to
            segments: Transcript segments in any order
            official_chapters: Platform chapters; empty means synthesize
            options: Overlap and synthetic chapter sizing

        Returns:
            CombinedTranscriptChapters; `error` is set when there is no transcript
        """
        options = options or SegmentationOptions()
        overlap = options.overlap_offset_seconds

        if not segments:
            return CombinedTranscriptChapters.failed(
                video_id, "No transcript available to split into chapters", overlap
            )

        ordered = sort_segments(segments)
        total = transcript_duration(ordered)

        if official_chapters:
            kept, dropped = self._filter_chapters(resolve_open_end(official_chapters, total))
            if not kept:
                logger.info("All chapters of %s were promotional; using a single chapter", video_id)
                end = total if total > 0 else OPEN_CHAPTER_FALLBACK_SECONDS
                kept = [Chapter(FULL_VIDEO_TITLE, 0.0, end)]
        else:
            kept = build_synthetic_chapters(ordered, options)
            dropped = []
            logger.debug("No official chapters for %s; built %d synthetic", video_id, len(kept))

        transcript = [
            s for s in ordered
            if not self.filter_config.is_promotional_text(s.text)
            and not any(c.start_time <= s.start_seconds < c.end_time for c in dropped)
        ]

        windows = apply_chapter_overlap(kept, overlap)
        chapters = [self._fill_chapter(window, transcript) for window in windows]

        return CombinedTranscriptChapters(
            video_id=video_id,
            metadata=TranscriptMetadata(
                total_duration=total,
                chapter_count=len(chapters),
                transcript_item_count=len(transcript),
                overlap_offset_seconds=overlap,
            ),
            chapters=chapters,
            transcript=transcript,
        )

    def _filter_chapters(self, chapters: Sequence[Chapter]):
        kept, dropped = [], []
        for chapter in chapters:
            if self.filter_config.is_promotional_title(chapter.title):
                dropped.append(chapter)
            else:
                kept.append(chapter)
        if dropped:
            logger.info("Dropped promotional chapters: %s", ", ".join(c.title for c in dropped))
        return kept, dropped

    @staticmethod
    def _fill_chapter(window: Chapter, transcript: Sequence[TranscriptSegment]) -> ChapterWithContent:
        members = sort_segments(
            [s for s in transcript if window.start_time <= s.start_seconds < window.end_time]
        )
        return ChapterWithContent(
            title=window.title,
            start_time=window.start_time,
            end_time=window.end_time,
            content=" ".join(s.text for s in members).strip(),
            segments=members,
        )
