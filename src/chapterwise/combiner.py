"""Orchestrates transcript fetch, chapter fetch and segmentation."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .chapter_source import ChapterSource
from .config import SegmentationOptions
from .models import CacheResult, CombinedTranscriptChapters
from .segmenter import ChapterSegmenter
from .transcript_fetcher import TranscriptFetcher

logger = logging.getLogger(__name__)


class TranscriptChapterCombiner:
    """
    Produces CombinedTranscriptChapters for a video.

    Never raises: any failure comes back as a result with `error` set and
    zeroed metadata, so API callers check `error` instead of catching.
    """

    def __init__(
        self,
        fetcher: TranscriptFetcher,
        chapter_source: ChapterSource,
        segmenter: Optional[ChapterSegmenter] = None,
    ):
        self.fetcher = fetcher
        self.chapter_source = chapter_source
        self.segmenter = segmenter or ChapterSegmenter()

    async def _fetch_chapters(self, video_id: str) -> CacheResult:
        # Official chapters are optional; a failed description read means "none"
        try:
            return await self.chapter_source.fetch(video_id)
        except Exception as e:
            logger.warning("Chapter source failed for %s, using synthetic chapters: %s", video_id, e)
            return CacheResult(data=[], is_from_cache=False)

    async def get(
        self, video_id: str, options: Optional[SegmentationOptions] = None
    ) -> CacheResult:
        """
        Args:
            video_id: Platform video id
            options: Overlap and synthetic chapter sizing

        Returns:
            CacheResult with CombinedTranscriptChapters. `is_from_cache` is
            True only when both the transcript and the chapters were cache hits.
        """
        options = options or SegmentationOptions()
        try:
            transcript_result, chapters_result = await asyncio.gather(
                self.fetcher.fetch(video_id),
                self._fetch_chapters(video_id),
            )
            combined = self.segmenter.segment(
                video_id,
                transcript_result.data,
                chapters_result.data,
                options,
            )
        except Exception as e:
            logger.error("Error getting chapters and transcript for video %s: %s", video_id, e)
            return CacheResult(
                data=CombinedTranscriptChapters.failed(
                    video_id, str(e), options.overlap_offset_seconds
                ),
                is_from_cache=False,
            )

        return CacheResult(
            data=combined,
            is_from_cache=transcript_result.is_from_cache and chapters_result.is_from_cache,
        )
