"""Official chapter boundaries parsed from a video's description."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import List, Optional

from .cache import ResultCache
from .config import Config
from .models import CacheResult, Chapter, OPEN_ENDED
from .timestamps import parse_timestamp
from .youtube_client import YoutubeClient

logger = logging.getLogger(__name__)

CHAPTERS_CACHE_KEY = "yt:chapters"

# "0:00 Intro", "- 01:02:03 – Deep dive", "(12:30) Q&A", "[4:05] | Wrap-up"
_CHAPTER_LINE_RE = re.compile(
    r"^\s*(?:[-*•]\s*)?[\(\[]?((?:\d{1,2}:)?\d{1,2}:\d{2})[\)\]]?"
    r"\s*(?:[-–—|:]\s*)?(\S.*?)\s*$"
)


def parse_description_chapters(description: str, min_chapters: Optional[int] = None) -> List[Chapter]:
    """
    Parse `<timestamp> <title>` lines from a description into chapters.

    Chapters are only returned when the first one starts at 0:00 and at least
    `min_chapters` entries were found. Out-of-order or repeated timestamps are
    skipped. Each chapter ends where the next starts; the last is open-ended.
    """
    min_chapters = Config.MIN_OFFICIAL_CHAPTERS if min_chapters is None else min_chapters

    entries = []
    for line in (description or "").splitlines():
        match = _CHAPTER_LINE_RE.match(line)
        if not match:
            continue
        start = parse_timestamp(match.group(1))
        title = match.group(2).strip()
        if start is None or not title:
            continue
        if entries and start <= entries[-1][0]:
            continue
        entries.append((float(start), title))

    if not entries or entries[0][0] != 0 or len(entries) < min_chapters:
        return []

    chapters = []
    for i, (start, title) in enumerate(entries):
        end = entries[i + 1][0] if i + 1 < len(entries) else OPEN_ENDED
        chapters.append(Chapter(title=title, start_time=start, end_time=end))
    return chapters


def _encode_chapters(chapters: List[Chapter]) -> dict:
    # json cannot carry inf, so the open end is stored as null
    return {
        "chapters": [
            {"title": c.title, "start_time": c.start_time,
             "end_time": None if c.is_open_ended else c.end_time}
            for c in chapters
        ]
    }


def _decode_chapters(data: dict) -> List[Chapter]:
    return [
        Chapter(
            title=c["title"],
            start_time=float(c["start_time"]),
            end_time=OPEN_ENDED if c["end_time"] is None else float(c["end_time"]),
        )
        for c in data["chapters"]
    ]


class ChapterSource:
    """Fetches official chapters; an empty list means none are declared."""

    def __init__(
        self,
        cache: ResultCache,
        client: Optional[YoutubeClient] = None,
        ttl: Optional[float] = None,
        min_chapters: Optional[int] = None,
    ):
        self.cache = cache
        self.client = client or YoutubeClient()
        self.ttl = ttl if ttl is not None else Config.CACHE_TTL_SECONDS
        self.min_chapters = min_chapters

    async def fetch(self, video_id: str) -> CacheResult:
        """
        Returns:
            CacheResult whose data is a list of Chapter (possibly empty)

        Raises:
            SourceUnavailable: If the description could not be read
        """
        async def compute() -> List[Chapter]:
            description = await asyncio.to_thread(self.client.get_description, video_id)
            chapters = parse_description_chapters(description, self.min_chapters)
            logger.debug("Found %d official chapters for %s", len(chapters), video_id)
            return chapters

        return await self.cache.with_cache(
            compute,
            CHAPTERS_CACHE_KEY,
            {"video_id": video_id},
            ttl=self.ttl,
            encode=_encode_chapters,
            decode=_decode_chapters,
        )
