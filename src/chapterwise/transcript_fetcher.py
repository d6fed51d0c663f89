"""
Transcript acquisition with an ordered fallback chain.

Each strategy is an async function `video_id -> [TranscriptSegment]` wrapped
in its own cache slot. The fetcher tries them in order and returns the first
success; it never decodes anything itself.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from .cache import ResultCache
from .config import Config
from .decoders import decode_segment_dicts, decode_timed_text, decode_transcript_snippets
from .errors import AllSourcesExhausted, SourceUnavailable
from .models import CacheResult, TranscriptSegment
from .remote import RemoteExecutor, SubprocessRemoteExecutor
from .youtube_client import YoutubeClient

logger = logging.getLogger(__name__)

TRANSCRIPT_CACHE_KEY = "yt:transcript"
ISOLATED_HANDLER = "chapterwise.transcript_fetcher:fetch_transcript_isolated"

StrategyFn = Callable[[str], Awaitable[List[TranscriptSegment]]]


@dataclass(frozen=True)
class TranscriptStrategy:
    name: str
    fetch: StrategyFn


def _encode_segments(segments: List[TranscriptSegment]) -> dict:
    return {"segments": [s.to_dict() for s in segments]}


def _decode_segments(data: dict) -> List[TranscriptSegment]:
    return [TranscriptSegment.from_dict(s) for s in data["segments"]]


# ----------------------------
# Strategies
# ----------------------------

def make_captions_strategy(client: YoutubeClient) -> TranscriptStrategy:
    async def fetch(video_id: str) -> List[TranscriptSegment]:
        document = await asyncio.to_thread(client.get_caption_document, video_id)
        return decode_timed_text(document)

    return TranscriptStrategy("captions", fetch)


def make_transcript_api_strategy(client: YoutubeClient) -> TranscriptStrategy:
    async def fetch(video_id: str) -> List[TranscriptSegment]:
        transcript = await asyncio.to_thread(client.get_transcript, video_id)
        return decode_transcript_snippets(transcript)

    return TranscriptStrategy("transcript_api", fetch)


def make_remote_strategy(executor: RemoteExecutor) -> TranscriptStrategy:
    async def fetch(video_id: str) -> List[TranscriptSegment]:
        remote = await executor.call_remote(ISOLATED_HANDLER, {"video_id": video_id})
        logger.debug("Remote transcript fetch for %s took %.0fms", video_id, remote.duration_ms)
        if not isinstance(remote.data, dict):
            raise SourceUnavailable("Remote transcript handler returned no payload")
        return decode_segment_dicts(remote.data.get("segments") or [])

    return TranscriptStrategy("remote", fetch)


def fetch_transcript_isolated(video_id: str) -> dict:
    """
    Remote handler: captions first, then the transcript API, in this process.

    Runs inside the remote worker, so it returns plain JSON data.
    """
    client = YoutubeClient()
    errors = []
    try:
        segments = decode_timed_text(client.get_caption_document(video_id))
        return _encode_segments(segments)
    except Exception as e:
        errors.append(f"captions: {e}")
    try:
        segments = decode_transcript_snippets(client.get_transcript(video_id))
        return _encode_segments(segments)
    except Exception as e:
        errors.append(f"transcript_api: {e}")
    raise SourceUnavailable("; ".join(errors))


def build_default_strategies(
    names: Optional[Sequence[str]] = None,
    client: Optional[YoutubeClient] = None,
    executor: Optional[RemoteExecutor] = None,
) -> List[TranscriptStrategy]:
    """Build the strategy list in the configured order."""
    client = client or YoutubeClient()
    factories: Dict[str, Callable[[], TranscriptStrategy]] = {
        "captions": lambda: make_captions_strategy(client),
        "transcript_api": lambda: make_transcript_api_strategy(client),
        "remote": lambda: make_remote_strategy(executor or SubprocessRemoteExecutor()),
    }
    strategies = []
    for name in names or Config.TRANSCRIPT_STRATEGIES:
        if name not in factories:
            raise ValueError(f"Unknown transcript strategy: {name}")
        strategies.append(factories[name]())
    return strategies


# ----------------------------
# Fetcher
# ----------------------------

class TranscriptFetcher:
    """Tries each transcript strategy in order and returns the first success."""

    def __init__(
        self,
        cache: ResultCache,
        strategies: Optional[List[TranscriptStrategy]] = None,
        ttl: Optional[float] = None,
    ):
        self.cache = cache
        self.strategies = strategies if strategies is not None else build_default_strategies()
        self.ttl = ttl if ttl is not None else Config.CACHE_TTL_SECONDS

    @staticmethod
    def _slot(strategy: TranscriptStrategy) -> str:
        return f"{TRANSCRIPT_CACHE_KEY}:{strategy.name}"

    def _cached(self, video_id: str) -> Optional[CacheResult]:
        """First stored transcript in strategy order, without running anything."""
        for strategy in self.strategies:
            stored = self.cache.get(self._slot(strategy), {"video_id": video_id})
            if stored is not None:
                logger.debug("Transcript for %s cached under %s", video_id, strategy.name)
                return CacheResult(data=_decode_segments(stored), is_from_cache=True)
        return None

    async def _run_strategy(self, strategy: TranscriptStrategy, video_id: str) -> CacheResult:
        async def compute() -> List[TranscriptSegment]:
            segments = await strategy.fetch(video_id)
            if not segments:
                raise SourceUnavailable(f"{strategy.name} returned no segments")
            return segments

        return await self.cache.with_cache(
            compute,
            self._slot(strategy),
            {"video_id": video_id},
            ttl=self.ttl,
            encode=_encode_segments,
            decode=_decode_segments,
        )

    async def fetch(self, video_id: str) -> CacheResult:
        """
        Fetch a transcript for a video.

        Every strategy's cache slot is checked before any strategy runs, so
        a warm cache always returns the same transcript.

        Args:
            video_id: Platform video id

        Returns:
            CacheResult whose data is a non-empty list of TranscriptSegment

        Raises:
            AllSourcesExhausted: If every strategy failed
        """
        cached = self._cached(video_id)
        if cached is not None:
            return cached

        attempted = []
        errors = []
        for strategy in self.strategies:
            attempted.append(strategy.name)
            started = time.monotonic()
            try:
                result = await self._run_strategy(strategy, video_id)
            except Exception as e:
                elapsed_ms = (time.monotonic() - started) * 1000
                logger.warning(
                    "Transcript strategy %s failed for %s after %.0fms: %s",
                    strategy.name, video_id, elapsed_ms, e,
                )
                errors.append(f"{strategy.name}: {e}")
                continue

            elapsed_ms = (time.monotonic() - started) * 1000
            logger.info(
                "Transcript for %s from %s (%d segments, %.0fms%s)",
                video_id, strategy.name, len(result.data), elapsed_ms,
                ", cached" if result.is_from_cache else "",
            )
            return result

        logger.error("All transcript strategies failed for %s", video_id)
        raise AllSourcesExhausted(video_id, attempted, errors)
