"""
Service boundary: transcript retrieval and AI actions as error values.

Nothing raised below this layer escapes it. Callers get TranscriptResponse
or ActionResponse with `error`, `is_from_cache` and `is_rate_limited` set.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .actions import ACTIONS, AIActionContext
from .ai import OpenAIPromptProcessor, PromptProcessor
from .cache import SQLiteResultCache
from .chapter_source import ChapterSource
from .combiner import TranscriptChapterCombiner
from .config import Config, SegmentationOptions
from .errors import is_rate_limited
from .models import (
    ActionRequest,
    ActionResponse,
    AIActionResult,
    CombinedTranscriptChapters,
    TranscriptResponse,
)
from .timestamps import build_timestamped_transcript
from .transcript_fetcher import TranscriptFetcher, build_default_strategies
from .youtube_client import YoutubeClient

logger = logging.getLogger(__name__)


def _rate_limited(error: Exception) -> bool:
    return getattr(error, "status_code", None) == 429 or is_rate_limited(str(error))


class VideoAnalysisService:
    """Wires the cache, transcript combiner and prompt processor together."""

    def __init__(
        self,
        cache=None,
        combiner: Optional[TranscriptChapterCombiner] = None,
        processor: Optional[PromptProcessor] = None,
        client: Optional[YoutubeClient] = None,
        ttl: Optional[float] = None,
    ):
        """
        Args:
            cache: Result cache (defaults to SQLite at Config.CACHE_PATH)
            combiner: Transcript + chapters producer
            processor: AI primitive; created on first use if not given
            client: YouTube access shared by the default sources
            ttl: Seconds an action result stays cached
        """
        self.cache = cache if cache is not None else SQLiteResultCache(Config.CACHE_PATH)
        self.client = client or YoutubeClient()
        self.combiner = combiner or TranscriptChapterCombiner(
            TranscriptFetcher(self.cache, build_default_strategies(client=self.client)),
            ChapterSource(self.cache, client=self.client),
        )
        self._processor = processor
        self.ttl = ttl if ttl is not None else Config.CACHE_TTL_SECONDS

    @property
    def processor(self) -> PromptProcessor:
        # Created lazily so transcript-only use and cache hits need no API key
        if self._processor is None:
            self._processor = OpenAIPromptProcessor()
        return self._processor

    async def get_transcript(
        self, video_id: str, options: Optional[SegmentationOptions] = None
    ) -> TranscriptResponse:
        result = await self.combiner.get(video_id, options)
        combined: CombinedTranscriptChapters = result.data
        if combined.error:
            return TranscriptResponse(
                result=combined,
                error=combined.error,
                is_rate_limited=is_rate_limited(combined.error),
            )
        return TranscriptResponse(result=combined, is_from_cache=result.is_from_cache)

    @staticmethod
    def build_action_request(
        combined: CombinedTranscriptChapters,
        title: str = "",
        topic_title: Optional[str] = None,
        topic_description: Optional[str] = None,
        content: Optional[str] = None,
        per_chapter: bool = False,
        bypass_cache: bool = False,
    ) -> ActionRequest:
        """Turn a normalized transcript into the input of an AI action."""
        return ActionRequest(
            video_id=combined.video_id,
            title=title,
            transcript=build_timestamped_transcript(combined.transcript),
            chapters=list(combined.chapters),
            total_duration=combined.metadata.total_duration,
            topic_title=topic_title,
            topic_description=topic_description,
            content=content,
            per_chapter=per_chapter,
            bypass_cache=bypass_cache,
        )

    async def run_action(self, name: str, request: ActionRequest) -> ActionResponse:
        """
        Run one AI action through the cache.

        Unknown names and invalid requests are rejected before any I/O.
        """
        action = ACTIONS.get(name)
        if action is None:
            return ActionResponse(
                error=f"Unknown action: {name}. Choose from: {', '.join(sorted(ACTIONS))}"
            )

        error = action.validate(request)
        if error:
            return ActionResponse(error=error)

        async def compute() -> AIActionResult:
            processor = self.processor
            context = AIActionContext(
                request=request, processor=processor, model_id=processor.model_id
            )
            return await action.execute(context)

        try:
            cached = await self.cache.with_cache(
                compute,
                action.cache_key,
                action.cache_params(request),
                ttl=self.ttl,
                bypass_cache=request.bypass_cache,
                encode=lambda result: result.to_dict(),
                decode=AIActionResult.from_dict,
            )
        except Exception as e:
            logger.error("Action %s failed for %s: %s", name, request.video_id, e)
            return ActionResponse(error=str(e), is_rate_limited=_rate_limited(e))

        return ActionResponse(result=cached.data, is_from_cache=cached.is_from_cache)

    async def analyze(
        self,
        video_id: str,
        action: str,
        title: Optional[str] = None,
        topic_title: Optional[str] = None,
        topic_description: Optional[str] = None,
        content: Optional[str] = None,
        per_chapter: bool = False,
        bypass_cache: bool = False,
        options: Optional[SegmentationOptions] = None,
    ) -> ActionResponse:
        """Fetch the transcript for a video and run `action` on it."""
        transcript = await self.get_transcript(video_id, options)
        if transcript.error:
            return ActionResponse(
                error=transcript.error, is_rate_limited=transcript.is_rate_limited
            )

        if title is None:
            title = await asyncio.to_thread(self.client.get_title, video_id)

        request = self.build_action_request(
            transcript.result,
            title=title,
            topic_title=topic_title,
            topic_description=topic_description,
            content=content,
            per_chapter=per_chapter,
            bypass_cache=bypass_cache,
        )
        return await self.run_action(action, request)

    def close(self) -> None:
        close = getattr(self.cache, "close", None)
        if close:
            close()
