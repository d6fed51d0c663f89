"""
AI actions over a normalized transcript.

Each action defines its cache identity, validates its request before any I/O
and decides how to call the model:

* single-pass: one prompt over the whole transcript;
* map + synthesis: one prompt per chapter, run concurrently, then one prompt
  that merges the chapter outputs;
* per-chapter: the map step alone, without a synthesis call.

A failing chapter call aborts the whole action; the exception reaches the
caller of `execute`.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .ai import PromptProcessor
from .config import Config
from .models import (
    ActionRequest,
    AIActionResult,
    ChapterSummary,
    ChapterWithContent,
    Cost,
    PromptResponse,
    VideoTopic,
)
from .parsing import clamp_timestamp, parse_chapter_topic_json, parse_topics_json
from .prompts import (
    CHAPTER_EXPLAIN_PROMPT,
    CHAPTER_KEY_POINTS_PROMPT,
    CHAPTER_SUMMARY_PROMPT,
    CHAPTER_TOPIC_PROMPT,
    EXPLAIN_PROMPT,
    KEY_POINTS_PROMPT,
    KEY_POINTS_SYNTHESIS_PROMPT,
    SUBTOPIC_EXPAND_PROMPT,
    SUMMARY_PROMPT,
    SUMMARY_SYNTHESIS_PROMPT,
    TOPIC_EXPAND_PROMPT,
    TOPICS_SINGLE_PASS_PROMPT,
)
from .timestamps import build_timestamped_transcript

logger = logging.getLogger(__name__)


@dataclass
class AIActionContext:
    request: ActionRequest
    processor: PromptProcessor
    model_id: str


# ----------------------------
# Shared helpers
# ----------------------------

def sum_costs(responses: Sequence[PromptResponse]) -> Cost:
    total = Cost()
    for response in responses:
        total = total + response.cost
    return total


def chapter_text(chapter: ChapterWithContent) -> str:
    """Chapter transcript with [M:SS] markers, or plain content if it has no segments."""
    if chapter.segments:
        return build_timestamped_transcript(chapter.segments)
    return chapter.content


def use_chapter_strategy(request: ActionRequest, char_limit: Optional[int] = None) -> bool:
    """Map + synthesis only pays off for long transcripts that have real chapters."""
    limit = Config.SINGLE_PASS_CHAR_LIMIT if char_limit is None else char_limit
    return len(request.transcript) > limit and len(request.chapters) >= 2


def format_chapter_outputs(summaries: Sequence[ChapterSummary]) -> str:
    return "\n\n".join(f"Chapter: {s.title}\n{s.summary}" for s in summaries)


def topic_description_line(request: ActionRequest) -> str:
    if request.topic_description:
        return f"Topic description: {request.topic_description}\n"
    return ""


# ----------------------------
# Base classes
# ----------------------------

class AIAction:
    """Base class for actions. Subclasses set `name` and `cache_key` and implement `execute`."""

    name: str = ""
    cache_key: str = ""

    @property
    def tag(self) -> str:
        return f"video-{self.name}"

    def cache_params(self, request: ActionRequest) -> Dict[str, object]:
        return {"video_id": request.video_id}

    def validate(self, request: ActionRequest) -> Optional[str]:
        """Return an error message for an unusable request, or None."""
        if not request.video_id:
            return "videoId is required"
        if not request.transcript.strip():
            return "transcript is required"
        return None

    async def execute(self, context: AIActionContext) -> AIActionResult:
        raise NotImplementedError

    async def _single_pass(self, context: AIActionContext, prompt: str) -> AIActionResult:
        response = await context.processor.process_prompt_to_text(prompt, self.tag)
        return AIActionResult(
            model_id=context.model_id, cost=response.cost, summary=response.result
        )

    async def _map_chapters(
        self, context: AIActionContext, template: str
    ) -> List[PromptResponse]:
        request = context.request
        prompts = [
            template.format(
                title=request.title,
                chapter_title=chapter.title,
                content=chapter_text(chapter),
            )
            for chapter in request.chapters
        ]
        logger.info("%s: %d chapter calls for %s", self.name, len(prompts), request.video_id)
        # gather keeps input order, so responses line up with request.chapters
        return list(await asyncio.gather(
            *(context.processor.process_prompt_to_text(p, self.tag) for p in prompts)
        ))

    async def _per_chapter(self, context: AIActionContext, template: str) -> AIActionResult:
        responses = await self._map_chapters(context, template)
        summaries = [
            ChapterSummary(title=chapter.title, summary=response.result)
            for chapter, response in zip(context.request.chapters, responses)
        ]
        return AIActionResult(
            model_id=context.model_id,
            cost=sum_costs(responses),
            summary="\n\n".join(f"## {s.title}\n\n{s.summary}" for s in summaries),
            chapter_summaries=summaries,
        )


class MapReduceTextAction(AIAction):
    """Single-pass for short transcripts, chapter map + synthesis for long ones."""

    single_pass_prompt: str = ""
    chapter_prompt: str = ""
    synthesis_prompt: str = ""
    supports_per_chapter: bool = False

    def cache_params(self, request: ActionRequest) -> Dict[str, object]:
        params = super().cache_params(request)
        if self.supports_per_chapter and request.per_chapter:
            params["per_chapter"] = True
        return params

    async def execute(self, context: AIActionContext) -> AIActionResult:
        request = context.request

        if self.supports_per_chapter and request.per_chapter and request.chapters:
            return await self._per_chapter(context, self.chapter_prompt)

        if not use_chapter_strategy(request):
            logger.debug("%s: single-pass for %s", self.name, request.video_id)
            return await self._single_pass(
                context,
                self.single_pass_prompt.format(title=request.title, transcript=request.transcript),
            )

        responses = await self._map_chapters(context, self.chapter_prompt)
        summaries = [
            ChapterSummary(title=chapter.title, summary=response.result)
            for chapter, response in zip(request.chapters, responses)
        ]
        synthesis = await context.processor.process_prompt_to_text(
            self.synthesis_prompt.format(
                title=request.title, chapter_summaries=format_chapter_outputs(summaries)
            ),
            self.tag,
        )
        return AIActionResult(
            model_id=context.model_id,
            cost=sum_costs(responses) + synthesis.cost,
            summary=synthesis.result,
            chapter_summaries=summaries,
        )


# ----------------------------
# Actions
# ----------------------------

class SummaryAction(MapReduceTextAction):
    name = "summary"
    cache_key = "video-summary"
    single_pass_prompt = SUMMARY_PROMPT
    chapter_prompt = CHAPTER_SUMMARY_PROMPT
    synthesis_prompt = SUMMARY_SYNTHESIS_PROMPT


class KeyPointsAction(MapReduceTextAction):
    name = "key-points"
    cache_key = "video-keypoints"
    single_pass_prompt = KEY_POINTS_PROMPT
    chapter_prompt = CHAPTER_KEY_POINTS_PROMPT
    synthesis_prompt = KEY_POINTS_SYNTHESIS_PROMPT
    supports_per_chapter = True


class ExplainAction(AIAction):
    """Single-pass explanation, or independent per-chapter explanations with no merge."""

    name = "explain"
    cache_key = "video-explain"

    def cache_params(self, request: ActionRequest) -> Dict[str, object]:
        params = super().cache_params(request)
        if request.per_chapter:
            params["per_chapter"] = True
        return params

    async def execute(self, context: AIActionContext) -> AIActionResult:
        request = context.request
        if request.per_chapter and request.chapters:
            return await self._per_chapter(context, CHAPTER_EXPLAIN_PROMPT)
        return await self._single_pass(
            context, EXPLAIN_PROMPT.format(title=request.title, transcript=request.transcript)
        )


class TopicsAction(AIAction):
    """
    Main topics with key points.

    With two or more chapters every chapter becomes one topic, analysed by its
    own call. Key point timestamps from those calls are clamped into the
    chapter's range; the model's numbers are never used unclamped.
    """

    name = "topics"
    cache_key = "video-topics"

    async def execute(self, context: AIActionContext) -> AIActionResult:
        if len(context.request.chapters) > 1:
            return await self._chapter_topics(context)
        return await self._single_pass_topics(context)

    async def _single_pass_topics(self, context: AIActionContext) -> AIActionResult:
        request = context.request
        response = await context.processor.process_prompt_to_text(
            TOPICS_SINGLE_PASS_PROMPT.format(title=request.title, transcript=request.transcript),
            self.tag,
        )
        topics = parse_topics_json(response.result)
        if request.total_duration > 0:
            topics = [self._bound_topic(t, request.total_duration) for t in topics]
        return AIActionResult(
            model_id=context.model_id,
            cost=response.cost,
            topics=sorted(topics, key=lambda t: t.timestamp),
        )

    @staticmethod
    def _bound_topic(topic: VideoTopic, total_duration: float) -> VideoTopic:
        def bound(ts: float) -> float:
            return min(max(ts, 0.0), total_duration)

        topic.timestamp = bound(topic.timestamp)
        for kp in topic.key_points:
            kp.timestamp = bound(kp.timestamp)
        return topic

    @staticmethod
    def chapter_ranges(request: ActionRequest) -> List[tuple]:
        """
        (chapter, start, end) per chapter, where [start, end) runs up to the next
        chapter's start and the last one to its own end. With a known total
        duration, ranges are capped at it and chapters starting at or after it
        are left out.
        """
        chapters = request.chapters
        total = request.total_duration
        ranges = []
        for i, chapter in enumerate(chapters):
            start = chapter.start_time
            if total > 0 and start >= total:
                continue
            end = chapters[i + 1].start_time if i + 1 < len(chapters) else chapter.end_time
            if total > 0:
                end = min(end, total)
            ranges.append((chapter, start, max(start, end)))
        return ranges

    async def _chapter_topics(self, context: AIActionContext) -> AIActionResult:
        request = context.request
        ranges = self.chapter_ranges(request)

        prompts = [
            CHAPTER_TOPIC_PROMPT.format(
                chapter_title=chapter.title,
                start=int(start),
                end=int(end),
                content=chapter_text(chapter),
            )
            for chapter, start, end in ranges
        ]
        logger.info("topics: %d chapter calls for %s", len(prompts), request.video_id)
        responses = await asyncio.gather(
            *(context.processor.process_prompt_to_text(p, self.tag) for p in prompts)
        )

        topics = []
        for (chapter, start, end), response in zip(ranges, responses):
            parsed = parse_chapter_topic_json(response.result)
            key_points = parsed["key_points"]
            for kp in key_points:
                kp.timestamp = clamp_timestamp(kp.timestamp, start, end)
            topics.append(
                VideoTopic(
                    title=chapter.title,
                    description=parsed["description"],
                    timestamp=start,
                    key_points=sorted(key_points, key=lambda kp: kp.timestamp),
                )
            )

        return AIActionResult(
            model_id=context.model_id,
            cost=sum_costs(responses),
            topics=sorted(topics, key=lambda t: t.timestamp),
        )


class TopicExpandAction(AIAction):
    """Detailed breakdown of one topic over the full transcript."""

    name = "topic-expand"
    cache_key = "video-topic-expand"

    def cache_params(self, request: ActionRequest) -> Dict[str, object]:
        return {"video_id": request.video_id, "topic_title": request.topic_title}

    def validate(self, request: ActionRequest) -> Optional[str]:
        if not (request.topic_title or "").strip():
            return "topicTitle is required"
        return super().validate(request)

    async def execute(self, context: AIActionContext) -> AIActionResult:
        request = context.request
        return await self._single_pass(
            context,
            TOPIC_EXPAND_PROMPT.format(
                title=request.title,
                topic_title=request.topic_title,
                topic_description=topic_description_line(request),
                transcript=request.transcript,
            ),
        )


class SubtopicExpandAction(AIAction):
    """Detailed breakdown of one point, using only a supplied slice of the transcript."""

    name = "subtopic-expand"
    cache_key = "video-subtopic-expand"

    def cache_params(self, request: ActionRequest) -> Dict[str, object]:
        return {"video_id": request.video_id, "topic_title": request.topic_title}

    def validate(self, request: ActionRequest) -> Optional[str]:
        if not request.video_id:
            return "videoId is required"
        if not (request.topic_title or "").strip():
            return "topicTitle is required"
        if not (request.content or "").strip():
            return "content is required"
        return None

    async def execute(self, context: AIActionContext) -> AIActionResult:
        request = context.request
        return await self._single_pass(
            context,
            SUBTOPIC_EXPAND_PROMPT.format(
                title=request.title,
                topic_title=request.topic_title,
                topic_description=topic_description_line(request),
                content=request.content,
            ),
        )


ACTIONS: Dict[str, AIAction] = {
    action.name: action
    for action in (
        SummaryAction(),
        KeyPointsAction(),
        TopicsAction(),
        ExplainAction(),
        TopicExpandAction(),
        SubtopicExpandAction(),
    )
}
