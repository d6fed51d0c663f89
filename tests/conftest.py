"""Shared fakes and builders for the test suite."""

import pytest

from chapterwise.cache import SQLiteResultCache
from chapterwise.config import SegmentationOptions
from chapterwise.models import ChapterWithContent, Cost, PromptResponse, TranscriptSegment
from chapterwise.timestamps import format_time


def make_segment(start, duration, text):
    return TranscriptSegment(
        start_seconds=float(start),
        end_seconds=float(start + duration),
        text=text,
        start_time_text=format_time(start),
    )


def make_segments(total, step=10, text="line"):
    """Back-to-back segments of `step` seconds covering [0, total)."""
    return [make_segment(t, step, f"{text} {t}") for t in range(0, total, step)]


def make_chapter(title, start, end, step=10):
    segments = [make_segment(t, step, f"{title} {t}") for t in range(start, end, step)]
    return ChapterWithContent(
        title=title,
        start_time=float(start),
        end_time=float(end),
        content=" ".join(s.text for s in segments),
        segments=segments,
    )


CALL_COST = Cost(total_cost=0.001, input_tokens=100, output_tokens=20)


class FakeProcessor:
    """Records prompts and answers with canned text."""

    model_id = "fake-model"

    def __init__(self, response="model output", error=None, fail_on_call=None):
        self.response = response
        self.error = error
        self.fail_on_call = fail_on_call
        self.calls = []

    async def process_prompt_to_text(self, prompt, tag):
        self.calls.append((prompt, tag))
        if self.error is not None and (
            self.fail_on_call is None or len(self.calls) == self.fail_on_call
        ):
            raise self.error
        text = self.response(prompt) if callable(self.response) else self.response
        return PromptResponse(result=text, cost=CALL_COST)


class FakeClient:
    """Stands in for YoutubeClient."""

    def __init__(self, description="", title="A Video", caption_document="", snippets=None):
        self.description = description
        self.title = title
        self.caption_document = caption_document
        self.snippets = snippets or []
        self.description_calls = 0

    def get_description(self, video_id):
        self.description_calls += 1
        return self.description

    def get_title(self, video_id):
        return self.title

    def get_caption_document(self, video_id):
        return self.caption_document

    def get_transcript(self, video_id):
        return self.snippets


@pytest.fixture
def cache():
    with SQLiteResultCache(":memory:") as c:
        yield c


@pytest.fixture
def options():
    return SegmentationOptions(overlap_offset_seconds=5, chapter_duration_seconds=600)
