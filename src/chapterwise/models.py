"""
Data models shared by the transcript, chapter and AI action layers.

Every model converts to and from plain dictionaries so results can be stored
behind the cache boundary as JSON and handed to an API layer unchanged.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

# End time of the last official chapter until the combiner knows the
# transcript's duration.
OPEN_ENDED = math.inf


# ----------------------------
# Transcript and chapters
# ----------------------------

@dataclass(frozen=True)
class TranscriptSegment:
    start_seconds: float
    end_seconds: float
    text: str
    start_time_text: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranscriptSegment":
        return cls(
            start_seconds=float(data["start_seconds"]),
            end_seconds=float(data["end_seconds"]),
            text=str(data["text"]),
            start_time_text=str(data.get("start_time_text", "")),
        )


@dataclass(frozen=True)
class Chapter:
    title: str
    start_time: float
    end_time: float

    @property
    def is_open_ended(self) -> bool:
        return math.isinf(self.end_time)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Chapter":
        return cls(
            title=str(data["title"]),
            start_time=float(data["start_time"]),
            end_time=float(data["end_time"]),
        )


@dataclass
class ChapterWithContent:
    """A chapter window plus the transcript segments assigned to it."""

    title: str
    start_time: float
    end_time: float
    content: str = ""
    segments: List[TranscriptSegment] = field(default_factory=list)

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "content": self.content,
            "segments": [s.to_dict() for s in self.segments],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChapterWithContent":
        return cls(
            title=str(data["title"]),
            start_time=float(data["start_time"]),
            end_time=float(data["end_time"]),
            content=str(data.get("content", "")),
            segments=[TranscriptSegment.from_dict(s) for s in data.get("segments", [])],
        )


@dataclass
class TranscriptMetadata:
    total_duration: float = 0.0
    chapter_count: int = 0
    transcript_item_count: int = 0
    overlap_offset_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranscriptMetadata":
        return cls(**data)


@dataclass
class CombinedTranscriptChapters:
    """Normalized transcript + chapters for one video and one set of options."""

    video_id: str
    metadata: TranscriptMetadata
    chapters: List[ChapterWithContent] = field(default_factory=list)
    transcript: List[TranscriptSegment] = field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def failed(
        cls, video_id: str, error: str, overlap_offset_seconds: float
    ) -> "CombinedTranscriptChapters":
        """Result carrying an error and zero-valued metadata."""
        return cls(
            video_id=video_id,
            metadata=TranscriptMetadata(overlap_offset_seconds=overlap_offset_seconds),
            error=error,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "video_id": self.video_id,
            "metadata": self.metadata.to_dict(),
            "chapters": [c.to_dict() for c in self.chapters],
            "transcript": [s.to_dict() for s in self.transcript],
        }
        if self.error is not None:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CombinedTranscriptChapters":
        return cls(
            video_id=str(data["video_id"]),
            metadata=TranscriptMetadata.from_dict(data["metadata"]),
            chapters=[ChapterWithContent.from_dict(c) for c in data.get("chapters", [])],
            transcript=[TranscriptSegment.from_dict(s) for s in data.get("transcript", [])],
            error=data.get("error"),
        )


# ----------------------------
# AI results
# ----------------------------

@dataclass
class TopicKeyPoint:
    title: str
    text: str
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TopicKeyPoint":
        return cls(
            title=str(data.get("title", "")),
            text=str(data.get("text", "")),
            timestamp=float(data.get("timestamp", 0)),
        )


@dataclass
class VideoTopic:
    title: str
    description: str
    timestamp: float
    key_points: List[TopicKeyPoint] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "timestamp": self.timestamp,
            "key_points": [kp.to_dict() for kp in self.key_points],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VideoTopic":
        return cls(
            title=str(data.get("title", "")),
            description=str(data.get("description", "")),
            timestamp=float(data.get("timestamp", 0)),
            key_points=[TopicKeyPoint.from_dict(kp) for kp in data.get("key_points", [])],
        )


@dataclass
class ChapterSummary:
    title: str
    summary: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Cost:
    total_cost: float = 0.0
    input_tokens: int = 0
    output_tokens: int = 0

    def __add__(self, other: "Cost") -> "Cost":
        return Cost(
            total_cost=self.total_cost + other.total_cost,
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Cost":
        return cls(
            total_cost=float(data.get("total_cost", 0.0)),
            input_tokens=int(data.get("input_tokens", 0)),
            output_tokens=int(data.get("output_tokens", 0)),
        )


@dataclass
class PromptResponse:
    """What the AI primitive returns for one prompt."""

    result: str
    cost: Cost = field(default_factory=Cost)


@dataclass
class AIActionResult:
    model_id: str
    cost: Cost
    summary: Optional[str] = None
    topics: Optional[List[VideoTopic]] = None
    chapter_summaries: Optional[List[ChapterSummary]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"model_id": self.model_id, "cost": self.cost.to_dict()}
        if self.summary is not None:
            data["summary"] = self.summary
        if self.topics is not None:
            data["topics"] = [t.to_dict() for t in self.topics]
        if self.chapter_summaries is not None:
            data["chapter_summaries"] = [c.to_dict() for c in self.chapter_summaries]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AIActionResult":
        topics = data.get("topics")
        chapter_summaries = data.get("chapter_summaries")
        return cls(
            model_id=str(data.get("model_id", "")),
            cost=Cost.from_dict(data.get("cost", {})),
            summary=data.get("summary"),
            topics=[VideoTopic.from_dict(t) for t in topics] if topics is not None else None,
            chapter_summaries=(
                [ChapterSummary(**c) for c in chapter_summaries]
                if chapter_summaries is not None
                else None
            ),
        )


# ----------------------------
# Requests and boundary values
# ----------------------------

@dataclass
class ActionRequest:
    """
    Input to an AI action.

    `transcript` is the timestamped full-transcript text; `content` is the
    narrower slice used by subtopic expansion.
    """

    video_id: str
    title: str = ""
    transcript: str = ""
    chapters: List[ChapterWithContent] = field(default_factory=list)
    total_duration: float = 0.0
    topic_title: Optional[str] = None
    topic_description: Optional[str] = None
    content: Optional[str] = None
    per_chapter: bool = False
    bypass_cache: bool = False


@dataclass
class CacheResult:
    data: Any
    is_from_cache: bool = False


@dataclass
class ActionResponse:
    result: Optional[AIActionResult] = None
    error: Optional[str] = None
    is_from_cache: bool = False
    is_rate_limited: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = self.result.to_dict() if self.result else {}
        if self.error is not None:
            data["error"] = self.error
        data["is_from_cache"] = self.is_from_cache
        data["is_rate_limited"] = self.is_rate_limited
        return data


@dataclass
class TranscriptResponse:
    result: Optional[CombinedTranscriptChapters] = None
    error: Optional[str] = None
    is_from_cache: bool = False
    is_rate_limited: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.result is not None:
            data["result"] = self.result.to_dict()
        if self.error is not None:
            data["error"] = self.error
        data["is_from_cache"] = self.is_from_cache
        data["is_rate_limited"] = self.is_rate_limited
        return data
