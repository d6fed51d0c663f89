"""Chapter-aware YouTube transcripts and AI actions."""

from .combiner import TranscriptChapterCombiner
from .config import Config, SegmentationOptions
from .models import (
    ActionRequest,
    ActionResponse,
    AIActionResult,
    Chapter,
    ChapterWithContent,
    CombinedTranscriptChapters,
    TranscriptResponse,
    TranscriptSegment,
    VideoTopic,
)
from .service import VideoAnalysisService

__version__ = "0.1.0"

__all__ = [
    "ActionRequest",
    "ActionResponse",
    "AIActionResult",
    "Chapter",
    "ChapterWithContent",
    "CombinedTranscriptChapters",
    "Config",
    "SegmentationOptions",
    "TranscriptChapterCombiner",
    "TranscriptResponse",
    "TranscriptSegment",
    "VideoAnalysisService",
    "VideoTopic",
]
