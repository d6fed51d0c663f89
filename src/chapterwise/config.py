"""Configuration management and environment variable loading."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple
from dotenv import load_dotenv

# Load environment variables from .env file (don't override existing env vars)
load_dotenv(override=False)


def _env_list(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


class Config:
    """Application configuration."""

    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    MODEL: str = os.getenv("MODEL", "gpt-5-nano")
    # USD per million tokens
    INPUT_PRICE_PER_1M: float = float(os.getenv("INPUT_PRICE_PER_1M", "0.05"))
    OUTPUT_PRICE_PER_1M: float = float(os.getenv("OUTPUT_PRICE_PER_1M", "0.40"))

    CACHE_PATH: Path = Path(os.getenv("CACHE_PATH", "./chapterwise_cache.db")).resolve()
    CACHE_TTL_SECONDS: int = int(os.getenv("CACHE_TTL_SECONDS", str(7 * 24 * 3600)))

    TRANSCRIPT_STRATEGIES: List[str] = _env_list(
        "TRANSCRIPT_STRATEGIES", "captions,transcript_api,remote"
    )
    TRANSCRIPT_LANGUAGES: List[str] = _env_list("TRANSCRIPT_LANGUAGES", "en")
    HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "20"))
    REMOTE_TIMEOUT_SECONDS: float = float(os.getenv("REMOTE_TIMEOUT_SECONDS", "120"))

    OVERLAP_OFFSET_SECONDS: float = float(os.getenv("OVERLAP_OFFSET_SECONDS", "5"))
    CHAPTER_DURATION_SECONDS: float = float(os.getenv("CHAPTER_DURATION_SECONDS", "600"))
    MIN_OFFICIAL_CHAPTERS: int = int(os.getenv("MIN_OFFICIAL_CHAPTERS", "3"))
    SINGLE_PASS_CHAR_LIMIT: int = int(os.getenv("SINGLE_PASS_CHAR_LIMIT", "50000"))


@dataclass(frozen=True)
class ChapterFilterConfig:
    """Phrases that mark promotional chapters and transcript lines."""

    filtered_phrases: Tuple[str, ...] = ("sponsor", "advertisement", "ad break", "promotion")
    filtered_transcript_phrases: Tuple[str, ...] = (
        "is sponsored by",
        "this video is sponsored by",
        "today's sponsor",
        "special thanks to our sponsor",
    )

    def is_promotional_title(self, title: str) -> bool:
        normalized = title.lower()
        return any(phrase.lower() in normalized for phrase in self.filtered_phrases)

    def is_promotional_text(self, text: str) -> bool:
        normalized = text.lower()
        return any(phrase.lower() in normalized for phrase in self.filtered_transcript_phrases)


@dataclass(frozen=True)
class SegmentationOptions:
    """Per-request options for splitting a transcript into chapters."""

    overlap_offset_seconds: float = field(default_factory=lambda: Config.OVERLAP_OFFSET_SECONDS)
    chapter_duration_seconds: float = field(default_factory=lambda: Config.CHAPTER_DURATION_SECONDS)
    segments_per_chapter: int = 0
    total_chapters: int = 0
