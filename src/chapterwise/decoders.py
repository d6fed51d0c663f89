"""
Segment decoders.

Each decoder turns one upstream transcript representation into a list of
TranscriptSegment. A decode that yields no non-empty text raises
SourceUnavailable so callers never cache an empty transcript as a success.
"""

from __future__ import annotations

import html
import re
from typing import Any, Dict, Iterable, List

from .errors import SourceUnavailable
from .models import TranscriptSegment
from .timestamps import format_time

# <text start="1.2" dur="3.4">...</text>  (timed-text format 1)
_TEXT_NODE_RE = re.compile(
    r'<text\s+start="([^"]*)"(?:\s+dur="([^"]*)")?[^>]*>([\s\S]*?)</text>'
)
# <p t="1200" d="3400">...</p>  (timed-text format 3, times in milliseconds)
_P_NODE_RE = re.compile(
    r'<p\s+t="(\d+)"(?:\s+d="(\d+)")?[^>]*>([\s\S]*?)</p>'
)
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")


def _clean_text(raw: str) -> str:
    # Entities can be double-encoded (&amp;#39;), so unescape before and after
    # stripping markup.
    text = html.unescape(raw)
    text = _TAG_RE.sub("", text)
    text = html.unescape(text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def _make_segment(start: float, duration: float, text: str) -> TranscriptSegment:
    start = max(0.0, start)
    return TranscriptSegment(
        start_seconds=start,
        end_seconds=start + max(0.0, duration),
        text=text,
        start_time_text=format_time(start),
    )


def decode_timed_text(document: str) -> List[TranscriptSegment]:
    """
    Decode a timed-text caption document (format 1 or format 3).

    Args:
        document: Raw XML returned by the caption track URL

    Returns:
        Segments in document order

    Raises:
        SourceUnavailable: If the document holds no non-empty text
    """
    segments: List[TranscriptSegment] = []

    for match in _TEXT_NODE_RE.finditer(document):
        text = _clean_text(match.group(3))
        if not text:
            continue
        try:
            start = float(match.group(1))
            duration = float(match.group(2) or 0)
        except ValueError:
            continue
        segments.append(_make_segment(start, duration, text))

    if not segments:
        for match in _P_NODE_RE.finditer(document):
            text = _clean_text(match.group(3))
            if not text:
                continue
            start = int(match.group(1)) / 1000
            duration = int(match.group(2) or 0) / 1000
            segments.append(_make_segment(start, duration, text))

    if not segments:
        raise SourceUnavailable("Timed-text document contained no transcript segments")
    return segments


def decode_transcript_snippets(snippets: Iterable[Any]) -> List[TranscriptSegment]:
    """
    Decode youtube-transcript-api snippets.

    Accepts FetchedTranscriptSnippet objects (text/start/duration attributes)
    or the equivalent dictionaries.
    """
    segments: List[TranscriptSegment] = []
    for snippet in snippets:
        if isinstance(snippet, dict):
            raw_text = snippet.get("text", "")
            start = snippet.get("start", 0)
            duration = snippet.get("duration", 0)
        else:
            raw_text = getattr(snippet, "text", "")
            start = getattr(snippet, "start", 0)
            duration = getattr(snippet, "duration", 0)
        text = _clean_text(raw_text or "")
        if not text:
            continue
        segments.append(_make_segment(float(start or 0), float(duration or 0), text))

    if not segments:
        raise SourceUnavailable("Transcript API returned no transcript segments")
    return segments


def decode_segment_dicts(items: Iterable[Dict[str, Any]]) -> List[TranscriptSegment]:
    """Decode serialized TranscriptSegment dictionaries (remote or cached payloads)."""
    segments = []
    for item in items:
        segment = TranscriptSegment.from_dict(item)
        if not segment.text.strip():
            continue
        if segment.end_seconds < segment.start_seconds:
            segment = _make_segment(segment.start_seconds, 0.0, segment.text)
        segments.append(segment)

    if not segments:
        raise SourceUnavailable("Payload contained no transcript segments")
    return segments
