"""
Timestamp formatting and parsing helpers.

Transcript segments carry `MM:SS` start labels, chapter titles and prompt
markers use `M:SS`, and chapter descriptions may use `H:MM:SS`.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from .models import TranscriptSegment

# Minimum spacing between [M:SS] markers in a prompt transcript
TIMESTAMP_INTERVAL = 30

_TIMESTAMP_RE = re.compile(r"^(?:(\d{1,2}):)?(\d{1,2}):(\d{2})$")


def format_time(seconds: float) -> str:
    """Zero-padded `MM:SS` label (minutes are not wrapped into hours)."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def format_marker(seconds: float) -> str:
    """`M:SS` label used in chapter titles and prompt markers."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"


def parse_timestamp(text: str) -> Optional[float]:
    """
    Parse `H:MM:SS`, `MM:SS` or `M:SS` into seconds.

    Returns None for anything else, including out-of-range minute or second
    fields in the hour form.
    """
    match = _TIMESTAMP_RE.match(text.strip())
    if not match:
        return None
    hours, minutes, secs = match.groups()
    if int(secs) >= 60:
        return None
    if hours is not None and int(minutes) >= 60:
        return None
    return int(hours or 0) * 3600 + int(minutes) * 60 + int(secs)


def build_timestamped_transcript(
    segments: Iterable[TranscriptSegment], interval: float = TIMESTAMP_INTERVAL
) -> str:
    """
    Join segment texts, inserting a `[M:SS]` marker on a new line whenever at
    least `interval` seconds passed since the previous marker.
    """
    last_marker = -interval
    parts = []
    for segment in segments:
        if segment.start_seconds - last_marker >= interval:
            last_marker = segment.start_seconds
            parts.append(f"\n[{format_marker(segment.start_seconds)}] {segment.text}")
        else:
            parts.append(segment.text)
    return " ".join(parts).strip()
