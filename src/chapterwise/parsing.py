"""
Parsing helpers for model output.

Model output is untrusted: every helper here returns a fallback value instead
of raising when the JSON payload is missing or malformed.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

from .errors import MalformedModelOutput
from .models import TopicKeyPoint, VideoTopic

logger = logging.getLogger(__name__)

_FENCED_RE = re.compile(r"```(?:json)?\s*\n?([\s\S]*?)\n?\s*```")
_RAW_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_RAW_ARRAY_RE = re.compile(r"\[[\s\S]*\]")


def _load_json_payload(text: str) -> Any:
    """
    Find and decode the JSON payload in model output.

    Tries a fenced code block first, then the whole text, then the widest
    raw object or array (whichever opens first).

    Raises:
        MalformedModelOutput: If nothing parses
    """
    candidates = []
    fenced = _FENCED_RE.search(text)
    if fenced:
        candidates.append(fenced.group(1))
    candidates.append(text)

    raw_matches = [m for m in (_RAW_OBJECT_RE.search(text), _RAW_ARRAY_RE.search(text)) if m]
    raw_matches.sort(key=lambda m: m.start())
    candidates.extend(m.group(0) for m in raw_matches)

    for candidate in candidates:
        try:
            return json.loads(candidate.strip())
        except (json.JSONDecodeError, ValueError):
            continue
    raise MalformedModelOutput("No parseable JSON found in model output")


def extract_json(text: Optional[str], fallback: Any) -> Any:
    """Decode the JSON payload of model output, or return `fallback`."""
    if not text:
        return fallback
    try:
        return _load_json_payload(text)
    except MalformedModelOutput as e:
        logger.warning("%s (%d chars)", e, len(text))
        return fallback


def _to_float(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    # NaN and inf come back as 0
    return number if number == number and abs(number) != float("inf") else 0.0


def clamp_timestamp(timestamp: float, start: float, end: float) -> float:
    """
    Clamp a timestamp into the half-open range [start, end).

    Timestamps are whole seconds, so the largest value inside the range is
    `end - 1`; ranges shorter than a second collapse to `start`.
    """
    if end - start < 1:
        return start
    return min(max(timestamp, start), end - 1)


def parse_key_points(value: Any) -> List[TopicKeyPoint]:
    if not isinstance(value, list):
        return []
    key_points = []
    for item in value:
        if not isinstance(item, dict):
            continue
        key_points.append(
            TopicKeyPoint(
                title=str(item.get("title") or ""),
                text=str(item.get("text") or ""),
                timestamp=_to_float(item.get("timestamp")),
            )
        )
    return key_points


def parse_topic(item: Dict[str, Any]) -> VideoTopic:
    # Accept both camelCase (what prompts ask for) and snake_case
    key_points = item.get("keyPoints", item.get("key_points"))
    return VideoTopic(
        title=str(item.get("title") or ""),
        description=str(item.get("description") or ""),
        timestamp=_to_float(item.get("timestamp")),
        key_points=parse_key_points(key_points),
    )


def parse_topics_json(text: Optional[str]) -> List[VideoTopic]:
    """Parse a JSON array of topics out of model output, sorted by timestamp."""
    parsed = extract_json(text, [])
    if isinstance(parsed, dict):
        parsed = parsed.get("topics", [])
    if not isinstance(parsed, list):
        return []
    topics = [parse_topic(item) for item in parsed if isinstance(item, dict)]
    return sorted(topics, key=lambda t: t.timestamp)


def parse_chapter_topic_json(text: Optional[str]) -> Dict[str, Any]:
    """Parse `{"description", "keyPoints"}` for one chapter."""
    parsed = extract_json(text, {})
    if not isinstance(parsed, dict):
        return {"description": "", "key_points": []}
    return {
        "description": str(parsed.get("description") or ""),
        "key_points": parse_key_points(parsed.get("keyPoints", parsed.get("key_points"))),
    }


def serialize_as_json_block(topics: List[VideoTopic]) -> str:
    """Render topics the way the model is asked to answer: a fenced JSON array."""
    payload = [
        {
            "title": t.title,
            "description": t.description,
            "timestamp": t.timestamp,
            "keyPoints": [kp.to_dict() for kp in t.key_points],
        }
        for t in topics
    ]
    return "```json\n" + json.dumps(payload, indent=2, ensure_ascii=False) + "\n```"
