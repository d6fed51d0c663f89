"""Exception types and error classification helpers."""

import re
from typing import Optional


class ChapterwiseError(Exception):
    """Base exception for chapterwise."""
    pass


class SourceUnavailable(ChapterwiseError):
    """A single transcript or chapter source failed."""
    pass


class AllSourcesExhausted(ChapterwiseError):
    """Every transcript strategy failed for a video."""

    def __init__(self, video_id: str, attempted: list, errors: Optional[list] = None):
        self.video_id = video_id
        self.attempted = list(attempted)
        # One "strategy: message" entry per failed strategy
        self.errors = list(errors or [])
        message = (
            f"No transcript available for video {video_id} "
            f"(tried: {', '.join(self.attempted) or 'nothing'})"
        )
        if self.errors:
            message += ": " + "; ".join(self.errors)
        super().__init__(message)

    @property
    def rate_limited(self) -> bool:
        return any(is_rate_limited(e) for e in self.errors)


class MalformedModelOutput(ChapterwiseError):
    """Model output did not contain the JSON payload we asked for."""
    pass


class RemoteExecutionError(SourceUnavailable):
    """Out-of-process handler failed or returned something unreadable."""
    pass


_RATE_LIMIT_RE = re.compile(
    r"\b429\b|rate[\s_-]?limit|quota|too many requests",
    flags=re.IGNORECASE,
)


def is_rate_limited(message: str) -> bool:
    """True when an error message looks like a rate-limit or quota failure."""
    return bool(message) and bool(_RATE_LIMIT_RE.search(message))
