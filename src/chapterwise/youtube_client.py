import logging
from typing import Any, List, Optional

import requests
from pytube import YouTube
from youtube_transcript_api import YouTubeTranscriptApi, FetchedTranscript

from .config import Config
from .errors import SourceUnavailable

logger = logging.getLogger(__name__)


def watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


class YoutubeClient:
    """Blocking access to the three upstream sources: captions, transcript API, description."""

    def __init__(self, languages: Optional[List[str]] = None, timeout: Optional[float] = None):
        self.client = YouTubeTranscriptApi()
        self.languages = languages or Config.TRANSCRIPT_LANGUAGES
        self.timeout = timeout or Config.HTTP_TIMEOUT_SECONDS

    def get_transcript(self, video_id: str) -> FetchedTranscript:
        transcript = self.client.fetch(video_id, languages=self.languages)
        return transcript

    def _select_caption_track(self, tracks: List[Any]) -> Any:
        preferred = self.languages[0] if self.languages else "en"
        for track in tracks:
            if track.code == preferred:
                return track
        # pytube labels auto-generated tracks "a.en"; regional ones are "en-GB"
        for track in tracks:
            code = track.code.split(".")[-1]
            if code == preferred or code.startswith(f"{preferred}-"):
                return track
        return tracks[0]

    def get_caption_document(self, video_id: str) -> str:
        """
        Download the raw timed-text document of the best caption track.

        Raises:
            SourceUnavailable: If the video has no usable caption track or the
                download does not return 200
        """
        yt = YouTube(watch_url(video_id))
        tracks = list(yt.captions)
        if not tracks:
            raise SourceUnavailable("No caption tracks available for this video")

        track = self._select_caption_track(tracks)
        if not track.url:
            raise SourceUnavailable("Caption track has no URL")

        logger.debug("Downloading caption track %s for %s", track.code, video_id)
        response = requests.get(track.url, timeout=self.timeout)
        if response.status_code != 200:
            raise SourceUnavailable(
                f"Failed to fetch captions document (status {response.status_code})"
            )
        return response.text

    def get_description(self, video_id: str) -> str:
        """Return the video description text, the source of official chapters."""
        try:
            yt = YouTube(watch_url(video_id))
            return yt.description or ""
        except Exception as e:
            raise SourceUnavailable(f"Could not read video description: {e}") from e

    def get_title(self, video_id: str) -> str:
        """Video title for prompts; falls back to "Unknown" if pytube fails."""
        try:
            return YouTube(watch_url(video_id)).title or "Unknown"
        except Exception as e:
            logger.warning("Could not read title for %s: %s", video_id, e)
            return "Unknown"
