"""Main entry point for the application."""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from .actions import ACTIONS
from .config import SegmentationOptions
from .models import ActionResponse, TranscriptResponse
from .service import VideoAnalysisService
from .timestamps import format_time


def extract_video_id(url: str) -> str:
    """Extract video ID from YouTube URL."""
    if "v=" in url:
        return url.split("v=")[1].split("&")[0]
    # Handle short URLs, /shorts/ links and bare ids
    return url.rstrip("/").split("/")[-1].split("?")[0]


def print_transcript(response: TranscriptResponse, as_json: bool = False) -> None:
    if as_json:
        print(json.dumps(response.to_dict(), indent=2, ensure_ascii=False))
        return

    combined = response.result
    meta = combined.metadata
    print(f"Video: {combined.video_id}")
    print(f"Duration: {format_time(meta.total_duration)}  "
          f"Segments: {meta.transcript_item_count}  Chapters: {meta.chapter_count}")
    if response.is_from_cache:
        print("(from cache)")
    print()
    for chapter in combined.chapters:
        print(f"[{format_time(chapter.start_time)} - {format_time(chapter.end_time)}] "
              f"{chapter.title} ({len(chapter.segments)} segments)")


def print_action(response: ActionResponse) -> None:
    result = response.result
    if result.topics is not None:
        for topic in result.topics:
            print(f"[{format_time(topic.timestamp)}] {topic.title}")
            if topic.description:
                print(f"    {topic.description}")
            for kp in topic.key_points:
                print(f"    - [{format_time(kp.timestamp)}] {kp.title}: {kp.text}")
            print()
    elif result.summary is not None:
        print(result.summary)
        print()

    source = "cache" if response.is_from_cache else result.model_id
    print(f"Cost: ${result.cost.total_cost:.6f} "
          f"({result.cost.input_tokens:,} input, {result.cost.output_tokens:,} output tokens, {source})")


def report_error(error: str, rate_limited: bool) -> int:
    print(f"Error: {error}", file=sys.stderr)
    if rate_limited:
        print("The upstream service is rate limiting requests. Try again later.", file=sys.stderr)
    return 1


async def run_transcript(url: str, overlap: Optional[float], as_json: bool) -> int:
    options = SegmentationOptions() if overlap is None else SegmentationOptions(
        overlap_offset_seconds=overlap
    )
    service = VideoAnalysisService()
    try:
        response = await service.get_transcript(extract_video_id(url), options)
    finally:
        service.close()

    if response.error:
        if as_json:
            print(json.dumps(response.to_dict(), indent=2))
        return report_error(response.error, response.is_rate_limited)
    print_transcript(response, as_json)
    return 0


async def run_action(args: argparse.Namespace) -> int:
    service = VideoAnalysisService()
    try:
        response = await service.analyze(
            extract_video_id(args.url),
            args.name,
            topic_title=args.topic,
            topic_description=args.topic_description,
            content=args.content,
            per_chapter=args.per_chapter,
            bypass_cache=args.bypass_cache,
        )
    finally:
        service.close()

    if response.error:
        return report_error(response.error, response.is_rate_limited)
    print_action(response)
    return 0


def main(argv=None) -> int:
    """Main entry point with subcommands."""
    parser = argparse.ArgumentParser(
        description="Chapterwise - Chapter-aware transcripts and AI summaries for YouTube videos",
        prog="chapterwise"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Transcript command
    transcript_parser = subparsers.add_parser(
        "transcript", help="Fetch a transcript and split it into chapters"
    )
    transcript_parser.add_argument("url", help="YouTube video URL")
    transcript_parser.add_argument(
        "--overlap", type=float, default=None, help="Chapter overlap in seconds"
    )
    transcript_parser.add_argument("--json", action="store_true", help="Print the full result as JSON")

    # Action command
    action_parser = subparsers.add_parser("action", help="Run an AI action on a video")
    action_parser.add_argument("name", choices=sorted(ACTIONS), help="Action to run")
    action_parser.add_argument("url", help="YouTube video URL")
    action_parser.add_argument("--topic", help="Topic title (topic-expand, subtopic-expand)")
    action_parser.add_argument("--topic-description", help="Optional topic description")
    action_parser.add_argument("--content", help="Transcript slice (subtopic-expand)")
    action_parser.add_argument(
        "--per-chapter", action="store_true", help="One answer per chapter (key-points, explain)"
    )
    action_parser.add_argument("--bypass-cache", action="store_true", help="Ignore cached results")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "transcript":
        return asyncio.run(run_transcript(args.url, args.overlap, args.json))
    elif args.command == "action":
        return asyncio.run(run_action(args))
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
