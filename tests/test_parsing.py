"""Tests for model output parsing."""

from chapterwise.models import TopicKeyPoint, VideoTopic
from chapterwise.parsing import (
    clamp_timestamp,
    extract_json,
    parse_chapter_topic_json,
    parse_topics_json,
    serialize_as_json_block,
)


def test_parse_topics_from_fenced_block():
    text = (
        "Here are the topics:\n```json\n"
        '[{"title": "Later", "description": "d2", "timestamp": 120, "keyPoints": []},'
        ' {"title": "Intro", "description": "d1", "timestamp": 0,'
        '  "keyPoints": [{"title": "Hello", "text": "Greeting.", "timestamp": 5}]}]\n```'
    )

    topics = parse_topics_json(text)

    assert [t.title for t in topics] == ["Intro", "Later"]
    assert topics[0].key_points == [TopicKeyPoint("Hello", "Greeting.", 5.0)]


def test_parse_topics_from_raw_array_in_prose():
    text = (
        'Sure! [{"title": "B", "timestamp": 60}, {"title": "A", "timestamp": "10"}] '
        "Hope this helps."
    )

    topics = parse_topics_json(text)

    assert [(t.title, t.timestamp) for t in topics] == [("A", 10.0), ("B", 60.0)]


def test_parse_topics_accepts_wrapped_object():
    topics = parse_topics_json('{"topics": [{"title": "Only", "timestamp": 3}]}')
    assert [t.title for t in topics] == ["Only"]


def test_malformed_output_falls_back():
    assert parse_topics_json("I could not find any topics.") == []
    assert parse_topics_json("") == []
    assert parse_topics_json(None) == []
    assert extract_json("{broken", {"fallback": True}) == {"fallback": True}
    assert parse_chapter_topic_json("nope") == {"description": "", "key_points": []}


def test_non_numeric_timestamps_become_zero():
    topics = parse_topics_json('[{"title": "X", "timestamp": "soon", "keyPoints": [{"timestamp": NaN}]}]')
    assert topics[0].timestamp == 0.0
    assert topics[0].key_points[0].timestamp == 0.0


def test_parse_chapter_topic_json():
    parsed = parse_chapter_topic_json(
        'Result: {"description": "About setup.", '
        '"keyPoints": [{"title": "Install", "text": "Installing the tool.", "timestamp": 95}]}'
    )

    assert parsed["description"] == "About setup."
    assert parsed["key_points"] == [TopicKeyPoint("Install", "Installing the tool.", 95.0)]


def test_clamp_timestamp():
    assert clamp_timestamp(5, 10, 20) == 10
    assert clamp_timestamp(15, 10, 20) == 15
    assert clamp_timestamp(25, 10, 20) == 19
    assert clamp_timestamp(15, 10, 10.5) == 10


def test_serialized_topics_parse_back():
    topics = [
        VideoTopic("Intro", "Opening.", 0.0, [TopicKeyPoint("Hi", "Says hi.", 4.0)]),
        VideoTopic("Deep dive", "Details.", 300.0, []),
    ]

    block = serialize_as_json_block(topics)

    assert block.startswith("```json\n")
    assert parse_topics_json(block) == topics
