"""
LLM prompts used by the AI actions.

All prompts are centralized here for easy maintenance and consistency.
Templates are `str.format` strings; literal JSON braces are doubled.
Transcripts passed in carry [M:SS] markers roughly every 30 seconds.
"""

# ============================================================================
# Summary Prompts
# ============================================================================

SUMMARY_PROMPT = """You are a helpful assistant that summarizes YouTube videos.

Video Title: {title}

Transcript (includes [M:SS] timestamp markers):
{transcript}

Write a clear, well-structured summary of this video in markdown.
- Start with a 2-3 sentence overview of what the video is about
- Follow with the main ideas in the order they are presented
- Use ONLY information from the transcript; do not add outside knowledge
- Keep it concise: aim for 150-400 words depending on the video length"""

CHAPTER_SUMMARY_PROMPT = """You are a helpful assistant that summarizes one chapter of a YouTube video.

Video Title: {title}
Chapter: "{chapter_title}"

Chapter transcript (includes [M:SS] timestamp markers):
{content}

Summarize this chapter in 3-6 sentences. Cover only what is said in this chapter.
Use ONLY information from the transcript above."""

SUMMARY_SYNTHESIS_PROMPT = """You are a helpful assistant that summarizes YouTube videos.

Here are summaries of each chapter of the video titled "{title}", in order:

{chapter_summaries}

Combine these into a single cohesive summary of the whole video in markdown.
- Start with a 2-3 sentence overview of what the video is about
- Follow with the main ideas in the order they are presented
- Remove repetition between chapters, but do not drop important information
- Do not mention that the input was split into chapters"""

# ============================================================================
# Key Points Prompts
# ============================================================================

KEY_POINTS_PROMPT = """You are a helpful assistant that extracts key points from YouTube videos.

Video Title: {title}

Transcript (includes [M:SS] timestamp markers):
{transcript}

List the 5-15 most important points made in this video as a markdown bullet list.
Each bullet is one concrete, specific sentence starting with the nearest preceding [M:SS] marker, e.g.:
- [3:45] The speaker recommends batching similar tasks into 90 minute blocks.

Use ONLY information from the transcript."""

CHAPTER_KEY_POINTS_PROMPT = """You are a helpful assistant that extracts key points from one chapter of a YouTube video.

Video Title: {title}
Chapter: "{chapter_title}"

Chapter transcript (includes [M:SS] timestamp markers):
{content}

List the 2-6 most important points made in this chapter as a markdown bullet list.
Each bullet is one concrete sentence starting with the nearest preceding [M:SS] marker.
Use ONLY information from this chapter."""

KEY_POINTS_SYNTHESIS_PROMPT = """You are a helpful assistant that extracts key points from YouTube videos.

Here are the key points of each chapter of the video titled "{title}", in order:

{chapter_summaries}

Consolidate them into one markdown bullet list of the 5-15 most important points of the whole video.
Merge duplicates, keep the [M:SS] marker of the earliest mention, and keep the bullets in time order."""

# ============================================================================
# Topics Prompts
# ============================================================================

TOPICS_SINGLE_PASS_PROMPT = """You are a helpful assistant that identifies the main topics discussed in YouTube videos.

Video Title: {title}

Transcript (includes [M:SS] timestamp markers approximately every 30 seconds):
{transcript}

Identify the main topics discussed in this video. For each topic provide:
- title: A short descriptive title (3-8 words)
- description: A 1-2 sentence description of what is discussed
- timestamp: The time in seconds where this topic begins, based on the [M:SS] markers above. Use the nearest preceding marker to determine the timestamp.
- keyPoints: An array of 2-10 key points for this topic (more for longer topics). Each key point has:
  - title: A short title (3-6 words)
  - text: A single concise sentence describing what is covered
  - timestamp: The time in seconds where this point is discussed, based on the [M:SS] markers

Return ONLY a JSON array, no other text. Example:
[{{"title": "Introduction to the Subject", "description": "The host introduces the main theme and sets context.", "timestamp": 0, "keyPoints": [{{"title": "Three Main Goals", "text": "The presenter outlines three main goals for the discussion.", "timestamp": 15}}, {{"title": "Why This Matters", "text": "Background context is provided on why this topic matters.", "timestamp": 45}}]}}]"""

CHAPTER_TOPIC_PROMPT = """You are a helpful assistant that analyzes YouTube video chapters.

Chapter: "{chapter_title}"
Chapter time range: {start} to {end} seconds

Content (includes [M:SS] timestamp markers):
{content}

IMPORTANT: To convert [M:SS] markers to seconds, use: minutes * 60 + seconds. For example [5:30] = 5*60+30 = 330 seconds. All timestamps MUST be within the chapter range ({start}-{end} seconds). Do NOT use timestamps outside this range.

Provide:
1. description: A 1-2 sentence description of what is discussed in this chapter
2. keyPoints: An array of 2-10 key points (more for longer chapters). Each has:
   - title: A short title (3-6 words)
   - text: A single concise sentence describing what is covered
   - timestamp: Time in seconds (converted from [M:SS] markers), must be between {start} and {end}

Return ONLY a JSON object (not array): {{"description": "...", "keyPoints": [{{"title": "Short Title", "text": "Description of what is covered.", "timestamp": {start}}}]}}"""

# ============================================================================
# Explain Prompts
# ============================================================================

EXPLAIN_PROMPT = """You are a patient tutor explaining a YouTube video to someone who has not watched it.

Video Title: {title}

Transcript (includes [M:SS] timestamp markers):
{transcript}

Explain the content of this video in plain language, in markdown.
- Define any jargon or technical terms the first time they appear
- Walk through the reasoning step by step, in the order the video presents it
- Where the video gives an example, include it
- Use ONLY information from the transcript"""

CHAPTER_EXPLAIN_PROMPT = """You are a patient tutor explaining one chapter of a YouTube video to someone who has not watched it.

Video Title: {title}
Chapter: "{chapter_title}"

Chapter transcript (includes [M:SS] timestamp markers):
{content}

Explain this chapter in plain language in 1-3 short paragraphs. Define jargon the first time it appears.
Use ONLY information from this chapter."""

# ============================================================================
# Drill-down Prompts
# ============================================================================

TOPIC_EXPAND_PROMPT = """You are a helpful assistant that gives detailed breakdowns of topics discussed in YouTube videos.

Video Title: {title}
Topic: "{topic_title}"
{topic_description}
Full transcript (includes [M:SS] timestamp markers):
{transcript}

Write a detailed breakdown of everything the video says about this topic, in markdown.
- Cover the claims made, the reasoning behind them and any examples
- Reference the [M:SS] marker where each point is discussed
- If the video says little about the topic, say so briefly instead of padding
- Use ONLY information from the transcript"""

SUBTOPIC_EXPAND_PROMPT = """You are a helpful assistant that gives detailed breakdowns of specific points in YouTube videos.

Video Title: {title}
Point to expand: "{topic_title}"
{topic_description}
Relevant transcript section (includes [M:SS] timestamp markers):
{content}

Expand on this point using the transcript section above, in markdown.
- Explain what is said about it in detail, including examples and caveats
- Reference the [M:SS] marker where each detail is discussed
- Use ONLY information from the transcript section"""
