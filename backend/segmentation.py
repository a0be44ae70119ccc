# segmentation.py
"""
Turns rendered page markup into a topic forest.

``segment_by_headings`` walks h1/h2/h3 in document order and collects the
paragraphs that follow each heading. ``normalize_topics`` then merges small
segments, splits oversized ones, caps the count and assigns parents from the
heading levels.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from bs4 import BeautifulSoup

from log import log_event
from utils import content_length, estimate_tokens

logger = logging.getLogger(__name__)

HEADING_TAGS = ["h1", "h2", "h3"]

MIN_SEGMENT_CHARS = 300
MAX_TOPIC_TOKENS = 8000
MAX_TOPICS = 50
SPLIT_FILL_RATIO = 0.8
SUMMARY_MIN_CHARS = 100
SUMMARY_MAX_CHARS = 200


@dataclass
class RawSegment:
    title: str
    level: int
    content: List[str] = field(default_factory=list)


@dataclass
class NormalizedTopic:
    title: str
    level: int
    content: List[str]
    token_estimate: int
    summary: Optional[str] = None
    parent_index: Optional[int] = None  # position of the parent in the same batch


def _paragraphs(el) -> List[str]:
    texts = [p.get_text().strip() for p in el.find_all("p")]
    if el.name == "p":
        texts.append(el.get_text().strip())
    return [t for t in texts if t]


def segment_by_headings(html: str, quiz_id: Optional[str] = None) -> List[RawSegment]:
    start = time.monotonic()
    soup = BeautifulSoup(html or "", "html.parser")
    for el in soup.select("script, style, nav, footer, aside"):
        el.decompose()

    headings = soup.find_all(HEADING_TAGS)
    segments: List[RawSegment] = []

    for i, heading in enumerate(headings):
        title = heading.get_text().strip()
        if not title:
            continue
        level = HEADING_TAGS.index(heading.name) + 1
        next_heading = headings[i + 1] if i + 1 < len(headings) else None

        content: List[str] = []
        el = heading.find_next_sibling()
        while el is not None:
            if next_heading is not None:
                # bs4 tags compare by markup, so identity checks are required
                if el is next_heading:
                    break
                if any(h is next_heading for h in el.find_all(HEADING_TAGS)):
                    break
            content.extend(_paragraphs(el))
            el = el.find_next_sibling()

        segments.append(RawSegment(title=title, level=level, content=content))

    total_chars = sum(content_length(s.content) for s in segments)
    log_event(
        logger,
        "topic_segmentation_complete",
        quizId=quiz_id,
        topicCount=len(segments),
        elapsedTimeMs=int((time.monotonic() - start) * 1000),
        tokenEstimate=estimate_tokens(total_chars),
    )
    return segments


def topic_token_estimate(title: str, content: List[str]) -> int:
    return estimate_tokens(len(title) + content_length(content))


def merge_small_segments(segments: List[RawSegment], min_chars: int = MIN_SEGMENT_CHARS) -> List[RawSegment]:
    merged: List[RawSegment] = []
    for seg in segments:
        # a leading heading with no paragraphs absorbs whatever follows it
        if merged and (content_length(seg.content) < min_chars or not merged[-1].content):
            previous = merged[-1]
            previous.content.extend(seg.content)
            if previous.title != seg.title:
                previous.title = f"{previous.title} / {seg.title}"
        else:
            merged.append(RawSegment(seg.title, seg.level, list(seg.content)))
    return merged


def split_segment(seg: RawSegment, max_tokens: int = MAX_TOPIC_TOKENS) -> List[RawSegment]:
    if topic_token_estimate(seg.title, seg.content) <= max_tokens:
        return [seg]

    chunk_size = int(max_tokens * 4 * SPLIT_FILL_RATIO)
    chunks: List[List[str]] = []
    current: List[str] = []
    current_len = 0
    for paragraph in seg.content:
        if current and current_len + len(paragraph) > chunk_size:
            chunks.append(current)
            current, current_len = [], 0
        current.append(paragraph)
        current_len += len(paragraph)
    if current:
        chunks.append(current)
    if not chunks:
        return [seg]

    return [
        RawSegment(seg.title if n == 1 else f"{seg.title} (Part {n})", seg.level, chunk)
        for n, chunk in enumerate(chunks, start=1)
    ]


def cap_segments(segments: List[RawSegment], max_topics: int = MAX_TOPICS) -> List[RawSegment]:
    """Fold the smallest overflow segments into the smallest survivor.

    Survivors keep their document order.
    """
    overflow = len(segments) - max_topics
    if overflow <= 0:
        return segments

    by_size = sorted(range(len(segments)), key=lambda i: content_length(segments[i].content))
    dropped = by_size[:overflow]
    absorber = segments[by_size[overflow]]
    for i in dropped:
        absorber.content.extend(segments[i].content)
        absorber.title = f"{absorber.title} / {segments[i].title}"

    dropped_set = set(dropped)
    return [seg for i, seg in enumerate(segments) if i not in dropped_set]


def _summary(content: List[str]) -> Optional[str]:
    if not content or len(content[0]) <= SUMMARY_MIN_CHARS:
        return None
    first = content[0]
    return first[:SUMMARY_MAX_CHARS] + ("..." if len(first) > SUMMARY_MAX_CHARS else "")


def assign_hierarchy(segments: List[RawSegment]) -> List[NormalizedTopic]:
    result: List[NormalizedTopic] = []
    stack: List[tuple] = []  # (level, index)
    for i, seg in enumerate(segments):
        while stack and stack[-1][0] >= seg.level:
            stack.pop()
        parent_index = stack[-1][1] if stack else None
        stack.append((seg.level, i))
        result.append(
            NormalizedTopic(
                title=seg.title,
                level=seg.level,
                content=seg.content,
                token_estimate=topic_token_estimate(seg.title, seg.content),
                summary=_summary(seg.content),
                parent_index=parent_index,
            )
        )
    return result


def normalize_topics(raw: List[RawSegment]) -> List[NormalizedTopic]:
    if not raw:
        return []
    merged = merge_small_segments(raw)
    split: List[RawSegment] = []
    for seg in merged:
        split.extend(split_segment(seg))
    return assign_hierarchy(cap_segments(split))
