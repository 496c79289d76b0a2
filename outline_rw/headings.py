from __future__ import annotations

from enum import Enum
from typing import Optional

from .errors import TimestampParseError
from .formats import Format
from .keywords import DEFAULT_KEYWORDS
from .nodes import Node
from .timestamps import RANGE_SEPARATOR, Timestamp
from .types import KeywordCapability
from .utils import dump_tags

TAG_EXTRA_CHARS = "_@#%"


class _Location(Enum):
    MARKERS = 1
    PRE_TITLE = 2
    TITLE = 3


def parse_priority(token: str) -> Optional[str]:
    if len(token) >= 3 and token.startswith("[#") and token.endswith("]"):
        return token[2:-1]
    return None


def is_tag_char(c: str) -> bool:
    return c.isalnum() or c in TAG_EXTRA_CHARS


def read_tags(chars, start: int, end: int):
    """
    Reads `:tag1:tag2:` from `chars[start:end]`, where `chars[start]` is the
    opening colon. Returns None unless the tags run cleanly up to `end`.
    """
    while end > start and chars[end - 1] == " ":
        end -= 1

    tags = []
    tag = ""
    for c in chars[start + 1:end]:
        if c == ":":
            tags.append(tag)
            tag = ""
        elif is_tag_char(c):
            tag += c
        else:
            return None

    if tag != "":
        # Unterminated, `:a:b`
        return None
    return tags


def read_timestamp(chars, start: int):
    """
    Tries to read a timestamp (or a `<...>--<...>` range) starting at
    `chars[start]`. Returns the timestamp and the index of its last character.
    """
    end = _find_closing(chars, start)
    if end is None:
        return None

    separator_end = end + 1 + len(RANGE_SEPARATOR)
    if "".join(chars[end + 1:separator_end]) == RANGE_SEPARATOR and separator_end < len(chars) and chars[separator_end] == "<":
        range_end = _find_closing(chars, separator_end)
        if range_end is not None:
            try:
                return Timestamp.parse("".join(chars[start:range_end + 1])), range_end
            except TimestampParseError:
                pass

    try:
        return Timestamp.parse("".join(chars[start:end + 1])), end
    except TimestampParseError:
        return None


def _find_closing(chars, start: int) -> Optional[int]:
    for j in range(start, len(chars)):
        if chars[j] == ">":
            return j
    return None


def parse_heading(line: str, format: Format, keywords: KeywordCapability = DEFAULT_KEYWORDS) -> Optional[Node]:
    """
    Parses `line` as a heading, returning None when it is not one.

    The first words after the markers may be a keyword and a priority. A word
    the keyword capability does not know is only taken as a keyword when a
    priority follows it; otherwise the scanner rewinds and reads it as title.
    """
    marker = format.heading_char
    if not line.startswith(marker):
        return None

    node = Node()
    level = 0
    # Trailing space so the last token is terminated like every other one
    chars = list(line) + [" "]
    last = len(chars) - 1

    loc = _Location.MARKERS
    curr = ""
    token_starts = []
    definite = False
    ambiguous = None
    priority_found = False

    i = 0
    while i < len(chars):
        c = chars[i]
        next_c = chars[i + 1] if i < last else None

        if loc == _Location.MARKERS:
            if c == marker:
                level += 1
            elif c == " ":
                loc = _Location.PRE_TITLE
                token_starts.append(i + 1)
            else:
                # Emphasis, not a heading
                return None

        elif loc == _Location.PRE_TITLE:
            if c != " ":
                curr += c
            else:
                token = curr
                curr = ""
                rewind_to = None

                keyword = keywords.from_str(token) if not definite and ambiguous is None else None
                priority = parse_priority(token)
                if keyword is not None:
                    node.keyword = keyword
                    definite = True
                elif priority is not None:
                    node.priority = priority
                    priority_found = True
                elif ambiguous is None and not definite:
                    ambiguous = token
                else:
                    # Second plain word: the title starts at the first word
                    # that was not a definite keyword
                    rewind_to = token_starts[1] if definite else token_starts[0]

                if priority_found:
                    if ambiguous is not None:
                        node.keyword = keywords.other(ambiguous)
                    loc = _Location.TITLE
                elif rewind_to is None and ambiguous is not None and i == last:
                    rewind_to = token_starts[0]

                if rewind_to is not None:
                    loc = _Location.TITLE
                    i = rewind_to
                    continue

                token_starts.append(i + 1)

        elif loc == _Location.TITLE:
            if c == ":" and next_c not in (" ", ":"):
                if (tags := read_tags(chars, i, last)) is not None:
                    node.tags = tags
                    break
                curr += c
            elif c == "<" and next_c not in (" ", "<"):
                if (found := read_timestamp(chars, i)) is not None:
                    timestamp, i = found
                    node.timestamps.append(timestamp)
                    # Words around the timestamp stay one space apart
                    curr = curr.rstrip()
                    if curr:
                        curr += " "
                    if i + 1 <= last and chars[i + 1] == " ":
                        i += 1
                else:
                    curr += c
            else:
                curr += c

        i += 1

    node._level = level
    if loc == _Location.TITLE:
        node.title = curr.strip()
    return node


def dump_heading(node: Node, format: Format, keywords: KeywordCapability = DEFAULT_KEYWORDS) -> str:
    parts = [format.heading_char * node.level]
    if node.keyword is not None:
        parts.append(keywords.to_str(node.keyword))
    if node.priority is not None:
        parts.append("[#{}]".format(node.priority))
    if node.title:
        parts.append(node.title)
    for timestamp in node.timestamps:
        parts.append(timestamp.to_raw())
    if node.tags:
        parts.append(dump_tags(node.tags))

    return " ".join(parts).strip()
