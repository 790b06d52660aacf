"""
Helpers for scripted story files.

A story file is a sequence of "Role: content" lines:

    Story: Capitals
    User: What is the capital of France?
    Assistant: /Paris/
    Pipeline.Reason.Topic: /geography/

Everything after a '#' is a comment. Expected text may hold one or more
/regex/ patterns; without any it is used as a single pattern.
"""

import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

NORMAL = "\x1b[0m"
BOLD = "\x1b[1m"
YELLOW = "\x1b[93m"
MAGENTA = "\x1b[35m"
RED = "\x1b[91m"
GREEN = "\x1b[92m"
CYAN = "\x1b[36m"
GRAY = "\x1b[90m"
ARROW = "⇢"
CHECK = "✓"
CROSS = "✘"


@dataclass
class Span:
    index: int
    length: int


def strip_comment(line: str) -> str:
    text = line.strip()
    marker = text.find("#")
    if marker >= 0:
        return text[:marker].strip()
    return text


def parse_story(lines: List[str]) -> Iterator[Tuple[str, str]]:
    """Yield (role, content) for every meaningful line of a story file."""
    for raw in lines:
        line = strip_comment(raw)
        role, sep, content = line.partition(":")
        if not sep or not role:
            continue
        yield role, content.strip()


def regexify(expected: str) -> List[re.Pattern]:
    """Turn "/a/ ... /b/" into case-insensitive patterns a and b."""
    regexes = []
    pos = 0
    while pos < len(expected):
        start = expected.find("/", pos)
        if start < 0:
            break
        end = start + 1
        while end < len(expected):
            if expected[end] == "/" and expected[end - 1] != "\\":
                break
            end += 1
        if end >= len(expected):
            break
        regexes.append(re.compile(expected[start + 1:end], re.IGNORECASE))
        pos = end + 1

    if not regexes:
        regexes.append(re.compile(expected, re.IGNORECASE))
    return regexes


def find_spans(text: Optional[str], regexes: List[re.Pattern]) -> List[Span]:
    """First match of every pattern that matches; unmatched patterns are skipped."""
    spans = []
    for regex in regexes:
        found = regex.search(text or "")
        if found:
            spans.append(Span(index=found.start(), length=found.end() - found.start()))
    return spans


def highlight(text: str, spans: List[Span], color: str = BOLD + GREEN) -> str:
    """Wrap each span of `text` in an ANSI color."""
    result = text
    for span in sorted(spans, key=lambda s: s.index, reverse=True):
        end = span.index + span.length
        result = f"{result[:span.index]}{color}{result[span.index:end]}{NORMAL}{result[end:]}"
    return result
