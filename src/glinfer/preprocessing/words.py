"""Word segmentation with character offsets."""

from __future__ import annotations

import re
from typing import Iterator

from glinfer.types import Word

# URLs, emails, @handles, word runs (with inner - or _), then any other
# single non-whitespace character.
WORD_PATTERN = re.compile(
    r"(?:https?://[^\s]+|www\.[^\s]+)"
    r"|[a-z0-9._%+-]+@[a-z0-9.-]+\.[a-z]{2,}"
    r"|@[a-z0-9_]+"
    r"|\w+(?:[-_]\w+)*"
    r"|\S",
    re.IGNORECASE,
)

# Word runs and single characters only.
WHITESPACE_TOKEN_PATTERN = re.compile(r"\w+(?:[-_]\w+)*|\S")


def split_words(text: str, pattern: re.Pattern[str] = WORD_PATTERN) -> Iterator[Word]:
    """Yield the words of ``text`` in order.

    Every call scans ``text`` from the beginning, so the result can be
    requested again at any time and always yields the same words.
    """
    for match in pattern.finditer(text):
        yield Word(text=match.group(0), start=match.start(), end=match.end())


class WordSplitter:
    """Split text into :class:`Word` units using a fixed pattern."""

    def __init__(self, pattern: re.Pattern[str] = WORD_PATTERN):
        self.pattern = pattern

    def split(self, text: str) -> Iterator[Word]:
        return split_words(text, self.pattern)

    def __call__(self, text: str) -> list[Word]:
        return list(self.split(text))
