"""Value types shared by the preprocessing and decoding stages."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class Word:
    """A word-like unit with character offsets into the source text."""

    text: str
    start: int  # char start (inclusive)
    end: int  # char end (exclusive)


@dataclass(frozen=True)
class Entity:
    """A labeled character span with its confidence score.

    Decoders produce these as candidates that may overlap; after overlap
    resolution the survivors are returned to the caller unchanged.
    """

    text: str
    label: str
    start: int
    end: int
    score: float  # [0,1]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


ClassificationResult = dict[str, float]
