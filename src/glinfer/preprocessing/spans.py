"""Fixed-size span lattice enumeration."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class SpanLattice:
    """All ``(start, end)`` candidates up to ``max_width`` for one sequence.

    Slot ``start * max_width + width`` holds the span beginning at ``start``
    and covering ``width + 1`` units. Slots that would run past the end of the
    sequence are kept (clamped to the last unit) and flagged in ``mask``.
    """

    starts: np.ndarray  # (n * max_width,) int64
    ends: np.ndarray  # (n * max_width,) int64
    mask: np.ndarray  # (n * max_width,) bool
    max_width: int

    def __len__(self) -> int:
        return int(self.starts.shape[0])

    @property
    def seq_len(self) -> int:
        return len(self) // self.max_width

    def pairs(self) -> np.ndarray:
        """Return the lattice as an ``(n * max_width, 2)`` array."""
        return np.stack([self.starts, self.ends], axis=-1)


def generate_spans(seq_len: int, max_width: int) -> SpanLattice:
    """Enumerate every span of ``seq_len`` units up to ``max_width`` wide.

    Args:
        seq_len: Number of units (words or sub-tokens), may be 0.
        max_width: Maximum span width in units, at least 1.

    Returns:
        A lattice of exactly ``seq_len * max_width`` slots.
    """
    if max_width < 1:
        raise ValueError(f"max_width must be >= 1, got {max_width}")
    if seq_len < 0:
        raise ValueError(f"seq_len must be >= 0, got {seq_len}")

    starts = np.repeat(np.arange(seq_len, dtype=np.int64), max_width)
    raw_ends = starts + np.tile(np.arange(max_width, dtype=np.int64), seq_len)
    mask = raw_ends < seq_len
    ends = np.minimum(raw_ends, max(seq_len - 1, 0))

    return SpanLattice(starts=starts, ends=ends, mask=mask, max_width=max_width)
