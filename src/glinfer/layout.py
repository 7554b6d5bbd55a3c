"""Layout of the span score tensor shared by batching and decoding.

The schema-prefixed model family returns one flat score per
``(example, start word, width, label)`` cell. Both the batch assembler and the
span decoder read the dimensions from a single :class:`ScoreLayout`, so the
stride arithmetic used to recover a span from a flat offset always matches the
order in which the span lattice was laid out.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

SCORE_DIMENSIONS = ("batch", "position", "width", "label")


@dataclass(frozen=True)
class ScoreLayout:
    """Dimensions of a ``[batch, position, width, label]`` score tensor."""

    batch_size: int
    num_positions: int
    max_width: int
    num_labels: int

    @property
    def shape(self) -> tuple[int, int, int, int]:
        return (self.batch_size, self.num_positions, self.max_width, self.num_labels)

    @property
    def size(self) -> int:
        return self.batch_size * self.batch_stride

    @property
    def span_count(self) -> int:
        """Number of lattice slots per example (padded)."""
        return self.num_positions * self.max_width

    @property
    def batch_stride(self) -> int:
        return self.num_positions * self.max_width * self.num_labels

    @property
    def position_stride(self) -> int:
        return self.max_width * self.num_labels

    @property
    def width_stride(self) -> int:
        return self.num_labels

    def unravel(
        self, indices: np.ndarray
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """Recover ``(batch, start, width, label)`` for flat offsets.

        Args:
            indices: Integer offsets into the flattened score tensor.

        Returns:
            Four arrays of the same shape as ``indices``.
        """
        indices = np.asarray(indices, dtype=np.int64)
        batch = indices // self.batch_stride
        start = (indices // self.position_stride) % self.num_positions
        width = (indices // self.width_stride) % self.max_width
        label = indices % self.num_labels
        return batch, start, width, label
