"""Numerically stable score transforms."""

from __future__ import annotations

from typing import Any

import numpy as np


def sigmoid(values: Any) -> np.ndarray:
    """Element-wise logistic function that never overflows.

    Non-negative inputs use ``1 / (1 + exp(-x))`` and negative inputs use
    ``exp(x) / (1 + exp(x))``, so ``exp`` only ever sees non-positive values.
    """
    array = np.asarray(values, dtype=np.float64)
    flat = np.atleast_1d(array)
    result = np.empty_like(flat)

    positive = flat >= 0
    result[positive] = 1.0 / (1.0 + np.exp(-flat[positive]))
    exp_values = np.exp(flat[~positive])
    result[~positive] = exp_values / (1.0 + exp_values)

    return result.reshape(array.shape)


def softmax(values: Any, axis: int = -1) -> np.ndarray:
    """Softmax along ``axis`` after subtracting the row maximum."""
    array = np.asarray(values, dtype=np.float64)
    if array.size == 0:
        return array.copy()
    shifted = array - np.max(array, axis=axis, keepdims=True)
    exp_values = np.exp(shifted)
    return exp_values / np.sum(exp_values, axis=axis, keepdims=True)
