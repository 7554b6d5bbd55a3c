import numpy as np
import pytest

from glinfer.decoding.scores import sigmoid, softmax


def test_sigmoid_known_values():
    result = sigmoid([0.0, 2.0, -2.0])
    assert result[0] == pytest.approx(0.5)
    assert result[1] == pytest.approx(1 / (1 + np.exp(-2.0)))
    assert result[1] + result[2] == pytest.approx(1.0)


def test_sigmoid_is_stable_for_extreme_inputs():
    with np.errstate(over="raise"):
        result = sigmoid(np.array([-1000.0, -50.0, 50.0, 1000.0]))

    assert np.all(np.isfinite(result))
    assert np.all((result >= 0.0) & (result <= 1.0))
    assert result[0] == pytest.approx(0.0)
    assert result[-1] == pytest.approx(1.0)


def test_sigmoid_is_monotonic_and_keeps_shape():
    values = np.linspace(-30, 30, 24).reshape(2, 3, 4)
    result = sigmoid(values)

    assert result.shape == values.shape
    assert np.all(np.diff(result.reshape(-1)) >= 0)


def test_sigmoid_scalar():
    assert sigmoid(0.0).shape == ()
    assert float(sigmoid(0.0)) == pytest.approx(0.5)


def test_softmax_sums_to_one_and_is_stable():
    with np.errstate(over="raise"):
        result = softmax([1000.0, 1000.0, 999.0])

    assert result.sum() == pytest.approx(1.0)
    assert result[0] == pytest.approx(result[1])
    assert result[0] > result[2]


def test_softmax_along_axis():
    values = np.array([[1.0, 2.0, 3.0], [0.0, 0.0, 0.0]])
    result = softmax(values, axis=-1)

    np.testing.assert_allclose(result.sum(axis=-1), [1.0, 1.0])
    np.testing.assert_allclose(result[1], [1 / 3] * 3)


def test_softmax_empty():
    assert softmax(np.array([])).size == 0
