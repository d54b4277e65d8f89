"""Elementwise activation functions and their derivatives.

Every function accepts a numpy array (or a Python float) and evaluates
elementwise, returning an array of the same shape.
"""
from typing import Callable, Dict, NamedTuple, Union

import numpy as np
import numpy.typing as npt

from nnplayground.network_structure import ActivationKind

ArrayLike = Union[float, npt.NDArray]

SIGMOID_CLIP = 20.0
GELU_COEFF = 0.044715
SQRT_2_OVER_PI = 0.7978845608


def linear(x: ArrayLike) -> npt.NDArray:
    return np.asarray(x, dtype=float).copy()


def linear_derivative(x: ArrayLike) -> npt.NDArray:
    return np.ones_like(np.asarray(x, dtype=float))


def tanh(x: ArrayLike) -> npt.NDArray:
    return np.tanh(x)


def tanh_derivative(x: ArrayLike) -> npt.NDArray:
    t = np.tanh(x)
    return 1.0 - t * t


def relu(x: ArrayLike) -> npt.NDArray:
    return np.maximum(0.0, x)


def relu_derivative(x: ArrayLike) -> npt.NDArray:
    # Zero at exactly x == 0
    return (np.asarray(x) > 0).astype(float)


def sigmoid(x: ArrayLike) -> npt.NDArray:
    clipped = np.clip(x, -SIGMOID_CLIP, SIGMOID_CLIP)
    return 1.0 / (1.0 + np.exp(-clipped))


def sigmoid_derivative(x: ArrayLike) -> npt.NDArray:
    s = sigmoid(x)
    return s * (1.0 - s)


def gelu(x: ArrayLike) -> npt.NDArray:
    x = np.asarray(x, dtype=float)
    inner = SQRT_2_OVER_PI * (x + GELU_COEFF * x ** 3)
    return 0.5 * x * (1.0 + np.tanh(inner))


def gelu_derivative(x: ArrayLike) -> npt.NDArray:
    x = np.asarray(x, dtype=float)
    t = np.tanh(SQRT_2_OVER_PI * (x + GELU_COEFF * x ** 3))
    sech2 = 1.0 - t * t
    return 0.5 * (1.0 + t) + 0.5 * x * sech2 * SQRT_2_OVER_PI * (1.0 + 3.0 * GELU_COEFF * x * x)


def count_saturated(x: ArrayLike) -> int:
    """Number of entries a sigmoid would clip to [-SIGMOID_CLIP, SIGMOID_CLIP]"""
    return int(np.count_nonzero(np.abs(x) > SIGMOID_CLIP))


class Activation(NamedTuple):
    kind: ActivationKind
    value: Callable[[ArrayLike], npt.NDArray]
    derivative: Callable[[ArrayLike], npt.NDArray]


ACTIVATIONS: Dict[ActivationKind, Activation] = {
    ActivationKind.LINEAR: Activation(ActivationKind.LINEAR, linear, linear_derivative),
    ActivationKind.TANH: Activation(ActivationKind.TANH, tanh, tanh_derivative),
    ActivationKind.RELU: Activation(ActivationKind.RELU, relu, relu_derivative),
    ActivationKind.SIGMOID: Activation(ActivationKind.SIGMOID, sigmoid, sigmoid_derivative),
    ActivationKind.GELU: Activation(ActivationKind.GELU, gelu, gelu_derivative),
}


def get_activation(kind: Union[str, ActivationKind]) -> Activation:
    """Look up an activation by enum member or name.

    Raises:
        ConfigurationError: if the name is not a known activation kind.
    """
    return ACTIVATIONS[ActivationKind.parse(kind)]


def activate(
    kind: Union[str, ActivationKind],
    x: ArrayLike,
    derivative: bool = False,
) -> npt.NDArray:
    """Evaluate an activation (or its derivative when `derivative` is True)"""
    activation = get_activation(kind)
    return activation.derivative(x) if derivative else activation.value(x)
