import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import numpy.typing as npt

from nnplayground.activations import count_saturated, get_activation, sigmoid
from nnplayground.errors import ConfigurationError, DimensionMismatchError
from nnplayground.network_structure import ActivationKind, NetworkSpec

logger = logging.getLogger(__name__)

RandomSource = Union[None, int, np.random.Generator]


@dataclass
class ForwardTrace:
    """Intermediate values of a single forward pass.

    Attributes:
        activations: Post-activation vector of every layer, starting with the
            input itself, so `activations[i]` feeds transition `i`
        pre_activations: Pre-activation vector `z_i` of every transition
    """
    activations: List[npt.NDArray]
    pre_activations: List[npt.NDArray]

    @property
    def output(self) -> npt.NDArray:
        return self.activations[-1]


class Network:
    """A small fully connected network trained one sample at a time.

    Hidden transitions use the configured activation; the output transition
    is always sigmoid. Parameters are only ever written by `train`.
    """
    def __init__(
        self,
        layer_sizes: Sequence[int],
        activation: Union[str, ActivationKind] = ActivationKind.TANH,
        learning_rate: float = 0.03,
        rng: RandomSource = None,
    ):
        self.spec = NetworkSpec.from_sizes(layer_sizes, activation)
        self._kind = ActivationKind.parse(activation)
        self.learning_rate = _validate_learning_rate(learning_rate)
        self.saturation_count = 0
        self._activation = get_activation(self._kind)

        rng = np.random.default_rng(rng)
        self._weights: List[npt.NDArray] = []
        self._biases: List[npt.NDArray] = []
        for layer in self.spec.layers:
            scale = math.sqrt(2.0 / layer.input_size)
            self._weights.append(
                rng.uniform(-scale, scale, size=(layer.input_size, layer.output_size))
            )
            self._biases.append(np.zeros(layer.output_size, dtype=float))

        logger.debug(
            'Built network %s (activation=%s, learning_rate=%g)',
            self.layer_sizes, self.activation.value, self.learning_rate,
        )

    def __repr__(self):
        return (
            f'Network(layer_sizes={self.layer_sizes}, '
            f'activation={self.activation.value!r}, learning_rate={self.learning_rate})'
        )

    @property
    def activation(self) -> ActivationKind:
        """Hidden-layer activation kind, fixed at construction"""
        return self._kind

    @property
    def layer_sizes(self) -> List[int]:
        return self.spec.layer_sizes

    @property
    def weights(self) -> Tuple[npt.NDArray, ...]:
        """Read-only views of the weight matrices, shape (n_i, n_{i+1})"""
        return tuple(_read_only(w) for w in self._weights)

    @property
    def biases(self) -> Tuple[npt.NDArray, ...]:
        """Read-only views of the bias vectors, shape (n_{i+1},)"""
        return tuple(_read_only(b) for b in self._biases)

    def forward(self, inputs: npt.ArrayLike) -> ForwardTrace:
        """Run forward propagation and keep every intermediate vector"""
        x = self._check_vector(inputs, self.spec.input_size, 'input')
        return self._forward(x)

    def backward(self, trace: ForwardTrace, target: npt.ArrayLike) -> List[npt.NDArray]:
        """Compute the error signal of every transition without touching parameters.

        The output delta is `prediction - target`, the gradient of cross-entropy
        through a sigmoid with respect to the output pre-activation. Hidden
        deltas are pushed back through the transposed weights of the next
        transition and scaled by the local activation derivative.

        Raises:
            DimensionMismatchError: if `trace` was not produced by a network
                of this architecture, or `target` has the wrong shape.
        """
        self._check_trace(trace)
        y = self._check_vector(target, self.spec.output_size, 'target')
        return self._backward(trace, y)

    def train(self, inputs: npt.ArrayLike, target: npt.ArrayLike) -> float:
        """Train on one sample and return its squared-error loss.

        The loss `0.5 * sum((prediction - target)**2)` is measured on the
        prediction made before the update.

        Raises:
            DimensionMismatchError: if `inputs` or `target` do not fit the
                architecture. Parameters are left unchanged.
        """
        x = self._check_vector(inputs, self.spec.input_size, 'input')
        y = self._check_vector(target, self.spec.output_size, 'target')

        trace = self._forward(x)
        self.saturation_count += count_saturated(trace.pre_activations[-1])
        if self.activation is ActivationKind.SIGMOID:
            for z in trace.pre_activations[:-1]:
                self.saturation_count += count_saturated(z)

        deltas = self._backward(trace, y)
        self._apply_update(trace, deltas)
        return squared_error(trace.output, y)

    def predict(self, inputs: npt.ArrayLike) -> float:
        """Probability of class 1 for one input; never mutates the network"""
        x = self._check_vector(inputs, self.spec.input_size, 'input')
        return float(self._forward(x).output[0])

    def _forward(self, x: npt.NDArray) -> ForwardTrace:
        activations = [x]
        pre_activations = []
        last = len(self._weights) - 1

        a = x
        for i, (w, b) in enumerate(zip(self._weights, self._biases)):
            z = a @ w + b
            a = sigmoid(z) if i == last else self._activation.value(z)
            pre_activations.append(z)
            activations.append(a)

        return ForwardTrace(activations=activations, pre_activations=pre_activations)

    def _backward(self, trace: ForwardTrace, y: npt.NDArray) -> List[npt.NDArray]:
        delta = trace.output - y
        deltas = [delta]
        for i in range(len(self._weights) - 2, -1, -1):
            delta = (self._weights[i + 1] @ delta) * self._activation.derivative(
                trace.pre_activations[i]
            )
            deltas.insert(0, delta)
        return deltas

    def _apply_update(self, trace: ForwardTrace, deltas: List[npt.NDArray]) -> None:
        # Every delta was computed from the pre-update weights
        for i, delta in enumerate(deltas):
            self._weights[i] -= self.learning_rate * np.outer(trace.activations[i], delta)
            self._biases[i] -= self.learning_rate * delta

    def _check_trace(self, trace: ForwardTrace) -> None:
        sizes = self.layer_sizes
        if len(trace.pre_activations) != len(sizes) - 1 or len(trace.activations) != len(sizes):
            raise DimensionMismatchError(
                f'Trace has {len(trace.pre_activations)} transitions, '
                f'expected {len(sizes) - 1} for layer sizes {sizes}'
            )
        for i, (a, size) in enumerate(zip(trace.activations, sizes)):
            if np.shape(a) != (size,) or (i > 0 and np.shape(trace.pre_activations[i - 1]) != (size,)):
                raise DimensionMismatchError(
                    f'Trace layer {i} does not match layer sizes {sizes}'
                )

    @staticmethod
    def _check_vector(values: npt.ArrayLike, expected: int, name: str) -> npt.NDArray:
        try:
            vector = np.asarray(values, dtype=float)
        except (TypeError, ValueError):
            raise DimensionMismatchError(
                f'{name.capitalize()} must be a numeric vector, got {values!r}'
            ) from None

        # A bare scalar is accepted wherever a single value is expected
        if vector.ndim == 0:
            vector = vector.reshape(1)
        if vector.shape != (expected,):
            raise DimensionMismatchError(
                f'Invalid shape for {name}: expected ({expected},), got {vector.shape}'
            )
        return vector


def squared_error(prediction: npt.ArrayLike, target: npt.ArrayLike) -> float:
    """The diagnostic loss reported by `Network.train`"""
    error = np.asarray(prediction, dtype=float) - np.asarray(target, dtype=float)
    return float(0.5 * np.sum(error * error))


def _validate_learning_rate(learning_rate: float) -> float:
    try:
        value = float(learning_rate)
    except (TypeError, ValueError):
        raise ConfigurationError(
            f'Learning rate must be a number, got {learning_rate!r}'
        ) from None
    if not math.isfinite(value) or value <= 0:
        raise ConfigurationError(f'Learning rate must be positive, got {learning_rate!r}')
    return value


def _read_only(array: npt.NDArray) -> npt.NDArray:
    view = array.view()
    view.flags.writeable = False
    return view
