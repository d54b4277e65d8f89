from dataclasses import dataclass
from enum import Enum
from numbers import Integral
from typing import List, Sequence, Tuple, Union

from nnplayground.errors import ConfigurationError


class ActivationKind(Enum):
    LINEAR = 'linear'
    TANH = 'tanh'
    RELU = 'relu'
    SIGMOID = 'sigmoid'
    GELU = 'gelu'

    @classmethod
    def parse(cls, value: Union[str, 'ActivationKind']) -> 'ActivationKind':
        """Resolve an activation name (case-insensitive) or enum member"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            names = ', '.join(kind.value for kind in cls)
            raise ConfigurationError(
                f'Unknown activation kind {value!r}, expected one of: {names}'
            ) from None


# The final transition is always sigmoid so the single output reads as a
# class-1 probability.
OUTPUT_ACTIVATION = ActivationKind.SIGMOID


@dataclass(frozen=True)
class LayerSpec:
    """Specification for one transition between two layers of neurons"""
    input_size: int
    output_size: int
    activation: ActivationKind


@dataclass(frozen=True)
class NetworkSpec:
    """Specification for a fully connected feed-forward network"""
    layers: Tuple[LayerSpec, ...]

    @classmethod
    def from_sizes(
        cls,
        layer_sizes: Sequence[int],
        activation: Union[str, ActivationKind] = ActivationKind.TANH,
    ) -> 'NetworkSpec':
        """Build a spec from layer widths `[n0, n1, ..., nL]`.

        Hidden transitions use `activation`; the output transition is always
        sigmoid.

        Raises:
            ConfigurationError: if there are fewer than two layers, a width is
                not a positive integer, or the activation kind is unknown.
        """
        sizes = validate_layer_sizes(layer_sizes)
        kind = ActivationKind.parse(activation)
        num_transitions = len(sizes) - 1
        layers = tuple(
            LayerSpec(
                input_size=sizes[i],
                output_size=sizes[i + 1],
                activation=OUTPUT_ACTIVATION if i == num_transitions - 1 else kind,
            )
            for i in range(num_transitions)
        )
        return cls(layers=layers)

    @property
    def input_size(self) -> int:
        return self.layers[0].input_size

    @property
    def output_size(self) -> int:
        return self.layers[-1].output_size

    @property
    def layer_sizes(self) -> List[int]:
        return [self.input_size] + [layer.output_size for layer in self.layers]


def validate_layer_sizes(layer_sizes: Sequence[int]) -> List[int]:
    """Check layer widths and return them as a list of plain ints"""
    try:
        sizes = list(layer_sizes)
    except TypeError:
        raise ConfigurationError(
            f'Layer sizes must be a sequence of integers, got {layer_sizes!r}'
        ) from None

    if len(sizes) < 2:
        raise ConfigurationError(
            f'A network needs at least 2 layers (input and output), got {len(sizes)}'
        )
    for i, size in enumerate(sizes):
        if isinstance(size, bool) or not isinstance(size, Integral):
            raise ConfigurationError(f'Layer {i} width must be an integer, got {size!r}')
        if size <= 0:
            raise ConfigurationError(f'Layer {i} width must be positive, got {size}')
    return [int(size) for size in sizes]
