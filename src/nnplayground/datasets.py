"""Labelled 2D point sets for binary classification.

Every generator returns exactly `num_points` points with coordinates
nominally in [-1, 1] and labels in {0, 1}.
"""
import math
from dataclasses import dataclass
from enum import Enum
from numbers import Integral
from typing import Iterator, Tuple, Union

import numpy as np
import numpy.typing as npt

from nnplayground.errors import ConfigurationError

GAUSSIAN_CENTER = 0.4
GAUSSIAN_STD = 0.15


class DatasetKind(Enum):
    CIRCLE = 'circle'
    XOR = 'xor'
    SPIRAL = 'spiral'
    GAUSSIAN = 'gaussian'

    @classmethod
    def parse(cls, value: Union[str, 'DatasetKind']) -> 'DatasetKind':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            names = ', '.join(kind.value for kind in cls)
            raise ConfigurationError(
                f'Unknown dataset kind {value!r}, expected one of: {names}'
            ) from None


@dataclass(frozen=True, eq=False)
class Dataset:
    """A finite, restartable sequence of labelled points

    Attributes:
        kind: The sampling rule that produced the points
        points: Coordinates, shape (num_points, 2)
        labels: Class of each point (0 or 1), shape (num_points,)
    """
    kind: DatasetKind
    points: npt.NDArray
    labels: npt.NDArray

    def __len__(self) -> int:
        return len(self.labels)

    def __iter__(self) -> Iterator[Tuple[npt.NDArray, int]]:
        for point, label in zip(self.points, self.labels):
            yield point, int(label)

    @property
    def class_counts(self) -> Tuple[int, int]:
        ones = int(np.count_nonzero(self.labels))
        return len(self) - ones, ones


def generate_dataset(
    kind: Union[str, DatasetKind],
    num_points: int = 200,
    rng: Union[None, int, np.random.Generator] = None,
) -> Dataset:
    """Sample a labelled point set.

    Args:
        kind: One of circle, xor, spiral, gaussian
        num_points: Number of points to return
        rng: Generator, seed or None (fresh OS entropy)

    Raises:
        ConfigurationError: for an unknown kind or a non-positive point count.
    """
    kind = DatasetKind.parse(kind)
    if isinstance(num_points, bool) or not isinstance(num_points, Integral) or num_points <= 0:
        raise ConfigurationError(f'Number of points must be a positive integer, got {num_points!r}')
    num_points = int(num_points)
    rng = np.random.default_rng(rng)

    if kind is DatasetKind.CIRCLE:
        points, labels = _circle(num_points, rng)
    elif kind is DatasetKind.XOR:
        points, labels = _xor(num_points, rng)
    elif kind is DatasetKind.SPIRAL:
        points, labels = _spiral(num_points)
    else:
        points, labels = _gaussian(num_points, rng)

    return Dataset(
        kind=kind,
        points=points[:num_points],
        labels=labels[:num_points].astype(int),
    )


def _circle(num_points: int, rng: np.random.Generator) -> Tuple[npt.NDArray, npt.NDArray]:
    r = rng.random(num_points)
    theta = rng.random(num_points) * 2 * math.pi
    points = np.column_stack([r * np.cos(theta), r * np.sin(theta)])
    labels = (r >= 0.5).astype(int)
    return points, labels


def _xor(num_points: int, rng: np.random.Generator) -> Tuple[npt.NDArray, npt.NDArray]:
    # Antipodal pairs share a label (x*y is unchanged by negation) and pairs
    # alternate between classes, so both classes end up equally represented.
    num_pairs = math.ceil(num_points / 2)
    magnitudes = rng.random((num_pairs, 2))
    signs = rng.choice([-1.0, 1.0], size=num_pairs)
    pair_labels = np.arange(num_pairs) % 2 == 0

    x = signs * magnitudes[:, 0]
    y = np.where(pair_labels, signs, -signs) * magnitudes[:, 1]
    first = np.column_stack([x, y])

    points = np.empty((2 * num_pairs, 2))
    points[0::2] = first
    points[1::2] = -first
    labels = np.repeat(pair_labels.astype(int), 2)
    return points, labels


def _spiral(num_points: int) -> Tuple[npt.NDArray, npt.NDArray]:
    half = num_points / 2
    steps = np.arange(math.ceil(half))
    r = steps / half * 0.9
    theta = steps / half * 4 * math.pi

    points = np.empty((2 * len(steps), 2))
    points[0::2] = np.column_stack([r * np.cos(theta), r * np.sin(theta)])
    points[1::2] = np.column_stack([r * np.cos(theta + math.pi), r * np.sin(theta + math.pi)])
    labels = np.tile([0, 1], len(steps))
    return points, labels


def _gaussian(num_points: int, rng: np.random.Generator) -> Tuple[npt.NDArray, npt.NDArray]:
    num_pairs = math.ceil(num_points / 2)
    negative = rng.normal((-GAUSSIAN_CENTER, 0.0), GAUSSIAN_STD, size=(num_pairs, 2))
    positive = rng.normal((GAUSSIAN_CENTER, 0.0), GAUSSIAN_STD, size=(num_pairs, 2))

    points = np.empty((2 * num_pairs, 2))
    points[0::2] = np.clip(negative, -1.0, 1.0)
    points[1::2] = np.clip(positive, -1.0, 1.0)
    labels = np.tile([0, 1], num_pairs)
    return points, labels
