import logging
import time
from dataclasses import dataclass, field, replace
from numbers import Real
from typing import Callable, List, Optional, Tuple

import numpy as np
import numpy.typing as npt

from nnplayground.datasets import Dataset, DatasetKind, generate_dataset
from nnplayground.errors import ConfigurationError, DimensionMismatchError
from nnplayground.network import Network
from nnplayground.network_structure import ActivationKind

logger = logging.getLogger(__name__)

INPUT_SIZE = 2
OUTPUT_SIZE = 1
MAX_HIDDEN_LAYERS = 3
MIN_NEURONS = 1
MAX_NEURONS = 8
NEW_LAYER_NEURONS = 4
MIN_LEARNING_RATE = 0.001
MAX_LEARNING_RATE = 0.3
ACCURACY_INTERVAL = 5
DECISION_THRESHOLD = 0.5


@dataclass(frozen=True)
class PlaygroundConfig:
    """Everything that determines a network and the data it trains on"""
    dataset: DatasetKind = DatasetKind.XOR
    activation: ActivationKind = ActivationKind.TANH
    learning_rate: float = 0.03
    hidden_layers: Tuple[int, ...] = (4,)
    max_epochs: int = 1000
    num_points: int = 200
    seed: Optional[int] = None

    def __post_init__(self):
        # Accept plain strings and lists from callers and the CLI
        object.__setattr__(self, 'dataset', DatasetKind.parse(self.dataset))
        object.__setattr__(self, 'activation', ActivationKind.parse(self.activation))
        object.__setattr__(self, 'hidden_layers', tuple(self.hidden_layers))

    @property
    def layer_sizes(self) -> List[int]:
        return [INPUT_SIZE, *self.hidden_layers, OUTPUT_SIZE]

    def validate(self) -> None:
        """Check the playground limits on top of what `Network` enforces.

        Raises:
            ConfigurationError: if any value is outside the playground limits.
        """
        if not 1 <= len(self.hidden_layers) <= MAX_HIDDEN_LAYERS:
            raise ConfigurationError(
                f'Expected 1 to {MAX_HIDDEN_LAYERS} hidden layers, got {len(self.hidden_layers)}'
            )
        for i, neurons in enumerate(self.hidden_layers):
            if not isinstance(neurons, int) or not MIN_NEURONS <= neurons <= MAX_NEURONS:
                raise ConfigurationError(
                    f'Hidden layer {i} must have {MIN_NEURONS} to {MAX_NEURONS} neurons, got {neurons!r}'
                )
        if (
            isinstance(self.learning_rate, bool)
            or not isinstance(self.learning_rate, Real)
            or not MIN_LEARNING_RATE <= self.learning_rate <= MAX_LEARNING_RATE
        ):
            raise ConfigurationError(
                f'Learning rate must be between {MIN_LEARNING_RATE} and {MAX_LEARNING_RATE}, '
                f'got {self.learning_rate!r}'
            )
        if not isinstance(self.max_epochs, int) or self.max_epochs < 1:
            raise ConfigurationError(f'Max epochs must be a positive integer, got {self.max_epochs!r}')


@dataclass
class TrainingSnapshot:
    """Read-only copy of the session state for rendering.

    Attributes:
        epoch: Number of completed epochs
        max_epochs: Epoch count at which training stops
        loss: Mean per-sample loss of the last epoch
        accuracy: Percentage of correctly classified points, refreshed every
            few epochs
        elapsed: Seconds spent since training was first started
        is_training: Whether the scheduler is currently running epochs
        layer_sizes: Widths of every layer, input and output included
        activation: Hidden-layer activation kind
        weights: Copies of the weight matrices, shape (n_i, n_{i+1})
        biases: Copies of the bias vectors
    """
    epoch: int
    max_epochs: int
    loss: float
    accuracy: float
    elapsed: float
    is_training: bool
    layer_sizes: List[int]
    activation: ActivationKind
    weights: List[npt.NDArray] = field(default_factory=list)
    biases: List[npt.NDArray] = field(default_factory=list)


class TrainingSession:
    """Drives online training of a `Network` one epoch per scheduler tick.

    The session owns the dataset and the network. Any change to architecture
    or hyperparameters replaces the network wholesale.
    """
    def __init__(
        self,
        config: Optional[PlaygroundConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or PlaygroundConfig()
        self.config.validate()
        self._clock = clock
        self._rng = np.random.default_rng(self.config.seed)

        self.dataset = self._build_dataset(self.config, self._rng)
        self.network = self._build_network(self.config, self._rng)
        self._reset_counters()

    @property
    def finished(self) -> bool:
        return self.epoch >= self.config.max_epochs

    @property
    def elapsed_time(self) -> float:
        """Seconds since training was first started after the last reset"""
        if self._start_time is None:
            return 0.0
        if self.is_training:
            return self._clock() - self._start_time
        return self._stopped_elapsed

    def start(self) -> bool:
        """Resume training; returns False once `max_epochs` has been reached"""
        if self.finished:
            return False
        if self._start_time is None:
            self._start_time = self._clock()
        elif not self.is_training:
            # Resume the timer where it stopped
            self._start_time = self._clock() - self._stopped_elapsed
        self.is_training = True
        return True

    def stop(self) -> None:
        """Stop before the next tick; a running epoch is never interrupted"""
        if self.is_training:
            self._stopped_elapsed = self._clock() - self._start_time
        self.is_training = False

    def toggle(self) -> bool:
        if self.is_training:
            self.stop()
        else:
            self.start()
        return self.is_training

    def tick(self) -> bool:
        """Run one scheduled epoch if training; returns whether one ran"""
        if not self.is_training:
            return False

        self.loss = self.run_epoch()
        completed = self.epoch
        self.epoch += 1

        if completed % ACCURACY_INTERVAL == 0:
            self.accuracy = self.accuracy_percent()

        logger.debug('Epoch %d | avg loss %.4f', self.epoch, self.loss)

        if self.finished:
            self.accuracy = self.accuracy_percent()
            self.stop()
            logger.info(
                'Reached %d epochs: loss %.4f, accuracy %.1f%%',
                self.epoch, self.loss, self.accuracy,
            )
        return True

    def run_epoch(self) -> float:
        """Train once on every sample in order and return the mean loss"""
        total_loss = 0.0
        trained = 0
        for point, label in self.dataset:
            try:
                total_loss += self.network.train(point, [label])
            except DimensionMismatchError as e:
                logger.warning('Skipping malformed sample: %s', e)
                continue
            trained += 1
        return total_loss / max(1, trained)

    def accuracy_percent(self) -> float:
        """Percentage of points whose thresholded prediction matches the label"""
        if len(self.dataset) == 0:
            return 0.0
        correct = sum(
            1 for point, label in self.dataset
            if int(self.network.predict(point) > DECISION_THRESHOLD) == label
        )
        return correct / len(self.dataset) * 100

    def reset(self) -> None:
        """Stop and start over with freshly initialized parameters"""
        self.network = self._build_network(self.config, self._rng)
        self._reset_counters()
        logger.info('Reset network %s', self.network)

    def reconfigure(self, **changes) -> PlaygroundConfig:
        """Apply configuration changes, replacing the network atomically.

        The new dataset and network are built before anything is swapped in,
        so an invalid change leaves the session exactly as it was.

        Raises:
            ConfigurationError: if the resulting configuration is invalid.
        """
        try:
            config = replace(self.config, **changes)
        except TypeError as e:
            raise ConfigurationError(str(e)) from None
        config.validate()

        if set(changes) <= {'max_epochs'}:
            self.config = config
            if self.finished:
                self.stop()
            return config

        rng = self._rng
        if config.seed != self.config.seed:
            rng = np.random.default_rng(config.seed)

        dataset = self.dataset
        if (config.dataset, config.num_points, config.seed) != (
            self.config.dataset, self.config.num_points, self.config.seed
        ):
            dataset = self._build_dataset(config, rng)
        network = self._build_network(config, rng)

        self._rng = rng
        self.config = config
        self.dataset = dataset
        self.network = network
        self._reset_counters()
        logger.info(
            'Reconfigured: dataset=%s, network=%s',
            config.dataset.value, network,
        )
        return config

    def add_hidden_layer(self) -> bool:
        if len(self.config.hidden_layers) >= MAX_HIDDEN_LAYERS:
            return False
        self.reconfigure(hidden_layers=self.config.hidden_layers + (NEW_LAYER_NEURONS,))
        return True

    def remove_hidden_layer(self) -> bool:
        if len(self.config.hidden_layers) <= 1:
            return False
        self.reconfigure(hidden_layers=self.config.hidden_layers[:-1])
        return True

    def update_layer_neurons(self, index: int, delta: int) -> int:
        """Grow or shrink one hidden layer, clamped to the allowed range"""
        layers = list(self.config.hidden_layers)
        if not 0 <= index < len(layers):
            raise ConfigurationError(f'No hidden layer at index {index}')
        neurons = max(MIN_NEURONS, min(MAX_NEURONS, layers[index] + delta))
        if neurons != layers[index]:
            layers[index] = neurons
            self.reconfigure(hidden_layers=tuple(layers))
        return neurons

    def snapshot(self) -> TrainingSnapshot:
        return TrainingSnapshot(
            epoch=self.epoch,
            max_epochs=self.config.max_epochs,
            loss=self.loss,
            accuracy=self.accuracy,
            elapsed=self.elapsed_time,
            is_training=self.is_training,
            layer_sizes=self.network.layer_sizes,
            activation=self.network.activation,
            weights=[w.copy() for w in self.network.weights],
            biases=[b.copy() for b in self.network.biases],
        )

    def _reset_counters(self) -> None:
        self.is_training = False
        self.epoch = 0
        self.loss = 0.0
        self.accuracy = 0.0
        self._start_time: Optional[float] = None
        self._stopped_elapsed = 0.0

    @staticmethod
    def _build_dataset(config: PlaygroundConfig, rng: np.random.Generator) -> Dataset:
        return generate_dataset(config.dataset, config.num_points, rng)

    @staticmethod
    def _build_network(config: PlaygroundConfig, rng: np.random.Generator) -> Network:
        return Network(
            config.layer_sizes,
            activation=config.activation,
            learning_rate=config.learning_rate,
            rng=rng,
        )
