import logging

import numpy as np
import pytest

from nnplayground.datasets import Dataset, DatasetKind
from nnplayground.errors import ConfigurationError
from nnplayground.network_structure import ActivationKind
from nnplayground.training import PlaygroundConfig, TrainingSession


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def session() -> TrainingSession:
    return TrainingSession(PlaygroundConfig(max_epochs=20, seed=0))


def train_to_completion(config: PlaygroundConfig) -> TrainingSession:
    session = TrainingSession(config)
    assert session.start()
    while session.tick():
        pass
    assert session.epoch == config.max_epochs
    return session


def test_gaussian_is_learned():
    session = train_to_completion(PlaygroundConfig(
        dataset='gaussian', activation='tanh', learning_rate=0.03,
        hidden_layers=(4,), max_epochs=500, seed=0,
    ))
    assert session.accuracy_percent() > 95.0


def test_xor_is_not_learned_by_linear_hidden_layer():
    """A linear hidden layer followed by a sigmoid stays at chance on XOR."""
    session = train_to_completion(PlaygroundConfig(
        dataset='xor', activation='linear', learning_rate=0.03,
        hidden_layers=(4,), max_epochs=1000, seed=0,
    ))
    assert 40.0 <= session.accuracy_percent() <= 60.0


def test_xor_is_learned_by_tanh():
    session = train_to_completion(PlaygroundConfig(
        dataset='xor', activation='tanh', learning_rate=0.03,
        hidden_layers=(4,), max_epochs=300, seed=0,
    ))
    assert session.loss < 0.1


def test_config_accepts_plain_values():
    config = PlaygroundConfig(dataset='spiral', activation='GELU', hidden_layers=[3, 5])

    assert config.dataset is DatasetKind.SPIRAL
    assert config.activation is ActivationKind.GELU
    assert config.hidden_layers == (3, 5)
    assert config.layer_sizes == [2, 3, 5, 1]


@pytest.mark.parametrize('kwargs', [
    dict(hidden_layers=()),
    dict(hidden_layers=(4, 4, 4, 4)),
    dict(hidden_layers=(0,)),
    dict(hidden_layers=(9,)),
    dict(max_epochs=0),
    dict(learning_rate=-1.0),
    dict(learning_rate=5.0),
    dict(learning_rate=1e-6),
    dict(num_points=0),
    dict(dataset='moons'),
])
def test_invalid_config(kwargs):
    with pytest.raises(ConfigurationError):
        TrainingSession(PlaygroundConfig(**kwargs))


def test_seeded_sessions_match():
    first = TrainingSession(PlaygroundConfig(seed=3))
    second = TrainingSession(PlaygroundConfig(seed=3))

    np.testing.assert_array_equal(first.dataset.points, second.dataset.points)
    for w1, w2 in zip(first.network.weights, second.network.weights):
        np.testing.assert_array_equal(w1, w2)


def test_tick_only_runs_while_training(session):
    assert not session.tick()
    assert session.epoch == 0

    session.start()
    assert session.tick()
    assert session.epoch == 1
    assert session.loss > 0.0

    session.stop()
    assert not session.tick()
    assert session.epoch == 1


def test_accuracy_refreshes_every_five_epochs(session):
    session.start()
    session.tick()
    first = session.accuracy
    assert first == session.accuracy_percent()

    for _ in range(4):
        session.tick()
        assert session.accuracy == first

    session.tick()
    assert session.epoch == 6
    assert session.accuracy == session.accuracy_percent()


def test_stops_at_max_epochs():
    session = TrainingSession(PlaygroundConfig(max_epochs=3, seed=0))
    session.start()

    for _ in range(3):
        assert session.tick()

    assert session.finished
    assert not session.is_training
    assert not session.tick()
    assert not session.start()
    assert session.accuracy == session.accuracy_percent()


def test_toggle(session):
    assert session.toggle()
    assert not session.toggle()


def test_elapsed_time_pauses_while_stopped():
    clock = FakeClock(10.0)
    session = TrainingSession(PlaygroundConfig(seed=0), clock=clock)
    assert session.elapsed_time == 0.0

    session.start()
    clock.now = 15.0
    assert session.elapsed_time == 5.0

    session.stop()
    clock.now = 100.0
    assert session.elapsed_time == 5.0

    session.start()
    clock.now = 102.0
    assert session.elapsed_time == 7.0

    session.reset()
    assert session.elapsed_time == 0.0


def test_reset_replaces_network_and_keeps_data(session):
    session.start()
    session.tick()
    network, dataset = session.network, session.dataset

    session.reset()

    assert session.network is not network
    assert session.dataset is dataset
    assert (session.epoch, session.loss, session.accuracy) == (0, 0.0, 0.0)
    assert not session.is_training


def test_reconfigure_activation_replaces_network(session):
    session.start()
    session.tick()
    network, dataset = session.network, session.dataset

    session.reconfigure(activation='relu')

    assert session.network is not network
    assert session.network.activation is ActivationKind.RELU
    assert session.dataset is dataset
    assert session.epoch == 0
    assert not session.is_training


def test_reconfigure_dataset_regenerates_points(session):
    dataset = session.dataset

    session.reconfigure(dataset='circle', num_points=50)

    assert session.dataset is not dataset
    assert session.dataset.kind is DatasetKind.CIRCLE
    assert len(session.dataset) == 50


def test_reconfigure_max_epochs_keeps_network(session):
    session.start()
    session.tick()
    session.tick()
    network = session.network

    session.reconfigure(max_epochs=2)

    assert session.network is network
    assert session.epoch == 2
    assert session.finished
    assert not session.is_training


@pytest.mark.parametrize('changes', [
    dict(learning_rate=0.0),
    dict(learning_rate=5.0),
    dict(learning_rate=1e-6),
    dict(hidden_layers=(4, 9)),
    dict(activation='softmax'),
    dict(layers=(4,)),
])
def test_invalid_reconfigure_leaves_session_untouched(session, changes):
    config, network, dataset = session.config, session.network, session.dataset

    with pytest.raises(ConfigurationError):
        session.reconfigure(**changes)

    assert session.config is config
    assert session.network is network
    assert session.dataset is dataset


def test_hidden_layer_editing(session):
    assert session.add_hidden_layer()
    assert session.add_hidden_layer()
    assert not session.add_hidden_layer()
    assert session.config.hidden_layers == (4, 4, 4)
    assert session.network.layer_sizes == [2, 4, 4, 4, 1]

    assert session.remove_hidden_layer()
    assert session.remove_hidden_layer()
    assert not session.remove_hidden_layer()
    assert session.config.hidden_layers == (4,)


def test_layer_neurons_are_clamped(session):
    for _ in range(10):
        session.update_layer_neurons(0, 1)
    assert session.config.hidden_layers == (8,)

    network = session.network
    assert session.update_layer_neurons(0, 1) == 8
    assert session.network is network

    assert session.update_layer_neurons(0, -20) == 1
    assert session.network.layer_sizes == [2, 1, 1]

    with pytest.raises(ConfigurationError):
        session.update_layer_neurons(3, 1)


def test_snapshot_is_a_copy(session):
    session.start()
    session.tick()

    snapshot = session.snapshot()
    snapshot.weights[0][0, 0] += 100.0

    assert snapshot.epoch == 1
    assert snapshot.layer_sizes == [2, 4, 1]
    assert snapshot.activation is ActivationKind.TANH
    assert snapshot.is_training
    assert session.network.weights[0][0, 0] != snapshot.weights[0][0, 0]


def test_malformed_samples_are_skipped(session, caplog):
    session.dataset = Dataset(
        kind=DatasetKind.XOR,
        points=np.zeros((2, 3)),
        labels=np.array([0, 1]),
    )
    weights = [w.copy() for w in session.network.weights]

    with caplog.at_level(logging.WARNING, logger='nnplayground.training'):
        loss = session.run_epoch()

    assert loss == 0.0
    assert 'Skipping malformed sample' in caplog.text
    for w1, w2 in zip(weights, session.network.weights):
        np.testing.assert_array_equal(w1, w2)


@pytest.mark.parametrize('learning_rate', [0.001, 0.3])
def test_learning_rate_limits_are_inclusive(learning_rate):
    session = TrainingSession(PlaygroundConfig(learning_rate=learning_rate, seed=0))
    assert session.network.learning_rate == learning_rate
