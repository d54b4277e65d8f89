import math
from typing import List, Tuple

import numpy as np
import pytest

from nnplayground.activations import sigmoid
from nnplayground.errors import ConfigurationError, DimensionMismatchError
from nnplayground.network import Network, squared_error
from nnplayground.network_structure import ActivationKind


@pytest.fixture
def network() -> Network:
    """A [2, 4, 1] tanh network with a fixed seed."""
    return Network([2, 4, 1], activation='tanh', learning_rate=0.03, rng=0)


def copy_parameters(network: Network) -> Tuple[List[np.ndarray], List[np.ndarray]]:
    return [w.copy() for w in network.weights], [b.copy() for b in network.biases]


def assert_parameters_equal(network: Network, weights, biases):
    for w1, w2 in zip(weights, network.weights):
        np.testing.assert_array_equal(w1, w2)
    for b1, b2 in zip(biases, network.biases):
        np.testing.assert_array_equal(b1, b2)


@pytest.mark.parametrize('sizes', [[2, 1], [2, 4, 1], [3, 5, 2, 4], [2, 8, 8, 8, 1]])
def test_parameter_shapes(sizes):
    net = Network(sizes, rng=1)

    assert len(net.weights) == len(net.biases) == len(sizes) - 1
    for i, (w, b) in enumerate(zip(net.weights, net.biases)):
        assert w.shape == (sizes[i], sizes[i + 1])
        assert b.shape == (sizes[i + 1],)


def test_initialization_scale():
    """Weights lie within the fan-in scaled range; biases start at zero."""
    net = Network([2, 8, 5, 1], rng=3)

    for w, b in zip(net.weights, net.biases):
        scale = math.sqrt(2.0 / w.shape[0])
        assert np.all(np.abs(w) <= scale)
        assert np.any(w != 0)
        np.testing.assert_array_equal(b, np.zeros_like(b))


def test_seed_determinism():
    first = Network([2, 4, 1], rng=42)
    second = Network([2, 4, 1], rng=np.random.default_rng(42))
    other = Network([2, 4, 1], rng=43)

    assert_parameters_equal(second, *copy_parameters(first))
    assert not np.array_equal(first.weights[0], other.weights[0])


@pytest.mark.parametrize('kwargs', [
    dict(layer_sizes=[2]),
    dict(layer_sizes=[]),
    dict(layer_sizes=[2, 0, 1]),
    dict(layer_sizes=[2, -1, 1]),
    dict(layer_sizes=[2, 4, 1], learning_rate=0),
    dict(layer_sizes=[2, 4, 1], learning_rate=-0.1),
    dict(layer_sizes=[2, 4, 1], learning_rate=float('nan')),
    dict(layer_sizes=[2, 4, 1], learning_rate=float('inf')),
    dict(layer_sizes=[2, 4, 1], learning_rate='fast'),
    dict(layer_sizes=[2, 4, 1], activation='softmax'),
])
def test_invalid_configuration(kwargs):
    with pytest.raises(ConfigurationError):
        Network(**kwargs)


def test_predict_is_deterministic(network):
    weights, biases = copy_parameters(network)

    first = network.predict([0.3, -0.7])
    second = network.predict(np.array([0.3, -0.7]))

    assert first == second
    assert isinstance(first, float)
    assert 0.0 < first < 1.0
    assert_parameters_equal(network, weights, biases)


def test_forward_trace(network):
    trace = network.forward([0.5, 0.25])

    assert len(trace.activations) == 3
    assert len(trace.pre_activations) == 2
    np.testing.assert_array_equal(trace.activations[0], [0.5, 0.25])
    np.testing.assert_allclose(
        trace.pre_activations[0],
        np.array([0.5, 0.25]) @ network.weights[0] + network.biases[0],
    )
    np.testing.assert_allclose(trace.activations[1], np.tanh(trace.pre_activations[0]))
    assert trace.output[0] == network.predict([0.5, 0.25])


@pytest.mark.parametrize('kind', list(ActivationKind))
def test_output_is_sigmoid_regardless_of_activation(kind):
    net = Network([2, 3, 1], activation=kind, rng=5)
    trace = net.forward([0.9, -0.4])

    np.testing.assert_array_equal(trace.output, sigmoid(trace.pre_activations[-1]))
    assert 0.0 < trace.output[0] < 1.0


def test_train_returns_squared_error_of_prior_prediction(network):
    x, y = [0.2, -0.6], [1.0]
    prediction = network.predict(x)

    loss = network.train(x, y)

    assert loss == pytest.approx(0.5 * (prediction - 1.0) ** 2)
    assert loss == pytest.approx(squared_error([prediction], y))
    assert network.predict(x) != prediction


def test_update_without_hidden_layers():
    """With a single transition the update is the delta rule."""
    net = Network([2, 1], learning_rate=0.1, rng=0)
    w, b = copy_parameters(net)
    x = np.array([0.4, -0.8])
    p = net.predict(x)

    net.train(x, [0.0])

    np.testing.assert_allclose(net.weights[0], w[0] - 0.1 * np.outer(x, [p]))
    np.testing.assert_allclose(net.biases[0], b[0] - 0.1 * np.array([p]))


def test_hidden_delta_uses_next_weights(network):
    x, y = np.array([0.7, 0.1]), np.array([0.0])
    trace = network.forward(x)

    deltas = network.backward(trace, y)

    output_delta = trace.output - y
    expected_hidden = (network.weights[1] @ output_delta) * (1 - np.tanh(trace.pre_activations[0]) ** 2)
    np.testing.assert_allclose(deltas[1], output_delta)
    np.testing.assert_allclose(deltas[0], expected_hidden)


@pytest.mark.parametrize('sizes', [[2, 1], [2, 4, 1], [2, 3, 3, 1]])
def test_update_moves_prediction_toward_target(sizes):
    """For target 1 the output delta is negative and the pre-activation rises."""
    net = Network(sizes, activation='tanh', learning_rate=0.03, rng=11)
    x = [0.5, -0.3]

    trace = net.forward(x)
    deltas = net.backward(trace, [1.0])
    assert trace.output[0] < 1.0
    assert deltas[-1][0] < 0

    z_before = trace.pre_activations[-1][0]
    net.train(x, [1.0])
    z_after = net.forward(x).pre_activations[-1][0]

    assert z_after > z_before
    assert net.predict(x) > trace.output[0]


def test_backward_does_not_mutate(network):
    weights, biases = copy_parameters(network)
    network.backward(network.forward([0.1, 0.2]), [1.0])
    assert_parameters_equal(network, weights, biases)


@pytest.mark.parametrize('inputs, target', [
    ([0.1, 0.2, 0.3], [1.0]),
    ([0.1], [1.0]),
    ([0.1, 0.2], [1.0, 0.0]),
    ([0.1, 0.2], [[1.0]]),
    ([[0.1, 0.2]], [1.0]),
    ('ab', [1.0]),
])
def test_train_dimension_mismatch_leaves_parameters(network, inputs, target):
    weights, biases = copy_parameters(network)

    with pytest.raises(DimensionMismatchError):
        network.train(inputs, target)

    assert_parameters_equal(network, weights, biases)
    assert network.saturation_count == 0


def test_predict_dimension_mismatch(network):
    with pytest.raises(DimensionMismatchError, match=r'expected \(2,\)'):
        network.predict([1.0, 2.0, 3.0])


def test_scalar_target_for_single_output(network):
    assert network.train([0.1, 0.2], 1.0) >= 0.0


def test_multiple_outputs():
    net = Network([3, 4, 2], activation='relu', rng=2)
    loss = net.train([0.1, 0.5, -0.2], [1.0, 0.0])

    assert loss > 0.0
    assert net.forward([0.1, 0.5, -0.2]).output.shape == (2,)


def test_parameters_are_read_only(network):
    with pytest.raises(ValueError):
        network.weights[0][0, 0] = 1.0
    with pytest.raises(ValueError):
        network.biases[0][0] = 1.0


def test_saturation_is_counted_not_raised():
    net = Network([1, 1], rng=0)

    loss = net.train([1e6], [1.0])

    assert math.isfinite(loss)
    assert net.saturation_count == 1
    assert math.isfinite(net.predict([1e6]))
    assert net.saturation_count == 1


def test_repr(network):
    assert repr(network) == "Network(layer_sizes=[2, 4, 1], activation='tanh', learning_rate=0.03)"


TORCH_ACTIVATIONS = {
    ActivationKind.LINEAR: lambda torch, z: z,
    ActivationKind.TANH: lambda torch, z: torch.tanh(z),
    ActivationKind.RELU: lambda torch, z: torch.relu(z),
    ActivationKind.SIGMOID: lambda torch, z: torch.sigmoid(z),
    ActivationKind.GELU: lambda torch, z: torch.nn.functional.gelu(z, approximate='tanh'),
}


@pytest.mark.parametrize('kind', list(ActivationKind))
@pytest.mark.parametrize('sizes', [[2, 3, 1], [2, 4, 3, 1], [3, 5, 2]])
def test_update_matches_autograd(kind, sizes):
    """One train call equals an SGD step on cross-entropy through the output sigmoid."""
    torch = pytest.importorskip('torch')

    learning_rate = 0.05
    net = Network(sizes, activation=kind, learning_rate=learning_rate, rng=7)
    rng = np.random.default_rng(8)
    x = rng.uniform(-1, 1, sizes[0])
    y = rng.integers(0, 2, sizes[-1]).astype(float)
    weights, biases = copy_parameters(net)

    ws = [torch.tensor(w, dtype=torch.float64, requires_grad=True) for w in weights]
    bs = [torch.tensor(b, dtype=torch.float64, requires_grad=True) for b in biases]
    a = torch.tensor(x, dtype=torch.float64)
    for i, (w, b) in enumerate(zip(ws, bs)):
        z = a @ w + b
        if i < len(ws) - 1:
            a = TORCH_ACTIVATIONS[kind](torch, z)
    # Logits of the output layer, since the sigmoid is folded into the loss
    loss = torch.nn.functional.binary_cross_entropy_with_logits(
        z, torch.tensor(y, dtype=torch.float64), reduction='sum'
    )
    loss.backward()

    net.train(x, y)

    for i in range(len(ws)):
        np.testing.assert_allclose(
            net.weights[i], weights[i] - learning_rate * ws[i].grad.numpy(), rtol=1e-7, atol=1e-9
        )
        np.testing.assert_allclose(
            net.biases[i], biases[i] - learning_rate * bs[i].grad.numpy(), rtol=1e-7, atol=1e-9
        )


def test_activation_is_read_only(network):
    with pytest.raises(AttributeError):
        network.activation = ActivationKind.SIGMOID
    assert network.activation is ActivationKind.TANH


@pytest.mark.parametrize('sizes', [[2, 1], [2, 4, 4, 1], [2, 3, 1], [2, 4, 2]])
def test_backward_rejects_trace_of_other_architecture(network, sizes):
    trace = Network(sizes, rng=1).forward([0.1, 0.2])

    with pytest.raises(DimensionMismatchError):
        network.backward(trace, [1.0])
