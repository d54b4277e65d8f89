from nnplayground.activations import activate, get_activation
from nnplayground.datasets import Dataset, DatasetKind, generate_dataset
from nnplayground.errors import ConfigurationError, DimensionMismatchError
from nnplayground.network import ForwardTrace, Network
from nnplayground.network_structure import ActivationKind, LayerSpec, NetworkSpec
from nnplayground.training import PlaygroundConfig, TrainingSession, TrainingSnapshot

__version__ = '0.1.0'

__all__ = [
    'ActivationKind',
    'ConfigurationError',
    'Dataset',
    'DatasetKind',
    'DimensionMismatchError',
    'ForwardTrace',
    'LayerSpec',
    'Network',
    'NetworkSpec',
    'PlaygroundConfig',
    'TrainingSession',
    'TrainingSnapshot',
    'activate',
    'generate_dataset',
    'get_activation',
]
