import argparse
import logging
import sys

from nnplayground.datasets import DatasetKind
from nnplayground.errors import ConfigurationError
from nnplayground.network_structure import ActivationKind
from nnplayground.training import PlaygroundConfig, TrainingSession

logger = logging.getLogger('nnplayground')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='nnplayground',
        description='Train a small neural network on 2D points and watch its decision boundary.',
    )
    parser.add_argument(
        '--dataset',
        choices=[kind.value for kind in DatasetKind],
        default=DatasetKind.XOR.value,
        help='Point set to classify (default: xor)',
    )
    parser.add_argument(
        '--activation',
        choices=[kind.value for kind in ActivationKind],
        default=ActivationKind.TANH.value,
        help='Hidden layer activation; the output is always sigmoid (default: tanh)',
    )
    parser.add_argument(
        '--learning-rate',
        type=float,
        default=0.03,
        help='Learning rate for gradient descent, 0.001 to 0.3 (default: 0.03)',
    )
    parser.add_argument(
        '--hidden-layers',
        type=int,
        nargs='+',
        default=[4],
        metavar='N',
        help='Neurons in each hidden layer, 1 to 3 layers of 1 to 8 (default: 4)',
    )
    parser.add_argument(
        '--epochs',
        type=int,
        default=1000,
        help='Number of training epochs before stopping (default: 1000)',
    )
    parser.add_argument(
        '--points',
        type=int,
        default=200,
        help='Number of points to generate (default: 200)',
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=None,
        help='Random seed for reproducibility (default: fresh entropy)',
    )
    parser.add_argument(
        '--headless',
        action='store_true',
        help='Train without opening a window and log progress',
    )
    parser.add_argument(
        '--log-every',
        type=int,
        default=None,
        help='Epochs between progress lines in headless mode (default: epochs / 10)',
    )
    parser.add_argument(
        '--log-level',
        default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging verbosity (default: INFO)',
    )
    return parser


def train_headless(session: TrainingSession, log_every: int) -> None:
    session.start()
    while session.tick():
        if session.epoch % log_every == 0:
            logger.info(
                'Epoch %04d | avg loss %.4f | accuracy %.1f%%',
                session.epoch, session.loss, session.accuracy_percent(),
            )

    print(
        f'Trained {session.network} for {session.epoch} epochs on '
        f'{len(session.dataset)} {session.config.dataset.value} points: '
        f'loss {session.loss:.4f}, accuracy {session.accuracy:.1f}%'
    )


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s %(name)s %(levelname)s %(message)s',
    )

    try:
        config = PlaygroundConfig(
            dataset=args.dataset,
            activation=args.activation,
            learning_rate=args.learning_rate,
            hidden_layers=args.hidden_layers,
            max_epochs=args.epochs,
            num_points=args.points,
            seed=args.seed,
        )
        session = TrainingSession(config)
    except ConfigurationError as e:
        print(f'nnplayground: error: {e}', file=sys.stderr)
        return 2

    if args.headless:
        log_every = args.log_every or max(1, config.max_epochs // 10)
        train_headless(session, log_every)
        return 0

    from nnplayground.visualizer import PlaygroundVisualizer
    PlaygroundVisualizer(session).run()
    return 0


if __name__ == '__main__':
    sys.exit(main())
