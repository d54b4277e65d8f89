import logging
import pygame
from typing import Optional, Sequence, TypeVar
from ..datasets import DatasetKind
from ..errors import ConfigurationError
from ..network_structure import ActivationKind
from ..training import PlaygroundConfig, TrainingSession
from .graphics import GraphicsManager
from .settings import LayoutConfig, UIConfig
from .ui import UIManager

logger = logging.getLogger(__name__)

T = TypeVar('T')


def next_in_cycle(options: Sequence[T], current: T) -> T:
    """The option after `current`, wrapping around"""
    options = list(options)
    index = options.index(current) if current in options else -1
    return options[(index + 1) % len(options)]


def step_learning_rate(current: float, direction: int, rates: Sequence[float] = UIConfig.LEARNING_RATES) -> float:
    """Move to the neighbouring preset learning rate in `direction` (+1 or -1)"""
    if direction > 0:
        larger = [rate for rate in rates if rate > current]
        return min(larger) if larger else current
    smaller = [rate for rate in rates if rate < current]
    return max(smaller) if smaller else current


class PlaygroundVisualizer:
    """Main class for the interactive training playground"""
    def __init__(
        self,
        session: TrainingSession,
        layout: Optional[LayoutConfig] = None,
    ):
        pygame.init()
        self.layout = layout or LayoutConfig()
        self.session = session
        self.ui = UIManager(self.layout)
        self.graphics = GraphicsManager(self.layout)

        self.screen = pygame.display.set_mode(size=(self.layout.width, self.layout.height))
        pygame.display.set_caption('Neural Network Playground')

        right = self.ui.panel_rect.right + self.layout.margin
        self.architecture_rect = pygame.Rect(
            right,
            self.layout.margin,
            self.layout.canvas_size,
            self.layout.architecture_height,
        )
        self.canvas_rect = pygame.Rect(
            right,
            self.architecture_rect.bottom + self.layout.margin,
            self.layout.canvas_size,
            self.layout.canvas_size,
        )

        self._on_network_replaced()

    def _on_network_replaced(self) -> None:
        """Rebuild everything derived from the previous network"""
        self.ui.initialize_buttons(self.session.config)
        self.graphics.reset_loss_range()
        self.graphics.update_decision_surface(self.session.network)

    def handle_action(self, action: str) -> None:
        """Apply a button or keyboard action to the session"""
        session = self.session
        config = session.config
        replaced = True

        try:
            if action == 'toggle':
                session.toggle()
                replaced = False
            elif action == 'reset':
                session.reset()
            elif action == 'dataset':
                session.reconfigure(dataset=next_in_cycle(DatasetKind, config.dataset))
            elif action == 'activation':
                session.reconfigure(activation=next_in_cycle(ActivationKind, config.activation))
            elif action in ('lr_down', 'lr_up'):
                direction = 1 if action == 'lr_up' else -1
                learning_rate = step_learning_rate(config.learning_rate, direction)
                replaced = learning_rate != config.learning_rate
                if replaced:
                    session.reconfigure(learning_rate=learning_rate)
            elif action in ('epochs_down', 'epochs_up'):
                step = UIConfig.MAX_EPOCHS_STEP if action == 'epochs_up' else -UIConfig.MAX_EPOCHS_STEP
                session.reconfigure(max_epochs=max(1, config.max_epochs + step))
                replaced = False
            elif action == 'add_layer':
                replaced = session.add_hidden_layer()
            elif action == 'remove_layer':
                replaced = session.remove_hidden_layer()
            elif action.startswith(('neurons_down:', 'neurons_up:')):
                name, index = action.split(':')
                delta = 1 if name == 'neurons_up' else -1
                before = config.hidden_layers
                session.update_layer_neurons(int(index), delta)
                replaced = session.config.hidden_layers != before
            else:
                logger.warning('Unknown action %r', action)
                replaced = False
        except ConfigurationError as e:
            logger.warning('Rejected %s: %s', action, e)
            return

        if replaced:
            self._on_network_replaced()

    def run(self) -> None:
        """Main playground loop"""
        running = True
        clock = pygame.time.Clock()
        key_actions = {
            pygame.K_SPACE: 'toggle',
            pygame.K_r: 'reset',
            pygame.K_d: 'dataset',
            pygame.K_a: 'activation',
            pygame.K_UP: 'lr_up',
            pygame.K_DOWN: 'lr_down',
        }

        while running:
            # Handle events
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        running = False
                    elif event.key in key_actions:
                        self.handle_action(key_actions[event.key])
                elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                    action = self.ui.handle_ui_click(event.pos)
                    if action is not None:
                        self.handle_action(action)

            # One epoch per frame, then hand control back to rendering
            if self.session.tick():
                if self.session.epoch % UIConfig.SURFACE_REFRESH_EPOCHS == 0 or not self.session.is_training:
                    self.graphics.update_decision_surface(self.session.network)

            self.draw()
            pygame.display.flip()
            clock.tick(UIConfig.FPS)

        pygame.quit()

    def draw(self) -> None:
        session = self.session
        snapshot = session.snapshot()
        self.ui.update_state(session.config, session.is_training, session.finished)

        self.screen.fill(self.graphics.colors['background'])
        self.ui.draw_panel(self.screen)
        self.ui.draw_buttons(self.screen)
        self.ui.draw_config(self.screen, session.config)
        self.graphics.draw_stats(self.screen, snapshot, self.ui.stats_rect)
        self.graphics.draw_network(self.screen, snapshot, self.architecture_rect)
        self.graphics.draw_decision_surface(self.screen, self.canvas_rect)
        self.graphics.draw_points(self.screen, session.dataset, self.canvas_rect)


def run_playground(config: Optional[PlaygroundConfig] = None) -> None:
    """Open the playground window for `config` and block until it is closed"""
    PlaygroundVisualizer(TrainingSession(config)).run()
