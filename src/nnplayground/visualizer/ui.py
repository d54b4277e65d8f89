from dataclasses import dataclass
import pygame
from typing import Dict, List, Optional, Tuple
from ..training import MAX_HIDDEN_LAYERS, PlaygroundConfig
from .settings import LayoutConfig, DEFAULT_COLORS


@dataclass
class Button:
    """A clickable button that triggers a named action"""
    rect: pygame.Rect
    text: str
    action: str
    is_active: bool = True


def format_time(seconds: float) -> str:
    """Format seconds as m:ss"""
    seconds = int(seconds)
    return f'{seconds // 60}:{seconds % 60:02d}'


class UIManager:
    """Handles the control panel: buttons, configuration readout, stats area"""
    FIXED_ACTIONS: List[Tuple[str, str]] = [
        ('toggle', 'Play'), ('reset', 'Reset'),
        ('dataset', 'Dataset'), ('activation', 'Activation'),
        ('lr_down', 'LR -'), ('lr_up', 'LR +'),
        ('epochs_down', 'Epochs -'), ('epochs_up', 'Epochs +'),
        ('remove_layer', '- Layer'), ('add_layer', '+ Layer'),
    ]

    def __init__(self, layout: LayoutConfig):
        self.layout = layout
        self.buttons: Dict[str, Button] = {}
        self.colors = DEFAULT_COLORS.copy()
        self.font = pygame.font.Font(None, self.layout.button_text_size)
        self.panel_rect = pygame.Rect(
            self.layout.margin,
            self.layout.margin,
            self.layout.panel_width,
            self.layout.height - 2 * self.layout.margin,
        )
        self.config_rect: Optional[pygame.Rect] = None
        self.stats_rect: Optional[pygame.Rect] = None

    def initialize_buttons(self, config: PlaygroundConfig) -> None:
        """Lay out buttons for the current number of hidden layers"""
        actions = list(self.FIXED_ACTIONS)
        for i in range(len(config.hidden_layers)):
            actions.append((f'neurons_down:{i}', f'H{i + 1} -'))
            actions.append((f'neurons_up:{i}', f'H{i + 1} +'))

        self.buttons = {}
        step_y = self.layout.button_height + self.layout.button_margin
        for i, (action, text) in enumerate(actions):
            row, col = divmod(i, 2)
            self.buttons[action] = Button(
                rect=pygame.Rect(
                    self.panel_rect.left + self.layout.button_margin
                    + col * (self.layout.button_width + self.layout.button_margin),
                    self.panel_rect.top + self.layout.button_margin + row * step_y,
                    self.layout.button_width,
                    self.layout.button_height,
                ),
                text=text,
                action=action,
            )

        bottom = max(button.rect.bottom for button in self.buttons.values())
        line_height = self.font.get_linesize()
        self.config_rect = pygame.Rect(
            self.panel_rect.left + self.layout.button_margin,
            bottom + self.layout.button_margin * 2,
            self.panel_rect.width - 2 * self.layout.button_margin,
            line_height * 5,
        )
        self.stats_rect = pygame.Rect(
            self.config_rect.left,
            self.config_rect.bottom + self.layout.button_margin,
            self.config_rect.width,
            self.panel_rect.bottom - self.config_rect.bottom - 2 * self.layout.button_margin,
        )

    def update_state(self, config: PlaygroundConfig, is_training: bool, finished: bool) -> None:
        """Refresh labels and enabled state from the session"""
        if 'toggle' in self.buttons:
            toggle = self.buttons['toggle']
            toggle.text = 'Pause' if is_training else 'Play'
            toggle.is_active = not finished
        limits = {
            'add_layer': len(config.hidden_layers) < MAX_HIDDEN_LAYERS,
            'remove_layer': len(config.hidden_layers) > 1,
        }
        for action, enabled in limits.items():
            if action in self.buttons:
                self.buttons[action].is_active = enabled

    def handle_ui_click(self, mouse_pos: Tuple[int, int]) -> Optional[str]:
        """Return the action of the clicked button, if any"""
        for button in self.buttons.values():
            if button.rect.collidepoint(mouse_pos) and button.is_active:
                return button.action
        return None

    def draw_panel(self, screen: pygame.Surface) -> None:
        pygame.draw.rect(screen, self.colors['panel'], self.panel_rect)

    def draw_buttons(self, screen: pygame.Surface) -> None:
        """Draw all buttons"""
        for button in self.buttons.values():
            # Draw button background
            color = self.colors['button_active'] if button.is_active else self.colors['button_inactive']
            pygame.draw.rect(screen, color, button.rect)

            # Draw button text
            text_color = self.colors['button_text_active'] if button.is_active else self.colors['button_text_inactive']
            text_surface = self.font.render(button.text, True, text_color)
            text_rect = text_surface.get_rect(center=button.rect.center)
            screen.blit(text_surface, text_rect)

    def draw_config(self, screen: pygame.Surface, config: PlaygroundConfig) -> None:
        """Draw the current hyperparameters below the buttons"""
        if self.config_rect is None:
            return
        rows = [
            f'Dataset: {config.dataset.value}',
            f'Activation: {config.activation.value}',
            f'Learning rate: {config.learning_rate:g}',
            f"Hidden layers: {', '.join(str(n) for n in config.hidden_layers)}",
            f'Points: {config.num_points}',
        ]
        line_height = self.font.get_linesize()
        for i, text in enumerate(rows):
            text_surface = self.font.render(text, True, self.colors['ui'])
            screen.blit(text_surface, (self.config_rect.left, self.config_rect.top + i * line_height))
