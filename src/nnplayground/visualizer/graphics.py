import pygame
from typing import Dict, List, Optional, Sequence, Tuple
import numpy as np
import numpy.typing as npt
from ..datasets import Dataset
from ..network import Network
from ..training import TrainingSnapshot
from .settings import LayoutConfig, DEFAULT_COLORS, UIConfig
from .ui import format_time


def sample_decision_grid(network: Network, resolution: int) -> npt.NDArray:
    """Predict at the centre of every cell of a grid covering [-1, 1]^2.

    Returns:
        Array of shape (resolution, resolution) where entry [row, col] is the
        class-1 probability at x = centre of column `col`, y = centre of row `row`
    """
    centres = -1.0 + (np.arange(resolution) + 0.5) * (2.0 / resolution)
    grid = np.empty((resolution, resolution))
    for row, y in enumerate(centres):
        for col, x in enumerate(centres):
            grid[row, col] = network.predict((x, y))
    return grid


def prediction_color(
    prediction: float,
    colors: Dict[str, Tuple[int, int, int]] = DEFAULT_COLORS,
    max_alpha: float = UIConfig.SURFACE_ALPHA,
) -> Tuple[int, int, int, int]:
    """Tint for one decision surface cell, more opaque the more confident"""
    if prediction > 0.5:
        base, confidence = colors['surface_1'], prediction
    else:
        base, confidence = colors['surface_0'], 1.0 - prediction
    return (*base, int(round(255 * max_alpha * confidence)))


def calculate_neuron_positions(
    layer_sizes: Sequence[int],
    rect: pygame.Rect,
    min_neuron_spacing: int,
) -> List[List[Tuple[int, int]]]:
    """Spread layers evenly across `rect`, each layer centred vertically"""
    num_gaps = max(1, len(layer_sizes) - 1)
    layer_spacing = rect.width / num_gaps
    tallest = max(layer_sizes)
    neuron_spacing = min_neuron_spacing
    if tallest > 1:
        neuron_spacing = min(min_neuron_spacing, rect.height / (tallest - 1))

    positions = []
    for layer_idx, layer_size in enumerate(layer_sizes):
        layer_height = (layer_size - 1) * neuron_spacing
        start_y = rect.centery - layer_height / 2
        x = rect.left + layer_idx * layer_spacing
        positions.append([
            (int(x), int(start_y + neuron_idx * neuron_spacing))
            for neuron_idx in range(layer_size)
        ])
    return positions


class GraphicsManager:
    """Handles drawing of the decision surface, data and network diagram"""
    def __init__(self, layout: Optional[LayoutConfig] = None):
        self.layout = layout or LayoutConfig()
        self.colors = DEFAULT_COLORS.copy()
        self.font = pygame.font.Font(None, self.layout.button_text_size)
        self.stats_font = pygame.font.Font(None, self.layout.stats_text_size)
        self.loss_range = (float('inf'), float('-inf'))  # (min_loss, max_loss)
        self._surface: Optional[pygame.Surface] = None

    def reset_loss_range(self) -> None:
        self.loss_range = (float('inf'), float('-inf'))

    def update_decision_surface(self, network: Network) -> None:
        """Recompute the cached decision surface from the current parameters"""
        resolution = self.layout.grid_resolution
        grid = sample_decision_grid(network, resolution)
        surface = pygame.Surface((resolution, resolution), pygame.SRCALPHA)
        for row in range(resolution):
            for col in range(resolution):
                surface.set_at((col, row), prediction_color(grid[row, col], self.colors))
        self._surface = surface

    def draw_decision_surface(self, screen: pygame.Surface, rect: pygame.Rect) -> None:
        pygame.draw.rect(screen, self.colors['canvas'], rect)
        if self._surface is not None:
            scaled = pygame.transform.scale(self._surface, rect.size)
            screen.blit(scaled, rect.topleft)
        pygame.draw.rect(screen, self.colors['label'], rect, 1)

    def draw_points(self, screen: pygame.Surface, dataset: Dataset, rect: pygame.Rect) -> None:
        """Draw every data point, mapping [-1, 1]^2 onto `rect`"""
        for (x, y), label in dataset:
            pos = (
                int(rect.left + (x + 1) / 2 * rect.width),
                int(rect.top + (y + 1) / 2 * rect.height),
            )
            color = self.colors['class_1'] if label == 1 else self.colors['class_0']
            pygame.draw.circle(screen, color, pos, self.layout.point_radius)
            pygame.draw.circle(screen, self.colors['point_outline'], pos, self.layout.point_radius, 1)

    def get_weight_color(self, weight: float, weight_range: Tuple[float, float]) -> Tuple[int, int, int]:
        """Get the color for a weight based on its value"""
        max_abs = max(abs(weight_range[0]), abs(weight_range[1]))
        intensity = min(abs(weight) / max_abs, 1.0) if max_abs > 0 else 0.0

        target = self.colors['positive'] if weight > 0 else self.colors['negative']
        return tuple(
            int(n * (1 - intensity) + t * intensity)
            for n, t in zip(self.colors['neutral'], target)
        )

    def draw_network(
        self,
        screen: pygame.Surface,
        snapshot: TrainingSnapshot,
        rect: pygame.Rect,
    ) -> None:
        """Draw the architecture with weights coloured by sign and magnitude"""
        label_height = self.font.get_linesize()
        body = pygame.Rect(
            rect.left + self.layout.neuron_radius * 3,
            rect.top + label_height + self.layout.neuron_radius * 2,
            rect.width - self.layout.neuron_radius * 6,
            rect.height - 2 * label_height - self.layout.neuron_radius * 4,
        )
        positions = calculate_neuron_positions(
            snapshot.layer_sizes, body, self.layout.min_neuron_spacing
        )
        weight_range = self._calculate_weight_range(snapshot)

        # Draw weights between layers
        for layer_idx, layer_weights in enumerate(snapshot.weights):
            for i, pos1 in enumerate(positions[layer_idx]):
                for j, pos2 in enumerate(positions[layer_idx + 1]):
                    color = self.get_weight_color(layer_weights[i, j], weight_range)
                    pygame.draw.line(screen, color, pos1, pos2, self.layout.weight_line_width)

            # Output transition is always sigmoid
            is_output = layer_idx == len(snapshot.weights) - 1
            name = 'sigmoid' if is_output else snapshot.activation.value
            mid_x = (positions[layer_idx][0][0] + positions[layer_idx + 1][0][0]) // 2
            self._blit_centered(screen, name, (mid_x, rect.bottom - label_height // 2), self.colors['label'])

        # Draw neurons
        last = len(positions) - 1
        for layer_idx, layer in enumerate(positions):
            if layer_idx == 0:
                color, name = self.colors['input_neuron'], f'Input ({len(layer)})'
            elif layer_idx == last:
                color, name = self.colors['output_neuron'], f'Output ({len(layer)})'
            else:
                color, name = self.colors['hidden_neuron'], f'Hidden {layer_idx} ({len(layer)})'

            for pos in layer:
                pygame.draw.circle(screen, color, pos, self.layout.neuron_radius)
            self._blit_centered(screen, name, (layer[0][0], rect.top + label_height // 2), self.colors['ui'])

    def draw_stats(
        self,
        screen: pygame.Surface,
        snapshot: TrainingSnapshot,
        rect: pygame.Rect,
    ) -> None:
        """Draw epoch, loss, accuracy and time in a box"""
        if snapshot.epoch > 0:
            self._calculate_loss_range(snapshot.loss)

        darker_box_color = tuple(max(0, c - 20) for c in self.colors['loss_box'])
        pygame.draw.rect(screen, darker_box_color, rect)

        rows = [
            ('Epoch', f'{snapshot.epoch} / {snapshot.max_epochs}', self.colors['ui']),
            ('Loss', f'{snapshot.loss:.4f}', self._loss_color(snapshot.loss)),
            ('Accuracy', f'{snapshot.accuracy:.1f}%', self.colors['ui']),
            ('Time', format_time(snapshot.elapsed), self.colors['ui']),
        ]
        line_height = self.stats_font.get_linesize() + 4
        padding = 10
        for i, (label, value, color) in enumerate(rows):
            y = rect.top + padding + i * line_height
            label_surface = self.stats_font.render(f'{label}:', True, self.colors['label'])
            screen.blit(label_surface, (rect.left + padding, y))
            value_surface = self.stats_font.render(value, True, color)
            value_rect = value_surface.get_rect(topright=(rect.right - padding, y))
            screen.blit(value_surface, value_rect)

    def _blit_centered(
        self,
        screen: pygame.Surface,
        text: str,
        center: Tuple[int, int],
        color: Tuple[int, int, int],
    ) -> None:
        text_surface = self.font.render(text, True, color)
        screen.blit(text_surface, text_surface.get_rect(center=center))

    def _loss_color(self, loss: float) -> Tuple[int, int, int]:
        low, high = self.loss_range
        if not low < high:
            return self.colors['loss_min']
        progress = min(1.0, max(0.0, (loss - low) / (high - low)))
        return tuple(
            int(min_val + (max_val - min_val) * progress)
            for min_val, max_val in zip(self.colors['loss_min'], self.colors['loss_max'])
        )

    def _calculate_weight_range(self, snapshot: TrainingSnapshot) -> Tuple[float, float]:
        """Calculate the min and max weights"""
        min_weight = float('inf')
        max_weight = float('-inf')

        for weights in snapshot.weights:
            min_weight = min(min_weight, weights.min())
            max_weight = max(max_weight, weights.max())
        for bias in snapshot.biases:
            min_weight = min(min_weight, bias.min())
            max_weight = max(max_weight, bias.max())

        return min_weight, max_weight

    def _calculate_loss_range(self, loss: float) -> None:
        """Update min/max loss values"""
        self.loss_range = (
            min(self.loss_range[0], loss),
            max(self.loss_range[1], loss),
        )

