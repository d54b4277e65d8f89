from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass
class LayoutConfig:
    """Configuration for the playground layout"""
    width: int = 960
    height: int = 900
    margin: int = 20
    panel_width: int = 320  # For controls and training stats
    architecture_height: int = 260
    canvas_size: int = 580  # Decision surface, square
    grid_resolution: int = 58  # Prediction cells per side of the surface
    point_radius: int = 4
    neuron_radius: int = 10
    min_neuron_spacing: int = 28
    weight_line_width: int = 3
    button_width: int = 135
    button_height: int = 30
    button_margin: int = 10
    button_text_size: int = 20
    stats_text_size: int = 24


DEFAULT_COLORS: Dict[str, Tuple[int, int, int]] = {
    'background': (15, 23, 42),
    'panel': (30, 41, 59),
    'canvas': (15, 23, 42),
    'neuron': (220, 220, 220),
    'input_neuron': (59, 130, 246),
    'hidden_neuron': (168, 85, 247),
    'output_neuron': (249, 115, 22),
    'neutral': (50, 50, 50),
    'positive': (0, 0, 255),
    'negative': (255, 0, 0),
    'ui': (200, 200, 200),
    'label': (148, 163, 184),
    'class_0': (65, 105, 225),     # Royal blue
    'class_1': (255, 140, 0),      # Dark orange
    'surface_0': (65, 105, 225),
    'surface_1': (255, 165, 0),
    'point_outline': (255, 255, 255),
    'button_active': (37, 99, 235),
    'button_inactive': (75, 85, 99),
    'button_text_active': (240, 240, 240),
    'button_text_inactive': (200, 200, 200),
    'loss_min': (50, 200, 50),     # Green for minimum loss
    'loss_max': (255, 165, 0),     # Orange for maximum loss
    'loss_box': (50, 50, 50),      # Gray background for stats box
}


class UIConfig:
    """Configuration for UI behavior"""
    FPS: int = 60
    SURFACE_REFRESH_EPOCHS: int = 5  # Epochs between decision surface redraws
    SURFACE_ALPHA: float = 0.3  # Maximum opacity of the decision surface tint
    LEARNING_RATES: Tuple[float, ...] = (0.001, 0.003, 0.01, 0.03, 0.1, 0.3)
    MAX_EPOCHS_STEP: int = 100
