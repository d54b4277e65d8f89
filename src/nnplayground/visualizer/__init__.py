from .core import PlaygroundVisualizer, run_playground

__all__ = ['PlaygroundVisualizer', 'run_playground']
