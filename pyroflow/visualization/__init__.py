from .renderer import Presenter, VisualizationConfig

__all__ = [
    'Presenter',
    'VisualizationConfig'
]
