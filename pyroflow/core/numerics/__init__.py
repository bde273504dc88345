from .injection import SourceInjector
from .diffusion import DiffusionSolver
from .advection import Advector
from .projection import Projector

__all__ = [
    'SourceInjector',
    'DiffusionSolver',
    'Advector',
    'Projector'
]
