from .pyrolysis import PyrolysisReaction
from .forces import BodyForces

__all__ = [
    'PyrolysisReaction',
    'BodyForces'
]
