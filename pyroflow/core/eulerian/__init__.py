from .solver import Simulation, EditMode, OutputField, PointerButtons, TickInputs

__all__ = [
    'Simulation',
    'EditMode',
    'OutputField',
    'PointerButtons',
    'TickInputs'
]
