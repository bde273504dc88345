from .grid import GridGeometry, TILE_SIZE
from .fields import FieldStore, FieldKind, Role, RotationPolicy, FIELD_LAYOUTS
from .eulerian.solver import Simulation, EditMode, OutputField, PointerButtons, TickInputs

__all__ = [
    'GridGeometry',
    'TILE_SIZE',
    'FieldStore',
    'FieldKind',
    'Role',
    'RotationPolicy',
    'FIELD_LAYOUTS',
    'Simulation',
    'EditMode',
    'OutputField',
    'PointerButtons',
    'TickInputs'
]
