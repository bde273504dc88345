"""
PyroFlow - Stable Fluids with temperature and pyrolysis
"""

from pyroflow.core import (
    GridGeometry,
    FieldStore,
    FieldKind,
    Role,
    Simulation,
    EditMode,
    OutputField,
    PointerButtons
)
from pyroflow.configs import FluidConfig, ConfigManager, PresetManager
from pyroflow.utils import setup_logging, create_logger

__version__ = "0.3.0"

__all__ = [
    # Core components
    'GridGeometry',
    'FieldStore',
    'FieldKind',
    'Role',
    'Simulation',
    'EditMode',
    'OutputField',
    'PointerButtons',

    # Configuration
    'FluidConfig',
    'ConfigManager',
    'PresetManager',

    # Utilities
    'setup_logging',
    'create_logger'
]
