from .error_handling import (
    SimulationError,
    SolverError,
    InvariantViolation,
    BufferAliasError,
    PhysicsError,
    ConfigurationError,
    setup_logging,
    handle_simulation_error,
    check_field_finite,
    create_logger
)
from .logging import SimulationLogger, Timer

__all__ = [
    'SimulationError',
    'SolverError',
    'InvariantViolation',
    'BufferAliasError',
    'PhysicsError',
    'ConfigurationError',
    'setup_logging',
    'handle_simulation_error',
    'check_field_finite',
    'create_logger',
    'SimulationLogger',
    'Timer'
]
