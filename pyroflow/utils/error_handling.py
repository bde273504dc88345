import logging
from typing import Optional, Dict
import traceback
import sys
import numpy as np

class SimulationError(Exception):
    """Base class for simulation-related errors"""
    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(message)
        self.details = details or {}

class SolverError(SimulationError):
    """Error in the numerical pipeline"""
    pass

class InvariantViolation(SolverError):
    """A stage read a generation that was never written, or used a released store"""
    pass

class BufferAliasError(InvariantViolation):
    """A stage bound the same generation as both input and output"""
    pass

class PhysicsError(SimulationError):
    """Error in physics calculations"""
    pass

class ConfigurationError(SimulationError):
    """Error in configuration"""
    pass

def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> None:
    """Setup logging configuration"""
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )

def handle_simulation_error(e: Exception, logger: logging.Logger) -> None:
    """Handle simulation errors with appropriate logging"""
    if isinstance(e, SimulationError):
        logger.error(f"{e.__class__.__name__}: {str(e)}")
        if e.details:
            logger.debug(f"Error details: {e.details}")
    else:
        logger.error(f"Unexpected error: {str(e)}")
        logger.debug(f"Traceback: {traceback.format_exc()}")

def check_field_finite(array: np.ndarray, field_name: str, limit: float = 1e6) -> None:
    """Check a host copy of a field for NaN/inf or runaway values.

    The tick itself never performs this check; callers that want to guard
    against an unstable dt/rate combination run it between ticks.
    """
    if not np.all(np.isfinite(array)):
        raise PhysicsError(f"Non-finite values detected in {field_name}")
    if np.any(np.abs(array) > limit):
        raise PhysicsError(
            f"Values too large in {field_name}",
            {"max_abs": float(np.max(np.abs(array))), "limit": limit}
        )

def create_logger(name: str) -> logging.Logger:
    """Create a logger with standard configuration"""
    logger = logging.getLogger(name)

    # Add console handler if neither this logger nor the root has one
    if not logger.handlers and not logging.getLogger().handlers:
        logger.setLevel(logging.INFO)
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(
            logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        )
        logger.addHandler(console_handler)

    return logger
