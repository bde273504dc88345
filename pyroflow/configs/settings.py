import yaml
import json
from typing import Optional, Dict, List, Tuple
from dataclasses import dataclass, fields, replace
from enum import Enum
import math
import os

from ..utils.error_handling import ConfigurationError

FALLOFF_KINDS = ("exponential", "gaussian")

class ConfigFormat(Enum):
    """Configuration file formats"""
    YAML = "yaml"
    JSON = "json"

@dataclass(frozen=True)
class FluidConfig:
    """Runtime-tunable simulation parameters"""
    # Grid
    resolution: int = 512
    aspect_ratio: Tuple[float, float] = (1, 1)

    # Diffusion rates (density/temperature/fuel gas, and velocity)
    diffusion: float = 1000.0
    velocity_diffusion: float = 10.0
    diffusion_iterations: int = 10
    projection_iterations: int = 10

    # Sources and forces
    source_strength: float = 1.0
    temperature_strength: float = 1.0
    source_distance: float = 5.0
    force_strength: float = 10.0
    force_distance: float = 2.0
    falloff: str = "exponential"
    initial_velocity: Tuple[float, float] = (0.0, 0.0)

    # Fuel and pyrolysis
    fuel_density: float = 1.0
    fuel_conversion_rate: float = 0.5
    min_pyrolysis_temp: float = 0.3
    max_pyrolysis_temp: float = 1.0
    # Heat added under the brush while placing fuel
    combustion_heat: float = 0.5

    # Body forces, off by default
    buoyancy: float = 0.0
    ambient_temperature: float = 0.0
    vorticity: float = 0.0

    def validate(self) -> List[str]:
        """
        Validate configuration

        Returns:
            List of validation errors
        """
        errors = []

        if self.resolution < 8:
            errors.append("Resolution must be at least the tile size (8)")
        if len(self.aspect_ratio) != 2 or min(self.aspect_ratio) <= 0:
            errors.append("Aspect ratio must be two positive numbers")

        for name in ("diffusion", "velocity_diffusion", "fuel_density",
                     "fuel_conversion_rate", "combustion_heat", "buoyancy", "vorticity"):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                errors.append(f"{name} must be a non-negative number")

        for name in ("source_strength", "temperature_strength", "force_strength",
                     "ambient_temperature", "min_pyrolysis_temp", "max_pyrolysis_temp"):
            if not math.isfinite(getattr(self, name)):
                errors.append(f"{name} must be finite")

        if self.source_distance <= 0:
            errors.append("Source distance must be positive")
        if self.force_distance <= 0:
            errors.append("Force distance must be positive")
        if self.max_pyrolysis_temp < self.min_pyrolysis_temp:
            errors.append("Maximum pyrolysis temperature must not be below the minimum")

        if self.diffusion_iterations < 1:
            errors.append("Diffusion iterations must be positive")
        if self.projection_iterations < 1:
            errors.append("Projection iterations must be positive")

        if self.falloff not in FALLOFF_KINDS:
            errors.append(f"Unknown falloff: {self.falloff}")
        if len(self.initial_velocity) != 2:
            errors.append("Initial velocity must have two components")

        return errors

    def check(self) -> "FluidConfig":
        """Raise ConfigurationError if the configuration is invalid"""
        errors = self.validate()
        if errors:
            raise ConfigurationError("; ".join(errors), {"errors": errors})
        return self

    def updated(self, **overrides) -> "FluidConfig":
        """Return a validated copy with the given fields replaced"""
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration fields: {', '.join(unknown)}")
        for key in ("aspect_ratio", "initial_velocity"):
            if key in overrides:
                overrides[key] = tuple(overrides[key])
        return replace(self, **overrides).check()

    def to_dict(self) -> Dict:
        """Convert configuration to a plain dictionary"""
        config_dict = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, tuple):
                value = list(value)
            config_dict[f.name] = value
        return config_dict

    @classmethod
    def from_dict(cls, config_dict: Dict) -> "FluidConfig":
        """Build a validated configuration from a dictionary"""
        return cls().updated(**(config_dict or {}))

class ConfigManager:
    def __init__(self, config: Optional[FluidConfig] = None):
        """
        Initialize configuration manager

        Args:
            config: Simulation configuration
        """
        self.config = config or FluidConfig()

    def save(self,
             filename: str,
             format: ConfigFormat = ConfigFormat.YAML):
        """
        Save configuration to file

        Args:
            filename: Output filename
            format: File format
        """
        config_dict = self.config.to_dict()

        directory = os.path.dirname(filename)
        if directory:
            os.makedirs(directory, exist_ok=True)

        if format == ConfigFormat.YAML:
            with open(filename, "w") as f:
                yaml.safe_dump(config_dict, f, default_flow_style=False)
        elif format == ConfigFormat.JSON:
            with open(filename, "w") as f:
                json.dump(config_dict, f, indent=4)
        else:
            raise ValueError(f"Unknown format: {format}")

    def load(self,
             filename: str,
             format: Optional[ConfigFormat] = None) -> FluidConfig:
        """
        Load configuration from file

        Args:
            filename: Input filename
            format: File format, inferred from the extension when omitted

        Returns:
            The loaded configuration, which also replaces the managed one
        """
        if format is None:
            format = ConfigFormat.JSON if filename.endswith(".json") else ConfigFormat.YAML

        if format == ConfigFormat.YAML:
            with open(filename, "r") as f:
                config_dict = yaml.safe_load(f)
        elif format == ConfigFormat.JSON:
            with open(filename, "r") as f:
                config_dict = json.load(f)
        else:
            raise ValueError(f"Unknown format: {format}")

        if config_dict is not None and not isinstance(config_dict, dict):
            raise ConfigurationError(f"Configuration file {filename} must contain a mapping")

        self.config = self.config.updated(**(config_dict or {}))
        return self.config

    def validate(self) -> List[str]:
        """Validate the managed configuration"""
        return self.config.validate()
