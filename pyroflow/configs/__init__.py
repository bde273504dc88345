from .settings import FluidConfig, ConfigManager, ConfigFormat, FALLOFF_KINDS
from .presets import PresetManager, SimulationPreset

__all__ = [
    'FluidConfig',
    'ConfigManager',
    'ConfigFormat',
    'FALLOFF_KINDS',
    'PresetManager',
    'SimulationPreset'
]
