import json
import logging
import os
from dataclasses import dataclass, field, asdict
from typing import Dict, Any, List, Optional
from datetime import datetime

from .settings import FluidConfig
from ..utils.error_handling import ConfigurationError

logger = logging.getLogger(__name__)

@dataclass
class SimulationPreset:
    name: str
    description: str
    parameters: Dict[str, Any]
    tags: List[str] = field(default_factory=list)
    created: str = ""
    author: str = "PyroFlow Team"
    version: str = "1.0.0"

    def to_config(self, base: Optional[FluidConfig] = None) -> FluidConfig:
        """Apply the preset parameters on top of a base configuration"""
        return (base or FluidConfig()).updated(**self.parameters)

DEFAULT_PRESETS = {
    "smoke": {
        "description": "Density only, reference diffusion and force settings",
        "parameters": {},
        "tags": ["density", "reference"]
    },
    "ink": {
        "description": "Sharp, slowly spreading ink drops",
        "parameters": {
            "diffusion": 0.0,
            "velocity_diffusion": 0.5,
            "source_distance": 20.0,
            "force_strength": 20.0
        },
        "tags": ["density", "low-diffusion"]
    },
    "campfire": {
        "description": "Fuel bed with pyrolysis and rising hot gas",
        "parameters": {
            "diffusion": 5.0,
            "velocity_diffusion": 1.0,
            "fuel_density": 2.0,
            "fuel_conversion_rate": 1.5,
            "min_pyrolysis_temp": 0.2,
            "max_pyrolysis_temp": 0.8,
            "buoyancy": 0.5,
            "vorticity": 2.0
        },
        "tags": ["fuel", "temperature", "buoyancy"]
    }
}

class PresetManager:
    def __init__(self, preset_dir: Optional[str] = None):
        """
        Args:
            preset_dir: Optional directory holding user presets as JSON files
        """
        self.preset_dir = preset_dir
        self.presets: Dict[str, SimulationPreset] = {
            name: SimulationPreset(name=name, **data)
            for name, data in DEFAULT_PRESETS.items()
        }
        if preset_dir and os.path.isdir(preset_dir):
            self._load_directory()

    def _load_directory(self):
        for file in sorted(os.listdir(self.preset_dir)):
            if file.endswith(".json"):
                preset = self.import_preset(os.path.join(self.preset_dir, file))
                logger.debug(f"Loaded preset {preset.name} from {file}")

    def get(self, name: str) -> SimulationPreset:
        """Look up a preset by name"""
        try:
            return self.presets[name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown preset: {name}", {"available": self.list_presets()}
            ) from None

    def list_presets(self) -> List[str]:
        """List all available preset names"""
        return sorted(self.presets)

    def create_preset(self,
                      name: str,
                      description: str,
                      parameters: Dict[str, Any],
                      tags: Optional[List[str]] = None,
                      author: str = "User") -> SimulationPreset:
        """Create and register a new preset, saving it when a preset directory is set"""
        # Reject parameters the configuration does not know about
        FluidConfig().updated(**parameters)
        preset = SimulationPreset(
            name=name,
            description=description,
            parameters=dict(parameters),
            tags=list(tags or []),
            created=datetime.now().isoformat(),
            author=author
        )
        self.presets[name] = preset
        if self.preset_dir:
            self.export_preset(preset, os.path.join(self.preset_dir, f"{name}.json"))
        return preset

    def export_preset(self, preset: SimulationPreset, export_path: str):
        """Export a preset to a specific location"""
        directory = os.path.dirname(export_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(export_path, 'w') as f:
            json.dump(asdict(preset), f, indent=4)

    def import_preset(self, import_path: str) -> SimulationPreset:
        """Import a preset from a file and register it"""
        with open(import_path, 'r') as f:
            data = json.load(f)
        try:
            preset = SimulationPreset(**data)
        except TypeError as e:
            raise ConfigurationError(f"Malformed preset file {import_path}: {e}") from e
        FluidConfig().updated(**preset.parameters)
        self.presets[preset.name] = preset
        return preset
