from typing import Optional, List
import logging
import numpy as np
from dataclasses import dataclass
import matplotlib
import matplotlib.pyplot as plt

from ..core.eulerian.solver import Simulation, OutputField

logger = logging.getLogger(__name__)

@dataclass
class VisualizationConfig:
    """Presentation configuration"""
    colormap: str = "inferno"
    vmin: Optional[float] = 0.0
    vmax: Optional[float] = 1.0

    def __post_init__(self):
        if self.colormap not in matplotlib.colormaps:
            raise ValueError(f"Unknown colormap: {self.colormap}")
        if self.vmin is not None and self.vmax is not None and self.vmax <= self.vmin:
            raise ValueError("vmax must be greater than vmin")

class Presenter:
    """Double-buffered RGBA presentation of simulation fields.

    Each :meth:`render` writes into the back buffer and then flips it to
    the front, so a consumer holding the front buffer never sees a
    partially written frame. Images are ``[row, column, 4]`` with row 0 at
    the top of the domain.
    """

    def __init__(self, config: Optional[VisualizationConfig] = None):
        self.config = config or VisualizationConfig()
        self.colormap = matplotlib.colormaps[self.config.colormap]
        self.buffers: List[Optional[np.ndarray]] = [None, None]
        self.front = 0

    @property
    def front_buffer(self) -> Optional[np.ndarray]:
        return self.buffers[self.front]

    def _normalize(self, scalar: np.ndarray) -> np.ndarray:
        vmin = self.config.vmin if self.config.vmin is not None else float(scalar.min())
        vmax = self.config.vmax if self.config.vmax is not None else float(scalar.max())
        span = vmax - vmin if vmax > vmin else 1.0
        return np.clip((scalar - vmin) / span, 0.0, 1.0)

    def to_rgba(self, data: np.ndarray, which: OutputField) -> np.ndarray:
        """Map an [x, y(, c)] field snapshot to an image"""
        which = OutputField(which)
        if which is OutputField.FUEL_COMPOSITE:
            # Solid fuel in red, gas in green
            image = np.zeros(data.shape[:2] + (4,), dtype=np.float32)
            image[..., 0] = self._normalize(data[..., 0])
            image[..., 1] = self._normalize(data[..., 1])
            image[..., 3] = 1.0
        else:
            scalar = np.linalg.norm(data, axis=2) if which is OutputField.VELOCITY else data
            image = self.colormap(self._normalize(scalar)).astype(np.float32)
        return np.ascontiguousarray(np.flipud(image.transpose(1, 0, 2)))

    def render(self, simulation: Simulation, which: OutputField = OutputField.DENSITY) -> np.ndarray:
        """Render a field into the back buffer and flip; returns the new front buffer"""
        image = self.to_rgba(simulation.snapshot(which), which)
        back = 1 - self.front
        self.buffers[back] = image
        self.front = back
        return image

    def save(self, filename: str):
        """Write the front buffer as an image file"""
        if self.front_buffer is None:
            raise RuntimeError("Nothing has been rendered yet")
        plt.imsave(filename, np.clip(self.front_buffer, 0.0, 1.0))
        logger.info(f"Saved frame to {filename}")
