import taichi as ti
import numpy as np
from typing import Sequence, Tuple, Union

from ..grid import GridGeometry
from ...configs.settings import FALLOFF_KINDS
from ...utils.error_handling import ConfigurationError

@ti.data_oriented
class SourceInjector:
    """Stamps a radial source or force into a field.

    Origins are given in normalized ``[-0.5, 0.5]`` coordinates on both axes
    (x relative to the output width, y to the height). Distances are
    measured in domain heights, so a source stays round on non-square grids.
    """

    def __init__(self, geometry: GridGeometry, falloff: str = "exponential"):
        if falloff not in FALLOFF_KINDS:
            raise ConfigurationError(f"Unknown falloff: {falloff}")
        self.geometry = geometry
        self.falloff = falloff
        self.gaussian = falloff == "gaussian"

    @ti.func
    def _amplitude(self, i, j, ox, oy, distance):
        nx = ti.static(self.geometry.nx)
        ny = ti.static(self.geometry.ny)
        px = (i + 0.5 - nx * 0.5) / ny
        py = (j + 0.5 - ny * 0.5) / ny
        d = ti.sqrt((px - ox) * (px - ox) + (py - oy) * (py - oy))
        amp = 0.0
        if ti.static(self.gaussian):
            amp = ti.exp(-(distance * d) * (distance * d))
        else:
            amp = ti.exp(-distance * d)
        return amp

    @ti.kernel
    def _inject_scalar(self, f_in: ti.template(), f_out: ti.template(),
                       ox: ti.f32, oy: ti.f32, distance: ti.f32, strength: ti.f32):
        for i, j in f_out:
            f_out[i, j] = f_in[i, j] + self._amplitude(i, j, ox, oy, distance) * strength

    @ti.kernel
    def _inject_vector(self, f_in: ti.template(), f_out: ti.template(),
                       ox: ti.f32, oy: ti.f32, distance: ti.f32, sx: ti.f32, sy: ti.f32):
        for i, j in f_out:
            amp = self._amplitude(i, j, ox, oy, distance)
            f_out[i, j] = f_in[i, j] + amp * ti.Vector([sx, sy])

    def grid_origin(self, origin: Tuple[float, float]) -> Tuple[float, float]:
        """Convert a normalized origin into height-relative grid coordinates"""
        x, y = origin
        return (float(x) * self.geometry.nx / self.geometry.ny, float(y))

    def inject(self,
               field_in,
               field_out,
               origin: Tuple[float, float],
               distance: float,
               strength: Union[float, Sequence[float]]):
        """
        Write ``field_in + falloff * strength`` into ``field_out``

        A zero strength is an exact copy, so every channel is rewritten each
        tick whether or not a source is active.

        Args:
            field_in: Field read
            field_out: Field written, every cell
            origin: Source position in normalized [-0.5, 0.5] space
            distance: Falloff coefficient; larger values give tighter sources
            strength: Scalar for scalar fields, 2-vector for velocity
        """
        ox, oy = self.grid_origin(origin)
        if np.ndim(strength) == 0:
            self._inject_scalar(field_in, field_out, ox, oy, float(distance), float(strength))
        else:
            sx, sy = strength
            self._inject_vector(field_in, field_out, ox, oy, float(distance), float(sx), float(sy))
