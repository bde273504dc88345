import taichi as ti
from typing import Optional

from ..grid import GridGeometry
from ..fields import FieldStore, FieldKind, Role

@ti.data_oriented
class Advector:
    """Semi-Lagrangian transport along the velocity field.

    Velocities are expressed in domain heights per second, so one tick
    moves a value ``dt * ny * v`` cells.
    """

    def __init__(self, geometry: GridGeometry):
        self.geometry = geometry

    @ti.func
    def sample(self, f: ti.template(), x, y):
        """Bilinear sample at cell-index coordinates, clamped to the edge cells"""
        nx = ti.static(f.shape[0])
        ny = ti.static(f.shape[1])
        sx = ti.min(ti.max(x, 0.0), nx - 1.0)
        sy = ti.min(ti.max(y, 0.0), ny - 1.0)
        i0 = ti.cast(ti.floor(sx), ti.i32)
        j0 = ti.cast(ti.floor(sy), ti.i32)
        i1 = ti.min(i0 + 1, nx - 1)
        j1 = ti.min(j0 + 1, ny - 1)
        fx = sx - i0
        fy = sy - j0
        return ((f[i0, j0] * (1 - fx) + f[i1, j0] * fx) * (1 - fy) +
                (f[i0, j1] * (1 - fx) + f[i1, j1] * fx) * fy)

    @ti.kernel
    def _advect(self, v: ti.template(), f_in: ti.template(), f_out: ti.template(), dt: ti.f32):
        scale = ti.static(float(self.geometry.ny))
        for i, j in f_out:
            back = ti.Vector([i + 0.5, j + 0.5]) - v[i, j] * dt * scale
            f_out[i, j] = self.sample(f_in, back.x - 0.5, back.y - 0.5)

    def advect(self,
               store: FieldStore,
               kind: FieldKind,
               dt: float,
               velocity_role: Role = Role.CURRENT,
               source_role: Optional[Role] = None):
        """
        Advect a field into its next generation

        Args:
            store: Field store
            kind: Field to transport
            dt: Time step
            velocity_role: Velocity generation to trace along
            source_role: Generation holding the values to transport; when
                omitted the next generation is first staged into the source
                slot (scratch for fields without one)
        """
        if source_role is None:
            source_role = Role.SOURCE if store.has_role(kind, Role.SOURCE) else Role.SCRATCH
            store.copy(kind, Role.NEXT, source_role)

        out, velocity, values = store.bind(
            (kind, Role.NEXT), (FieldKind.VELOCITY, velocity_role), (kind, source_role)
        )
        self._advect(velocity, values, out, dt)
