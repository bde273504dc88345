import taichi as ti
from typing import Tuple

from ..grid import GridGeometry
from ..fields import FieldStore, FieldKind, Role

V = FieldKind.VELOCITY

@ti.data_oriented
class Projector:
    """Helmholtz projection of the velocity field.

    The working potential ``H`` is a two-channel field stored in the
    velocity generations: ``H.x`` holds the divergence right-hand side and
    ``H.y`` the pressure potential being relaxed.

    Buffer use per pass: setup next -> scratch, relaxation ping-pongs
    scratch <-> current, finish reads next and scratch and writes source.
    """

    def __init__(self, geometry: GridGeometry, iterations: int = 10):
        self.geometry = geometry
        self.iterations = iterations

    @property
    def pre_advection_scales(self) -> Tuple[float, float]:
        """(setup h, finish h) for the pass before advection"""
        # Finish scales the gradient by h * h = 1 / ny**2, so this pass only nudges the field
        h = 1.0 / self.geometry.ny
        return (h, h)

    @property
    def post_advection_scales(self) -> Tuple[float, float]:
        """(setup h, finish h) for the pass after advection; finish uses the inverted height"""
        return (1.0 / self.geometry.ny, float(self.geometry.ny))

    @ti.kernel
    def _setup(self, v: ti.template(), h_out: ti.template(), h: ti.f32):
        nx = ti.static(v.shape[0])
        ny = ti.static(v.shape[1])
        for i, j in h_out:
            div = (v[ti.min(i + 1, nx - 1), j].x - v[ti.max(i - 1, 0), j].x +
                   v[i, ti.min(j + 1, ny - 1)].y - v[i, ti.max(j - 1, 0)].y)
            h_out[i, j] = ti.Vector([-0.5 * h * div, 0.0])

    @ti.kernel
    def _relax(self, h_in: ti.template(), h_out: ti.template()):
        nx = ti.static(h_in.shape[0])
        ny = ti.static(h_in.shape[1])
        for i, j in h_out:
            rhs = h_in[i, j].x
            neighbors = (h_in[ti.max(i - 1, 0), j].y + h_in[ti.min(i + 1, nx - 1), j].y +
                         h_in[i, ti.max(j - 1, 0)].y + h_in[i, ti.min(j + 1, ny - 1)].y)
            h_out[i, j] = ti.Vector([rhs, (rhs + neighbors) * 0.25])

    @ti.kernel
    def _finish(self, v_in: ti.template(), h_in: ti.template(), v_out: ti.template(), h: ti.f32):
        nx = ti.static(h_in.shape[0])
        ny = ti.static(h_in.shape[1])
        for i, j in v_out:
            grad = ti.Vector([
                h_in[ti.min(i + 1, nx - 1), j].y - h_in[ti.max(i - 1, 0), j].y,
                h_in[i, ti.min(j + 1, ny - 1)].y - h_in[i, ti.max(j - 1, 0)].y
            ])
            v_out[i, j] = v_in[i, j] - 0.5 * h * grad

    def project(self, store: FieldStore, setup_scale: float, finish_scale: float):
        """
        Remove the divergent part of the next velocity generation

        Args:
            store: Field store
            setup_scale: ``h`` used when building the divergence
            finish_scale: ``h`` used when subtracting the potential gradient

        The corrected velocity is left in the source generation.
        """
        h_out, velocity = store.bind((V, Role.SCRATCH), (V, Role.NEXT))
        self._setup(velocity, h_out, setup_scale)

        for _ in range(self.iterations):
            h_out, h_in = store.bind((V, Role.CURRENT), (V, Role.SCRATCH))
            self._relax(h_in, h_out)
            h_out, h_in = store.bind((V, Role.SCRATCH), (V, Role.CURRENT))
            self._relax(h_in, h_out)

        v_out, velocity, potential = store.bind((V, Role.SOURCE), (V, Role.NEXT), (V, Role.SCRATCH))
        self._finish(velocity, potential, v_out, finish_scale)
