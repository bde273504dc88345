import taichi as ti
from typing import Tuple

from ..fields import FieldStore, FieldKind, Role

@ti.data_oriented
class DiffusionSolver:
    """Implicit diffusion by fixed-count Jacobi relaxation.

    Solves ``x - alpha * (sum of 4 neighbors of x) = x0`` per cell with
    ``alpha = dt * rate * R * R`` where ``R`` is the configured resolution.
    Each iteration is a pair of full-grid sweeps, next -> scratch and
    scratch -> next, so the result always lands in the next generation.
    Edge cells reuse their own value for missing neighbors (clamped).
    """

    def __init__(self, resolution: int, iterations: int = 10):
        self.resolution = resolution
        self.iterations = iterations

    def coefficients(self, dt: float, rate: float) -> Tuple[float, float]:
        alpha = dt * rate * self.resolution * self.resolution
        beta = 1.0 / (1.0 + 4.0 * alpha)
        return alpha, beta

    @ti.kernel
    def _relax(self, x0: ti.template(), gs: ti.template(), out: ti.template(),
               alpha: ti.f32, beta: ti.f32):
        nx = ti.static(out.shape[0])
        ny = ti.static(out.shape[1])
        for i, j in out:
            neighbors = (gs[ti.max(i - 1, 0), j] + gs[ti.min(i + 1, nx - 1), j] +
                         gs[i, ti.max(j - 1, 0)] + gs[i, ti.min(j + 1, ny - 1)])
            out[i, j] = (x0[i, j] + alpha * neighbors) * beta

    def diffuse(self, store: FieldStore, kind: FieldKind, dt: float, rate: float):
        """
        Diffuse the next generation of a field in place

        The current generation is consumed as the right-hand side ``x0``; by
        this point in the tick its pre-tick value has already been read.
        """
        alpha, beta = self.coefficients(dt, rate)
        store.copy(kind, Role.NEXT, Role.CURRENT)

        for _ in range(self.iterations):
            out, x0, gs = store.bind((kind, Role.SCRATCH), (kind, Role.CURRENT), (kind, Role.NEXT))
            self._relax(x0, gs, out, alpha, beta)
            out, x0, gs = store.bind((kind, Role.NEXT), (kind, Role.CURRENT), (kind, Role.SCRATCH))
            self._relax(x0, gs, out, alpha, beta)
