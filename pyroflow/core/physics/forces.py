import taichi as ti

from ..fields import FieldStore, FieldKind, Role

V = FieldKind.VELOCITY

@ti.data_oriented
class BodyForces:
    """Thermal buoyancy and vorticity confinement.

    ``v_out = v_in + dt * (buoyancy * (T - ambient) * y_hat + vorticity * f_conf)``.
    With both coefficients at zero the stage is an exact copy.
    """

    @ti.func
    def curl(self, v: ti.template(), i, j):
        nx = ti.static(v.shape[0])
        ny = ti.static(v.shape[1])
        dvy_dx = v[ti.min(i + 1, nx - 1), j].y - v[ti.max(i - 1, 0), j].y
        dvx_dy = v[i, ti.min(j + 1, ny - 1)].x - v[i, ti.max(j - 1, 0)].x
        return 0.5 * (dvy_dx - dvx_dy)

    @ti.func
    def confinement(self, v: ti.template(), i, j):
        nx = ti.static(v.shape[0])
        ny = ti.static(v.shape[1])
        grad = 0.5 * ti.Vector([
            ti.abs(self.curl(v, ti.min(i + 1, nx - 1), j)) - ti.abs(self.curl(v, ti.max(i - 1, 0), j)),
            ti.abs(self.curl(v, i, ti.min(j + 1, ny - 1))) - ti.abs(self.curl(v, i, ti.max(j - 1, 0)))
        ])
        n = grad / (grad.norm() + 1e-5)
        c = self.curl(v, i, j)
        return ti.Vector([n.y * c, -n.x * c])

    @ti.kernel
    def _apply(self, v_in: ti.template(), temperature: ti.template(), v_out: ti.template(),
               dt: ti.f32, buoyancy: ti.f32, ambient: ti.f32, vorticity: ti.f32):
        for i, j in v_out:
            force = ti.Vector([0.0, 0.0])
            if buoyancy != 0.0:
                force[1] += buoyancy * (temperature[i, j] - ambient)
            if vorticity != 0.0:
                force += vorticity * self.confinement(v_in, i, j)
            v_out[i, j] = v_in[i, j] + dt * force

    def apply(self,
              store: FieldStore,
              dt: float,
              buoyancy: float,
              ambient_temperature: float,
              vorticity: float,
              velocity_role: Role = Role.SOURCE):
        """Read velocity from ``velocity_role`` and this tick's temperature; write next velocity"""
        v_out, v_in, temperature = store.bind(
            (V, Role.NEXT), (V, velocity_role), (FieldKind.TEMPERATURE, Role.NEXT)
        )
        self._apply(v_in, temperature, v_out, dt, buoyancy, ambient_temperature, vorticity)
