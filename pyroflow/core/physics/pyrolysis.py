import taichi as ti

from ..fields import FieldStore, FieldKind, Role

FS = FieldKind.FUEL_SOLID
FG = FieldKind.FUEL_GAS

@ti.data_oriented
class PyrolysisReaction:
    """Temperature-driven conversion of solid fuel into gaseous fuel.

    Cells at or above ``min_temp`` convert ``conversion_rate * FS * dt``
    of their solid fuel per tick. The rate is the same everywhere in the
    ``[min_temp, max_temp]`` window and saturates at that value above
    ``max_temp``. Each unit of solid consumed yields ``fuel_density``
    units of gas. Below ``min_temp`` both channels pass through unchanged.
    """

    @ti.func
    def activation(self, t, t_min):
        a = 0.0
        if t >= t_min:
            a = 1.0
        return a

    @ti.kernel
    def _react(self, temperature: ti.template(),
               fs_in: ti.template(), fg_in: ti.template(),
               fs_out: ti.template(), fg_out: ti.template(),
               dt: ti.f32, rate: ti.f32, fuel_density: ti.f32, t_min: ti.f32):
        for i, j in fs_out:
            solid = fs_in[i, j]
            a = self.activation(temperature[i, j], t_min)
            converted = ti.max(0.0, ti.min(solid, rate * a * solid * dt))
            fs_out[i, j] = solid - converted
            fg_out[i, j] = fg_in[i, j] + fuel_density * converted

    @ti.kernel
    def _composite(self, fs: ti.template(), fg: ti.template(), fsg: ti.template()):
        for i, j in fsg:
            fsg[i, j] = ti.Vector([fs[i, j], fg[i, j]])

    def react(self,
              store: FieldStore,
              dt: float,
              conversion_rate: float,
              fuel_density: float,
              min_temp: float,
              max_temp: float,
              solid_role: Role = Role.SCRATCH):
        """
        Run one pyrolysis pass

        Reads solid fuel from ``solid_role`` (where the injector left it),
        the current gas, and this tick's temperature; writes the next
        generation of both fuel channels.
        """
        (fs_out, fg_out), (temperature, fs_in, fg_in) = store.stage(
            [(FS, Role.NEXT), (FG, Role.NEXT)],
            [(FieldKind.TEMPERATURE, Role.NEXT), (FS, solid_role), (FG, Role.CURRENT)]
        )
        if max_temp < min_temp:
            raise ValueError(f"Pyrolysis window [{min_temp}, {max_temp}] is empty")
        self._react(temperature, fs_in, fg_in, fs_out, fg_out,
                    dt, conversion_rate, fuel_density, min_temp)

    def composite(self, store: FieldStore):
        """Pack (solid, gas) into the display-only composite buffer"""
        fsg, fs, fg = store.bind(
            (FieldKind.FUEL_COMPOSITE, Role.CURRENT), (FS, Role.NEXT), (FG, Role.NEXT)
        )
        self._composite(fs, fg, fsg)
