import logging
import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from ..grid import GridGeometry
from ..fields import FieldStore, FieldKind, Role
from ..numerics import SourceInjector, DiffusionSolver, Advector, Projector
from ..physics import PyrolysisReaction, BodyForces
from ...configs.settings import FluidConfig
from ...utils.error_handling import SolverError, InvariantViolation

logger = logging.getLogger(__name__)

class EditMode(Enum):
    DENSITY = "density"
    TEMPERATURE = "temperature"
    FUEL = "fuel"
    VELOCITY = "velocity"

class OutputField(Enum):
    DENSITY = "density"
    TEMPERATURE = "temperature"
    VELOCITY = "velocity"
    FUEL_COMPOSITE = "fuel_composite"

OUTPUT_SLOTS: Dict[OutputField, FieldKind] = {
    OutputField.DENSITY: FieldKind.DENSITY,
    OutputField.TEMPERATURE: FieldKind.TEMPERATURE,
    OutputField.VELOCITY: FieldKind.VELOCITY,
    OutputField.FUEL_COMPOSITE: FieldKind.FUEL_COMPOSITE,
}

# Changing any of these invalidates the allocated grid
GRID_FIELDS = ("resolution", "aspect_ratio", "initial_velocity")

@dataclass(frozen=True)
class PointerButtons:
    primary: bool = False
    secondary: bool = False

@dataclass(frozen=True)
class TickInputs:
    """Everything a tick reads from the outside world, sampled once"""
    dt: float
    origin: Tuple[float, float]
    mode: EditMode
    primary: bool
    secondary: bool
    force: Tuple[float, float]

    @property
    def has_pointer(self) -> bool:
        return self.primary or self.secondary

class Simulation:
    """Stable Fluids with temperature and two-phase fuel.

    Each call to :meth:`tick` runs the temperature, fuel, density and
    velocity updates in that order and then rotates the field store. The
    scalar updates trace along the velocity finalized by the previous tick;
    the new velocity is installed by the rotation.
    """

    def __init__(self, config: Optional[FluidConfig] = None):
        self.config = (config or FluidConfig()).check()
        self.store: Optional[FieldStore] = None
        self.tick_count = 0
        self._previous_pointer: Optional[Tuple[float, float]] = None
        self._halted: Optional[Exception] = None
        self._build()

    def _build(self):
        config = self.config
        self.geometry = GridGeometry.from_resolution(config.resolution, config.aspect_ratio)
        self.store = FieldStore(self.geometry, config.initial_velocity)
        self._build_stages()
        logger.info(
            f"Allocated {self.geometry.nx}x{self.geometry.ny} grid "
            f"(resolution {config.resolution}, aspect {config.aspect_ratio})"
        )

    def _build_stages(self):
        config = self.config
        self.injector = SourceInjector(self.geometry, config.falloff)
        self.diffusion = DiffusionSolver(config.resolution, config.diffusion_iterations)
        self.advector = Advector(self.geometry)
        self.projector = Projector(self.geometry, config.projection_iterations)
        self.reaction = PyrolysisReaction()
        self.forces = BodyForces()

    def configure(self, config: Optional[FluidConfig] = None, **overrides) -> FluidConfig:
        """
        Apply a new configuration

        Invalid values raise ConfigurationError and leave the running
        configuration untouched. Grid changes reallocate every field.

        Args:
            config: Complete replacement configuration
            overrides: Individual fields to change

        Returns:
            The configuration now in effect
        """
        base = config.check() if config is not None else self.config
        new_config = base.updated(**overrides) if overrides else base
        grid_changed = any(
            getattr(new_config, name) != getattr(self.config, name) for name in GRID_FIELDS
        )

        self.config = new_config
        if grid_changed or self.store is None or self.store.released:
            if self.store is not None:
                self.store.release()
            self._build()
            self.tick_count = 0
            self._previous_pointer = None
            self._halted = None
        else:
            self._build_stages()
        logger.debug(f"Configuration updated: {new_config}")
        return new_config

    def set_initial_density(self, image: np.ndarray):
        """
        Seed the current density from an external image

        Args:
            image: 2D array, or an RGB(A) image whose luminance is used.
                Row 0 is the top of the image. Integer images are scaled
                to [0, 1]. The image is resampled to the grid.
        """
        data = np.asarray(image)
        if np.issubdtype(data.dtype, np.integer):
            data = data.astype(np.float32) / np.iinfo(data.dtype).max
        data = data.astype(np.float32)

        if data.ndim == 3:
            if data.shape[2] < 3:
                data = data[..., 0]
            else:
                data = data[..., :3] @ np.array([0.2126, 0.7152, 0.0722], dtype=np.float32)
        if data.ndim != 2:
            raise ValueError(f"Expected a 2D or RGB(A) image, got shape {np.shape(image)}")

        rows, cols = data.shape
        nx, ny = self.geometry.shape
        row_index = ((np.arange(ny) + 0.5) * rows / ny).astype(int)
        col_index = ((np.arange(nx) + 0.5) * cols / nx).astype(int)
        resampled = data[row_index][:, col_index]

        # Image rows run top to bottom, grid j runs bottom to top
        self.store.load(FieldKind.DENSITY, Role.CURRENT, np.flipud(resampled).T)
        logger.info(f"Initial density seeded from {rows}x{cols} image")

    def sample_inputs(self,
                      dt: float,
                      pointer: Optional[Tuple[float, float]],
                      buttons: PointerButtons,
                      mode: EditMode) -> TickInputs:
        """Freeze the external inputs of one tick"""
        if pointer is None:
            self._previous_pointer = None
            return TickInputs(dt, (0.0, 0.0), mode, False, False, (0.0, 0.0))

        origin = (float(pointer[0]), float(pointer[1]))
        if self._previous_pointer is None:
            force = (0.0, 0.0)
        else:
            force = (
                (origin[0] - self._previous_pointer[0]) * self.config.force_strength,
                (origin[1] - self._previous_pointer[1]) * self.config.force_strength,
            )
        self._previous_pointer = origin
        return TickInputs(dt, origin, mode, buttons.primary, buttons.secondary, force)

    def tick(self,
             dt: float,
             pointer: Optional[Tuple[float, float]] = None,
             buttons: Optional[PointerButtons] = None,
             mode: EditMode = EditMode.DENSITY):
        """
        Advance the simulation by exactly one step

        Args:
            dt: Time step in seconds
            pointer: Pointer position in normalized [-0.5, 0.5] space, or None
            buttons: Pressed pointer buttons
            mode: Which channel the primary button edits
        """
        if self._halted is not None:
            raise SolverError(
                "Simulation halted by an earlier pipeline failure",
                {"cause": repr(self._halted)}
            )
        inputs = self.sample_inputs(dt, pointer, buttons or PointerButtons(), EditMode(mode))

        try:
            self._update_temperature(inputs)
            self._update_fuel(inputs)
            self._update_density(inputs)
            self._update_velocity(inputs)
            self.store.rotate()
        except InvariantViolation as e:
            self._halted = e
            logger.error(f"Pipeline invariant violated at tick {self.tick_count}: {e}")
            raise

        self.tick_count += 1

    def _strength(self, inputs: TickInputs, mode: EditMode, strength: float) -> float:
        return strength if inputs.mode is mode and inputs.primary else 0.0

    def _heat(self, inputs: TickInputs) -> float:
        """Temperature source: the temperature brush, or combustion heat under the fuel brush"""
        if inputs.mode is EditMode.FUEL:
            return self._strength(inputs, EditMode.FUEL, self.config.combustion_heat)
        return self._strength(inputs, EditMode.TEMPERATURE, self.config.temperature_strength)

    def _update_temperature(self, inputs: TickInputs):
        T = FieldKind.TEMPERATURE
        out, src = self.store.bind((T, Role.NEXT), (T, Role.CURRENT))
        self.injector.inject(
            src, out, inputs.origin, self.config.source_distance, self._heat(inputs)
        )
        self.diffusion.diffuse(self.store, T, inputs.dt, self.config.diffusion)
        self.advector.advect(self.store, T, inputs.dt)

    def _update_fuel(self, inputs: TickInputs):
        config = self.config
        FS = FieldKind.FUEL_SOLID
        out, src = self.store.bind((FS, Role.SCRATCH), (FS, Role.CURRENT))
        self.injector.inject(
            src, out, inputs.origin, config.source_distance,
            self._strength(inputs, EditMode.FUEL, config.source_strength)
        )
        self.reaction.react(
            self.store, inputs.dt, config.fuel_conversion_rate, config.fuel_density,
            config.min_pyrolysis_temp, config.max_pyrolysis_temp
        )
        self.diffusion.diffuse(self.store, FieldKind.FUEL_GAS, inputs.dt, config.diffusion)
        self.advector.advect(self.store, FieldKind.FUEL_GAS, inputs.dt)
        self.reaction.composite(self.store)

    def _update_density(self, inputs: TickInputs):
        D = FieldKind.DENSITY
        out, src = self.store.bind((D, Role.NEXT), (D, Role.CURRENT))
        self.injector.inject(
            src, out, inputs.origin, self.config.source_distance,
            self._strength(inputs, EditMode.DENSITY, self.config.source_strength)
        )
        self.diffusion.diffuse(self.store, D, inputs.dt, self.config.diffusion)
        self.advector.advect(self.store, D, inputs.dt)

    def _update_velocity(self, inputs: TickInputs):
        config = self.config
        V = FieldKind.VELOCITY
        pushing = inputs.secondary or (inputs.mode is EditMode.VELOCITY and inputs.primary)
        force = inputs.force if pushing else (0.0, 0.0)

        out, src = self.store.bind((V, Role.SOURCE), (V, Role.CURRENT))
        self.injector.inject(src, out, inputs.origin, config.force_distance, force)
        self.forces.apply(
            self.store, inputs.dt, config.buoyancy, config.ambient_temperature, config.vorticity
        )
        self.diffusion.diffuse(self.store, V, inputs.dt, config.velocity_diffusion)

        self.projector.project(self.store, *self.projector.pre_advection_scales)
        self.advector.advect(self.store, V, inputs.dt,
                             velocity_role=Role.SOURCE, source_role=Role.SOURCE)
        self.projector.project(self.store, *self.projector.post_advection_scales)
        self.store.copy(V, Role.SOURCE, Role.NEXT)

    def get_field(self, which: OutputField):
        """Read-only handle to a finalized field, valid until the next tick"""
        return self.store.read(OUTPUT_SLOTS[OutputField(which)], Role.CURRENT)

    def snapshot(self, which: OutputField) -> np.ndarray:
        """Host copy of a finalized field, indexed [x, y(, channel)]"""
        return self.get_field(which).to_numpy()

    def close(self):
        """Release every field generation"""
        if self.store is not None and not self.store.released:
            self.store.release()
            logger.info("Simulation fields released")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
