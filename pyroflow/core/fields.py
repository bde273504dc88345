import taichi as ti
import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Sequence, Tuple

from .grid import GridGeometry
from ..utils.error_handling import InvariantViolation, BufferAliasError

class FieldKind(Enum):
    DENSITY = "density"
    VELOCITY = "velocity"
    TEMPERATURE = "temperature"
    FUEL_SOLID = "fuel_solid"
    FUEL_GAS = "fuel_gas"
    FUEL_COMPOSITE = "fuel_composite"

class Role(Enum):
    SOURCE = "source"
    CURRENT = "current"
    NEXT = "next"
    SCRATCH = "scratch"

class RotationPolicy(Enum):
    SWAP = "swap"  # O(1), current and next exchange generations
    COPY = "copy"  # O(N), next is copied into current
    NONE = "none"

@dataclass(frozen=True)
class FieldLayout:
    label: str
    channels: int
    generations: Dict[Role, int]
    rotation: RotationPolicy

_FOUR = {Role.SOURCE: 0, Role.CURRENT: 1, Role.NEXT: 2, Role.SCRATCH: 3}
_THREE = {Role.CURRENT: 1, Role.NEXT: 2, Role.SCRATCH: 3}

FIELD_LAYOUTS: Dict[FieldKind, FieldLayout] = {
    FieldKind.DENSITY: FieldLayout("D", 1, _FOUR, RotationPolicy.SWAP),
    # Projection needs a third scratch slot, so velocity is copied rather than swapped
    FieldKind.VELOCITY: FieldLayout("V", 2, _FOUR, RotationPolicy.COPY),
    FieldKind.TEMPERATURE: FieldLayout("T", 1, _THREE, RotationPolicy.SWAP),
    FieldKind.FUEL_SOLID: FieldLayout("FS", 1, _THREE, RotationPolicy.SWAP),
    FieldKind.FUEL_GAS: FieldLayout("FG", 1, _THREE, RotationPolicy.SWAP),
    FieldKind.FUEL_COMPOSITE: FieldLayout("FSG", 2, {Role.CURRENT: 0}, RotationPolicy.NONE),
}

Slot = Tuple[FieldKind, Role]

@ti.data_oriented
class FieldStore:
    """Owns every generation of every field on one grid.

    Stages never hold buffers across calls; they ask :meth:`bind` for an
    output generation and its inputs each time, which is where the
    single-writer and read-after-write rules are enforced.
    """

    def __init__(self, geometry: GridGeometry, initial_velocity: Tuple[float, float] = (0.0, 0.0)):
        self.geometry = geometry
        self._roles: Dict[FieldKind, Dict[Role, int]] = {
            kind: dict(layout.generations) for kind, layout in FIELD_LAYOUTS.items()
        }
        self._buffers = {}
        self._written = set()
        self._released = False

        builder = ti.FieldsBuilder()
        for kind, layout in FIELD_LAYOUTS.items():
            for generation in sorted(set(layout.generations.values())):
                self._buffers[(kind, generation)] = self._allocate(builder, layout.channels)
        self._tree = builder.finalize()

        for buffer in self._buffers.values():
            buffer.fill(0)

        # Zero is a valid starting state for every scalar; velocity must be seeded
        for kind in FIELD_LAYOUTS:
            if kind not in (FieldKind.VELOCITY, FieldKind.FUEL_COMPOSITE):
                self._written.add((kind, self._roles[kind][Role.CURRENT]))
        self._seed_velocity(initial_velocity)

    def _allocate(self, builder: ti.FieldsBuilder, channels: int):
        if channels == 1:
            buffer = ti.field(dtype=ti.f32)
        else:
            buffer = ti.Vector.field(channels, dtype=ti.f32)
        builder.dense(ti.ij, self.geometry.shape).place(buffer)
        return buffer

    @ti.kernel
    def _create_velocity_field(self, v: ti.template(), vx: ti.f32, vy: ti.f32):
        for i, j in v:
            v[i, j] = ti.Vector([vx, vy])

    @ti.kernel
    def _copy(self, src: ti.template(), dst: ti.template()):
        for i, j in dst:
            dst[i, j] = src[i, j]

    def _seed_velocity(self, initial_velocity: Tuple[float, float]):
        vx, vy = initial_velocity
        for generation in sorted(set(self._roles[FieldKind.VELOCITY].values())):
            key = (FieldKind.VELOCITY, generation)
            self._create_velocity_field(self._buffers[key], float(vx), float(vy))
            self._written.add(key)

    def _ensure_live(self):
        if self._released:
            raise InvariantViolation("Field store used after release")

    def _key(self, kind: FieldKind, role: Role) -> Tuple[FieldKind, int]:
        try:
            return (kind, self._roles[kind][role])
        except KeyError:
            raise InvariantViolation(f"{kind.value} has no {role.value} generation") from None

    def _name(self, key: Tuple[FieldKind, int]) -> str:
        kind, generation = key
        label = FIELD_LAYOUTS[kind].label
        return label if len(FIELD_LAYOUTS[kind].generations) == 1 else f"{label}{generation}"

    def has_role(self, kind: FieldKind, role: Role) -> bool:
        return role in self._roles[kind]

    def generation(self, kind: FieldKind, role: Role) -> int:
        return self._key(kind, role)[1]

    def label(self, kind: FieldKind, role: Role) -> str:
        """Generation name such as ``D2`` for the buffer currently playing ``role``"""
        return self._name(self._key(kind, role))

    def rotation_policy(self, kind: FieldKind) -> RotationPolicy:
        return FIELD_LAYOUTS[kind].rotation

    def is_written(self, kind: FieldKind, role: Role) -> bool:
        return self._key(kind, role) in self._written

    def read(self, kind: FieldKind, role: Role):
        """Buffer for reading; fails if the generation has never been written"""
        self._ensure_live()
        key = self._key(kind, role)
        if key not in self._written:
            raise InvariantViolation(
                f"{self._name(key)} ({kind.value} {role.value}) read before its first write"
            )
        return self._buffers[key]

    def write(self, kind: FieldKind, role: Role):
        """Buffer for a full-grid write; the generation counts as written from now on"""
        self._ensure_live()
        key = self._key(kind, role)
        self._written.add(key)
        return self._buffers[key]

    def current(self, kind: FieldKind):
        return self.read(kind, Role.CURRENT)

    def next(self, kind: FieldKind):
        return self.read(kind, Role.NEXT)

    def scratch(self, kind: FieldKind):
        return self.read(kind, Role.SCRATCH)

    def source(self, kind: FieldKind):
        return self.read(kind, Role.SOURCE)

    def bind(self, out: Slot, *inputs: Slot) -> tuple:
        """
        Resolve the buffers of one stage

        Args:
            out: (kind, role) written by the stage
            inputs: (kind, role) pairs read by the stage

        Returns:
            Tuple of the output buffer followed by the input buffers
        """
        outputs, in_buffers = self.stage([out], inputs)
        return (outputs[0], *in_buffers)

    def stage(self, outputs: Sequence[Slot], inputs: Sequence[Slot]) -> Tuple[list, list]:
        """Like :meth:`bind` for stages with several outputs"""
        self._ensure_live()
        out_keys = [self._key(*slot) for slot in outputs]
        in_keys = [self._key(*slot) for slot in inputs]
        if len(set(out_keys)) != len(out_keys):
            raise BufferAliasError("Stage writes the same generation twice", {"outputs": outputs})
        for key in out_keys:
            if key in in_keys:
                raise BufferAliasError(
                    f"{self._name(key)} bound as both input and output",
                    {"outputs": outputs, "inputs": inputs}
                )
        in_buffers = [self.read(*slot) for slot in inputs]
        return [self.write(*slot) for slot in outputs], in_buffers

    def copy(self, kind: FieldKind, src: Role, dst: Role):
        """Full-grid copy between two generations of one field"""
        dst_buffer, src_buffer = self.bind((kind, dst), (kind, src))
        self._copy(src_buffer, dst_buffer)

    def load(self, kind: FieldKind, role: Role, array: np.ndarray):
        """Upload a host array shaped like the grid (plus channels for vector fields)"""
        buffer = self.write(kind, role)
        buffer.from_numpy(np.ascontiguousarray(array, dtype=np.float32))

    def snapshot(self, kind: FieldKind, role: Role = Role.CURRENT) -> np.ndarray:
        return self.read(kind, role).to_numpy()

    def rotate(self):
        """End-of-tick rotation: next becomes current for every field"""
        self._ensure_live()
        for kind, layout in FIELD_LAYOUTS.items():
            if layout.rotation is RotationPolicy.SWAP:
                roles = self._roles[kind]
                roles[Role.CURRENT], roles[Role.NEXT] = roles[Role.NEXT], roles[Role.CURRENT]
            elif layout.rotation is RotationPolicy.COPY:
                self.copy(kind, Role.NEXT, Role.CURRENT)

    @property
    def released(self) -> bool:
        return self._released

    def release(self):
        """Free every generation; the store is unusable afterwards"""
        if self._released:
            return
        self._tree.destroy()
        self._buffers.clear()
        self._written.clear()
        self._released = True
