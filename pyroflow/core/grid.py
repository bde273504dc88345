from dataclasses import dataclass
from typing import Tuple

from ..utils.error_handling import ConfigurationError

TILE_SIZE = 8

@dataclass(frozen=True)
class GridGeometry:
    """Tile-aligned simulation grid.

    ``resolution`` is the configured resolution constant; ``nx``/``ny`` are the
    actual cell counts, each rounded up to a multiple of the tile size.
    """
    resolution: int
    nx: int
    ny: int
    tile: int = TILE_SIZE

    @classmethod
    def from_resolution(cls,
                        resolution: int,
                        aspect_ratio: Tuple[float, float] = (1, 1),
                        tile: int = TILE_SIZE) -> "GridGeometry":
        """
        Derive grid dimensions from a resolution and an output aspect ratio

        Args:
            resolution: Cells along x before tile alignment
            aspect_ratio: Output (width, height)
            tile: Kernel tile size

        Returns:
            Grid geometry
        """
        width, height = aspect_ratio
        if resolution < tile:
            raise ConfigurationError(
                f"Resolution {resolution} is below the tile size {tile}"
            )
        if width <= 0 or height <= 0:
            raise ConfigurationError(f"Invalid aspect ratio: {aspect_ratio}")

        groups_x = (resolution + tile - 1) // tile
        # Height is floored to whole cells before rounding up to tiles
        groups_y = (int(resolution * height / width) + tile - 1) // tile
        return cls(resolution=resolution, nx=groups_x * tile, ny=max(groups_y, 1) * tile, tile=tile)

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.nx, self.ny)

    @property
    def dx(self) -> float:
        """Cell size, measured in domain heights"""
        return 1.0 / self.ny

    @property
    def thread_groups(self) -> Tuple[int, int]:
        return (self.nx // self.tile, self.ny // self.tile)

    @property
    def cell_count(self) -> int:
        return self.nx * self.ny
