import pytest

from pyroflow.core.grid import GridGeometry, TILE_SIZE
from pyroflow.utils.error_handling import ConfigurationError

def test_square_grid():
    geometry = GridGeometry.from_resolution(512)
    assert geometry.shape == (512, 512)
    assert geometry.thread_groups == (64, 64)
    assert geometry.cell_count == 512 * 512
    assert geometry.dx == pytest.approx(1.0 / 512)

def test_dimensions_round_up_to_tiles():
    geometry = GridGeometry.from_resolution(10)
    assert geometry.shape == (16, 16)
    assert geometry.nx % TILE_SIZE == 0
    assert geometry.ny % TILE_SIZE == 0

def test_wide_aspect_ratio():
    geometry = GridGeometry.from_resolution(100, (16, 9))
    # 100 -> 104 columns; int(100 * 9 / 16) = 56 rows
    assert geometry.shape == (104, 56)
    assert geometry.dx == pytest.approx(1.0 / 56)

def test_tall_aspect_ratio():
    geometry = GridGeometry.from_resolution(64, (1, 2))
    assert geometry.shape == (64, 128)

@pytest.mark.parametrize("resolution,aspect", [
    (4, (1, 1)),
    (64, (0, 1)),
    (64, (1, -1)),
])
def test_invalid_geometry(resolution, aspect):
    with pytest.raises(ConfigurationError):
        GridGeometry.from_resolution(resolution, aspect)

def test_height_floors_before_tile_rounding():
    # 33 * 1 / 2 = 16.5 rows floors to 16, two tiles; rounding up would give three
    geometry = GridGeometry.from_resolution(33, (2, 1))
    assert geometry.shape == (40, 16)
