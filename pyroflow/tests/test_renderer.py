import matplotlib
import numpy as np
import pytest

from pyroflow.configs import FluidConfig
from pyroflow.core import Simulation, EditMode, OutputField, PointerButtons
from pyroflow.visualization import Presenter, VisualizationConfig

def test_config_validation():
    with pytest.raises(ValueError):
        VisualizationConfig(colormap="not-a-colormap")
    with pytest.raises(ValueError):
        VisualizationConfig(vmin=1.0, vmax=0.5)

def test_scalar_orientation():
    presenter = Presenter(VisualizationConfig(colormap="gray"))
    data = np.zeros((8, 4), dtype=np.float32)
    data[0, 3] = 1.0  # left column, top row of the domain

    image = presenter.to_rgba(data, OutputField.DENSITY)

    assert image.shape == (4, 8, 4)
    np.testing.assert_allclose(image[0, 0], matplotlib.colormaps["gray"](1.0), atol=1e-6)
    np.testing.assert_allclose(image[-1, -1], matplotlib.colormaps["gray"](0.0), atol=1e-6)

def test_composite_channels():
    presenter = Presenter()
    data = np.zeros((4, 4, 2), dtype=np.float32)
    data[..., 0] = 0.25
    data[..., 1] = 2.0

    image = presenter.to_rgba(data, OutputField.FUEL_COMPOSITE)

    np.testing.assert_allclose(image[..., 0], 0.25)
    np.testing.assert_allclose(image[..., 1], 1.0)
    np.testing.assert_allclose(image[..., 2], 0.0)
    np.testing.assert_allclose(image[..., 3], 1.0)

def test_autoscale():
    presenter = Presenter(VisualizationConfig(colormap="gray", vmin=None, vmax=None))
    data = np.linspace(10.0, 20.0, 16, dtype=np.float32).reshape(4, 4)
    image = presenter.to_rgba(data, OutputField.TEMPERATURE)
    assert image[..., 0].min() == pytest.approx(0.0, abs=1e-6)
    assert image[..., 0].max() == pytest.approx(1.0, abs=1e-6)

def test_double_buffering(tmp_path):
    presenter = Presenter()
    with pytest.raises(RuntimeError):
        presenter.save(str(tmp_path / "empty.png"))

    with Simulation(FluidConfig(resolution=16)) as sim:
        sim.tick(0.1, (0.0, 0.0), PointerButtons(primary=True), EditMode.DENSITY)

        first = presenter.render(sim, OutputField.DENSITY)
        assert presenter.front == 1
        assert presenter.front_buffer is first

        second = presenter.render(sim, OutputField.VELOCITY)
        assert presenter.front == 0
        assert presenter.front_buffer is second
        assert presenter.buffers[1] is first

    output = tmp_path / "frame.png"
    presenter.save(str(output))
    assert output.exists()
