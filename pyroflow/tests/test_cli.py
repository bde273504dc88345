import pytest

from pyroflow import cli
from pyroflow.cli import build_config, main, make_parser
from pyroflow.core import Simulation
from pyroflow.utils.error_handling import InvariantViolation

def test_defaults():
    args = make_parser().parse_args([])
    assert args.ticks == 120
    assert args.mode == "density"
    assert args.field == "density"
    assert args.arch == "cpu"
    assert build_config(args).resolution == 512

def test_preset_with_override():
    args = make_parser().parse_args(["--preset", "campfire", "--resolution", "32", "--aspect", "2", "1"])
    config = build_config(args)
    assert config.resolution == 32
    assert config.aspect_ratio == (2.0, 1.0)
    assert config.buoyancy == 0.5

def test_config_file(tmp_path):
    path = tmp_path / "params.yaml"
    path.write_text("resolution: 48\nvorticity: 1.0\n")
    args = make_parser().parse_args(["--preset", "ink", "--config", str(path)])
    config = build_config(args)
    assert config.resolution == 48
    assert config.vorticity == 1.0
    assert config.diffusion == 0.0

def test_headless_run_writes_frame(tmp_path):
    output = tmp_path / "density.png"
    main([
        "--resolution", "16",
        "--ticks", "4",
        "--primary",
        "--press-ticks", "2",
        "--pointer", "0.1", "0.0",
        "--drag", "0.01", "0.0",
        "--check-finite",
        "--progress-every", "2",
        "--output", str(output),
    ])
    assert output.exists()

def test_failure_exits_with_status(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        main(["--preset", "no-such-preset", "--ticks", "1"])
    assert excinfo.value.code == 1

def test_fields_released_when_a_tick_fails(monkeypatch):
    created = []

    class FailingSimulation(Simulation):
        def __init__(self, config=None):
            super().__init__(config)
            created.append(self)

        def tick(self, *args, **kwargs):
            raise InvariantViolation("Injected failure")

    monkeypatch.setattr(cli, "Simulation", FailingSimulation)
    with pytest.raises(SystemExit) as excinfo:
        main(["--resolution", "16", "--ticks", "2"])

    assert excinfo.value.code == 1
    assert len(created) == 1
    assert created[0].store.released
