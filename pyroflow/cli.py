import argparse
import logging
from typing import List, Optional

import taichi as ti
import matplotlib.pyplot as plt

from pyroflow.configs import FluidConfig, ConfigManager, PresetManager
from pyroflow.core import Simulation, EditMode, OutputField, PointerButtons
from pyroflow.utils import (
    setup_logging,
    create_logger,
    handle_simulation_error,
    check_field_finite,
    SimulationError,
    SimulationLogger,
    Timer
)
from pyroflow.utils.validation import Validator
from pyroflow.visualization import Presenter, VisualizationConfig

def build_config(args: argparse.Namespace) -> FluidConfig:
    """Combine preset, config file and command line overrides, in that order"""
    config = FluidConfig()
    if args.preset:
        config = PresetManager(args.preset_dir).get(args.preset).to_config(config)
    if args.config:
        manager = ConfigManager(config)
        config = manager.load(args.config)

    overrides = {}
    if args.resolution is not None:
        overrides["resolution"] = args.resolution
    if args.aspect is not None:
        overrides["aspect_ratio"] = tuple(args.aspect)
    return config.updated(**overrides) if overrides else config

def run(args: argparse.Namespace):
    """Run a scripted, headless simulation; fields are released even if a tick fails"""
    logger = create_logger("pyroflow.cli")
    ti.init(arch=getattr(ti, args.arch), default_fp=ti.f32)

    config = build_config(args)
    with Simulation(config) as simulation:
        initial = None
        if args.initial:
            simulation.set_initial_density(plt.imread(args.initial))
            initial = simulation.snapshot(OutputField.DENSITY)

        mode = EditMode(args.mode)
        press_ticks = args.ticks if args.press_ticks is None else args.press_ticks
        progress = SimulationLogger(level=getattr(logging, args.log_level), stream=None,
                                    name="pyroflow.cli.progress")
        progress.start_simulation(args.ticks, args.dt)
        pointer = list(args.pointer)

        with Timer("run") as timer:
            for step in range(args.ticks):
                pressed = step < press_ticks
                buttons = PointerButtons(primary=args.primary and pressed,
                                         secondary=args.secondary and pressed)
                simulation.tick(args.dt, tuple(pointer), buttons, mode)
                pointer[0] += args.drag[0]
                pointer[1] += args.drag[1]

                if args.check_finite:
                    for which in (OutputField.DENSITY, OutputField.TEMPERATURE, OutputField.VELOCITY):
                        check_field_finite(simulation.snapshot(which), which.value)
                if args.progress_every and (step + 1) % args.progress_every == 0:
                    progress.update_progress(step + 1, args.dt)
                    progress.log_fields({
                        which.value: simulation.snapshot(which)
                        for which in (OutputField.DENSITY, OutputField.TEMPERATURE)
                    })

        progress.end_simulation()
        logger.info(f"Ran {args.ticks} ticks in {timer.get_elapsed():.3f}s")

        if initial is not None:
            validator = Validator()
            validator.check_changed("density", initial, simulation.snapshot(OutputField.DENSITY))
            logger.info(validator.summary())

        if args.output:
            presenter = Presenter(VisualizationConfig(colormap=args.colormap))
            presenter.render(simulation, OutputField(args.field))
            presenter.save(args.output)

def make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="PyroFlow - Stable Fluids with temperature and pyrolysis"
    )
    parser.add_argument("--config", help="YAML or JSON configuration file")
    parser.add_argument("--preset", help="Built-in or user preset name")
    parser.add_argument("--preset-dir", help="Directory with user presets (JSON)")
    parser.add_argument("--resolution", type=int, help="Grid resolution override")
    parser.add_argument("--aspect", type=float, nargs=2, metavar=("W", "H"),
                        help="Output aspect ratio override")
    parser.add_argument("--arch", choices=["cpu", "gpu", "cuda", "vulkan", "metal"],
                        default="cpu", help="Taichi backend")
    parser.add_argument("--ticks", type=int, default=120, help="Number of ticks to run")
    parser.add_argument("--dt", type=float, default=1.0 / 60.0, help="Time step in seconds")
    parser.add_argument("--mode", choices=[m.value for m in EditMode], default="density",
                        help="Channel edited by the primary button")
    parser.add_argument("--pointer", type=float, nargs=2, default=(0.0, 0.0), metavar=("X", "Y"),
                        help="Pointer position in normalized [-0.5, 0.5] space")
    parser.add_argument("--drag", type=float, nargs=2, default=(0.0, 0.0), metavar=("DX", "DY"),
                        help="Pointer motion per tick")
    parser.add_argument("--primary", action="store_true", help="Hold the primary button")
    parser.add_argument("--secondary", action="store_true", help="Hold the secondary button")
    parser.add_argument("--press-ticks", type=int, help="Release the buttons after this many ticks")
    parser.add_argument("--initial", help="Image used to seed the initial density")
    parser.add_argument("--field", choices=[f.value for f in OutputField], default="density",
                        help="Field written to --output")
    parser.add_argument("--output", help="PNG file for the final frame")
    parser.add_argument("--colormap", default="inferno", help="Matplotlib colormap")
    parser.add_argument("--check-finite", action="store_true",
                        help="Abort if a field becomes NaN/inf or explodes")
    parser.add_argument("--progress-every", type=int, default=0, help="Log progress every N ticks")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        help="Set the logging level"
    )
    parser.add_argument("--log-file", help="Also write the log to this file")
    return parser

def main(argv: Optional[List[str]] = None):
    args = make_parser().parse_args(argv)
    setup_logging(getattr(logging, args.log_level), args.log_file)
    logger = create_logger(__name__)

    try:
        run(args)
    except SimulationError as e:
        handle_simulation_error(e, logger)
        raise SystemExit(1)

if __name__ == "__main__":
    main()
