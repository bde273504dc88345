import logging
import time

import numpy as np

from pyroflow.utils.logging import SimulationLogger, Timer

def test_progress_lines(caplog):
    progress = SimulationLogger(stream=None, name="pyroflow.test.progress")
    with caplog.at_level(logging.DEBUG, logger="pyroflow.test.progress"):
        progress.start_simulation(10, dt=0.1)
        progress.update_progress(5, 0.1)
        progress.log_fields({"density": np.ones((4, 4))})
        progress.end_simulation()

    assert progress.simulated_time == 0.5
    messages = [record.getMessage() for record in caplog.records]
    assert messages[0] == "Starting simulation: 10 ticks of 0.1s"
    assert messages[1].startswith("Tick 5/10 (50.0%), t=0.500s")
    assert messages[2] == "density: min=1 max=1 total=16"
    assert messages[3].startswith("Finished 5 ticks")
    progress.cleanup()

def test_timer():
    timer = Timer("sleep")
    assert timer.get_elapsed() == 0.0
    with timer:
        time.sleep(0.01)
    elapsed = timer.get_elapsed()
    assert elapsed >= 0.005
    assert timer.get_elapsed() == elapsed
