import logging
import os
import sys
import time
from typing import Dict, Optional, TextIO

import numpy as np

class SimulationLogger:
    """Progress reporting for a run of a fixed number of ticks.

    Besides percentage and ETA it keeps the simulated time, so a log line
    reads the same whatever ``dt`` the run uses.
    """

    def __init__(self,
                 log_file: Optional[str] = None,
                 level: int = logging.INFO,
                 stream: Optional[TextIO] = sys.stdout,
                 name: str = "PyroFlow"):
        """
        Args:
            log_file: Optional file receiving timestamped records
            level: Logging level
            stream: Console stream, None to rely on the root handlers
            name: Logger name
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)

        if log_file:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            handler = logging.FileHandler(log_file)
            handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(message)s"))
            self.logger.addHandler(handler)

        if stream is not None:
            handler = logging.StreamHandler(stream)
            handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
            self.logger.addHandler(handler)

        self.total_ticks = 0
        self.tick = 0
        self.simulated_time = 0.0
        self._wall_start: Optional[float] = None

    def start_simulation(self, total_ticks: int, dt: Optional[float] = None):
        """Reset counters and announce the run"""
        self.total_ticks = total_ticks
        self.tick = 0
        self.simulated_time = 0.0
        self._wall_start = time.perf_counter()

        if dt is None:
            self.logger.info(f"Starting simulation: {total_ticks} ticks")
        else:
            self.logger.info(f"Starting simulation: {total_ticks} ticks of {dt:.4g}s")

    def update_progress(self, tick: int, dt: float = 0.0, message: Optional[str] = None):
        """
        Report that ``tick`` ticks have completed

        Args:
            tick: Ticks completed so far
            dt: Step used since the previous report, per tick
            message: Extra text appended to the line
        """
        self.simulated_time += (tick - self.tick) * dt
        self.tick = tick

        elapsed = time.perf_counter() - self._wall_start
        rate = tick / elapsed if elapsed > 0 else 0.0
        line = f"Tick {tick}/{self.total_ticks}"
        if self.total_ticks:
            line += f" ({100.0 * tick / self.total_ticks:.1f}%)"
        line += f", t={self.simulated_time:.3f}s, {rate:.1f} ticks/s"
        if rate > 0 and tick < self.total_ticks:
            line += f", ETA {(self.total_ticks - tick) / rate:.1f}s"
        if message:
            line += f" - {message}"
        self.logger.info(line)

    def log_fields(self, snapshots: Dict[str, np.ndarray]):
        """Debug summary (min/max/total) of host field snapshots"""
        for name, data in snapshots.items():
            self.logger.debug(
                f"{name}: min={float(np.min(data)):.4g} max={float(np.max(data)):.4g} "
                f"total={float(np.sum(data, dtype=np.float64)):.4g}"
            )

    def log_error(self, error: Exception, context: Optional[str] = None):
        message = f"{context}: {error}" if context else str(error)
        self.logger.error(message, exc_info=True)

    def end_simulation(self, success: bool = True):
        elapsed = time.perf_counter() - self._wall_start if self._wall_start else 0.0
        if success:
            self.logger.info(f"Finished {self.tick} ticks in {elapsed:.2f}s")
        else:
            self.logger.error(f"Stopped after {self.tick} ticks ({elapsed:.2f}s)")

    def cleanup(self):
        """Detach and close the handlers this logger owns"""
        for handler in self.logger.handlers[:]:
            handler.close()
            self.logger.removeHandler(handler)

class Timer:
    """Wall-clock timer, usable as a context manager"""

    def __init__(self, name: str):
        self.name = name
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None

    def start(self):
        self.start_time = time.perf_counter()
        self.end_time = None

    def stop(self):
        self.end_time = time.perf_counter()

    def get_elapsed(self) -> float:
        """Seconds since start, or between start and stop once stopped"""
        if self.start_time is None:
            return 0.0
        end = self.end_time if self.end_time is not None else time.perf_counter()
        return end - self.start_time

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
