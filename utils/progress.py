"""
Progress tracking for chunked generation.
"""

import time
import logging
from typing import Optional, Callable

from models.constants import Constants, PerformanceConstants

logger = logging.getLogger(Constants.LOGGER_NAME)

ProgressCallback = Callable[[int, int, int, str], None]


class ProgressReporter:
    """
    Reports progress for long-running operations to the logger and an
    optional callback with signature callback(current_step, total_steps, percent, eta_str).
    """

    def __init__(
        self,
        total_steps: int,
        description: str = "Processing",
        callback: Optional[ProgressCallback] = None,
        log_interval: float = PerformanceConstants.PROGRESS_LOG_INTERVAL_SECONDS,
    ):
        self.total_steps = max(1, total_steps)
        self.current_step = 0
        self.description = description
        self.callback = callback
        self.log_interval = log_interval
        self.start_time = time.time()
        self.last_update_time = self.start_time
        self.last_percent = 0

    def _eta(self, elapsed: float) -> str:
        if self.current_step >= self.total_steps:
            return "Complete"
        if self.current_step == 0:
            return "ETA: calculating..."
        eta = elapsed / self.current_step * (self.total_steps - self.current_step)
        return f"ETA: {int(eta // 60)}m {int(eta % 60)}s"

    def update(self, step: int = 1, force: bool = False):
        """
        Advance progress by the given number of steps.

        The logger is only written when the integer percentage changes or
        the log interval has elapsed; the callback sees every update.
        """
        self.current_step = min(self.total_steps, self.current_step + step)
        now = time.time()
        elapsed = now - self.start_time
        percent = int(100 * self.current_step / self.total_steps)
        eta_str = self._eta(elapsed)

        if force or (percent > self.last_percent and (now - self.last_update_time) >= self.log_interval):
            logger.info(f"{self.description}: {percent}% complete. {eta_str}")
            self.last_update_time = now
            self.last_percent = percent

        if self.callback:
            self.callback(self.current_step, self.total_steps, percent, eta_str)

    def complete(self):
        """Mark the operation as complete and log the total time."""
        self.current_step = self.total_steps
        elapsed = time.time() - self.start_time

        hours = int(elapsed // 3600)
        minutes = int((elapsed % 3600) // 60)
        seconds = elapsed % 60
        time_str = f"{minutes}m {seconds:.1f}s" if hours == 0 else f"{hours}h {minutes}m {int(seconds)}s"

        logger.info(f"{self.description}: 100% complete. Total time: {time_str}")

        if self.callback:
            self.callback(self.total_steps, self.total_steps, 100, f"Completed in {time_str}")
