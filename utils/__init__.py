"""
Utility functions for AmbientNoiseLoop.
"""

from utils.gradient_noise import (
    create_noise_table,
    fade,
    grad,
    smoothed_noise,
    mix_sample,
    mix_range,
)

from utils.random_state import RandomStateManager
from utils.config import ConfigManager
from utils.logging import setup_logging
from utils.progress import ProgressReporter
from utils.scheduler import TaskScheduler

__version__ = "1.0.0"
