"""
Random state for noise table generation.

Unseeded runs share one process-wide generator seeded from OS entropy;
seeded runs use a dedicated generator so a seed always reproduces the
same table regardless of what was drawn before.
"""

import logging
import os
import threading
from typing import Optional

import numpy as np

from models.constants import Constants

logger = logging.getLogger(Constants.LOGGER_NAME)


class RandomStateManager:
    """Thread-safe wrapper around a numpy Generator, with a shared default instance."""

    _instance: Optional["RandomStateManager"] = None
    _instance_lock = threading.Lock()

    @classmethod
    def get_instance(cls, seed: Optional[int] = None) -> "RandomStateManager":
        """
        Return the shared instance, reseeding it when a different seed is given.

        Args:
            seed: Optional random seed
        """
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls(seed)
            elif seed is not None and seed != cls._instance.seed:
                cls._instance.set_seed(seed)
        return cls._instance

    def __init__(self, seed: Optional[int] = None):
        self._lock = threading.Lock()
        self.seed = seed if seed is not None else int.from_bytes(os.urandom(4), byteorder='little')
        self._generator = np.random.default_rng(self.seed)
        logger.debug(f"Random state seeded with {self.seed}")

    def set_seed(self, seed: int) -> None:
        with self._lock:
            self.seed = seed
            self._generator = np.random.default_rng(seed)
        logger.info(f"Random seed updated to: {seed}")

    def random(self, size=None):
        """Draw uniform floats in [0.0, 1.0); a scalar when size is None."""
        with self._lock:
            return self._generator.random(size)
