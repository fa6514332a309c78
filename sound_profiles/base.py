"""
Base sound profile generation classes and abstract interfaces.
"""

from abc import ABC, abstractmethod
import logging
from typing import Optional

import numpy as np

from models.constants import Constants

logger = logging.getLogger(Constants.LOGGER_NAME)


class SoundProfileGenerator(ABC):
    """
    Abstract base class for sound profile generators.

    A generator can render a whole buffer in one pass with generate(), or
    hand out an incremental task with create_task() for a scheduler to drive.
    """

    def __init_subclass__(cls, **kwargs):
        """Validate that subclasses implement all required methods."""
        super().__init_subclass__(**kwargs)

        for name in ("generate", "create_task"):
            if name not in cls.__dict__:
                raise TypeError(f"Class {cls.__name__} must implement abstract method '{name}'")

    def __init__(self, sample_rate: int, seed: Optional[int] = None):
        """
        Initialize the sound profile generator.

        Args:
            sample_rate: Audio sample rate
            seed: Random seed for reproducibility
        """
        if sample_rate <= 0:
            raise ValueError("Sample rate must be positive")
        self.sample_rate = sample_rate
        self.seed = seed

    @abstractmethod
    def generate(self, duration_seconds: int, **kwargs) -> np.ndarray:
        """
        Generate a complete sound buffer in a single pass.

        Args:
            duration_seconds: Duration in seconds
            **kwargs: Additional generation parameters

        Returns:
            Sound buffer as numpy array
        """

    @abstractmethod
    def create_task(self, duration_seconds: int, **kwargs):
        """
        Create an incremental generation task exposing step(chunk_index) -> done.

        Args:
            duration_seconds: Duration in seconds
            **kwargs: Additional generation parameters
        """
