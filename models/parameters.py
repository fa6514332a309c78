"""
Parameter dataclasses for the AmbientNoiseLoop.
"""

import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple

from models.constants import Constants, PerformanceConstants

logger = logging.getLogger(Constants.LOGGER_NAME)


@dataclass
class NoiseParameters:
    """Parameters for one run of the gradient noise generator"""
    sample_rate: int = Constants.DEFAULT_SAMPLE_RATE
    duration_seconds: int = Constants.DEFAULT_DURATION_SECONDS
    frequencies: Tuple[float, float, float] = Constants.DEFAULT_FREQUENCIES_HZ
    weights: Tuple[float, float, float] = field(default=Constants.MIX_WEIGHTS, init=False)
    seed: Optional[int] = None

    def __post_init__(self):
        self.frequencies = tuple(float(f) for f in self.frequencies)

    @property
    def num_samples(self) -> int:
        """Total number of samples in the buffer."""
        return int(self.sample_rate * self.duration_seconds)

    @property
    def chunk_size(self) -> int:
        """Samples per generation chunk (one second of audio)."""
        return int(self.sample_rate * PerformanceConstants.CHUNK_SECONDS)

    @property
    def num_chunks(self) -> int:
        """Number of chunks needed to fill the buffer."""
        return (self.num_samples + self.chunk_size - 1) // self.chunk_size

    @classmethod
    def from_config(cls, config, **overrides) -> "NoiseParameters":
        """
        Build parameters from a ConfigManager, with explicit overrides on top.

        Args:
            config: ConfigManager instance
            **overrides: Values taking precedence over the configuration (None is ignored)

        Returns:
            NoiseParameters instance
        """
        values: Dict[str, Any] = {
            "sample_rate": config.get_int("DEFAULT", "sample_rate", Constants.DEFAULT_SAMPLE_RATE),
            "duration_seconds": config.get_int("DEFAULT", "duration_seconds", Constants.DEFAULT_DURATION_SECONDS),
            "frequencies": tuple(config.get_list(
                "NOISE", "frequencies", list(Constants.DEFAULT_FREQUENCIES_HZ), item_type=float
            )),
            "seed": config.get_int("NOISE", "seed", None),
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    def validate(self) -> bool:
        """
        Validate parameters.

        Returns:
            True if parameters are valid, False otherwise
        """
        if self.sample_rate <= 0:
            logger.error("Sample rate must be positive")
            return False

        if self.duration_seconds <= 0:
            logger.error("Duration must be positive")
            return False

        if len(self.frequencies) != len(self.weights):
            logger.error(f"Exactly {len(self.weights)} frequencies are required, got {len(self.frequencies)}")
            return False

        if any(not math.isfinite(f) or f <= 0 for f in self.frequencies):
            logger.error("Frequencies must be positive finite numbers")
            return False

        return True

    def to_dict(self) -> Dict[str, Any]:
        """Convert parameters to dictionary."""
        return asdict(self)
