"""
One-dimensional gradient noise used to synthesize the ambient track.

This is a simplified gradient-noise variant: gradients are a binary +1/-1
chosen by thresholding a uniform noise table, and the result is not
normalized. Scalar and vectorized forms evaluate the same float64
expressions in the same order, so they agree sample for sample.
"""

import logging
import math
from typing import Optional, Sequence

import numpy as np

from models.constants import Constants
from utils.random_state import RandomStateManager

logger = logging.getLogger(Constants.LOGGER_NAME)


def create_noise_table(size: int, seed: Optional[int] = None) -> np.ndarray:
    """
    Create a read-only table of independent uniform values in [0, 1).

    Args:
        size: Number of table entries (the sample rate)
        seed: Random seed; seeded tables are reproducible

    Returns:
        Read-only float64 array

    Raises:
        ValueError: If size is not positive
    """
    if size <= 0:
        raise ValueError("Noise table size must be positive")

    # A seeded run gets its own generator so the same seed always yields the same table
    if seed is not None:
        random_state = RandomStateManager(seed)
    else:
        random_state = RandomStateManager.get_instance()

    table = np.asarray(random_state.random(size), dtype=np.float64)
    table.flags.writeable = False
    return table


def fade(t: float) -> float:
    """Quintic ease curve 6t^5 - 15t^4 + 10t^3."""
    return t * t * t * (t * (t * 6 - 15) + 10)


def grad(p: float, noise_table: Sequence[float]) -> float:
    """
    Pseudo-gradient at position p: +1 if the table entry at floor(p) is
    strictly greater than the threshold, else -1.
    """
    index = math.floor(p) % len(noise_table)
    return 1.0 if noise_table[index] > Constants.GRADIENT_THRESHOLD else -1.0


def smoothed_noise(p: float, noise_table: Sequence[float]) -> float:
    """Evaluate the smoothed gradient noise at a single position."""
    p0 = float(math.floor(p))
    p1 = p0 + 1.0
    t = p - p0
    fade_t = fade(t)
    g0 = grad(p0, noise_table)
    g1 = grad(p1, noise_table)
    return (1.0 - fade_t) * g0 * (p - p0) + fade_t * g1 * (p - p1)


def mix_sample(
    index: int,
    sample_rate: int,
    frequencies: Sequence[float],
    weights: Sequence[float],
    noise_table: Sequence[float],
) -> float:
    """Reference evaluation of one output sample as a weighted sum of noise layers."""
    value = 0.0
    for frequency, weight in zip(frequencies, weights):
        value += weight * smoothed_noise(index / (sample_rate / frequency), noise_table)
    return value


def fade_array(t: np.ndarray) -> np.ndarray:
    """Vectorized form of fade()."""
    return t * t * t * (t * (t * 6 - 15) + 10)


def grad_array(p: np.ndarray, noise_table: np.ndarray) -> np.ndarray:
    """Vectorized form of grad()."""
    indices = np.mod(np.floor(p).astype(np.int64), len(noise_table))
    return np.where(noise_table[indices] > Constants.GRADIENT_THRESHOLD, 1.0, -1.0)


def smoothed_noise_array(p: np.ndarray, noise_table: np.ndarray) -> np.ndarray:
    """Vectorized form of smoothed_noise()."""
    p0 = np.floor(p)
    p1 = p0 + 1.0
    t = p - p0
    fade_t = fade_array(t)
    g0 = grad_array(p0, noise_table)
    g1 = grad_array(p1, noise_table)
    return (1.0 - fade_t) * g0 * (p - p0) + fade_t * g1 * (p - p1)


def mix_range(
    start: int,
    end: int,
    sample_rate: int,
    frequencies: Sequence[float],
    weights: Sequence[float],
    noise_table: np.ndarray,
) -> np.ndarray:
    """
    Evaluate output samples start..end-1.

    Args:
        start: First sample index (inclusive)
        end: Last sample index (exclusive)
        sample_rate: Audio sample rate in Hz
        frequencies: Layer frequencies in Hz
        weights: Mix weight per layer
        noise_table: Table consulted by the gradient function

    Returns:
        float64 array of length end - start
    """
    if end < start:
        raise ValueError(f"Invalid sample range: {start}..{end}")

    indices = np.arange(start, end, dtype=np.float64)
    result = np.zeros(end - start, dtype=np.float64)
    for frequency, weight in zip(frequencies, weights):
        positions = indices / (sample_rate / frequency)
        result += weight * smoothed_noise_array(positions, noise_table)
    return result
