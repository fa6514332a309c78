"""
Gradient noise generator producing the looped ambient track.
"""

import logging
from typing import Optional, Sequence

import numpy as np

from models.constants import Constants
from models.errors import GenerationFailure
from models.parameters import NoiseParameters
from sound_profiles.base import SoundProfileGenerator
from utils.gradient_noise import create_noise_table, mix_range

logger = logging.getLogger(Constants.LOGGER_NAME)


class GenerationTask:
    """
    Incremental generation of one sample buffer.

    The buffer is filled one chunk (one second of samples) per step, strictly
    in index order. Once the last chunk is written the buffer is frozen.
    """

    def __init__(self, params: NoiseParameters, noise_table: np.ndarray):
        self.params = params
        self.noise_table = noise_table
        self._buffer = np.zeros(params.num_samples, dtype=np.float32)
        self._next_chunk = 0

    @property
    def num_chunks(self) -> int:
        return self.params.num_chunks

    @property
    def next_chunk(self) -> int:
        return self._next_chunk

    @property
    def done(self) -> bool:
        return self._next_chunk >= self.num_chunks

    def step(self, chunk_index: int) -> bool:
        """
        Fill one chunk of the buffer.

        Args:
            chunk_index: Index of the chunk to fill; must be the next unfilled chunk

        Returns:
            True once the whole buffer has been filled

        Raises:
            ValueError: If the chunk is out of order or the task is already complete
            GenerationFailure: If evaluating the chunk fails
        """
        if self.done:
            raise ValueError("Generation task is already complete")
        if chunk_index != self._next_chunk:
            raise ValueError(f"Chunks must be generated in order: expected {self._next_chunk}, got {chunk_index}")

        chunk_size = self.params.chunk_size
        start = chunk_index * chunk_size
        end = min(start + chunk_size, self.params.num_samples)

        try:
            self._buffer[start:end] = mix_range(
                start, end,
                self.params.sample_rate,
                self.params.frequencies,
                self.params.weights,
                self.noise_table,
            )
        except Exception as e:
            raise GenerationFailure(f"Error generating chunk {chunk_index + 1}/{self.num_chunks}: {e}") from e

        self._next_chunk += 1
        if self.done:
            self._buffer.flags.writeable = False
        return self.done

    def result(self) -> np.ndarray:
        """
        Return the completed, read-only buffer.

        Raises:
            GenerationFailure: If the buffer is not complete
        """
        if not self.done:
            raise GenerationFailure(
                f"Generation incomplete: {self._next_chunk}/{self.num_chunks} chunks filled"
            )
        return self._buffer


class GradientNoiseGenerator(SoundProfileGenerator):
    """Generator mixing three gradient noise layers at fixed weights."""

    def __init__(
        self,
        sample_rate: int = Constants.DEFAULT_SAMPLE_RATE,
        frequencies: Sequence[float] = Constants.DEFAULT_FREQUENCIES_HZ,
        seed: Optional[int] = None,
    ):
        """
        Initialize the gradient noise generator.

        Args:
            sample_rate: Audio sample rate
            frequencies: The three layer frequencies in Hz
            seed: Random seed for the noise table
        """
        super().__init__(sample_rate, seed)
        self.frequencies = tuple(float(f) for f in frequencies)

    @classmethod
    def from_parameters(cls, params: NoiseParameters) -> "GradientNoiseGenerator":
        return cls(params.sample_rate, params.frequencies, params.seed)

    def parameters(self, duration_seconds: int) -> NoiseParameters:
        """
        Build validated parameters for a run of the given duration.

        Raises:
            ValueError: If the resulting parameters are invalid
        """
        params = NoiseParameters(
            sample_rate=self.sample_rate,
            duration_seconds=duration_seconds,
            frequencies=self.frequencies,
            seed=self.seed,
        )
        if not params.validate():
            raise ValueError(f"Invalid noise parameters: {params.to_dict()}")
        return params

    def create_task(self, duration_seconds: int, noise_table: Optional[np.ndarray] = None) -> GenerationTask:
        """
        Create a chunked generation task.

        Args:
            duration_seconds: Duration in seconds
            noise_table: Table to use instead of drawing a fresh one

        Returns:
            GenerationTask ready to be stepped from chunk 0
        """
        params = self.parameters(duration_seconds)
        if noise_table is None:
            noise_table = create_noise_table(self.sample_rate, self.seed)

        logger.info(
            f"Generating {duration_seconds}s of gradient noise at {self.sample_rate} Hz "
            f"({params.num_samples} samples in {params.num_chunks} chunks, "
            f"layers {', '.join(f'{f:g} Hz' for f in self.frequencies)})"
        )
        return GenerationTask(params, noise_table)

    def generate(self, duration_seconds: int, noise_table: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Generate the whole buffer in one pass.

        Args:
            duration_seconds: Duration in seconds
            noise_table: Table to use instead of drawing a fresh one

        Returns:
            Read-only float32 buffer
        """
        params = self.parameters(duration_seconds)
        if noise_table is None:
            noise_table = create_noise_table(self.sample_rate, self.seed)

        try:
            buffer = mix_range(
                0, params.num_samples, params.sample_rate, params.frequencies, params.weights, noise_table
            ).astype(np.float32)
        except Exception as e:
            raise GenerationFailure(f"Error generating gradient noise: {e}") from e

        buffer.flags.writeable = False
        return buffer
