"""
WAV container encoding for 32-bit IEEE float mono audio.
"""

import io
import os
import logging
import struct
from typing import Tuple

import numpy as np
from scipy.io import wavfile

from models.constants import Constants, WavConstants
from models.errors import EncodingFailure

logger = logging.getLogger(Constants.LOGGER_NAME)

# RIFF header, fmt chunk and data chunk header: 44 bytes, little-endian
_HEADER_STRUCT = struct.Struct('<4sI4s4sIHHIIHH4sI')


def encode_wav(samples: np.ndarray, sample_rate: int) -> bytes:
    """
    Serialize mono samples into a canonical 44-byte-header IEEE float WAV stream.

    Args:
        samples: One-dimensional sample buffer
        sample_rate: Audio sample rate in Hz

    Returns:
        WAV byte stream of 44 + 4 * len(samples) bytes

    Raises:
        EncodingFailure: If the buffer or sample rate cannot be represented
    """
    try:
        data = np.asarray(samples, dtype='<f4')
        if data.ndim != 1:
            raise ValueError(f"Expected a mono buffer, got shape {data.shape}")

        data_size = data.size * WavConstants.BYTES_PER_SAMPLE
        byte_rate = sample_rate * WavConstants.NUM_CHANNELS * WavConstants.BYTES_PER_SAMPLE

        header = _HEADER_STRUCT.pack(
            b'RIFF',
            WavConstants.RIFF_HEADER_OVERHEAD + data_size,
            b'WAVE',
            b'fmt ',
            WavConstants.FMT_CHUNK_SIZE,
            WavConstants.FORMAT_IEEE_FLOAT,
            WavConstants.NUM_CHANNELS,
            sample_rate,
            byte_rate,
            WavConstants.BLOCK_ALIGN,
            WavConstants.BITS_PER_SAMPLE,
            b'data',
            data_size,
        )
        return header + data.tobytes()
    except (ValueError, TypeError, OverflowError, struct.error, MemoryError) as e:
        raise EncodingFailure(f"Error encoding WAV stream: {e}") from e


def decode_wav(data: bytes) -> Tuple[int, np.ndarray]:
    """
    Decode a WAV byte stream.

    Args:
        data: WAV byte stream

    Returns:
        Tuple of (sample_rate, samples)
    """
    sample_rate, samples = wavfile.read(io.BytesIO(data))
    return sample_rate, samples


class AudioExporter:
    """Handles writing encoded audio to disk."""

    def __init__(self, sample_rate: int):
        """
        Initialize the audio exporter.

        Args:
            sample_rate: Audio sample rate
        """
        self.sample_rate = sample_rate

    def encode(self, samples: np.ndarray) -> bytes:
        return encode_wav(samples, self.sample_rate)

    def save_to_wav(self, audio, filename: str) -> str:
        """
        Save audio to a WAV file.

        Args:
            audio: Encoded WAV bytes or a sample buffer to encode
            filename: Output filename

        Returns:
            Path to the saved file
        """
        if not filename.lower().endswith('.wav'):
            filename = f"{os.path.splitext(filename)[0]}.wav"

        data = audio if isinstance(audio, (bytes, bytearray)) else self.encode(audio)

        os.makedirs(os.path.dirname(filename) if os.path.dirname(filename) else ".", exist_ok=True)
        with open(filename, 'wb') as f:
            f.write(data)

        logger.info(f"WAV file saved: {filename} ({len(data)} bytes)")
        return filename
