"""
Constants and enumerations for the AmbientNoiseLoop.
"""

from enum import Enum


class Constants:
    """General constants used throughout the application"""
    # Audio settings
    DEFAULT_SAMPLE_RATE = 44100
    DEFAULT_DURATION_SECONDS = 60 * 25  # 25 minutes
    DEFAULT_FREQUENCIES_HZ = (110.0, 220.0, 440.0)

    # Mix weights for the three noise layers (fixed, not configurable)
    MIX_WEIGHTS = (0.5, 0.3, 0.2)

    # Table values strictly above this threshold give a +1 gradient
    GRADIENT_THRESHOLD = 0.5

    # Application logger name
    LOGGER_NAME = "AmbientNoiseLoop"


class WavConstants:
    """Constants for the IEEE float WAV container"""
    HEADER_SIZE = 44
    RIFF_HEADER_OVERHEAD = 36  # ChunkSize = 36 + data size
    FMT_CHUNK_SIZE = 16
    FORMAT_IEEE_FLOAT = 3
    NUM_CHANNELS = 1
    BITS_PER_SAMPLE = 32
    BYTES_PER_SAMPLE = BITS_PER_SAMPLE // 8
    BLOCK_ALIGN = NUM_CHANNELS * BYTES_PER_SAMPLE
    MIME_TYPE = "audio/wav"


class CacheConstants:
    """Constants for persisting the generated track"""
    CACHE_KEY = "generatedNoise"
    DEFAULT_CACHE_FILE = "~/.ambient_noise_loop/cache.json"
    DEFAULT_PUBLISH_DIR = "~/.ambient_noise_loop/published"
    MIME_EXTENSIONS = {
        "audio/wav": ".wav",
        "audio/x-wav": ".wav",
        "audio/wave": ".wav",
    }


class PerformanceConstants:
    """Constants for performance tuning"""
    CHUNK_SECONDS = 1  # One chunk = one second of samples
    DEFAULT_YIELD_INTERVAL_SECONDS = 0.0
    PROGRESS_LOG_INTERVAL_SECONDS = 1.0


class PlayerState(str, Enum):
    """States of the player state machine"""
    IDLE = "idle"
    GENERATING = "generating"
    PUBLISHING = "publishing"
    READY = "ready"
    ERROR = "error"


class Trigger(str, Enum):
    """Named transition triggers for the player state machine"""
    GENERATE_REQUESTED = "generate_requested"
    CACHED_REFERENCE_FOUND = "cached_reference_found"
    GENERATION_COMPLETE = "generation_complete"
    GENERATION_FAILED = "generation_failed"
    GENERATION_CANCELLED = "generation_cancelled"
    ENCODING_FAILED = "encoding_failed"
    PUBLISH_COMPLETE = "publish_complete"
    PUBLISH_FAILED = "publish_failed"
    PLAYBACK_READY = "playback_ready"
    PLAYBACK_SOURCE_INVALID = "playback_source_invalid"


class StatusIndicator(str, Enum):
    """Discrete indicators the status renderer knows how to show"""
    IDLE = "idle"    # show the "Generate" trigger
    BUSY = "busy"    # show a progress indicator
    READY = "ready"  # show the "now playing" indicator
