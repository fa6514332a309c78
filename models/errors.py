"""
Exception hierarchy for the generation, encoding and playback pipeline.
"""


class NoiseLoopError(Exception):
    """Base class for all pipeline errors."""


class GenerationFailure(NoiseLoopError):
    """Raised when computing the sample buffer fails."""


class GenerationCancelled(NoiseLoopError):
    """Raised when a generation task is stopped by its cancellation token."""


class EncodingFailure(NoiseLoopError):
    """Raised when the WAV byte stream cannot be built."""


class PublishFailure(NoiseLoopError):
    """Raised when an encoded stream cannot be published or cached."""


class CachedReferenceInvalid(NoiseLoopError):
    """Raised when a persisted reference no longer resolves to playable audio."""

    def __init__(self, ref: str, reason: str = ""):
        self.ref = ref
        self.reason = reason
        message = f"Cached reference is invalid: {ref}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class PlaybackBlocked(NoiseLoopError):
    """Raised when the playback sink refuses to start playing."""
