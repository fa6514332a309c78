"""
Playback sinks for the looped track.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

import numpy as np
from scipy.io import wavfile

from models.constants import Constants
from models.errors import CachedReferenceInvalid, PlaybackBlocked
from output.publisher import ResourcePublisher
from utils.optional_imports import get_sounddevice_module, get_soundfile_module

logger = logging.getLogger(Constants.LOGGER_NAME)

ReadyListener = Callable[[str], None]
InvalidListener = Callable[[str, str], None]


class PlaybackSink(ABC):
    """
    Plays a referenced audio resource.

    Besides the control methods, a sink reports two signals to its
    listeners: the source is ready to play through (on_ready(ref)), or the
    source is invalid/unreachable (on_invalid(ref, reason)).
    """

    def __init__(self):
        self._ready_listeners: List[ReadyListener] = []
        self._invalid_listeners: List[InvalidListener] = []

    def add_listener(
        self,
        on_ready: Optional[ReadyListener] = None,
        on_invalid: Optional[InvalidListener] = None,
    ) -> None:
        if on_ready is not None:
            self._ready_listeners.append(on_ready)
        if on_invalid is not None:
            self._invalid_listeners.append(on_invalid)

    def _emit_ready(self, ref: str) -> None:
        for listener in list(self._ready_listeners):
            listener(ref)

    def _emit_invalid(self, ref: str, reason: str) -> None:
        for listener in list(self._invalid_listeners):
            listener(ref, reason)

    @abstractmethod
    def set_source(self, ref: str) -> None:
        """Attach a new source; the outcome is reported through the signals."""

    @abstractmethod
    def set_loop(self, loop: bool) -> None:
        """Enable or disable looping."""

    @abstractmethod
    def play(self) -> None:
        """
        Start playback.

        Raises:
            PlaybackBlocked: If playback is refused
        """

    @abstractmethod
    def stop(self) -> None:
        """Stop playback if running."""

    def wait(self) -> None:
        """Block until playback finishes; sinks without a blocking wait return at once."""


class SoundDevicePlayer(PlaybackSink):
    """Sink playing local files through the default audio output with sounddevice."""

    def __init__(self, publisher: ResourcePublisher, device=None):
        """
        Initialize the player.

        Args:
            publisher: Publisher used to resolve references to local paths
            device: sounddevice output device (None for the system default)
        """
        super().__init__()
        self.publisher = publisher
        self.device = device
        self.loop = False
        self.source: Optional[str] = None
        self._data: Optional[np.ndarray] = None
        self._sample_rate: Optional[int] = None
        self._playing = False
        self._lock = threading.Lock()

    def _read(self, path: str):
        soundfile = get_soundfile_module()
        if soundfile is not None:
            data, sample_rate = soundfile.read(path, dtype='float32')
        else:
            sample_rate, data = wavfile.read(path)
        if data.size == 0:
            raise ValueError("audio file holds no samples")
        return data, sample_rate

    def set_source(self, ref: str) -> None:
        self.stop()
        with self._lock:
            self.source = ref
            self._data = None
            self._sample_rate = None

        try:
            path = self.publisher.resolve(ref)
            data, sample_rate = self._read(path)
        except CachedReferenceInvalid as e:
            logger.warning(f"Playback source does not resolve: {e}")
            self._emit_invalid(ref, e.reason or str(e))
            return
        except (RuntimeError, OSError, ValueError) as e:
            # soundfile reports undecodable files as RuntimeError subclasses
            logger.warning(f"Playback source {ref} cannot be decoded: {e}")
            self._emit_invalid(ref, str(e))
            return

        with self._lock:
            self._data = data
            self._sample_rate = sample_rate
        logger.debug(f"Loaded {len(data)} samples at {sample_rate} Hz from {ref}")
        self._emit_ready(ref)

    def set_loop(self, loop: bool) -> None:
        self.loop = bool(loop)

    def play(self) -> None:
        sounddevice = get_sounddevice_module()
        if sounddevice is None:
            raise PlaybackBlocked("No audio output available (sounddevice could not be loaded)")

        with self._lock:
            if self._data is None:
                raise PlaybackBlocked("No playable source attached")
            data, sample_rate = self._data, self._sample_rate

        try:
            sounddevice.play(data, samplerate=sample_rate, loop=self.loop, device=self.device)
        except (sounddevice.PortAudioError, ValueError) as e:
            raise PlaybackBlocked(f"Audio output refused playback: {e}") from e

        self._playing = True
        logger.info(f"Playing {self.source}" + (" on loop" if self.loop else ""))

    def stop(self) -> None:
        if not self._playing:
            return
        sounddevice = get_sounddevice_module()
        if sounddevice is not None:
            sounddevice.stop()
        self._playing = False

    def wait(self) -> None:
        """Block until playback finishes (forever when looping, until interrupted)."""
        sounddevice = get_sounddevice_module()
        if sounddevice is not None and self._playing:
            sounddevice.wait()
