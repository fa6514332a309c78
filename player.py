"""
Player state machine that orchestrates generation, publishing and playback.
"""

import concurrent.futures
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from models.constants import (
    Constants, CacheConstants, PerformanceConstants, WavConstants,
    PlayerState, StatusIndicator, Trigger
)
from models.errors import (
    EncodingFailure, GenerationCancelled, GenerationFailure, PlaybackBlocked, PublishFailure
)
from models.parameters import NoiseParameters
from output.export import AudioExporter, encode_wav
from output.playback import PlaybackSink, SoundDevicePlayer
from output.publisher import FilePublisher, ResourcePublisher
from output.status import StatusRenderer
from output.storage import CacheStore, JsonFileCacheStore
from sound_profiles.gradient import GradientNoiseGenerator
from utils.progress import ProgressReporter
from utils.scheduler import TaskScheduler

logger = logging.getLogger(Constants.LOGGER_NAME)


TRANSITIONS: Dict[Tuple[PlayerState, Trigger], PlayerState] = {
    (PlayerState.IDLE, Trigger.GENERATE_REQUESTED): PlayerState.GENERATING,
    (PlayerState.READY, Trigger.GENERATE_REQUESTED): PlayerState.GENERATING,
    (PlayerState.ERROR, Trigger.GENERATE_REQUESTED): PlayerState.GENERATING,
    (PlayerState.IDLE, Trigger.CACHED_REFERENCE_FOUND): PlayerState.PUBLISHING,
    (PlayerState.ERROR, Trigger.CACHED_REFERENCE_FOUND): PlayerState.PUBLISHING,
    (PlayerState.GENERATING, Trigger.GENERATION_COMPLETE): PlayerState.PUBLISHING,
    (PlayerState.GENERATING, Trigger.GENERATION_FAILED): PlayerState.ERROR,
    (PlayerState.GENERATING, Trigger.GENERATION_CANCELLED): PlayerState.IDLE,
    (PlayerState.PUBLISHING, Trigger.GENERATION_CANCELLED): PlayerState.IDLE,
    (PlayerState.PUBLISHING, Trigger.ENCODING_FAILED): PlayerState.ERROR,
    (PlayerState.PUBLISHING, Trigger.PUBLISH_FAILED): PlayerState.ERROR,
    (PlayerState.PUBLISHING, Trigger.PUBLISH_COMPLETE): PlayerState.READY,
    (PlayerState.PUBLISHING, Trigger.PLAYBACK_READY): PlayerState.READY,
    (PlayerState.READY, Trigger.PLAYBACK_READY): PlayerState.READY,
    (PlayerState.PUBLISHING, Trigger.PLAYBACK_SOURCE_INVALID): PlayerState.IDLE,
    (PlayerState.READY, Trigger.PLAYBACK_SOURCE_INVALID): PlayerState.IDLE,
}

STATUS_FOR_STATE: Dict[PlayerState, StatusIndicator] = {
    PlayerState.IDLE: StatusIndicator.IDLE,
    PlayerState.GENERATING: StatusIndicator.BUSY,
    PlayerState.PUBLISHING: StatusIndicator.BUSY,
    PlayerState.READY: StatusIndicator.READY,
    PlayerState.ERROR: StatusIndicator.IDLE,
}


@dataclass
class AppContext:
    """Collaborators and settings shared by every player operation."""
    cache: CacheStore
    publisher: ResourcePublisher
    sink: PlaybackSink
    renderer: StatusRenderer
    params: NoiseParameters = field(default_factory=NoiseParameters)
    scheduler: TaskScheduler = field(default_factory=TaskScheduler)
    cache_key: str = CacheConstants.CACHE_KEY
    loop: bool = True
    autoplay: bool = True
    export_path: Optional[str] = None

    @classmethod
    def from_config(cls, config, renderer: StatusRenderer, params: Optional[NoiseParameters] = None,
                    **overrides) -> "AppContext":
        """
        Build a context with file-backed collaborators from a ConfigManager.

        Args:
            config: ConfigManager instance
            renderer: Status renderer to use
            params: Noise parameters (defaults to the configured ones)
            **overrides: cache_file, publish_dir or export_path overriding the configuration
        """
        cache_file = overrides.get("cache_file") or config.get_path(
            "CACHE", "cache_file", CacheConstants.DEFAULT_CACHE_FILE)
        publish_dir = overrides.get("publish_dir") or config.get_path(
            "CACHE", "publish_dir", CacheConstants.DEFAULT_PUBLISH_DIR)

        publisher = FilePublisher(publish_dir)
        return cls(
            cache=JsonFileCacheStore(cache_file),
            publisher=publisher,
            sink=SoundDevicePlayer(publisher),
            renderer=renderer,
            params=params or NoiseParameters.from_config(config),
            scheduler=TaskScheduler(config.get_float(
                "PLAYBACK", "yield_interval", PerformanceConstants.DEFAULT_YIELD_INTERVAL_SECONDS)),
            cache_key=config.get_str("CACHE", "cache_key", CacheConstants.CACHE_KEY),
            loop=config.get_bool("PLAYBACK", "loop", True),
            autoplay=config.get_bool("PLAYBACK", "autoplay", True),
            export_path=overrides.get("export_path"),
        )


class NoiseLoopPlayer:
    """
    Finite-state machine over {IDLE, GENERATING, PUBLISHING, READY, ERROR}.

    Every failure path ends in a state whose indicator is actionable:
    generation, encoding and publishing faults land in ERROR, an invalid
    cached reference is evicted and lands in IDLE, and a blocked play()
    keeps READY because the asset itself is fine.

    Concurrent generation requests are coalesced: while a generation is in
    flight, request_generation() returns the running job's Future.
    """

    def __init__(self, context: AppContext):
        self.context = context
        self._state = PlayerState.IDLE
        self._lock = threading.RLock()
        self._future: Optional[concurrent.futures.Future] = None
        self._cancel_event: Optional[threading.Event] = None
        self._current_ref: Optional[str] = None
        self.history: List[Tuple[PlayerState, Trigger, PlayerState]] = []

        context.sink.add_listener(on_ready=self._on_playback_ready, on_invalid=self._on_playback_invalid)

    @property
    def state(self) -> PlayerState:
        return self._state

    @property
    def current_ref(self) -> Optional[str]:
        return self._current_ref

    def handle(self, trigger: Trigger) -> bool:
        """
        Apply a trigger to the state machine.

        Returns:
            True if the trigger caused a transition, False if it was ignored
        """
        with self._lock:
            target = TRANSITIONS.get((self._state, trigger))
            if target is None:
                logger.debug(f"Ignoring {trigger.value} in state {self._state.value}")
                return False

            previous, self._state = self._state, target
            self.history.append((previous, trigger, target))
            if previous != target:
                logger.info(f"Player state {previous.value} -> {target.value} ({trigger.value})")
            self.context.renderer.render(STATUS_FOR_STATE[target])
            return True

    def load_cached(self) -> PlayerState:
        """
        Attach and play the cached track if one is stored.

        Returns:
            The resulting state: READY if the cached track loaded, IDLE otherwise
        """
        ref = self.context.cache.get(self.context.cache_key)
        if ref is None:
            logger.info("No cached track found")
            self.context.renderer.render(STATUS_FOR_STATE[self._state])
            return self._state

        with self._lock:
            if not self.handle(Trigger.CACHED_REFERENCE_FOUND):
                return self._state
            self._current_ref = ref

        logger.info(f"Loading cached track {ref}")
        self._attach(ref)
        return self._state

    def request_generation(self) -> concurrent.futures.Future:
        """
        Start generating a new track on the scheduler's worker thread.

        Returns:
            Future resolving to the final PlayerState of the run
        """
        with self._lock:
            if self._future is not None and not self._future.done():
                logger.info("Generation already in progress, joining the running request")
                return self._future

            if not self.handle(Trigger.GENERATE_REQUESTED):
                logger.warning(f"Cannot start generation while {self._state.value}")
                future: concurrent.futures.Future = concurrent.futures.Future()
                future.set_result(self._state)
                return future

            self.context.sink.stop()
            self._current_ref = None
            self._cancel_event = threading.Event()
            self._future = self.context.scheduler.submit(self._run_generation, self._cancel_event)
            return self._future

    def cancel(self) -> None:
        """Ask the in-flight generation, if any, to stop before its next chunk."""
        with self._lock:
            if self._cancel_event is not None and self._future is not None and not self._future.done():
                logger.info("Cancelling generation")
                self._cancel_event.set()

    def play(self) -> bool:
        """
        Start playback of the attached track.

        Returns:
            True if playback started, False if the sink refused it
        """
        try:
            self.context.sink.play()
            return True
        except PlaybackBlocked as e:
            logger.warning(f"Playback blocked, it must be started again later: {e}")
            return False

    def shutdown(self, wait: bool = True) -> None:
        """Cancel any running generation, stop playback and release the worker thread."""
        self.cancel()
        self.context.sink.stop()
        self.context.scheduler.shutdown(wait=wait)

    def _attach(self, ref: str) -> None:
        # The sink answers through _on_playback_ready or _on_playback_invalid
        self.context.sink.set_loop(self.context.loop)
        self.context.sink.set_source(ref)

    def _run_generation(self, cancel_event: threading.Event) -> PlayerState:
        try:
            return self._generate_and_publish(cancel_event)
        except Exception as e:
            logger.exception(f"Unexpected error in generation job: {e}")
            with self._lock:
                if self._state == PlayerState.GENERATING:
                    self.handle(Trigger.GENERATION_FAILED)
                elif self._state == PlayerState.PUBLISHING:
                    self._current_ref = None
                    self.handle(Trigger.PUBLISH_FAILED)
            return self._state

    def _create_buffer(self, params: NoiseParameters, cancel_event: threading.Event):
        progress = ProgressReporter(params.num_chunks, "Generating noise", self.context.renderer.progress)
        try:
            generator = GradientNoiseGenerator.from_parameters(params)
            task = generator.create_task(params.duration_seconds)
            return self.context.scheduler.drive(task, cancel_event, progress)
        except (GenerationCancelled, GenerationFailure):
            raise
        except Exception as e:
            # Covers invalid parameters, MemoryError on allocation and progress callback faults
            raise GenerationFailure(f"{type(e).__name__}: {e}") from e

    def _generate_and_publish(self, cancel_event: threading.Event) -> PlayerState:
        params = self.context.params

        try:
            buffer = self._create_buffer(params, cancel_event)
        except GenerationCancelled:
            self.handle(Trigger.GENERATION_CANCELLED)
            return self._state
        except GenerationFailure as e:
            logger.error(f"Error generating noise: {e}")
            self.handle(Trigger.GENERATION_FAILED)
            return self._state

        self.handle(Trigger.GENERATION_COMPLETE)

        try:
            data = encode_wav(buffer, params.sample_rate)
        except EncodingFailure as e:
            logger.error(f"Error creating audio: {e}")
            self.handle(Trigger.ENCODING_FAILED)
            return self._state

        if cancel_event.is_set():
            self.handle(Trigger.GENERATION_CANCELLED)
            return self._state

        if self.context.export_path:
            try:
                AudioExporter(params.sample_rate).save_to_wav(data, self.context.export_path)
            except OSError as e:
                logger.error(f"Could not export WAV file to {self.context.export_path}: {e}")

        try:
            ref = self.context.publisher.publish(data, WavConstants.MIME_TYPE)
            previous = self.context.cache.get(self.context.cache_key)
            self.context.cache.set(self.context.cache_key, ref)
        except (PublishFailure, OSError) as e:
            logger.error(f"Error publishing audio: {e}")
            self.handle(Trigger.PUBLISH_FAILED)
            return self._state

        if previous is not None and previous != ref:
            self.context.publisher.unpublish(previous)

        with self._lock:
            self._current_ref = ref
            self.handle(Trigger.PUBLISH_COMPLETE)

        self._attach(ref)
        return self._state

    def _on_playback_ready(self, ref: str) -> None:
        if ref != self._current_ref:
            logger.debug(f"Ignoring ready signal for stale source {ref}")
            return
        self.handle(Trigger.PLAYBACK_READY)
        if self._state == PlayerState.READY and self.context.autoplay:
            self.play()

    def _on_playback_invalid(self, ref: str, reason: str) -> None:
        if ref != self._current_ref:
            logger.debug(f"Ignoring invalid signal for stale source {ref}")
            return

        logger.warning(f"Stored audio reference is invalid or inaccessible ({reason}), discarding it")
        try:
            if self.context.cache.get(self.context.cache_key) == ref:
                self.context.cache.remove(self.context.cache_key)
        except OSError as e:
            logger.error(f"Could not evict cached reference: {e}")
        self.context.publisher.unpublish(ref)

        with self._lock:
            self._current_ref = None
            self.handle(Trigger.PLAYBACK_SOURCE_INVALID)
