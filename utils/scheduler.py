"""
Scheduling of incremental generation tasks.

A task exposes step(chunk_index) -> done. The scheduler drives it chunk by
chunk, yielding control between chunks and checking a cancellation token
before each one.
"""

import asyncio
import concurrent.futures
import logging
import threading
import time
from typing import Any, Callable, Optional

from models.constants import Constants, PerformanceConstants
from models.errors import GenerationCancelled, GenerationFailure, NoiseLoopError
from utils.progress import ProgressReporter

logger = logging.getLogger(Constants.LOGGER_NAME)


class TaskScheduler:
    """
    Drives generation tasks to completion, blocking, on a worker thread or
    on an asyncio event loop.
    """

    def __init__(
        self,
        yield_interval: float = PerformanceConstants.DEFAULT_YIELD_INTERVAL_SECONDS,
        max_workers: int = 1,
    ):
        """
        Initialize the scheduler.

        Args:
            yield_interval: Seconds to sleep between chunks when driving a task blocking
            max_workers: Worker threads available to submit()
        """
        self.yield_interval = max(0.0, yield_interval)
        self.max_workers = max_workers
        self._executor: Optional[concurrent.futures.ThreadPoolExecutor] = None
        self._lock = threading.Lock()

    def _get_executor(self) -> concurrent.futures.ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = concurrent.futures.ThreadPoolExecutor(
                    max_workers=self.max_workers, thread_name_prefix="noise-scheduler"
                )
            return self._executor

    @staticmethod
    def _check_cancelled(cancel_event: Optional[threading.Event], chunk_index: int, num_chunks: int):
        if cancel_event is not None and cancel_event.is_set():
            logger.info(f"Generation cancelled before chunk {chunk_index + 1}/{num_chunks}")
            raise GenerationCancelled(f"Generation cancelled at chunk {chunk_index + 1}/{num_chunks}")

    @staticmethod
    def _step(task, chunk_index: int) -> bool:
        try:
            return task.step(chunk_index)
        except NoiseLoopError:
            raise
        except Exception as e:
            raise GenerationFailure(f"Error generating chunk {chunk_index + 1}: {e}") from e

    def drive(
        self,
        task,
        cancel_event: Optional[threading.Event] = None,
        progress: Optional[ProgressReporter] = None,
    ):
        """
        Run a task to completion on the calling thread.

        Args:
            task: Task exposing step(), num_chunks, next_chunk and result()
            cancel_event: Token checked before every chunk
            progress: Optional progress reporter advanced once per chunk

        Returns:
            The task's result

        Raises:
            GenerationCancelled: If the token is set before the task completes
            GenerationFailure: If any chunk fails
        """
        chunk_index = task.next_chunk
        done = task.done
        while not done:
            self._check_cancelled(cancel_event, chunk_index, task.num_chunks)
            done = self._step(task, chunk_index)
            chunk_index += 1
            if progress:
                progress.update()
            if not done:
                # Let other threads run between chunks
                time.sleep(self.yield_interval)

        if progress:
            progress.complete()
        return task.result()

    async def drive_async(
        self,
        task,
        cancel_event: Optional[threading.Event] = None,
        progress: Optional[ProgressReporter] = None,
    ):
        """
        Run a task to completion on the running event loop, awaiting between chunks.

        Same contract as drive().
        """
        chunk_index = task.next_chunk
        done = task.done
        while not done:
            self._check_cancelled(cancel_event, chunk_index, task.num_chunks)
            done = self._step(task, chunk_index)
            chunk_index += 1
            if progress:
                progress.update()
            if not done:
                await asyncio.sleep(0)

        if progress:
            progress.complete()
        return task.result()

    def submit(self, fn: Callable[..., Any], *args, **kwargs) -> concurrent.futures.Future:
        """
        Run a job on the scheduler's worker thread.

        Returns:
            Future for the job's return value
        """
        return self._get_executor().submit(fn, *args, **kwargs)

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker thread once queued jobs have finished."""
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()
